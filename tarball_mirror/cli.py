"""
Command-line interface for the tarball mirror.
"""

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

import requests

from .config import DEFAULT_CONCURRENCY, DEFAULT_REGISTRY_URL, DEFAULT_TIMEOUT, MirrorConfig
from .exceptions import SpecifierError
from .fetcher import ArchiveFetcher, no_progress, tqdm_progress
from .licenses import LicenseAuditor
from .models import PackageSpecifier, parse_specifier
from .registry import RegistryClient
from .reporting import build_report, export_package_table, print_summary, write_report
from .walker import DependencyWalker, ResolutionContext


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tarball-mirror",
        description="Download npm packages and all of their dependencies as tarballs"
    )

    parser.add_argument(
        "packages",
        nargs="+",
        help="Packages to download, e.g. lodash, lodash@4.17.21 or @scope/name@1.0.0"
    )

    parser.add_argument(
        "-c", "--clear",
        action="store_true",
        help="Clear the download directory before starting"
    )

    parser.add_argument(
        "--registry",
        default=DEFAULT_REGISTRY_URL,
        help=f"Registry base URL. Default: {DEFAULT_REGISTRY_URL}"
    )

    parser.add_argument(
        "--output-dir",
        default="./npm-packages",
        help="Directory for downloaded tarballs. Default: ./npm-packages"
    )

    parser.add_argument(
        "--report-file",
        default="./download.log",
        help="Dependency report path. Default: ./download.log"
    )

    parser.add_argument(
        "--summary-file",
        default="./download-summary.csv",
        help="Per-package CSV summary path. Default: ./download-summary.csv"
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"Dependencies resolved at once per package. Default: {DEFAULT_CONCURRENCY}"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Network timeout in seconds. Default: {DEFAULT_TIMEOUT}"
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable download progress bars"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def clear_download_directory(download_dir: Path) -> None:
    if download_dir.exists():
        logger.warning("Clearing download directory: %s", download_dir)
        shutil.rmtree(download_dir)


def create_download_directory(download_dir: Path) -> None:
    if not download_dir.exists():
        logger.info("Creating download directory: %s", download_dir)
    download_dir.mkdir(parents=True, exist_ok=True)


def run(config: MirrorConfig, specifiers: List[PackageSpecifier]) -> ResolutionContext:
    """Resolve and download every root, then write the report and summary."""
    session = requests.Session()
    progress = tqdm_progress if config.show_progress else no_progress

    registry = RegistryClient(config.registry_url, session=session, timeout=config.timeout)
    fetcher = ArchiveFetcher(
        config.download_dir,
        session=session,
        progress_factory=progress,
        timeout=config.timeout,
        chunk_size=config.chunk_size,
    )
    context = ResolutionContext()
    walker = DependencyWalker(
        registry,
        fetcher,
        auditor=LicenseAuditor(config.allowed_licenses),
        context=context,
        concurrency=config.concurrency,
    )

    try:
        walker.resolve_all(specifiers)
    finally:
        session.close()

    report = build_report(context.packages, context.edges, context.roots, context.warnings)
    write_report(report, config.report_file)
    export_package_table(context.results, config.summary_file)
    print_summary(context.packages, context.results, context.warnings, config.report_file)
    return context


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = MirrorConfig(
        registry_url=args.registry,
        download_dir=Path(args.output_dir),
        report_file=Path(args.report_file),
        summary_file=Path(args.summary_file),
        concurrency=args.concurrency,
        timeout=args.timeout,
        show_progress=not args.no_progress,
    )
    try:
        config.validate()
    except ValueError as e:
        parser.error(str(e))

    try:
        specifiers = [parse_specifier(p) for p in args.packages]
    except SpecifierError as e:
        parser.error(str(e))

    try:
        if args.clear:
            clear_download_directory(config.download_dir)
        create_download_directory(config.download_dir)
    except OSError as e:
        print(f"Error: cannot prepare download directory {config.download_dir}: {e}", file=sys.stderr)
        return 1

    run(config, specifiers)
    logger.info("All packages and dependencies processed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
