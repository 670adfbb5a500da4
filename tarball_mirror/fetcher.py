"""
Tarball downloads with progress reporting.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import requests
from tqdm import tqdm

from .config import DEFAULT_TIMEOUT
from .exceptions import DownloadError
from .interfaces import ArchiveStore, ProgressFactory, ProgressSink


logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = "tgz"
PARTIAL_SUFFIX = ".part"


def archive_filename(name: str, version: str) -> str:
    """Flatten ``@scope/name`` into a single file name."""
    file_name = f"{name}-{version}.{ARCHIVE_EXTENSION}"
    return file_name.replace("/", "-").replace("\\", "-")


def tqdm_progress(total: Optional[int], desc: str) -> ProgressSink:
    return tqdm(total=total, unit="B", unit_scale=True, desc=desc, leave=False)


def no_progress(total: Optional[int], desc: str) -> ProgressSink:
    return tqdm(total=total, disable=True)


class ArchiveFetcher(ArchiveStore):
    """Stream tarballs into a flat storage directory."""

    def __init__(
        self,
        storage_dir: Path,
        session: Optional[requests.Session] = None,
        progress_factory: ProgressFactory = tqdm_progress,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = 8192,
    ) -> None:
        self.storage_dir = Path(storage_dir)
        self.session = session or requests.Session()
        self.progress_factory = progress_factory
        self.timeout = timeout
        self.chunk_size = chunk_size

    def destination(self, name: str, version: str) -> Path:
        return self.storage_dir / archive_filename(name, version)

    def fetch(self, name: str, version: str, tarball_url: str) -> Path:
        """Download the tarball unless it is already on disk.

        Data is streamed to a ``.part`` file that is renamed into place once
        complete, so an interrupted download is never mistaken for a
        finished one.

        Raises:
            DownloadError: if the request or the stream fails.
        """
        file_path = self.destination(name, version)
        if file_path.exists():
            logger.info("Skipping %s (already downloaded)", file_path.name)
            return file_path

        partial_path = file_path.with_name(file_path.name + PARTIAL_SUFFIX)
        try:
            self._stream(tarball_url, partial_path, file_path.name)
            os.replace(partial_path, file_path)
        except (requests.RequestException, OSError) as e:
            _remove_quietly(partial_path)
            raise DownloadError(
                f"Failed to download {file_path.name} from {tarball_url}: {e}", name, version
            ) from e

        logger.debug("Saved %s", file_path)
        return file_path

    def _stream(self, url: str, target: Path, label: str) -> None:
        with self.session.get(url, stream=True, timeout=self.timeout) as response:
            response.raise_for_status()

            content_length = response.headers.get("content-length")
            total = int(content_length) if content_length and content_length.isdigit() else None
            if total is None:
                logger.info("No Content-Length header for %s, reporting bytes loaded", label)

            progress = self.progress_factory(total, label)
            try:
                with open(target, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if not chunk:
                            continue
                        f.write(chunk)
                        progress.update(len(chunk))
            finally:
                progress.close()


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove partial download %s: %s", path, e)
