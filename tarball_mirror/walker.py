"""
Concurrent dependency graph walker.

Each package key is claimed exactly once per run. Claiming records the key in
the package list and, for non-root packages, the edge from the parent that
won the claim. Failures are confined to the node they happen in: a package
whose metadata or tarball cannot be fetched is logged and left without
children, while its siblings and ancestors carry on.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .config import DEFAULT_CONCURRENCY
from .exceptions import DownloadError, RegistryError, VersionCoercionError
from .interfaces import ArchiveStore, MetadataSource
from .licenses import LicenseAuditor
from .models import (
    STATUS_DOWNLOAD_FAILED,
    STATUS_ERROR,
    STATUS_METADATA_FAILED,
    STATUS_RESOLVED,
    DependencyEdge,
    NodeResult,
    PackageMetadata,
    PackageSpecifier,
    package_key,
)
from .versioning import coerce_version, is_dist_tag


logger = logging.getLogger(__name__)


class ResolutionContext:
    """Shared state for one resolution run.

    Written concurrently by every resolution task; read once all tasks have
    been joined.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._claimed: Set[str] = set()
        self._packages: List[str] = []
        self._edges: List[DependencyEdge] = []
        self._warnings: List[str] = []
        self._results: Dict[str, NodeResult] = {}
        self._roots: List[str] = []
        self._tag_versions: Dict[Tuple[str, str], str] = {}
        self._tag_locks: Dict[Tuple[str, str], threading.Lock] = {}

    def claim(self, key: str, parent: Optional[str] = None) -> bool:
        """Atomically mark ``key`` as taken.

        Returns False if another task already claimed it, in which case
        nothing is recorded.
        """
        with self._lock:
            if key in self._claimed:
                return False
            self._claimed.add(key)
            self._packages.append(key)
            if parent is not None:
                self._edges.append(DependencyEdge(parent=parent, child=key))
            return True

    def add_warning(self, warning: str) -> None:
        with self._lock:
            self._warnings.append(warning)

    def record_result(self, result: NodeResult) -> None:
        with self._lock:
            self._results[result.key] = result

    def set_roots(self, roots: Iterable[str]) -> None:
        with self._lock:
            self._roots = list(roots)

    def tag_lock(self, name: str, tag: str) -> threading.Lock:
        with self._lock:
            return self._tag_locks.setdefault((name, tag), threading.Lock())

    def tag_version(self, name: str, tag: str) -> Optional[str]:
        with self._lock:
            return self._tag_versions.get((name, tag))

    def remember_tag(self, name: str, tag: str, version: str) -> None:
        with self._lock:
            self._tag_versions[(name, tag)] = version

    @property
    def packages(self) -> List[str]:
        with self._lock:
            return list(self._packages)

    @property
    def edges(self) -> List[DependencyEdge]:
        with self._lock:
            return list(self._edges)

    @property
    def warnings(self) -> List[str]:
        with self._lock:
            return list(self._warnings)

    @property
    def roots(self) -> List[str]:
        with self._lock:
            return list(self._roots)

    @property
    def results(self) -> List[NodeResult]:
        """Node outcomes, claimed packages first in claim order."""
        with self._lock:
            ordered = [self._results[key] for key in self._packages if key in self._results]
            claimed = set(self._packages)
            ordered.extend(r for key, r in self._results.items() if key not in claimed)
            return ordered


class DependencyWalker:
    """Resolve packages and their dependencies, downloading each tarball once."""

    def __init__(
        self,
        registry: MetadataSource,
        fetcher: ArchiveStore,
        auditor: Optional[LicenseAuditor] = None,
        context: Optional[ResolutionContext] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.registry = registry
        self.fetcher = fetcher
        self.auditor = auditor or LicenseAuditor()
        self.context = context or ResolutionContext()
        self.concurrency = concurrency

    def resolve_all(self, specifiers: Iterable[PackageSpecifier]) -> List[str]:
        """Resolve every root concurrently and wait for the whole graph.

        Returns the root keys in input order. A root whose dist-tag could not
        be looked up keeps its ``name@tag`` form.
        """
        specs = list(specifiers)
        if not specs:
            self.context.set_roots([])
            return []

        with ThreadPoolExecutor(max_workers=len(specs), thread_name_prefix="root") as executor:
            keys = list(executor.map(lambda s: self.resolve(s.name, s.version_range), specs))

        roots = [key or str(spec) for key, spec in zip(keys, specs)]
        self.context.set_roots(roots)
        return roots

    def resolve(self, name: str, version_range: str, parent: Optional[str] = None) -> Optional[str]:
        """Resolve one package and, recursively, its dependencies.

        Never raises. Returns the package key, or None when no concrete
        version could be determined.
        """
        try:
            return self._resolve(name, version_range, parent)
        except Exception:
            logger.exception("Unexpected error resolving %s@%s", name, version_range)
            return None

    def _resolve(self, name: str, version_range: str, parent: Optional[str]) -> Optional[str]:
        try:
            version, metadata = self._concrete_version(name, version_range, parent)
        except VersionCoercionError:
            logger.warning("Skipping invalid version range: %s@%s", name, version_range)
            return None
        except RegistryError as e:
            logger.error("Error resolving %s@%s: %s", name, version_range, e)
            self._record(
                package_key(name, version_range), name, version_range, parent, None,
                STATUS_METADATA_FAILED, str(e),
            )
            return None

        key = package_key(name, version)
        if not self.context.claim(key, parent):
            logger.debug("Already claimed: %s", key)
            return key

        try:
            self._process(key, name, version, parent, metadata)
        except Exception as e:
            logger.exception("Unexpected error resolving %s", key)
            self._record(key, name, version, parent, None, STATUS_ERROR, str(e))
        return key

    def _process(
        self,
        key: str,
        name: str,
        version: str,
        parent: Optional[str],
        metadata: Optional[PackageMetadata],
    ) -> None:
        """Fetch, audit, download and expand a package this task has claimed."""
        if metadata is None:
            try:
                metadata = self.registry.fetch(name, version)
            except RegistryError as e:
                logger.error("Error downloading %s: %s", key, e)
                self._record(key, name, version, parent, None, STATUS_METADATA_FAILED, str(e))
                return

        warning = self.auditor.audit(key, metadata.license)
        if warning:
            self.context.add_warning(warning)
            logger.warning(warning)

        try:
            self.fetcher.fetch(name, version, metadata.tarball_url)
        except DownloadError as e:
            logger.error("Error downloading %s: %s", key, e)
            self._record(key, name, version, parent, metadata.license, STATUS_DOWNLOAD_FAILED, str(e))
            return

        self._record(key, name, version, parent, metadata.license, STATUS_RESOLVED)

        dependencies = self.expand_dependencies(key, metadata.dependencies)
        self._resolve_children(key, dependencies)
        return

    def _concrete_version(
        self, name: str, version_range: str, parent: Optional[str]
    ) -> Tuple[str, Optional[PackageMetadata]]:
        """Turn a range into a concrete version.

        Only roots may name a dist-tag. The metadata fetched to look up a tag
        is handed back so the claimed key is not fetched a second time.
        """
        if parent is not None or not is_dist_tag(version_range):
            return coerce_version(version_range), None

        with self.context.tag_lock(name, version_range):
            cached = self.context.tag_version(name, version_range)
            if cached is not None:
                return cached, None
            metadata = self.registry.fetch(name, version_range)
            self.context.remember_tag(name, version_range, metadata.version)
            logger.info("Resolved %s@%s to %s", name, version_range, metadata.version)
            return metadata.version, metadata

    def expand_dependencies(self, key: str, dependencies: Dict[str, str]) -> Dict[str, str]:
        """Coerce declared dependency ranges, dropping the ones that cannot be."""
        expanded: Dict[str, str] = {}
        for dep_name, version_range in dependencies.items():
            try:
                expanded[dep_name] = coerce_version(version_range)
            except VersionCoercionError:
                logger.warning(
                    "Skipping invalid version range: %s@%s (required by %s)",
                    dep_name, version_range, key,
                )
        return expanded

    def _resolve_children(self, parent_key: str, dependencies: Dict[str, str]) -> None:
        if not dependencies:
            return

        # At most `concurrency` children of this package are in flight.
        workers = min(self.concurrency, len(dependencies))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="deps") as executor:
            futures = [
                executor.submit(self.resolve, dep_name, dep_version, parent_key)
                for dep_name, dep_version in dependencies.items()
            ]
            for future in as_completed(futures):
                future.result()

    def _record(
        self,
        key: str,
        name: str,
        version: str,
        parent: Optional[str],
        license: Optional[str],
        status: str,
        error: Optional[str] = None,
    ) -> None:
        self.context.record_result(NodeResult(
            key=key,
            name=name,
            version=version,
            parent=parent,
            license=license,
            status=status,
            error=error,
        ))
