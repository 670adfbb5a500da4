"""
Interfaces for the registry, archive storage and progress reporting.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from .models import PackageMetadata


class MetadataSource(Protocol):
    """Fetch metadata for a package version or dist-tag."""

    def fetch(self, name: str, version: str) -> PackageMetadata:
        ...


class ArchiveStore(Protocol):
    """Persist a package tarball, skipping ones already present."""

    def fetch(self, name: str, version: str, tarball_url: str) -> Path:
        ...


class ProgressSink(Protocol):
    """Receive byte progress for one download."""

    def update(self, n: int) -> Optional[bool]:
        ...

    def close(self) -> None:
        ...


class ProgressFactory(Protocol):
    """Create a progress sink for a file of ``total`` bytes (None if unknown)."""

    def __call__(self, total: Optional[int], desc: str) -> ProgressSink:
        ...
