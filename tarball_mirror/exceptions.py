"""
Error types raised while resolving and downloading packages.
"""

from __future__ import annotations

from typing import Optional


class TarballMirrorError(Exception):
    """Base class for all tarball-mirror errors."""


class SpecifierError(TarballMirrorError, ValueError):
    """A root package specifier could not be parsed."""


class VersionCoercionError(TarballMirrorError, ValueError):
    """No concrete version could be extracted from a version range."""


class RegistryError(TarballMirrorError):
    """Package metadata could not be fetched or understood."""

    def __init__(self, message: str, name: Optional[str] = None, version: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = name
        self.version = version


class DownloadError(TarballMirrorError):
    """A tarball could not be streamed to disk."""

    def __init__(self, message: str, name: Optional[str] = None, version: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = name
        self.version = version
