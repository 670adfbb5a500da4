"""
Core data models for package resolution.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from .exceptions import SpecifierError


LATEST_TAG = "latest"

_SCOPED_SPECIFIER = re.compile(r"^(@[^/]+/[^@]+)(?:@(.*))?$")


@dataclass(frozen=True)
class PackageSpecifier:
    """A package name with the version range requested for it."""

    name: str
    version_range: str = LATEST_TAG

    def __str__(self) -> str:
        return f"{self.name}@{self.version_range}"


@dataclass(frozen=True)
class PackageMetadata:
    """Registry metadata for a single published version."""

    name: str
    version: str
    tarball_url: str
    license: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return package_key(self.name, self.version)


@dataclass(frozen=True)
class DependencyEdge:
    """Parent to child link recorded when a child is first claimed."""

    parent: str
    child: str


@dataclass(frozen=True)
class NodeResult:
    """Outcome of resolving one package key."""

    key: str
    name: str
    version: str
    parent: Optional[str]
    license: Optional[str]
    status: str
    error: Optional[str] = None


STATUS_RESOLVED = "resolved"
STATUS_METADATA_FAILED = "metadata_failed"
STATUS_DOWNLOAD_FAILED = "download_failed"
STATUS_ERROR = "error"


def package_key(name: str, version: str) -> str:
    """Return the ``name@version`` identity used for deduplication."""
    return f"{name}@{version}"


def parse_specifier(text: str) -> PackageSpecifier:
    """Parse ``name``, ``name@version`` or ``@scope/name@version``.

    A missing or empty version means the ``latest`` tag.
    """
    value = (text or "").strip()
    if not value:
        raise SpecifierError("Invalid package string: empty specifier")

    match = _SCOPED_SPECIFIER.match(value)
    if match:
        name, version = match.group(1), match.group(2)
        return PackageSpecifier(name=name, version_range=version or LATEST_TAG)

    name, _, version = value.partition("@")
    if not name or "/" in name:
        raise SpecifierError(f"Invalid package string: {text}")
    return PackageSpecifier(name=name, version_range=version or LATEST_TAG)
