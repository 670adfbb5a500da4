"""
Best-effort version coercion.

Ranges are never solved: the first ``major[.minor[.patch]]`` run found in the
input is taken as the concrete version, with missing parts filled by zero and
any prerelease or build suffix dropped.
"""

from __future__ import annotations

import re

from packaging import version as pkg_version

from .exceptions import VersionCoercionError
from .models import LATEST_TAG


_COERCE_PATTERN = re.compile(
    r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])"
)


def coerce_version(version_range: str) -> str:
    """Return the concrete ``M.m.p`` version embedded in ``version_range``."""
    match = _COERCE_PATTERN.search(version_range or "")
    if match is None:
        raise VersionCoercionError(f"Invalid version range: {version_range!r}")

    major, minor, patch = (part or "0" for part in match.groups())
    parsed = pkg_version.Version(f"{major}.{minor}.{patch}")
    return ".".join(str(part) for part in parsed.release[:3])


def is_dist_tag(version_range: str) -> bool:
    """True when the range names a registry tag rather than a version."""
    if not version_range or version_range == LATEST_TAG:
        return True
    return _COERCE_PATTERN.search(version_range) is None
