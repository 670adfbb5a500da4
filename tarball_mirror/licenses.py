"""
License compliance checks.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .config import DEFAULT_ALLOWED_LICENSES


class LicenseAuditor:
    """Classify declared licenses against an allow-list."""

    def __init__(self, allowed: Iterable[str] = DEFAULT_ALLOWED_LICENSES) -> None:
        self.allowed = frozenset(allowed)

    def is_allowed(self, license: Optional[str]) -> bool:
        return bool(license) and license in self.allowed

    def audit(self, key: str, license: Optional[str]) -> Optional[str]:
        """Return a warning line for ``key``, or None when its license is allowed."""
        if self.is_allowed(license):
            return None
        if not license:
            return f"WARNING: {key} has no declared license: Unknown"
        return f"WARNING: {key} uses a non-commercial-friendly license: {license}"
