"""
npm registry client.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from .config import DEFAULT_REGISTRY_URL, DEFAULT_TIMEOUT
from .exceptions import RegistryError
from .interfaces import MetadataSource
from .models import PackageMetadata


logger = logging.getLogger(__name__)


class RegistryClient(MetadataSource):
    """Fetch version metadata from an npm-compatible registry."""

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def metadata_url(self, name: str, version: str) -> str:
        # Scoped names keep their slash.
        return f"{self.registry_url}/{name}/{version}"

    def fetch(self, name: str, version: str) -> PackageMetadata:
        """Fetch metadata for ``name`` at a concrete version or dist-tag.

        Raises:
            RegistryError: on network failure, a non-2xx response or a
                payload without a tarball URL.
        """
        url = self.metadata_url(name, version)
        logger.info("Fetching metadata for %s@%s", name, version)
        try:
            with self.session.get(url, timeout=self.timeout) as response:
                response.raise_for_status()
                data = response.json()
        except requests.RequestException as e:
            raise RegistryError(
                f"Failed to fetch metadata for {name}@{version}: {e}", name, version
            ) from e
        except ValueError as e:
            raise RegistryError(
                f"Malformed metadata for {name}@{version}: {e}", name, version
            ) from e

        return self.parse_metadata(name, version, data)

    def parse_metadata(self, name: str, version: str, data: Any) -> PackageMetadata:
        if not isinstance(data, dict):
            raise RegistryError(f"Malformed metadata for {name}@{version}: expected an object", name, version)

        dist = data.get("dist") or {}
        tarball = dist.get("tarball") if isinstance(dist, dict) else None
        if not tarball or not isinstance(tarball, str):
            raise RegistryError(f"No tarball URL in metadata for {name}@{version}", name, version)

        dependencies = data.get("dependencies") or {}
        if not isinstance(dependencies, dict):
            raise RegistryError(f"Malformed dependencies for {name}@{version}", name, version)

        return PackageMetadata(
            name=name,
            version=str(data.get("version") or version),
            tarball_url=tarball,
            license=_extract_license(data.get("license")),
            dependencies={str(dep): str(rng) for dep, rng in dependencies.items()},
        )


def _extract_license(value: Any) -> Optional[str]:
    # Old packages publish {"type": "MIT", "url": ...}
    if isinstance(value, dict):
        value = value.get("type")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
