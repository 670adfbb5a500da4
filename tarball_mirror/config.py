"""
Run configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


DEFAULT_REGISTRY_URL = "https://registry.npmmirror.com"
DEFAULT_CONCURRENCY = 5
DEFAULT_TIMEOUT = 30.0

# Commercial-friendly licenses
DEFAULT_ALLOWED_LICENSES: Tuple[str, ...] = (
    "MIT",
    "Apache-2.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "ISC",
)


@dataclass
class MirrorConfig:
    """Settings for one download run."""

    registry_url: str = DEFAULT_REGISTRY_URL
    download_dir: Path = field(default_factory=lambda: Path.cwd() / "npm-packages")
    report_file: Path = field(default_factory=lambda: Path.cwd() / "download.log")
    summary_file: Path = field(default_factory=lambda: Path.cwd() / "download-summary.csv")
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    allowed_licenses: Tuple[str, ...] = DEFAULT_ALLOWED_LICENSES
    chunk_size: int = 8192
    show_progress: bool = True

    def __post_init__(self) -> None:
        self.registry_url = self.registry_url.rstrip("/")
        self.download_dir = Path(self.download_dir)
        self.report_file = Path(self.report_file)
        self.summary_file = Path(self.summary_file)

    def validate(self) -> None:
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
