"""Runtime configuration for the launcher backend.

Settings are passed explicitly into the ingestion orchestrator so tests can
point the storage root at an isolated directory. ``LauncherSettings.from_env``
builds the default instance from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MAX_UPLOAD_BYTES = 80 * 1024 * 1024
DEFAULT_EXTRACTION_TIMEOUT = 30.0
DEFAULT_MAX_EXTRACTED_BYTES = 512 * 1024 * 1024
DEFAULT_ORPHAN_GRACE_SECONDS = 60 * 60


def get_default_storage_root() -> Path:
    """Return the storage root, allowing overrides via ``LAUNCHER_UPLOAD_DIR``."""
    env_root = os.getenv("LAUNCHER_UPLOAD_DIR")
    if env_root:
        return Path(env_root).expanduser().resolve()

    project_root = Path(__file__).resolve().parents[2]
    return project_root / ".launcher_uploads"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


@dataclass(frozen=True, slots=True)
class LauncherSettings:
    """Configuration values shared by the upload pipeline.

    Attributes:
        storage_root: Directory holding temporary uploads, stored files and
            extraction directories.
        max_upload_bytes: Largest accepted upload.
        extraction_timeout: Wall-clock limit in seconds for one extraction.
        max_extracted_bytes: Largest total uncompressed size of one archive.
        orphan_grace_seconds: Minimum age before an unreferenced extraction
            directory is swept.
    """

    storage_root: Path
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    extraction_timeout: float = DEFAULT_EXTRACTION_TIMEOUT
    max_extracted_bytes: int = DEFAULT_MAX_EXTRACTED_BYTES
    orphan_grace_seconds: float = DEFAULT_ORPHAN_GRACE_SECONDS

    @property
    def max_upload_megabytes(self) -> int:
        return self.max_upload_bytes // (1024 * 1024)

    @classmethod
    def from_env(cls) -> LauncherSettings:
        """Build settings from ``LAUNCHER_*`` environment variables."""
        return cls(
            storage_root=get_default_storage_root(),
            max_upload_bytes=_env_int("LAUNCHER_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            extraction_timeout=_env_float(
                "LAUNCHER_EXTRACTION_TIMEOUT", DEFAULT_EXTRACTION_TIMEOUT
            ),
            max_extracted_bytes=_env_int(
                "LAUNCHER_MAX_EXTRACTED_BYTES", DEFAULT_MAX_EXTRACTED_BYTES
            ),
        )
