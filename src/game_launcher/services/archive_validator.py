"""Safety checks applied to ZIP uploads before extraction."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path, PurePosixPath

from game_launcher.config import DEFAULT_MAX_UPLOAD_BYTES
from game_launcher.models.ingestion import ValidationResult

MIN_ARCHIVE_BYTES = 100
ZIP_SIGNATURES = frozenset(
    {
        b"PK\x03\x04",  # local file header
        b"PK\x05\x06",  # end of central directory (empty archive)
        b"PK\x07\x08",  # spanned archive marker
    }
)

_SUSPICIOUS_NAME_PATTERNS = (
    re.compile(r"\.(exe|bat|cmd|scr|vbs|js|jar)$", re.IGNORECASE),
    re.compile(r'[<>:"|?*]'),
    re.compile(r"^\."),
)
_RESERVED_CHARS = re.compile(r'[<>:"|?*]')


def _read_signature(path: Path) -> tuple[int, bytes]:
    size = path.stat().st_size
    with path.open("rb") as handle:
        return size, handle.read(4)


def check_zip_file(
    path: Path,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    filename: str | None = None,
) -> ValidationResult:
    """Check that *path* is plausibly a ZIP archive.

    Args:
        path: Location of the buffered upload.
        max_bytes: Largest accepted archive size.
        filename: Declared upload name, checked for suspicious patterns.
            Defaults to the on-disk name.

    Returns:
        ValidationResult with hard errors and soft warnings. I/O failures are
        reported as errors instead of being raised.
    """
    result = ValidationResult()

    try:
        size, signature = _read_signature(path)
    except OSError as exc:
        result.add_error(f"Failed to validate ZIP file: {exc}")
        return result

    result.size_bytes = size

    if size < MIN_ARCHIVE_BYTES:
        result.add_error("File appears to be too small to be a valid ZIP archive")

    if size > max_bytes:
        max_mb = max_bytes / 1024 / 1024
        result.add_error(
            f"File size {size / 1024 / 1024:.1f}MB exceeds maximum allowed size of {max_mb:g}MB"
        )

    if signature not in ZIP_SIGNATURES:
        result.add_error("File does not appear to be a valid ZIP archive")

    name = Path(filename).name if filename else path.name
    if any(pattern.search(name) for pattern in _SUSPICIOUS_NAME_PATTERNS):
        result.warnings.append(f"Suspicious file name pattern detected: {name}")

    return result


async def validate_zip_file(
    path: Path,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    filename: str | None = None,
) -> ValidationResult:
    """Run :func:`check_zip_file` without blocking the event loop."""
    return await asyncio.to_thread(check_zip_file, path, max_bytes=max_bytes, filename=filename)


def sanitize_file_name(file_name: str) -> str:
    """Return *file_name* with reserved characters and edge dots removed."""
    cleaned = _RESERVED_CHARS.sub("_", file_name)
    cleaned = cleaned.lstrip(".").rstrip(".")
    return cleaned[:255]


def is_path_safe(file_path: str) -> bool:
    """Return True when *file_path* is relative and free of traversal segments."""
    if not file_path or "\0" in file_path:
        return False
    normalized = file_path.replace("\\", "/")
    if normalized.startswith("/") or re.match(r"^[A-Za-z]:", normalized):
        return False
    return ".." not in PurePosixPath(normalized).parts
