"""Helpers for placing uploads and extracted bundles on disk."""

from __future__ import annotations

import shutil
import time
import uuid
from pathlib import Path

from game_launcher.models.ingestion import UploadKind
from game_launcher.services.archive_validator import sanitize_file_name

EXTRACTION_DIR_PREFIX = "extracted_"
TEMP_UPLOAD_PREFIX = "upload_"

ZIP_MEDIA_TYPES = frozenset({"application/zip", "application/x-zip-compressed"})
JAVA_ARCHIVE_MEDIA_TYPES = frozenset({"application/java-archive"})
JSON_MEDIA_TYPES = frozenset({"application/json", "text/json"})
EXECUTABLE_MEDIA_TYPES = frozenset(
    {
        "application/x-msdownload",
        "application/x-executable",
        "application/x-elf",
        "application/octet-stream",
    }
)

HTML_MEDIA_TYPE = "text/html"
ZIP_MEDIA_TYPE = "application/zip"
JAVA_ARCHIVE_MEDIA_TYPE = "application/java-archive"
JSON_MEDIA_TYPE = "application/json"

EXTENSION_TO_MEDIA_TYPE = {
    ".html": HTML_MEDIA_TYPE,
    ".htm": HTML_MEDIA_TYPE,
    ".zip": ZIP_MEDIA_TYPE,
    ".jar": JAVA_ARCHIVE_MEDIA_TYPE,
    ".json": JSON_MEDIA_TYPE,
    ".exe": "application/x-msdownload",
    ".appimage": "application/x-appimage",
    ".run": "application/x-executable",
}


def _unique_suffix() -> str:
    return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def detect_upload_kind(filename: str, content_type: str | None) -> UploadKind | None:
    """Return the upload kind for a declared name and media type.

    Returns ``None`` when the launcher does not accept the upload.
    """
    lowered = filename.lower()
    media_type = (content_type or "").split(";")[0].strip().lower()

    if media_type == HTML_MEDIA_TYPE or lowered.endswith((".html", ".htm")):
        return UploadKind.HTML
    if media_type in ZIP_MEDIA_TYPES or lowered.endswith(".zip"):
        return UploadKind.ZIP
    if media_type in JAVA_ARCHIVE_MEDIA_TYPES or lowered.endswith(".jar"):
        return UploadKind.JAVA_ARCHIVE
    if media_type in JSON_MEDIA_TYPES or lowered.endswith(".json"):
        return UploadKind.JSON
    if media_type in EXECUTABLE_MEDIA_TYPES or lowered.endswith((".exe", ".appimage", ".run")):
        return UploadKind.EXECUTABLE
    return None


def resolve_media_type(filename: str, content_type: str | None, kind: UploadKind) -> str:
    """Map a loose upload to the media type it is stored and served with."""
    suffix = Path(filename).suffix.lower()
    if suffix in EXTENSION_TO_MEDIA_TYPE:
        return EXTENSION_TO_MEDIA_TYPE[suffix]
    if kind is UploadKind.HTML:
        return HTML_MEDIA_TYPE
    if kind is UploadKind.JAVA_ARCHIVE:
        return JAVA_ARCHIVE_MEDIA_TYPE
    if kind is UploadKind.JSON:
        return JSON_MEDIA_TYPE
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in {"application/x-executable", "application/x-elf"}:
        return "application/x-executable"
    return media_type or "application/octet-stream"


def new_temp_upload_path(storage_root: Path) -> Path:
    """Return a unique, not yet existing path for buffering an upload."""
    storage_root.mkdir(parents=True, exist_ok=True)
    return storage_root / f"{TEMP_UPLOAD_PREFIX}{_unique_suffix()}.part"


def new_extraction_dir(storage_root: Path) -> Path:
    """Return a fresh directory name for one extraction.

    The timestamp and random suffix keep concurrent uploads apart.
    """
    return storage_root / f"{EXTRACTION_DIR_PREFIX}{_unique_suffix()}"


def store_loose_file(storage_root: Path, filename: str, source_path: Path) -> Path:
    """Move a buffered upload into storage under a generated name."""
    safe_name = sanitize_file_name(Path(filename).name) or "upload"
    target_path = storage_root / f"{_unique_suffix()}_{safe_name}"
    target_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source_path), target_path)
    return target_path


def storage_name(storage_root: Path, path: Path) -> str:
    """Return *path* relative to the storage root, in forward-slash form."""
    try:
        return path.resolve().relative_to(storage_root.resolve()).as_posix()
    except ValueError:
        return path.name


def directory_size(path: Path) -> int:
    """Return the total size of the files under *path*."""
    return sum(item.stat().st_size for item in path.rglob("*") if item.is_file())


def remove_path(path: Path) -> None:
    """Remove a file or a directory tree. Missing paths are ignored."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)
