"""Sequential, path-safe extraction of ZIP archives."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import zlib
from collections.abc import AsyncIterator
from pathlib import Path, PurePosixPath
from zipfile import BadZipFile, LargeZipFile, ZipFile

from game_launcher.config import DEFAULT_EXTRACTION_TIMEOUT
from game_launcher.models.errors import (
    ArchiveExtractionError,
    ArchiveTooLargeError,
    EmptyArchiveError,
    ExtractionTimeoutError,
    UnsafeArchivePathError,
)
from game_launcher.models.ingestion import ArchiveEntry
from game_launcher.services.archive_validator import is_path_safe

logger = logging.getLogger(__name__)

_STREAM_CHUNK_SIZE = 1024 * 1024
_ENTRY_READ_ERRORS = (BadZipFile, OSError, RuntimeError, EOFError, NotImplementedError, zlib.error)


class _ExtractionCancelled(Exception):
    pass


def normalize_entry_path(name: str) -> str:
    """Normalize a raw archive entry name to a safe forward-slash path.

    Directory entries keep their trailing ``/``.

    Raises:
        UnsafeArchivePathError: If the name is absolute or contains ``..``.
    """
    if name and not is_path_safe(name):
        raise UnsafeArchivePathError(f"Archive entry escapes the extraction directory: {name}")

    normalized = name.replace("\\", "/")
    is_directory = normalized.endswith("/")
    parts = [part for part in PurePosixPath(normalized).parts if part not in {"", "."}]
    if not parts:
        return ""

    joined = "/".join(parts)
    return f"{joined}/" if is_directory else joined


def resolve_inside(root: Path, relative: str) -> Path:
    """Resolve *relative* under *root*, refusing anything that escapes it.

    Args:
        root: Directory the result must stay inside.
        relative: Forward-slash path relative to *root*.

    Returns:
        The resolved absolute path.

    Raises:
        UnsafeArchivePathError: If the path resolves outside *root*.
    """
    safe_relative = normalize_entry_path(relative).rstrip("/")
    resolved_root = root.resolve()
    target = (resolved_root / safe_relative).resolve() if safe_relative else resolved_root
    if not target.is_relative_to(resolved_root):
        raise UnsafeArchivePathError(f"Path resolves outside the extraction directory: {relative}")
    return target


def _open_archive(archive_path: Path) -> ZipFile:
    try:
        return ZipFile(archive_path)
    except (BadZipFile, LargeZipFile, OSError) as exc:
        raise ArchiveExtractionError(f"Failed to open ZIP file: {exc}") from exc


async def iter_zip_entries(archive_path: Path) -> AsyncIterator[ArchiveEntry]:
    """Yield archive entries one at a time, in archive order.

    The archive stays open until the iterator is exhausted or closed, so
    callers should consume it with :func:`contextlib.aclosing`.

    Raises:
        ArchiveExtractionError: If the archive cannot be opened.
        UnsafeArchivePathError: If an entry name is unsafe.
    """
    archive = await asyncio.to_thread(_open_archive, archive_path)
    try:
        for info in archive.infolist():
            path = normalize_entry_path(info.filename)
            if not path:
                continue
            yield ArchiveEntry(
                path=path,
                size_bytes=info.file_size,
                is_directory=info.is_dir() or path.endswith("/"),
                _archive=archive,
                _info=info,
            )
    finally:
        archive.close()


def _copy_entry(entry: ArchiveEntry, target: Path, cancelled: threading.Event) -> int:
    target.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with entry.open() as source, target.open("wb") as destination:
        for chunk in iter(lambda: source.read(_STREAM_CHUNK_SIZE), b""):
            if cancelled.is_set():
                raise _ExtractionCancelled()
            destination.write(chunk)
            written += len(chunk)
    return written


async def _extract_entries(
    archive_path: Path,
    destination: Path,
    max_total_bytes: int | None,
    cancelled: threading.Event,
) -> list[str]:
    encountered: list[str] = []
    file_count = 0
    total_bytes = 0

    async with contextlib.aclosing(iter_zip_entries(archive_path)) as entries:
        async for entry in entries:
            encountered.append(entry.path)
            target = resolve_inside(destination, entry.path)

            if entry.is_directory:
                target.mkdir(parents=True, exist_ok=True)
                continue

            total_bytes += entry.size_bytes
            if max_total_bytes is not None and total_bytes > max_total_bytes:
                raise ArchiveTooLargeError(
                    f"Archive content exceeds the maximum extracted size of "
                    f"{max_total_bytes // (1024 * 1024)}MB"
                )

            copy = asyncio.ensure_future(
                asyncio.to_thread(_copy_entry, entry, target, cancelled)
            )
            try:
                await asyncio.shield(copy)
            except asyncio.CancelledError:
                # The worker thread cannot be interrupted; stop it at its next
                # chunk and wait, so nothing is written after we return.
                cancelled.set()
                with contextlib.suppress(_ExtractionCancelled, *_ENTRY_READ_ERRORS):
                    await copy
                raise
            except _ENTRY_READ_ERRORS as exc:
                raise ArchiveExtractionError(
                    f"Failed to extract {entry.path}: {exc}"
                ) from exc
            file_count += 1

    if file_count == 0:
        raise EmptyArchiveError("ZIP archive contains no files")
    return encountered


async def extract_zip(
    archive_path: Path | str,
    destination: Path | str,
    *,
    timeout: float = DEFAULT_EXTRACTION_TIMEOUT,
    max_total_bytes: int | None = None,
) -> list[str]:
    """Extract every file entry of a ZIP archive into *destination*.

    Entries are processed strictly one after another: an entry's bytes are
    fully written before the next entry is read. Partial output is left in
    place on failure; removing it is the caller's job.

    Args:
        archive_path: ZIP archive to extract.
        destination: Directory to extract into. Created if missing.
        timeout: Overall wall-clock limit in seconds.
        max_total_bytes: Optional ceiling on the total uncompressed size.

    Returns:
        Normalized paths of every entry encountered, in archive order.
        Directory entries keep their trailing ``/``.

    Raises:
        ArchiveExtractionError: On corrupt archives, unreadable entries or
            write failures. Subclasses report empty archives, timeouts,
            unsafe paths and oversized content.
    """
    archive_path = Path(archive_path)
    destination = Path(destination)
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArchiveExtractionError(f"Failed to create extraction directory: {exc}") from exc

    cancelled = threading.Event()
    try:
        entries = await asyncio.wait_for(
            _extract_entries(archive_path, destination, max_total_bytes, cancelled),
            timeout=timeout,
        )
    except TimeoutError as exc:
        raise ExtractionTimeoutError(
            f"ZIP extraction timed out after {timeout:g} seconds"
        ) from exc
    except (BadZipFile, OSError) as exc:
        raise ArchiveExtractionError(f"Failed to extract ZIP file: {exc}") from exc

    logger.info("Extracted %d entries from %s", len(entries), archive_path.name)
    return entries
