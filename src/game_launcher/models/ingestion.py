"""Data models for the upload ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Literal
from zipfile import ZipFile, ZipInfo

if TYPE_CHECKING:
    from game_launcher.data.models.game_file import GameFile


class UploadKind(str, Enum):
    """Kinds of upload the launcher accepts."""

    HTML = "html"
    ZIP = "zip"
    JAVA_ARCHIVE = "java-archive"
    JSON = "json"
    EXECUTABLE = "executable"


class BundleKind(str, Enum):
    """Kind of playable bundle found inside an archive."""

    HTML = "html"
    JAVA_ARCHIVE = "java-archive"
    UNSUPPORTED = "unsupported"


class DetectionMethod(str, Enum):
    """Confidence tag for the chosen entry point."""

    PATTERN_MATCH = "pattern-match"
    FALLBACK = "fallback"


class IngestionState(str, Enum):
    """States a single upload moves through."""

    RECEIVED = "received"
    VALIDATED = "validated"
    EXTRACTED = "extracted"
    SKIPPED_EXTRACTION = "skipped-extraction"
    CLASSIFIED = "classified"
    ANALYZED = "analyzed"
    PERSISTED = "persisted"
    FAILED = "failed"


@dataclass(slots=True)
class UploadedArchive:
    """An upload the transport layer has finished buffering to disk.

    Attributes:
        source_path: Temporary location of the buffered upload.
        filename: Original file name declared by the client.
        content_type: Media type declared by the client.
        size_bytes: Size of the buffered upload.
        kind: Upload kind derived from the declared type and name.
    """

    source_path: Path
    filename: str
    content_type: str | None
    size_bytes: int
    kind: UploadKind


@dataclass(slots=True)
class ValidationResult:
    """Outcome of the ZIP safety checks.

    Any entry in ``errors`` rejects the upload; ``warnings`` are advisory.
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    size_bytes: int = 0

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False


@dataclass(slots=True)
class ArchiveEntry:
    """One entry of a ZIP archive as it is encountered during extraction.

    Attributes:
        path: Normalized forward-slash path within the archive. Directory
            entries keep their trailing ``/``.
        size_bytes: Uncompressed size of the entry.
        is_directory: True for directory marker entries.
    """

    path: str
    size_bytes: int
    is_directory: bool
    _archive: ZipFile = field(repr=False)
    _info: ZipInfo = field(repr=False)

    def open(self) -> BinaryIO:
        """Open a read stream over the entry's uncompressed bytes."""
        return self._archive.open(self._info)


@dataclass(slots=True, kw_only=True)
class _ClassificationBase:
    html_entries: list[str] = field(default_factory=list)
    archive_entries: list[str] = field(default_factory=list)
    entry_count: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class HtmlBundle(_ClassificationBase):
    """An archive with at least one HTML file; ``main_entry`` is served."""

    main_entry: str
    detection_method: DetectionMethod
    kind: Literal[BundleKind.HTML] = field(default=BundleKind.HTML, init=False)


@dataclass(slots=True, kw_only=True)
class JavaArchiveBundle(_ClassificationBase):
    """An archive carrying Java-archive clients and no HTML file."""

    manifest_entries: list[str] = field(default_factory=list)
    kind: Literal[BundleKind.JAVA_ARCHIVE] = field(
        default=BundleKind.JAVA_ARCHIVE, init=False
    )


@dataclass(slots=True, kw_only=True)
class UnsupportedBundle(_ClassificationBase):
    """An archive with nothing runnable.

    ``only_auxiliary_files`` is True when every file in the archive is a
    configuration or manifest file.
    """

    only_auxiliary_files: bool = False
    kind: Literal[BundleKind.UNSUPPORTED] = field(
        default=BundleKind.UNSUPPORTED, init=False
    )


ClassificationResult = HtmlBundle | JavaArchiveBundle | UnsupportedBundle


@dataclass(slots=True)
class CompatibilityInfo:
    """Version and family metadata sniffed from an HTML entry."""

    client_version: str | None = None
    engine_version: str | None = None
    client_family: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class IngestionResult:
    """Outcome of a successful ingestion.

    Attributes:
        record: The persisted game file.
        bundle_kind: Bundle kind for ZIP uploads, ``None`` for loose files.
        detection_method: How the entry point was chosen for HTML archives.
        warnings: Advisory warnings from validation and classification.
    """

    record: GameFile
    bundle_kind: BundleKind | None = None
    detection_method: DetectionMethod | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ClearResult:
    """Summary of a bulk delete."""

    deleted: int = 0
    failed: list[int] = field(default_factory=list)
