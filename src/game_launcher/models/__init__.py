"""Data models and type definitions"""

from game_launcher.models.errors import (
    ArchiveExtractionError,
    ArchiveTooLargeError,
    ArchiveValidationError,
    ArtifactRemovalError,
    ContentAccessDeniedError,
    ContentNotFoundError,
    EmptyArchiveError,
    ExtractionTimeoutError,
    IngestionError,
    PersistenceError,
    StorageError,
    UnsafeArchivePathError,
    UnsupportedBundleError,
    UnsupportedUploadError,
    UploadTooLargeError,
)
from game_launcher.models.ingestion import (
    ArchiveEntry,
    BundleKind,
    ClassificationResult,
    ClearResult,
    CompatibilityInfo,
    DetectionMethod,
    HtmlBundle,
    IngestionResult,
    IngestionState,
    JavaArchiveBundle,
    UnsupportedBundle,
    UploadedArchive,
    UploadKind,
    ValidationResult,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveExtractionError",
    "ArchiveTooLargeError",
    "ArchiveValidationError",
    "ArtifactRemovalError",
    "BundleKind",
    "ClassificationResult",
    "ClearResult",
    "CompatibilityInfo",
    "ContentAccessDeniedError",
    "ContentNotFoundError",
    "DetectionMethod",
    "EmptyArchiveError",
    "ExtractionTimeoutError",
    "HtmlBundle",
    "IngestionError",
    "IngestionResult",
    "IngestionState",
    "JavaArchiveBundle",
    "PersistenceError",
    "StorageError",
    "UnsafeArchivePathError",
    "UnsupportedBundle",
    "UnsupportedBundleError",
    "UnsupportedUploadError",
    "UploadTooLargeError",
    "UploadedArchive",
    "UploadKind",
    "ValidationResult",
]
