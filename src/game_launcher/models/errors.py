"""Exception hierarchy for the upload pipeline."""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for every failure that rejects an upload.

    Attributes:
        failed_state: Pipeline state the upload was in when it failed, set by
            the orchestrator.
    """

    failed_state: str | None = None


class UnsupportedUploadError(IngestionError):
    """Raised when the declared upload type is not one the launcher accepts."""


class UploadTooLargeError(IngestionError):
    """Raised when an upload exceeds the configured size ceiling."""


class ArchiveValidationError(IngestionError):
    """Raised when a ZIP upload fails the safety checks."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid ZIP archive")


class ArchiveExtractionError(IngestionError):
    """Raised when a ZIP archive cannot be extracted."""


class EmptyArchiveError(ArchiveExtractionError):
    """Raised when an archive has no file entries."""


class ExtractionTimeoutError(ArchiveExtractionError):
    """Raised when extraction exceeds the configured time limit."""


class UnsafeArchivePathError(ArchiveExtractionError):
    """Raised when an entry path would resolve outside the extraction root."""


class ArchiveTooLargeError(ArchiveExtractionError):
    """Raised when the uncompressed archive content exceeds the limit."""


class UnsupportedBundleError(IngestionError):
    """Raised when an archive holds no HTML or Java-archive entry point."""

    def __init__(self, message: str, *, only_auxiliary_files: bool) -> None:
        self.only_auxiliary_files = only_auxiliary_files
        super().__init__(message)


class StorageError(IngestionError):
    """Raised when an accepted upload cannot be placed in storage."""


class PersistenceError(IngestionError):
    """Raised when the game file record cannot be saved."""


class ArtifactRemovalError(Exception):
    """Raised when a record's on-disk artifact cannot be removed."""


class ContentNotFoundError(Exception):
    """Raised when stored content or a file inside a bundle is missing."""


class ContentAccessDeniedError(Exception):
    """Raised when a requested file resolves outside its bundle directory."""
