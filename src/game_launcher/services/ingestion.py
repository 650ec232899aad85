"""Upload ingestion: validate, extract, classify, analyze and persist.

The orchestrator is the only part of the pipeline that touches the storage
root and the repository. Every exit path removes the temporary upload; failed
archive uploads also remove their extraction directory.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from game_launcher.config import LauncherSettings
from game_launcher.data.crud.game_file_repo import GameFileData, GameFileRepository
from game_launcher.data.models.game_file import GameFile
from game_launcher.models.errors import (
    ArchiveExtractionError,
    ArchiveValidationError,
    ArtifactRemovalError,
    IngestionError,
    PersistenceError,
    StorageError,
    UnsupportedBundleError,
)
from game_launcher.models.ingestion import (
    BundleKind,
    ClearResult,
    CompatibilityInfo,
    HtmlBundle,
    IngestionResult,
    IngestionState,
    JavaArchiveBundle,
    UnsupportedBundle,
    UploadedArchive,
    UploadKind,
)
from game_launcher.services.archive_extractor import extract_zip
from game_launcher.services.archive_validator import validate_zip_file
from game_launcher.services.client_detector import analyze_client_file
from game_launcher.services.entry_classifier import classify_entries
from game_launcher.services.upload_storage import (
    EXTRACTION_DIR_PREFIX,
    HTML_MEDIA_TYPE,
    JAVA_ARCHIVE_MEDIA_TYPE,
    TEMP_UPLOAD_PREFIX,
    directory_size,
    new_extraction_dir,
    remove_path,
    resolve_media_type,
    storage_name,
    store_loose_file,
)

logger = logging.getLogger(__name__)

MESSAGE_ONLY_AUXILIARY = (
    "ZIP contains configuration files but no executable client files (HTML or JAR)"
)
MESSAGE_NOTHING_USABLE = "No supported files (HTML or JAR) found in ZIP archive"


@dataclass(slots=True)
class IngestionRun:
    """Tracks the state of one upload through the pipeline."""

    upload: UploadedArchive
    state: IngestionState = IngestionState.RECEIVED
    history: list[IngestionState] = field(default_factory=lambda: [IngestionState.RECEIVED])

    def advance(self, state: IngestionState) -> None:
        logger.debug("Upload %s: %s -> %s", self.upload.filename, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def fail(self, error: IngestionError) -> None:
        error.failed_state = self.state.value
        logger.warning(
            "Upload %s rejected while %s: %s", self.upload.filename, self.state.value, error
        )
        self.advance(IngestionState.FAILED)


def _discard(path: Path) -> None:
    try:
        remove_path(path)
    except OSError:
        logger.exception("Failed to remove %s", path)


class IngestionOrchestrator:
    """Runs uploads through the pipeline and deletes stored game files.

    Args:
        settings: Storage root and limits.
        repository: Persistence for GameFile records.
    """

    def __init__(
        self, settings: LauncherSettings, repository: GameFileRepository | None = None
    ) -> None:
        self.settings = settings
        self.repository = repository or GameFileRepository()

    @property
    def storage_root(self) -> Path:
        return self.settings.storage_root

    async def ingest(self, upload: UploadedArchive) -> IngestionResult:
        """Ingest one buffered upload.

        Returns:
            IngestionResult with the persisted record and advisory warnings.

        Raises:
            IngestionError: Any rejection. The subclass names the reason and
                ``failed_state`` names the state the upload was in.
        """
        run = IngestionRun(upload)
        try:
            if upload.kind is UploadKind.ZIP:
                result = await self._ingest_archive(run)
            else:
                result = await self._ingest_loose_file(run)
        except IngestionError as exc:
            run.fail(exc)
            raise
        finally:
            _discard(upload.source_path)

        logger.info(
            "Stored %s as game file %d (%s)",
            upload.filename,
            result.record.id,
            result.record.content_type,
        )
        return result

    async def _ingest_loose_file(self, run: IngestionRun) -> IngestionResult:
        upload = run.upload
        run.advance(IngestionState.VALIDATED)
        run.advance(IngestionState.SKIPPED_EXTRACTION)

        try:
            stored_path = store_loose_file(self.storage_root, upload.filename, upload.source_path)
            size_bytes = stored_path.stat().st_size
        except OSError as exc:
            raise StorageError(f"Failed to store upload: {exc}") from exc

        media_type = resolve_media_type(upload.filename, upload.content_type, upload.kind)
        if upload.kind is UploadKind.HTML:
            info = await analyze_client_file(stored_path)
        else:
            info = CompatibilityInfo()
        run.advance(IngestionState.ANALYZED)

        record = self._persist(
            run,
            stored_path=stored_path,
            bundle_dir=None,
            size_bytes=size_bytes,
            content_type=media_type,
            info=info,
        )
        return IngestionResult(record=record)

    async def _ingest_archive(self, run: IngestionRun) -> IngestionResult:
        upload = run.upload
        validation = await validate_zip_file(
            upload.source_path,
            max_bytes=self.settings.max_upload_bytes,
            filename=upload.filename,
        )
        if not validation.is_valid:
            raise ArchiveValidationError(validation.errors)
        run.advance(IngestionState.VALIDATED)

        extract_dir = new_extraction_dir(self.storage_root)
        try:
            entries = await extract_zip(
                upload.source_path,
                extract_dir,
                timeout=self.settings.extraction_timeout,
                max_total_bytes=self.settings.max_extracted_bytes,
            )
        except ArchiveExtractionError:
            _discard(extract_dir)
            raise
        run.advance(IngestionState.EXTRACTED)

        classification = classify_entries(entries)
        run.advance(IngestionState.CLASSIFIED)
        warnings = [*validation.warnings, *classification.warnings]

        if isinstance(classification, UnsupportedBundle):
            _discard(extract_dir)
            message = (
                MESSAGE_ONLY_AUXILIARY
                if classification.only_auxiliary_files
                else MESSAGE_NOTHING_USABLE
            )
            raise UnsupportedBundleError(
                message, only_auxiliary_files=classification.only_auxiliary_files
            )

        _discard(upload.source_path)

        if isinstance(classification, HtmlBundle):
            return await self._finish_html_bundle(run, classification, extract_dir, warnings)
        return self._finish_java_archive_bundle(run, classification, extract_dir, warnings)

    async def _finish_html_bundle(
        self,
        run: IngestionRun,
        classification: HtmlBundle,
        extract_dir: Path,
        warnings: list[str],
    ) -> IngestionResult:
        main_path = extract_dir / classification.main_entry
        try:
            size_bytes = main_path.stat().st_size
        except OSError as exc:
            raise StorageError(f"Extracted entry point is missing: {exc}") from exc
        info = await analyze_client_file(main_path)
        run.advance(IngestionState.ANALYZED)

        record = self._persist(
            run,
            stored_path=main_path,
            bundle_dir=extract_dir,
            size_bytes=size_bytes,
            content_type=HTML_MEDIA_TYPE,
            info=info,
        )
        return IngestionResult(
            record=record,
            bundle_kind=BundleKind.HTML,
            detection_method=classification.detection_method,
            warnings=warnings,
        )

    def _finish_java_archive_bundle(
        self,
        run: IngestionRun,
        classification: JavaArchiveBundle,
        extract_dir: Path,
        warnings: list[str],
    ) -> IngestionResult:
        logger.info(
            "Archive %s carries %d Java archives; storing for manual download",
            run.upload.filename,
            len(classification.archive_entries),
        )
        try:
            size_bytes = directory_size(extract_dir)
        except OSError as exc:
            raise StorageError(f"Failed to measure extracted bundle: {exc}") from exc
        run.advance(IngestionState.ANALYZED)
        record = self._persist(
            run,
            stored_path=extract_dir,
            bundle_dir=None,
            size_bytes=size_bytes,
            content_type=JAVA_ARCHIVE_MEDIA_TYPE,
            info=CompatibilityInfo(),
        )
        return IngestionResult(
            record=record, bundle_kind=BundleKind.JAVA_ARCHIVE, warnings=warnings
        )

    def _persist(
        self,
        run: IngestionRun,
        *,
        stored_path: Path,
        bundle_dir: Path | None,
        size_bytes: int,
        content_type: str,
        info: CompatibilityInfo,
    ) -> GameFile:
        data: GameFileData = {
            "name": storage_name(self.storage_root, stored_path),
            "original_name": run.upload.filename,
            "size_bytes": size_bytes,
            "content_type": content_type,
            "file_path": str(stored_path),
            "bundle_dir": str(bundle_dir) if bundle_dir is not None else None,
            "client_version": info.client_version,
            "engine_version": info.engine_version,
            "client_family": info.client_family,
            "compatibility_warnings": list(info.warnings),
        }
        try:
            record = self.repository.create(data)
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to save uploaded file") from exc
        run.advance(IngestionState.PERSISTED)
        return record

    def delete_game_file(self, file_id: int) -> bool:
        """Delete a stored game file and its on-disk artifact.

        The artifact is removed first; the record is only deleted once that
        succeeded, so a failed removal leaves the record in place for retry.

        Returns:
            bool: True if the file was deleted, False if it didn't exist.

        Raises:
            ArtifactRemovalError: If the artifact could not be removed.
            PersistenceError: If the record could not be read or deleted.
        """
        try:
            record = self.repository.get(file_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load game file {file_id}") from exc
        if record is None:
            return False

        targets = [Path(record.file_path)]
        if record.bundle_dir:
            targets.append(Path(record.bundle_dir))
        try:
            for target in targets:
                remove_path(target)
        except OSError as exc:
            raise ArtifactRemovalError(
                f"Failed to remove stored files for game file {file_id}: {exc}"
            ) from exc

        try:
            deleted = self.repository.delete(file_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete game file {file_id}") from exc
        if deleted:
            logger.info("Deleted game file %d", file_id)
        return deleted

    def clear_game_files(self) -> ClearResult:
        """Delete every stored game file, collecting the ones that fail.

        Raises:
            PersistenceError: If the records could not be listed.
        """
        try:
            records = self.repository.list_all()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to list game files") from exc

        result = ClearResult()
        for record in records:
            try:
                if self.delete_game_file(record.id):
                    result.deleted += 1
            except (ArtifactRemovalError, PersistenceError):
                logger.exception("Failed to delete game file %d", record.id)
                result.failed.append(record.id)
        return result

    def sweep_orphaned_extractions(self, max_age_seconds: float | None = None) -> list[Path]:
        """Remove leftovers of uploads that never reached a record.

        Extraction directories that no record references and buffered
        ``upload_*.part`` files are removed once they are older than
        ``max_age_seconds``; younger ones may belong to an upload that is
        still being processed.

        Returns:
            The paths that were removed.
        """
        if max_age_seconds is None:
            max_age_seconds = self.settings.orphan_grace_seconds
        if not self.storage_root.is_dir():
            return []

        referenced = {Path(path).resolve() for path in self.repository.referenced_paths()}
        cutoff = time.time() - max_age_seconds
        removed: list[Path] = []
        for candidate in sorted(self.storage_root.glob(f"{EXTRACTION_DIR_PREFIX}*")):
            if not candidate.is_dir():
                continue
            resolved = candidate.resolve()
            if any(path == resolved or path.is_relative_to(resolved) for path in referenced):
                continue
            if candidate.stat().st_mtime > cutoff:
                continue
            _discard(candidate)
            removed.append(candidate)

        for candidate in sorted(self.storage_root.glob(f"{TEMP_UPLOAD_PREFIX}*.part")):
            if candidate.is_file() and candidate.stat().st_mtime <= cutoff:
                _discard(candidate)
                removed.append(candidate)

        if removed:
            logger.info("Removed %d orphaned upload artifacts", len(removed))
        return removed
