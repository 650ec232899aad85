from __future__ import annotations

import io
import os
import time
from dataclasses import replace
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

import pytest
from sqlalchemy.exc import SQLAlchemyError

from game_launcher.config import LauncherSettings
from game_launcher.constants.classification_constants import WARNING_NO_ASSETS
from game_launcher.constants.client_signatures import WARNING_ANALYSIS_FAILED
from game_launcher.data.crud.game_file_repo import GameFileData, GameFileRepository
from game_launcher.data.models.game_file import GameFile
from game_launcher.models.errors import (
    ArchiveExtractionError,
    ArchiveValidationError,
    ArtifactRemovalError,
    ExtractionTimeoutError,
    PersistenceError,
    UnsupportedBundleError,
)
from game_launcher.models.ingestion import (
    BundleKind,
    DetectionMethod,
    UploadedArchive,
    UploadKind,
)
from game_launcher.services import archive_extractor, client_detector, ingestion
from game_launcher.services.ingestion import (
    MESSAGE_NOTHING_USABLE,
    MESSAGE_ONLY_AUXILIARY,
    IngestionOrchestrator,
)
from game_launcher.services.upload_storage import (
    EXTRACTION_DIR_PREFIX,
    TEMP_UPLOAD_PREFIX,
    new_temp_upload_path,
)

pytestmark = pytest.mark.usefixtures("api_db")


def _create_zip_bytes(entries: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with ZipFile(buffer, "w", ZIP_DEFLATED) as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return buffer.getvalue()


def _upload(
    settings: LauncherSettings, filename: str, data: bytes, kind: UploadKind, content_type: str
) -> UploadedArchive:
    path = new_temp_upload_path(settings.storage_root)
    path.write_bytes(data)
    return UploadedArchive(
        source_path=path,
        filename=filename,
        content_type=content_type,
        size_bytes=len(data),
        kind=kind,
    )


def _zip_upload(settings: LauncherSettings, entries: list[tuple[str, bytes]]) -> UploadedArchive:
    return _upload(
        settings, "bundle.zip", _create_zip_bytes(entries), UploadKind.ZIP, "application/zip"
    )


def _extraction_dirs(settings: LauncherSettings) -> list[Path]:
    return list(settings.storage_root.glob(f"{EXTRACTION_DIR_PREFIX}*"))


class FailingRepository(GameFileRepository):
    def create(self, data: GameFileData) -> GameFile:
        raise SQLAlchemyError("database is locked")


class LockedDeleteRepository(GameFileRepository):
    def __init__(self) -> None:
        self.locked_ids: set[int] = set()

    def delete(self, file_id: int) -> bool:
        if file_id in self.locked_ids:
            raise SQLAlchemyError("database is locked")
        return super().delete(file_id)


@pytest.fixture
def orchestrator(settings: LauncherSettings) -> IngestionOrchestrator:
    return IngestionOrchestrator(settings)


@pytest.mark.asyncio
async def test_plain_html_upload(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    body = b"<html><body>Eaglercraft 1.8.8</body></html>".ljust(2048, b" ")
    upload = _upload(settings, "game.html", body, UploadKind.HTML, "text/html")

    result = await orchestrator.ingest(upload)

    record = result.record
    assert record.content_type == "text/html"
    assert record.original_name == "game.html"
    assert record.size_bytes == 2048
    assert "1.8.8" in record.client_family
    assert WARNING_NO_ASSETS not in record.compatibility_warnings
    assert result.warnings == []
    assert result.bundle_kind is None
    assert not upload.source_path.exists()
    assert Path(record.file_path).read_bytes() == body


@pytest.mark.asyncio
async def test_loose_java_archive_is_stored_without_analysis(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    upload = _upload(
        settings,
        "client.jar",
        b"PK\x03\x04jar",
        UploadKind.JAVA_ARCHIVE,
        "application/octet-stream",
    )

    result = await orchestrator.ingest(upload)

    assert result.record.content_type == "application/java-archive"
    assert result.record.client_family is None
    assert result.record.compatibility_warnings == []


@pytest.mark.asyncio
async def test_html_bundle_keeps_assets_and_removes_zip(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    page = b"<html><script src='scripts/app.js'></script></html>"
    upload = _zip_upload(
        settings,
        [("assets/logo.png", b"\x89PNG"), ("play.html", page), ("scripts/app.js", b"go()")],
    )

    result = await orchestrator.ingest(upload)

    assert result.bundle_kind is BundleKind.HTML
    assert result.detection_method is DetectionMethod.PATTERN_MATCH
    assert WARNING_NO_ASSETS not in result.warnings
    record = result.record
    assert Path(record.file_path).name == "play.html"
    assert Path(record.file_path).read_bytes() == page
    assert record.size_bytes == len(page)
    assert (Path(record.bundle_dir) / "assets" / "logo.png").exists()
    assert not upload.source_path.exists()


@pytest.mark.asyncio
async def test_java_archive_bundle_is_stored_as_directory(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    upload = _zip_upload(
        settings, [("client.jar", b"jar-bytes"), ("launcher_profiles.json", b"{}")]
    )

    result = await orchestrator.ingest(upload)

    record = result.record
    assert result.bundle_kind is BundleKind.JAVA_ARCHIVE
    assert record.content_type == "application/java-archive"
    assert Path(record.file_path).is_dir()
    assert record.client_version is None
    assert record.engine_version is None
    assert record.client_family is None
    assert record.size_bytes == len(b"jar-bytes") + len(b"{}")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("entries", "message", "only_auxiliary"),
    [
        ([("settings.json", b"{}"), ("options.properties", b"a=b")], MESSAGE_ONLY_AUXILIARY, True),
        ([("readme.txt", b"hello"), ("notes.md", b"# notes")], MESSAGE_NOTHING_USABLE, False),
    ],
)
async def test_unsupported_bundle_is_rejected_and_cleaned(
    settings: LauncherSettings,
    orchestrator: IngestionOrchestrator,
    entries: list[tuple[str, bytes]],
    message: str,
    only_auxiliary: bool,
) -> None:
    upload = _zip_upload(settings, entries)

    with pytest.raises(UnsupportedBundleError) as exc_info:
        await orchestrator.ingest(upload)

    assert str(exc_info.value) == message
    assert exc_info.value.only_auxiliary_files is only_auxiliary
    assert exc_info.value.failed_state == "classified"
    assert not upload.source_path.exists()
    assert _extraction_dirs(settings) == []
    assert orchestrator.repository.list_all() == []


@pytest.mark.asyncio
async def test_invalid_zip_is_rejected_before_extraction(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    upload = _upload(settings, "bundle.zip", b"not a zip" * 20, UploadKind.ZIP, "application/zip")

    with pytest.raises(ArchiveValidationError) as exc_info:
        await orchestrator.ingest(upload)

    assert "does not appear to be a valid ZIP archive" in str(exc_info.value)
    assert exc_info.value.failed_state == "received"
    assert not upload.source_path.exists()
    assert _extraction_dirs(settings) == []


@pytest.mark.asyncio
async def test_extraction_failure_removes_partial_output(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    upload = _zip_upload(settings, [("index.html", b"<html></html>"), ("../escape.html", b"x")])

    with pytest.raises(ArchiveExtractionError):
        await orchestrator.ingest(upload)

    assert not upload.source_path.exists()
    assert _extraction_dirs(settings) == []
    assert not (settings.storage_root.parent / "escape.html").exists()


@pytest.mark.asyncio
async def test_persistence_failure_is_reported(settings: LauncherSettings) -> None:
    orchestrator = IngestionOrchestrator(settings, repository=FailingRepository())
    upload = _upload(settings, "game.html", b"<html></html>", UploadKind.HTML, "text/html")

    with pytest.raises(PersistenceError, match="Failed to save uploaded file") as exc_info:
        await orchestrator.ingest(upload)

    assert exc_info.value.failed_state == "analyzed"
    assert not upload.source_path.exists()


@pytest.mark.asyncio
async def test_concurrent_uploads_use_separate_directories(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    first = await orchestrator.ingest(_zip_upload(settings, [("index.html", b"one")]))
    second = await orchestrator.ingest(_zip_upload(settings, [("index.html", b"two")]))

    assert first.record.bundle_dir != second.record.bundle_dir
    assert Path(first.record.file_path).read_bytes() == b"one"
    assert Path(second.record.file_path).read_bytes() == b"two"


@pytest.mark.asyncio
async def test_delete_twice_is_safe(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    result = await orchestrator.ingest(_zip_upload(settings, [("index.html", b"<html></html>")]))
    record = result.record

    assert orchestrator.delete_game_file(record.id) is True
    assert not Path(record.bundle_dir).exists()
    assert orchestrator.repository.get(record.id) is None

    before = sorted(settings.storage_root.iterdir())
    assert orchestrator.delete_game_file(record.id) is False
    assert sorted(settings.storage_root.iterdir()) == before


@pytest.mark.asyncio
async def test_delete_keeps_record_when_removal_fails(
    settings: LauncherSettings,
    orchestrator: IngestionOrchestrator,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    result = await orchestrator.ingest(
        _upload(settings, "game.html", b"<html></html>", UploadKind.HTML, "text/html")
    )

    def _fail(path: Path) -> None:
        raise PermissionError("read-only")

    monkeypatch.setattr(ingestion, "remove_path", _fail)

    with pytest.raises(ArtifactRemovalError):
        orchestrator.delete_game_file(result.record.id)
    assert orchestrator.repository.get(result.record.id) is not None


@pytest.mark.asyncio
async def test_clear_game_files(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    for name in ("a.html", "b.html"):
        await orchestrator.ingest(
            _upload(settings, name, b"<html></html>", UploadKind.HTML, "text/html")
        )

    result = orchestrator.clear_game_files()

    assert result.deleted == 2
    assert result.failed == []
    assert orchestrator.repository.list_all() == []


@pytest.mark.asyncio
async def test_sweep_removes_only_old_unreferenced_directories(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    kept = await orchestrator.ingest(_zip_upload(settings, [("index.html", b"<html></html>")]))
    orphan = settings.storage_root / f"{EXTRACTION_DIR_PREFIX}orphan"
    (orphan / "nested").mkdir(parents=True)
    fresh = settings.storage_root / f"{EXTRACTION_DIR_PREFIX}fresh"
    fresh.mkdir()
    old = time.time() - 7200
    os.utime(orphan, (old, old))
    os.utime(kept.record.bundle_dir, (old, old))

    removed = orchestrator.sweep_orphaned_extractions(max_age_seconds=3600)

    assert removed == [orphan]
    assert not orphan.exists()
    assert fresh.exists()
    assert Path(kept.record.bundle_dir).exists()


@pytest.mark.asyncio
async def test_sweep_removes_stale_buffered_uploads(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator
) -> None:
    settings.storage_root.mkdir(parents=True, exist_ok=True)
    stale = settings.storage_root / f"{TEMP_UPLOAD_PREFIX}stale.part"
    stale.write_bytes(b"partial")
    buffering = settings.storage_root / f"{TEMP_UPLOAD_PREFIX}buffering.part"
    buffering.write_bytes(b"partial")
    old = time.time() - 7200
    os.utime(stale, (old, old))

    removed = orchestrator.sweep_orphaned_extractions(max_age_seconds=3600)

    assert removed == [stale]
    assert not stale.exists()
    assert buffering.exists()


@pytest.mark.asyncio
async def test_timeout_leaves_no_extraction_directory(
    settings: LauncherSettings, monkeypatch: pytest.MonkeyPatch
) -> None:
    copy_entry = archive_extractor._copy_entry

    def _slow_copy(*args):
        time.sleep(0.3)
        return copy_entry(*args)

    monkeypatch.setattr(archive_extractor, "_copy_entry", _slow_copy)
    orchestrator = IngestionOrchestrator(replace(settings, extraction_timeout=0.1))
    upload = _zip_upload(settings, [("game/index.html", b"<html></html>")])

    with pytest.raises(ExtractionTimeoutError):
        await orchestrator.ingest(upload)

    assert _extraction_dirs(settings) == []
    time.sleep(0.4)
    assert _extraction_dirs(settings) == []
    assert orchestrator.repository.list_all() == []


@pytest.mark.asyncio
async def test_analysis_failure_still_stores_playable_bundle(
    settings: LauncherSettings,
    orchestrator: IngestionOrchestrator,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _unreadable(path: Path) -> str:
        raise PermissionError("denied")

    monkeypatch.setattr(client_detector, "_read_text", _unreadable)
    upload = _zip_upload(
        settings, [("index.html", b"<html></html>"), ("assets/app.js", b"run()")]
    )

    result = await orchestrator.ingest(upload)

    record = orchestrator.repository.get(result.record.id)
    assert record is not None
    assert record.compatibility_warnings == [WARNING_ANALYSIS_FAILED]
    assert record.client_family is None
    assert Path(record.file_path).read_bytes() == b"<html></html>"


@pytest.mark.asyncio
async def test_clear_reports_records_the_database_refuses_to_delete(
    settings: LauncherSettings,
) -> None:
    repository = LockedDeleteRepository()
    orchestrator = IngestionOrchestrator(settings, repository=repository)
    stuck = await orchestrator.ingest(
        _upload(settings, "a.html", b"<html></html>", UploadKind.HTML, "text/html")
    )
    await orchestrator.ingest(
        _upload(settings, "b.html", b"<html></html>", UploadKind.HTML, "text/html")
    )
    repository.locked_ids.add(stuck.record.id)

    result = orchestrator.clear_game_files()

    assert result.deleted == 1
    assert result.failed == [stuck.record.id]
    assert [record.id for record in repository.list_all()] == [stuck.record.id]


@pytest.mark.asyncio
async def test_delete_maps_database_errors(
    settings: LauncherSettings, orchestrator: IngestionOrchestrator, monkeypatch: pytest.MonkeyPatch
) -> None:
    result = await orchestrator.ingest(
        _upload(settings, "game.html", b"<html></html>", UploadKind.HTML, "text/html")
    )

    def _locked(file_id: int) -> None:
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(orchestrator.repository, "get", _locked)

    with pytest.raises(PersistenceError, match=f"Failed to load game file {result.record.id}"):
        orchestrator.delete_game_file(result.record.id)
