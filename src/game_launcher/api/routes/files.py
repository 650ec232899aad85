"""Game file routes for the API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from fastapi.responses import FileResponse

from game_launcher.api.dependencies import get_orchestrator
from game_launcher.api.schemas.files import ClearResponse, GameFileResponse, UploadResponse
from game_launcher.data.models.game_file import GameFile
from game_launcher.models.errors import (
    ArchiveExtractionError,
    ArchiveValidationError,
    ArtifactRemovalError,
    ContentAccessDeniedError,
    ContentNotFoundError,
    IngestionError,
    PersistenceError,
    UnsupportedBundleError,
    UnsupportedUploadError,
    UploadTooLargeError,
)
from game_launcher.models.ingestion import UploadedArchive
from game_launcher.services.content import (
    download_media_type,
    read_game_content,
    resolve_download,
)
from game_launcher.services.ingestion import IngestionOrchestrator
from game_launcher.services.upload_storage import (
    detect_upload_kind,
    new_temp_upload_path,
    remove_path,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])

Orchestrator = Annotated[IngestionOrchestrator, Depends(get_orchestrator)]

CHUNK_SIZE = 8192  # 8KB chunks
UNSUPPORTED_TYPE_MESSAGE = (
    "Unsupported file type. Upload an HTML, ZIP, JAR, JSON or executable file."
)

_CLIENT_ERRORS = (
    ArchiveValidationError,
    ArchiveExtractionError,
    UnsupportedBundleError,
    UnsupportedUploadError,
)


def _status_for(exc: IngestionError) -> int:
    if isinstance(exc, UploadTooLargeError):
        return status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    if isinstance(exc, _CLIENT_ERRORS):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _get_record_or_404(orchestrator: IngestionOrchestrator, file_id: int) -> GameFile:
    record = orchestrator.repository.get(file_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return record


async def _buffer_upload(file: UploadFile, target: Path, max_bytes: int) -> int:
    """Write *file* to *target* in chunks, enforcing *max_bytes*.

    Raises:
        UploadTooLargeError: As soon as more than *max_bytes* have been read.
    """
    written = 0
    with target.open("wb") as handle:
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLargeError(
                    f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
                )
            handle.write(chunk)
    return written


@router.get(
    "",
    response_model=list[GameFileResponse],
    summary="List game files",
    description="Return every stored game file, most recently uploaded first.",
)
def list_game_files(orchestrator: Orchestrator) -> list[GameFileResponse]:
    return [GameFileResponse.model_validate(r) for r in orchestrator.repository.list_all()]


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a game file",
    description="Upload an HTML client, a ZIP bundle, a JAR, a JSON manifest or an executable.",
    responses={
        400: {"description": "Unsupported or invalid upload"},
        413: {"description": "Upload exceeds the size limit"},
        500: {"description": "Upload could not be stored"},
    },
)
async def upload_game_file(
    file: Annotated[UploadFile, File(description="Game client file or ZIP bundle")],
    orchestrator: Orchestrator,
) -> UploadResponse:
    settings = orchestrator.settings
    filename = Path(file.filename or "upload").name
    kind = detect_upload_kind(filename, file.content_type)
    if kind is None:
        rejected = UnsupportedUploadError(UNSUPPORTED_TYPE_MESSAGE)
        logger.warning("Rejected upload %s: %s", filename, rejected)
        raise HTTPException(status_code=_status_for(rejected), detail=str(rejected))

    temp_path = new_temp_upload_path(settings.storage_root)
    try:
        size_bytes = await _buffer_upload(file, temp_path, settings.max_upload_bytes)
    except UploadTooLargeError as exc:
        remove_path(temp_path)
        logger.warning("Rejected upload %s: %s", filename, exc)
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    except OSError as exc:
        remove_path(temp_path)
        logger.exception("Failed to buffer upload %s", filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store upload.",
        ) from exc

    upload = UploadedArchive(
        source_path=temp_path,
        filename=filename,
        content_type=file.content_type,
        size_bytes=size_bytes,
        kind=kind,
    )
    try:
        result = await orchestrator.ingest(upload)
    except IngestionError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc

    return UploadResponse(
        file=GameFileResponse.model_validate(result.record),
        bundle_kind=result.bundle_kind.value if result.bundle_kind else None,
        detection_method=result.detection_method.value if result.detection_method else None,
        warnings=result.warnings,
    )


@router.delete(
    "",
    response_model=ClearResponse,
    summary="Delete all game files",
    description="Delete every stored game file and report the ones that could not be removed.",
)
def clear_game_files(orchestrator: Orchestrator) -> ClearResponse:
    try:
        result = orchestrator.clear_game_files()
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return ClearResponse(deleted=result.deleted, failed=result.failed)


@router.get(
    "/{file_id}",
    response_model=GameFileResponse,
    summary="Get a game file",
    responses={404: {"description": "File not found"}},
)
def get_game_file(file_id: int, orchestrator: Orchestrator) -> GameFileResponse:
    return GameFileResponse.model_validate(_get_record_or_404(orchestrator, file_id))


@router.get(
    "/{file_id}/content",
    summary="Load a game file",
    description=(
        "Return the stored client for playing. Java-archive bundles return a "
        "download page listing their JAR and JSON files."
    ),
    responses={404: {"description": "File or content not found"}},
)
def get_game_file_content(file_id: int, orchestrator: Orchestrator) -> Response:
    record = _get_record_or_404(orchestrator, file_id)
    try:
        content = read_game_content(record)
    except ContentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(content=content.body, media_type=content.media_type)


@router.get(
    "/{file_id}/download/{filename:path}",
    summary="Download a file from a bundle",
    responses={
        403: {"description": "Path escapes the bundle directory"},
        404: {"description": "File not found"},
    },
)
def download_bundle_file(file_id: int, filename: str, orchestrator: Orchestrator) -> Response:
    record = _get_record_or_404(orchestrator, file_id)
    try:
        path = resolve_download(record, filename)
    except ContentAccessDeniedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ContentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return FileResponse(path, media_type=download_media_type(path), filename=path.name)


@router.delete(
    "/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a game file",
    description="Delete a game file and its stored artifact.",
    responses={
        404: {"description": "File not found"},
        500: {"description": "Stored artifact could not be removed"},
    },
)
def delete_game_file(file_id: int, orchestrator: Orchestrator) -> Response:
    try:
        deleted = orchestrator.delete_game_file(file_id)
    except (ArtifactRemovalError, PersistenceError) as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete file",
        ) from exc
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
