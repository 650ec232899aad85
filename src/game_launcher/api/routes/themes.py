"""Community theme routes for the API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from game_launcher.api.schemas.themes import RateRequest, ThemeCreate, ThemeResponse
from game_launcher.services import themes as theme_service

router = APIRouter(prefix="/themes", tags=["themes"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Theme not found")


@router.get("", response_model=list[ThemeResponse], summary="List public themes")
def list_themes() -> list[ThemeResponse]:
    return [ThemeResponse(**theme) for theme in theme_service.list_themes()]


@router.get("/search", response_model=list[ThemeResponse], summary="Search public themes")
def search_themes(
    q: str = Query("", description="Text matched against name, tags and author"),
) -> list[ThemeResponse]:
    return [ThemeResponse(**theme) for theme in theme_service.search_themes(q)]


@router.get(
    "/{theme_id}",
    response_model=ThemeResponse,
    responses={404: {"description": "Theme not found"}},
)
def get_theme(theme_id: int) -> ThemeResponse:
    theme = theme_service.get_theme(theme_id)
    if theme is None:
        raise _not_found()
    return ThemeResponse(**theme)


@router.post(
    "",
    response_model=ThemeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Share a theme",
)
def create_theme(request: ThemeCreate) -> ThemeResponse:
    return ThemeResponse(**theme_service.create_theme(request.model_dump()))


@router.post(
    "/{theme_id}/download",
    response_model=ThemeResponse,
    summary="Record a theme download",
    responses={404: {"description": "Theme not found"}},
)
def download_theme(theme_id: int) -> ThemeResponse:
    theme = theme_service.record_download(theme_id)
    if theme is None:
        raise _not_found()
    return ThemeResponse(**theme)


@router.post(
    "/{theme_id}/rate",
    response_model=ThemeResponse,
    summary="Rate a theme",
    responses={
        400: {"description": "Rating out of range"},
        404: {"description": "Theme not found"},
    },
)
def rate_theme(theme_id: int, request: RateRequest) -> ThemeResponse:
    try:
        theme = theme_service.rate_theme(theme_id, request.rating)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if theme is None:
        raise _not_found()
    return ThemeResponse(**theme)
