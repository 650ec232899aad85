"""Service layer for community-shared UI themes.

Themes are stored as opaque JSON color maps. Only public themes are listed or
searched; any theme can still be fetched by ID.
"""

from __future__ import annotations

import logging
from typing import Any, TypedDict

from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session

from game_launcher.data.db import get_session
from game_launcher.data.models.community_theme import CommunityTheme

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ThemeData(TypedDict, total=False):
    """Fields accepted when creating a theme."""

    name: str
    description: str | None
    author_name: str
    theme_data: dict[str, Any]
    tags: str | None
    is_public: bool


def _theme_to_dict(theme: CommunityTheme) -> dict:
    return {
        "id": theme.id,
        "name": theme.name,
        "description": theme.description,
        "author_name": theme.author_name,
        "theme_data": theme.theme_data,
        "downloads": theme.downloads,
        "rating": theme.rating,
        "rating_count": theme.rating_count,
        "tags": theme.tags,
        "is_public": theme.is_public,
        "created_at": theme.created_at,
        "updated_at": theme.updated_at,
    }


def _get_theme_by_id(session: Session, theme_id: int) -> CommunityTheme | None:
    return session.query(CommunityTheme).filter(CommunityTheme.id == theme_id).first()


def list_themes() -> list[dict]:
    """Return all public themes, newest first."""
    with get_session() as session:
        themes = (
            session.query(CommunityTheme)
            .filter(CommunityTheme.is_public.is_(True))
            .order_by(desc(CommunityTheme.created_at), desc(CommunityTheme.id))
            .all()
        )
        return [_theme_to_dict(t) for t in themes]


def get_theme(theme_id: int) -> dict | None:
    with get_session() as session:
        theme = _get_theme_by_id(session, theme_id)
        return _theme_to_dict(theme) if theme else None


def search_themes(query: str) -> list[dict]:
    """Case-insensitive search over name, description, tags and author.

    Args:
        query: Text to look for. An empty query matches every public theme.

    Returns:
        Matching public themes, newest first.
    """
    needle = f"%{query.strip().lower()}%"
    with get_session() as session:
        themes = (
            session.query(CommunityTheme)
            .filter(CommunityTheme.is_public.is_(True))
            .filter(
                or_(
                    func.lower(CommunityTheme.name).like(needle),
                    func.lower(func.coalesce(CommunityTheme.description, "")).like(needle),
                    func.lower(func.coalesce(CommunityTheme.tags, "")).like(needle),
                    func.lower(CommunityTheme.author_name).like(needle),
                )
            )
            .order_by(desc(CommunityTheme.created_at), desc(CommunityTheme.id))
            .all()
        )
        return [_theme_to_dict(t) for t in themes]


def create_theme(theme_data: ThemeData) -> dict:
    """Create a new theme.

    Args:
        theme_data: Must include 'name', 'author_name' and 'theme_data'.

    Returns:
        Dictionary with the created theme.
    """
    with get_session() as session:
        theme = CommunityTheme(
            name=theme_data["name"],
            description=theme_data.get("description"),
            author_name=theme_data["author_name"],
            theme_data=theme_data["theme_data"],
            tags=theme_data.get("tags"),
            is_public=theme_data.get("is_public", True),
        )
        session.add(theme)
        session.flush()
        session.refresh(theme)
        logger.info("Created theme %d (%s) by %s", theme.id, theme.name, theme.author_name)
        return _theme_to_dict(theme)


def record_download(theme_id: int) -> dict | None:
    """Increment a theme's download counter.

    Returns:
        The updated theme, or None if it doesn't exist.
    """
    with get_session() as session:
        theme = _get_theme_by_id(session, theme_id)
        if theme is None:
            return None
        theme.downloads += 1
        session.flush()
        return _theme_to_dict(theme)


def rate_theme(theme_id: int, rating: int) -> dict | None:
    """Fold one rating into the theme's running average.

    Returns:
        The updated theme, or None if it doesn't exist.

    Raises:
        ValueError: If *rating* is outside 1-5.
    """
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

    with get_session() as session:
        theme = _get_theme_by_id(session, theme_id)
        if theme is None:
            return None
        total = theme.rating * theme.rating_count + rating
        theme.rating_count += 1
        theme.rating = total / theme.rating_count
        session.flush()
        return _theme_to_dict(theme)
