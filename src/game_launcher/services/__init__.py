"""Services"""

from game_launcher.services.content import read_game_content, resolve_download
from game_launcher.services.ingestion import IngestionOrchestrator
from game_launcher.services.themes import (
    create_theme,
    get_theme,
    list_themes,
    rate_theme,
    record_download,
    search_themes,
)

__all__ = [
    "IngestionOrchestrator",
    "read_game_content",
    "resolve_download",
    "create_theme",
    "get_theme",
    "list_themes",
    "rate_theme",
    "record_download",
    "search_themes",
]
