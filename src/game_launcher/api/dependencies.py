"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from game_launcher.config import LauncherSettings
from game_launcher.services.ingestion import IngestionOrchestrator


def get_settings() -> LauncherSettings:
    """Read launcher settings from the environment on each request."""
    return LauncherSettings.from_env()


def get_orchestrator(
    settings: Annotated[LauncherSettings, Depends(get_settings)],
) -> IngestionOrchestrator:
    return IngestionOrchestrator(settings)
