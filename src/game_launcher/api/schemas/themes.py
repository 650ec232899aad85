"""Pydantic schemas for community theme endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ThemeCreate(BaseModel):
    """Request schema for sharing a theme."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, description="Free-form description")
    author_name: str = Field(..., min_length=1, max_length=50)
    theme_data: dict[str, Any] = Field(..., description="Color map applied by the launcher UI")
    tags: str | None = Field(None, max_length=255, description="Comma-separated tags")
    is_public: bool = True


class ThemeResponse(BaseModel):
    """A shared theme."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    author_name: str
    theme_data: dict[str, Any]
    downloads: int
    rating: float
    rating_count: int
    tags: str | None
    is_public: bool
    created_at: datetime
    updated_at: datetime


class RateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
