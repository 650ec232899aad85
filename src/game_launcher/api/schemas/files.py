"""Pydantic schemas for game file API responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GameFileResponse(BaseModel):
    """A stored game file with its detected client metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    original_name: str
    size_bytes: int
    content_type: str
    uploaded_at: datetime
    client_version: str | None = None
    engine_version: str | None = None
    client_family: str | None = None
    compatibility_warnings: list[str] = Field(default_factory=list)


class UploadResponse(BaseModel):
    """Response schema for the upload endpoint."""

    file: GameFileResponse
    bundle_kind: str | None = Field(
        None, description="'html' or 'java-archive' for ZIP uploads, None otherwise"
    )
    detection_method: str | None = Field(
        None, description="How the HTML entry point was chosen, for HTML bundles"
    )
    warnings: list[str] = Field(default_factory=list)


class ClearResponse(BaseModel):
    """Outcome of deleting every stored game file."""

    deleted: int
    failed: list[int] = Field(default_factory=list)
