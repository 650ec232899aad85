"""ORM model for stored game files.

A GameFile is written once per successful ingestion and only ever removed
afterwards, together with its on-disk artifact.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from game_launcher.data.db import Base


class GameFile(Base):
    """Persisted metadata for an uploaded game bundle.

    Attributes:
        id: Auto-incrementing primary key.
        name: Generated storage name, relative to the storage root.
        original_name: File name declared by the uploader.
        size_bytes: Size of the stored artifact.
        content_type: Media type the bundle is served with.
        file_path: Served file, or the bundle directory for Java-archive
            bundles.
        bundle_dir: Extraction directory owning ``file_path`` for HTML
            bundles that came from an archive.
        uploaded_at: UTC timestamp of the ingestion.
        client_version: Detected client version, if any.
        engine_version: Detected target engine version, if any.
        client_family: Detected client family label, if any.
        compatibility_warnings: Ordered compatibility caveats.
    """

    __tablename__ = "game_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    original_name: Mapped[str] = mapped_column(String, nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(String, nullable=False)
    file_path: Mapped[str] = mapped_column(String, nullable=False)
    bundle_dir: Mapped[str | None] = mapped_column(String, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    client_version: Mapped[str | None] = mapped_column(String, nullable=True)
    engine_version: Mapped[str | None] = mapped_column(String, nullable=True)
    client_family: Mapped[str | None] = mapped_column(String, nullable=True)
    compatibility_warnings: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
