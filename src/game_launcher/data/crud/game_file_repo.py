"""Repository for GameFile records.

Each call runs in its own transaction, so a create or delete either commits
fully or raises.
"""

from __future__ import annotations

from typing import TypedDict

from sqlalchemy import desc

from game_launcher.data.db import get_session
from game_launcher.data.models.game_file import GameFile


class GameFileData(TypedDict, total=False):
    """Fields accepted when creating a GameFile."""

    name: str
    original_name: str
    size_bytes: int
    content_type: str
    file_path: str
    bundle_dir: str | None
    client_version: str | None
    engine_version: str | None
    client_family: str | None
    compatibility_warnings: list[str]


class GameFileRepository:
    """CRUD access to stored game files."""

    def create(self, data: GameFileData) -> GameFile:
        with get_session() as session:
            record = GameFile(**data)
            session.add(record)
            session.flush()
            session.refresh(record)
            return record

    def get(self, file_id: int) -> GameFile | None:
        with get_session() as session:
            return session.query(GameFile).filter(GameFile.id == file_id).first()

    def list_all(self) -> list[GameFile]:
        """Return every record, most recently uploaded first."""
        with get_session() as session:
            return (
                session.query(GameFile)
                .order_by(desc(GameFile.uploaded_at), desc(GameFile.id))
                .all()
            )

    def delete(self, file_id: int) -> bool:
        """Delete a record by ID.

        Returns:
            bool: True if the record was deleted, False if it didn't exist.
        """
        with get_session() as session:
            record = session.query(GameFile).filter(GameFile.id == file_id).first()
            if record is None:
                return False
            session.delete(record)
            return True

    def referenced_paths(self) -> set[str]:
        """Return every file path and bundle directory a record points at."""
        with get_session() as session:
            rows = session.query(GameFile.file_path, GameFile.bundle_dir).all()
        paths: set[str] = set()
        for file_path, bundle_dir in rows:
            paths.add(file_path)
            if bundle_dir:
                paths.add(bundle_dir)
        return paths
