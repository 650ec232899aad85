from __future__ import annotations

from pathlib import Path

import pytest

import game_launcher.data.db as app_db
from game_launcher.config import LauncherSettings
from game_launcher.data.db import init_db


@pytest.fixture
def api_db(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Use a temporary SQLite DB and storage root."""
    db_path = tmp_path / "api.db"
    monkeypatch.setenv("DB_URL", f"sqlite:///{db_path.as_posix()}")
    upload_root = tmp_path / "uploads"
    monkeypatch.setenv("LAUNCHER_UPLOAD_DIR", upload_root.as_posix())
    app_db.reset_engine()
    init_db()
    yield
    # Dispose engine to release connections
    app_db.reset_engine()


@pytest.fixture
def settings(tmp_path: Path) -> LauncherSettings:
    return LauncherSettings(storage_root=tmp_path / "uploads")

