from __future__ import annotations

import io
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from game_launcher.api.main import app
from game_launcher.config import get_default_storage_root
from game_launcher.data.crud.game_file_repo import GameFileRepository
from game_launcher.data.db import get_database_url

pytestmark = pytest.mark.usefixtures("api_db")


def _create_zip_bytes(entries: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with ZipFile(buffer, "w", ZIP_DEFLATED) as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return buffer.getvalue()


def _upload(client: TestClient, filename: str, data: bytes, content_type: str):
    return client.post("/api/files/upload", files={"file": (filename, data, content_type)})


def test_runs_against_temporary_database_and_storage(tmp_path: Path) -> None:
    db_path = tmp_path / "api.db"
    assert get_database_url() == f"sqlite:///{db_path.as_posix()}"
    assert get_default_storage_root().is_relative_to(tmp_path.resolve())


def test_health() -> None:
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_upload_html_and_fetch_content() -> None:
    client = TestClient(app)
    body = b"<html><body>Eaglercraft 1.8.8</body></html>"

    response = _upload(client, "game.html", body, "text/html")

    assert response.status_code == 201
    data = response.json()
    assert data["file"]["content_type"] == "text/html"
    assert data["file"]["client_family"] == "Eaglercraft 1.8.8"
    assert data["warnings"] == []
    file_id = data["file"]["id"]

    content = client.get(f"/api/files/{file_id}/content")
    assert content.status_code == 200
    assert content.content == body
    assert content.headers["content-type"].startswith("text/html")

    listed = client.get("/api/files")
    assert [item["id"] for item in listed.json()] == [file_id]
    assert client.get(f"/api/files/{file_id}").json()["original_name"] == "game.html"


def test_upload_html_bundle_reports_detection() -> None:
    client = TestClient(app)
    zip_bytes = _create_zip_bytes(
        [("assets/logo.png", b"png"), ("play.html", b"<html></html>"), ("scripts/app.js", b"")]
    )

    response = _upload(client, "bundle.zip", zip_bytes, "application/zip")

    assert response.status_code == 201
    data = response.json()
    assert data["bundle_kind"] == "html"
    assert data["detection_method"] == "pattern-match"
    assert data["file"]["name"].endswith("play.html")


def test_java_archive_bundle_landing_page_and_download() -> None:
    client = TestClient(app)
    zip_bytes = _create_zip_bytes(
        [("client.jar", b"jar-bytes"), ("launcher_profiles.json", b'{"profiles": {}}')]
    )

    response = _upload(client, "client.zip", zip_bytes, "application/zip")

    assert response.status_code == 201
    data = response.json()
    assert data["bundle_kind"] == "java-archive"
    file_id = data["file"]["id"]

    page = client.get(f"/api/files/{file_id}/content")
    assert page.status_code == 200
    assert page.text.count('class="download-btn"') == 2
    assert f"/api/files/{file_id}/download/client.jar" in page.text

    download = client.get(f"/api/files/{file_id}/download/client.jar")
    assert download.status_code == 200
    assert download.content == b"jar-bytes"
    assert "client.jar" in download.headers["content-disposition"]

    missing = client.get(f"/api/files/{file_id}/download/other.jar")
    assert missing.status_code == 404


def test_unsupported_bundle_returns_400() -> None:
    client = TestClient(app)
    zip_bytes = _create_zip_bytes([("settings.json", b"{}"), ("options.properties", b"a=b")])

    response = _upload(client, "config.zip", zip_bytes, "application/zip")

    assert response.status_code == 400
    assert "configuration files" in response.json()["detail"]


def test_invalid_zip_returns_400() -> None:
    client = TestClient(app)

    response = _upload(client, "bundle.zip", b"nope" * 50, "application/zip")

    assert response.status_code == 400
    assert response.json()["detail"] == "File does not appear to be a valid ZIP archive"


def test_unsupported_upload_type_returns_400() -> None:
    client = TestClient(app)

    response = _upload(client, "notes.txt", b"hello", "text/plain")

    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]


def test_oversized_upload_returns_413(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNCHER_MAX_UPLOAD_BYTES", str(1024 * 1024))
    client = TestClient(app)

    response = _upload(client, "game.html", b"x" * (1024 * 1024 + 1), "text/html")

    assert response.status_code == 413
    assert response.json()["detail"] == "File too large. Maximum size is 1MB."
    assert list(get_default_storage_root().glob("upload_*")) == []
    assert client.get("/api/files").json() == []


def test_delete_file_twice() -> None:
    client = TestClient(app)
    file_id = _upload(client, "game.html", b"<html></html>", "text/html").json()["file"]["id"]
    stored = next(get_default_storage_root().glob("*_game.html"))

    first = client.delete(f"/api/files/{file_id}")
    second = client.delete(f"/api/files/{file_id}")

    assert first.status_code == 204
    assert second.status_code == 404
    assert not Path(stored).exists()
    assert client.get(f"/api/files/{file_id}").status_code == 404


def test_clear_all_files() -> None:
    client = TestClient(app)
    for name in ("a.html", "b.html"):
        _upload(client, name, b"<html></html>", "text/html")

    response = client.delete("/api/files")

    assert response.status_code == 200
    assert response.json() == {"deleted": 2, "failed": []}
    assert client.get("/api/files").json() == []


def test_content_for_unknown_file_returns_404() -> None:
    client = TestClient(app)

    assert client.get("/api/files/999/content").status_code == 404


def test_clear_reports_database_failure_as_500(monkeypatch: pytest.MonkeyPatch) -> None:
    def _locked(self: GameFileRepository) -> list:
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(GameFileRepository, "list_all", _locked)
    client = TestClient(app)

    response = client.delete("/api/files")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to list game files"
