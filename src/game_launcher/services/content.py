"""Serve stored game files back to the player."""

from __future__ import annotations

import html
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from game_launcher.data.models.game_file import GameFile
from game_launcher.models.errors import (
    ContentAccessDeniedError,
    ContentNotFoundError,
    UnsafeArchivePathError,
)
from game_launcher.services.archive_extractor import resolve_inside
from game_launcher.services.upload_storage import (
    HTML_MEDIA_TYPE,
    JAVA_ARCHIVE_MEDIA_TYPE,
    JSON_MEDIA_TYPE,
)

DOWNLOAD_MEDIA_TYPES = {
    ".jar": JAVA_ARCHIVE_MEDIA_TYPE,
    ".json": JSON_MEDIA_TYPE,
}
LISTED_EXTENSIONS = (".jar", ".json")

_LANDING_PAGE_STYLE = """
        body {
            font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            margin: 0; padding: 40px; min-height: 100vh;
            display: flex; align-items: center; justify-content: center;
        }
        .container {
            background: white; padding: 40px; border-radius: 15px;
            box-shadow: 0 20px 60px rgba(0,0,0,0.1); max-width: 600px; text-align: center;
        }
        h1 { color: #333; margin-bottom: 10px; }
        p { color: #666; margin-bottom: 30px; line-height: 1.6; }
        .file-list {
            background: #f8f9fa; padding: 20px; border-radius: 8px;
            margin: 20px 0; text-align: left;
        }
        .file-item {
            display: flex; justify-content: space-between; align-items: center;
            padding: 10px 0; border-bottom: 1px solid #eee;
        }
        .file-item:last-child { border-bottom: none; }
        .file-type {
            background: #667eea; color: white; padding: 4px 8px;
            border-radius: 4px; font-size: 0.8em;
        }
        .download-btn {
            display: inline-block; background: #667eea; color: white;
            padding: 15px 30px; text-decoration: none; border-radius: 8px;
            margin: 10px; font-weight: bold;
        }
        .instructions {
            background: #e3f2fd; padding: 20px; border-radius: 8px;
            margin: 20px 0; border-left: 4px solid #2196f3; text-align: left;
        }
"""


@dataclass(frozen=True)
class GameContent:
    """Body and media type returned by the content endpoint."""

    body: bytes
    media_type: str


def list_bundle_downloads(bundle_dir: Path) -> list[str]:
    """Return the Java-archive and manifest files of a bundle.

    Paths are relative to *bundle_dir*, forward-slash separated, sorted with
    Java archives first.
    """
    found: dict[str, list[str]] = {ext: [] for ext in LISTED_EXTENSIONS}
    for path in sorted(bundle_dir.rglob("*")):
        if not path.is_file():
            continue
        suffix = path.suffix.lower()
        if suffix in found:
            found[suffix].append(path.relative_to(bundle_dir).as_posix())
    return [name for ext in LISTED_EXTENSIONS for name in found[ext]]


def download_url(file_id: int, relative_path: str) -> str:
    return f"/api/files/{file_id}/download/{quote(relative_path)}"


def render_landing_page(record: GameFile, downloads: list[str]) -> str:
    """Build the self-contained manual-download page for a Java-archive bundle."""
    title = html.escape(record.original_name)
    items = []
    buttons = []
    for name in downloads:
        label = "JAR" if name.lower().endswith(".jar") else "JSON"
        escaped = html.escape(name)
        href = html.escape(download_url(record.id, name), quote=True)
        items.append(
            f'<div class="file-item"><span class="file-name">{escaped}</span>'
            f'<span class="file-type">{label}</span></div>'
        )
        buttons.append(f'<a href="{href}" class="download-btn" download>Download {escaped}</a>')

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title} - JAR Client</title>
    <style>{_LANDING_PAGE_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1>{title}</h1>
        <p>This is a Java-based client that requires download and local execution.</p>
        <div class="file-list">
            <h3>Available Files:</h3>
            {"".join(items)}
        </div>
        <div class="instructions">
            <h3>How to Run:</h3>
            <ol>
                <li>Download the JAR file below</li>
                <li>Make sure you have Java installed on your computer</li>
                <li>Double-click the JAR file or run: <code>java -jar filename.jar</code></li>
                <li>Follow any additional setup instructions</li>
            </ol>
        </div>
        {"".join(buttons)}
    </div>
</body>
</html>
"""


def read_game_content(record: GameFile) -> GameContent:
    """Return what the player should load for *record*.

    Raises:
        ContentNotFoundError: If the stored artifact is gone.
    """
    path = Path(record.file_path)
    if not path.exists():
        raise ContentNotFoundError("File content not found")

    if path.is_dir():
        page = render_landing_page(record, list_bundle_downloads(path))
        return GameContent(body=page.encode("utf-8"), media_type=HTML_MEDIA_TYPE)

    try:
        body = path.read_bytes()
    except OSError as exc:
        raise ContentNotFoundError("File content not found") from exc
    return GameContent(body=body, media_type=record.content_type or HTML_MEDIA_TYPE)


def _find_by_name(bundle_dir: Path, file_name: str) -> Path | None:
    for candidate in sorted(bundle_dir.rglob("*")):
        if candidate.is_file() and candidate.name == file_name:
            return candidate
    return None


def resolve_download(record: GameFile, filename: str) -> Path:
    """Locate *filename* inside a directory-backed record.

    *filename* is a path relative to the bundle directory. A bare file name
    that is not found at the top level is searched for recursively.

    Raises:
        ContentNotFoundError: If the record has no directory or the file is missing.
        ContentAccessDeniedError: If *filename* resolves outside the directory.
    """
    bundle_dir = Path(record.file_path)
    if not bundle_dir.is_dir():
        raise ContentNotFoundError("File not found")

    try:
        target = resolve_inside(bundle_dir, filename)
    except UnsafeArchivePathError as exc:
        raise ContentAccessDeniedError("Access denied") from exc

    if target.is_file():
        return target

    if "/" not in filename.replace("\\", "/"):
        found = _find_by_name(bundle_dir, filename)
        if found is not None:
            resolved = found.resolve()
            if not resolved.is_relative_to(bundle_dir.resolve()):
                raise ContentAccessDeniedError("Access denied")
            return resolved

    raise ContentNotFoundError("File not found in archive")


def download_media_type(path: Path) -> str:
    return DOWNLOAD_MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream")
