"""Best-effort detection of client version and family from HTML content."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from game_launcher.constants.client_signatures import (
    BRAND_FALLBACK_FAMILY,
    BRAND_KEYWORD,
    CLIENT_FAMILY_SIGNATURES,
    CLIENT_VERSION_PATTERNS,
    ENGINE_VERSION_PATTERNS,
    FAMILY_NOTES,
    LEGACY_ENGINE_VERSION,
    MAX_SCRIPT_TAGS,
    SCRIPT_TAG_PATTERN,
    WARNING_ALPHA,
    WARNING_ANALYSIS_FAILED,
    WARNING_BETA,
    WARNING_FULLSCREEN,
    WARNING_LARGE_CLIENT,
    WARNING_LEGACY_ENGINE,
    WARNING_MEDIA,
    WARNING_STORAGE,
    WARNING_WEBGL,
)
from game_launcher.models.ingestion import CompatibilityInfo

logger = logging.getLogger(__name__)


def _first_match(text: str, patterns: Iterable[re.Pattern[str]]) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return None


def _detect_family(text: str) -> str | None:
    for signature in CLIENT_FAMILY_SIGNATURES:
        if signature.pattern.search(text):
            return signature.label
    if BRAND_KEYWORD in text.lower():
        return BRAND_FALLBACK_FAMILY
    return None


def parse_version(version: str) -> tuple[int, ...]:
    """Parse the leading numeric components of a dotted version string.

    >>> parse_version("1.8.8")
    (1, 8, 8)
    """
    parts: list[int] = []
    for piece in version.split("."):
        digits = re.match(r"\d+", piece)
        if digits is None:
            break
        parts.append(int(digits.group()))
    return tuple(parts)


def _is_legacy_engine(version: str) -> bool:
    parsed = parse_version(version)
    return bool(parsed) and parsed < LEGACY_ENGINE_VERSION


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(needle in text for needle in needles)


def compatibility_warnings(text: str, info: CompatibilityInfo) -> list[str]:
    """Return the compatibility caveats for *text*.

    Every rule is independent; none suppresses another.
    """
    warnings: list[str] = []

    if info.engine_version and _is_legacy_engine(info.engine_version):
        warnings.append(WARNING_LEGACY_ENGINE)

    if "WebGL" in text and "webgl2" not in text:
        warnings.append(WARNING_WEBGL)

    if _contains_any(text, ("localStorage", "sessionStorage")):
        warnings.append(WARNING_STORAGE)

    if _contains_any(text, ("navigator.mediaDevices", "getUserMedia")):
        warnings.append(WARNING_MEDIA)

    if _contains_any(text, ("fullscreen", "requestFullscreen")):
        warnings.append(WARNING_FULLSCREEN)

    family = (info.client_family or "").lower()
    if "beta" in family:
        warnings.append(WARNING_BETA)
    if "alpha" in family:
        warnings.append(WARNING_ALPHA)
    for needle, note in FAMILY_NOTES:
        if needle in family:
            warnings.append(note)

    if len(SCRIPT_TAG_PATTERN.findall(text)) > MAX_SCRIPT_TAGS:
        warnings.append(WARNING_LARGE_CLIENT)

    return warnings


def detect_client(text: str) -> CompatibilityInfo:
    """Extract client metadata and compatibility warnings from HTML *text*."""
    info = CompatibilityInfo(
        client_version=_first_match(text, CLIENT_VERSION_PATTERNS),
        engine_version=_first_match(text, ENGINE_VERSION_PATTERNS),
        client_family=_detect_family(text),
    )
    info.warnings = compatibility_warnings(text, info)
    return info


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


async def analyze_client_file(path: Path) -> CompatibilityInfo:
    """Analyze the HTML entry at *path*.

    Never raises: an unreadable file yields an empty result carrying a
    single warning. Bytes that are not valid UTF-8 are replaced, so
    legacy-encoded pages still report their metadata.
    """
    try:
        text = await asyncio.to_thread(_read_text, path)
    except OSError as exc:
        logger.warning("Could not analyze client file %s: %s", path.name, exc)
        return CompatibilityInfo(warnings=[WARNING_ANALYSIS_FAILED])
    return detect_client(text)
