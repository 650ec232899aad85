from __future__ import annotations

from game_launcher.constants.classification_constants import (
    ASSET_EXTENSIONS,
    AUXILIARY_EXTENSIONS,
    ENTRY_POINT_KEYWORDS,
    HTML_EXTENSIONS,
    JAVA_ARCHIVE_EXTENSIONS,
)
from game_launcher.constants.client_signatures import (
    CLIENT_FAMILY_SIGNATURES,
    CLIENT_VERSION_PATTERNS,
    ENGINE_VERSION_PATTERNS,
)

__all__ = [
    "ASSET_EXTENSIONS",
    "AUXILIARY_EXTENSIONS",
    "CLIENT_FAMILY_SIGNATURES",
    "CLIENT_VERSION_PATTERNS",
    "ENGINE_VERSION_PATTERNS",
    "ENTRY_POINT_KEYWORDS",
    "HTML_EXTENSIONS",
    "JAVA_ARCHIVE_EXTENSIONS",
]
