"""
Signature tables used to sniff client metadata out of HTML entry points.

Each table is ordered: the first pattern that matches wins for its field.
New client families are added here without touching the detector.
"""

import re
from dataclasses import dataclass

_VERSION = r"([0-9]+(?:\.[0-9]+)*(?:[a-z]+[0-9]*)?)"
_NUMERIC_VERSION = r"([0-9]+(?:\.[0-9]+)*)"

CLIENT_VERSION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"eaglercraft[_\s]*(?:version|v)[_\s]*{_VERSION}", re.IGNORECASE),
    re.compile(rf"eagler[_\s]*{_VERSION}", re.IGNORECASE),
    re.compile(rf"version[_\s]*:?[_\s]*[\"']?{_VERSION}", re.IGNORECASE),
    re.compile(rf"eagle[_\s]*{_NUMERIC_VERSION}", re.IGNORECASE),
)

ENGINE_VERSION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"minecraft[_\s]*(?:version|v)[_\s]*{_NUMERIC_VERSION}", re.IGNORECASE),
    re.compile(rf"mc[_\s]*{_NUMERIC_VERSION}", re.IGNORECASE),
    re.compile(rf"\"version\":\s*\"{_NUMERIC_VERSION}\"", re.IGNORECASE),
)


@dataclass(frozen=True)
class FamilySignature:
    pattern: re.Pattern[str]
    label: str


CLIENT_FAMILY_SIGNATURES: tuple[FamilySignature, ...] = (
    FamilySignature(re.compile(r"eaglercraft.*1\.5", re.IGNORECASE), "Eaglercraft 1.5.2"),
    FamilySignature(re.compile(r"eaglercraft.*1\.8", re.IGNORECASE), "Eaglercraft 1.8.8"),
    FamilySignature(re.compile(r"eaglercraft.*1\.12", re.IGNORECASE), "Eaglercraft 1.12.2"),
    FamilySignature(re.compile(r"eaglercraft.*beta", re.IGNORECASE), "Eaglercraft Beta"),
    FamilySignature(re.compile(r"eaglercraft.*alpha", re.IGNORECASE), "Eaglercraft Alpha"),
    FamilySignature(re.compile(r"eaglerx", re.IGNORECASE), "EaglerX"),
    FamilySignature(re.compile(r"resent", re.IGNORECASE), "Resent Client"),
    FamilySignature(re.compile(r"precision", re.IGNORECASE), "Precision Client"),
    FamilySignature(re.compile(r"ayunami", re.IGNORECASE), "Ayunami Client"),
)

BRAND_KEYWORD = "eaglercraft"
BRAND_FALLBACK_FAMILY = "Eaglercraft (Unknown Version)"

LEGACY_ENGINE_VERSION = (1, 5)
SCRIPT_TAG_PATTERN = re.compile(r"<script[^>]*>", re.IGNORECASE)
MAX_SCRIPT_TAGS = 10

# Family substring -> informational warning
FAMILY_NOTES: tuple[tuple[str, str], ...] = (
    ("resent", "Resent client detected - includes additional mods and features"),
    ("precision", "Precision client detected - optimized for PvP gameplay"),
)

WARNING_ANALYSIS_FAILED = "Could not analyze client file for version information"
WARNING_LEGACY_ENGINE = (
    "This client uses a very old Minecraft version and may have limited compatibility"
)
WARNING_WEBGL = "This client may require WebGL support - ensure your browser supports WebGL"
WARNING_STORAGE = "This client uses browser storage - data may persist between sessions"
WARNING_MEDIA = "This client may request camera/microphone permissions"
WARNING_FULLSCREEN = "This client supports fullscreen mode - use F11 or the fullscreen button"
WARNING_BETA = "Beta client - may contain bugs or incomplete features"
WARNING_ALPHA = "Alpha client - experimental version with potential stability issues"
WARNING_LARGE_CLIENT = "Large client detected - may take longer to load"
