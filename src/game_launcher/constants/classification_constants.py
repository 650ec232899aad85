"""
Constants for classifying the contents of uploaded archives.
"""

HTML_EXTENSIONS = (".html", ".htm")

JAVA_ARCHIVE_EXTENSIONS = (".jar",)

# Files that configure or describe a client but cannot be run on their own
AUXILIARY_EXTENSIONS = (
    ".json",
    ".properties",
    ".cfg",
    ".ini",
    ".toml",
    ".yml",
    ".yaml",
    ".xml",
    ".mf",
)

MANIFEST_EXTENSIONS = (".json",)

# Entry point keywords, highest priority first. Exact root-level names
# ("<keyword>.html" / "<keyword>.htm") are tried before substring matches.
ENTRY_POINT_KEYWORDS = (
    "index",
    "main",
    "game",
    "client",
    "eaglercraft",
    "launcher",
    "start",
    "play",
)

ASSET_EXTENSIONS = (
    ".js",
    ".css",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".svg",
    ".webp",
)

# Path fragments that identify an Eaglercraft build
ENGINE_PATH_FRAGMENTS = (
    "eagler",
    "classes.js",
    "assets/minecraft",
)

MAX_HTML_CANDIDATES = 5
MAX_NESTING_DEPTH = 3

WARNING_ENGINE_DETECTED = "Eaglercraft client detected - optimized loading enabled"
WARNING_ENTRY_IN_SUBDIRECTORY = "Main HTML file found in subdirectory - may affect relative paths"
WARNING_NO_ASSETS = "No common asset files detected - game may not function properly"


def warning_complex_structure(html_count: int) -> str:
    return f"Found {html_count} HTML files - may indicate complex structure"


def warning_deep_structure(depth: int) -> str:
    return f"Deep directory structure ({depth} levels) - may cause loading issues"
