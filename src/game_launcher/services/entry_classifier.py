"""Classify extracted archive contents and choose the entry point to serve."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from game_launcher.constants.classification_constants import (
    ASSET_EXTENSIONS,
    AUXILIARY_EXTENSIONS,
    ENGINE_PATH_FRAGMENTS,
    ENTRY_POINT_KEYWORDS,
    HTML_EXTENSIONS,
    JAVA_ARCHIVE_EXTENSIONS,
    MANIFEST_EXTENSIONS,
    MAX_HTML_CANDIDATES,
    MAX_NESTING_DEPTH,
    WARNING_ENGINE_DETECTED,
    WARNING_ENTRY_IN_SUBDIRECTORY,
    WARNING_NO_ASSETS,
    warning_complex_structure,
    warning_deep_structure,
)
from game_launcher.models.ingestion import (
    ClassificationResult,
    DetectionMethod,
    HtmlBundle,
    JavaArchiveBundle,
    UnsupportedBundle,
)

logger = logging.getLogger(__name__)


def _file_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _is_root_level(path: str) -> bool:
    return "/" not in path


def _has_suffix(path: str, suffixes: Iterable[str]) -> bool:
    lowered = path.lower()
    return any(lowered.endswith(suffix) for suffix in suffixes)


def _find_exact_root_match(html_entries: list[str]) -> str | None:
    """Return the first root-level ``<keyword>.html`` in keyword priority order."""
    for keyword in ENTRY_POINT_KEYWORDS:
        candidates = {f"{keyword}{ext}" for ext in HTML_EXTENSIONS}
        for path in html_entries:
            if _is_root_level(path) and path.lower() in candidates:
                return path
    return None


def _find_keyword_match(html_entries: list[str]) -> str | None:
    """Return the first HTML file whose name contains a priority keyword."""
    for keyword in ENTRY_POINT_KEYWORDS:
        for path in html_entries:
            if keyword in _file_name(path).lower():
                return path
    return None


def select_main_entry(html_entries: list[str]) -> tuple[str, DetectionMethod]:
    """Pick the HTML file to serve from *html_entries*.

    Priority, first match wins:

    1. Root-level file named exactly after a keyword (``index.html``, ...).
    2. Any file whose name contains a keyword, keywords in priority order.
    3. The first root-level HTML file.
    4. The first HTML file.

    Ties are always broken by archive order.

    Args:
        html_entries: HTML paths in archive order. Must not be empty.

    Returns:
        Tuple of the chosen path and how it was found.
    """
    if not html_entries:
        raise ValueError("At least one HTML entry is required")

    match = _find_exact_root_match(html_entries) or _find_keyword_match(html_entries)
    if match is not None:
        return match, DetectionMethod.PATTERN_MATCH

    root_level = [path for path in html_entries if _is_root_level(path)]
    return (root_level or html_entries)[0], DetectionMethod.FALLBACK


def _nesting_depth(paths: list[str]) -> int:
    if not paths:
        return 0
    return max(len(path.rstrip("/").split("/")) - 1 for path in paths)


def _collect_warnings(
    all_paths: list[str], html_entries: list[str], main_entry: str | None
) -> list[str]:
    warnings: list[str] = []

    if len(html_entries) > MAX_HTML_CANDIDATES:
        warnings.append(warning_complex_structure(len(html_entries)))

    if main_entry is not None and not _is_root_level(main_entry):
        warnings.append(WARNING_ENTRY_IN_SUBDIRECTORY)

    if not any(_has_suffix(path, ASSET_EXTENSIONS) for path in all_paths):
        warnings.append(WARNING_NO_ASSETS)

    depth = _nesting_depth(all_paths)
    if depth > MAX_NESTING_DEPTH:
        warnings.append(warning_deep_structure(depth))

    lowered = [path.lower() for path in all_paths]
    if any(fragment in path for path in lowered for fragment in ENGINE_PATH_FRAGMENTS):
        warnings.insert(0, WARNING_ENGINE_DETECTED)

    return warnings


def classify_entries(paths: Iterable[str]) -> ClassificationResult:
    """Classify an extracted archive from its entry paths.

    Args:
        paths: Normalized entry paths in archive order, as returned by the
            extractor. Directory entries end with ``/``.

    Returns:
        HtmlBundle, JavaArchiveBundle or UnsupportedBundle. The result is
        fully determined by the input list.
    """
    all_paths = list(paths)
    files = [path for path in all_paths if not path.endswith("/")]
    html_entries = [path for path in files if _has_suffix(path, HTML_EXTENSIONS)]
    archive_entries = [path for path in files if _has_suffix(path, JAVA_ARCHIVE_EXTENSIONS)]

    if html_entries:
        main_entry, method = select_main_entry(html_entries)
        logger.info(
            "Found %d HTML files, selected %s (%s)", len(html_entries), main_entry, method.value
        )
        if method is DetectionMethod.FALLBACK:
            logger.warning("No entry-point keyword matched; falling back to %s", main_entry)
        return HtmlBundle(
            main_entry=main_entry,
            detection_method=method,
            html_entries=html_entries,
            archive_entries=archive_entries,
            entry_count=len(all_paths),
            warnings=_collect_warnings(all_paths, html_entries, main_entry),
        )

    warnings = _collect_warnings(all_paths, html_entries, None)

    if archive_entries:
        return JavaArchiveBundle(
            manifest_entries=[path for path in files if _has_suffix(path, MANIFEST_EXTENSIONS)],
            html_entries=html_entries,
            archive_entries=archive_entries,
            entry_count=len(all_paths),
            warnings=warnings,
        )

    only_auxiliary = bool(files) and all(_has_suffix(path, AUXILIARY_EXTENSIONS) for path in files)
    return UnsupportedBundle(
        only_auxiliary_files=only_auxiliary,
        html_entries=html_entries,
        archive_entries=archive_entries,
        entry_count=len(all_paths),
        warnings=warnings,
    )
