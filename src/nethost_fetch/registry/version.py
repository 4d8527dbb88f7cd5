"""
Version Selection

Semantic-version parsing and the two selection steps of the resolver:
picking the catalog page with the greatest upper bound, and picking the
greatest listed release among catalog entries.
"""

from typing import Any, Iterable, Optional, Sequence, Tuple

import semantic_version

from nethost_fetch.exceptions import (
    InvalidRegistryResponseError,
    InvalidVersionFormatError,
    NoListedVersionFoundError,
)
from nethost_fetch.log_utils import logger

from .models import CatalogEntry, PageReference


def parse_version(value: Optional[str]) -> semantic_version.Version:
    """
    Parse a strict semantic version string.

    Raises:
        InvalidVersionFormatError: If ``value`` is empty or not a valid semantic version.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidVersionFormatError("Empty version string", value=value)
    try:
        return semantic_version.Version(value.strip())
    except ValueError as e:
        raise InvalidVersionFormatError(
            f"Invalid semantic version '{value}'", value=value, details=str(e)
        ) from e


def version_key(value: str) -> Tuple[Any, ...]:
    """Sort key following semantic-version precedence (build metadata ignored)."""
    # precedence_key includes the build component; drop it before keying
    return parse_version(value).truncate("prerelease").precedence_key


def compare_versions(version1: str, version2: str) -> int:
    """
    Compare two semantic version strings.

    Returns:
        int: 1 if version1 > version2, 0 if equal in precedence, -1 if version1 < version2
    """
    k1, k2 = version_key(version1), version_key(version2)
    if k1 > k2:
        return 1
    elif k1 < k2:
        return -1
    return 0


def sort_versions(versions: Iterable[str]) -> list:
    """Return ``versions`` in ascending precedence order (stable for equal precedence)."""
    return sorted(versions, key=version_key)


def select_page(pages: Sequence[PageReference]) -> PageReference:
    """
    Select the page reference whose upper bound is the greatest version.

    References are not assumed to be sorted, so every bound is parsed; a single
    unparsable bound fails the selection. On equal bounds the last one wins.

    Raises:
        InvalidRegistryResponseError: If there are no page references.
        InvalidVersionFormatError: If any upper bound is not a semantic version.
    """
    if not pages:
        raise InvalidRegistryResponseError(
            "Unable to find package page", details="registration index lists no pages"
        )

    best: Optional[PageReference] = None
    best_key: Optional[Tuple[Any, ...]] = None
    for page in pages:
        key = version_key(page.upper)
        if best_key is None or key >= best_key:
            best, best_key = page, key

    assert best is not None
    logger.debug(f"Selected catalog page {best.url} (upper bound {best.upper})")
    return best


def select_latest_listed(entries: Iterable[CatalogEntry]) -> CatalogEntry:
    """
    Select the listed entry with the greatest semantic version.

    Unlisted entries are dropped before any version is parsed, so they are never
    selected even when newer. Among entries of equal precedence the last one in
    input order wins.

    Raises:
        NoListedVersionFoundError: If no listed entry remains.
        InvalidVersionFormatError: If a listed entry's version cannot be parsed.
    """
    best: Optional[CatalogEntry] = None
    best_key: Optional[Tuple[Any, ...]] = None
    skipped = 0

    for entry in entries:
        if not entry.listed:
            skipped += 1
            continue
        key = version_key(entry.version)
        if best_key is None or key >= best_key:
            best, best_key = entry, key

    if best is None:
        raise NoListedVersionFoundError(
            "No listed version of the package was found",
            details=f"{skipped} unlisted release(s) ignored" if skipped else None,
        )

    if skipped:
        logger.debug(f"Ignored {skipped} unlisted release(s)")
    logger.info(f"Selected version {best.version}")
    return best
