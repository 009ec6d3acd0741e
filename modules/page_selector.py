"""
Page range parsing for custom page selections.

Grammar: comma-separated tokens, each a single page ("5") or a span
("1-3"). Open spans are allowed: "4-" runs to the last page, "-2" starts
at page 1. Spans are clamped into [1, total_pages]; anything that falls
completely outside is dropped with a warning, never raised.
"""

from __future__ import annotations

from typing import Optional, Set, Tuple

from logging_config import get_logger

logger = get_logger(__name__)


def _parse_bound(text: str) -> Optional[int]:
    text = text.strip()
    if not text:
        return None
    if not text.isdigit():
        raise ValueError(f"not a page number: {text!r}")
    return int(text)


def _parse_span(token: str, total_pages: int) -> Tuple[int, int]:
    start_text, end_text = token.split("-", 1)
    if "-" in end_text:
        raise ValueError(f"too many dashes in {token!r}")
    start = _parse_bound(start_text)
    end = _parse_bound(end_text)
    if start is None and end is None:
        raise ValueError("empty span")
    return (start if start is not None else 1, end if end is not None else total_pages)


def parse_page_range(range_spec: Optional[str], total_pages: int) -> Set[int]:
    """
    Strictly parse a page range against a document of total_pages pages.

    Returns the selected 1-based page numbers. The result is empty when no
    token selects a page of the document ("abc", "9" on a 5-page file).
    """
    pages: Set[int] = set()
    if not range_spec or total_pages < 1:
        return pages

    for raw_token in range_spec.split(","):
        token = raw_token.strip()
        if not token:
            continue

        try:
            if "-" in token:
                start, end = _parse_span(token, total_pages)
                valid_start = max(1, start)
                valid_end = min(total_pages, end)
                if valid_start > valid_end:
                    logger.warning(
                        f"Dropping range {token!r}: document only has {total_pages} pages"
                    )
                    continue
                pages.update(range(valid_start, valid_end + 1))
            else:
                page = _parse_bound(token)
                if page is None or not 1 <= page <= total_pages:
                    logger.warning(
                        f"Dropping page {token!r}: document only has {total_pages} pages"
                    )
                    continue
                pages.add(page)
        except ValueError as e:
            logger.warning(f"Dropping malformed page token {token!r}: {e}")

    return pages


def resolve_pages(range_spec: Optional[str], total_pages: int) -> Set[int]:
    """
    Lenient page resolution.

    Same grammar as parse_page_range, but a blank, unparseable or empty
    selection falls back to every page of the document.
    """
    pages = parse_page_range(range_spec, total_pages)
    if not pages:
        if range_spec and range_spec.strip():
            logger.warning(
                f"Page range {range_spec!r} selects nothing, falling back to all {total_pages} pages"
            )
        pages = set(range(1, total_pages + 1))
    return pages


def is_blank_range(range_spec: Optional[str]) -> bool:
    return not range_spec or not range_spec.strip()
