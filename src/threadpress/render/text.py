"""Plain-text helpers shared by the renderers.

Covers HTML escaping, markdown stripping for excerpts and reply previews,
length-bounded truncation, and timestamp formatting.
"""

import html
import re
from datetime import UTC, datetime

ELLIPSIS = "…"

_CODE_PATTERN = re.compile(r"`{1,3}[^`]+`{1,3}")
_IMAGE_PATTERN = re.compile(r"!\[[^\]]*]\([^)]+\)")
_LINK_PATTERN = re.compile(r"\[[^\]]*]\([^)]+\)")
_MARKUP_CHARS_PATTERN = re.compile(r"[*_~>#-]")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def escape_html(value: str) -> str:
    """Escape text for use in HTML bodies and double-quoted attributes."""
    return html.escape(value, quote=True)


def strip_markdown(markdown: str) -> str:
    """Reduce markdown to a single line of plain text.

    Code spans, images and links are dropped entirely; emphasis, quote,
    heading and list characters become spaces; whitespace is collapsed.
    """
    text = _CODE_PATTERN.sub(" ", markdown)
    text = _IMAGE_PATTERN.sub(" ", text)
    text = _LINK_PATTERN.sub(" ", text)
    text = _MARKUP_CHARS_PATTERN.sub(" ", text)
    text = _WHITESPACE_PATTERN.sub(" ", text)
    return text.strip()


def truncate_text(text: str, max_len: int) -> str:
    """Truncate text to at most max_len characters.

    Truncated results end with a single-character ellipsis, which counts
    toward max_len.
    """
    if len(text) <= max_len:
        return text
    return text[: max_len - 1].rstrip() + ELLIPSIS


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_iso_string(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with a Z suffix."""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a Z suffix."""
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def format_datetime(value: datetime) -> str:
    """Format a datetime for display (YYYY-MM-DD HH:MM UTC)."""
    return ensure_utc(value).strftime("%Y-%m-%d %H:%M")
