"""Tests for notification text."""

from collections.abc import Callable
from datetime import UTC, datetime

from threadpress.models import PageMeta, Thread
from threadpress.publish.notices import Actor, format_generated_notice, format_removed_notice


def test_generated_notice_links_site_and_thread(make_thread: Callable[..., Thread]) -> None:
    """The notice names the thread, links both copies and credits the actor."""
    thread = make_thread("1", name="Help")
    meta = PageMeta("1", "Help", datetime(2025, 1, 1, tzinfo=UTC), "", "threads/1/index.html")

    text = format_generated_notice(thread, meta, "https://example.org/", Actor(id="5"))

    assert text.splitlines() == [
        "**Page generated ✅**",
        '- "Help"',
        "- [Open on site](https://example.org/threads/1/index.html)",
        "- [Open in Discord](https://discord.com/channels/1/1)",
        "- Added by <@5>",
    ]


def test_generated_notice_without_base_url(make_thread: Callable[..., Thread]) -> None:
    """No base URL means no site link."""
    thread = make_thread("1", name="Help")
    meta = PageMeta("1", "Help", datetime(2025, 1, 1, tzinfo=UTC), "", "threads/1/index.html")
    assert "Open on site" not in format_generated_notice(thread, meta, None)


def test_removed_notice_falls_back_to_id() -> None:
    """Without a title the thread id is shown."""
    assert format_removed_notice("77") == '**Page removed 🗑️**\n- "77"'
