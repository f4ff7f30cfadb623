"""Notification text for publish and unpublish events."""

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urljoin

from threadpress.models import PageMeta, Thread


@dataclass
class Actor:
    """The user whose reaction triggered a publish state change."""

    id: str
    tag: str = ""


class Notifier(Protocol):
    """Outbound notification channel (log channel, direct message...)."""

    async def send(self, text: str, actor: Actor | None = None) -> None: ...


def format_generated_notice(
    thread: Thread, meta: PageMeta, base_url: str | None, actor: Actor | None = None
) -> str:
    lines = ["**Page generated ✅**", f'- "{thread.name}"']
    if base_url:
        lines.append(f"- [Open on site]({urljoin(base_url, meta.page_rel_path)})")
    lines.append(f"- [Open in Discord]({thread.url})")
    if actor:
        lines.append(f"- Added by <@{actor.id}>")
    return "\n".join(lines)


def format_removed_notice(
    thread_id: str,
    title: str | None = None,
    url: str | None = None,
    actor: Actor | None = None,
) -> str:
    lines = ["**Page removed 🗑️**", f'- "{title or thread_id}"']
    if url:
        lines.append(f"- [Open in Discord]({url})")
    if actor:
        lines.append(f"- Removed by <@{actor.id}>")
    return "\n".join(lines)
