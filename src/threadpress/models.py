"""Data models for threads, messages and rendered pages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

DEFAULT_AUTHOR_COLOR = "#8b949e"


@dataclass
class Emoji:
    """A unicode or custom emoji. Custom emoji carry an id."""

    id: str | None = None
    name: str | None = None
    animated: bool = False

    @property
    def key(self) -> str:
        return self.id or self.name or ""

    def matches(self, target: str) -> bool:
        """Check whether this emoji is the configured target (by id or name)."""
        target = target.strip()
        if not target:
            return False
        return target in (self.id, self.name)


@dataclass
class User:
    """A platform account."""

    id: str
    username: str
    bot: bool = False
    avatar_url: str | None = None


@dataclass
class Role:
    """A guild role. Higher position ranks first."""

    id: str
    name: str
    position: int = 0
    icon_url: str | None = None


@dataclass
class Member:
    """A user as seen inside the guild."""

    user: User
    display_name: str | None = None
    color: str | None = None
    guild_avatar_url: str | None = None
    roles: list[Role] = field(default_factory=list)

    @property
    def display_avatar_url(self) -> str | None:
        return self.guild_avatar_url or self.user.avatar_url

    def has_any_role(self, role_ids: list[str]) -> bool:
        held = {role.id for role in self.roles}
        return any(role_id in held for role_id in role_ids)


@dataclass
class Attachment:
    """A file uploaded with a message."""

    url: str
    filename: str | None = None
    content_type: str | None = None


@dataclass
class Embed:
    """A link preview embed. Only its image is rendered."""

    image_url: str | None = None
    thumbnail_url: str | None = None


@dataclass
class Reaction:
    """One emoji reaction on a message with its total count."""

    emoji: Emoji
    count: int = 0


@dataclass
class Message:
    """A chat message as supplied by the platform."""

    id: str
    author: User | None
    created_at: datetime
    content: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    embeds: list[Embed] = field(default_factory=list)
    reactions: list[Reaction] = field(default_factory=list)
    reference_id: str | None = None
    mentions: list[User] = field(default_factory=list)


@dataclass
class ForumTag:
    """A tag definition on a forum channel."""

    id: str
    name: str
    emoji: Emoji | None = None


@dataclass
class ForumChannel:
    """The parent container of threads, holding tag definitions."""

    id: str
    tags: list[ForumTag] = field(default_factory=list)


@dataclass
class Thread:
    """A forum thread."""

    id: str
    name: str
    url: str
    created_at: datetime | None = None
    applied_tags: list[str] = field(default_factory=list)
    parent: ForumChannel | None = None


@dataclass
class AuthorProfile:
    """Resolved identity shown in a message group header."""

    name: str
    color: str = DEFAULT_AUTHOR_COLOR
    avatar_rel: str | None = None
    role_icon_rel: str | None = None


@dataclass
class MentionInfo:
    """Display data for a mentioned user."""

    name: str
    color: str = DEFAULT_AUTHOR_COLOR


@dataclass
class RenderedMessage:
    """A message converted to HTML fragments."""

    message_id: str
    created_at: datetime
    html_content: str
    extra_html: list[str] = field(default_factory=list)
    reactions_html: str = ""
    is_answer: bool = False
    reply_html: str = ""


@dataclass
class MessageGroup:
    """Consecutive messages by one author shown under one header."""

    author: AuthorProfile
    author_id: str | None
    messages: list[RenderedMessage] = field(default_factory=list)


@dataclass
class PageMeta:
    """Persisted metadata for one published thread page."""

    thread_id: str
    title: str
    created_at: datetime
    excerpt: str
    page_rel_path: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the sidecar JSON shape."""
        from threadpress.render.text import to_iso_string

        return {
            "threadId": self.thread_id,
            "title": self.title,
            "createdAt": to_iso_string(self.created_at),
            "excerpt": self.excerpt,
            "pageRelPath": self.page_rel_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PageMeta":
        """Build from the sidecar JSON shape.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If createdAt is not an ISO-8601 timestamp.
        """
        from threadpress.render.text import parse_iso_datetime

        return cls(
            thread_id=str(data["threadId"]),
            title=str(data["title"]),
            created_at=parse_iso_datetime(str(data["createdAt"])),
            excerpt=str(data.get("excerpt", "")),
            page_rel_path=str(data["pageRelPath"]),
        )
