"""In-memory gateway backed by a JSON thread dump.

Lets a thread be rendered offline from a file exported by the bot (or
written by hand), and gives tests a deterministic platform.
"""

import json
from pathlib import Path
from typing import Any

from threadpress.models import (
    Attachment,
    Embed,
    Emoji,
    ForumChannel,
    ForumTag,
    Member,
    Message,
    Reaction,
    Role,
    Thread,
    User,
)
from threadpress.render.text import parse_iso_datetime


class StaticGateway:
    """ChatGateway over fixed data."""

    def __init__(
        self,
        threads: list[Thread] | None = None,
        messages: dict[str, list[Message]] | None = None,
        members: list[Member] | None = None,
        reaction_users: dict[tuple[str, str], list[User]] | None = None,
    ) -> None:
        """Initialize with threads, per-thread messages, members and reactors.

        Args:
            threads: Known threads.
            messages: Thread id -> messages of that thread.
            members: Guild members, keyed internally by user id.
            reaction_users: (message id, emoji key) -> users who reacted.
        """
        self._threads = {thread.id: thread for thread in threads or []}
        self._messages = messages or {}
        self._members = {member.user.id: member for member in members or []}
        self._reaction_users = reaction_users or {}

    async def fetch_member(self, user_id: str) -> Member | None:
        return self._members.get(user_id)

    async def fetch_reaction_users(self, message: Message, emoji: Emoji) -> list[User]:
        return list(self._reaction_users.get((message.id, emoji.key), []))

    async def fetch_starter_message(self, thread: Thread) -> Message | None:
        # The starter message shares the thread id on forum threads.
        for message in self._messages.get(thread.id, []):
            if message.id == thread.id:
                return message
        return None

    async def fetch_messages(self, thread: Thread) -> list[Message]:
        return sorted(self._messages.get(thread.id, []), key=lambda m: m.created_at)

    async def fetch_thread(self, thread_id: str) -> Thread | None:
        return self._threads.get(thread_id)


def _parse_emoji(data: dict[str, Any] | None) -> Emoji | None:
    if not data:
        return None
    return Emoji(
        id=str(data["id"]) if data.get("id") else None,
        name=data.get("name"),
        animated=bool(data.get("animated", False)),
    )


def _parse_user(data: dict[str, Any]) -> User:
    return User(
        id=str(data["id"]),
        username=data.get("username") or str(data["id"]),
        bot=bool(data.get("bot", False)),
        avatar_url=data.get("avatarUrl"),
    )


def _parse_thread(data: dict[str, Any]) -> Thread:
    parent_data = data.get("parent")
    parent = None
    if parent_data:
        parent = ForumChannel(
            id=str(parent_data["id"]),
            tags=[
                ForumTag(
                    id=str(tag["id"]),
                    name=tag.get("name", ""),
                    emoji=_parse_emoji(tag.get("emoji")),
                )
                for tag in parent_data.get("tags", [])
            ],
        )
    created_at = data.get("createdAt")
    return Thread(
        id=str(data["id"]),
        name=data.get("name", ""),
        url=data.get("url", ""),
        created_at=parse_iso_datetime(created_at) if created_at else None,
        applied_tags=[str(tag_id) for tag_id in data.get("appliedTags", [])],
        parent=parent,
    )


def load_dump(data: dict[str, Any]) -> tuple[Thread, StaticGateway]:
    """Build a thread and its gateway from a thread dump dictionary.

    Raises:
        KeyError: If a required field (ids, createdAt) is missing.
        ValueError: If a timestamp is not ISO-8601.
    """
    thread = _parse_thread(data["thread"])
    users = {user.id: user for user in (_parse_user(u) for u in data.get("users", []))}

    def user_for(user_id: str) -> User:
        return users.get(user_id) or User(id=user_id, username=user_id)

    members = [
        Member(
            user=user_for(str(m["userId"])),
            display_name=m.get("displayName"),
            color=m.get("color"),
            guild_avatar_url=m.get("avatarUrl"),
            roles=[
                Role(
                    id=str(r["id"]),
                    name=r.get("name", ""),
                    position=int(r.get("position", 0)),
                    icon_url=r.get("iconUrl"),
                )
                for r in m.get("roles", [])
            ],
        )
        for m in data.get("members", [])
    ]

    messages: list[Message] = []
    reaction_users: dict[tuple[str, str], list[User]] = {}
    for m in data.get("messages", []):
        message_id = str(m["id"])
        reactions: list[Reaction] = []
        for r in m.get("reactions", []):
            emoji = _parse_emoji(r.get("emoji")) or Emoji()
            user_ids = [str(uid) for uid in r.get("userIds", [])]
            reactions.append(Reaction(emoji=emoji, count=int(r.get("count", len(user_ids)))))
            reaction_users[(message_id, emoji.key)] = [user_for(uid) for uid in user_ids]
        author_id = m.get("authorId")
        messages.append(
            Message(
                id=message_id,
                author=user_for(str(author_id)) if author_id else None,
                created_at=parse_iso_datetime(m["createdAt"]),
                content=m.get("content", ""),
                attachments=[
                    Attachment(
                        url=a["url"],
                        filename=a.get("filename"),
                        content_type=a.get("contentType"),
                    )
                    for a in m.get("attachments", [])
                ],
                embeds=[
                    Embed(image_url=e.get("imageUrl"), thumbnail_url=e.get("thumbnailUrl"))
                    for e in m.get("embeds", [])
                ],
                reactions=reactions,
                reference_id=str(m["referenceId"]) if m.get("referenceId") else None,
                mentions=[user_for(str(uid)) for uid in m.get("mentionIds", [])],
            )
        )

    gateway = StaticGateway(
        threads=[thread],
        messages={thread.id: messages},
        members=members,
        reaction_users=reaction_users,
    )
    return thread, gateway


def load_dump_file(path: Path) -> tuple[Thread, StaticGateway]:
    """Read a thread dump JSON file."""
    return load_dump(json.loads(path.read_text(encoding="utf-8")))
