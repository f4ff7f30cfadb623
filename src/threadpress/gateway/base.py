"""Capability interface to the chat platform.

The page pipeline never talks to a platform SDK directly. Everything it
needs from the live platform goes through ChatGateway, and every method
returns explicit absence (None or an empty list) instead of relying on
lazily loaded objects.
"""

from typing import Protocol

from threadpress.models import Emoji, Member, Message, Thread, User


class GatewayError(Exception):
    """Raised by gateway implementations on transport failures."""


class ChatGateway(Protocol):
    """What the core consumes from the chat platform."""

    async def fetch_member(self, user_id: str) -> Member | None:
        """Resolve a user's guild membership, or None if they are not a member."""
        ...

    async def fetch_reaction_users(self, message: Message, emoji: Emoji) -> list[User]:
        """List the users who reacted to message with emoji."""
        ...

    async def fetch_starter_message(self, thread: Thread) -> Message | None:
        """Fetch the full starter message of a thread, or None if deleted."""
        ...

    async def fetch_messages(self, thread: Thread) -> list[Message]:
        """Fetch the complete message history of a thread, oldest first."""
        ...

    async def fetch_thread(self, thread_id: str) -> Thread | None:
        """Resolve a thread by id, or None if it no longer exists."""
        ...
