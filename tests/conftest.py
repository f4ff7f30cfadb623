"""Shared test fixtures and utilities."""

import os
import sys
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest
from loguru import logger

from threadpress.build.context import BuildContext
from threadpress.config import BuildConfig, Config, PublishConfig, SiteConfig
from threadpress.gateway.static import StaticGateway
from threadpress.models import Member, Message, Role, Thread, User

# Disable Rich color output for consistent test output across environments
os.environ["NO_COLOR"] = "1"

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
PUBLISHER_ROLE_ID = "900"
PUBLISH_EMOJI = "✅"
ANSWER_EMOJI = "👍"
ASSET_BYTES = b"\x89PNG\r\n\x1a\nfake"


def _make_user(user_id: str = "1", username: str | None = None, **kwargs: Any) -> User:
    return User(id=user_id, username=username or f"user{user_id}", **kwargs)


def _make_message(
    message_id: str = "100",
    content: str = "Hello world",
    author: Any = ...,
    minutes: float = 0,
    **kwargs: Any,
) -> Message:
    """Create a test message with sensible defaults.

    Args:
        message_id: The message's unique identifier.
        content: The raw message text.
        author: The author (None for a deleted one); defaults to user "1".
        minutes: Offset from BASE_TIME in minutes.
        **kwargs: Additional Message fields.

    Returns:
        A Message with the specified fields.
    """
    return Message(
        id=message_id,
        author=_make_user() if author is ... else author,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        content=content,
        **kwargs,
    )


def _make_thread(thread_id: str = "100", name: str = "How do I fix this?", **kwargs: Any) -> Thread:
    kwargs.setdefault("url", f"https://discord.com/channels/1/{thread_id}")
    kwargs.setdefault("created_at", BASE_TIME)
    return Thread(id=thread_id, name=name, **kwargs)


def _make_member(
    user: User, display_name: str | None = None, publisher: bool = False, **kwargs: Any
) -> Member:
    roles = list(kwargs.pop("roles", []))
    if publisher:
        roles.append(Role(id=PUBLISHER_ROLE_ID, name="Moderator", position=5))
    return Member(user=user, display_name=display_name, roles=roles, **kwargs)


@pytest.fixture
def make_user() -> Callable[..., User]:
    """Fixture that provides the make_user factory function."""
    return _make_user


@pytest.fixture
def make_message() -> Callable[..., Message]:
    """Fixture that provides the make_message factory function."""
    return _make_message


@pytest.fixture
def make_thread() -> Callable[..., Thread]:
    """Fixture that provides the make_thread factory function."""
    return _make_thread


@pytest.fixture
def make_member() -> Callable[..., Member]:
    """Fixture that provides the make_member factory function."""
    return _make_member


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "site"


@pytest.fixture
def config(output_dir: Path) -> Config:
    """Configuration writing into a temporary site directory."""
    return Config(
        site=SiteConfig(
            title="Test Archive",
            description="Answers from the help forum",
            base_url="https://example.org/",
            output_dir=output_dir,
        ),
        publish=PublishConfig(
            publisher_role_ids=[PUBLISHER_ROLE_ID],
            publish_emoji=PUBLISH_EMOJI,
            answer_emoji=ANSWER_EMOJI,
        ),
        build=BuildConfig(index_debounce_seconds=0.01),
    )


@pytest.fixture
def requested_urls() -> list[str]:
    """URLs fetched through the mock client, in request order."""
    return []


@pytest.fixture
def mock_client(requested_urls: list[str]) -> httpx.AsyncClient:
    """Async client serving fake image bytes; any path containing "missing" is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        requested_urls.append(str(request.url))
        if "missing" in request.url.path:
            return httpx.Response(404)
        return httpx.Response(200, content=ASSET_BYTES)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def gateway() -> StaticGateway:
    return StaticGateway()


@pytest.fixture
def build_ctx(config: Config, gateway: StaticGateway, mock_client: httpx.AsyncClient) -> BuildContext:
    """A fresh build context over an empty gateway."""
    return BuildContext.create(config, gateway, mock_client)


@pytest.fixture
def log_messages() -> Generator[list[str]]:
    """Capture loguru output as "LEVEL message" strings."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.rstrip("\n")), format="{level} {message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture(autouse=True)
def _reset_logger() -> Generator[None]:
    """Restore the default sink after tests that reconfigure logging."""
    yield
    logger.remove()
    logger.add(sys.stderr)
