"""Tests for thread page assembly."""

import json
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import httpx
import pytest

from threadpress.build.context import BuildContext
from threadpress.build.page import build_excerpt, build_thread_page
from threadpress.build.tags import build_thread_tags_html
from threadpress.build.templates import load_templates
from threadpress.config import Config
from threadpress.gateway.static import StaticGateway
from threadpress.models import (
    Attachment,
    Emoji,
    ForumChannel,
    ForumTag,
    Member,
    Message,
    Reaction,
    Thread,
    User,
)

NOW = datetime(2025, 2, 1, 9, 30, tzinfo=UTC)


@pytest.fixture
def people(make_user: Callable[..., User], make_member: Callable[..., Member]) -> dict[str, Member]:
    asker = make_user("1", username="asker", avatar_url="https://cdn.example.com/a1.png")
    helper = make_user("2", username="helper")
    return {
        "asker": make_member(asker, display_name="Asker", color="#00ff00"),
        "helper": make_member(helper, display_name="Helper", publisher=True),
    }


@pytest.fixture
def thread_messages(
    people: dict[str, Member], make_message: Callable[..., Message]
) -> list[Message]:
    asker = people["asker"].user
    helper = people["helper"].user
    return [
        make_message(
            "100",
            content="My **build** fails\n\n![log](https://cdn.example.com/shot.png)",
            author=asker,
        ),
        make_message("101", content="Also on CI", author=asker, minutes=2),
        make_message(
            "102",
            content="Pin the version, <@1>",
            author=helper,
            minutes=5,
            reference_id="100",
            reactions=[Reaction(Emoji(name="👍"), 1), Reaction(Emoji(name="🎉"), 2)],
        ),
    ]


def _gateway(
    thread: Thread, messages: list[Message], people: dict[str, Member]
) -> StaticGateway:
    helper = people["helper"].user
    return StaticGateway(
        threads=[thread],
        messages={thread.id: messages},
        members=list(people.values()),
        reaction_users={("102", "👍"): [helper]},
    )


@pytest.mark.asyncio
async def test_build_thread_page_writes_page_and_sidecar(
    config: Config,
    output_dir: Path,
    mock_client: httpx.AsyncClient,
    people: dict[str, Member],
    thread_messages: list[Message],
    make_thread: Callable[..., Thread],
) -> None:
    """The page holds grouped messages, answer badge, reply and social tags."""
    thread = make_thread("100", name="Build fails")
    ctx = BuildContext.create(config, _gateway(thread, thread_messages, people), mock_client)

    meta = await build_thread_page(thread, thread_messages, ctx, load_templates(), now=NOW)

    assert meta.page_rel_path == "threads/100/index.html"
    assert meta.excerpt == "My build fails"
    html = (output_dir / "threads" / "100" / "index.html").read_text(encoding="utf-8")
    assert html.count('<article class="group">') == 2
    assert '<div id="m-102" class="message" data-answer="true">' in html
    assert '<span class="badge">Answer</span>' in html
    assert '<a href="#m-100" style="color: #00ff00">Asker</a>' in html
    assert '<span class="mention" style="color: #00ff00">@Asker</span>' in html
    assert '<span class="emoji">🎉</span>' in html
    assert '<span class="emoji">👍</span>' not in html
    assert '<img src="../../assets/avatars/avatar-1.png"' in html
    assert (
        '<meta property="og:image" content="https://example.org/assets/100/100-inline-shot.png">'
        in html
    )
    assert '<link rel="canonical" href="https://example.org/threads/100/">' in html
    assert 'href="../../assets/style.css"' in html
    assert '<time datetime="2025-02-01T09:30:00Z">' in html
    assert "{{" not in html

    sidecar = json.loads((output_dir / "threads" / "100" / "meta.json").read_text("utf-8"))
    assert sidecar == {
        "threadId": "100",
        "title": "Build fails",
        "createdAt": "2025-01-01T12:00:00Z",
        "excerpt": "My build fails",
        "pageRelPath": "threads/100/index.html",
    }


@pytest.mark.asyncio
async def test_regeneration_is_byte_stable(
    config: Config,
    output_dir: Path,
    mock_client: httpx.AsyncClient,
    requested_urls: list[str],
    people: dict[str, Member],
    thread_messages: list[Message],
    make_thread: Callable[..., Thread],
) -> None:
    """Rebuilding unchanged input with the same clock gives identical files."""
    thread = make_thread("100")
    gateway = _gateway(thread, thread_messages, people)
    templates = load_templates()
    page = output_dir / "threads" / "100" / "index.html"

    await build_thread_page(
        thread, thread_messages, BuildContext.create(config, gateway, mock_client), templates, NOW
    )
    first = page.read_text(encoding="utf-8")
    first_fetches = len(requested_urls)
    await build_thread_page(
        thread, thread_messages, BuildContext.create(config, gateway, mock_client), templates, NOW
    )

    assert page.read_text(encoding="utf-8") == first
    # Each build downloads every distinct asset exactly once.
    assert len(requested_urls) == 2 * first_fetches
    assert len(set(requested_urls)) == first_fetches


@pytest.mark.asyncio
async def test_regeneration_prunes_stale_thread_assets(
    config: Config,
    output_dir: Path,
    mock_client: httpx.AsyncClient,
    make_message: Callable[..., Message],
    make_thread: Callable[..., Thread],
) -> None:
    """Attachments that disappeared from the thread lose their local copy."""
    thread = make_thread("7")
    templates = load_templates()
    with_file = [
        make_message(
            "7",
            content="see file",
            attachments=[Attachment(url="https://cdn.example.com/f.txt", filename="f.txt")],
        )
    ]
    without_file = [make_message("7", content="see file")]
    gateway = StaticGateway()

    await build_thread_page(
        thread, with_file, BuildContext.create(config, gateway, mock_client), templates, NOW
    )
    assert (output_dir / "assets" / "7" / "7-f.txt").exists()
    await build_thread_page(
        thread, without_file, BuildContext.create(config, gateway, mock_client), templates, NOW
    )

    assert not (output_dir / "assets" / "7" / "7-f.txt").exists()


@pytest.mark.asyncio
async def test_page_without_base_url_has_no_absolute_links(
    config: Config,
    output_dir: Path,
    build_ctx: BuildContext,
    make_message: Callable[..., Message],
    make_thread: Callable[..., Thread],
) -> None:
    """Without a public base URL there is no og:image or canonical link."""
    config.site.base_url = None
    thread = make_thread("5")

    await build_thread_page(thread, [make_message("5")], build_ctx, load_templates(), NOW)

    html = (output_dir / "threads" / "5" / "index.html").read_text(encoding="utf-8")
    assert "og:image" not in html
    assert "canonical" not in html


def test_build_excerpt_truncates_to_limit(make_message: Callable[..., Message]) -> None:
    """Long opening messages are cut to the excerpt length with an ellipsis."""
    excerpt = build_excerpt(make_message(content="*word* " * 100), 180)
    assert len(excerpt) <= 180
    assert excerpt.startswith("word word")
    assert excerpt.endswith("…")
    assert build_excerpt(None, 180) == ""


@pytest.mark.asyncio
async def test_thread_tags_use_parent_definitions(
    build_ctx: BuildContext, make_thread: Callable[..., Thread]
) -> None:
    """Applied tags render with their icon; unknown tag ids are skipped."""
    parent = ForumChannel(
        id="1",
        tags=[
            ForumTag(id="t1", name="Solved", emoji=Emoji(name="✅")),
            ForumTag(id="t2", name="Bug", emoji=Emoji(id="55", name="bug")),
            ForumTag(id="t3", name="Plain"),
        ],
    )
    thread = make_thread(applied_tags=["t1", "t2", "t3", "gone"], parent=parent)

    html = await build_thread_tags_html(thread, build_ctx)

    assert html == (
        '<div class="tags">'
        '<span class="tag"><span class="tag-emoji">✅</span>Solved</span>'
        '<span class="tag"><img src="../../assets/tags/tag-55.png" alt="" width="16" height="16"'
        ' loading="lazy" decoding="async">Bug</span>'
        '<span class="tag">Plain</span>'
        "</div>"
    )
