"""Thread page assembly."""

from datetime import UTC, datetime
from urllib.parse import urljoin

from loguru import logger

from threadpress.build.context import BuildContext
from threadpress.build.grouping import group_messages
from threadpress.build.tags import build_thread_tags_html
from threadpress.build.templates import (
    Templates,
    build_description_tag,
    build_meta_extra,
    ensure_static_assets,
    render_template,
)
from threadpress.constants import (
    ANSWER_BADGE_TEXT,
    AVATAR_SIZE,
    ROLE_ICON_SIZE,
    THREAD_BUTTON_TEXT,
)
from threadpress.models import (
    AuthorProfile,
    Message,
    MessageGroup,
    PageMeta,
    RenderedMessage,
    Thread,
)
from threadpress.render.markdown import render_message_html
from threadpress.render.rewrite import collect_message_assets
from threadpress.render.text import (
    escape_html,
    format_datetime,
    strip_markdown,
    to_iso_string,
    truncate_text,
)
from threadpress.resolve.authors import build_mention_map, get_author_profile
from threadpress.resolve.reactions import build_reactions_html, is_answer_message
from threadpress.resolve.replies import build_reply_html
from threadpress.storage.meta import write_sidecar
from threadpress.storage.paths import thread_output_dir, thread_page_rel_path


async def render_message(
    message: Message,
    thread_id: str,
    messages_by_id: dict[str, Message],
    ctx: BuildContext,
) -> tuple[AuthorProfile, RenderedMessage, list[str]]:
    """Render one message.

    Returns:
        The author profile, the rendered message and the localized image
        paths found in it (candidates for the social preview image).
    """
    mention_map = await build_mention_map(message, ctx)
    result = await collect_message_assets(message, thread_id, ctx.assets, ctx.prefix, mention_map)
    html_content = render_message_html(ctx.markdown, result.markdown, result.mention_tokens)
    author = await get_author_profile(message, ctx)
    rendered = RenderedMessage(
        message_id=message.id,
        created_at=message.created_at,
        html_content=html_content,
        extra_html=result.extra_html,
        reactions_html=await build_reactions_html(message, ctx, ctx.excluded_reaction_emojis),
        is_answer=await is_answer_message(message, ctx),
        reply_html=await build_reply_html(message, messages_by_id, ctx),
    )
    return author, rendered, result.image_rels


def _render_message_item(entry: RenderedMessage) -> str:
    answer_badge = f'<span class="badge">{ANSWER_BADGE_TEXT}</span>' if entry.is_answer else ""
    parts = [entry.reply_html, entry.html_content, *entry.extra_html]
    body = "\n".join(part for part in parts if part)
    answer_attr = "true" if entry.is_answer else "false"
    return (
        f'<div id="m-{escape_html(entry.message_id)}" class="message" data-answer="{answer_attr}">\n'
        f'  <div class="meta">{answer_badge}</div>\n'
        '  <div class="body">\n'
        f"{body}\n"
        "  </div>\n"
        f"  {entry.reactions_html}\n"
        "</div>"
    )


def render_group_html(group: MessageGroup, prefix: str) -> str:
    """Render a message group as an article with one header."""
    author = group.author
    group_time = group.messages[0].created_at
    avatar_html = ""
    if author.avatar_rel:
        avatar_html = (
            f'<img src="{escape_html(prefix + author.avatar_rel)}" alt="{escape_html(author.name)}" '
            f'width="{AVATAR_SIZE}" height="{AVATAR_SIZE}" loading="lazy" decoding="async">'
        )
    role_icon_html = ""
    if author.role_icon_rel:
        role_icon_html = (
            f'<img class="role-icon" src="{escape_html(prefix + author.role_icon_rel)}" alt="" '
            f'width="{ROLE_ICON_SIZE}" height="{ROLE_ICON_SIZE}" loading="lazy" decoding="async">'
        )
    items = "\n".join(_render_message_item(entry) for entry in group.messages)
    return (
        '<article class="group">\n'
        "  <header>\n"
        f"    {avatar_html}\n"
        "    <div>\n"
        f'      <h3 style="color: {escape_html(author.color)}">'
        f"{escape_html(author.name)}{role_icon_html}</h3>\n"
        f'      <time datetime="{to_iso_string(group_time)}">'
        f"{escape_html(format_datetime(group_time))}</time>\n"
        "    </div>\n"
        "  </header>\n"
        "  <section>\n"
        f"{items}\n"
        "  </section>\n"
        "</article>"
    )


def build_excerpt(starter: Message | None, max_len: int) -> str:
    """Plain-text excerpt of the thread's opening message."""
    if starter is None:
        return ""
    return truncate_text(strip_markdown(starter.content or ""), max_len)


async def build_thread_page(
    thread: Thread,
    messages: list[Message],
    ctx: BuildContext,
    templates: Templates,
    now: datetime | None = None,
) -> PageMeta:
    """Render a thread page and its sidecar.

    The page and sidecar are written only after every message rendered, so
    a failure part-way leaves the previous page in place. Files in the
    thread's asset namespace that this run did not produce are removed
    afterwards.

    Args:
        thread: The thread being published.
        messages: Its full message history, oldest first.
        ctx: A fresh per-run build context.
        templates: Loaded page templates.
        now: Timestamp shown as "updated at" (defaults to the current time).

    Returns:
        The metadata written to the sidecar.
    """
    config = ctx.config
    output_dir = config.site.output_dir
    page_rel_path = thread_page_rel_path(thread.id)
    ensure_static_assets(output_dir, templates)

    messages_by_id = {message.id: message for message in messages}
    entries: list[tuple[Message, AuthorProfile, RenderedMessage]] = []
    image_candidates: list[str] = []
    for message in messages:
        author, rendered, image_rels = await render_message(
            message, thread.id, messages_by_id, ctx
        )
        image_candidates.extend(image_rels)
        entries.append((message, author, rendered))

    groups = group_messages(entries, ctx.group_window)
    rendered_groups = [render_group_html(group, ctx.prefix) for group in groups]

    excerpt = build_excerpt(messages[0] if messages else None, config.build.excerpt_length)
    created_at = thread.created_at or (messages[0].created_at if messages else datetime.now(UTC))
    base_url = config.site.base_url
    og_image = urljoin(base_url, image_candidates[0]) if base_url and image_candidates else None
    canonical_url = urljoin(base_url, f"threads/{thread.id}/") if base_url else None
    tags_html = await build_thread_tags_html(thread, ctx)

    description = excerpt or thread.name
    updated = now or datetime.now(UTC)
    html = render_template(
        templates.thread,
        {
            "title": escape_html(thread.name),
            "thread_title": escape_html(thread.name),
            "site_title": escape_html(config.site.title),
            "thread_tags": tags_html,
            "description_tag": build_description_tag(description),
            "meta_extra": build_meta_extra(
                thread.name, description, og_image, canonical_url, og_type="article"
            ),
            "messages": "\n".join(rendered_groups),
            "thread_url": escape_html(thread.url),
            "thread_button_text": THREAD_BUTTON_TEXT,
            "updated_iso": to_iso_string(updated),
            "updated_at": escape_html(format_datetime(updated)),
            "style_href": f"{ctx.prefix}assets/style.css",
            "index_href": ctx.prefix,
        },
    )

    page_dir = thread_output_dir(output_dir, thread.id)
    page_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / page_rel_path).write_text(html, encoding="utf-8")

    meta = PageMeta(
        thread_id=thread.id,
        title=thread.name,
        created_at=created_at,
        excerpt=excerpt,
        page_rel_path=page_rel_path,
    )
    write_sidecar(output_dir, meta)
    ctx.assets.prune(thread.id)
    logger.info(
        "Rendered thread {} ({} messages, {} groups)", thread.id, len(messages), len(groups)
    )
    return meta
