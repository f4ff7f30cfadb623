"""Reply backlinks to messages in the same thread."""

from threadpress.build.context import BuildContext
from threadpress.constants import REPLY_LABEL_TEXT
from threadpress.models import DEFAULT_AUTHOR_COLOR, Message
from threadpress.render.rewrite import (
    apply_mention_tokens,
    mention_token,
    replace_mentions_with_tokens,
)
from threadpress.render.text import escape_html, strip_markdown, truncate_text
from threadpress.resolve.authors import UNKNOWN_NAME, build_mention_map, resolve_identity


async def reply_preview_text(referenced: Message, ctx: BuildContext) -> str:
    """Plain-text preview of a referenced message.

    Mentions become "@name" and survive markdown stripping because they are
    tokenized first.
    """
    mention_map = await build_mention_map(referenced, ctx)
    text, _ = replace_mentions_with_tokens(referenced.content or "", mention_map)
    plain_tokens = {
        mention_token(user_id): f"@{info.name}" for user_id, info in mention_map.items()
    }
    plain = apply_mention_tokens(strip_markdown(text), plain_tokens)
    return truncate_text(plain, ctx.config.build.reply_preview_length)


async def build_reply_html(
    message: Message, messages_by_id: dict[str, Message], ctx: BuildContext
) -> str:
    """Render the reply block for message, or "" when there is nothing to show.

    Only targets inside the already fetched thread history are linked;
    out-of-window or deleted targets are silently omitted.
    """
    ref_id = message.reference_id
    if not ref_id:
        return ""
    referenced = messages_by_id.get(ref_id)
    if referenced is None:
        return ""

    preview = await reply_preview_text(referenced, ctx)
    if not preview:
        return ""

    if referenced.author:
        name, color = await resolve_identity(ctx, referenced.author.id, referenced.author)
    else:
        name, color = UNKNOWN_NAME, DEFAULT_AUTHOR_COLOR
    return (
        '<div class="reply">\n'
        f'  <span>{REPLY_LABEL_TEXT} <a href="#m-{escape_html(ref_id)}" '
        f'style="color: {escape_html(color)}">{escape_html(name)}</a></span>\n'
        f"  <p>{escape_html(preview)}</p>\n"
        "</div>"
    )
