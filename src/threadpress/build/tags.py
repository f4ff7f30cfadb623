"""Forum tag chips for thread pages."""

from threadpress.build.context import BuildContext
from threadpress.constants import TAG_ICON_SIZE, TAGS_NAMESPACE, custom_emoji_url
from threadpress.models import ForumTag, Thread
from threadpress.render.text import escape_html


async def _tag_icon_html(tag: ForumTag, ctx: BuildContext) -> str:
    emoji = tag.emoji
    if emoji is None:
        return ""
    if emoji.id:
        url, ext = custom_emoji_url(emoji.id, emoji.animated)
        local_rel = await ctx.assets.acquire(url, TAGS_NAMESPACE, f"tag-{emoji.id}.{ext}")
        if not local_rel:
            return ""
        return (
            f'<img src="{escape_html(ctx.prefix + local_rel)}" alt="" '
            f'width="{TAG_ICON_SIZE}" height="{TAG_ICON_SIZE}" loading="lazy" decoding="async">'
        )
    if emoji.name:
        return f'<span class="tag-emoji">{escape_html(emoji.name)}</span>'
    return ""


async def build_thread_tags_html(thread: Thread, ctx: BuildContext) -> str:
    """Render the thread's applied tags using the parent's definitions.

    Tag ids missing from the parent are skipped.
    """
    if thread.parent is None or not thread.applied_tags:
        return ""
    tags_by_id = {tag.id: tag for tag in thread.parent.tags}
    parts: list[str] = []
    for tag_id in thread.applied_tags:
        tag = tags_by_id.get(tag_id)
        if tag is None:
            continue
        icon_html = await _tag_icon_html(tag, ctx)
        parts.append(f'<span class="tag">{icon_html}{escape_html(tag.name)}</span>')
    if not parts:
        return ""
    return f'<div class="tags">{"".join(parts)}</div>'
