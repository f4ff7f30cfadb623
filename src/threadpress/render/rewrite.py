"""Rewrite raw message text into portable markdown.

The stages run in a fixed order because later stages assume the text is
already markdown-shaped:

1. escape numeric list markers ("12) text")
2. turn bare .gif URLs into image embeds
3. swap mention syntax for placeholder tokens
4. localize custom emoji as markdown images
5. localize remote markdown images

Attachments and embeds are appended afterwards as extra fragments.
"""

import re
from dataclasses import dataclass, field

from threadpress.assets.files import (
    looks_like_audio_file,
    looks_like_gif_file,
    looks_like_image_file,
    looks_like_video_file,
    sanitize_filename,
    url_basename,
)
from threadpress.assets.store import AssetStore
from threadpress.constants import EMOJIS_NAMESPACE, custom_emoji_url
from threadpress.models import Attachment, MentionInfo, Message
from threadpress.render.text import escape_html

_LIST_MARKER_PATTERN = re.compile(r"(^|\n)\s*(\d+)\)\s+")
_TOKEN_SPLIT_PATTERN = re.compile(r"(\s+)")
_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
_GIF_URL_PATTERN = re.compile(r"\.gif(\?|#|$)", re.IGNORECASE)
_CUSTOM_EMOJI_PATTERN = re.compile(r"<(?P<animated>a)?:(?P<name>[a-zA-Z0-9_]+):(?P<id>\d+)>")
_INLINE_IMAGE_PATTERN = re.compile(r"!\[(?P<alt>[^\]]*)]\((?P<url>https?://[^)]+)\)")
_MENTION_ID_PATTERN = re.compile(r"<@!?(\d+)>")


@dataclass
class AssetResult:
    """Rewritten markdown for one message plus what was collected on the way."""

    markdown: str
    extra_html: list[str] = field(default_factory=list)
    image_rels: list[str] = field(default_factory=list)
    mention_tokens: dict[str, str] = field(default_factory=dict)


def mention_token(user_id: str) -> str:
    return f"@@MENTION:{user_id}@@"


def _mention_pattern(user_id: str) -> re.Pattern[str]:
    return re.compile(rf"<@!?{re.escape(user_id)}>")


def find_mention_ids(text: str) -> list[str]:
    """Return mentioned user ids in order of first appearance."""
    return list(dict.fromkeys(_MENTION_ID_PATTERN.findall(text)))


def markdown_target(link: str) -> str:
    """Format a link destination so markdown parses it intact."""
    if any(ch.isspace() or ch in "()<>" for ch in link):
        return "<" + link.replace("<", "%3C").replace(">", "%3E") + ">"
    return link


def markdown_label(text: str) -> str:
    """Escape square brackets in link or image text."""
    return text.replace("[", r"\[").replace("]", r"\]")


def escape_list_markers(text: str) -> str:
    """Keep "12) text" literal instead of turning it into an ordered list."""
    return _LIST_MARKER_PATTERN.sub(r"\1\2\\) ", text)


def normalize_gif_links(text: str) -> str:
    """Turn bare URLs pointing at .gif files into markdown images."""
    tokens = _TOKEN_SPLIT_PATTERN.split(text)
    return "".join(
        f"![]({token})"
        if _URL_PATTERN.match(token) and _GIF_URL_PATTERN.search(token)
        else token
        for token in tokens
    )


def replace_mentions_with_tokens(
    text: str, mention_map: dict[str, MentionInfo]
) -> tuple[str, dict[str, str]]:
    """Replace mention syntax with placeholder tokens.

    Returns:
        The rewritten text and a token -> finished HTML mapping to apply
        after markdown rendering.
    """
    tokens: dict[str, str] = {}
    for user_id, info in mention_map.items():
        token = mention_token(user_id)
        tokens[token] = (
            f'<span class="mention" style="color: {escape_html(info.color)}">'
            f"@{escape_html(info.name)}</span>"
        )
        text = _mention_pattern(user_id).sub(token, text)
    return text, tokens


def apply_mention_tokens(html: str, tokens: dict[str, str]) -> str:
    """Substitute mention placeholder tokens with their HTML."""
    for token, value in tokens.items():
        html = html.replace(token, value)
    return html


def replace_mentions_plain(text: str, mention_map: dict[str, MentionInfo]) -> str:
    """Replace mention syntax with plain "@name" text."""
    for user_id, info in mention_map.items():
        text = _mention_pattern(user_id).sub(lambda _m, name=info.name: f"@{name}", text)
    return text


async def rewrite_custom_emojis(content: str, assets: AssetStore, prefix: str) -> str:
    """Point custom emoji at local copies as markdown images.

    The alt text starts with ":" so the renderer can size them as emoji.
    Emoji that fail to download are left as they are.
    """
    result = content
    for match in _CUSTOM_EMOJI_PATTERN.finditer(content):
        emoji_id = match.group("id")
        url, ext = custom_emoji_url(emoji_id, animated=bool(match.group("animated")))
        local_rel = await assets.acquire(url, EMOJIS_NAMESPACE, f"emoji-{emoji_id}.{ext}")
        if local_rel:
            replacement = f"![:{match.group('name')}]({prefix}{local_rel})"
            result = result.replace(match.group(0), replacement, 1)
    return result


async def rewrite_inline_images(
    content: str,
    thread_id: str,
    message_id: str,
    assets: AssetStore,
    prefix: str,
    images: list[str],
) -> str:
    """Download remote markdown images into the thread namespace.

    Localized paths are appended to images. Links that cannot be
    downloaded are kept verbatim.
    """
    result = content
    for match in _INLINE_IMAGE_PATTERN.finditer(content):
        url = match.group("url")
        file_name = f"{message_id}-inline-{sanitize_filename(url_basename(url))}"
        local_rel = await assets.acquire(url, thread_id, file_name)
        if not local_rel:
            continue
        images.append(local_rel)
        replacement = f"![{match.group('alt')}]({markdown_target(prefix + local_rel)})"
        result = result.replace(match.group(0), replacement, 1)
    return result


def _attachment_kind(attachment: Attachment) -> str:
    content_type = attachment.content_type or ""
    name = attachment.filename or ""
    if content_type.startswith("video/") or looks_like_video_file(attachment.url):
        return "video"
    if content_type.startswith("audio/") or looks_like_audio_file(attachment.url):
        return "audio"
    if (
        content_type.startswith("image/")
        or looks_like_image_file(attachment.url)
        or looks_like_gif_file(name)
    ):
        return "image"
    return "file"


async def collect_message_assets(
    message: Message,
    thread_id: str,
    assets: AssetStore,
    prefix: str,
    mention_map: dict[str, MentionInfo],
) -> AssetResult:
    """Run the full rewrite pipeline for one message."""
    images: list[str] = []
    markdown = escape_list_markers(message.content or "")
    markdown = normalize_gif_links(markdown)
    markdown, tokens = replace_mentions_with_tokens(markdown, mention_map)
    markdown = await rewrite_custom_emojis(markdown, assets, prefix)
    markdown = await rewrite_inline_images(
        markdown, thread_id, message.id, assets, prefix, images
    )

    extra_html: list[str] = []
    used_names: set[str] = set()
    for index, attachment in enumerate(message.attachments):
        url = attachment.url
        safe_name = sanitize_filename(attachment.filename or url_basename(url))
        file_name = f"{message.id}-{safe_name}"
        if file_name in used_names:
            file_name = f"{message.id}-{index}-{safe_name}"
        used_names.add(file_name)
        local_rel = await assets.acquire(url, thread_id, file_name)
        link = f"{prefix}{local_rel}" if local_rel else url
        kind = _attachment_kind(attachment)

        if kind == "video":
            extra_html.append(
                f'<video controls preload="none"><source src="{escape_html(link)}"></video>'
            )
        elif kind == "audio":
            extra_html.append(
                f'<audio controls preload="none" src="{escape_html(link)}"></audio>'
            )
        elif kind == "image":
            if local_rel:
                images.append(local_rel)
            label = markdown_label(attachment.filename or "image")
            markdown += f"\n\n![{label}]({markdown_target(link)})"
        else:
            label = markdown_label(attachment.filename or "file")
            markdown += f"\n\n[{label}]({markdown_target(link)})"

    for embed in message.embeds:
        embed_url = embed.image_url or embed.thumbnail_url
        if not embed_url:
            continue
        file_name = f"{message.id}-embed-{sanitize_filename(url_basename(embed_url))}"
        local_rel = await assets.acquire(embed_url, thread_id, file_name)
        if local_rel:
            images.append(local_rel)
        link = f"{prefix}{local_rel}" if local_rel else embed_url
        markdown += f"\n\n![embed]({markdown_target(link)})"

    return AssetResult(
        markdown=markdown,
        extra_html=extra_html,
        image_rels=images,
        mention_tokens=tokens,
    )
