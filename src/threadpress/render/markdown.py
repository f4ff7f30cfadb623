"""Markdown to HTML rendering for message bodies."""

import re
from collections.abc import Sequence
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.token import Token

from threadpress.render.rewrite import apply_mention_tokens
from threadpress.render.text import escape_html

EMOJI_SIZE = 30

_EXTERNAL_LINK_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
_EMOJI_IMG_PATTERN = re.compile(r'<img([^>]*?)src="([^"]*/emojis/[^"]+)"([^>]*)>')
_CLASS_ATTR_PATTERN = re.compile(r'class="([^"]*)"')


def _render_image(
    self: Any, tokens: Sequence[Token], idx: int, options: Any, env: Any
) -> str:
    token = tokens[idx]
    src = escape_html(str(token.attrGet("src") or ""))
    alt = token.content or ""
    title = token.attrGet("title")
    title_attr = f' title="{escape_html(str(title))}"' if title else ""
    if alt.startswith(":"):
        # Custom emoji: small, inline, not a link.
        return (
            f'<img src="{src}" alt="{escape_html(alt)}"{title_attr} class="inline-emoji" '
            f'width="{EMOJI_SIZE}" height="{EMOJI_SIZE}" loading="lazy" decoding="async">'
        )
    img = f'<img src="{src}" alt="{escape_html(alt)}"{title_attr} loading="lazy" decoding="async">'
    return f'<a href="{src}" target="_blank" rel="noopener">{img}</a>'


def _render_link_open(
    self: Any, tokens: Sequence[Token], idx: int, options: Any, env: Any
) -> str:
    token = tokens[idx]
    href = str(token.attrGet("href") or "")
    if _EXTERNAL_LINK_PATTERN.match(href):
        token.attrSet("target", "_blank")
        token.attrSet("rel", "noopener")
    result: str = self.renderToken(tokens, idx, options, env)
    return result


def create_markdown() -> MarkdownIt:
    """Create the renderer used for message bodies.

    Raw HTML in messages is escaped, bare URLs become links and single
    newlines become line breaks, matching how chat clients display text.
    """
    md = MarkdownIt("commonmark", {"html": False, "linkify": True, "breaks": True})
    md.enable(["linkify", "strikethrough", "table"])
    md.add_render_rule("image", _render_image)
    md.add_render_rule("link_open", _render_link_open)
    return md


def _size_emoji_img(match: re.Match[str]) -> str:
    before, src, after = match.groups()
    attrs = f'{before}src="{src}"{after}'
    class_match = _CLASS_ATTR_PATTERN.search(attrs)
    if class_match is None:
        attrs += ' class="inline-emoji"'
    elif "inline-emoji" not in class_match.group(1).split():
        classes = f"{class_match.group(1)} inline-emoji".strip()
        attrs = f'{attrs[: class_match.start()]}class="{classes}"{attrs[class_match.end() :]}'
    if "width=" not in attrs:
        attrs += f' width="{EMOJI_SIZE}"'
    if "height=" not in attrs:
        attrs += f' height="{EMOJI_SIZE}"'
    return f"<img{attrs}>"


def apply_inline_emoji_sizing(html: str) -> str:
    """Give every locally stored emoji image a fixed small size."""
    return _EMOJI_IMG_PATTERN.sub(_size_emoji_img, html)


def render_message_html(md: MarkdownIt, markdown: str, mention_tokens: dict[str, str]) -> str:
    """Render rewritten message markdown to final HTML.

    Mention placeholders are substituted only after rendering so the
    renderer never sees (and escapes) the mention markup.
    """
    html = md.render(markdown)
    html = apply_mention_tokens(html, mention_tokens)
    return apply_inline_emoji_sizing(html)
