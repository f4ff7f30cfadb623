"""Reaction badges and answer detection."""

from loguru import logger

from threadpress.build.context import BuildContext
from threadpress.constants import EMOJIS_NAMESPACE, REACTION_EMOJI_SIZE, custom_emoji_url
from threadpress.gateway.base import GatewayError
from threadpress.models import Emoji, Message, Reaction
from threadpress.render.text import escape_html


def reaction_matches(emoji: Emoji, target: str) -> bool:
    """Check a reaction emoji against a configured emoji (id or name)."""
    return emoji.matches(target)


def find_reaction(message: Message, target: str) -> Reaction | None:
    for reaction in message.reactions:
        if reaction_matches(reaction.emoji, target):
            return reaction
    return None


def _text_badge(name: str, count: int) -> str:
    return (
        f'<span class="reaction"><span class="emoji">{escape_html(name)}</span>'
        f"<em>{count}</em></span>"
    )


async def _reaction_badge(reaction: Reaction, ctx: BuildContext) -> str | None:
    emoji = reaction.emoji
    if emoji.id:
        url, ext = custom_emoji_url(emoji.id, emoji.animated)
        local_rel = await ctx.assets.acquire(url, EMOJIS_NAMESPACE, f"emoji-{emoji.id}.{ext}")
        if local_rel:
            src = escape_html(f"{ctx.prefix}{local_rel}")
            alt = escape_html(emoji.name or "emoji")
            return (
                f'<span class="reaction"><img src="{src}" alt="{alt}" '
                f'width="{REACTION_EMOJI_SIZE}" height="{REACTION_EMOJI_SIZE}" '
                f'loading="lazy" decoding="async"><em>{reaction.count}</em></span>'
            )
    if emoji.name:
        return _text_badge(emoji.name, reaction.count)
    return None


async def build_reactions_html(message: Message, ctx: BuildContext, exclude: list[str]) -> str:
    """Render count badges for a message's reactions.

    Reactions with a zero count and control emojis in exclude are skipped.
    Custom emoji that cannot be downloaded fall back to their name.
    """
    parts: list[str] = []
    for reaction in message.reactions:
        if reaction.count <= 0:
            continue
        if any(reaction_matches(reaction.emoji, target) for target in exclude):
            continue
        badge = await _reaction_badge(reaction, ctx)
        if badge:
            parts.append(badge)
    if not parts:
        return ""
    return f'<div class="reactions">{"".join(parts)}</div>'


async def is_answer_message(message: Message, ctx: BuildContext) -> bool:
    """True iff a non-bot publisher reacted to message with the answer emoji."""
    answer_emoji = ctx.config.publish.answer_emoji
    role_ids = ctx.config.publish.publisher_role_ids
    if not answer_emoji or not role_ids:
        return False
    reaction = find_reaction(message, answer_emoji)
    if reaction is None:
        return False

    try:
        users = await ctx.gateway.fetch_reaction_users(message, reaction.emoji)
    except GatewayError as e:
        logger.warning("Reaction user fetch failed for message {}: {}", message.id, e)
        return False

    for user in users:
        if user.bot:
            continue
        member = await ctx.caches.member(ctx.gateway, user.id)
        if member and member.has_any_role(role_ids):
            return True
    return False
