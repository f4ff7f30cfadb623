"""Author identity resolution: names, colors, avatars and role icons."""

from threadpress.build.context import BuildContext
from threadpress.constants import AVATARS_NAMESPACE, ROLES_NAMESPACE
from threadpress.models import (
    DEFAULT_AUTHOR_COLOR,
    AuthorProfile,
    Member,
    MentionInfo,
    Message,
    Role,
    User,
)
from threadpress.render.rewrite import find_mention_ids

UNKNOWN_NAME = "Unknown"


def is_default_color(color: str | None) -> bool:
    """Unset and pure black both mean no role color was assigned."""
    return not color or color.lower() == "#000000"


def resolve_color(color: str | None) -> str:
    if color is None or is_default_color(color):
        return DEFAULT_AUTHOR_COLOR
    return color


def display_name(member: Member | None, user: User | None) -> str:
    if member and member.display_name:
        return member.display_name
    if user and user.username:
        return user.username
    return UNKNOWN_NAME


async def resolve_identity(
    ctx: BuildContext, user_id: str, user: User | None = None
) -> tuple[str, str]:
    """Return (display name, color) for a user id."""
    member = await ctx.caches.member(ctx.gateway, user_id)
    return display_name(member, user or (member.user if member else None)), resolve_color(
        member.color if member else None
    )


def top_role_with_icon(roles: list[Role]) -> Role | None:
    """The highest-ranked role that has an icon."""
    for role in sorted(roles, key=lambda r: r.position, reverse=True):
        if role.icon_url:
            return role
    return None


async def _resolve_avatar(ctx: BuildContext, user: User, member: Member | None) -> str | None:
    cached = ctx.caches.avatars.get(user.id)
    if cached:
        return cached
    avatar_url = member.display_avatar_url if member else user.avatar_url
    if not avatar_url:
        return None
    rel = await ctx.assets.acquire(avatar_url, AVATARS_NAMESPACE, f"avatar-{user.id}.png")
    if rel:
        ctx.caches.avatars[user.id] = rel
    return rel


async def _resolve_role_icon(ctx: BuildContext, member: Member | None) -> str | None:
    if member is None:
        return None
    role = top_role_with_icon(member.roles)
    if role is None or not role.icon_url:
        return None
    cached = ctx.caches.role_icons.get(role.id)
    if cached:
        return cached
    rel = await ctx.assets.acquire(role.icon_url, ROLES_NAMESPACE, f"role-{role.id}.png")
    if rel:
        ctx.caches.role_icons[role.id] = rel
    return rel


async def get_author_profile(message: Message, ctx: BuildContext) -> AuthorProfile:
    """Resolve the group header identity for a message's author."""
    user = message.author
    if user is None:
        return AuthorProfile(name=UNKNOWN_NAME)

    member = await ctx.caches.member(ctx.gateway, user.id)
    return AuthorProfile(
        name=display_name(member, user),
        color=resolve_color(member.color if member else None),
        avatar_rel=await _resolve_avatar(ctx, user, member),
        role_icon_rel=await _resolve_role_icon(ctx, member),
    )


async def build_mention_map(message: Message, ctx: BuildContext) -> dict[str, MentionInfo]:
    """Resolve every user mentioned in a message.

    Covers both the users the platform reports and any mention syntax in the
    text, so no raw numeric mention survives rendering.
    """
    users = {user.id: user for user in message.mentions}
    user_ids = list(dict.fromkeys([*users, *find_mention_ids(message.content or "")]))
    mention_map: dict[str, MentionInfo] = {}
    for user_id in user_ids:
        name, color = await resolve_identity(ctx, user_id, users.get(user_id))
        mention_map[user_id] = MentionInfo(name=name, color=color)
    return mention_map
