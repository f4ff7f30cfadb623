"""Identity caches owned by one page build."""

from dataclasses import dataclass, field

from loguru import logger

from threadpress.gateway.base import ChatGateway, GatewayError
from threadpress.models import Member


@dataclass
class BuildCaches:
    """Per-run lookups keyed by identity.

    members caches both hits and misses (None) so a departed user is only
    looked up once per build.
    """

    members: dict[str, Member | None] = field(default_factory=dict)
    avatars: dict[str, str] = field(default_factory=dict)
    role_icons: dict[str, str] = field(default_factory=dict)

    async def member(self, gateway: ChatGateway, user_id: str) -> Member | None:
        """Look up a member through the cache."""
        if user_id in self.members:
            return self.members[user_id]
        try:
            member = await gateway.fetch_member(user_id)
        except GatewayError as e:
            logger.warning("Member lookup failed for {}: {}", user_id, e)
            member = None
        self.members[user_id] = member
        return member
