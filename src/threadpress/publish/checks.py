"""Publish decisions driven by reactions on a thread's starter message."""

from loguru import logger

from threadpress.config import PublishConfig
from threadpress.gateway.base import ChatGateway, GatewayError
from threadpress.models import Message, Thread, User
from threadpress.resolve.reactions import find_reaction

_missing_starter_logged: set[str] = set()


def _log_missing_starter_once(thread_id: str) -> None:
    if thread_id in _missing_starter_logged:
        return
    _missing_starter_logged.add(thread_id)
    logger.warning("Starter message missing for thread {}", thread_id)


def is_starter_message(message: Message, thread: Thread) -> bool:
    """Forum starter messages share their thread's id."""
    return message.id == thread.id


async def is_publisher(gateway: ChatGateway, user: User, role_ids: list[str]) -> bool:
    """True when user is a human holding one of role_ids."""
    if user.bot:
        return False
    try:
        member = await gateway.fetch_member(user.id)
    except GatewayError as e:
        logger.warning("Member lookup failed for {}: {}", user.id, e)
        return False
    return bool(member and member.has_any_role(role_ids))


async def is_publishable_thread(
    thread: Thread, gateway: ChatGateway, publish: PublishConfig
) -> bool:
    """True when a publisher has put the publish emoji on the starter message."""
    try:
        starter = await gateway.fetch_starter_message(thread)
    except GatewayError as e:
        logger.warning("Failed to fetch starter message for thread {}: {}", thread.id, e)
        return False
    if starter is None:
        _log_missing_starter_once(thread.id)
        return False

    reaction = find_reaction(starter, publish.publish_emoji)
    if reaction is None:
        return False
    try:
        users = await gateway.fetch_reaction_users(starter, reaction.emoji)
    except GatewayError as e:
        logger.warning("Reaction user fetch failed for thread {}: {}", thread.id, e)
        return False

    for user in users:
        if await is_publisher(gateway, user, publish.publisher_role_ids):
            return True
    return False
