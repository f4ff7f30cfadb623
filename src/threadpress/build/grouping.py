"""Cluster consecutive messages by the same author into groups."""

from datetime import timedelta

from threadpress.models import AuthorProfile, Message, MessageGroup, RenderedMessage

GROUP_WINDOW = timedelta(minutes=10)


def is_same_author(a: Message, b: Message) -> bool:
    return bool(a.author and b.author and a.author.id == b.author.id)


def group_messages(
    entries: list[tuple[Message, AuthorProfile, RenderedMessage]],
    window: timedelta = GROUP_WINDOW,
) -> list[MessageGroup]:
    """Group chronologically ordered messages.

    A message joins the current group when the previous message in the
    input has the same author and the gap to the last message appended to
    the group is within window. Otherwise it starts a new group. Order is
    preserved both inside groups and across them.

    Args:
        entries: (source message, resolved author, rendered message) tuples
            in chronological order.
        window: Maximum gap between consecutive grouped messages.

    Returns:
        The list of message groups.
    """
    groups: list[MessageGroup] = []
    prev_message: Message | None = None
    for message, author, rendered in entries:
        current = groups[-1] if groups else None
        if (
            current is not None
            and prev_message is not None
            and is_same_author(message, prev_message)
            and abs(rendered.created_at - current.messages[-1].created_at) <= window
        ):
            current.messages.append(rendered)
        else:
            author_id = message.author.id if message.author else None
            groups.append(MessageGroup(author=author, author_id=author_id, messages=[rendered]))
        prev_message = message
    return groups
