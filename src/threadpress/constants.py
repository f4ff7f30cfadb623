"""Fixed values shared across the page pipeline."""

CUSTOM_EMOJI_URL = "https://cdn.discordapp.com/emojis/{emoji_id}.{ext}"

# Thread pages live at threads/{id}/index.html, two levels below the root.
PAGE_ASSET_PREFIX = "../../"

AVATARS_NAMESPACE = "avatars"
EMOJIS_NAMESPACE = "emojis"
ROLES_NAMESPACE = "roles"
TAGS_NAMESPACE = "tags"

AVATAR_SIZE = 48
REACTION_EMOJI_SIZE = 18
ROLE_ICON_SIZE = 18
TAG_ICON_SIZE = 16

ANSWER_BADGE_TEXT = "Answer"
REPLY_LABEL_TEXT = "Replying to"
THREAD_BUTTON_TEXT = "Open in Discord"


def custom_emoji_url(emoji_id: str, animated: bool) -> tuple[str, str]:
    """Return (CDN URL, file extension) for a custom emoji."""
    ext = "gif" if animated else "png"
    return CUSTOM_EMOJI_URL.format(emoji_id=emoji_id, ext=ext), ext
