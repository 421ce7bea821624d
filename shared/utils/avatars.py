"""
Generated avatar URLs for new accounts.
"""

from urllib.parse import quote

from shared.config.constants import AVATAR_BASE_URL, AVATAR_COLORS


def generate_avatar_url(username: str, size: int = 128) -> str:
    """
    Build a ui-avatars.com URL for a username.

    The background colour is picked from AVATAR_COLORS by username length,
    so the same name always gets the same avatar.

    Args:
        username: Account name rendered as initials.
        size: Image size in pixels.

    Returns:
        Absolute avatar URL.
    """
    color = AVATAR_COLORS[len(username) % len(AVATAR_COLORS)]
    return (
        f"{AVATAR_BASE_URL}?name={quote(username, safe='')}"
        f"&background={color}&color=fff&size={size}"
    )
