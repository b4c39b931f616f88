"""User identity comparison shared by ownership checks and bid rules."""


def same_user(a: str, b: str) -> bool:
    """User ids are UUID strings; compare them case-insensitively."""
    return str(a).lower() == str(b).lower()
