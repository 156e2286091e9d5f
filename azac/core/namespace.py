"""
Key namespace mapping.

Application-scoped keys are stored as ``<app><separator><key>``.
"""

from typing import Optional


def prefix(app: Optional[str], separator: str, relative_key: str) -> str:
    """Return the full key for an application-relative key."""
    if not app:
        return relative_key
    return f"{app}{separator}{relative_key}"


def strip(app: Optional[str], separator: str, full_key: str) -> str:
    """Return the application-relative key, or the input when it is not scoped to ``app``."""
    if not app:
        return full_key
    scope = f"{app}{separator}"
    if full_key.startswith(scope):
        return full_key[len(scope):]
    return full_key


def scope_filter(app: Optional[str], separator: str) -> str:
    """Return the key filter that lists every key of an application."""
    if not app:
        return "*"
    return f"{app}{separator}*"
