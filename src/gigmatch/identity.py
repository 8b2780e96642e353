"""Identity collaborator used to authorize mutating calls."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .errors import UnauthorizedError


@runtime_checkable
class IdentityProvider(Protocol):
    """Reports the id of the authenticated user, if any."""

    def current_user_id(self) -> str | None:
        """Return the current user id or None when nobody is signed in."""


class StaticIdentity:
    """Identity fixed at construction time (CLI sessions, tests)."""

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id or None

    def current_user_id(self) -> str | None:
        return self._user_id


def require_user(identity: IdentityProvider | None) -> str | None:
    """Return the current user id, raising when an identity is configured but empty.

    Without an identity provider the caller runs unauthenticated and None is
    returned.
    """
    if identity is None:
        return None
    user_id = identity.current_user_id()
    if not user_id:
        raise UnauthorizedError("Authentication required")
    return user_id


__all__ = ["IdentityProvider", "StaticIdentity", "require_user"]
