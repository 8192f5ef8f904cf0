"""Access token provider backed by the local state cache."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from drive_gallery.access.store import KEY_ACCESS_TOKEN
from drive_gallery.errors import NotAuthenticatedError

if TYPE_CHECKING:
    from drive_gallery.access.store import LocalStateStore

logger = logging.getLogger(__name__)


class IdentitySession(Protocol):
    def access_token(self) -> str: ...


class IdentityProvider(Protocol):
    def get_session(self) -> IdentitySession | None: ...


class TokenProvider:
    """Resolves the bearer credential for Drive API calls.

    Expiry is never checked up front; callers discover it from a 401 and
    ask for a :meth:`refresh`.
    """

    def __init__(self, identity: IdentityProvider, state: LocalStateStore) -> None:
        self._identity = identity
        self._state = state

    def get_token(self) -> str:
        """Return the cached token, refreshing when the cache is empty."""
        token = self._state.get(KEY_ACCESS_TOKEN)
        if token:
            return token
        return self.refresh()

    def refresh(self) -> str:
        """Re-derive a token from the identity session and overwrite the cache.

        Raises:
            NotAuthenticatedError: If no identity session is active.
        """
        session = self._identity.get_session()
        if session is None:
            raise NotAuthenticatedError("No active identity session")
        token = session.access_token()
        self._state.set(KEY_ACCESS_TOKEN, token)
        logger.info("[refresh] access token refreshed")
        return token

    def store(self, token: str) -> None:
        """Cache a token issued outside of a refresh (e.g. at sign-in)."""
        self._state.set(KEY_ACCESS_TOKEN, token)

    def clear(self) -> None:
        self._state.delete(KEY_ACCESS_TOKEN)
