"""Google identity provider adapter built on google-auth."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2 import id_token
from google.oauth2.credentials import Credentials

from drive_gallery.errors import NotAuthenticatedError

if TYPE_CHECKING:
    from drive_gallery.access.store import LocalStateStore
    from drive_gallery.config import AppConfig

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
DRIVE_SCOPES = [
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/drive.metadata.readonly",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/drive.photos.readonly",
]

KEY_IDENTITY_SESSION = "identity_session"


@dataclass(frozen=True)
class UserProfile:
    """Signed-in user as reported by the identity provider."""

    user_id: str
    display_name: str
    email: str = ""
    photo_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class GoogleIdentitySession:
    """An active Google sign-in able to mint Drive access tokens."""

    def __init__(self, profile: UserProfile, credentials: Credentials) -> None:
        self.profile = profile
        self._credentials = credentials

    def access_token(self) -> str:
        """Derive a fresh access token from the session.

        Uses the refresh token when one was granted; otherwise the token
        issued at sign-in is the only credential the session can produce.

        Raises:
            NotAuthenticatedError: If the session can no longer produce a token.
        """
        if self._credentials.refresh_token:
            try:
                self._credentials.refresh(Request())
            except RefreshError as exc:
                logger.error(
                    "[access_token] credential refresh rejected; user_id:%s",
                    self.profile.user_id,
                )
                raise NotAuthenticatedError("Identity session could not be refreshed") from exc
        token = self._credentials.token
        if not token:
            raise NotAuthenticatedError("Identity session holds no access token")
        return str(token)


class GoogleIdentityProvider:
    """Signs users in with Google OAuth tokens and tracks the active session.

    The session (profile plus OAuth tokens) lives in the caller's local
    state store so it survives between requests of the same browser session.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        state: LocalStateStore,
        scopes: list[str] | None = None,
    ) -> None:
        """Initialise the identity provider.

        Args:
            client_id: Google OAuth client ID.
            client_secret: Google OAuth client secret.
            state: Local state store holding the session.
            scopes: OAuth scopes requested for Drive access.
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._state = state
        self._scopes = scopes or list(DRIVE_SCOPES)

    def sign_in(self, token_data: dict[str, Any]) -> UserProfile:
        """Start a session from an OAuth token response.

        Args:
            token_data: Token endpoint response holding ``access_token``,
                ``id_token`` and optionally ``refresh_token``.

        Returns:
            Profile of the signed-in user.

        Raises:
            NotAuthenticatedError: If the token response is incomplete or the
                ID token does not verify.
        """
        access_token = token_data.get("access_token")
        raw_id_token = token_data.get("id_token")
        if not access_token or not raw_id_token:
            raise NotAuthenticatedError("Token response lacks access_token or id_token")

        try:
            claims = id_token.verify_oauth2_token(raw_id_token, Request(), self._client_id)
        except (ValueError, GoogleAuthError) as exc:
            logger.error("[sign_in] id token verification failed")
            raise NotAuthenticatedError("ID token verification failed") from exc

        profile = UserProfile(
            user_id=str(claims["sub"]),
            display_name=claims.get("name", ""),
            email=claims.get("email", ""),
            photo_url=claims.get("picture", ""),
        )
        session = {
            "profile": profile.to_dict(),
            "access_token": access_token,
            "refresh_token": token_data.get("refresh_token"),
        }
        self._state.set(KEY_IDENTITY_SESSION, json.dumps(session))
        logger.info("[sign_in] user signed in; user_id:%s", profile.user_id)
        return profile

    def get_session(self) -> GoogleIdentitySession | None:
        """Return the active session, or None when nobody is signed in."""
        raw = self._state.get(KEY_IDENTITY_SESSION)
        if raw is None:
            return None
        data = json.loads(raw)
        credentials = Credentials(
            token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            token_uri=GOOGLE_TOKEN_URI,
            client_id=self._client_id,
            client_secret=self._client_secret,
            scopes=self._scopes,
        )
        return GoogleIdentitySession(UserProfile(**data["profile"]), credentials)

    def sign_out(self) -> None:
        self._state.delete(KEY_IDENTITY_SESSION)
        logger.info("[sign_out] session cleared")


def identity_provider_from_config(
    config: AppConfig, state: LocalStateStore
) -> GoogleIdentityProvider:
    """Construct a GoogleIdentityProvider from application configuration."""
    return GoogleIdentityProvider(
        client_id=config.client_id,
        client_secret=config.client_secret,
        state=state,
    )
