"""Google Drive REST client with single-retry-after-401 request execution."""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode

from drive_gallery.errors import AuthExpiredError, RemoteRequestError, TransportError

if TYPE_CHECKING:
    from drive_gallery.auth.tokens import TokenProvider
    from drive_gallery.config import AppConfig

logger = logging.getLogger(__name__)

DRIVE_API_BASE_URL = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"

HTTP_UNAUTHORIZED = 401


class _Unauthorized(Exception):
    """Internal signal: the Drive API answered 401."""


class DriveClient:
    """Authenticated client for the Google Drive v3 REST API.

    Every request goes through :meth:`execute`, which retries exactly once
    after refreshing the credential when the API answers 401.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str = DRIVE_API_BASE_URL,
        upload_url: str = DRIVE_UPLOAD_URL,
    ) -> None:
        """Initialise the Drive client.

        Args:
            token_provider: Source of bearer credentials.
            base_url: Drive API base URL; relative paths are resolved against it.
            upload_url: Media upload endpoint.
        """
        self._tokens = token_provider
        self._base_url = base_url.rstrip("/")
        self._upload_url = upload_url

    @property
    def upload_url(self) -> str:
        return self._upload_url

    def _url(self, path: str, params: dict[str, Any] | None) -> str:
        url = path if path.startswith(("http://", "https://")) else f"{self._base_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    def _send(
        self,
        method: str,
        url: str,
        token: str,
        body: bytes | None,
        content_type: str | None,
    ) -> bytes:
        headers = {"Authorization": f"Bearer {token}"}
        if content_type is not None:
            headers["Content-Type"] = content_type
        req = urllib_request.Request(url, data=body, headers=headers, method=method)
        try:
            with urllib_request.urlopen(req) as resp:
                return resp.read()  # type: ignore[no-any-return]
        except HTTPError as exc:
            if exc.code == HTTP_UNAUTHORIZED:
                raise _Unauthorized() from exc
            raw = exc.read()
            try:
                detail = json.loads(raw).get("error", {}).get("message", exc.reason)
            except Exception:
                detail = exc.reason
            logger.error(
                "[_send] drive request failed; method:%s;status:%d;detail:%s",
                method,
                exc.code,
                detail,
            )
            raise RemoteRequestError(exc.code, str(exc.reason), str(detail)) from exc
        except (URLError, OSError) as exc:
            logger.error("[_send] no response from drive; method:%s;url:%s", method, url)
            raise TransportError(f"No response from {url}: {exc}") from exc

    def execute(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: bytes | None = None,
        content_type: str | None = None,
    ) -> bytes:
        """Issue a request, retrying once with a refreshed credential on 401.

        Args:
            method: HTTP method.
            path: Path relative to the API base URL, or an absolute URL.
            params: Query string parameters.
            body: Raw request body.
            content_type: Content-Type header for ``body``.

        Returns:
            Raw response body.

        Raises:
            NotAuthenticatedError: If no credential can be obtained.
            AuthExpiredError: If the retried request is also rejected with 401.
            RemoteRequestError: On any other non-2xx status.
            TransportError: If no response was received.
        """
        url = self._url(path, params)
        token = self._tokens.get_token()
        try:
            return self._send(method, url, token, body, content_type)
        except _Unauthorized:
            logger.info("[execute] credential rejected, refreshing; method:%s", method)

        token = self._tokens.refresh()
        try:
            return self._send(method, url, token, body, content_type)
        except _Unauthorized as exc:
            logger.error("[execute] refreshed credential rejected; method:%s", method)
            raise AuthExpiredError("Drive API rejected the refreshed credential") from exc

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Perform an authenticated GET and parse the JSON body."""
        raw = self.execute("GET", path, params=params)
        return json.loads(raw)  # type: ignore[no-any-return]

    def get_content(self, path: str, params: dict[str, Any] | None = None) -> bytes:
        """Perform an authenticated GET and return the raw body bytes."""
        return self.execute("GET", path, params=params)

    def post_json(
        self,
        path: str,
        payload: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """POST a JSON payload and parse the JSON response."""
        raw = self.execute(
            "POST",
            path,
            params=params,
            body=json.dumps(payload).encode("utf-8"),
            content_type="application/json; charset=UTF-8",
        )
        return json.loads(raw) if raw else {}

    def post_multipart(
        self,
        url: str,
        metadata: dict[str, Any],
        content: bytes,
        mime_type: str,
    ) -> dict[str, Any]:
        """POST a ``multipart/related`` body: JSON metadata then media bytes."""
        body, content_type = encode_multipart_related(metadata, content, mime_type)
        raw = self.execute(
            "POST",
            url,
            params={"uploadType": "multipart"},
            body=body,
            content_type=content_type,
        )
        return json.loads(raw) if raw else {}


def encode_multipart_related(
    metadata: dict[str, Any], content: bytes, mime_type: str
) -> tuple[bytes, str]:
    """Encode a Drive multipart upload body.

    Returns:
        Tuple of (body bytes, Content-Type header value).
    """
    boundary = f"drive-gallery-{uuid.uuid4().hex}"
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + content + tail, f"multipart/related; boundary={boundary}"


def drive_client_from_config(config: AppConfig, token_provider: TokenProvider) -> DriveClient:
    """Construct a DriveClient from application configuration.

    Args:
        config: Application configuration instance.
        token_provider: Credential source for the calling session.

    Returns:
        Configured DriveClient instance.
    """
    return DriveClient(
        token_provider=token_provider,
        base_url=config.drive_api_base_url,
        upload_url=config.drive_upload_url,
    )
