"""Exception taxonomy shared by every gallery component."""


class GalleryError(Exception):
    """Base class for all gallery errors."""


class ConfigurationError(GalleryError):
    """Raised when no target folder can be resolved for the current access mode."""


class NotAuthenticatedError(GalleryError):
    """Raised when no identity session is active."""


class AuthExpiredError(GalleryError):
    """Raised when the Drive API rejects a freshly refreshed credential."""


class RemoteRequestError(GalleryError):
    """Raised when the Drive API returns a non-2xx, non-auth response."""

    def __init__(self, status_code: int, status_text: str, detail: str | None = None) -> None:
        message = f"Drive API error {status_code}: {status_text}"
        if detail and detail != status_text:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.detail = detail


class TransportError(GalleryError):
    """Raised when a request never reached the Drive API or no response came back."""


class ValidationError(GalleryError):
    """Raised on malformed caller input."""


class FolderNotAccessibleError(GalleryError):
    """Raised when an identifier lies outside the session's access root."""

    def __init__(self, item_id: str, root_id: str) -> None:
        super().__init__(f"Item {item_id} is not accessible under root {root_id}")
        self.item_id = item_id
        self.root_id = root_id


class AccessTypeMismatchError(GalleryError):
    """Raised when a login chooses an access type other than the one on record."""

    def __init__(self, recorded: str, requested: str) -> None:
        super().__init__(f"Account is registered with {recorded} access, not {requested}")
        self.recorded = recorded
        self.requested = requested


class CycleDetectedError(GalleryError):
    """Raised when walking parent links revisits a folder."""


class PathTooDeepError(GalleryError):
    """Raised when walking parent links exceeds the depth ceiling."""
