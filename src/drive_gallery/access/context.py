"""Access mode resolution: which folder a session may browse by default."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlparse

from drive_gallery.access.store import KEY_HAS_FULL_ACCESS, KEY_SHARED_FOLDER_ID
from drive_gallery.drive.models import DRIVE_ROOT_ID
from drive_gallery.errors import ConfigurationError, ValidationError

if TYPE_CHECKING:
    from drive_gallery.access.store import LocalStateStore


class AccessMode(str, Enum):
    """How the current session reaches Drive."""

    FULL = "full"
    SHARED = "shared"
    LINK = "link"


@dataclass(frozen=True)
class AccessContext:
    """Resolved access mode plus the root the session is confined to.

    Attributes:
        mode: Access mode of the session.
        root_id: Shared root (SHARED), URL folder (LINK) or None (FULL).
    """

    mode: AccessMode
    root_id: str | None = None

    @property
    def is_confined(self) -> bool:
        return self.mode is not AccessMode.FULL

    def to_dict(self) -> dict[str, str | None]:
        return {"mode": self.mode.value, "root_id": self.root_id}


def resolve_target_folder(explicit_id: str | None, context: AccessContext) -> str:
    """Pick the folder identifier a listing or navigation should query.

    Args:
        explicit_id: Folder the caller asked for, if any.
        context: Access context of the session.

    Returns:
        Folder identifier to query.

    Raises:
        ConfigurationError: If no folder can be resolved for the mode.
    """
    if context.mode is AccessMode.FULL:
        return explicit_id or DRIVE_ROOT_ID

    if explicit_id and explicit_id != DRIVE_ROOT_ID:
        return explicit_id
    if not context.root_id:
        if context.mode is AccessMode.LINK:
            raise ConfigurationError("Link access requires a folder identifier in the URL")
        raise ConfigurationError("No shared folder is configured for this account")
    return context.root_id


def extract_folder_id(link_or_id: str) -> str:
    """Extract a folder identifier from a Drive share link or a bare id.

    Accepts ``https://drive.google.com/drive/folders/<id>?usp=sharing``,
    ``https://drive.google.com/open?id=<id>`` and plain identifiers, with
    any trailing query string removed.

    Raises:
        ValidationError: If no identifier can be found.
    """
    value = (link_or_id or "").strip()
    parsed = urlparse(value)
    ids = parse_qs(parsed.query).get("id", [])
    if ids:
        folder_id = ids[0]
    else:
        folder_id = value.split("?")[0].split("#")[0].rstrip("/").split("/")[-1]
    folder_id = folder_id.strip()
    if not folder_id:
        raise ValidationError(f"Could not extract a folder identifier from: {link_or_id!r}")
    return folder_id


def access_context_from_state(
    state: LocalStateStore, link_folder_id: str | None = None
) -> AccessContext:
    """Derive the session's access context.

    A folder identifier taken from the navigation URL always selects link
    mode; otherwise the locally mirrored full-access flag decides.
    """
    if link_folder_id:
        return AccessContext(AccessMode.LINK, extract_folder_id(link_folder_id))
    if state.get(KEY_HAS_FULL_ACCESS) == "true":
        return AccessContext(AccessMode.FULL)
    shared = state.get(KEY_SHARED_FOLDER_ID)
    return AccessContext(AccessMode.SHARED, extract_folder_id(shared) if shared else None)
