"""Session state persistence: local key/value state and per-user records.

Both stores are backed by Azure Blob Storage in deployment. The local state
store mirrors what a browser keeps in its device storage (current credential,
access-mode flag, shared root) so every navigation avoids a round trip to the
user record.
"""

from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

if TYPE_CHECKING:
    from drive_gallery.config import AppConfig

logger = logging.getLogger(__name__)

# Local state keys
KEY_ACCESS_TOKEN = "access_token"
KEY_HAS_FULL_ACCESS = "has_full_access"
KEY_SHARED_FOLDER_ID = "shared_folder_id"

ACCESS_TYPE_FULL = "full"
ACCESS_TYPE_SHARED = "shared"

DEFAULT_STATE_CONTAINER = "drive-gallery-state"
DEFAULT_LOCAL_STATE_PREFIX = "local-state/"
DEFAULT_USER_RECORD_PREFIX = "users/"


class LocalStateStore(Protocol):
    """String-valued key/value store for session state."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStateStore:
    """In-process local state store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class BlobStateStore:
    """Local state store keeping one UTF-8 blob per key."""

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_STATE_CONTAINER,
        blob_prefix: str = DEFAULT_LOCAL_STATE_PREFIX,
    ) -> None:
        """Initialise the blob-backed state store.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container holding the state blobs.
            blob_prefix: Prefix for state blob paths (e.g. "local-state/<user>/").
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob_prefix = blob_prefix

    def get(self, key: str) -> str | None:
        blob_path = f"{self._blob_prefix}{key}"
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(blob_path)
            data = blob_client.download_blob().readall()
            return data.decode("utf-8")
        except ResourceNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(Exception):
            container_client.create_container()

        blob_client = container_client.get_blob_client(f"{self._blob_prefix}{key}")
        blob_client.upload_blob(value.encode("utf-8"), overwrite=True)
        logger.info("[local_state] stored; key:%s", key)

    def delete(self, key: str) -> None:
        container_client = self._blob_service.get_container_client(self._container)
        blob_client = container_client.get_blob_client(f"{self._blob_prefix}{key}")
        try:
            blob_client.delete_blob()
            logger.info("[local_state] deleted; key:%s", key)
        except ResourceNotFoundError:
            pass


def utc_timestamp() -> str:
    return datetime.now(tz=UTC).isoformat()


@dataclass
class UserRecord:
    """Per-user document held in the remote record store.

    Attributes:
        user_id: Identity provider subject identifier.
        email: Account e-mail address.
        display_name: Name shown in the gallery header.
        photo_url: Avatar URL.
        access_type: ``"full"`` or ``"shared"``.
        shared_folder_id: Shared root folder identifier, if configured.
        created_at: ISO timestamp of the first login.
        updated_at: ISO timestamp of the last login or settings change.
    """

    user_id: str
    email: str = ""
    display_name: str = ""
    photo_url: str = ""
    access_type: str = ACCESS_TYPE_SHARED
    shared_folder_id: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def has_full_access(self) -> bool:
        return self.access_type == ACCESS_TYPE_FULL

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> UserRecord:
        data = json.loads(raw)
        return cls(
            user_id=data["user_id"],
            email=data.get("email") or "",
            display_name=data.get("display_name") or "",
            photo_url=data.get("photo_url") or "",
            access_type=data.get("access_type") or ACCESS_TYPE_SHARED,
            shared_folder_id=data.get("shared_folder_id"),
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
        )


class UserRecordStore:
    """Per-user records stored as JSON blobs keyed by user ID."""

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_STATE_CONTAINER,
        blob_prefix: str = DEFAULT_USER_RECORD_PREFIX,
    ) -> None:
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob_prefix = blob_prefix

    def _blob_path(self, user_id: str) -> str:
        return f"{self._blob_prefix}{user_id}.json"

    def get(self, user_id: str) -> UserRecord | None:
        """Read a user record.

        Returns:
            The stored record, or None if the user has never logged in.
        """
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(self._blob_path(user_id))
            data = blob_client.download_blob().readall()
        except ResourceNotFoundError:
            logger.info("[user_records] no record found; user_id:%s", user_id)
            return None
        return UserRecord.from_json(data.decode("utf-8"))

    def put(self, record: UserRecord) -> None:
        """Write a user record, creating the container if needed."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(Exception):
            container_client.create_container()

        blob_client = container_client.get_blob_client(self._blob_path(record.user_id))
        blob_client.upload_blob(record.to_json().encode("utf-8"), overwrite=True)
        logger.info(
            "[user_records] stored; user_id:%s;access_type:%s",
            record.user_id,
            record.access_type,
        )


def local_state_from_config(config: AppConfig, session_key: str) -> BlobStateStore:
    """Construct the local state store for one browser session.

    Args:
        config: Application configuration instance.
        session_key: Opaque key identifying the calling browser session.

    Returns:
        BlobStateStore scoped to the session.
    """
    return BlobStateStore(
        storage_connection_string=config.storage_connection_string,
        container=config.state_container,
        blob_prefix=f"{DEFAULT_LOCAL_STATE_PREFIX}{session_key}/",
    )


def user_record_store_from_config(config: AppConfig) -> UserRecordStore:
    """Construct a UserRecordStore from application configuration."""
    return UserRecordStore(
        storage_connection_string=config.storage_connection_string,
        container=config.state_container,
    )
