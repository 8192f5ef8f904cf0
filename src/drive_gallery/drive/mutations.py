"""Folder creation and media upload against the Drive API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from drive_gallery.drive.models import FOLDER_MIME_TYPE
from drive_gallery.errors import ValidationError

if TYPE_CHECKING:
    from drive_gallery.drive.client import DriveClient

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_MIME_TYPE = "application/octet-stream"


class MutationClient:
    """Creates folders and uploads files below a parent folder.

    Writes are single remote calls; callers re-list the parent to observe
    the new entry.
    """

    def __init__(self, drive_client: DriveClient) -> None:
        self._drive = drive_client

    def create_folder(self, name: str, parent_id: str) -> None:
        """Create a folder named ``name`` inside ``parent_id``.

        Raises:
            ValidationError: If the name is empty or blank.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Folder name must not be empty")

        created = self._drive.post_json(
            "/files",
            {"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
            params={"fields": "id"},
        )
        logger.info(
            "[create_folder] folder created; parent_id:%s;folder_id:%s",
            parent_id,
            created.get("id", ""),
        )

    def upload(self, file_bytes: bytes, file_name: str, mime_type: str, parent_id: str) -> None:
        """Upload a file into ``parent_id`` with a multipart request.

        Raises:
            ValidationError: If the content or the file name is empty.
        """
        if not file_bytes:
            raise ValidationError("Upload content must not be empty")
        if not (file_name or "").strip():
            raise ValidationError("Upload file name must not be empty")

        created = self._drive.post_multipart(
            self._drive.upload_url,
            {"name": file_name, "parents": [parent_id]},
            file_bytes,
            mime_type or DEFAULT_UPLOAD_MIME_TYPE,
        )
        logger.info(
            "[upload] file uploaded; parent_id:%s;file_id:%s;bytes:%d",
            parent_id,
            created.get("id", ""),
            len(file_bytes),
        )
