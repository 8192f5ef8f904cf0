"""Data models for Google Drive entries and folder paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Drive API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_MIME_TYPE = "mimeType"
FIELD_THUMBNAIL_LINK = "thumbnailLink"
FIELD_PARENTS = "parents"
FIELD_FILES = "files"
FIELD_NEXT_PAGE_TOKEN = "nextPageToken"

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
IMAGE_MIME_PREFIX = "image/"
VIDEO_MIME_PREFIX = "video/"

# Drive's implicit top-level container
DRIVE_ROOT_ID = "root"

ITEM_FIELDS = "id, name, mimeType, thumbnailLink, parents"


class ContentKind(str, Enum):
    """Classification of a Drive entry derived from its MIME type."""

    FOLDER = "folder"
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"


def classify_content_kind(mime_type: str | None) -> ContentKind:
    """Derive the content kind of an entry from its MIME type.

    Matching is case-insensitive: ``Application/VND.Google-Apps.Folder``
    is still a folder.
    """
    mime = (mime_type or "").strip().lower()
    if mime == FOLDER_MIME_TYPE:
        return ContentKind.FOLDER
    if mime.startswith(IMAGE_MIME_PREFIX):
        return ContentKind.IMAGE
    if mime.startswith(VIDEO_MIME_PREFIX):
        return ContentKind.VIDEO
    return ContentKind.OTHER


@dataclass(frozen=True)
class Item:
    """Snapshot of a single Drive entry (file or folder).

    Attributes:
        id: Provider-assigned opaque identifier.
        name: Display name.
        kind: Content kind derived from ``mime_type``.
        mime_type: Raw MIME type string as reported by Drive.
        thumbnail_link: Thumbnail URL, when Drive provides one.
        parents: Parent identifiers; the first one is the primary parent.
    """

    id: str
    name: str
    kind: ContentKind
    mime_type: str = ""
    thumbnail_link: str | None = None
    parents: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_folder(self) -> bool:
        return self.kind is ContentKind.FOLDER

    @property
    def is_media(self) -> bool:
        return self.kind in (ContentKind.IMAGE, ContentKind.VIDEO)

    @property
    def primary_parent(self) -> str | None:
        return self.parents[0] if self.parents else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "mime_type": self.mime_type,
            "thumbnail_link": self.thumbnail_link,
            "parents": list(self.parents),
        }


@dataclass(frozen=True)
class FolderPathEntry:
    """One breadcrumb step on the way from the access root to a folder."""

    id: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}


def parse_item(raw: dict[str, Any]) -> Item:
    """Map a raw Drive API file resource to an Item."""
    mime_type = raw.get(FIELD_MIME_TYPE, "")
    return Item(
        id=raw.get(FIELD_ID, ""),
        name=raw.get(FIELD_NAME, ""),
        kind=classify_content_kind(mime_type),
        mime_type=mime_type,
        thumbnail_link=raw.get(FIELD_THUMBNAIL_LINK),
        parents=tuple(raw.get(FIELD_PARENTS) or ()),
    )


def folders_first(items: list[Item]) -> list[Item]:
    """Return items re-sorted with folders ahead of files, then by name.

    Names are compared ordinally (case-sensitive, locale-independent).
    """
    return sorted(items, key=lambda item: (0 if item.is_folder else 1, item.name))
