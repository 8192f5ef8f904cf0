"""Drive search-query construction and client-side content filtering."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from drive_gallery.drive.models import (
    FOLDER_MIME_TYPE,
    IMAGE_MIME_PREFIX,
    VIDEO_MIME_PREFIX,
    ContentKind,
    Item,
)
from drive_gallery.errors import ValidationError

ORDER_BY_NAME = "name"


class FilterKind(str, Enum):
    """Content filters a listing can request."""

    ALL = "all"
    IMAGES = "images"
    VIDEOS = "videos"
    FOLDERS = "folders"


_KIND_FOR_FILTER = {
    FilterKind.IMAGES: ContentKind.IMAGE,
    FilterKind.VIDEOS: ContentKind.VIDEO,
    FilterKind.FOLDERS: ContentKind.FOLDER,
}


@dataclass(frozen=True)
class ContentFilter:
    """Kind filter plus an optional case-insensitive name substring."""

    kind: FilterKind = FilterKind.ALL
    name_contains: str | None = None

    @classmethod
    def parse(cls, kind: str | None = None, name: str | None = None) -> ContentFilter:
        """Build a filter from loose string input (query parameters).

        Raises:
            ValidationError: If ``kind`` is not a known filter.
        """
        try:
            filter_kind = FilterKind((kind or FilterKind.ALL.value).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown content filter: {kind}") from exc
        return cls(kind=filter_kind, name_contains=name or None)

    def matches(self, item: Item) -> bool:
        """Return True when the item survives both the kind and name tests."""
        wanted = _KIND_FOR_FILTER.get(self.kind)
        if wanted is not None and item.kind is not wanted:
            return False
        if self.name_contains and self.name_contains.lower() not in item.name.lower():
            return False
        return True


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class DriveQueryBuilder:
    """Fluent builder for Drive ``q`` search expressions joined with ``and``."""

    def __init__(self) -> None:
        self._conditions: list[str] = []

    def in_parents(self, parent_id: str) -> DriveQueryBuilder:
        self._conditions.append(f"{_quote(parent_id)} in parents")
        return self

    def not_trashed(self) -> DriveQueryBuilder:
        self._conditions.append("trashed=false")
        return self

    def kind(self, filter_kind: FilterKind) -> DriveQueryBuilder:
        """Add the MIME clause for a filter kind; ``ALL`` adds nothing."""
        if filter_kind is FilterKind.IMAGES:
            self._conditions.append(f"(mimeType contains {_quote(IMAGE_MIME_PREFIX)})")
        elif filter_kind is FilterKind.VIDEOS:
            self._conditions.append(f"(mimeType contains {_quote(VIDEO_MIME_PREFIX)})")
        elif filter_kind is FilterKind.FOLDERS:
            self._conditions.append(f"(mimeType={_quote(FOLDER_MIME_TYPE)})")
        return self

    def build(self) -> str:
        return " and ".join(self._conditions)


def build_query(target_id: str, content_filter: ContentFilter | None = None) -> str:
    """Build the children query for a folder.

    Args:
        target_id: Folder whose direct children are listed.
        content_filter: Optional filter; only its kind reaches the server,
            the name substring is applied client-side.

    Returns:
        Drive ``q`` expression.
    """
    content_filter = content_filter or ContentFilter()
    return DriveQueryBuilder().in_parents(target_id).not_trashed().kind(content_filter.kind).build()


def apply_content_filter(items: list[Item], content_filter: ContentFilter | None) -> list[Item]:
    """Filter already-fetched items, preserving their relative order."""
    if content_filter is None:
        return list(items)
    return [item for item in items if content_filter.matches(item)]
