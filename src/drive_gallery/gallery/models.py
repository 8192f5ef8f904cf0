"""Result models returned by the gallery service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from drive_gallery.drive.models import FolderPathEntry, Item


@dataclass
class BrowseResult:
    """One folder as shown by the gallery: its path and its children.

    Attributes:
        folder_id: Folder that was listed.
        items: Children, folders first, then by name.
        path: Breadcrumb from the access root down to ``folder_id``.
    """

    folder_id: str
    items: list[Item] = field(default_factory=list)
    path: list[FolderPathEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "folder_id": self.folder_id,
            "items": [item.to_dict() for item in self.items],
            "path": [entry.to_dict() for entry in self.path],
        }


@dataclass
class DashboardStats:
    """Counts shown on the dashboard for the session's root folder."""

    total_folders: int = 0
    total_media: int = 0
    media_per_folder: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_folders": self.total_folders,
            "total_media": self.total_media,
            "media_per_folder": dict(self.media_per_folder),
        }
