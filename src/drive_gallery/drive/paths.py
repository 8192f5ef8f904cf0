"""Breadcrumb resolution by walking parent links up to the access root."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from drive_gallery.drive.models import FolderPathEntry
from drive_gallery.errors import CycleDetectedError, FolderNotAccessibleError, PathTooDeepError

if TYPE_CHECKING:
    from drive_gallery.config import AppConfig
    from drive_gallery.drive.listing import ListingClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATH_DEPTH = 64


class PathResolver:
    """Builds the root-to-leaf folder path for a folder."""

    def __init__(self, listing_client: ListingClient, max_depth: int = DEFAULT_MAX_PATH_DEPTH) -> None:
        self._listing = listing_client
        self._max_depth = max_depth

    def resolve_path(self, folder_id: str, root_id: str | None = None) -> list[FolderPathEntry]:
        """Walk parent links from ``folder_id`` up to the access root.

        The walk stops at ``root_id`` when one is given (shared and link
        sessions) or at the first entry without parents (full access). The
        stopping entry is included as the first element.

        Args:
            folder_id: Folder the path ends at.
            root_id: Access root the session is confined to, if any.

        Returns:
            Path entries ordered root first, ``folder_id`` last.

        Raises:
            CycleDetectedError: If a folder is reached twice.
            PathTooDeepError: If the walk exceeds the depth ceiling.
            FolderNotAccessibleError: If the top of the drive is reached
                without meeting ``root_id``.
        """
        path: list[FolderPathEntry] = []
        visited: set[str] = set()
        current = folder_id

        while True:
            if current in visited:
                logger.error("[resolve_path] cycle detected; folder_id:%s;at:%s", folder_id, current)
                raise CycleDetectedError(f"Folder {current} reached twice while resolving {folder_id}")
            if len(visited) >= self._max_depth:
                logger.error(
                    "[resolve_path] depth ceiling reached; folder_id:%s;max_depth:%d",
                    folder_id,
                    self._max_depth,
                )
                raise PathTooDeepError(
                    f"Path of {folder_id} exceeds {self._max_depth} levels"
                )
            visited.add(current)

            item = self._listing.get_item(current)
            path.insert(0, FolderPathEntry(id=item.id or current, name=item.name))

            if root_id is not None and root_id in (current, item.id):
                return path

            parent = item.primary_parent
            if parent is None:
                if root_id is not None:
                    raise FolderNotAccessibleError(folder_id, root_id)
                return path
            current = parent


def path_resolver_from_config(config: AppConfig, listing_client: ListingClient) -> PathResolver:
    """Construct a PathResolver from application configuration."""
    return PathResolver(listing_client=listing_client, max_depth=config.max_path_depth)
