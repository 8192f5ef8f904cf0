"""Folder listing and single-entry lookups against the Drive API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from drive_gallery.drive.models import (
    FIELD_FILES,
    FIELD_NEXT_PAGE_TOKEN,
    ITEM_FIELDS,
    Item,
    parse_item,
)
from drive_gallery.drive.query import ORDER_BY_NAME, ContentFilter, apply_content_filter, build_query

if TYPE_CHECKING:
    from drive_gallery.config import AppConfig
    from drive_gallery.drive.client import DriveClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class ListingClient:
    """Lists folder children and fetches individual entries."""

    def __init__(self, drive_client: DriveClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        """Initialise the listing client.

        Args:
            drive_client: Authenticated DriveClient instance.
            page_size: Number of entries requested per page.
        """
        self._drive = drive_client
        self._page_size = page_size

    def list_items(self, target_id: str, content_filter: ContentFilter | None = None) -> list[Item]:
        """List the direct, non-trashed children of a folder.

        Follows ``nextPageToken`` until every page has been read. Results come
        back in name order as requested from Drive; the name substring and
        the kind test are then applied client-side without reordering.

        Args:
            target_id: Folder whose children are listed.
            content_filter: Optional kind and name filter.

        Returns:
            Items in Drive's name order.
        """
        params: dict[str, str | int] = {
            "q": build_query(target_id, content_filter),
            "fields": f"{FIELD_NEXT_PAGE_TOKEN}, {FIELD_FILES}({ITEM_FIELDS})",
            "orderBy": ORDER_BY_NAME,
            "pageSize": self._page_size,
        }

        items: list[Item] = []
        page_count = 0
        while True:
            response = self._drive.get_json("/files", params=params)
            page_count += 1
            items.extend(parse_item(raw) for raw in response.get(FIELD_FILES, []))
            next_token = response.get(FIELD_NEXT_PAGE_TOKEN)
            if not next_token:
                break
            params = {**params, "pageToken": next_token}

        result = apply_content_filter(items, content_filter)
        logger.info(
            "[list_items] listed folder; folder_id:%s;page_count:%d;item_count:%d",
            target_id,
            page_count,
            len(result),
        )
        return result

    def get_item(self, item_id: str) -> Item:
        """Fetch a single entry by identifier."""
        raw = self._drive.get_json(f"/files/{item_id}", params={"fields": ITEM_FIELDS})
        return parse_item(raw)

    def download(self, item_id: str) -> bytes:
        """Fetch the media content of a file."""
        content = self._drive.get_content(f"/files/{item_id}", params={"alt": "media"})
        logger.info("[download] fetched content; item_id:%s;bytes:%d", item_id, len(content))
        return content


def listing_client_from_config(config: AppConfig, drive_client: DriveClient) -> ListingClient:
    """Construct a ListingClient from application configuration."""
    return ListingClient(drive_client=drive_client, page_size=config.page_size)
