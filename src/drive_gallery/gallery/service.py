"""Gallery service: sessions, settings, browsing and uploads for one caller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from drive_gallery.access.context import (
    AccessContext,
    access_context_from_state,
    extract_folder_id,
    resolve_target_folder,
)
from drive_gallery.access.store import (
    ACCESS_TYPE_FULL,
    ACCESS_TYPE_SHARED,
    KEY_HAS_FULL_ACCESS,
    KEY_SHARED_FOLDER_ID,
    UserRecord,
    local_state_from_config,
    user_record_store_from_config,
    utc_timestamp,
)
from drive_gallery.auth.identity import identity_provider_from_config
from drive_gallery.auth.tokens import TokenProvider
from drive_gallery.drive.client import drive_client_from_config
from drive_gallery.drive.listing import listing_client_from_config
from drive_gallery.drive.models import FolderPathEntry, Item, folders_first
from drive_gallery.drive.mutations import MutationClient
from drive_gallery.drive.paths import path_resolver_from_config
from drive_gallery.errors import AccessTypeMismatchError, NotAuthenticatedError
from drive_gallery.gallery.models import BrowseResult, DashboardStats

if TYPE_CHECKING:
    from drive_gallery.access.store import LocalStateStore, UserRecordStore
    from drive_gallery.auth.identity import GoogleIdentityProvider
    from drive_gallery.config import AppConfig
    from drive_gallery.drive.listing import ListingClient
    from drive_gallery.drive.paths import PathResolver
    from drive_gallery.drive.query import ContentFilter

logger = logging.getLogger(__name__)


class GalleryService:
    """Orchestrates identity, access resolution and Drive calls for a session."""

    def __init__(
        self,
        identity: GoogleIdentityProvider,
        tokens: TokenProvider,
        state: LocalStateStore,
        records: UserRecordStore,
        listing: ListingClient,
        paths: PathResolver,
        mutations: MutationClient,
    ) -> None:
        """Initialise the gallery service.

        Args:
            identity: Identity provider holding the caller's session.
            tokens: Credential cache for Drive calls.
            state: Local state store of the caller's session.
            records: Per-user remote record store.
            listing: Folder listing client.
            paths: Breadcrumb resolver, also used for root confinement checks.
            mutations: Folder creation and upload client.
        """
        self._identity = identity
        self._tokens = tokens
        self._state = state
        self._records = records
        self._listing = listing
        self._paths = paths
        self._mutations = mutations

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, token_data: dict[str, Any], full_access: bool) -> UserRecord:
        """Sign a user in with the access type they chose.

        The first login creates the user record and later logins refresh its
        profile fields. A later login choosing a different access type than
        the recorded one is rejected and the session is signed out again.

        Args:
            token_data: OAuth token response from the browser sign-in.
            full_access: True for full-account access, False for a shared folder.

        Returns:
            The user's record.

        Raises:
            NotAuthenticatedError: If the sign-in tokens are rejected.
            AccessTypeMismatchError: If the account is registered with the
                other access type.
        """
        profile = self._identity.sign_in(token_data)
        requested = ACCESS_TYPE_FULL if full_access else ACCESS_TYPE_SHARED

        record = self._records.get(profile.user_id)
        if record is None:
            now = utc_timestamp()
            record = UserRecord(
                user_id=profile.user_id,
                email=profile.email,
                display_name=profile.display_name,
                photo_url=profile.photo_url,
                access_type=requested,
                shared_folder_id=None,
                created_at=now,
                updated_at=now,
            )
            self._records.put(record)
            logger.info(
                "[login] first login, record created; user_id:%s;access_type:%s",
                profile.user_id,
                requested,
            )
        elif record.access_type != requested:
            logger.warning(
                "[login] access type mismatch; user_id:%s;recorded:%s;requested:%s",
                profile.user_id,
                record.access_type,
                requested,
            )
            self.logout()
            raise AccessTypeMismatchError(record.access_type, requested)
        else:
            record.email = profile.email
            record.display_name = profile.display_name
            record.photo_url = profile.photo_url
            record.updated_at = utc_timestamp()
            self._records.put(record)

        self._tokens.store(str(token_data["access_token"]))
        self._mirror(record)
        return record

    def logout(self) -> None:
        """Sign out and clear the cached credential and access context."""
        self._identity.sign_out()
        self._tokens.clear()
        self._state.delete(KEY_HAS_FULL_ACCESS)
        self._state.delete(KEY_SHARED_FOLDER_ID)
        logger.info("[logout] session state cleared")

    def current_user(self) -> UserRecord:
        """Return the signed-in user's record and refresh the local mirror.

        Raises:
            NotAuthenticatedError: If nobody is signed in or no record exists.
        """
        session = self._identity.get_session()
        if session is None:
            raise NotAuthenticatedError("No active identity session")
        record = self._records.get(session.profile.user_id)
        if record is None:
            raise NotAuthenticatedError(f"No user record for {session.profile.user_id}")
        self._mirror(record)
        return record

    def _mirror(self, record: UserRecord) -> None:
        self._state.set(KEY_HAS_FULL_ACCESS, "true" if record.has_full_access else "false")
        if record.shared_folder_id:
            self._state.set(KEY_SHARED_FOLDER_ID, record.shared_folder_id)
        else:
            self._state.delete(KEY_SHARED_FOLDER_ID)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def save_shared_folder(self, link_or_id: str) -> str:
        """Store the shared root folder taken from a Drive share link.

        Returns:
            The cleaned folder identifier.
        """
        folder_id = extract_folder_id(link_or_id)
        record = self.current_user()
        record.shared_folder_id = folder_id
        record.updated_at = utc_timestamp()
        self._records.put(record)
        self._mirror(record)
        logger.info(
            "[save_shared_folder] shared folder saved; user_id:%s;folder_id:%s",
            record.user_id,
            folder_id,
        )
        return folder_id

    def remove_shared_folder(self) -> None:
        record = self.current_user()
        record.shared_folder_id = None
        record.updated_at = utc_timestamp()
        self._records.put(record)
        self._mirror(record)
        logger.info("[remove_shared_folder] shared folder removed; user_id:%s", record.user_id)

    # ------------------------------------------------------------------
    # Browsing
    # ------------------------------------------------------------------

    def access_context(self, link_folder_id: str | None = None) -> AccessContext:
        return access_context_from_state(self._state, link_folder_id)

    def folder_path(
        self, folder_id: str | None = None, link_folder_id: str | None = None
    ) -> list[FolderPathEntry]:
        """Return the breadcrumb for a folder, confined to the session's root."""
        context = self.access_context(link_folder_id)
        target = resolve_target_folder(folder_id, context)
        return self._paths.resolve_path(target, context.root_id)

    def ensure_accessible(self, item_id: str, context: AccessContext) -> None:
        """Refuse identifiers outside the root of a shared or link session.

        Raises:
            FolderNotAccessibleError: If ``item_id`` is not below the root.
        """
        if not context.is_confined or item_id == context.root_id:
            return
        self._paths.resolve_path(item_id, context.root_id)

    def browse(
        self,
        folder_id: str | None = None,
        content_filter: ContentFilter | None = None,
        link_folder_id: str | None = None,
    ) -> BrowseResult:
        """List a folder the way the gallery shows it.

        Args:
            folder_id: Folder to open; defaults to the session's root.
            content_filter: Optional kind and name filter.
            link_folder_id: Folder identifier from a shared-link URL.

        Returns:
            BrowseResult with folders-first items and the breadcrumb.
        """
        context = self.access_context(link_folder_id)
        target = resolve_target_folder(folder_id, context)
        # Resolving the path also rejects folders outside a confined root.
        path = self._paths.resolve_path(target, context.root_id)
        items = folders_first(self._listing.list_items(target, content_filter))
        logger.info(
            "[browse] folder listed; mode:%s;folder_id:%s;item_count:%d",
            context.mode.value,
            target,
            len(items),
        )
        return BrowseResult(folder_id=target, items=items, path=path)

    def preview(self, item_id: str, link_folder_id: str | None = None) -> tuple[Item, bytes]:
        """Fetch an item and its media content for the preview modal."""
        context = self.access_context(link_folder_id)
        self.ensure_accessible(item_id, context)
        item = self._listing.get_item(item_id)
        return item, self._listing.download(item_id)

    def dashboard_stats(self, link_folder_id: str | None = None) -> DashboardStats:
        """Count folders and media in the session's root folder.

        Media per folder counts images and videos directly inside each
        immediate subfolder.
        """
        context = self.access_context(link_folder_id)
        target = resolve_target_folder(None, context)
        items = self._listing.list_items(target)
        folders = [item for item in items if item.is_folder]
        stats = DashboardStats(
            total_folders=len(folders),
            total_media=sum(1 for item in items if item.is_media),
        )
        for folder in folders:
            children = self._listing.list_items(folder.id)
            stats.media_per_folder[folder.name] = sum(1 for child in children if child.is_media)
        return stats

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_folder(
        self,
        name: str,
        parent_id: str | None = None,
        link_folder_id: str | None = None,
    ) -> str:
        """Create a folder in ``parent_id`` (default: the session's root).

        Returns:
            The parent folder the new folder was created in.
        """
        context = self.access_context(link_folder_id)
        target = resolve_target_folder(parent_id, context)
        self.ensure_accessible(target, context)
        self._mutations.create_folder(name, target)
        return target

    def upload(
        self,
        file_bytes: bytes,
        file_name: str,
        mime_type: str,
        parent_id: str | None = None,
        link_folder_id: str | None = None,
    ) -> str:
        """Upload a file into ``parent_id`` (default: the session's root).

        Returns:
            The parent folder the file was uploaded to.
        """
        context = self.access_context(link_folder_id)
        target = resolve_target_folder(parent_id, context)
        self.ensure_accessible(target, context)
        self._mutations.upload(file_bytes, file_name, mime_type, target)
        return target


def gallery_service_from_config(config: AppConfig, session_key: str) -> GalleryService:
    """Construct a GalleryService for one browser session.

    Wires the session's local state into the identity provider and token
    cache, then builds the Drive clients on top of them.

    Args:
        config: Application configuration instance.
        session_key: Opaque key identifying the calling browser session.

    Returns:
        Configured GalleryService instance.
    """
    state = local_state_from_config(config, session_key)
    identity = identity_provider_from_config(config, state)
    tokens = TokenProvider(identity=identity, state=state)
    client = drive_client_from_config(config, tokens)
    listing = listing_client_from_config(config, client)
    return GalleryService(
        identity=identity,
        tokens=tokens,
        state=state,
        records=user_record_store_from_config(config),
        listing=listing,
        paths=path_resolver_from_config(config, listing),
        mutations=MutationClient(client),
    )
