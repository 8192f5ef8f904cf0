"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Domain constants
    have sensible defaults but can be overridden via environment variables.
    """

    # Required: no defaults, fail at startup if missing
    client_id: str
    client_secret: str
    storage_connection_string: str

    # Domain constants: defaults provided, overridable via env
    state_container: str = "drive-gallery-state"
    drive_api_base_url: str = "https://www.googleapis.com/drive/v3"
    drive_upload_url: str = "https://www.googleapis.com/upload/drive/v3/files"
    page_size: int = 100
    max_path_depth: int = 64


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        DG_CLIENT_ID: Google OAuth client ID.
        DG_CLIENT_SECRET: Google OAuth client secret.
        AzureWebJobsStorage: Azure Storage account connection string.

    Optional environment variables (with defaults):
        DG_STATE_CONTAINER: Blob container for session state and user records.
        DG_DRIVE_API_BASE_URL: Drive REST API base URL.
        DG_DRIVE_UPLOAD_URL: Drive media upload endpoint.
        DG_PAGE_SIZE: Entries requested per listing page (default: 100).
        DG_MAX_PATH_DEPTH: Ceiling on parent-link walks (default: 64).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        client_id=os.environ["DG_CLIENT_ID"],
        client_secret=os.environ["DG_CLIENT_SECRET"],
        storage_connection_string=os.environ["AzureWebJobsStorage"],  # noqa: SIM112
        state_container=os.environ.get("DG_STATE_CONTAINER", "drive-gallery-state"),
        drive_api_base_url=os.environ.get(
            "DG_DRIVE_API_BASE_URL", "https://www.googleapis.com/drive/v3"
        ),
        drive_upload_url=os.environ.get(
            "DG_DRIVE_UPLOAD_URL", "https://www.googleapis.com/upload/drive/v3/files"
        ),
        page_size=int(os.environ.get("DG_PAGE_SIZE", "100")),
        max_path_depth=int(os.environ.get("DG_MAX_PATH_DEPTH", "64")),
    )
