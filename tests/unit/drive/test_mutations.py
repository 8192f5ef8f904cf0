"""Unit tests for drive/mutations.py: MutationClient behaviour."""

import re
from typing import Any
from unittest.mock import MagicMock

import pytest

from drive_gallery.drive.listing import ListingClient
from drive_gallery.drive.models import FOLDER_MIME_TYPE, ContentKind
from drive_gallery.drive.mutations import MutationClient
from drive_gallery.errors import RemoteRequestError, ValidationError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


def _make_mutations() -> tuple[MutationClient, MagicMock]:
    """Return (mutation_client, mock_drive_client)."""
    mock_drive = MagicMock()
    mock_drive.upload_url = UPLOAD_URL
    mock_drive.post_json.return_value = {"id": "new-1"}
    mock_drive.post_multipart.return_value = {"id": "new-2"}
    return MutationClient(drive_client=mock_drive), mock_drive


class FakeDrive:
    """In-memory Drive stand-in that reflects writes into later listings."""

    upload_url = UPLOAD_URL

    def __init__(self) -> None:
        self.files: list[dict[str, Any]] = []

    def _add(self, name: str, mime_type: str, parents: list[str]) -> dict[str, Any]:
        entry = {"id": f"id-{len(self.files)}", "name": name, "mimeType": mime_type, "parents": parents}
        self.files.append(entry)
        return {"id": entry["id"]}

    def post_json(self, path: str, payload: dict[str, Any], params: Any = None) -> dict[str, Any]:
        return self._add(payload["name"], payload["mimeType"], payload["parents"])

    def post_multipart(
        self, url: str, metadata: dict[str, Any], content: bytes, mime_type: str
    ) -> dict[str, Any]:
        return self._add(metadata["name"], mime_type, metadata["parents"])

    def get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        match = re.match(r"'(.+?)' in parents", params["q"])
        assert match is not None
        parent = match.group(1)
        children = [f for f in self.files if parent in f["parents"]]
        return {"files": sorted(children, key=lambda f: f["name"])}


# ---------------------------------------------------------------------------
# create_folder tests
# ---------------------------------------------------------------------------


class TestCreateFolder:
    def test_posts_folder_metadata_with_parent(self) -> None:
        mutations, mock_drive = _make_mutations()

        mutations.create_folder("Vacation", "parent-1")

        mock_drive.post_json.assert_called_once_with(
            "/files",
            {"name": "Vacation", "mimeType": FOLDER_MIME_TYPE, "parents": ["parent-1"]},
            params={"fields": "id"},
        )

    def test_strips_surrounding_whitespace(self) -> None:
        mutations, mock_drive = _make_mutations()

        mutations.create_folder("  Trips  ", "p")

        assert mock_drive.post_json.call_args[0][1]["name"] == "Trips"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name_rejected_without_request(self, name: str) -> None:
        mutations, mock_drive = _make_mutations()

        with pytest.raises(ValidationError):
            mutations.create_folder(name, "p")

        mock_drive.post_json.assert_not_called()

    def test_remote_error_propagates(self) -> None:
        mutations, mock_drive = _make_mutations()
        mock_drive.post_json.side_effect = RemoteRequestError(403, "Forbidden")

        with pytest.raises(RemoteRequestError):
            mutations.create_folder("Vacation", "p")

    def test_created_folder_appears_in_listing(self) -> None:
        drive = FakeDrive()
        drive._add("Zoo.jpg", "image/jpeg", ["X"])
        mutations = MutationClient(drive_client=drive)  # type: ignore[arg-type]
        listing = ListingClient(drive_client=drive)  # type: ignore[arg-type]

        mutations.create_folder("Vacation", "X")
        items = listing.list_items("X")

        created = [i for i in items if i.name == "Vacation"]
        assert len(created) == 1
        assert created[0].kind is ContentKind.FOLDER


# ---------------------------------------------------------------------------
# upload tests
# ---------------------------------------------------------------------------


class TestUpload:
    def test_posts_multipart_with_parent(self) -> None:
        mutations, mock_drive = _make_mutations()

        mutations.upload(b"\x89PNG", "pic.png", "image/png", "parent-2")

        mock_drive.post_multipart.assert_called_once_with(
            UPLOAD_URL,
            {"name": "pic.png", "parents": ["parent-2"]},
            b"\x89PNG",
            "image/png",
        )

    def test_missing_mime_type_defaults_to_octet_stream(self) -> None:
        mutations, mock_drive = _make_mutations()

        mutations.upload(b"data", "blob.bin", "", "p")

        assert mock_drive.post_multipart.call_args[0][3] == "application/octet-stream"

    def test_empty_bytes_rejected(self) -> None:
        mutations, mock_drive = _make_mutations()

        with pytest.raises(ValidationError, match="content"):
            mutations.upload(b"", "pic.png", "image/png", "p")

        mock_drive.post_multipart.assert_not_called()

    def test_empty_file_name_rejected(self) -> None:
        mutations, mock_drive = _make_mutations()

        with pytest.raises(ValidationError, match="file name"):
            mutations.upload(b"data", " ", "image/png", "p")

    def test_uploaded_file_appears_in_listing(self) -> None:
        drive = FakeDrive()
        mutations = MutationClient(drive_client=drive)  # type: ignore[arg-type]
        listing = ListingClient(drive_client=drive)  # type: ignore[arg-type]

        mutations.upload(b"jpeg", "beach.jpg", "image/jpeg", "X")

        items = listing.list_items("X")
        assert [(i.name, i.kind) for i in items] == [("beach.jpg", ContentKind.IMAGE)]
