"""Smoke tests: validate the function app endpoints end-to-end."""

import json
from unittest.mock import MagicMock, patch

import azure.functions as func

from drive_gallery.drive.models import ContentKind, FolderPathEntry, Item
from drive_gallery.errors import (
    AuthExpiredError,
    ConfigurationError,
    CycleDetectedError,
    FolderNotAccessibleError,
    PathTooDeepError,
    RemoteRequestError,
    TransportError,
)
from drive_gallery.gallery.models import BrowseResult, DashboardStats


def _request(
    method: str = "GET",
    url: str = "/api/items",
    params: dict[str, str] | None = None,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
    route_params: dict[str, str] | None = None,
) -> func.HttpRequest:
    return func.HttpRequest(
        method=method,
        url=url,
        headers={"X-Session-Key": "session-1", **(headers or {})},
        params=params or {},
        route_params=route_params or {},
        body=body,
    )


def _handler(fn):  # type: ignore[no-untyped-def]
    """Return the plain handler behind an Azure Functions route decorator."""
    return fn.build().get_user_function() if hasattr(fn, "build") else fn


def _patched_service(mock_service: MagicMock):  # type: ignore[no-untyped-def]
    return patch("drive_gallery.functions.http_trigger._service", return_value=mock_service)


def test_health_check_returns_status() -> None:
    """Health endpoint returns ok status with version from the package."""
    from drive_gallery.functions.http_trigger import health_check

    response = _handler(health_check)(MagicMock(spec=func.HttpRequest))

    assert response.status_code == 200
    body = json.loads(response.get_body())
    assert body["status"] == "ok"
    assert body["version"] == "0.1.0"


def test_list_items_returns_browse_result() -> None:
    from drive_gallery.functions.http_trigger import list_items

    mock_service = MagicMock()
    mock_service.browse.return_value = BrowseResult(
        folder_id="R",
        items=[Item(id="1", name="a", kind=ContentKind.FOLDER)],
        path=[FolderPathEntry("R", "Shared")],
    )

    with _patched_service(mock_service):
        response = _handler(list_items)(_request(params={"filter": "folders", "name": "a"}))

    assert response.status_code == 200
    body = json.loads(response.get_body())
    assert body["folder_id"] == "R"
    assert body["items"][0]["kind"] == "folder"
    content_filter = mock_service.browse.call_args.kwargs["content_filter"]
    assert content_filter.kind.value == "folders"
    assert content_filter.name_contains == "a"


def test_unknown_filter_is_bad_request() -> None:
    from drive_gallery.functions.http_trigger import list_items

    with _patched_service(MagicMock()):
        response = _handler(list_items)(_request(params={"filter": "documents"}))

    assert response.status_code == 400


def test_missing_session_header_is_bad_request() -> None:
    from drive_gallery.functions.http_trigger import list_items

    req = func.HttpRequest(method="GET", url="/api/items", headers={}, params={}, body=b"")
    response = _handler(list_items)(req)

    assert response.status_code == 400
    assert json.loads(response.get_body())["status"] == "error"


def test_gallery_errors_map_to_status_codes() -> None:
    from drive_gallery.functions.http_trigger import list_items

    cases = [
        (ConfigurationError("no shared folder"), 412),
        (FolderNotAccessibleError("X", "R"), 403),
        (AuthExpiredError("expired"), 401),
        (RemoteRequestError(404, "Not Found"), 502),
        (TransportError("down"), 504),
        (RuntimeError("boom"), 500),
    ]
    for error, status_code in cases:
        mock_service = MagicMock()
        mock_service.browse.side_effect = error
        with _patched_service(mock_service):
            response = _handler(list_items)(_request())
        assert response.status_code == status_code, error


def test_path_walk_errors_report_their_message() -> None:
    from drive_gallery.functions.http_trigger import folder_path

    cases = [
        (CycleDetectedError("Cycle detected at folder A"), 508),
        (PathTooDeepError("Path deeper than 64 folders"), 422),
    ]
    for error, status_code in cases:
        mock_service = MagicMock()
        mock_service.folder_path.side_effect = error
        with _patched_service(mock_service):
            response = _handler(folder_path)(_request(url="/api/path"))
        assert response.status_code == status_code, error
        assert json.loads(response.get_body())["message"] == str(error)


def test_unexpected_error_hides_message() -> None:
    from drive_gallery.functions.http_trigger import dashboard_stats

    mock_service = MagicMock()
    mock_service.dashboard_stats.side_effect = RuntimeError("secret detail")
    with _patched_service(mock_service):
        response = _handler(dashboard_stats)(_request(url="/api/stats"))

    assert json.loads(response.get_body())["message"] == "Internal server error"


def test_login_passes_token_and_access_choice() -> None:
    from drive_gallery.access.store import UserRecord
    from drive_gallery.functions.http_trigger import login

    mock_service = MagicMock()
    mock_service.login.return_value = UserRecord(user_id="u-1", access_type="full")
    body = json.dumps({"token": {"access_token": "a", "id_token": "i"}, "full_access": True})

    with _patched_service(mock_service):
        response = _handler(login)(_request("POST", "/api/session", body=body.encode()))

    assert response.status_code == 200
    assert json.loads(response.get_body())["user"]["access_type"] == "full"
    mock_service.login.assert_called_once_with({"access_token": "a", "id_token": "i"}, True)


def test_login_without_token_object_is_bad_request() -> None:
    from drive_gallery.functions.http_trigger import login

    with _patched_service(MagicMock()):
        response = _handler(login)(_request("POST", "/api/session", body=b'{"token": "x"}'))

    assert response.status_code == 400


def test_create_folder_returns_created() -> None:
    from drive_gallery.functions.http_trigger import create_folder

    mock_service = MagicMock()
    mock_service.create_folder.return_value = "R"
    body = json.dumps({"name": "Vacation"}).encode()

    with _patched_service(mock_service):
        response = _handler(create_folder)(_request("POST", "/api/folders", body=body))

    assert response.status_code == 201
    mock_service.create_folder.assert_called_once_with(
        "Vacation", parent_id=None, link_folder_id=None
    )


def test_upload_reads_headers_and_body() -> None:
    from drive_gallery.functions.http_trigger import upload

    mock_service = MagicMock()
    mock_service.upload.return_value = "F"
    req = _request(
        "POST",
        "/api/upload",
        params={"folder": "F"},
        body=b"jpeg-bytes",
        headers={"X-File-Name": "beach.jpg", "Content-Type": "image/jpeg"},
    )

    with _patched_service(mock_service):
        response = _handler(upload)(req)

    assert response.status_code == 201
    mock_service.upload.assert_called_once_with(
        b"jpeg-bytes", "beach.jpg", "image/jpeg", parent_id="F", link_folder_id=None
    )


def test_preview_streams_media_with_mime_type() -> None:
    from drive_gallery.functions.http_trigger import preview

    mock_service = MagicMock()
    mock_service.preview.return_value = (
        Item(id="p", name="a.png", kind=ContentKind.IMAGE, mime_type="image/png"),
        b"png",
    )

    with _patched_service(mock_service):
        response = _handler(preview)(_request(url="/api/preview/p", route_params={"item_id": "p"}))

    assert response.status_code == 200
    assert response.get_body() == b"png"
    assert response.mimetype == "image/png"


def test_save_settings_returns_cleaned_id() -> None:
    from drive_gallery.functions.http_trigger import save_settings

    mock_service = MagicMock()
    mock_service.save_shared_folder.return_value = "1XyZ"
    body = json.dumps({"folder_link": "https://drive.google.com/drive/folders/1XyZ"}).encode()

    with _patched_service(mock_service):
        response = _handler(save_settings)(_request("PUT", "/api/settings", body=body))

    assert json.loads(response.get_body())["shared_folder_id"] == "1XyZ"


def test_stats_endpoint() -> None:
    from drive_gallery.functions.http_trigger import dashboard_stats

    mock_service = MagicMock()
    mock_service.dashboard_stats.return_value = DashboardStats(2, 5, {"Trips": 3, "Pets": 2})

    with _patched_service(mock_service):
        response = _handler(dashboard_stats)(_request(url="/api/stats"))

    body = json.loads(response.get_body())
    assert body["total_folders"] == 2
    assert body["media_per_folder"] == {"Trips": 3, "Pets": 2}
