"""HTTP trigger blueprint: gallery endpoints called by the browser front-end."""

import json
import logging
from typing import Any

import azure.functions as func

from drive_gallery import __version__
from drive_gallery.config import load_config
from drive_gallery.drive.query import ContentFilter
from drive_gallery.errors import (
    AccessTypeMismatchError,
    AuthExpiredError,
    ConfigurationError,
    CycleDetectedError,
    FolderNotAccessibleError,
    GalleryError,
    NotAuthenticatedError,
    PathTooDeepError,
    RemoteRequestError,
    TransportError,
    ValidationError,
)
from drive_gallery.gallery.service import GalleryService, gallery_service_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()

SESSION_HEADER = "X-Session-Key"
FILE_NAME_HEADER = "X-File-Name"

_STATUS_FOR_ERROR: list[tuple[type[GalleryError], int]] = [
    (ValidationError, 400),
    (NotAuthenticatedError, 401),
    (AuthExpiredError, 401),
    (FolderNotAccessibleError, 403),
    (AccessTypeMismatchError, 409),
    (ConfigurationError, 412),
    (PathTooDeepError, 422),
    (RemoteRequestError, 502),
    (TransportError, 504),
    (CycleDetectedError, 508),
]


def _json_response(payload: dict[str, Any], status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(json.dumps(payload), status_code=status_code, mimetype="application/json")


def _error_response(exc: Exception, endpoint: str) -> func.HttpResponse:
    """Translate an exception into a JSON error response."""
    for error_type, status_code in _STATUS_FOR_ERROR:
        if isinstance(exc, error_type):
            logger.warning("[%s] request failed; status:%d;error:%s", endpoint, status_code, exc)
            return _json_response({"status": "error", "message": str(exc)}, status_code)
    logger.error("[%s] request failed", endpoint, exc_info=exc)
    return _json_response({"status": "error", "message": "Internal server error"}, 500)


def _service(req: func.HttpRequest) -> GalleryService:
    session_key = req.headers.get(SESSION_HEADER)
    if not session_key:
        raise ValidationError(f"Missing {SESSION_HEADER} header")
    return gallery_service_from_config(load_config(), session_key)


def _json_body(req: func.HttpRequest) -> dict[str, Any]:
    try:
        body = req.get_json()
    except ValueError as exc:
        raise ValidationError("Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint. Returns service status and version."""
    logger.info("[health_check] health check requested")

    try:
        return _json_response({"status": "ok", "version": __version__})

    except Exception as exc:
        return _error_response(exc, "health_check")


@bp.route(route="session", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def login(req: func.HttpRequest) -> func.HttpResponse:
    """Sign in with the browser's OAuth token response.

    Body: ``{"token": {...token response...}, "full_access": bool}``.
    """
    try:
        body = _json_body(req)
        token_data = body.get("token")
        if not isinstance(token_data, dict):
            raise ValidationError("Field 'token' must be an object")
        record = _service(req).login(token_data, bool(body.get("full_access", False)))
        return _json_response(
            {
                "status": "ok",
                "user": {
                    "user_id": record.user_id,
                    "display_name": record.display_name,
                    "photo_url": record.photo_url,
                    "access_type": record.access_type,
                    "shared_folder_id": record.shared_folder_id,
                },
            }
        )

    except Exception as exc:
        return _error_response(exc, "login")


@bp.route(route="session", methods=["DELETE"], auth_level=func.AuthLevel.ANONYMOUS)
def logout(req: func.HttpRequest) -> func.HttpResponse:
    try:
        _service(req).logout()
        return _json_response({"status": "ok"})

    except Exception as exc:
        return _error_response(exc, "logout")


@bp.route(route="items", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def list_items(req: func.HttpRequest) -> func.HttpResponse:
    """List a folder: ``?folder=&filter=all|images|videos|folders&name=&link=``."""
    try:
        content_filter = ContentFilter.parse(req.params.get("filter"), req.params.get("name"))
        result = _service(req).browse(
            folder_id=req.params.get("folder"),
            content_filter=content_filter,
            link_folder_id=req.params.get("link"),
        )
        return _json_response({"status": "ok", **result.to_dict()})

    except Exception as exc:
        return _error_response(exc, "list_items")


@bp.route(route="path", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def folder_path(req: func.HttpRequest) -> func.HttpResponse:
    try:
        path = _service(req).folder_path(req.params.get("folder"), req.params.get("link"))
        return _json_response({"status": "ok", "path": [entry.to_dict() for entry in path]})

    except Exception as exc:
        return _error_response(exc, "folder_path")


@bp.route(route="preview/{item_id}", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def preview(req: func.HttpRequest) -> func.HttpResponse:
    """Stream the media content of an item for the preview modal."""
    try:
        item, content = _service(req).preview(req.route_params["item_id"], req.params.get("link"))
        return func.HttpResponse(
            content,
            status_code=200,
            mimetype=item.mime_type or "application/octet-stream",
        )

    except Exception as exc:
        return _error_response(exc, "preview")


@bp.route(route="folders", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def create_folder(req: func.HttpRequest) -> func.HttpResponse:
    """Create a folder. Body: ``{"name": str, "parent": str|null, "link": str|null}``."""
    try:
        body = _json_body(req)
        parent = _service(req).create_folder(
            str(body.get("name") or ""),
            parent_id=body.get("parent"),
            link_folder_id=body.get("link"),
        )
        return _json_response({"status": "ok", "parent": parent}, 201)

    except Exception as exc:
        return _error_response(exc, "create_folder")


@bp.route(route="upload", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def upload(req: func.HttpRequest) -> func.HttpResponse:
    """Upload raw file bytes; name in ``X-File-Name``, MIME in ``Content-Type``."""
    try:
        parent = _service(req).upload(
            req.get_body(),
            req.headers.get(FILE_NAME_HEADER, ""),
            req.headers.get("Content-Type", ""),
            parent_id=req.params.get("folder"),
            link_folder_id=req.params.get("link"),
        )
        return _json_response({"status": "ok", "parent": parent}, 201)

    except Exception as exc:
        return _error_response(exc, "upload")


@bp.route(route="settings", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_settings(req: func.HttpRequest) -> func.HttpResponse:
    try:
        record = _service(req).current_user()
        return _json_response(
            {
                "status": "ok",
                "access_type": record.access_type,
                "shared_folder_id": record.shared_folder_id,
            }
        )

    except Exception as exc:
        return _error_response(exc, "get_settings")


@bp.route(route="settings", methods=["PUT"], auth_level=func.AuthLevel.ANONYMOUS)
def save_settings(req: func.HttpRequest) -> func.HttpResponse:
    """Save the shared folder. Body: ``{"folder_link": str}``."""
    try:
        body = _json_body(req)
        folder_id = _service(req).save_shared_folder(str(body.get("folder_link") or ""))
        return _json_response({"status": "ok", "shared_folder_id": folder_id})

    except Exception as exc:
        return _error_response(exc, "save_settings")


@bp.route(route="settings", methods=["DELETE"], auth_level=func.AuthLevel.ANONYMOUS)
def remove_settings(req: func.HttpRequest) -> func.HttpResponse:
    try:
        _service(req).remove_shared_folder()
        return _json_response({"status": "ok", "shared_folder_id": None})

    except Exception as exc:
        return _error_response(exc, "remove_settings")


@bp.route(route="stats", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def dashboard_stats(req: func.HttpRequest) -> func.HttpResponse:
    try:
        stats = _service(req).dashboard_stats(req.params.get("link"))
        return _json_response({"status": "ok", **stats.to_dict()})

    except Exception as exc:
        return _error_response(exc, "dashboard_stats")
