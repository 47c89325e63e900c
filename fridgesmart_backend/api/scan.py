"""Endpoints for photo scanning and the editable scan preview."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from fridgesmart_backend.api.deps import get_controller, get_json_body
from fridgesmart_backend.services.analysis import AnalysisError
from fridgesmart_backend.services.controller import (
    ActionInProgressError,
    GatewayNotConfiguredError,
    ItemNotFoundError,
    ScanPreviewMissingError,
)
from fridgesmart_backend.services.devices import CapabilityUnavailableError
from fridgesmart_backend.services.inventory import (
    DEFAULT_MANUAL_CATEGORY,
    DEFAULT_MANUAL_DAYS,
    DEFAULT_MANUAL_QUANTITY,
    InventoryItem,
    parse_days,
)
from fridgesmart_backend.services.storage import StorageError
from fridgesmart_backend.services.uploads import read_image_upload

bp = Blueprint("scan", __name__, url_prefix="/api/scan")


def _preview_response(items: list[InventoryItem] | None):
    return jsonify(
        items=[item.to_dict() for item in items] if items is not None else None
    )


def _scan_result_response(items: list[InventoryItem] | None):
    if items is None:
        return jsonify(error="scan result discarded after leaving the scanner"), 409
    return _preview_response(items)


def _run_scan(action):
    try:
        return _scan_result_response(action())
    except GatewayNotConfiguredError as exc:
        return jsonify(error=str(exc)), 503
    except ActionInProgressError as exc:
        return jsonify(error=str(exc)), 409
    except CapabilityUnavailableError as exc:
        return jsonify(error=str(exc), capability=exc.capability), 409
    except AnalysisError as exc:
        current_app.logger.warning("image analysis failed: %s", exc)
        return jsonify(error=str(exc)), 502


@bp.post("")
def scan_upload():
    """Analyze an uploaded photo and return the detected items."""

    if "image" not in request.files:
        return jsonify(error="missing file part 'image'"), 400

    try:
        upload = read_image_upload(request.files["image"])
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return _run_scan(
        lambda: controller.scan_image(upload.image_bytes, upload.mime_type)
    )


@bp.post("/capture")
def scan_capture():
    """Take a photo with the open camera and analyze it."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return _run_scan(controller.capture_photo)


@bp.get("")
def get_preview():
    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return _preview_response(controller.scan_preview())


@bp.delete("")
def discard_preview():
    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    controller.discard_scan()
    return _preview_response(None)


@bp.post("/items")
def add_manual_item():
    """Add a hand-entered item to the top of the preview."""

    payload = get_json_body()
    try:
        days = parse_days(payload.get("daysUntilExpiration", DEFAULT_MANUAL_DAYS))
        controller = get_controller()
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        item = controller.add_manual_item(
            str(payload.get("name") or ""),
            quantity=str(payload.get("quantity") or DEFAULT_MANUAL_QUANTITY),
            category=str(payload.get("category") or DEFAULT_MANUAL_CATEGORY),
            days_until_expiration=days,
        )
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    return jsonify(item=item.to_dict()), 201


@bp.patch("/items/<item_id>")
def update_preview_item(item_id: str):
    """Edit one field of a previewed item."""

    payload = get_json_body()
    field_name = payload.get("field")
    if not isinstance(field_name, str) or "value" not in payload:
        return jsonify(error="field and value are required"), 400

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        item = controller.update_preview_item(item_id, field_name, payload["value"])
    except ItemNotFoundError as exc:
        return jsonify(error=str(exc)), 404
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    return jsonify(item=item.to_dict())


@bp.post("/commit")
def commit_preview():
    """Save the previewed items to the inventory."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        items = controller.commit_scan()
    except ScanPreviewMissingError as exc:
        return jsonify(error=str(exc)), 409
    except StorageError:
        current_app.logger.exception("failed to persist scanned items")
        return jsonify(error="failed to save inventory"), 500

    return jsonify(
        view=controller.view.value,
        added=[item.to_dict() for item in items],
        itemCount=len(controller.store),
    )
