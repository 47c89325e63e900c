"""Endpoints for reading and switching the active screen."""

from __future__ import annotations

from flask import Blueprint, jsonify

from fridgesmart_backend.api.deps import get_controller, get_json_body
from fridgesmart_backend.services.controller import AppView

bp = Blueprint("navigation", __name__, url_prefix="/api")


@bp.get("/view")
def get_view():
    """Return the active view plus device and in-flight flags."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(controller.state())


@bp.post("/view")
def set_view():
    """Switch to another screen, acquiring or releasing devices as needed."""

    raw_view = str(get_json_body().get("view") or "").strip().upper()
    try:
        view = AppView(raw_view)
    except ValueError:
        allowed = ", ".join(entry.value for entry in AppView)
        return jsonify(error=f"view must be one of: {allowed}"), 400

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    controller.navigate(view)
    return jsonify(controller.state())
