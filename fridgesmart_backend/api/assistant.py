"""Kitchen assistant chat and voice endpoints."""

from __future__ import annotations

from flask import Blueprint, jsonify

from fridgesmart_backend.api.deps import get_controller, get_json_body
from fridgesmart_backend.services.controller import GatewayNotConfiguredError

bp = Blueprint("assistant", __name__, url_prefix="/api/assistant")


@bp.post("/chat")
def chat():
    """Answer one message using the current inventory as context."""

    message = get_json_body().get("message")
    if not isinstance(message, str) or not message.strip():
        return jsonify(error="message is required"), 400

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        reply = controller.chat(message)
    except GatewayNotConfiguredError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(role="model", text=reply)


@bp.post("/voice")
def start_voice():
    """Start listening; an unsupported microphone is reported inline."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    listening = controller.start_listening()
    state = controller.state()
    return jsonify(listening=listening, message=state["voiceError"])


@bp.delete("/voice")
def stop_voice():
    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    controller.stop_listening()
    return jsonify(listening=False, message=None)
