"""Shared API dependencies and helpers."""

from flask import current_app, request

from fridgesmart_backend.services.controller import FridgeSmartController


def get_controller() -> FridgeSmartController:
    """Return the controller attached by the application factory."""

    controller: FridgeSmartController | None = current_app.extensions.get(
        "controller"
    )
    if controller is None:
        raise RuntimeError("controller is not configured")
    return controller


def get_json_body() -> dict:
    """Return the request JSON object, or an empty dict when absent."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}
