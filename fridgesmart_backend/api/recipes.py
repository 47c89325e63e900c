"""Recipe generation endpoints backed by the hosted text model."""

from __future__ import annotations

from flask import Blueprint, jsonify

from fridgesmart_backend.api.deps import get_controller, get_json_body
from fridgesmart_backend.services.controller import (
    ActionInProgressError,
    EmptyInventoryError,
    GatewayNotConfiguredError,
    ItemNotFoundError,
    RecipeMode,
)

bp = Blueprint("recipes", __name__, url_prefix="/api/recipes")


def _generate(action):
    try:
        session = action()
    except EmptyInventoryError as exc:
        return jsonify(error=str(exc)), 400
    except GatewayNotConfiguredError as exc:
        return jsonify(error=str(exc)), 503
    except ActionInProgressError as exc:
        return jsonify(error=str(exc)), 409

    return jsonify(session.to_dict())


@bp.get("")
def get_recipes():
    """Return the current recipe session: mode, status, recipes, checks."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(controller.recipe_session().to_dict())


@bp.post("")
def generate_recipes():
    """Generate a fresh batch of recipes from the current inventory."""

    raw_mode = str(get_json_body().get("mode") or RecipeMode.DEFAULT.value)
    try:
        mode = RecipeMode(raw_mode.strip().lower())
    except ValueError:
        return jsonify(error="mode must be 'default' or 'rescue'"), 400

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return _generate(lambda: controller.generate_recipes(mode))


@bp.post("/rescue")
def rescue_recipes():
    """Open rescue mode, generating recipes when there is anything to rescue."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return _generate(controller.request_rescue)


@bp.post("/<recipe_id>/checks/<key>")
def toggle_check(recipe_id: str, key: str):
    """Flip the checked flag of one ingredient or step."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        checked = controller.toggle_check(recipe_id, key)
    except ItemNotFoundError as exc:
        return jsonify(error=str(exc)), 404

    return jsonify(recipeId=recipe_id, key=key, checked=checked)
