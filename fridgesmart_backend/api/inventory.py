"""Inventory listing and maintenance endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from fridgesmart_backend.api.deps import get_controller
from fridgesmart_backend.models import ItemCategory
from fridgesmart_backend.services.inventory import (
    ALL_CATEGORIES_FILTER,
    URGENT_DAYS_THRESHOLD,
    InventoryItem,
    describe_expiry,
    filter_by_category,
    total_value,
)
from fridgesmart_backend.services.storage import StorageError

bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def serialize_inventory_row(item: InventoryItem) -> dict[str, object]:
    payload = item.to_dict()
    payload["expiryLabel"] = describe_expiry(item.days_until_expiration)
    payload["urgent"] = item.days_until_expiration <= URGENT_DAYS_THRESHOLD
    return payload


@bp.get("")
def list_inventory():
    """Return the inventory, optionally narrowed to a single category."""

    category = (request.args.get("category") or ALL_CATEGORIES_FILTER).strip()
    categories = [ALL_CATEGORIES_FILTER, *ItemCategory.values()]
    if category not in categories:
        return jsonify(error=f"unknown category {category!r}"), 400

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    items = filter_by_category(controller.store.items(), category)
    return jsonify(
        category=category,
        categories=categories,
        items=[serialize_inventory_row(item) for item in items],
        itemCount=len(items),
        totalValue=total_value(items),
    )


@bp.delete("/<item_id>")
def delete_item(item_id: str):
    """Remove one item; deleting an unknown id reports 404."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        removed = controller.delete_item(item_id)
    except StorageError:
        current_app.logger.exception(
            "failed to persist inventory after delete", extra={"item_id": item_id}
        )
        return jsonify(error="failed to save inventory"), 500

    if not removed:
        return jsonify(error="item not found"), 404
    return jsonify(deleted=item_id)


@bp.post("/demo")
def load_demo():
    """Replace the inventory with the sample items."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        items = controller.load_demo()
    except StorageError:
        current_app.logger.exception("failed to persist demo inventory")
        return jsonify(error="failed to save inventory"), 500

    return jsonify(
        view=controller.view.value,
        items=[serialize_inventory_row(item) for item in items],
    )
