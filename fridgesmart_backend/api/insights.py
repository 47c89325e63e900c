"""Dashboard and impact summaries derived from the inventory."""

from __future__ import annotations

from flask import Blueprint, jsonify

from fridgesmart_backend.api.deps import get_controller
from fridgesmart_backend.api.inventory import serialize_inventory_row
from fridgesmart_backend.models import ItemCategory
from fridgesmart_backend.services.inventory import (
    InventoryItem,
    is_attention_needed,
    total_value,
)

bp = Blueprint("insights", __name__, url_prefix="/api")


def category_counts(items: list[InventoryItem]) -> list[dict[str, object]]:
    """Count items per category, listing every category even when empty."""

    counts = {category: 0 for category in ItemCategory.values()}
    for item in items:
        key = item.category if item.category in counts else ItemCategory.OTHER.value
        counts[key] += 1

    return [{"category": key, "count": count} for key, count in counts.items()]


@bp.get("/dashboard")
def dashboard():
    """Return the items that need attention and the value they put at risk."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    items = controller.store.items()
    expiring = [item for item in items if is_attention_needed(item)]
    return jsonify(
        itemCount=len(items),
        expiringItems=[serialize_inventory_row(item) for item in expiring],
        expiringCount=len(expiring),
        valueAtRisk=total_value(expiring),
    )


@bp.get("/impact")
def impact():
    """Return value totals and the category breakdown of the inventory."""

    try:
        controller = get_controller()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    items = controller.store.items()
    at_risk = [item for item in items if is_attention_needed(item)]
    return jsonify(
        itemCount=len(items),
        totalValue=total_value(items),
        valueAtRisk=total_value(at_risk),
        categoryCounts=category_counts(items),
    )
