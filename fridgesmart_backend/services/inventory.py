"""Inventory item records and the helpers that derive their state."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from fridgesmart_backend.models import ItemCategory
from fridgesmart_backend.services.normalization import normalize_category
from fridgesmart_backend.services.status import (
    ItemStatus,
    classify_manual_status,
    expiration_date_for,
)

DEFAULT_MANUAL_QUANTITY = "1"
DEFAULT_MANUAL_CATEGORY = ItemCategory.PRODUCE.value
DEFAULT_MANUAL_DAYS = 7
URGENT_DAYS_THRESHOLD = 2
CRITICAL_DAYS_THRESHOLD = 3
ALL_CATEGORIES_FILTER = "All"

EDITABLE_FIELDS = frozenset({"name", "category", "quantity", "daysUntilExpiration"})


class InventoryFormatError(ValueError):
    """Raised when a serialized item does not have the expected shape."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class AiAnalysis:
    """Provenance attached to items detected in a photo."""

    confidence: float
    reasoning: str
    freshness_cues: list[str] = field(default_factory=list)
    visual_indicators: str = ""
    ocr_text: str | None = None
    processing_time_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "freshnessCues": list(self.freshness_cues),
            "visualIndicators": self.visual_indicators,
        }
        if self.ocr_text is not None:
            payload["ocrText"] = self.ocr_text
        if self.processing_time_ms is not None:
            payload["processingTimeMs"] = self.processing_time_ms
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AiAnalysis":
        cues = payload.get("freshnessCues", [])
        if not isinstance(cues, list) or not all(isinstance(c, str) for c in cues):
            raise InventoryFormatError("freshnessCues must be a list of strings")
        return cls(
            confidence=_require_number(payload, "confidence"),
            reasoning=_require_str(payload, "reasoning"),
            freshness_cues=list(cues),
            visual_indicators=_optional_str(payload, "visualIndicators") or "",
            ocr_text=_optional_str(payload, "ocrText"),
            processing_time_ms=_optional_number(payload, "processingTimeMs"),
        )


@dataclass(slots=True)
class InventoryItem:
    """A tracked perishable with its derived urgency status."""

    id: str
    name: str
    quantity: str
    category: str
    days_until_expiration: int
    expiration_date: date
    status: ItemStatus
    estimated_value: float
    added_date: datetime
    ai_analysis: AiAnalysis | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase shape shared with the client and storage."""

        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "category": self.category,
            "daysUntilExpiration": self.days_until_expiration,
            "expirationDate": self.expiration_date.isoformat(),
            "status": self.status.value,
            "estimatedValue": self.estimated_value,
            "addedDate": self.added_date.isoformat(),
        }
        if self.ai_analysis is not None:
            payload["aiAnalysis"] = self.ai_analysis.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: object) -> "InventoryItem":
        """Rebuild an item from :meth:`to_dict` output.

        Raises ``InventoryFormatError`` when any field is missing or has the
        wrong type.
        """

        if not isinstance(payload, Mapping):
            raise InventoryFormatError("item must be a JSON object")

        days = payload.get("daysUntilExpiration")
        if isinstance(days, bool) or not isinstance(days, int):
            raise InventoryFormatError("daysUntilExpiration must be an integer")

        try:
            status = ItemStatus(payload.get("status"))
            expiration_date = date.fromisoformat(
                _require_str(payload, "expirationDate")
            )
            added_date = datetime.fromisoformat(_require_str(payload, "addedDate"))
        except (TypeError, ValueError) as exc:
            raise InventoryFormatError(str(exc)) from exc

        raw_analysis = payload.get("aiAnalysis")
        if raw_analysis is None:
            ai_analysis = None
        elif isinstance(raw_analysis, Mapping):
            ai_analysis = AiAnalysis.from_dict(raw_analysis)
        else:
            raise InventoryFormatError("aiAnalysis must be an object")

        return cls(
            id=_require_str(payload, "id"),
            name=_require_str(payload, "name"),
            quantity=_require_str(payload, "quantity"),
            category=_require_str(payload, "category"),
            days_until_expiration=days,
            expiration_date=expiration_date,
            status=status,
            estimated_value=_require_number(payload, "estimatedValue"),
            added_date=added_date,
            ai_analysis=ai_analysis,
        )


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise InventoryFormatError(f"{key} must be a string")
    return value


def _optional_str(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InventoryFormatError(f"{key} must be a string")
    return value


def _require_number(payload: Mapping[str, Any], key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InventoryFormatError(f"{key} must be a number")
    return value


def _optional_number(payload: Mapping[str, Any], key: str) -> float | None:
    if payload.get(key) is None:
        return None
    return _require_number(payload, key)


def parse_days(value: object) -> int:
    """Return a whole number of days from user input.

    Raises ``ValueError`` when no integer can be read from ``value``.
    """

    if isinstance(value, bool):
        raise ValueError("daysUntilExpiration must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (ValueError, OverflowError):
            raise ValueError("daysUntilExpiration must be a whole number") from None
    if isinstance(value, str):
        candidate = value.strip()
        if candidate:
            try:
                return int(candidate)
            except ValueError:
                try:
                    return int(float(candidate))
                except (ValueError, OverflowError):
                    pass
    raise ValueError("daysUntilExpiration must be a whole number")


def new_manual_item(
    name: str,
    *,
    quantity: str = DEFAULT_MANUAL_QUANTITY,
    category: str = DEFAULT_MANUAL_CATEGORY,
    days_until_expiration: int = DEFAULT_MANUAL_DAYS,
    today: date | None = None,
) -> InventoryItem:
    """Build an item entered by hand; it carries no AI provenance."""

    clean_name = (name or "").strip()
    if not clean_name:
        raise ValueError("name is required")

    return InventoryItem(
        id=new_item_id(),
        name=clean_name,
        quantity=(quantity or "").strip() or DEFAULT_MANUAL_QUANTITY,
        category=normalize_category(category),
        days_until_expiration=days_until_expiration,
        expiration_date=expiration_date_for(days_until_expiration, today),
        status=classify_manual_status(days_until_expiration),
        estimated_value=0.0,
        added_date=_now(),
    )


def apply_item_edit(
    item: InventoryItem, field_name: str, value: object, *, today: date | None = None
) -> InventoryItem:
    """Apply a single field edit in place and return the item.

    Editing ``daysUntilExpiration`` recomputes both the status and the
    expiration date.
    """

    if field_name not in EDITABLE_FIELDS:
        raise ValueError(f"field {field_name!r} cannot be edited")

    if field_name == "daysUntilExpiration":
        days = parse_days(value)
        item.days_until_expiration = days
        item.expiration_date = expiration_date_for(days, today)
        item.status = classify_manual_status(days)
        return item

    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    if field_name == "name":
        item.name = value
    elif field_name == "quantity":
        item.quantity = value
    else:
        item.category = normalize_category(value)
    return item


def describe_expiry(days: int) -> str:
    """Return the relative expiry label shown on inventory rows."""

    if days < 0:
        return f"Expired {abs(days)}d ago"
    if days == 0:
        return "Expires Today"
    if days == 1:
        return "Expires Tomorrow"
    if days <= 7:
        return f"{days} days left"
    return f"{days} days"


def filter_by_category(
    items: Iterable[InventoryItem], category: str | None
) -> list[InventoryItem]:
    if not category or category == ALL_CATEGORIES_FILTER:
        return list(items)
    return [item for item in items if item.category == category]


def is_attention_needed(item: InventoryItem) -> bool:
    """True for items the dashboard surfaces as expiring."""

    return item.status in (ItemStatus.EXPIRING, ItemStatus.USE_SOON)


def is_critical(item: InventoryItem) -> bool:
    return item.days_until_expiration <= CRITICAL_DAYS_THRESHOLD


def total_value(items: Iterable[InventoryItem]) -> float:
    return round(sum(item.estimated_value for item in items), 2)


def demo_items(today: date | None = None) -> list[InventoryItem]:
    """Return the sample inventory used by demo mode."""

    added = _now()
    base = today or date.today()

    def _demo(
        index: int,
        name: str,
        quantity: str,
        category: str,
        days: int,
        status: ItemStatus,
        value: float,
        analysis: AiAnalysis,
    ) -> InventoryItem:
        return InventoryItem(
            id=f"demo-{index}",
            name=name,
            quantity=quantity,
            category=category,
            days_until_expiration=days,
            expiration_date=base + timedelta(days=days),
            status=status,
            estimated_value=value,
            added_date=added,
            ai_analysis=analysis,
        )

    return [
        _demo(
            1,
            "Organic Spinach",
            "1 bag",
            ItemCategory.PRODUCE.value,
            1,
            ItemStatus.EXPIRING,
            4.99,
            AiAnalysis(
                confidence=98,
                reasoning="Leaves are starting to wilt; the best-by date agrees.",
                freshness_cues=["Slight wilting", "Condensation in bag"],
                visual_indicators="Use Soon",
                ocr_text="Organic Spinach - Best By 12/16",
                processing_time_ms=450,
            ),
        ),
        _demo(
            2,
            "Greek Yogurt",
            "1/2 container",
            ItemCategory.DAIRY.value,
            2,
            ItemStatus.EXPIRING,
            3.50,
            AiAnalysis(
                confidence=92,
                reasoning="Container is open and the sell-by date has passed.",
                freshness_cues=["Seal broken", "Rim clean"],
                visual_indicators="Good",
                ocr_text="Fage Total 2%",
                processing_time_ms=450,
            ),
        ),
        _demo(
            3,
            "Chicken Breast",
            "1 lb",
            ItemCategory.MEAT.value,
            1,
            ItemStatus.EXPIRING,
            8.99,
            AiAnalysis(
                confidence=99,
                reasoning="Normal pink color with no graying; cook or freeze today.",
                freshness_cues=["Normal color", "Package sealed"],
                visual_indicators="Fresh",
                ocr_text="Use or Freeze By 12/16",
                processing_time_ms=450,
            ),
        ),
        _demo(
            4,
            "Avocados",
            "3 count",
            ItemCategory.PRODUCE.value,
            3,
            ItemStatus.USE_SOON,
            5.00,
            AiAnalysis(
                confidence=88,
                reasoning="Dark skin shows they are ripe; one is slightly bruised.",
                freshness_cues=["Dark skin", "Soft texture"],
                visual_indicators="Ripe",
                ocr_text="Mexico #4046",
                processing_time_ms=450,
            ),
        ),
        _demo(
            5,
            "Almond Milk",
            "1 carton",
            ItemCategory.DAIRY.value,
            14,
            ItemStatus.GOOD,
            4.29,
            AiAnalysis(
                confidence=96,
                reasoning="Sealed carton with a distant expiration date.",
                freshness_cues=["Sealed"],
                visual_indicators="Fresh",
                ocr_text="Exp 12/30/24",
                processing_time_ms=450,
            ),
        ),
    ]
