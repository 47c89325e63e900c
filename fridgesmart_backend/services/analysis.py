"""Gateway that turns hosted-model responses into inventory items and recipes."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Protocol

from fridgesmart_backend.config.llm import (
    ASSISTANT_FALLBACK_REPLY,
    ASSISTANT_PROMPT_TEMPLATE,
    DEFAULT_RECIPE_LOGIC,
    DEFAULT_RESCUE_LOGIC,
    IMAGE_ANALYSIS_PROMPT,
    RECIPE_CONSTRAINTS,
    RECIPE_PROMPT_TEMPLATE,
    RESCUE_CONSTRAINTS,
    RESCUE_PROMPT_TEMPLATE,
)
from fridgesmart_backend.services.inventory import (
    AiAnalysis,
    InventoryItem,
    is_critical,
    new_item_id,
)
from fridgesmart_backend.services.llm import LLMResult, ResponseSchema
from fridgesmart_backend.services.normalization import (
    compose_item_name,
    normalize_category,
)
from fridgesmart_backend.services.recipes import (
    RECIPE_BATCH_SCHEMA,
    AiOptimizationData,
    Recipe,
    assemble_recipe,
    missing_required_keys,
)
from fridgesmart_backend.services.status import classify_status, expiration_date_for

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Failed to analyze image."
REQUIRED_ITEM_KEYS = (
    "name",
    "daysUntilExpiry",
    "estimatedValue",
    "freshnessReason",
    "confidence",
)
STRESSED_ITEM_COUNT = 2
STRESS_DAYS_THRESHOLD = 2

INVENTORY_ITEMS_SCHEMA = ResponseSchema(
    name="inventory_items",
    schema={
        "type": "object",
        "properties": {
            "items": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "brand": {"type": "string"},
                        "quantity": {"type": "string"},
                        "category": {"type": "string"},
                        "expirationDate": {"type": "string"},
                        "daysUntilExpiry": {"type": "integer"},
                        "freshness": {"type": "string"},
                        "freshnessReason": {"type": "string"},
                        "visualCues": {"type": "array", "items": {"type": "string"}},
                        "estimatedValue": {"type": "number"},
                        "confidence": {"type": "number"},
                        "ocrTextDetected": {"type": "string"},
                    },
                    "required": list(REQUIRED_ITEM_KEYS),
                },
            }
        },
        "required": ["items"],
    },
)

RECIPES_SCHEMA = ResponseSchema(name="recipes", schema=RECIPE_BATCH_SCHEMA)


class AnalysisError(RuntimeError):
    """Raised when image analysis fails for any reason."""


class MalformedResponseError(ValueError):
    """Raised when a model response does not match the expected shape."""


class VisionClient(Protocol):
    model: str

    def analyze_image(
        self,
        *,
        image_bytes: bytes,
        prompt: str,
        mime_type: str | None = None,
        schema: ResponseSchema | None = None,
    ) -> LLMResult: ...


class TextClient(Protocol):
    model: str

    def run_prompt(
        self,
        *,
        prompt: str,
        system_prompt: str | None = None,
        schema: ResponseSchema | None = None,
    ) -> LLMResult: ...


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 1)


def _extract_list(parsed: object, key: str) -> list[Any]:
    if isinstance(parsed, Mapping):
        parsed = parsed.get(key)
    if not isinstance(parsed, list):
        raise MalformedResponseError(f"response did not include a {key!r} array")
    return parsed


def _parse_int(value: object, field_name: str) -> int:
    if isinstance(value, bool):
        raise MalformedResponseError(f"{field_name} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    raise MalformedResponseError(f"{field_name} must be a number")


def _parse_float(value: object, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"{field_name} must be a number")
    return value


def _parse_model_date(value: object) -> date | None:
    raw = str(value or "").strip()[:10]
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _optional_text(value: object) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def build_detected_item(
    raw: object, *, processing_time_ms: float | None, today: date | None = None
) -> InventoryItem:
    """Convert one detected object from the vision model into an item."""

    if not isinstance(raw, Mapping):
        raise MalformedResponseError("detected item must be an object")
    missing = [key for key in REQUIRED_ITEM_KEYS if raw.get(key) is None]
    if missing:
        raise MalformedResponseError(f"detected item missing {', '.join(missing)}")

    name = compose_item_name(raw.get("name"), _optional_text(raw.get("brand")))
    if not name:
        raise MalformedResponseError("detected item has an empty name")

    days = _parse_int(raw.get("daysUntilExpiry"), "daysUntilExpiry")
    freshness = _optional_text(raw.get("freshness"))
    expiration_date = _parse_model_date(raw.get("expirationDate"))
    cues = raw.get("visualCues")

    return InventoryItem(
        id=new_item_id(),
        name=name,
        quantity=_optional_text(raw.get("quantity")) or "1",
        category=normalize_category(_optional_text(raw.get("category"))),
        days_until_expiration=days,
        expiration_date=expiration_date or expiration_date_for(days, today),
        status=classify_status(days, freshness),
        estimated_value=max(
            _parse_float(raw.get("estimatedValue"), "estimatedValue"), 0.0
        ),
        added_date=datetime.now(timezone.utc),
        ai_analysis=AiAnalysis(
            confidence=_parse_float(raw.get("confidence"), "confidence"),
            reasoning=str(raw.get("freshnessReason")),
            freshness_cues=[c for c in cues if isinstance(c, str)]
            if isinstance(cues, list)
            else [],
            visual_indicators=freshness or "",
            ocr_text=_optional_text(raw.get("ocrTextDetected")),
            processing_time_ms=processing_time_ms,
        ),
    )


def summarize_inventory(items: Iterable[InventoryItem]) -> str:
    return ", ".join(
        f"{item.quantity} {item.name} (expires in {item.days_until_expiration} days)"
        for item in items
    )


def _user_state(items: list[InventoryItem]) -> str:
    urgent = [i for i in items if i.days_until_expiration <= STRESS_DAYS_THRESHOLD]
    return "Urgent/Stressed" if len(urgent) > STRESSED_ITEM_COUNT else "Relaxed"


class AnalysisGateway:
    """Single round trips to the hosted models; nothing here retries."""

    def __init__(
        self,
        *,
        vision_client: VisionClient,
        text_client: TextClient,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._vision_client = vision_client
        self._text_client = text_client
        self._clock = clock or datetime.now

    def analyze_image(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> list[InventoryItem]:
        """Detect items in a photo.

        Raises ``AnalysisError`` on any transport or parse failure; no partial
        result is returned.
        """

        started = time.monotonic()
        try:
            result = self._vision_client.analyze_image(
                image_bytes=image_bytes,
                prompt=IMAGE_ANALYSIS_PROMPT,
                mime_type=mime_type,
                schema=INVENTORY_ITEMS_SCHEMA,
            )
            raw_items = _extract_list(result.parsed_json, "items")
            per_item_ms = _elapsed_ms(started) / len(raw_items) if raw_items else None
            items = [
                build_detected_item(raw, processing_time_ms=per_item_ms)
                for raw in raw_items
            ]
        except Exception as exc:
            logger.warning("image analysis failed: %s", exc)
            raise AnalysisError(ANALYSIS_FAILED_MESSAGE) from exc

        logger.info(
            "image analyzed",
            extra={"item_count": len(items), "latency_ms": _elapsed_ms(started)},
        )
        return items

    def generate_recipes(self, inventory: list[InventoryItem]) -> list[Recipe]:
        """Request three recipes for the whole inventory; ``[]`` on failure."""

        critical = [item.name for item in inventory if is_critical(item)]
        prompt = RECIPE_PROMPT_TEMPLATE.format(
            critical_items=", ".join(critical) or "none",
            inventory=summarize_inventory(inventory),
        )
        return self._request_recipes(
            prompt,
            constraints=RECIPE_CONSTRAINTS,
            default_logic=DEFAULT_RECIPE_LOGIC,
            kind="standard",
        )

    def generate_rescue_recipes(self, inventory: list[InventoryItem]) -> list[Recipe]:
        """Request recipes built around items expiring within three days.

        Without any such item this is exactly :meth:`generate_recipes`.
        """

        critical = [item for item in inventory if is_critical(item)]
        if not critical:
            logger.info("no critical items; using standard recipe generation")
            return self.generate_recipes(inventory)

        others = [item for item in inventory if not is_critical(item)]
        prompt = RESCUE_PROMPT_TEMPLATE.format(
            critical_items=summarize_inventory(critical),
            other_items=", ".join(f"{i.quantity} {i.name}" for i in others) or "none",
        )
        return self._request_recipes(
            prompt,
            constraints=RESCUE_CONSTRAINTS,
            default_logic=DEFAULT_RESCUE_LOGIC,
            kind="rescue",
        )

    def chat(self, message: str, inventory: list[InventoryItem]) -> str:
        """Answer one assistant message; failures return a fixed apology."""

        prompt = ASSISTANT_PROMPT_TEMPLATE.format(
            inventory=", ".join(f"{i.quantity} {i.name}" for i in inventory) or "empty",
            user_state=_user_state(inventory),
            current_time=self._clock().strftime("%H:%M"),
            message=message,
        )
        try:
            result = self._text_client.run_prompt(prompt=prompt)
        except Exception:
            logger.exception("assistant request failed")
            return ASSISTANT_FALLBACK_REPLY

        reply = (result.raw_text or "").strip()
        return reply or ASSISTANT_FALLBACK_REPLY

    def _request_recipes(
        self,
        prompt: str,
        *,
        constraints: list[str],
        default_logic: str,
        kind: str,
    ) -> list[Recipe]:
        started = time.monotonic()
        try:
            result = self._text_client.run_prompt(prompt=prompt, schema=RECIPES_SCHEMA)
            raw_recipes = _extract_list(result.parsed_json, "recipes")
            for raw in raw_recipes:
                if not isinstance(raw, Mapping):
                    raise MalformedResponseError("recipe must be an object")
                missing = missing_required_keys(raw)
                if missing:
                    raise MalformedResponseError(
                        f"recipe missing {', '.join(missing)}"
                    )

            latency_ms = _elapsed_ms(started)
            recipes = [
                assemble_recipe(
                    raw,
                    AiOptimizationData(
                        constraints_checked=list(constraints),
                        tokens_used=result.tokens_used,
                        processing_time_ms=latency_ms,
                        optimization_logic=_optional_text(
                            raw.get("aiOptimizationLogic")
                        )
                        or default_logic,
                        model=result.model,
                    ),
                )
                for raw in raw_recipes
            ]
        except Exception as exc:
            logger.warning(
                "recipe generation failed: %s", exc, extra={"mode": kind}
            )
            return []

        logger.info(
            "recipes generated",
            extra={"mode": kind, "count": len(recipes), "latency_ms": latency_ms},
        )
        return recipes
