"""Recipe records and their assembly from loosely structured model output."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

DEFAULT_DIFFICULTY = "Medium"
DEFAULT_SERVINGS = 4
DEFAULT_TITLE = "Untitled Recipe"
DEFAULT_DESCRIPTION = "No description available"
DEFAULT_INGREDIENT_NAME = "Unknown Ingredient"
DEFAULT_STEP_TEXT = "Prepare ingredient"
DEFAULT_MACRO_AMOUNT = "0g"

# A recipe object missing any of these keys makes the whole batch malformed.
REQUIRED_RECIPE_KEYS = ("name", "ingredients", "instructions", "timing", "nutrition")

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

RECIPE_OBJECT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "type": {"type": "string"},
        "savingsMessage": {"type": "string"},
        "criticalItemsUsed": _STRING_LIST,
        "ingredients": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "item": {"type": "string"},
                    "amount": {"type": "string"},
                    "have": {"type": "boolean"},
                    "estimatedCost": {"type": "number"},
                    "urgency": {"type": "string"},
                },
            },
        },
        "substitutions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "original": {"type": "string"},
                    "alternatives": _STRING_LIST,
                    "note": {"type": "string"},
                },
            },
        },
        "instructions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "step": {"type": "integer"},
                    "action": {"type": "string"},
                    "time": {"type": "string"},
                    "tip": {"type": "string"},
                    "why": {"type": "string"},
                },
            },
        },
        "timing": {
            "type": "object",
            "properties": {
                "prep": {"type": "number"},
                "cook": {"type": "number"},
                "total": {"type": "number"},
            },
        },
        "difficulty": {"type": "string"},
        "difficultyReason": {"type": "string"},
        "nutrition": {
            "type": "object",
            "properties": {
                "servings": {"type": "number"},
                "perServing": {
                    "type": "object",
                    "properties": {
                        "calories": {"type": "number"},
                        "protein": {"type": "string"},
                        "carbs": {"type": "string"},
                        "fat": {"type": "string"},
                        "fiber": {"type": "string"},
                        "sodium": {"type": "string"},
                    },
                },
                "highlights": _STRING_LIST,
            },
        },
        "cost": {
            "type": "object",
            "properties": {
                "total": {"type": "number"},
                "perServing": {"type": "number"},
                "breakdown": {
                    "type": "object",
                    "properties": {
                        "have": {"type": "number"},
                        "needToBuy": {"type": "number"},
                    },
                },
                "comparison": {"type": "string"},
            },
        },
        "tags": _STRING_LIST,
        "storage": {"type": "string"},
        "tips": _STRING_LIST,
        "variations": _STRING_LIST,
        "aiOptimizationLogic": {
            "type": "string",
            "description": (
                "How the recipe satisfies the expiry, budget and nutrition "
                "constraints."
            ),
        },
    },
    "required": [*REQUIRED_RECIPE_KEYS, "aiOptimizationLogic"],
}

RECIPE_BATCH_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"recipes": {"type": "array", "items": RECIPE_OBJECT_SCHEMA}},
    "required": ["recipes"],
}


@dataclass(slots=True)
class Ingredient:
    name: str
    amount: str
    is_in_inventory: bool
    estimated_cost: float = 0.0
    urgency: str | None = None


@dataclass(slots=True)
class Substitution:
    original: str
    alternatives: list[str] = field(default_factory=list)
    note: str | None = None


@dataclass(slots=True)
class MacroNutrients:
    calories: float = 0
    protein: str = DEFAULT_MACRO_AMOUNT
    carbs: str = DEFAULT_MACRO_AMOUNT
    fats: str = DEFAULT_MACRO_AMOUNT


@dataclass(slots=True)
class RecipeInstruction:
    step: int
    text: str
    duration: str | None = None
    tip: str | None = None
    why: str | None = None


@dataclass(slots=True)
class CostBreakdown:
    total: float = 0.0
    per_serving: float = 0.0
    have: float = 0.0
    need_to_buy: float = 0.0
    comparison: str | None = None


@dataclass(slots=True)
class AiOptimizationData:
    """Informational metadata attached to every generated recipe."""

    constraints_checked: list[str]
    tokens_used: int
    processing_time_ms: float
    optimization_logic: str
    model: str


@dataclass(slots=True)
class Recipe:
    """A fully populated recipe ready to be rendered."""

    id: str
    title: str
    description: str
    ingredients: list[Ingredient]
    instructions: list[RecipeInstruction]
    prep_time: str
    cook_time: str
    total_time: str
    servings: int
    cost: CostBreakdown
    savings: float
    difficulty: str
    macros: MacroNutrients
    nutrition: dict[str, Any]
    type: str | None = None
    critical_items_used: list[str] = field(default_factory=list)
    substitutions: list[Substitution] = field(default_factory=list)
    savings_message: str | None = None
    difficulty_reason: str | None = None
    tags: list[str] = field(default_factory=list)
    storage: str | None = None
    tips: list[str] = field(default_factory=list)
    variations: list[str] = field(default_factory=list)
    ai_technical_data: AiOptimizationData | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase shape the client renders."""

        payload: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "ingredients": [
                {
                    "name": ingredient.name,
                    "amount": ingredient.amount,
                    "isInInventory": ingredient.is_in_inventory,
                    "estimatedCost": ingredient.estimated_cost,
                    "urgency": ingredient.urgency,
                }
                for ingredient in self.ingredients
            ],
            "criticalItemsUsed": list(self.critical_items_used),
            "substitutions": [asdict(entry) for entry in self.substitutions],
            "instructions": [
                {
                    "step": instruction.step,
                    "text": instruction.text,
                    "duration": instruction.duration,
                    "tip": instruction.tip,
                    "why": instruction.why,
                }
                for instruction in self.instructions
            ],
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "totalTime": self.total_time,
            "servings": self.servings,
            "cost": {
                "total": self.cost.total,
                "perServing": self.cost.per_serving,
                "breakdown": {
                    "have": self.cost.have,
                    "needToBuy": self.cost.need_to_buy,
                },
                "comparison": self.cost.comparison,
            },
            "costPerServing": self.cost.per_serving,
            "totalCost": self.cost.total,
            "savings": self.savings,
            "savingsMessage": self.savings_message,
            "difficulty": self.difficulty,
            "difficultyReason": self.difficulty_reason,
            "macros": asdict(self.macros),
            "nutrition": self.nutrition,
            "tags": list(self.tags),
            "storage": self.storage,
            "tips": list(self.tips),
            "variations": list(self.variations),
        }
        if self.ai_technical_data is not None:
            data = self.ai_technical_data
            payload["aiTechnicalData"] = {
                "constraintsChecked": list(data.constraints_checked),
                "tokensUsed": data.tokens_used,
                "processingTimeMs": data.processing_time_ms,
                "optimizationLogic": data.optimization_logic,
                "model": data.model,
            }
        return payload


def _mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _list(value: object) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def _number(value: object, default: float = 0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _text(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def _minutes(value: object) -> str:
    amount = _number(value)
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return f"{amount}m"


def _string_list(value: object) -> list[str]:
    return [entry for entry in _list(value) if isinstance(entry, str)]


def _assemble_ingredient(raw: object) -> Ingredient:
    data = _mapping(raw)
    return Ingredient(
        name=_text(data.get("item")) or _text(data.get("name")) or DEFAULT_INGREDIENT_NAME,
        amount=_text(data.get("amount")) or "",
        is_in_inventory=bool(data.get("have")),
        estimated_cost=_number(data.get("estimatedCost")),
        urgency=_text(data.get("urgency")),
    )


def _assemble_instruction(raw: object) -> RecipeInstruction:
    data = _mapping(raw)
    step = data.get("step")
    return RecipeInstruction(
        step=int(step) if isinstance(step, (int, float)) and not isinstance(step, bool) else 0,
        text=_text(data.get("action")) or _text(data.get("text")) or DEFAULT_STEP_TEXT,
        duration=_text(data.get("time")),
        tip=_text(data.get("tip")),
        why=_text(data.get("why")),
    )


def _assemble_substitution(raw: object) -> Substitution | None:
    data = _mapping(raw)
    original = _text(data.get("original"))
    if original is None:
        return None
    return Substitution(
        original=original,
        alternatives=_string_list(data.get("alternatives")),
        note=_text(data.get("note")),
    )


def _assemble_cost(raw: object) -> CostBreakdown:
    data = _mapping(raw)
    breakdown = _mapping(data.get("breakdown"))
    return CostBreakdown(
        total=_number(data.get("total")),
        per_serving=_number(data.get("perServing")),
        have=_number(breakdown.get("have")),
        need_to_buy=_number(breakdown.get("needToBuy")),
        comparison=_text(data.get("comparison")),
    )


def missing_required_keys(raw: Mapping[str, Any]) -> list[str]:
    return [key for key in REQUIRED_RECIPE_KEYS if key not in raw]


def assemble_recipe(
    raw: Mapping[str, Any], technical_data: AiOptimizationData | None = None
) -> Recipe:
    """Build a :class:`Recipe`, filling every gap with its documented default."""

    timing = _mapping(raw.get("timing"))
    nutrition = _mapping(raw.get("nutrition"))
    per_serving = _mapping(nutrition.get("perServing"))
    cost = _assemble_cost(raw.get("cost"))
    servings = _number(nutrition.get("servings")) or DEFAULT_SERVINGS

    substitutions = [
        entry
        for entry in (_assemble_substitution(s) for s in _list(raw.get("substitutions")))
        if entry is not None
    ]

    return Recipe(
        id=uuid.uuid4().hex,
        title=_text(raw.get("name")) or DEFAULT_TITLE,
        description=_text(raw.get("description")) or DEFAULT_DESCRIPTION,
        type=_text(raw.get("type")),
        ingredients=[_assemble_ingredient(i) for i in _list(raw.get("ingredients"))],
        critical_items_used=_string_list(raw.get("criticalItemsUsed")),
        substitutions=substitutions,
        instructions=[
            _assemble_instruction(i) for i in _list(raw.get("instructions"))
        ],
        prep_time=_minutes(timing.get("prep")),
        cook_time=_minutes(timing.get("cook")),
        total_time=_minutes(timing.get("total")),
        servings=int(servings),
        cost=cost,
        savings=cost.have,
        savings_message=_text(raw.get("savingsMessage")),
        difficulty=_text(raw.get("difficulty")) or DEFAULT_DIFFICULTY,
        difficulty_reason=_text(raw.get("difficultyReason")),
        macros=MacroNutrients(
            calories=_number(per_serving.get("calories")),
            protein=_text(per_serving.get("protein")) or DEFAULT_MACRO_AMOUNT,
            carbs=_text(per_serving.get("carbs")) or DEFAULT_MACRO_AMOUNT,
            fats=_text(per_serving.get("fat")) or DEFAULT_MACRO_AMOUNT,
        ),
        nutrition=dict(nutrition),
        tags=_string_list(raw.get("tags")),
        storage=_text(raw.get("storage")),
        tips=_string_list(raw.get("tips")),
        variations=_string_list(raw.get("variations")),
        ai_technical_data=technical_data,
    )
