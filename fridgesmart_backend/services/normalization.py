"""Utilities for normalizing free-text values returned by the vision model."""

from __future__ import annotations

import re
from typing import cast

import inflect
from inflect import Word

from fridgesmart_backend.models import ItemCategory

_NON_ALPHA_SPACE = re.compile(r"[^a-z ]+")
_COLLAPSE_SPACES = re.compile(r"\s+")
_INFLECT_ENGINE = inflect.engine()

# Keywords are singular; input words are also looked up singularized.
_CATEGORY_KEYWORDS: tuple[tuple[ItemCategory, frozenset[str]], ...] = (
    (
        ItemCategory.PRODUCE,
        frozenset({"produce", "fruit", "vegetable", "veg", "veggie", "herb", "salad"}),
    ),
    (
        ItemCategory.DAIRY,
        frozenset({"dairy", "milk", "cheese", "yogurt", "yoghurt", "butter", "cream", "egg"}),
    ),
    (
        ItemCategory.MEAT,
        frozenset({"meat", "chicken", "beef", "pork", "poultry", "fish", "seafood", "deli"}),
    ),
    (
        ItemCategory.GRAINS,
        frozenset({"grain", "bread", "pasta", "rice", "cereal", "bakery"}),
    ),
    (
        ItemCategory.CONDIMENTS,
        frozenset({"condiment", "sauce", "dressing", "spread", "jam"}),
    ),
    (ItemCategory.FROZEN, frozenset({"frozen", "ice", "freezer"})),
    (
        ItemCategory.BEVERAGES,
        frozenset({"beverage", "drink", "juice", "soda", "water", "beer", "wine"}),
    ),
    (ItemCategory.SNACKS, frozenset({"snack", "chip", "candy", "chocolate", "cookie"})),
)


def _singular(word: str) -> str:
    return str(_INFLECT_ENGINE.singular_noun(cast(Word, word)) or word)


def normalize_category(raw_category: str | None) -> str:
    """Map a free-text category onto one of the supported categories."""

    normalized = (raw_category or "").lower().strip()
    if not normalized:
        return ItemCategory.OTHER.value

    for entry in ItemCategory:
        if normalized == entry.value.lower():
            return entry.value

    normalized = normalized.replace("_", " ").replace("-", " ").replace("&", " ")
    normalized = _NON_ALPHA_SPACE.sub(" ", normalized)
    normalized = _COLLAPSE_SPACES.sub(" ", normalized).strip()
    tokens = [word for word in normalized.split(" ") if word]
    words = set(tokens) | {_singular(word) for word in tokens}

    for category, keywords in _CATEGORY_KEYWORDS:
        if words & keywords:
            return category.value
    return ItemCategory.OTHER.value


def compose_item_name(name: str | None, brand: str | None = None) -> str:
    """Return the display name for a detected item, prefixed by its brand."""

    base = _COLLAPSE_SPACES.sub(" ", (name or "").strip())
    brand_text = _COLLAPSE_SPACES.sub(" ", (brand or "").strip())
    if brand_text and base:
        return f"{brand_text} {base}"
    return base or brand_text
