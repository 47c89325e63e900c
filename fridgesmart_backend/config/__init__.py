"""Static configuration shipped with the codebase."""

# Model names and prompts live in config/llm.py.
from .llm import (
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_TEXT_MODEL,
    DEFAULT_VISION_MODEL,
)

# Fixed key for the persisted inventory blob.
INVENTORY_STORAGE_KEY = "fridgeSmartInventory"

__all__ = [
    "DEFAULT_LLM_TIMEOUT_SECONDS",
    "DEFAULT_TEXT_MODEL",
    "DEFAULT_VISION_MODEL",
    "INVENTORY_STORAGE_KEY",
]
