"""Defaults for the hosted models that are tracked in Git."""

# Model versions used by default. Can be overridden via env if needed.
DEFAULT_VISION_MODEL = "gpt-4o"
DEFAULT_TEXT_MODEL = "gpt-4o-mini"
DEFAULT_LLM_TIMEOUT_SECONDS = 60.0

# Canonical prompt for fridge photo analysis.
IMAGE_ANALYSIS_PROMPT = (
    "You are the FridgeSmart vision engine. Your job is to stop food waste.\n"
    "Look at this photo of a refrigerator or pantry and:\n"
    "1. Identify every food item you can see.\n"
    "2. Read any visible text: brands, weights, best-by and expiration dates.\n"
    "3. Judge freshness from visual cues such as browning, wilting, bruising, "
    "broken seals or bloated packaging.\n"
    "4. Estimate the current US retail price of each item.\n"
    "For each item give a short freshnessReason grounded in what you saw, "
    'for example "Edges of the strawberries are browning; use today." '
    "freshness must be one of Fresh, Good, Use Soon or Critical. "
    "confidence is 0-100. category should be one of Produce, Dairy, Meat, "
    "Grains, Condiments, Frozen, Beverages, Snacks or Other. "
    'Return a JSON object of the form {"items": [...]}. Only output JSON.'
)

RECIPE_CONSTRAINTS = [
    "Expiry Priority",
    "Budget Optimization",
    "Nutritional Balance",
    "Time Management",
    "Skill Variety",
]

RESCUE_CONSTRAINTS = [
    "Critical Waste Prevention",
    "Speed Strategy",
    "Volume Strategy",
    "Creative Strategy",
]

DEFAULT_RECIPE_LOGIC = "Optimized based on inventory constraints."
DEFAULT_RESCUE_LOGIC = (
    "Rescue plan executed; optimized for immediate use of high-risk items."
)

RECIPE_PROMPT_TEMPLATE = (
    "You are the FridgeSmart recipe planner.\n"
    "Generate exactly 3 distinct recipes that balance these constraints:\n"
    "1. URGENCY: use the items that expire soonest first: {critical_items}.\n"
    "2. BUDGET: keep new purchases under $4 per serving; cook from inventory.\n"
    "3. NUTRITION: balance protein, carbohydrates and fats.\n"
    "4. TIME: under 45 minutes of total prep and cook time.\n"
    "5. SKILL: one beginner, one intermediate and one advanced recipe.\n"
    "Avoid using the same main protein in all three recipes when possible.\n"
    "For every recipe explain in aiOptimizationLogic which items you chose "
    "and why, referring to the constraints above.\n"
    "Inventory available: {inventory}\n"
    'Return a JSON object of the form {{"recipes": [...]}}. Only output JSON.'
)

RESCUE_PROMPT_TEMPLATE = (
    "FridgeSmart rescue mode: several items are about to spoil.\n"
    "Generate exactly 3 rescue recipes:\n"
    "1. Speed rescue: the fastest meal that uses the expiring items "
    "(under 20 minutes).\n"
    "2. Volume rescue: uses the largest quantity of expiring items.\n"
    "3. Creative rescue: an unexpected twist that makes the expiring items "
    "exciting again.\n"
    "Items that must be used: {critical_items}\n"
    "Supporting inventory: {other_items}\n"
    "Explain your reasoning for each recipe in aiOptimizationLogic.\n"
    'Return a JSON object of the form {{"recipes": [...]}}. Only output JSON.'
)

ASSISTANT_PROMPT_TEMPLATE = (
    "You are FridgeSmart's kitchen assistant.\n"
    "Be warm and non-judgmental about food waste, practical and proactive, "
    "and talk like a supportive friend. Emojis are welcome.\n"
    "User inventory: {inventory}\n"
    "User state: {user_state} (adapt your tone)\n"
    "Current time: {current_time}\n"
    'User message: "{message}"\n'
    "Help them use their food, enjoy cooking and save money. When you suggest "
    "a recipe, check it against their inventory."
)

ASSISTANT_FALLBACK_REPLY = (
    "I'm having trouble connecting to the kitchen server right now. "
    "But I'm still here to help!"
)
