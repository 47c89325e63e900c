import json
import unittest
from datetime import date, datetime

from fridgesmart_backend.config.llm import (
    ASSISTANT_FALLBACK_REPLY,
    DEFAULT_RECIPE_LOGIC,
    RECIPE_CONSTRAINTS,
    RESCUE_CONSTRAINTS,
)
from fridgesmart_backend.services.analysis import (
    ANALYSIS_FAILED_MESSAGE,
    AnalysisError,
    AnalysisGateway,
    build_detected_item,
)
from fridgesmart_backend.services.inventory import demo_items, new_manual_item
from fridgesmart_backend.services.llm import LLMResult
from fridgesmart_backend.services.status import ItemStatus


def _result(payload, model="stub-model") -> LLMResult:
    return LLMResult(
        raw_text=json.dumps(payload),
        parsed_json=payload,
        model=model,
        tokens_used=42,
    )


class _StubVisionClient:
    model = "stub-vision"

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def analyze_image(self, *, image_bytes, prompt, mime_type=None, schema=None):
        self.calls.append((image_bytes, mime_type, schema))
        if self.error is not None:
            raise self.error
        return self.result


class _StubTextClient:
    model = "stub-text"

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.prompts: list[str] = []

    def run_prompt(self, *, prompt, system_prompt=None, schema=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.result


def _gateway(vision=None, text=None) -> AnalysisGateway:
    return AnalysisGateway(
        vision_client=vision or _StubVisionClient(),
        text_client=text or _StubTextClient(),
        clock=lambda: datetime(2024, 12, 15, 18, 45),
    )


DETECTED = {
    "name": "Greek Yogurt",
    "brand": "Fage",
    "quantity": "1 tub",
    "category": "Dairy Products",
    "expirationDate": "2024-12-20",
    "daysUntilExpiry": 5,
    "freshness": "Good",
    "freshnessReason": "Sealed with a clean rim",
    "visualCues": ["Sealed"],
    "estimatedValue": 4.5,
    "confidence": 93,
    "ocrTextDetected": "Best by 12/20",
}

RECIPE = {
    "name": "Yogurt Parfait",
    "ingredients": [{"item": "Greek Yogurt", "amount": "1 cup", "have": True}],
    "instructions": [{"step": 1, "action": "Layer"}],
    "timing": {"prep": 5, "cook": 0, "total": 5},
    "nutrition": {"servings": 1, "perServing": {"calories": 250}},
}


class BuildDetectedItemTests(unittest.TestCase):
    def test_full_item(self):
        item = build_detected_item(DETECTED, processing_time_ms=120.0)

        self.assertEqual(item.name, "Fage Greek Yogurt")
        self.assertEqual(item.category, "Dairy")
        self.assertEqual(item.expiration_date, date(2024, 12, 20))
        self.assertEqual(item.status, ItemStatus.GOOD)
        self.assertEqual(item.ai_analysis.ocr_text, "Best by 12/20")
        self.assertEqual(item.ai_analysis.visual_indicators, "Good")
        self.assertEqual(item.ai_analysis.processing_time_ms, 120.0)

    def test_label_overrides_days(self):
        raw = {**DETECTED, "daysUntilExpiry": 20, "freshness": "Critical"}
        item = build_detected_item(raw, processing_time_ms=None)
        self.assertEqual(item.status, ItemStatus.EXPIRING)

    def test_missing_optional_fields(self):
        raw = {
            key: DETECTED[key]
            for key in (
                "name",
                "daysUntilExpiry",
                "estimatedValue",
                "freshnessReason",
                "confidence",
            )
        }
        raw["daysUntilExpiry"] = 4
        raw["estimatedValue"] = -2

        item = build_detected_item(
            raw, processing_time_ms=None, today=date(2024, 12, 15)
        )

        self.assertEqual(item.name, "Greek Yogurt")
        self.assertEqual(item.quantity, "1")
        self.assertEqual(item.category, "Other")
        self.assertEqual(item.expiration_date, date(2024, 12, 19))
        self.assertEqual(item.status, ItemStatus.USE_SOON)
        self.assertEqual(item.estimated_value, 0)


class AnalyzeImageTests(unittest.TestCase):
    def test_items_returned_with_provenance(self):
        vision = _StubVisionClient(result=_result({"items": [DETECTED, DETECTED]}))
        items = _gateway(vision=vision).analyze_image(b"jpeg", "image/png")

        self.assertEqual(len(items), 2)
        self.assertNotEqual(items[0].id, items[1].id)
        self.assertIsNotNone(items[0].ai_analysis.processing_time_ms)
        self.assertEqual(vision.calls[0][1], "image/png")
        self.assertEqual(vision.calls[0][2].name, "inventory_items")

    def test_empty_detection_is_not_an_error(self):
        vision = _StubVisionClient(result=_result({"items": []}))
        self.assertEqual(_gateway(vision=vision).analyze_image(b"jpeg"), [])

    def test_failures_raise_analysis_error(self):
        missing_reason = {k: v for k, v in DETECTED.items() if k != "freshnessReason"}
        clients = [
            _StubVisionClient(error=TimeoutError("timed out")),
            _StubVisionClient(
                result=LLMResult(raw_text="no json", parsed_json=None, model="m")
            ),
            _StubVisionClient(result=_result({"items": [missing_reason]})),
            _StubVisionClient(
                result=_result({"items": [{**DETECTED, "daysUntilExpiry": "soon"}]})
            ),
        ]
        for client in clients:
            with self.subTest(client=client):
                with self.assertRaises(AnalysisError) as ctx:
                    _gateway(vision=client).analyze_image(b"jpeg")
                self.assertEqual(str(ctx.exception), ANALYSIS_FAILED_MESSAGE)


class GenerateRecipesTests(unittest.TestCase):
    def test_recipes_carry_technical_data(self):
        text = _StubTextClient(result=_result({"recipes": [RECIPE]}, model="gpt-test"))
        recipes = _gateway(text=text).generate_recipes(demo_items())

        self.assertEqual(len(recipes), 1)
        data = recipes[0].ai_technical_data
        self.assertEqual(data.tokens_used, 42)
        self.assertEqual(data.model, "gpt-test")
        self.assertEqual(data.optimization_logic, DEFAULT_RECIPE_LOGIC)
        self.assertEqual(data.constraints_checked, RECIPE_CONSTRAINTS)
        self.assertIn("Organic Spinach", text.prompts[0])

    def test_failure_returns_empty_list(self):
        text = _StubTextClient(error=ConnectionError("offline"))
        self.assertEqual(_gateway(text=text).generate_recipes(demo_items()), [])

    def test_missing_required_field_is_malformed(self):
        broken = {k: v for k, v in RECIPE.items() if k != "timing"}
        text = _StubTextClient(result=_result({"recipes": [RECIPE, broken]}))
        self.assertEqual(_gateway(text=text).generate_recipes(demo_items()), [])

    def test_non_finite_numbers_return_empty_list(self):
        for raw in (
            {**RECIPE, "instructions": [{"step": float("nan"), "action": "Layer"}]},
            {**RECIPE, "nutrition": {"servings": float("inf")}},
        ):
            with self.subTest(raw=raw):
                text = _StubTextClient(result=_result({"recipes": [raw]}))
                self.assertEqual(_gateway(text=text).generate_recipes(demo_items()), [])

    def test_optimization_logic_from_model(self):
        raw = {**RECIPE, "aiOptimizationLogic": "Yogurt first."}
        text = _StubTextClient(result=_result({"recipes": [raw]}))
        recipes = _gateway(text=text).generate_recipes(demo_items())
        self.assertEqual(recipes[0].ai_technical_data.optimization_logic, "Yogurt first.")


class RescueRecipesTests(unittest.TestCase):
    def test_without_critical_items_matches_standard_generation(self):
        inventory = [new_manual_item("Rice", days_until_expiration=30)]
        rescue_text = _StubTextClient(result=_result({"recipes": [RECIPE]}))
        standard_text = _StubTextClient(result=_result({"recipes": [RECIPE]}))

        rescued = _gateway(text=rescue_text).generate_rescue_recipes(inventory)
        _gateway(text=standard_text).generate_recipes(inventory)

        self.assertEqual(rescue_text.prompts, standard_text.prompts)
        self.assertEqual(rescued[0].ai_technical_data.constraints_checked, RECIPE_CONSTRAINTS)

    def test_critical_items_drive_rescue_prompt(self):
        inventory = [
            new_manual_item("Spinach", days_until_expiration=1),
            new_manual_item("Rice", days_until_expiration=30),
        ]
        text = _StubTextClient(result=_result({"recipes": [RECIPE]}))

        recipes = _gateway(text=text).generate_rescue_recipes(inventory)

        self.assertIn("rescue", text.prompts[0].lower())
        self.assertIn("1 Spinach (expires in 1 days)", text.prompts[0])
        self.assertIn("Supporting inventory: 1 Rice", text.prompts[0])
        self.assertEqual(recipes[0].ai_technical_data.constraints_checked, RESCUE_CONSTRAINTS)


class ChatTests(unittest.TestCase):
    def test_reply_and_context(self):
        text = _StubTextClient(
            result=LLMResult(raw_text=" Make a frittata! ", parsed_json=None, model="m")
        )
        reply = _gateway(text=text).chat("What's for dinner?", demo_items())

        self.assertEqual(reply, "Make a frittata!")
        prompt = text.prompts[0]
        self.assertIn("Urgent/Stressed", prompt)
        self.assertIn("18:45", prompt)
        self.assertIn('"What\'s for dinner?"', prompt)

    def test_relaxed_state_with_few_urgent_items(self):
        text = _StubTextClient(
            result=LLMResult(raw_text="Hi", parsed_json=None, model="m")
        )
        _gateway(text=text).chat("hello", [new_manual_item("Rice")])
        self.assertIn("Relaxed", text.prompts[0])

    def test_fallback_reply(self):
        failing = _StubTextClient(error=TimeoutError("slow"))
        empty = _StubTextClient(
            result=LLMResult(raw_text="   ", parsed_json=None, model="m")
        )
        for client in (failing, empty):
            with self.subTest(client=client):
                self.assertEqual(
                    _gateway(text=client).chat("hello", []), ASSISTANT_FALLBACK_REPLY
                )


if __name__ == "__main__":
    unittest.main()
