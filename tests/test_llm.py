import unittest
from types import SimpleNamespace
from unittest import mock

import httpx

from fridgesmart_backend.services.llm import (
    ResponseSchema,
    TextLLMSettings,
    VisionLLMSettings,
    attempt_json_parse,
    init_text_llm_client,
    init_vision_llm_client,
)

SCHEMA = ResponseSchema(name="recipes", schema={"type": "object"})


def _response(text: str, total_tokens: int | None = 12):
    usage = SimpleNamespace(total_tokens=total_tokens) if total_tokens else None
    return SimpleNamespace(output_text=text, usage=usage)


class AttemptJsonParseTests(unittest.TestCase):
    def test_extracts_object_from_surrounding_text(self):
        self.assertEqual(
            attempt_json_parse('Here you go:\n```json\n{"items": []}\n```'),
            {"items": []},
        )

    def test_unparseable_text(self):
        for text in ("", "no braces", "{broken", "{'single': 'quotes'}"):
            with self.subTest(text=text):
                self.assertIsNone(attempt_json_parse(text))


@mock.patch("fridgesmart_backend.services.llm.OpenAI")
class VisionLLMClientTests(unittest.TestCase):
    def test_sends_image_and_schema(self, openai_cls):
        openai = openai_cls.return_value
        openai.responses.create.return_value = _response('{"items": []}')

        client = init_vision_llm_client(
            VisionLLMSettings(api_key="key", model="gpt-vision", timeout_seconds=5)
        )
        result = client.analyze_image(
            image_bytes=b"abc", prompt="Find food", mime_type="image/png", schema=SCHEMA
        )

        openai_cls.assert_called_once_with(api_key="key", timeout=5, max_retries=0)
        kwargs = openai.responses.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-vision")
        self.assertEqual(
            kwargs["text"]["format"],
            {"type": "json_schema", "name": "recipes", "schema": {"type": "object"}, "strict": False},
        )
        parts = kwargs["input"][0]["content"]
        self.assertEqual(parts[0]["image_url"], "data:image/png;base64,YWJj")
        self.assertEqual(parts[1]["text"], "Find food")
        self.assertEqual(result.parsed_json, {"items": []})
        self.assertEqual(result.tokens_used, 12)
        self.assertEqual(result.model, "gpt-vision")

    def test_rejects_empty_image(self, openai_cls):
        client = init_vision_llm_client(VisionLLMSettings(api_key="key"))
        with self.assertRaises(ValueError):
            client.analyze_image(image_bytes=b"", prompt="Find food")
        openai_cls.return_value.responses.create.assert_not_called()

    def test_timeouts_are_reraised(self, openai_cls):
        openai_cls.return_value.responses.create.side_effect = httpx.ReadTimeout("slow")
        client = init_vision_llm_client(VisionLLMSettings(api_key="key"))

        with self.assertLogs("fridgesmart_backend.services.llm", level="ERROR"):
            with self.assertRaises(httpx.TimeoutException):
                client.analyze_image(image_bytes=b"abc", prompt="Find food")


@mock.patch("fridgesmart_backend.services.llm.OpenAI")
class TextLLMClientTests(unittest.TestCase):
    def test_plain_prompt_without_schema(self, openai_cls):
        openai = openai_cls.return_value
        openai.responses.create.return_value = _response("Hello there", None)

        client = init_text_llm_client(TextLLMSettings(api_key="key", model="gpt-text"))
        result = client.run_prompt(prompt="Say hi", system_prompt="Be brief")

        kwargs = openai.responses.create.call_args.kwargs
        self.assertNotIn("text", kwargs)
        self.assertEqual([m["role"] for m in kwargs["input"]], ["system", "user"])
        self.assertEqual(result.raw_text, "Hello there")
        self.assertIsNone(result.parsed_json)
        self.assertEqual(result.tokens_used, 0)
        self.assertEqual(client.model, "gpt-text")

    def test_blank_prompt_rejected(self, openai_cls):
        client = init_text_llm_client(TextLLMSettings(api_key="key"))
        with self.assertRaises(ValueError):
            client.run_prompt(prompt="  ")


if __name__ == "__main__":
    unittest.main()
