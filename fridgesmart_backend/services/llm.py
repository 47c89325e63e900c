"""Client helpers for interacting with the hosted OpenAI models."""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any

from httpx import RequestError, TimeoutException
from openai import OpenAI
from openai.types.responses import Response

from fridgesmart_backend.config import (
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_TEXT_MODEL,
    DEFAULT_VISION_MODEL,
)

logger = logging.getLogger(__name__)


@dataclass
class VisionLLMSettings:
    """Configuration required to talk to the vision model."""

    api_key: str
    model: str = DEFAULT_VISION_MODEL
    timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS


@dataclass
class TextLLMSettings:
    """Configuration required to talk to a text-only model."""

    api_key: str
    model: str = DEFAULT_TEXT_MODEL
    timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS


@dataclass(slots=True)
class LLMResult:
    """Container for the raw and parsed outputs from a model call."""

    raw_text: str
    parsed_json: Any | None
    model: str
    tokens_used: int = 0


@dataclass(frozen=True, slots=True)
class ResponseSchema:
    """Named JSON schema requested as structured output."""

    name: str
    schema: dict[str, Any]

    def as_text_format(self) -> dict[str, Any]:
        return {
            "format": {
                "type": "json_schema",
                "name": self.name,
                "schema": self.schema,
                "strict": False,
            }
        }


def _build_openai_client(api_key: str, timeout_seconds: float) -> OpenAI:
    # Requests are single round trips; failures go straight back to the caller.
    return OpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)


def _create_response(
    client: OpenAI,
    *,
    model: str,
    content: list[dict[str, Any]],
    schema: ResponseSchema | None,
) -> Response:
    kwargs: dict[str, Any] = {"model": model, "input": content}
    if schema is not None:
        kwargs["text"] = schema.as_text_format()

    try:
        return client.responses.create(**kwargs)
    except TimeoutException as e:
        logger.error("OpenAI / HTTP timeout: %r", e)
        raise
    except RequestError as e:
        logger.error("OpenAI / HTTP network error: %r", e)
        raise
    except Exception:
        logger.exception("OpenAI response error")
        raise


def _build_result(response: Response, model: str) -> LLMResult:
    output_text = response.output_text
    usage = getattr(response, "usage", None)
    tokens_used = int(getattr(usage, "total_tokens", 0) or 0) if usage else 0
    return LLMResult(
        raw_text=output_text,
        parsed_json=attempt_json_parse(output_text),
        model=model,
        tokens_used=tokens_used,
    )


def attempt_json_parse(text: str) -> Any | None:
    """Try to convert the model's text output into a JSON object."""
    candidate = (text or "").strip()
    if not candidate:
        return None

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    candidate = candidate[start : end + 1]

    try:
        return json.loads(candidate)
    except JSONDecodeError:
        logger.debug("LLM output was not valid JSON", exc_info=True)
        return None


class VisionLLMClient:
    """Thin wrapper around the OpenAI Responses API for vision requests."""

    def __init__(self, settings: VisionLLMSettings) -> None:
        self._settings = settings
        self._client = _build_openai_client(
            settings.api_key, settings.timeout_seconds
        )

    @property
    def model(self) -> str:
        return self._settings.model

    def analyze_image(
        self,
        *,
        image_bytes: bytes,
        prompt: str,
        mime_type: str | None = None,
        schema: ResponseSchema | None = None,
    ) -> LLMResult:
        """Send the given prompt and image to the configured model."""
        if not image_bytes:
            raise ValueError("image_bytes is empty")

        user_text = (prompt or "").strip()
        if not user_text:
            raise ValueError("prompt is required")

        image_base64 = base64.b64encode(image_bytes).decode("ascii")
        mime = (mime_type or "image/jpeg").strip() or "image/jpeg"
        data_uri = f"data:{mime};base64,{image_base64}"

        content = [
            {
                "role": "user",
                "content": [
                    {"type": "input_image", "image_url": data_uri},
                    {"type": "input_text", "text": user_text},
                ],
            }
        ]

        response = _create_response(
            self._client,
            model=self._settings.model,
            content=content,
            schema=schema,
        )
        return _build_result(response, self._settings.model)


class TextLLMClient:
    """Minimal client for JSON-friendly text prompts."""

    def __init__(self, settings: TextLLMSettings) -> None:
        self._settings = settings
        self._client = _build_openai_client(
            settings.api_key, settings.timeout_seconds
        )

    @property
    def model(self) -> str:
        return self._settings.model

    def run_prompt(
        self,
        *,
        prompt: str,
        system_prompt: str | None = None,
        schema: ResponseSchema | None = None,
    ) -> LLMResult:
        """Send a text-only prompt to the configured model."""

        user_text = (prompt or "").strip()
        if not user_text:
            raise ValueError("prompt is required")

        content = []
        if system_prompt:
            content.append(
                {
                    "role": "system",
                    "content": [{"type": "input_text", "text": system_prompt}],
                }
            )

        content.append(
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": user_text},
                ],
            }
        )

        response = _create_response(
            self._client,
            model=self._settings.model,
            content=content,
            schema=schema,
        )
        return _build_result(response, self._settings.model)


def init_vision_llm_client(settings: VisionLLMSettings) -> VisionLLMClient:
    """Create a ``VisionLLMClient`` instance from the provided settings."""

    return VisionLLMClient(settings)


def init_text_llm_client(settings: TextLLMSettings) -> TextLLMClient:
    """Create a ``TextLLMClient`` instance from the provided settings."""

    return TextLLMClient(settings)
