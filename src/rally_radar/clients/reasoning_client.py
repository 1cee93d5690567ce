"""Reasoning service adapter backed by the Anthropic Messages API."""

from __future__ import annotations

from typing import Any, Dict, Optional

import anthropic
import orjson
from loguru import logger

from rally_radar.clients.base import APIClientError, BaseClient
from rally_radar.settings import Settings

STRUCTURED_TOOL_NAME = "structured_response"


class ReasoningServiceError(APIClientError):
    """Raised when the reasoning service is unreachable or returns unusable output."""


def extract_json(raw_text: str) -> Any:
    """Parse JSON from model output, tolerating fenced code blocks."""

    if not raw_text or not raw_text.strip():
        raise ReasoningServiceError("Empty response from reasoning service")
    text = raw_text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise ReasoningServiceError(f"Reasoning service returned invalid JSON: {exc}") from exc


class ReasoningClient(BaseClient):
    """Sends a system + user prompt pair and returns the model's text.

    When ``response_schema`` is given the model is forced to answer through a
    single tool whose input schema is that JSON schema, and the tool input is
    returned serialized as JSON text.
    """

    def __init__(self, settings: Settings, *, client: Any | None = None) -> None:
        super().__init__("reasoning", {"model": settings.reasoning_model})
        self._model = settings.reasoning_model
        self._max_tokens = settings.reasoning_max_tokens
        if client is not None:
            self._client = client
        elif settings.anthropic_api_key:
            self._client = anthropic.Anthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.reasoning_timeout_seconds,
                max_retries=1,
            )
        else:
            logger.warning("Anthropic API key is not configured; forecasting and narration will degrade.")
            self._client = None

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        if self._client is None:
            raise ReasoningServiceError("Reasoning service not configured")

        request: Dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if response_schema is not None:
            request["tools"] = [
                {
                    "name": STRUCTURED_TOOL_NAME,
                    "description": "Return the answer as structured JSON matching the schema.",
                    "input_schema": response_schema,
                }
            ]
            request["tool_choice"] = {"type": "tool", "name": STRUCTURED_TOOL_NAME}

        try:
            message = self._client.messages.create(**request)
        except anthropic.APIError as exc:
            logger.warning("Reasoning service request failed", model=self._model, error=str(exc))
            raise ReasoningServiceError(f"Reasoning service error: {exc}") from exc

        if response_schema is not None:
            for block in message.content:
                if getattr(block, "type", None) == "tool_use":
                    payload = orjson.dumps(block.input).decode()
                    self._log("Received structured response", chars=len(payload))
                    return payload

        text = "".join(getattr(block, "text", "") for block in message.content if getattr(block, "type", None) == "text")
        if not text:
            raise ReasoningServiceError("Reasoning service returned no content")
        self._log("Received text response", chars=len(text))
        return text
