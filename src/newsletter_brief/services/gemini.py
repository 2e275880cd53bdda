"""Gemini client wrapper that maps API outcomes onto pipeline errors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from newsletter_brief.errors import EmptyResponseError, SafetyBlockedError, TransportError

logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    """Language-model collaborator: prompt in, raw text out."""

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.3,
        max_output_tokens: int = 4096,
    ) -> str: ...


@dataclass
class GeminiClient:
    """Blocking Gemini text generation.

    Raises TransportError, SafetyBlockedError or EmptyResponseError; a reply
    cut at the token limit is logged and returned as is.
    """

    api_key: str
    model: str = "gemini-2.5-flash"

    def __post_init__(self) -> None:
        self.client = genai.Client(api_key=self.api_key)

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.3,
        max_output_tokens: int = 4096,
    ) -> str:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise TransportError(f"Gemini API error {exc.code}: {exc.message}") from exc
        except (httpx.HTTPError, OSError) as exc:
            raise TransportError(f"Request failed: {exc}") from exc

        return _extract_text(response)


def _extract_text(response) -> str:
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback else None
    if block_reason:
        raise SafetyBlockedError(f"Prompt blocked: {_enum_name(block_reason)}")

    candidates = getattr(response, "candidates", None) or []
    finish_reason = _enum_name(candidates[0].finish_reason) if candidates else ""

    if finish_reason == "SAFETY":
        raise SafetyBlockedError("Content blocked by safety filters")
    if finish_reason == "MAX_TOKENS":
        logger.warning("Response truncated due to MAX_TOKENS limit")

    text = response.text
    if not text or not text.strip():
        raise EmptyResponseError("No content in API response")
    return text


def _enum_name(value) -> str:
    if value is None:
        return ""
    return str(getattr(value, "name", value)).upper()
