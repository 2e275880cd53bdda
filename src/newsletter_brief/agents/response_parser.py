"""Turn raw summarizer replies into a validated {theme, summary} record.

The model is asked for strict JSON but in practice it sometimes:
1. wraps the object in a fenced code block,
2. leaves quotes inside the summary unescaped,
3. answers in free text.

Parsing is split into independent stages:
- ``strip_code_fence``: remove the fence markers
- ``parse_strict``: plain ``json.loads``
- ``repair_json``: re-extract theme/summary from broken JSON
- ``ResponseParser.parse``: ties the stages together, validates and classifies
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from newsletter_brief.models.schemas import (
    ParsedResponse,
    ParsedSummary,
    ParseFailure,
    ParseSkip,
)
from newsletter_brief.tools.theme_classifier import ThemeClassifier

logger = logging.getLogger(__name__)

SKIP_THEME = "SKIP"
SKIP_MARKER = "STATUS: SKIP"

_LEADING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```\s*$")
_ANY_FENCE = re.compile(r"```json|```")
_THEME_FIELD = re.compile(r'"theme"\s*:\s*"([^"]+)"')
# Greedy up to the last `"}` so unescaped quotes inside the summary survive.
_SUMMARY_FIELD = re.compile(r'"summary"\s*:\s*"([\s\S]*)"\s*}')
_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')
_ESCAPES = re.compile(r'\\([\\"nt/])')
_ESCAPE_VALUES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t", "/": "/"}


def strip_code_fence(text: str) -> str:
    """Remove a leading ```/```json fence and its closing fence."""
    cleaned = (text or "").strip()
    if not cleaned.startswith("```"):
        return cleaned
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_strict(text: str) -> Any:
    """Strict JSON parse; raises json.JSONDecodeError on malformed input."""
    return json.loads(text.strip())


def repair_json(text: str) -> dict[str, str] | None:
    """Recover {theme, summary} from JSON whose summary has unescaped quotes.

    Returns None when either field cannot be located.
    """
    theme_match = _THEME_FIELD.search(text)
    if not theme_match:
        return None

    summary_match = _SUMMARY_FIELD.search(text)
    if not summary_match:
        return None

    summary = summary_match.group(1)
    # A stray quote before the closing brace leaves the unescaped quotes unbalanced
    if len(_UNESCAPED_QUOTE.findall(summary)) % 2 == 1:
        summary = re.sub(r'"\s*$', "", summary)
    summary = _ESCAPES.sub(lambda match: _ESCAPE_VALUES[match.group(1)], summary)

    rebuilt = json.dumps({"theme": theme_match.group(1), "summary": summary})
    return json.loads(rebuilt)


@dataclass
class ResponseParser:
    """Classify one raw model reply as summary, skip or failure."""

    classifier: ThemeClassifier

    def parse(self, raw_text: str) -> ParsedResponse:
        raw = raw_text or ""
        cleaned = strip_code_fence(raw)

        try:
            data = parse_strict(cleaned)
        except json.JSONDecodeError as e:
            logger.warning(f"Initial JSON parse failed ({e}), attempting repair")
            data = repair_json(cleaned)
            if data is None:
                logger.error(f"Failed to parse JSON: {e}")
                logger.debug(f"Response preview: {raw[:500]}")
                return self._fallback(raw)

        return self._validate(data)

    def _validate(self, data: Any) -> ParsedResponse:
        if not isinstance(data, dict):
            logger.error(f"Response is not a JSON object: {str(data)[:200]}")
            return ParseFailure(reason="not a JSON object")

        theme = _coerce_text(data.get("theme"))
        summary = _coerce_text(data.get("summary"))
        if not theme or not summary:
            logger.error(f"Response missing theme or summary: {json.dumps(data)[:200]}")
            return ParseFailure(reason="missing fields")

        if theme == SKIP_THEME:
            return ParseSkip(summary=summary)

        return ParsedSummary(theme=self.classifier.classify(theme), summary=summary)

    def _fallback(self, raw: str) -> ParsedResponse:
        if SKIP_MARKER in raw:
            return ParseSkip(summary=raw)

        text = _ANY_FENCE.sub("", raw).strip()
        if not text:
            return ParseFailure(reason="empty response")

        logger.warning("Using raw response as summary with default theme")
        return ParsedSummary(theme=self.classifier.taxonomy.default_theme, summary=text)


def _coerce_text(value) -> str | None:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text.strip() or None
