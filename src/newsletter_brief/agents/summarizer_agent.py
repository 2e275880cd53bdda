"""Summarizer Agent - Distills one newsletter into theme-tagged takeaways.

Runs once per candidate message, sequentially. The raw reply goes through
the resilient response parser; model errors propagate to the caller, which
decides whether the message is retried next run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from newsletter_brief.agents.response_parser import ResponseParser
from newsletter_brief.models.schemas import ParsedResponse, ThemeTaxonomy
from newsletter_brief.services.gemini import LLMClient
from newsletter_brief.tools.throttle import CallThrottle

logger = logging.getLogger(__name__)


SUMMARY_PROMPT = """You are an executive assistant. Distill this newsletter into key takeaways and classify it by theme.

INPUT:
{content}

RULES:
- Maximum 5 bullet points total
- Each bullet: 1-2 sentences max
- Bold the topic (e.g., "**Topic:** key insight")
- Only include genuinely important or actionable information
- Skip fluff, intros, outros, and promotional content
- Classify the newsletter into ONE theme category

OUTPUT FORMAT (respond with valid JSON - no markdown code blocks):
{{
  "theme": "EXACTLY one of these strings: {theme_list}",
  "summary": "Markdown formatted bullets here"
}}

JSON FORMATTING - CRITICAL:
- Output ONLY the JSON object, no markdown code blocks
- Properly escape quotes in summary text (use \\" for quotes inside strings)
- Keep newlines as \\n within the JSON string

THEME CLASSIFICATION - CRITICAL:
Use the EXACT theme string from the list above. Do NOT paraphrase, rephrase, or create variations.
Examples:
- "{example_theme}" (correct)
- "{example_theme} Headlines" (incorrect - will cause misclassification)

SPECIAL CASES:
- If nothing valuable, return: {{"theme": "SKIP", "summary": "STATUS: SKIP"}}

Be ruthlessly concise."""


@dataclass
class SummarizerAgent:
    """Per-newsletter summarization call plus response parsing."""

    llm: LLMClient
    parser: ResponseParser
    taxonomy: ThemeTaxonomy
    throttle: CallThrottle
    temperature: float = 0.3
    max_output_tokens: int = 4096

    def summarize(self, content: str) -> ParsedResponse:
        """Summarize newsletter text; raises LLMError when the call fails."""
        prompt = self.build_prompt(content)
        raw = self.llm.generate(
            prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        self.throttle.pause()
        return self.parser.parse(raw)

    def build_prompt(self, content: str) -> str:
        return SUMMARY_PROMPT.format(
            content=content,
            theme_list=" | ".join(self.taxonomy.themes),
            example_theme=self.taxonomy.themes[0],
        )
