"""Synthesis Agent - Merges the summaries of one theme into a single digest.

Single-article themes reuse the article summary without a model call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from newsletter_brief.errors import LLMError
from newsletter_brief.models.schemas import SynthesizedTheme, ThemeGroup
from newsletter_brief.services.gemini import LLMClient
from newsletter_brief.tools.throttle import CallThrottle

logger = logging.getLogger(__name__)


SYNTHESIS_PROMPT = """You are an executive assistant. Synthesize key insights from multiple newsletter summaries on a common theme.

INPUT SUMMARIES:
{summaries}

RULES:
- Maximum 7 bullet points total
- Each bullet: 1-2 sentences max
- Bold the topic (e.g., "**Topic:** key insight")
- Find common threads across newsletters - don't just concatenate
- If multiple newsletters mention the same topic, synthesize into ONE bullet
- Prioritize the most important/actionable information
- Skip redundant or minor details

OUTPUT: Markdown formatted bullets only (no theme classification needed)

Be ruthlessly concise. This is an executive summary of summaries."""

SUMMARY_DELIMITER = "\n\n---\n\n"


@dataclass
class SynthesisAgent:
    """Second-pass model call across all articles of a theme."""

    llm: LLMClient
    throttle: CallThrottle
    temperature: float = 0.3
    max_output_tokens: int = 4096

    def synthesize(self, group: ThemeGroup) -> str | None:
        """Cross-article summary, the lone summary for singletons, None on failure."""
        if not group.articles:
            return None

        if len(group.articles) == 1:
            return group.articles[0].summary_markdown

        prompt = self.build_prompt(group)
        logger.info(f'Synthesizing {len(group.articles)} articles for theme "{group.theme}"')

        try:
            text = self.llm.generate(
                prompt,
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            )
        except LLMError as e:
            logger.error(f'Synthesis failed for theme "{group.theme}": {e}')
            return None
        except Exception:
            logger.exception(f'Unexpected error synthesizing theme "{group.theme}"')
            return None

        self.throttle.pause()
        summary = text.strip()
        logger.info(f"Synthesis complete ({len(summary)} chars)")
        return summary or None

    def synthesize_groups(self, groups: list[ThemeGroup]) -> list[SynthesizedTheme]:
        return [
            SynthesizedTheme(
                theme=group.theme,
                articles=group.articles,
                synthesized_summary=self.synthesize(group),
            )
            for group in groups
        ]

    def build_prompt(self, group: ThemeGroup) -> str:
        combined = SUMMARY_DELIMITER.join(
            f'Newsletter: "{article.subject}"\n{article.summary_markdown}'
            for article in group.articles
        )
        return SYNTHESIS_PROMPT.format(summaries=combined)
