"""LangGraph node functions for the brief workflow.

Each node:
- Takes the current state
- Performs its operation
- Returns updated state fields

Nodes are bound methods of ``BriefPipeline`` so every collaborator (mail,
model, storage, document sink, clock) is injected rather than global.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from newsletter_brief.agents.response_parser import ResponseParser
from newsletter_brief.agents.summarizer_agent import SummarizerAgent
from newsletter_brief.agents.synthesis_agent import SynthesisAgent
from newsletter_brief.config import BriefConfig
from newsletter_brief.errors import LLMError, MailSourceError
from newsletter_brief.models.schemas import (
    Article,
    CandidateMessage,
    ItemOutcome,
    ParsedSummary,
    ParseFailure,
    ParseSkip,
    SkipReason,
)
from newsletter_brief.rendering.document import apply_operations, compose_brief
from newsletter_brief.services.docx_sink import DocxSink
from newsletter_brief.services.gemini import LLMClient
from newsletter_brief.services.mail_source import MailSource
from newsletter_brief.storage.kv_store import KeyValueStore
from newsletter_brief.storage.ledger import DedupLedger
from newsletter_brief.tools.content_normalizer import extract_content
from newsletter_brief.tools.item_grouping import group_articles
from newsletter_brief.tools.noise_filter import is_noise
from newsletter_brief.tools.theme_classifier import ThemeClassifier
from newsletter_brief.tools.throttle import CallThrottle
from newsletter_brief.workflow.state import BriefState

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class BriefPipeline:
    """Collaborators and node implementations for one brief run."""

    config: BriefConfig
    mail_source: MailSource
    llm: LLMClient
    store: KeyValueStore
    sink_factory: Callable[[], DocxSink] = DocxSink
    clock: Callable[[], datetime] = _local_now
    sleep: Callable[[float], None] = time.sleep
    output_path: Path | None = None
    dry_run: bool = False
    throttle: CallThrottle = field(init=False)
    summarizer: SummarizerAgent = field(init=False)
    synthesizer: SynthesisAgent = field(init=False)

    def __post_init__(self) -> None:
        self.throttle = CallThrottle(self.config.delay_seconds, sleep=self.sleep)
        parser = ResponseParser(ThemeClassifier(self.config.taxonomy))
        self.summarizer = SummarizerAgent(
            llm=self.llm,
            parser=parser,
            taxonomy=self.config.taxonomy,
            throttle=self.throttle,
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
        )
        self.synthesizer = SynthesisAgent(
            llm=self.llm,
            throttle=self.throttle,
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
        )

    # =========================================================================
    # NODE: INITIALIZE
    # =========================================================================

    def initialize_node(self, state: BriefState) -> dict:
        """Load the processed-id ledger and fetch candidate messages."""
        logger.info("=== Starting Daily Digest ===")

        ledger = DedupLedger.load(
            self.store,
            key=self.config.processed_ids_key,
            max_size=self.config.max_stored_ids,
        )
        logger.info(f"Loaded {len(ledger)} previously processed message IDs")

        candidates = self.mail_source.fetch(self.config.mail_query)
        logger.info(f"Found {len(candidates)} candidate messages")

        return {
            "started_at": self.clock(),
            "ledger": ledger,
            "candidates": candidates,
            "metrics": {"candidates": len(candidates), "previously_processed": len(ledger)},
        }

    # =========================================================================
    # NODE: SUMMARIZE
    # =========================================================================

    def summarize_node(self, state: BriefState) -> dict:
        """Summarize candidates one at a time; each failure only drops its message."""
        candidates = state.get("candidates", [])
        ledger = state["ledger"]
        total = len(candidates)

        outcomes: list[ItemOutcome] = []
        articles: list[Article] = []
        seen: set[str] = set()

        for index, message in enumerate(candidates, start=1):
            progress = f"[{index}/{total}]"
            if message.id in seen:
                outcome = ItemOutcome(
                    message_id=message.id,
                    reason=SkipReason.ALREADY_PROCESSED,
                    detail="duplicate in this run",
                )
            else:
                seen.add(message.id)
                outcome = self.process_candidate(message, ledger, progress)

            outcomes.append(outcome)
            if outcome.article is not None:
                articles.append(outcome.article)

        by_reason: dict[str, int] = {}
        for outcome in outcomes:
            if outcome.reason is not None:
                by_reason[outcome.reason.value] = by_reason.get(outcome.reason.value, 0) + 1

        return {
            "outcomes": outcomes,
            "articles": articles,
            "metrics": {"articles": len(articles), "skipped": by_reason},
        }

    def process_candidate(
        self,
        message: CandidateMessage,
        ledger: DedupLedger,
        progress: str = "",
    ) -> ItemOutcome:
        logger.info(f'{progress} Processing: "{message.subject}"')

        if message.id in ledger:
            return self._skip(message, SkipReason.ALREADY_PROCESSED, "already processed")

        if is_noise(message.subject):
            return self._skip(message, SkipReason.NOISE, "admin/transactional email")

        content = extract_content(
            message,
            max_length=self.config.max_content_length,
            min_length=self.config.min_content_length,
        )
        if len(content) < self.config.min_content_length:
            return self._skip(
                message,
                SkipReason.CONTENT_TOO_SHORT,
                f"content too short ({len(content)} chars)",
            )

        try:
            parsed = self.summarizer.summarize(content)
        except LLMError as e:
            return self._skip(message, SkipReason.LLM_ERROR, f"API error: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error summarizing {message.id}")
            return self._skip(message, SkipReason.LLM_ERROR, f"Error: {e}")

        if isinstance(parsed, ParseFailure):
            return self._skip(message, SkipReason.PARSE_FAILURE, parsed.reason)
        elif isinstance(parsed, ParseSkip):
            return self._skip(message, SkipReason.MODEL_SKIP, "marked as skip by model")
        elif not isinstance(parsed, ParsedSummary):
            return self._skip(message, SkipReason.PARSE_FAILURE, f"unexpected parse result {parsed!r}")

        if len(parsed.summary) < self.config.min_summary_length:
            return self._skip(
                message,
                SkipReason.SUMMARY_TOO_SHORT,
                f"summary too short ({len(parsed.summary)} chars)",
            )

        logger.info(f'  -> Success: theme="{parsed.theme}", summary length={len(parsed.summary)} chars')
        article = Article(
            message_id=message.id,
            subject=message.subject,
            sender=message.sender,
            permalink=message.permalink,
            theme=parsed.theme,
            summary_markdown=parsed.summary,
            timestamp=message.timestamp,
        )
        return ItemOutcome(message_id=message.id, article=article)

    @staticmethod
    def _skip(message: CandidateMessage, reason: SkipReason, detail: str) -> ItemOutcome:
        if reason in (SkipReason.LLM_ERROR, SkipReason.PARSE_FAILURE):
            logger.error(f"  -> Skipped: {detail}")
        else:
            logger.info(f"  -> Skipped: {detail}")
        return ItemOutcome(message_id=message.id, reason=reason, detail=detail)

    # =========================================================================
    # NODE: GROUP
    # =========================================================================

    def group_node(self, state: BriefState) -> dict:
        groups = group_articles(state.get("articles", []), self.config.taxonomy)
        logger.info(f"Grouped into {len(groups)} themes")
        return {"groups": groups}

    # =========================================================================
    # NODE: SYNTHESIZE
    # =========================================================================

    def synthesize_node(self, state: BriefState) -> dict:
        themes = self.synthesizer.synthesize_groups(state.get("groups", []))
        failed = [theme.theme for theme in themes if theme.synthesized_summary is None]
        return {
            "themes": themes,
            "errors": [f'Synthesis unavailable for "{name}"' for name in failed],
            "metrics": {"themes": len(themes)},
        }

    # =========================================================================
    # NODE: COMPOSE
    # =========================================================================

    def compose_node(self, state: BriefState) -> dict:
        articles = state.get("articles", [])
        if not articles:
            logger.info("No new summaries to insert")
        operations = compose_brief(
            state.get("themes", []),
            articles,
            self.config.taxonomy,
            state.get("started_at") or self.clock(),
        )
        return {"operations": operations}

    # =========================================================================
    # NODE: SAVE
    # =========================================================================

    def save_node(self, state: BriefState) -> dict:
        started_at = state.get("started_at") or self.clock()
        output_path = self.output_path or (
            self.config.output_dir / f"brief_{started_at:%Y-%m-%d}.docx"
        )

        sink = self.sink_factory()
        apply_operations(sink, state.get("operations", []))
        saved = sink.save(output_path)
        return {"output_path": str(saved), "metrics": {"output_path": str(saved)}}

    # =========================================================================
    # NODE: RECORD
    # =========================================================================

    def record_node(self, state: BriefState) -> dict:
        """Persist handled ids and mark summarized threads read, after rendering."""
        outcomes = state.get("outcomes", [])
        recorded_ids = [outcome.message_id for outcome in outcomes if outcome.should_record]

        if self.dry_run:
            logger.info(f"Dry run: not recording {len(recorded_ids)} processed IDs")
            return {"recorded_ids": []}

        errors: list[str] = []
        ledger = state["ledger"]
        if recorded_ids:
            ledger.record(recorded_ids)
            ledger.save(self.store, key=self.config.processed_ids_key)

        for outcome in outcomes:
            if outcome.article is None:
                continue
            message = next(
                (m for m in state.get("candidates", []) if m.id == outcome.message_id),
                None,
            )
            if message is None:
                continue
            try:
                self.mail_source.mark_read(message)
            except MailSourceError as e:
                logger.warning(f"Could not mark {message.id} read: {e}")
                errors.append(str(e))

        articles = state.get("articles", [])
        logger.info(
            f"=== Completed: {len(articles)} emails summarized across "
            f"{len(state.get('themes', []))} themes ==="
        )
        return {"recorded_ids": recorded_ids, "errors": errors}
