"""LangGraph state definitions for the brief workflow.

This defines the data that flows through one run:
Initialize → Summarize → Group → Synthesize → Compose → Save → Record
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Annotated, TypedDict

from newsletter_brief.models.schemas import (
    Article,
    CandidateMessage,
    ItemOutcome,
    SynthesizedTheme,
    ThemeGroup,
)
from newsletter_brief.rendering.document import DocumentOperation
from newsletter_brief.storage.ledger import DedupLedger


class BriefState(TypedDict):
    """Main state that flows through the LangGraph workflow."""
    # === INPUT ===
    started_at: datetime
    ledger: DedupLedger
    candidates: list[CandidateMessage]

    # === SUMMARIZE STAGE ===
    outcomes: list[ItemOutcome]
    articles: list[Article]

    # === GROUP / SYNTHESIZE STAGE ===
    groups: list[ThemeGroup]
    themes: list[SynthesizedTheme]

    # === OUTPUT ===
    operations: list[DocumentOperation]
    output_path: str | None
    recorded_ids: list[str]

    # === METADATA ===
    errors: Annotated[list[str], operator.add]
    metrics: Annotated[dict, operator.or_]


@dataclass(frozen=True)
class RunResult:
    """What a finished run produced."""
    articles: list[Article]
    groups: list[ThemeGroup]
    themes: list[SynthesizedTheme]
    outcomes: list[ItemOutcome]
    operations: list[DocumentOperation]
    recorded_ids: list[str]
    output_path: Path | None
    errors: list[str] = field(default_factory=list)
    metrics: dict = field(default_factory=dict)

    @classmethod
    def from_state(cls, state: BriefState) -> RunResult:
        output_path = state.get("output_path")
        return cls(
            articles=list(state.get("articles", [])),
            groups=list(state.get("groups", [])),
            themes=list(state.get("themes", [])),
            outcomes=list(state.get("outcomes", [])),
            operations=list(state.get("operations", [])),
            recorded_ids=list(state.get("recorded_ids", [])),
            output_path=Path(output_path) if output_path else None,
            errors=list(state.get("errors", [])),
            metrics=dict(state.get("metrics", {})),
        )
