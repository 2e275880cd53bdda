"""Data models for the newsletter brief pipeline.

This defines the data that flows through a run:
Candidate message → Parsed response → Article → Theme group → Synthesized theme → Segments
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# TAXONOMY
# =============================================================================

class ThemeTaxonomy(BaseModel):
    """Ordered theme labels, default label and keyword recovery table."""

    model_config = ConfigDict(frozen=True)

    themes: tuple[str, ...]
    default_theme: str
    # (lowercase keyword, canonical theme); order decides which keyword wins
    keywords: tuple[tuple[str, str], ...] = ()

    @model_validator(mode="after")
    def _check_consistency(self) -> ThemeTaxonomy:
        if not self.themes:
            raise ValueError("taxonomy needs at least one theme")
        if self.default_theme not in self.themes:
            raise ValueError(f"default theme {self.default_theme!r} is not a taxonomy theme")
        for keyword, theme in self.keywords:
            if theme not in self.themes:
                raise ValueError(f"keyword {keyword!r} maps to unknown theme {theme!r}")
            if keyword != keyword.lower().strip():
                raise ValueError(f"keyword {keyword!r} must be lowercase and trimmed")
        return self

    def contains(self, theme: str) -> bool:
        return theme in self.themes

    def priority(self, theme: str) -> int:
        """Display position of a theme; unknown themes sort last."""
        try:
            return self.themes.index(theme)
        except ValueError:
            return len(self.themes)


DEFAULT_TAXONOMY = ThemeTaxonomy(
    themes=(
        "Tech News",
        "AI & ML",
        "Product Updates",
        "Developer Tools",
        "Business Strategy",
        "Industry Analysis",
        "Marketing",
        "Finance",
        "Design",
        "Other",
    ),
    default_theme="Other",
    keywords=(
        ("tech", "Tech News"),
        ("technology", "Tech News"),
        ("ai", "AI & ML"),
        ("artificial intelligence", "AI & ML"),
        ("machine learning", "AI & ML"),
        ("ml", "AI & ML"),
        ("headlines", "Tech News"),
        ("product", "Product Updates"),
        ("release", "Product Updates"),
        ("launch", "Product Updates"),
        ("tool", "Developer Tools"),
        ("developer", "Developer Tools"),
        ("business", "Business Strategy"),
        ("strategy", "Business Strategy"),
        ("industry", "Industry Analysis"),
        ("analysis", "Industry Analysis"),
        ("market", "Industry Analysis"),
        ("marketing", "Marketing"),
        ("finance", "Finance"),
        ("financial", "Finance"),
        ("design", "Design"),
    ),
)


# =============================================================================
# MAIL
# =============================================================================

class MailQuery(BaseModel):
    """Description of which messages the mail source should return."""

    model_config = ConfigDict(frozen=True)

    label: str = "Newsletters"
    newer_than: str = "1d"  # Gmail relative window: 12h, 1d, 2w ...
    max_threads: int = Field(default=50, ge=1)
    exclude_subjects: tuple[str, ...] = ()

    def to_search_string(self) -> str:
        base = f"label:{self.label} newer_than:{self.newer_than}"
        exclusions = " ".join(f'-subject:"{phrase}"' for phrase in self.exclude_subjects)
        return f"{base} {exclusions}" if exclusions else base


class CandidateMessage(BaseModel):
    """Latest message of a mail thread, as handed over by the mail source."""

    model_config = ConfigDict(frozen=True)

    id: str
    thread_id: str = ""
    subject: str = ""
    sender: str = ""
    timestamp: datetime
    plain_body: str = ""
    html_body: str | None = None
    permalink: str = ""

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# =============================================================================
# PIPELINE STAGES
# =============================================================================

class Article(BaseModel):
    """A summarized, classified newsletter."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    subject: str
    sender: str
    permalink: str
    theme: str
    summary_markdown: str
    timestamp: datetime


class ThemeGroup(BaseModel):
    """Articles sharing a theme, newest first."""

    model_config = ConfigDict(frozen=True)

    theme: str
    articles: tuple[Article, ...]


class SynthesizedTheme(BaseModel):
    """A theme group plus its cross-article summary (None when unavailable)."""

    model_config = ConfigDict(frozen=True)

    theme: str
    articles: tuple[Article, ...]
    synthesized_summary: str | None = None


class ParsedSummary(BaseModel):
    """Model reply accepted as a theme-tagged summary."""

    model_config = ConfigDict(frozen=True)

    theme: str
    summary: str


class ParseSkip(BaseModel):
    """Model reply declaring the newsletter not worth summarizing."""

    model_config = ConfigDict(frozen=True)

    summary: str = ""


class ParseFailure(BaseModel):
    """Model reply that could not be turned into a summary."""

    model_config = ConfigDict(frozen=True)

    reason: str


ParsedResponse = Union[ParsedSummary, ParseSkip, ParseFailure]


# =============================================================================
# RENDERING
# =============================================================================

class SegmentKind(str, Enum):
    """Block type of a rendered markdown line."""
    BULLET = "bullet"
    PARAGRAPH = "paragraph"


class RichTextSegment(BaseModel):
    """One renderable line with inclusive bold offsets into plain_text.

    An empty ``****`` pair yields a zero-length range ``(start, start - 1)``;
    consumers treat it as a no-op.
    """

    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    plain_text: str
    bold_ranges: tuple[tuple[int, int], ...] = ()

    def applicable_bold_ranges(self) -> list[tuple[int, int]]:
        """Bold ranges that cover at least one character of plain_text."""
        return [
            (start, end)
            for start, end in self.bold_ranges
            if 0 <= start <= end < len(self.plain_text)
        ]


# =============================================================================
# OUTCOMES
# =============================================================================

class SkipReason(str, Enum):
    """Why a candidate message did not become an article."""
    ALREADY_PROCESSED = "already_processed"
    NOISE = "noise"
    CONTENT_TOO_SHORT = "content_too_short"
    LLM_ERROR = "llm_error"
    PARSE_FAILURE = "parse_failure"
    MODEL_SKIP = "model_skip"
    SUMMARY_TOO_SHORT = "summary_too_short"


# Content judgments are remembered so the same newsletter is not re-sent to the
# model; infrastructure failures and cheap local checks are retried next run.
LEDGER_RECORDED_REASONS = frozenset({SkipReason.MODEL_SKIP, SkipReason.SUMMARY_TOO_SHORT})


class ItemOutcome(BaseModel):
    """Result of processing one candidate message."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    article: Article | None = None
    reason: SkipReason | None = None
    detail: str = ""

    @property
    def should_record(self) -> bool:
        return self.article is not None or self.reason in LEDGER_RECORDED_REASONS
