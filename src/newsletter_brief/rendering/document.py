"""Compose the daily brief as an ordered list of document operations.

Operations are produced top to bottom in reading order. A sink that can only
prepend must adapt at its own boundary; nothing here is reversed.

Layout:
    date header
    Master Summary
        <Theme> (N newsletters) + synthesized bullets (or subject list)
    ----
    per article: subject, summary, source footer, ----
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Protocol, Union

from newsletter_brief.models.schemas import (
    Article,
    RichTextSegment,
    SegmentKind,
    SynthesizedTheme,
    ThemeTaxonomy,
)
from newsletter_brief.rendering.segments import render_markdown
from newsletter_brief.tools.item_grouping import count_label, sort_articles_for_display

MASTER_SUMMARY_TITLE = "🧭 Master Summary"
OPEN_EMAIL_TEXT = "Open Email"


class TextStyle(str, Enum):
    """Named text styles the sink maps onto fonts and colors."""
    HEADER = "header"
    TITLE = "title"
    BODY = "body"
    FOOTER = "footer"
    NOTICE = "notice"


class BulletStyle(str, Enum):
    HOLLOW = "hollow"


# =============================================================================
# OPERATIONS
# =============================================================================

@dataclass(frozen=True)
class InsertHeading:
    text: str
    level: int
    style: TextStyle = TextStyle.HEADER
    centered: bool = False


@dataclass(frozen=True)
class InsertHorizontalRule:
    pass


@dataclass(frozen=True)
class InsertParagraph:
    text: str
    style: TextStyle = TextStyle.BODY
    centered: bool = False
    italic: bool = False


@dataclass(frozen=True)
class InsertListItem:
    text: str
    bullet_style: BulletStyle = BulletStyle.HOLLOW
    style: TextStyle = TextStyle.BODY


@dataclass(frozen=True)
class SetBold:
    """Bold an inclusive character range of the most recent block."""
    start: int
    end: int


@dataclass(frozen=True)
class SetHyperlink:
    """Link an inclusive character range of the most recent block."""
    start: int
    end: int
    url: str


DocumentOperation = Union[
    InsertHeading,
    InsertHorizontalRule,
    InsertParagraph,
    InsertListItem,
    SetBold,
    SetHyperlink,
]


class DocumentSink(Protocol):
    """Block-oriented document backend."""

    def insert_heading(self, text: str, level: int, *, style: TextStyle, centered: bool) -> None: ...

    def insert_horizontal_rule(self) -> None: ...

    def insert_paragraph(self, text: str, *, style: TextStyle, centered: bool, italic: bool) -> None: ...

    def insert_list_item(self, text: str, bullet_style: BulletStyle, *, style: TextStyle) -> None: ...

    def set_bold(self, start: int, end: int) -> None: ...

    def set_hyperlink(self, start: int, end: int, url: str) -> None: ...


def apply_operations(sink: DocumentSink, operations: Iterable[DocumentOperation]) -> None:
    """Replay operations onto a sink in order."""
    for op in operations:
        if isinstance(op, InsertHeading):
            sink.insert_heading(op.text, op.level, style=op.style, centered=op.centered)
        elif isinstance(op, InsertHorizontalRule):
            sink.insert_horizontal_rule()
        elif isinstance(op, InsertParagraph):
            sink.insert_paragraph(op.text, style=op.style, centered=op.centered, italic=op.italic)
        elif isinstance(op, InsertListItem):
            sink.insert_list_item(op.text, op.bullet_style, style=op.style)
        elif isinstance(op, SetBold):
            sink.set_bold(op.start, op.end)
        elif isinstance(op, SetHyperlink):
            sink.set_hyperlink(op.start, op.end, op.url)
        else:
            raise TypeError(f"Unknown document operation: {op!r}")


# =============================================================================
# COMPOSITION
# =============================================================================

def segment_operations(segments: Iterable[RichTextSegment]) -> list[DocumentOperation]:
    """Block plus bold operations for each segment; empty bold ranges are dropped."""
    operations: list[DocumentOperation] = []
    for segment in segments:
        if segment.kind == SegmentKind.BULLET:
            operations.append(InsertListItem(segment.plain_text))
        else:
            operations.append(InsertParagraph(segment.plain_text))
        for start, end in segment.applicable_bold_ranges():
            operations.append(SetBold(start, end))
    return operations


def markdown_operations(markdown: str) -> list[DocumentOperation]:
    return segment_operations(render_markdown(markdown))


def date_header(now: datetime) -> InsertHeading:
    date_str = f"{now:%A, %b} {now.day}"
    return InsertHeading(f"📅 INTELLIGENCE BRIEF: {date_str}", level=1, centered=True)


def empty_state(now: datetime) -> InsertParagraph:
    time_str = now.strftime("%I:%M %p %Z").lstrip("0").strip()
    return InsertParagraph(
        f"No new newsletters today. (Checked at {time_str})",
        style=TextStyle.NOTICE,
        centered=True,
        italic=True,
    )


def master_summary_operations(themes: Iterable[SynthesizedTheme]) -> list[DocumentOperation]:
    themes = list(themes)
    if not themes:
        return []

    operations: list[DocumentOperation] = [
        InsertHeading(MASTER_SUMMARY_TITLE, level=2, style=TextStyle.TITLE),
    ]
    for theme in themes:
        operations.append(
            InsertHeading(f"{theme.theme} ({count_label(len(theme.articles))})", level=3)
        )
        if theme.synthesized_summary:
            operations.extend(markdown_operations(theme.synthesized_summary))
        else:
            # Synthesis unavailable: list the newsletters instead
            operations.extend(InsertListItem(article.subject) for article in theme.articles)

    operations.append(InsertHorizontalRule())
    return operations


def article_operations(article: Article) -> list[DocumentOperation]:
    footer_text = f"Source: {article.sender} | "
    operations: list[DocumentOperation] = [
        InsertHeading(article.subject, level=2, style=TextStyle.TITLE),
    ]
    operations.extend(markdown_operations(article.summary_markdown))
    operations.append(InsertParagraph(footer_text + OPEN_EMAIL_TEXT, style=TextStyle.FOOTER))
    if article.permalink:
        operations.append(
            SetHyperlink(
                len(footer_text),
                len(footer_text) + len(OPEN_EMAIL_TEXT) - 1,
                article.permalink,
            )
        )
    operations.append(InsertHorizontalRule())
    return operations


def compose_brief(
    themes: list[SynthesizedTheme],
    articles: list[Article],
    taxonomy: ThemeTaxonomy,
    now: datetime,
) -> list[DocumentOperation]:
    """Full brief; a run without articles still gets the empty-state notice."""
    operations: list[DocumentOperation] = [date_header(now)]

    if not articles:
        operations.append(empty_state(now))
        return operations

    operations.extend(master_summary_operations(themes))
    for article in sort_articles_for_display(articles, taxonomy):
        operations.extend(article_operations(article))
    return operations
