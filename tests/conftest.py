"""Shared fixtures and fake collaborators for newsletter brief tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from newsletter_brief.config import BriefConfig
from newsletter_brief.errors import LLMError
from newsletter_brief.models.schemas import Article, CandidateMessage, MailQuery
from newsletter_brief.storage.kv_store import InMemoryStore

FIXED_NOW = datetime(2024, 3, 15, 8, 30, tzinfo=timezone.utc)

LONG_BODY = "Weekly roundup of what happened in the industry. " * 20


class FakeLLM:
    """Returns queued replies in order; an exception instance in the queue is raised."""

    def __init__(self, replies=None) -> None:
        self.replies = list(replies or [])
        self.prompts: list[str] = []

    def generate(self, prompt: str, *, temperature: float = 0.3, max_output_tokens: int = 4096) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise LLMError("no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeMailSource:
    def __init__(self, messages=None) -> None:
        self.messages = list(messages or [])
        self.queries: list[MailQuery] = []
        self.marked_read: list[str] = []

    def fetch(self, query: MailQuery) -> list[CandidateMessage]:
        self.queries.append(query)
        return list(self.messages)

    def mark_read(self, message: CandidateMessage) -> None:
        self.marked_read.append(message.id)


class RecordingSink:
    """DocumentSink that records calls and a saved path."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.saved_to = None

    def insert_heading(self, text, level, *, style, centered=False) -> None:
        self.calls.append(("heading", text, level))

    def insert_horizontal_rule(self) -> None:
        self.calls.append(("rule",))

    def insert_paragraph(self, text, *, style, centered=False, italic=False) -> None:
        self.calls.append(("paragraph", text))

    def insert_list_item(self, text, bullet_style, *, style) -> None:
        self.calls.append(("list_item", text))

    def set_bold(self, start, end) -> None:
        self.calls.append(("bold", start, end))

    def set_hyperlink(self, start, end, url) -> None:
        self.calls.append(("link", start, end, url))

    def save(self, path):
        self.saved_to = path
        return path


def make_message(
    message_id: str,
    subject: str = "Morning Briefing",
    body: str = LONG_BODY,
    age_hours: float = 1,
    **overrides,
) -> CandidateMessage:
    fields = dict(
        id=message_id,
        thread_id=f"t-{message_id}",
        subject=subject,
        sender="Daily Digest <digest@example.com>",
        timestamp=FIXED_NOW - timedelta(hours=age_hours),
        plain_body=body,
        permalink=f"https://mail.google.com/mail/u/0/#all/t-{message_id}",
    )
    fields.update(overrides)
    return CandidateMessage(**fields)


def make_article(
    message_id: str,
    theme: str = "AI & ML",
    age_hours: float = 1,
    summary: str = "- **Topic:** something important happened",
    subject: str | None = None,
) -> Article:
    return Article(
        message_id=message_id,
        subject=subject or f"Newsletter {message_id}",
        sender="Daily Digest <digest@example.com>",
        permalink=f"https://mail.google.com/mail/u/0/#all/t-{message_id}",
        theme=theme,
        summary_markdown=summary,
        timestamp=FIXED_NOW - timedelta(hours=age_hours),
    )


@pytest.fixture
def brief_config(tmp_path) -> BriefConfig:
    return BriefConfig(api_key="test-key", delay_seconds=0.0, output_dir=tmp_path / "briefs")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
