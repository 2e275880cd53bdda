"""Test the full brief workflow end to end with fake collaborators."""

import json
from unittest.mock import patch

from newsletter_brief.errors import TransportError
from newsletter_brief.models.schemas import SkipReason
from newsletter_brief.rendering.document import (
    InsertHeading,
    InsertListItem,
    InsertParagraph,
    SetBold,
    TextStyle,
)
from newsletter_brief.storage.kv_store import InMemoryStore
from newsletter_brief.storage.ledger import PROCESSED_IDS_KEY, DedupLedger
from newsletter_brief.workflow import BriefPipeline, run_brief

from conftest import FIXED_NOW, FakeLLM, FakeMailSource, RecordingSink, make_message


def _summary(theme: str, topic: str) -> str:
    return json.dumps({"theme": theme, "summary": f"- **{topic}:** a meaningful development worth reading about"})


def _pipeline(config, store, mail, llm, sink, **kwargs) -> BriefPipeline:
    return BriefPipeline(
        config=config,
        mail_source=mail,
        llm=llm,
        store=store,
        sink_factory=lambda: sink,
        clock=lambda: FIXED_NOW,
        **kwargs,
    )


def test_full_run_summarizes_groups_and_records(brief_config) -> None:
    store = InMemoryStore({PROCESSED_IDS_KEY: json.dumps(["seen"])})
    mail = FakeMailSource(
        [
            make_message("seen", subject="Already Handled"),
            make_message("noise", subject="Please confirm your subscription"),
            make_message("short", body="too short"),
            make_message("ai-1", subject="AI Weekly", age_hours=1),
            make_message("ai-2", subject="ML Digest", age_hours=3),
            make_message("skip", subject="Promo Blast"),
            make_message("fail", subject="Broken Reply"),
            make_message("tech", subject="Tech Daily", age_hours=2),
        ]
    )
    llm = FakeLLM(
        [
            _summary("AI & ML", "Models"),
            _summary("AI Headlines", "Chips"),
            '{"theme": "SKIP", "summary": "STATUS: SKIP"}',
            TransportError("503 overloaded"),
            _summary("Tech News", "Phones"),
            "- **Merged:** both AI newsletters agree",
        ]
    )
    sink = RecordingSink()

    result = run_brief(_pipeline(brief_config, store, mail, llm, sink))

    reasons = {outcome.message_id: outcome.reason for outcome in result.outcomes}
    assert reasons == {
        "seen": SkipReason.ALREADY_PROCESSED,
        "noise": SkipReason.NOISE,
        "short": SkipReason.CONTENT_TOO_SHORT,
        "ai-1": None,
        "ai-2": None,
        "skip": SkipReason.MODEL_SKIP,
        "fail": SkipReason.LLM_ERROR,
        "tech": None,
    }
    assert [group.theme for group in result.groups] == ["Tech News", "AI & ML"]
    assert result.themes[1].synthesized_summary == "- **Merged:** both AI newsletters agree"
    # one call per summarized message plus one synthesis for the two-article theme
    assert len(llm.prompts) == 6

    headings = [op.text for op in result.operations if isinstance(op, InsertHeading)]
    assert headings[:4] == [
        "📅 INTELLIGENCE BRIEF: Friday, Mar 15",
        "🧭 Master Summary",
        "Tech News (1 newsletter)",
        "AI & ML (2 newsletters)",
    ]
    assert headings[4:] == ["Tech Daily", "AI Weekly", "ML Digest"]

    assert result.output_path == brief_config.output_dir / "brief_2024-03-15.docx"
    assert sink.saved_to == result.output_path

    # skipped-by-model is remembered, transient failures are retried next run
    assert sorted(result.recorded_ids) == ["ai-1", "ai-2", "skip", "tech"]
    stored = json.loads(store.get(PROCESSED_IDS_KEY))
    assert stored[0] == "seen"
    assert "fail" not in stored and "noise" not in stored
    assert sorted(mail.marked_read) == ["ai-1", "ai-2", "tech"]


def test_noise_plus_one_article_scenario(brief_config) -> None:
    store = InMemoryStore()
    mail = FakeMailSource(
        [
            make_message("n1", subject="You have been unsubscribed"),
            make_message("a1", subject="Launch Notes"),
        ]
    )
    llm = FakeLLM(['{"theme":"AI & ML","summary":"**Launch:** X shipped."}'])

    result = run_brief(_pipeline(brief_config, store, mail, llm, RecordingSink()))

    assert [(g.theme, len(g.articles)) for g in result.groups] == [("AI & ML", 1)]
    assert result.articles[0].summary_markdown == "**Launch:** X shipped."
    assert SetBold(0, 6) in result.operations
    assert json.loads(store.get(PROCESSED_IDS_KEY)) == ["a1"]


def test_second_run_skips_recorded_messages(brief_config) -> None:
    store = InMemoryStore()
    messages = [make_message("m1", subject="Finance Letter")]

    run_brief(_pipeline(brief_config, store, FakeMailSource(messages), FakeLLM([_summary("Finance", "Rates")]), RecordingSink()))
    llm = FakeLLM()
    result = run_brief(_pipeline(brief_config, store, FakeMailSource(messages), llm, RecordingSink()))

    assert llm.prompts == []
    assert result.articles == []
    assert result.outcomes[0].reason == SkipReason.ALREADY_PROCESSED


def test_empty_run_renders_notice_and_skips_synthesis(brief_config) -> None:
    llm = FakeLLM()
    sink = RecordingSink()

    result = run_brief(_pipeline(brief_config, InMemoryStore(), FakeMailSource(), llm, sink))

    assert llm.prompts == []
    assert result.groups == []
    assert len(result.operations) == 2
    notice = result.operations[1]
    assert isinstance(notice, InsertParagraph)
    assert notice.style == TextStyle.NOTICE
    assert sink.calls[0][0] == "heading"
    assert sink.saved_to is not None


def test_parse_failure_and_short_summary(brief_config) -> None:
    store = InMemoryStore()
    mail = FakeMailSource([make_message("bad"), make_message("tiny")])
    llm = FakeLLM(['{"theme": "Finance"}', '{"theme": "Finance", "summary": "- too short"}'])

    result = run_brief(_pipeline(brief_config, store, mail, llm, RecordingSink()))

    reasons = [outcome.reason for outcome in result.outcomes]
    assert reasons == [SkipReason.PARSE_FAILURE, SkipReason.SUMMARY_TOO_SHORT]
    assert result.recorded_ids == ["tiny"]


def test_duplicate_candidate_in_one_run_is_processed_once(brief_config) -> None:
    message = make_message("dup", subject="Design Notes")
    llm = FakeLLM([_summary("Design", "Type")])

    result = run_brief(
        _pipeline(brief_config, InMemoryStore(), FakeMailSource([message, message]), llm, RecordingSink())
    )

    assert len(llm.prompts) == 1
    assert len(result.articles) == 1
    assert result.outcomes[1].reason == SkipReason.ALREADY_PROCESSED


def test_dry_run_does_not_persist(brief_config, tmp_path) -> None:
    store = InMemoryStore()
    mail = FakeMailSource([make_message("m1", subject="Finance Letter")])
    output = tmp_path / "custom.docx"

    result = run_brief(
        _pipeline(
            brief_config,
            store,
            mail,
            FakeLLM([_summary("Finance", "Rates")]),
            RecordingSink(),
            dry_run=True,
            output_path=output,
        )
    )

    assert len(result.articles) == 1
    assert result.output_path == output
    assert result.recorded_ids == []
    assert store.get(PROCESSED_IDS_KEY) is None
    assert mail.marked_read == []


def test_synthesis_crash_still_saves_and_records(brief_config) -> None:
    store = InMemoryStore()
    sink = RecordingSink()
    mail = FakeMailSource([make_message("a1", age_hours=1), make_message("a2", age_hours=2)])
    llm = FakeLLM(
        [
            _summary("Finance", "Rates"),
            _summary("Finance", "Bonds"),
            RuntimeError("sdk blew up"),
        ]
    )

    result = run_brief(_pipeline(brief_config, store, mail, llm, sink))

    assert result.themes[0].synthesized_summary is None
    assert 'Synthesis unavailable for "Finance"' in result.errors
    assert InsertListItem("Morning Briefing") in result.operations
    assert sink.saved_to is not None
    assert json.loads(store.get(PROCESSED_IDS_KEY)) == ["a1", "a2"]


def test_unexpected_parse_result_is_a_parse_failure(brief_config) -> None:
    pipeline = _pipeline(brief_config, InMemoryStore(), FakeMailSource(), FakeLLM(), RecordingSink())

    with patch.object(pipeline.summarizer, "summarize", return_value=None):
        outcome = pipeline.process_candidate(make_message("m1"), DedupLedger())

    assert outcome.article is None
    assert outcome.reason == SkipReason.PARSE_FAILURE
