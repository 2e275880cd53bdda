"""Test the python-docx document sink."""

import pytest
from docx import Document

from newsletter_brief.rendering.document import (
    BulletStyle,
    InsertHeading,
    InsertHorizontalRule,
    InsertParagraph,
    SetHyperlink,
    TextStyle,
    apply_operations,
    markdown_operations,
)
from newsletter_brief.services.docx_sink import DocxSink, _split_runs


def test_split_runs_cuts_at_range_boundaries() -> None:
    runs = _split_runs("A: body text", [(0, 1)], [])
    assert runs == [(0, 2, True, None), (2, 12, False, None)]


def test_split_runs_marks_link_range() -> None:
    text = "Source: x | Open Email"
    runs = _split_runs(text, [], [(12, 21, "https://example.com")])
    assert runs == [(0, 12, False, None), (12, 22, False, "https://example.com")]


def test_bold_runs_written_to_document() -> None:
    sink = DocxSink()
    apply_operations(sink, markdown_operations("- **Topic:** insight"))
    sink._flush()

    paragraph = sink.document.paragraphs[-1]
    assert paragraph.text == "Topic: insight"
    assert [(run.text, bool(run.bold)) for run in paragraph.runs] == [
        ("Topic:", True),
        (" insight", False),
    ]


def test_out_of_range_bold_is_ignored() -> None:
    sink = DocxSink()
    sink.insert_paragraph("abc", style=TextStyle.BODY)
    sink.set_bold(1, 10)
    sink.set_bold(2, 1)
    sink._flush()

    assert [(run.text, bool(run.bold)) for run in sink.document.paragraphs[-1].runs] == [("abc", False)]


def test_bold_before_any_block_raises() -> None:
    with pytest.raises(RuntimeError):
        DocxSink().set_bold(0, 1)


def test_save_writes_readable_docx(tmp_path) -> None:
    sink = DocxSink()
    apply_operations(
        sink,
        [
            InsertHeading("📅 INTELLIGENCE BRIEF: Friday, Mar 15", level=1, centered=True),
            InsertParagraph("Source: Someone | Open Email", style=TextStyle.FOOTER),
            SetHyperlink(18, 27, "https://mail.google.com/mail/u/0/#all/t1"),
            InsertHorizontalRule(),
        ],
    )
    sink.insert_list_item("item", BulletStyle.HOLLOW, style=TextStyle.BODY)

    path = sink.save(tmp_path / "out" / "brief.docx")

    assert path.exists()
    texts = [p.text for p in Document(str(path)).paragraphs]
    assert texts[0] == "📅 INTELLIGENCE BRIEF: Friday, Mar 15"
    assert texts[1].startswith("Source: Someone | ")
    assert 'r:id="' in Document(str(path)).paragraphs[1]._p.xml
    assert "item" in texts
