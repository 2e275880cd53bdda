"""Word document sink for composed briefs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from newsletter_brief.rendering.document import BulletStyle, TextStyle

logger = logging.getLogger(__name__)


LINK_BLUE = RGBColor(0x11, 0x55, 0xCC)

# (font name, size in points or None, color)
TEXT_STYLES: dict[TextStyle, tuple[str, float | None, RGBColor | None]] = {
    TextStyle.HEADER: ("Roboto", None, RGBColor(0x44, 0x44, 0x44)),
    TextStyle.TITLE: ("Roboto", None, LINK_BLUE),
    TextStyle.BODY: ("Merriweather", 10, None),
    TextStyle.FOOTER: ("Roboto", 8, RGBColor(0x66, 0x66, 0x66)),
    TextStyle.NOTICE: ("Merriweather", 10, RGBColor(0x66, 0x66, 0x66)),
}


@dataclass
class _PendingBlock:
    """A block whose runs are built once all of its bold/link ranges are known."""
    paragraph: object
    text: str
    style: TextStyle
    italic: bool = False
    bold_ranges: list[tuple[int, int]] = field(default_factory=list)
    links: list[tuple[int, int, str]] = field(default_factory=list)


class DocxSink:
    """Append-only sink writing blocks into a python-docx Document."""

    def __init__(self, document=None) -> None:
        self.document = document if document is not None else Document()
        self._pending: _PendingBlock | None = None
        self._setup_styles()

    # --- DocumentSink -------------------------------------------------------

    def insert_heading(self, text: str, level: int, *, style: TextStyle, centered: bool = False) -> None:
        paragraph = self.document.add_heading("", level=level)
        self._start_block(paragraph, text, style, centered=centered)

    def insert_horizontal_rule(self) -> None:
        self._flush()
        paragraph = self.document.add_paragraph()
        p_pr = paragraph._p.get_or_add_pPr()
        borders = OxmlElement("w:pBdr")
        bottom = OxmlElement("w:bottom")
        bottom.set(qn("w:val"), "single")
        bottom.set(qn("w:sz"), "6")
        bottom.set(qn("w:space"), "1")
        bottom.set(qn("w:color"), "auto")
        borders.append(bottom)
        p_pr.append(borders)

    def insert_paragraph(
        self,
        text: str,
        *,
        style: TextStyle,
        centered: bool = False,
        italic: bool = False,
    ) -> None:
        paragraph = self.document.add_paragraph()
        self._start_block(paragraph, text, style, centered=centered, italic=italic)

    def insert_list_item(self, text: str, bullet_style: BulletStyle, *, style: TextStyle) -> None:
        # Word's built-in bullet list style; glyph choice is not configurable per item
        paragraph = self.document.add_paragraph(style="List Bullet")
        self._start_block(paragraph, text, style)

    def set_bold(self, start: int, end: int) -> None:
        block = self._require_block("set_bold")
        if 0 <= start <= end < len(block.text):
            block.bold_ranges.append((start, end))
        else:
            logger.debug(f"Ignoring bold range ({start}, {end}) outside {len(block.text)} chars")

    def set_hyperlink(self, start: int, end: int, url: str) -> None:
        block = self._require_block("set_hyperlink")
        if url and 0 <= start <= end < len(block.text):
            block.links.append((start, end, url))

    # --- Output -------------------------------------------------------------

    def save(self, path: Path) -> Path:
        self._flush()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.document.save(str(path))
        logger.info(f"Saved brief to {path}")
        return path

    # --- Internals ----------------------------------------------------------

    def _setup_styles(self) -> None:
        normal = self.document.styles["Normal"]
        normal.font.name = "Merriweather"
        normal.font.size = Pt(10)

    def _start_block(
        self,
        paragraph,
        text: str,
        style: TextStyle,
        *,
        centered: bool = False,
        italic: bool = False,
    ) -> None:
        self._flush()
        if centered:
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        self._pending = _PendingBlock(paragraph=paragraph, text=text, style=style, italic=italic)

    def _require_block(self, operation: str) -> _PendingBlock:
        if self._pending is None:
            raise RuntimeError(f"{operation} called before any block was inserted")
        return self._pending

    def _flush(self) -> None:
        block = self._pending
        if block is None:
            return
        self._pending = None

        for start, end, bold, url in _split_runs(block.text, block.bold_ranges, block.links):
            chunk = block.text[start:end]
            if url:
                self._add_hyperlink(block, chunk, url, bold=bold)
            else:
                run = block.paragraph.add_run(chunk)
                run.bold = bold or None
                run.italic = block.italic or None
                _apply_font(run.font, block.style)

    def _add_hyperlink(self, block: _PendingBlock, text: str, url: str, *, bold: bool) -> None:
        paragraph = block.paragraph
        r_id = paragraph.part.relate_to(url, RT.HYPERLINK, is_external=True)

        hyperlink = OxmlElement("w:hyperlink")
        hyperlink.set(qn("r:id"), r_id)

        run = OxmlElement("w:r")
        r_pr = OxmlElement("w:rPr")
        font_name, size, _color = TEXT_STYLES[block.style]
        fonts = OxmlElement("w:rFonts")
        fonts.set(qn("w:ascii"), font_name)
        fonts.set(qn("w:hAnsi"), font_name)
        r_pr.append(fonts)
        if bold:
            r_pr.append(OxmlElement("w:b"))
        color = OxmlElement("w:color")
        color.set(qn("w:val"), str(LINK_BLUE))
        r_pr.append(color)
        if size:
            size_el = OxmlElement("w:sz")
            size_el.set(qn("w:val"), str(int(size * 2)))
            r_pr.append(size_el)
        underline = OxmlElement("w:u")
        underline.set(qn("w:val"), "single")
        r_pr.append(underline)
        run.append(r_pr)

        text_el = OxmlElement("w:t")
        text_el.text = text
        text_el.set(qn("xml:space"), "preserve")
        run.append(text_el)

        hyperlink.append(run)
        paragraph._p.append(hyperlink)


def _apply_font(font, style: TextStyle) -> None:
    name, size, color = TEXT_STYLES[style]
    font.name = name
    if size:
        font.size = Pt(size)
    if color is not None:
        font.color.rgb = color


def _split_runs(
    text: str,
    bold_ranges: list[tuple[int, int]],
    links: list[tuple[int, int, str]],
) -> list[tuple[int, int, bool, str | None]]:
    """Cut text at every range boundary into (start, end_exclusive, bold, url) runs."""
    if not text:
        return []

    cuts = {0, len(text)}
    for start, end in bold_ranges:
        cuts.update((start, end + 1))
    for start, end, _url in links:
        cuts.update((start, end + 1))
    points = sorted(cuts)

    runs: list[tuple[int, int, bool, str | None]] = []
    for start, end in zip(points, points[1:]):
        bold = any(b_start <= start and end - 1 <= b_end for b_start, b_end in bold_ranges)
        url = next((u for l_start, l_end, u in links if l_start <= start and end - 1 <= l_end), None)
        if runs and runs[-1][2] == bold and runs[-1][3] == url:
            runs[-1] = (runs[-1][0], end, bold, url)
        else:
            runs.append((start, end, bold, url))
    return runs
