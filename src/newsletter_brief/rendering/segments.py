"""Parse the bullet/bold markdown subset the model writes into text segments.

Only ``- `` / ``* `` bullets and ``**bold**`` spans are recognized; every
other character is kept literally.
"""

from __future__ import annotations

import re

from newsletter_brief.models.schemas import RichTextSegment, SegmentKind

_BOLD = re.compile(r"\*\*(.*?)\*\*")
_BULLET_MARKERS = ("- ", "* ")


def render_markdown(text: str) -> list[RichTextSegment]:
    """Segments in source line order; blank lines produce nothing."""
    segments: list[RichTextSegment] = []
    for raw_line in (text or "").split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        segments.append(parse_line(line))
    return segments


def parse_line(line: str) -> RichTextSegment:
    is_bullet = line.startswith(_BULLET_MARKERS)
    content = line[2:] if is_bullet else line
    plain_text, bold_ranges = extract_bold_ranges(content)
    return RichTextSegment(
        kind=SegmentKind.BULLET if is_bullet else SegmentKind.PARAGRAPH,
        plain_text=plain_text,
        bold_ranges=tuple(bold_ranges),
    )


def extract_bold_ranges(line: str) -> tuple[str, list[tuple[int, int]]]:
    """Strip ``**`` pairs and return inclusive offsets of the bold text.

    An empty pair (``****``) gives ``(start, start - 1)``.
    """
    parts: list[str] = []
    ranges: list[tuple[int, int]] = []
    length = 0
    last_index = 0

    for match in _BOLD.finditer(line):
        before = line[last_index:match.start()]
        parts.append(before)
        length += len(before)

        inner = match.group(1)
        ranges.append((length, length + len(inner) - 1))
        parts.append(inner)
        length += len(inner)

        last_index = match.end()

    parts.append(line[last_index:])
    return "".join(parts), ranges
