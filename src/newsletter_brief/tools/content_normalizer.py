"""Extract the text that gets sent to the summarizer from a candidate message."""

from __future__ import annotations

import re

from newsletter_brief.models.schemas import CandidateMessage

MAX_CONTENT_LENGTH = 25000
MIN_CONTENT_LENGTH = 500

# Only these entities are decoded; anything else is left as written.
_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


def extract_content(
    message: CandidateMessage,
    max_length: int = MAX_CONTENT_LENGTH,
    min_length: int = MIN_CONTENT_LENGTH,
) -> str:
    """Prefer the plain-text body, fall back to stripped HTML when it is too short."""
    content = message.plain_body or ""

    if len(content) < min_length and message.html_body:
        content = strip_html_tags(message.html_body)

    return content[:max_length]


def strip_html_tags(html: str) -> str:
    if not html:
        return ""

    text = re.sub(r"(?is)<style[^>]*>.*?</style>", "", html)
    text = re.sub(r"(?is)<script[^>]*>.*?</script>", "", text)
    text = re.sub(r"<[^>]+>", " ", text)
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    text = re.sub(r"\s+", " ", text)
    return text.strip()
