"""Model-backed agents for summarization and synthesis."""

from newsletter_brief.agents.response_parser import ResponseParser
from newsletter_brief.agents.summarizer_agent import SummarizerAgent
from newsletter_brief.agents.synthesis_agent import SynthesisAgent

__all__ = [
    "ResponseParser",
    "SummarizerAgent",
    "SynthesisAgent",
]
