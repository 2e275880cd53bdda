"""LangGraph workflow definition for the daily brief.

Pipeline:
    Initialize → Summarize → Group → Synthesize → Compose → Save → Record

Uses LangGraph for:
- State management between nodes
- Conditional routing (skip grouping and synthesis if nothing was summarized)
"""

from __future__ import annotations

import logging
from typing import Literal

from langgraph.graph import END, StateGraph

from newsletter_brief.workflow.nodes import BriefPipeline
from newsletter_brief.workflow.state import BriefState, RunResult

logger = logging.getLogger(__name__)


def should_group(state: BriefState) -> Literal["group", "skip_to_compose"]:
    """Determine if there is anything to group and synthesize."""
    if not state.get("articles"):
        logger.info("No summaries produced - skipping synthesis")
        return "skip_to_compose"
    return "group"


def create_brief_graph(pipeline: BriefPipeline) -> StateGraph:
    """Create the brief workflow graph.

    Flow:
        START
          ↓
        initialize
          ↓
        summarize
          ↓
       ┌──┴──────────────┐
       ↓                 ↓
     group         skip_to_compose
       ↓                 │
     synthesize          │
       ↓                 │
     compose ←───────────┘
       ↓
      save
       ↓
     record
       ↓
      END
    """
    graph = StateGraph(BriefState)

    graph.add_node("initialize", pipeline.initialize_node)
    graph.add_node("summarize", pipeline.summarize_node)
    graph.add_node("group", pipeline.group_node)
    graph.add_node("synthesize", pipeline.synthesize_node)
    graph.add_node("compose", pipeline.compose_node)
    graph.add_node("save", pipeline.save_node)
    graph.add_node("record", pipeline.record_node)

    graph.set_entry_point("initialize")
    graph.add_edge("initialize", "summarize")

    graph.add_conditional_edges(
        "summarize",
        should_group,
        {
            "group": "group",
            "skip_to_compose": "compose",
        },
    )

    graph.add_edge("group", "synthesize")
    graph.add_edge("synthesize", "compose")
    graph.add_edge("compose", "save")
    # Ledger is only written once the brief exists on disk
    graph.add_edge("save", "record")
    graph.add_edge("record", END)

    return graph


def compile_brief_workflow(pipeline: BriefPipeline):
    """Compile the brief workflow for execution."""
    return create_brief_graph(pipeline).compile()


def initial_state() -> BriefState:
    return {
        "started_at": None,
        "ledger": None,
        "candidates": [],
        "outcomes": [],
        "articles": [],
        "groups": [],
        "themes": [],
        "operations": [],
        "output_path": None,
        "recorded_ids": [],
        "errors": [],
        "metrics": {},
    }


def run_brief(pipeline: BriefPipeline) -> RunResult:
    """Run one complete brief cycle and return what it produced."""
    workflow = compile_brief_workflow(pipeline)
    final_state = workflow.invoke(initial_state())

    result = RunResult.from_state(final_state)
    logger.info("Brief workflow complete!")
    logger.info(f"Metrics: {result.metrics}")
    return result
