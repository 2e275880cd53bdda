"""Daily brief workflow using LangGraph."""

from newsletter_brief.workflow.state import BriefState, RunResult
from newsletter_brief.workflow.nodes import BriefPipeline
from newsletter_brief.workflow.graph import (
    create_brief_graph,
    compile_brief_workflow,
    run_brief,
)

__all__ = [
    # State
    "BriefState",
    "RunResult",
    # Nodes
    "BriefPipeline",
    # Graph
    "create_brief_graph",
    "compile_brief_workflow",
    "run_brief",
]
