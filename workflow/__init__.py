# Parts matching workflow
from .graph import (
    create_matching_graph,
    run_matching_workflow,
    stream_matching_workflow,
    get_workflow_visualization,
)
from .state import MatchState, create_initial_state

__all__ = [
    "create_matching_graph",
    "run_matching_workflow",
    "stream_matching_workflow",
    "get_workflow_visualization",
    "MatchState",
    "create_initial_state",
]
