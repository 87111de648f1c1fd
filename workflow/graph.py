"""
LangGraph Workflow Definition
Wires together nodes and edges for the parts matching workflow.
"""

import logging
from typing import Dict, Any, Iterable, Iterator, Optional, Tuple

from langgraph.graph import StateGraph, END
from langgraph.checkpoint.memory import MemorySaver

from matcher.config import MatcherConfig
from matcher.part_catalog import ReferenceSheet

from .state import MatchState, create_initial_state
from .nodes import (
    scan_inputs_node,
    extract_text_node,
    parse_items_node,
    match_catalog_node,
    generate_report_node,
    batch_summary_node,
)
from .edges import (
    route_after_scan,
    route_after_extraction,
    route_after_report,
    route_after_failure,
    increment_retry,
    mark_file_failed,
    advance_to_next_file,
)

logger = logging.getLogger(__name__)

# Each file uses ~6 nodes (more with retries)
RECURSION_LIMIT = 500


def create_matching_graph(
    catalog: Iterable[ReferenceSheet],
    config: Optional[MatcherConfig] = None,
    checkpointer: Optional[MemorySaver] = None
):
    """
    Create the LangGraph workflow for matching table photos to the catalog.

    Graph structure:
    ```
    START (scan_inputs)
        │
        ▼
    extract_text ◄────────────┐
        │                     │
    [route_after_extraction]  │
        │ parse   │ retry ────┘ (increment_retry)
        ▼         │ skip
    parse_items   ▼
        │       mark_failed ──► next file / summary
        ▼
    match_catalog
        │
        ▼
    generate_report
        │
    [route_after_report]  (failed ──► mark_failed)
        │ next_file       │ summary
        ▼                 ▼
    advance_file ──► extract_text   batch_summary ──► END
    ```

    The catalog and config are bound into the nodes here, so the
    workflow state stays plain data.

    Args:
        catalog: Reference sheets to match against (read-only)
        config: Matcher settings (defaults when None)
        checkpointer: Optional checkpointer for state persistence

    Returns:
        Compiled StateGraph
    """
    config = config or MatcherConfig()
    sheets = list(catalog)

    def extract_text(state: MatchState) -> Dict[str, Any]:
        return extract_text_node(state, config.ocr)

    def parse_items(state: MatchState) -> Dict[str, Any]:
        return parse_items_node(state, config)

    def match_catalog(state: MatchState) -> Dict[str, Any]:
        return match_catalog_node(state, sheets, config.match_threshold)

    workflow = StateGraph(MatchState)

    # ========================
    # Add Nodes
    # ========================
    workflow.add_node("scan_inputs", scan_inputs_node)
    workflow.add_node("extract_text", extract_text)
    workflow.add_node("increment_retry", increment_retry)
    workflow.add_node("mark_failed", mark_file_failed)
    workflow.add_node("parse_items", parse_items)
    workflow.add_node("match_catalog", match_catalog)
    workflow.add_node("generate_report", generate_report_node)
    workflow.add_node("advance_file", advance_to_next_file)
    workflow.add_node("batch_summary", batch_summary_node)

    # ========================
    # Add Edges
    # ========================
    workflow.set_entry_point("scan_inputs")

    workflow.add_conditional_edges(
        "scan_inputs",
        route_after_scan,
        {
            "extract": "extract_text",
            "summary": "batch_summary"
        }
    )

    workflow.add_conditional_edges(
        "extract_text",
        route_after_extraction,
        {
            "parse": "parse_items",
            "retry": "increment_retry",
            "skip": "mark_failed"
        }
    )

    workflow.add_edge("increment_retry", "extract_text")

    workflow.add_conditional_edges(
        "mark_failed",
        route_after_failure,
        {
            "next_file": "extract_text",
            "summary": "batch_summary"
        }
    )

    workflow.add_edge("parse_items", "match_catalog")
    workflow.add_edge("match_catalog", "generate_report")

    workflow.add_conditional_edges(
        "generate_report",
        route_after_report,
        {
            "next_file": "advance_file",
            "summary": "batch_summary",
            "failed": "mark_failed"
        }
    )

    workflow.add_edge("advance_file", "extract_text")
    workflow.add_edge("batch_summary", END)

    if checkpointer:
        return workflow.compile(checkpointer=checkpointer)
    return workflow.compile()


def _run_config(enable_checkpoints: bool, thread_id: str) -> Dict[str, Any]:
    if enable_checkpoints:
        return {
            "configurable": {"thread_id": thread_id},
            "recursion_limit": RECURSION_LIMIT
        }
    return {"recursion_limit": RECURSION_LIMIT}


def run_matching_workflow(
    input_path: str,
    output_path: str,
    catalog: Iterable[ReferenceSheet],
    config: Optional[MatcherConfig] = None,
    catalog_path: str = "",
    max_retries: int = 2,
    preprocess: bool = True,
    enable_checkpoints: bool = True
) -> Dict[str, Any]:
    """
    Run the complete matching workflow.

    Args:
        input_path: Photo, OCR text file, or folder of them
        output_path: Directory for output reports
        catalog: Loaded part catalog
        config: Matcher settings
        catalog_path: Where the catalog came from (recorded in reports)
        max_retries: OCR retries per photo
        preprocess: Binarize photos before OCR
        enable_checkpoints: Enable state persistence

    Returns:
        Final workflow state with results
    """
    checkpointer = MemorySaver() if enable_checkpoints else None
    graph = create_matching_graph(catalog, config, checkpointer)

    initial_state = create_initial_state(
        input_path=input_path,
        output_path=output_path,
        catalog_path=catalog_path,
        max_retries=max_retries,
        preprocess=preprocess
    )

    logger.info(f"Starting matching workflow: {input_path} -> {output_path}")

    try:
        final_state = graph.invoke(initial_state, _run_config(enable_checkpoints, "match-1"))
        logger.info("Workflow completed successfully")
        return final_state
    except Exception as e:
        logger.error(f"Workflow failed: {e}")
        raise


def stream_matching_workflow(
    input_path: str,
    output_path: str,
    catalog: Iterable[ReferenceSheet],
    config: Optional[MatcherConfig] = None,
    catalog_path: str = "",
    max_retries: int = 2,
    preprocess: bool = True,
    enable_checkpoints: bool = True
) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """
    Stream the matching workflow, yielding (node_name, state_update) after each node.
    """
    checkpointer = MemorySaver() if enable_checkpoints else None
    graph = create_matching_graph(catalog, config, checkpointer)

    initial_state = create_initial_state(
        input_path=input_path,
        output_path=output_path,
        catalog_path=catalog_path,
        max_retries=max_retries,
        preprocess=preprocess
    )

    logger.info(f"Starting matching workflow (streaming): {input_path} -> {output_path}")

    try:
        for update in graph.stream(initial_state, _run_config(enable_checkpoints, "match-stream-1"), stream_mode="updates"):
            if update:
                node_name = list(update.keys())[0]
                yield (node_name, update[node_name])

        logger.info("Workflow streaming completed successfully")

    except Exception as e:
        logger.error(f"Workflow streaming failed: {e}")
        raise


def get_workflow_visualization() -> str:
    """
    Get ASCII visualization of the workflow graph.
    """
    return """
    Parts Matching Workflow
    =======================

              ┌──────────────┐
              │ scan_inputs  │
              │   (START)    │
              └──────┬───────┘
                     │
              ┌──────▼───────┐
              │ extract_text │◄──────────────┐
              │ (OCR / .txt) │◄──────┐       │
              └──────┬───────┘       │       │
                     │               │       │
        ┌────────────┼────────────┐  │       │
     success       retry        skip │       │
        │            │            │  │       │
        │      ┌─────▼─────┐ ┌────▼──┴──┐    │
        │      │ increment │ │   mark   │    │
        │      │   retry   │ │  failed  │    │
        │      └─────┬─────┘ └──────────┘    │
        │            └──► extract_text       │
        ▼                                    │
   ┌──────────┐                              │
   │  parse   │                              │
   │  items   │                              │
   └────┬─────┘                              │
        ▼                                    │
   ┌──────────┐                              │
   │  match   │                              │
   │ catalog  │                              │
   └────┬─────┘                              │
        ▼                                    │
   ┌──────────┐                              │
   │ generate │                              │
   │  report  │                              │
   └────┬─────┘                              │
        │                                    │
   ┌────┴────────┐                           │
 next_file    summary                        │
   │             │                           │
   ▼             ▼                           │
┌─────────┐  ┌──────────┐                    │
│ advance │  │  batch   │                    │
│  file   │─┐│ summary  │                    │
└─────────┘ │└────┬─────┘                    │
            │     ▼                          │
            │  ┌─────┐                       │
            │  │ END │                       │
            │  └─────┘                       │
            └────────────────────────────────┘
    """
