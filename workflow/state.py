"""
Workflow State Schema for the Parts Matching Workflow
Defines the state that flows through the LangGraph workflow.
"""

from typing import TypedDict, List, Optional, Dict, Any
from datetime import datetime


class FileResult(TypedDict):
    """Result from processing a single table photo (or OCR text file)."""
    filename: str
    filepath: str
    success: bool
    items_count: int
    matched_count: int
    unmatched_count: int
    extraction_method: str
    report_path: Optional[str]
    errors: List[str]


class MatchState(TypedDict):
    """
    State schema for the parts matching workflow.

    Only JSON-friendly data lives here; the catalog and config are bound
    into the nodes when the graph is built.
    """

    # ========================
    # Input Configuration
    # ========================
    input_path: str                    # Image/text file or folder path
    output_path: str                   # Output directory for reports
    catalog_path: str                  # Catalog workbook the nodes were built with
    max_retries: int                   # Maximum OCR retries before skip
    preprocess: bool                   # Binarize photos before OCR

    # ========================
    # Progress Tracking
    # ========================
    current_file: Optional[str]        # File being processed
    files_pending: List[str]           # Files not yet processed
    files_completed: List[str]         # Successfully processed files
    files_failed: List[FileResult]     # Failed files with error info

    # ========================
    # Per-File Intermediate Data
    # ========================
    extracted_text: Optional[str]      # From extract_text node
    extraction_method: Optional[str]   # 'text', 'paddleocr', 'paddleocr+binarize'
    parsed_items: Optional[List[Dict]] # From parse_items node (items and parse errors)
    matched_items: Optional[List[Dict]]    # From match_catalog node
    unmatched_items: Optional[List[Dict]]  # From match_catalog node
    report_path: Optional[str]         # Path to generated JSON report

    # ========================
    # Error Handling
    # ========================
    last_error: Optional[str]          # Most recent error message
    retry_count: int                   # Current retry attempt

    # ========================
    # Batch Summary
    # ========================
    total_items: int
    total_matched: int
    total_unmatched: int
    master_summary: Optional[Dict]

    # ========================
    # Timing
    # ========================
    start_time: Optional[str]
    end_time: Optional[str]

    # Temp result from generate_report for advance_to_next_file
    file_result: Optional[Dict]


def create_initial_state(
    input_path: str,
    output_path: str,
    catalog_path: str = "",
    max_retries: int = 2,
    preprocess: bool = True
) -> MatchState:
    """
    Create initial state for a new workflow run.

    Args:
        input_path: Photo, OCR text file, or folder of them
        output_path: Directory for output reports
        catalog_path: Catalog the graph was built with (for the reports)
        max_retries: OCR retries per photo before skipping
        preprocess: Binarize photos before OCR

    Returns:
        Initialized MatchState
    """
    return MatchState(
        input_path=input_path,
        output_path=output_path,
        catalog_path=catalog_path or "",
        max_retries=max_retries,
        preprocess=preprocess,

        current_file=None,
        files_pending=[],
        files_completed=[],
        files_failed=[],

        extracted_text=None,
        extraction_method=None,
        parsed_items=None,
        matched_items=None,
        unmatched_items=None,
        report_path=None,

        last_error=None,
        retry_count=0,

        total_items=0,
        total_matched=0,
        total_unmatched=0,
        master_summary=None,

        start_time=datetime.now().isoformat(),
        end_time=None,

        file_result=None
    )


def cleared_file_state() -> Dict[str, Any]:
    """Per-file fields reset when moving to the next file."""
    return {
        "extracted_text": None,
        "extraction_method": None,
        "parsed_items": None,
        "matched_items": None,
        "unmatched_items": None,
        "report_path": None,
        "last_error": None,
        "retry_count": 0,
        "file_result": None,
    }


def get_state_summary(state: MatchState) -> Dict[str, Any]:
    """
    Get a summary of current state for logging/debugging.
    """
    return {
        "current_file": state.get("current_file"),
        "files_pending": len(state.get("files_pending", [])),
        "files_completed": len(state.get("files_completed", [])),
        "files_failed": len(state.get("files_failed", [])),
        "total_matched": state.get("total_matched", 0),
        "last_error": state.get("last_error"),
        "retry_count": state.get("retry_count", 0)
    }
