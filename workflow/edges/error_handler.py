"""
Error Handling Edges
Conditional routing logic for handling errors and retries.
"""

import logging
from typing import Literal
from pathlib import Path

from ..state import MatchState, cleared_file_state

logger = logging.getLogger(__name__)

# Extraction methods where trying again cannot change the outcome
_NON_RETRYABLE_METHODS = ("text", "error")


def route_after_scan(state: MatchState) -> Literal["extract", "summary"]:
    """Start on the first file, or go straight to the summary if there is none."""
    if state.get("current_file"):
        return "extract"
    logger.warning(f"Nothing to process: {state.get('last_error')}")
    return "summary"


def route_after_extraction(state: MatchState) -> Literal["parse", "retry", "skip"]:
    """
    Route after text extraction based on success/failure.

    Decision logic:
    - If extraction succeeded: continue to parse (empty text is valid)
    - If OCR failed and retries remaining: retry on the raw photo
    - Otherwise: skip to next file

    Args:
        state: Current workflow state

    Returns:
        Next node: "parse", "retry", or "skip"
    """
    last_error = state.get("last_error")
    retry_count = state.get("retry_count", 0)
    max_retries = state.get("max_retries", 2)

    if not last_error and state.get("extracted_text") is not None:
        logger.debug("Extraction successful, routing to parse")
        return "parse"

    if state.get("extraction_method") not in _NON_RETRYABLE_METHODS and retry_count < max_retries:
        logger.warning(f"Extraction failed ({last_error}), retry {retry_count + 1}/{max_retries}")
        return "retry"

    logger.error(f"Skipping file: {last_error}")
    return "skip"


def route_after_report(state: MatchState) -> Literal["next_file", "summary", "failed"]:
    """
    Route after report generation to next file or batch summary.

    A report that could not be written marks the file failed.

    Args:
        state: Current workflow state

    Returns:
        Next node: "next_file", "summary" or "failed"
    """
    if state.get("last_error"):
        logger.error(f"Report not written: {state.get('last_error')}")
        return "failed"

    files_pending = state.get("files_pending", [])

    if len(files_pending) > 1:
        # Current file is still in the list
        logger.info(f"{len(files_pending) - 1} files remaining")
        return "next_file"

    logger.info("All files processed, generating summary")
    return "summary"


def route_after_failure(state: MatchState) -> Literal["next_file", "summary"]:
    return "next_file" if state.get("current_file") else "summary"


def increment_retry(state: MatchState) -> dict:
    """
    Increment retry count before extracting again.

    Retries skip binarization (see extract_text_node).
    """
    retry_count = state.get("retry_count", 0) + 1
    logger.info(f"Retry {retry_count}: re-running OCR without binarization")

    return {
        "retry_count": retry_count,
        "extracted_text": None,
        "last_error": None
    }


def mark_file_failed(state: MatchState) -> dict:
    """
    Mark current file as failed and move on to the next file.

    Args:
        state: Current workflow state

    Returns:
        State updates with file added to failed list
    """
    current_file = state.get("current_file", "")
    last_error = state.get("last_error") or "Unknown error"
    files_pending = state.get("files_pending", [])
    files_failed = state.get("files_failed", [])

    failed_result = {
        "filename": Path(current_file).name if current_file else "Unknown",
        "filepath": current_file,
        "success": False,
        "items_count": 0,
        "matched_count": 0,
        "unmatched_count": 0,
        "extraction_method": state.get("extraction_method") or "error",
        "report_path": None,
        "errors": [last_error]
    }

    new_pending = [f for f in files_pending if f != current_file]

    logger.warning(f"File marked as failed: {current_file}")

    updates = cleared_file_state()
    updates.update({
        "files_failed": files_failed + [failed_result],
        "files_pending": new_pending,
        "current_file": new_pending[0] if new_pending else None,
    })
    return updates


def advance_to_next_file(state: MatchState) -> dict:
    """
    Move to the next file in the pending list.

    Totals and files_completed are already updated by generate_report_node.
    """
    current_file = state.get("current_file", "")
    files_pending = state.get("files_pending", [])

    new_pending = [f for f in files_pending if f != current_file]

    logger.info(f"File completed: {current_file}")

    updates = cleared_file_state()
    updates.update({
        "files_pending": new_pending,
        "current_file": new_pending[0] if new_pending else None,
    })
    return updates
