"""
Node 5: Batch Summary Generation
Aggregates results across all processed files and writes the batch summary.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

from ..state import MatchState

logger = logging.getLogger(__name__)


def batch_summary_node(state: MatchState) -> Dict[str, Any]:
    """
    Generate master summary for batch processing.

    Args:
        state: Current workflow state

    Returns:
        State updates with master_summary, end_time
    """
    output_path = state.get("output_path", "")
    files_completed = state.get("files_completed", [])
    files_failed = state.get("files_failed", [])
    start_time = state.get("start_time")

    logger.info(f"Generating batch summary: {len(files_completed)} successful, {len(files_failed)} failed")

    end_time = datetime.now()
    start_dt = datetime.fromisoformat(start_time) if start_time else end_time
    processing_time = (end_time - start_dt).total_seconds()

    total_items = state.get("total_items", 0)
    total_matched = state.get("total_matched", 0)

    summary_data = {
        "run_datetime": start_time or end_time.isoformat(),
        "input_path": state.get("input_path", ""),
        "output_folder": output_path,
        "catalog": state.get("catalog_path", ""),
        "statistics": {
            "total_files": len(files_completed) + len(files_failed),
            "successful_files": len(files_completed),
            "failed_files": len(files_failed),
            "total_items": total_items,
            "matched_items": total_matched,
            "unmatched_items": state.get("total_unmatched", 0),
            "match_ratio": round(total_matched / total_items, 3) if total_items else 0.0,
            "processing_time_seconds": round(processing_time, 2)
        },
        "files_completed": files_completed,
        "files_failed": files_failed
    }

    try:
        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)
        json_path = output_dir / "batch_summary.json"
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump(summary_data, f, indent=2, ensure_ascii=False)

        logger.info(f"Batch summary saved: {json_path}")

        return {
            "master_summary": summary_data,
            "end_time": end_time.isoformat(),
            "last_error": None
        }

    except Exception as e:
        logger.error(f"Batch summary failed: {e}")
        return {
            "master_summary": summary_data,
            "end_time": end_time.isoformat(),
            "last_error": f"Batch summary generation failed: {str(e)}"
        }
