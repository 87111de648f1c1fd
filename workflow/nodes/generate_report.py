"""
Node 4: Report Generation
Writes the JSON match report and matched/unmatched CSV files.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, Any, List

from ..state import MatchState

logger = logging.getLogger(__name__)

MATCHED_COLUMNS = [
    ('seq', 'Seq'),
    ('part_number', 'Part No'),
    ('name', 'Name'),
    ('spec', 'Spec'),
    ('quantity', 'Quantity'),
    ('match_rate_percent', 'Match Rate (%)'),
    ('sheet_name', 'Sheet'),
]

UNMATCHED_COLUMNS = [
    ('seq', 'Seq'),
    ('name', 'Name'),
    ('spec', 'Spec'),
    ('quantity', 'Quantity'),
    ('reason', 'Reason'),
]


def _write_csv(rows: List[Dict], columns: List[tuple], csv_path: Path) -> str:
    """
    Write result rows to CSV with display headers.

    utf-8-sig so Excel shows Hangul names correctly.
    """
    with open(csv_path, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.writer(f)
        writer.writerow([header for _, header in columns])
        for row in rows:
            writer.writerow([row.get(key, '') for key, _ in columns])

    return str(csv_path)


def report_stem(current_file: str, state: MatchState) -> str:
    """
    Base name for a file's reports.

    The input stem, or stem plus extension (``a_png``) when another input
    of this run has the same stem.
    """
    path = Path(current_file)
    batch = set(state.get("files_pending", [])) | set(state.get("files_completed", []))
    batch.update(f.get("filepath") or "" for f in state.get("files_failed", []))
    batch.discard(current_file)

    if any(Path(other).stem == path.stem for other in batch if other):
        return f"{path.stem}_{path.suffix.lstrip('.').lower()}"
    return path.stem


def generate_report_node(state: MatchState) -> Dict[str, Any]:
    """
    Generate JSON and CSV match reports.

    Steps:
    1. Load match results from state
    2. Build JSON report structure
    3. Save JSON and CSV reports to output directory
    4. Update batch totals

    Args:
        state: Current workflow state

    Returns:
        State updates with report_path, updated totals, or last_error
    """
    current_file = state.get("current_file", "")
    output_path = state.get("output_path", "")
    matched_items = state.get("matched_items") or []
    unmatched_items = state.get("unmatched_items") or []
    extraction_method = state.get("extraction_method", "unknown")

    if not output_path:
        logger.error("No output path specified")
        return {"last_error": "No output path specified"}

    if not current_file:
        logger.error("No current file in state")
        return {"last_error": "No current file specified"}

    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)

    total = len(matched_items) + len(unmatched_items)
    logger.info(f"Generating report: {len(matched_items)} matched, {len(unmatched_items)} unmatched")

    try:
        report_data = {
            "source": Path(current_file).name,
            "catalog": state.get("catalog_path", ""),
            "matched": matched_items,
            "unmatched": unmatched_items,
            "summary": {
                "total_items": total,
                "matched_items": len(matched_items),
                "unmatched_items": len(unmatched_items),
                "match_ratio": round(len(matched_items) / total, 3) if total else 0.0
            },
            "extracted_text": state.get("extracted_text", ""),  # Embedded for debugging
            "extraction_method": extraction_method
        }

        filename_stem = report_stem(current_file, state)
        report_path = output_dir / f"{filename_stem}_match.json"

        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(report_data, f, indent=2, ensure_ascii=False)

        logger.info(f"JSON report saved: {report_path}")

        matched_csv = _write_csv(matched_items, MATCHED_COLUMNS, output_dir / f"{filename_stem}_matched.csv")
        unmatched_csv = _write_csv(unmatched_items, UNMATCHED_COLUMNS, output_dir / f"{filename_stem}_unmatched.csv")
        logger.info(f"CSV reports saved: {matched_csv}, {unmatched_csv}")

        files_completed = state.get("files_completed", [])

        return {
            "report_path": str(report_path),
            "last_error": None,
            "total_items": state.get("total_items", 0) + total,
            "total_matched": state.get("total_matched", 0) + len(matched_items),
            "total_unmatched": state.get("total_unmatched", 0) + len(unmatched_items),
            "files_completed": files_completed + [current_file],
            "file_result": {
                "filename": Path(current_file).name,
                "filepath": current_file,
                "success": True,
                "items_count": total,
                "matched_count": len(matched_items),
                "unmatched_count": len(unmatched_items),
                "extraction_method": extraction_method,
                "report_path": str(report_path),
                "errors": []
            }
        }

    except Exception as e:
        logger.error(f"Report generation failed: {e}")
        return {"last_error": f"Report generation failed: {str(e)}"}
