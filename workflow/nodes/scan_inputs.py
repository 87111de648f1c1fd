"""
Node 0: Input Scan
Finds the table photos (or OCR text files) to process.
"""

import logging
from pathlib import Path
from typing import Dict, Any

from matcher.image_ocr import IMAGE_SUFFIXES

from ..state import MatchState

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = ('.txt',)
INPUT_SUFFIXES = IMAGE_SUFFIXES + TEXT_SUFFIXES


PROCESSED_SUFFIX = '_processed'


def is_binarize_leftover(path: Path) -> bool:
    """``<stem>_processed<ext>`` written by an earlier binarize pass, next to its original."""
    if not path.stem.endswith(PROCESSED_SUFFIX):
        return False
    original = path.with_name(path.stem[:-len(PROCESSED_SUFFIX)] + path.suffix)
    return original.exists()


def is_supported_input(path: Path) -> bool:
    if path.suffix.lower() not in INPUT_SUFFIXES:
        return False
    if is_binarize_leftover(path):
        logger.debug(f"Skipping binarized copy: {path.name}")
        return False
    return True


def scan_inputs_node(state: MatchState) -> Dict[str, Any]:
    """
    Scan input path and identify all files to process.

    This is the START node that initializes the file list.

    Args:
        state: Current workflow state

    Returns:
        State updates with files_pending and current_file
    """
    input_path = state.get("input_path", "")

    if not input_path:
        return {
            "last_error": "No input path specified",
            "files_pending": [],
            "current_file": None
        }

    path = Path(input_path)

    if path.is_file():
        if not is_supported_input(path):
            logger.error(f"Unsupported input file: {path.name}")
            return {
                "last_error": f"Unsupported input file: {path.name}",
                "files_pending": [],
                "current_file": None
            }
        logger.info(f"Single file mode: {path.name}")
        return {
            "files_pending": [str(path)],
            "current_file": str(path),
            "last_error": None
        }

    if path.is_dir():
        files = sorted(str(p) for p in path.iterdir() if p.is_file() and is_supported_input(p))
        logger.info(f"Found {len(files)} input files in {path}")
        return {
            "files_pending": files,
            "current_file": files[0] if files else None,
            "last_error": None if files else f"No images or text files found in {path}"
        }

    logger.error(f"Input path does not exist: {path}")
    return {
        "last_error": f"Input path does not exist: {path}",
        "files_pending": [],
        "current_file": None
    }
