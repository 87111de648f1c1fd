"""
Node 1: Text Extraction
Reads the table text from a photo with PaddleOCR, or straight from a
.txt file that already holds OCR output.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any

from matcher.config import OCRConfig

from ..state import MatchState

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _get_extractor(lang: str, min_confidence: float):
    """Load the OCR model once per process and settings."""
    from matcher.image_ocr import ImageOCRExtractor
    return ImageOCRExtractor(lang=lang, min_confidence=min_confidence)


def extract_text_node(state: MatchState, ocr_config: OCRConfig) -> Dict[str, Any]:
    """
    Extract text from the current input file.

    Args:
        state: Current workflow state
        ocr_config: OCR settings (language, binarization)

    Returns:
        State updates with extracted_text, extraction_method, or last_error
    """
    current_file = state.get("current_file")

    if not current_file:
        return {
            "last_error": "No file specified for extraction",
            "extraction_method": "error"
        }

    file_path = Path(current_file)

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        return {
            "last_error": f"File not found: {file_path}",
            "extraction_method": "error"
        }

    if file_path.suffix.lower() == '.txt':
        return _read_text_file(file_path)

    # Retries read the raw photo in case binarization wiped out the text
    preprocess = state.get("preprocess", ocr_config.preprocess) and not state.get("retry_count", 0)
    logger.info(f"Running OCR on: {file_path.name} (binarize={'on' if preprocess else 'off'})")

    extractor = _get_extractor(ocr_config.lang, ocr_config.min_confidence)
    doc = extractor.extract_from_image(
        str(file_path),
        preprocess=preprocess,
        binarize_threshold=ocr_config.binarize_threshold
    )

    if doc.errors:
        return {
            "last_error": "; ".join(doc.errors),
            "extraction_method": doc.extraction_method,
            "extracted_text": None
        }

    if not doc.text.strip():
        return {
            "last_error": "No text recognised in image",
            "extraction_method": doc.extraction_method,
            "extracted_text": None
        }

    return {
        "extracted_text": doc.text,
        "extraction_method": doc.extraction_method,
        "last_error": None
    }


def _read_text_file(file_path: Path) -> Dict[str, Any]:
    """Use a .txt file as already-recognised OCR text."""
    try:
        text = file_path.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {file_path.name}: {e}")
        return {
            "last_error": f"Failed to read text file: {e}",
            "extraction_method": "error"
        }

    logger.info(f"Read {len(text)} chars of OCR text from {file_path.name}")
    return {
        "extracted_text": text,
        "extraction_method": "text",
        "last_error": None
    }
