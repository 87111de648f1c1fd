"""
Node 2: Item Parsing
Splits the OCR text into part items (and rows that failed to parse).
"""

import logging
from typing import Dict, Any

from matcher.config import MatcherConfig
from matcher.item_parser import parse_ocr_text

from ..state import MatchState

logger = logging.getLogger(__name__)


def parse_items_node(state: MatchState, config: MatcherConfig) -> Dict[str, Any]:
    """
    Parse part items from extracted text.

    Args:
        state: Current workflow state
        config: Abbreviation table and header keywords

    Returns:
        State updates with parsed_items (dicts, in sequence order)
    """
    extracted_text = state.get("extracted_text") or ""

    try:
        parsed = parse_ocr_text(
            extracted_text,
            name_replacements=config.name_replacements,
            header_keywords=config.header_keywords,
            furniture_keywords=config.furniture_keywords
        )
    except Exception as e:
        logger.error(f"Parsing failed: {e}")
        return {
            "last_error": f"Parsing failed: {str(e)}",
            "parsed_items": []
        }

    if not parsed:
        logger.warning("No table rows found in text")

    return {
        "parsed_items": [entry.to_dict() for entry in parsed],
        "last_error": None
    }
