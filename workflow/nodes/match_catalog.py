"""
Node 3: Catalog Matching
Matches parsed items against the part catalog.
"""

import logging
from typing import Dict, Any, Iterable

from matcher.item_parser import ParsedItem, ParseError
from matcher.part_catalog import ReferenceSheet
from matcher.part_matcher import reconcile_items

from ..state import MatchState

logger = logging.getLogger(__name__)


def match_catalog_node(
    state: MatchState,
    catalog: Iterable[ReferenceSheet],
    threshold: float
) -> Dict[str, Any]:
    """
    Match parsed items to the catalog.

    Args:
        state: Current workflow state
        catalog: Reference sheets to match against
        threshold: Minimum score for a match

    Returns:
        State updates with matched_items and unmatched_items
    """
    parsed_items = state.get("parsed_items") or []

    parsed = [
        ParseError.from_dict(entry) if entry.get("parse_error") else ParsedItem.from_dict(entry)
        for entry in parsed_items
    ]

    try:
        result = reconcile_items(parsed, catalog, threshold=threshold)
    except Exception as e:
        logger.error(f"Catalog matching failed: {e}")
        return {
            "last_error": f"Catalog matching failed: {str(e)}",
            "matched_items": [],
            "unmatched_items": []
        }

    logger.info(f"Matched {len(result.matched)}/{result.total} items")

    return {
        "matched_items": [m.to_dict() for m in result.matched],
        "unmatched_items": [u.to_dict() for u in result.unmatched],
        "last_error": None
    }
