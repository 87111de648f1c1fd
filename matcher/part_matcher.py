"""
Part Matcher - reconciles parsed OCR items against the part catalog

Every parsed item is scored against every catalog row (all sheets);
the best row wins if it clears the match threshold. Results are split
into matched items (with part number and match rate) and unmatched
items (with a reason).
"""

import logging
import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .item_parser import (
    ParsedItem,
    ParseError,
    ParseResult,
    parse_ocr_text,
    HEADER_KEYWORDS,
    FURNITURE_KEYWORDS,
)
from .part_catalog import ReferenceRow, ReferenceSheet, SCORED_FIELDS, FIELD_PART_NUMBER
from .similarity import Scorer, compare_two_strings
from .text_normalize import normalize_str

logger = logging.getLogger(__name__)


DEFAULT_MATCH_THRESHOLD = 0.40
NO_PART_NUMBER = "(no part number)"


@dataclass
class MatchCandidate:
    """Best catalog row found for one item."""
    sheet_name: str
    row: ReferenceRow
    score: float  # 0.0 to 1.0

    def __repr__(self):
        return f"MatchCandidate({self.sheet_name}, pn={self.row.get(FIELD_PART_NUMBER)}, score={self.score:.2f})"


@dataclass
class MatchedResult:
    seq: int
    part_number: str
    name: str
    spec: str
    quantity: str
    match_rate_percent: int
    sheet_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UnmatchedResult:
    seq: int
    name: str
    spec: str
    quantity: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReconcileResult:
    """Matched and unmatched items, each in sequence order."""
    matched: List[MatchedResult] = field(default_factory=list)
    unmatched: List[UnmatchedResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.matched) + len(self.unmatched)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "matched": [m.to_dict() for m in self.matched],
            "unmatched": [u.to_dict() for u in self.unmatched],
        }


def build_reference_string(row: Mapping[str, str]) -> str:
    """Join the scored catalog fields of a row (missing fields are blank)."""
    return " ".join(str(row.get(f) or "") for f in SCORED_FIELDS)


def compute_score(item: ParsedItem, row: Mapping[str, str], scorer: Scorer = compare_two_strings) -> float:
    """
    Similarity between a parsed item and one catalog row.

    Both sides are normalized to [A-Z0-9] first, so spacing, punctuation
    and case do not count. Quantity is not part of the comparison.
    """
    row_norm = normalize_str(build_reference_string(row))
    item_norm = normalize_str(f"{item.name} {item.material} {item.spec}")
    return scorer(item_norm, row_norm)


def find_best_match(
    item: ParsedItem,
    catalog: Iterable[ReferenceSheet],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    scorer: Scorer = compare_two_strings
) -> Optional[MatchCandidate]:
    """
    Find the highest-scoring catalog row for an item.

    Rows are scanned sheet by sheet in catalog order and only a strictly
    higher score replaces the current best, so the first row seen wins
    ties.

    Returns:
        MatchCandidate, or None if nothing reaches the threshold
    """
    best: Optional[MatchCandidate] = None

    for sheet in catalog:
        for row in sheet.rows:
            score = compute_score(item, row, scorer)
            if best is None or score > best.score:
                best = MatchCandidate(sheet_name=sheet.sheet_name, row=row, score=score)

    if best is None or best.score < threshold:
        return None
    return best


def to_match_rate(score: float) -> int:
    """Score as a whole percentage, halves rounded up."""
    return int(math.floor(score * 100 + 0.5))


def below_threshold_reason(threshold: float) -> str:
    return f"match below {to_match_rate(threshold)}% threshold"


def parse_error_reason(error: ParseError) -> str:
    return f"parse error ({error.reason})"


def reconcile_items(
    parsed: Sequence[ParseResult],
    catalog: Iterable[ReferenceSheet],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    scorer: Scorer = compare_two_strings
) -> ReconcileResult:
    """
    Match every parsed entry and split the results.

    Sequence numbers are 1-based positions in ``parsed``; every entry
    lands in exactly one of the two lists.

    Args:
        parsed: Output of parse_ocr_text()
        catalog: Reference sheets (PartCatalog or list of ReferenceSheet)
        threshold: Minimum score for a match
        scorer: Similarity function on normalized strings

    Returns:
        ReconcileResult with matched and unmatched lists
    """
    # Scanned once per item
    sheets = list(catalog)
    result = ReconcileResult()

    for seq, entry in enumerate(parsed, start=1):
        if isinstance(entry, ParseError):
            result.unmatched.append(UnmatchedResult(
                seq=seq,
                name=entry.raw_line,
                spec="-",
                quantity="-",
                reason=parse_error_reason(entry)
            ))
            continue

        best = find_best_match(entry, sheets, threshold, scorer)
        if best is None:
            result.unmatched.append(UnmatchedResult(
                seq=seq,
                name=entry.name,
                spec=entry.spec,
                quantity=entry.quantity,
                reason=below_threshold_reason(threshold)
            ))
            continue

        logger.debug(f"#{seq} {entry.name!r} -> {best}")
        result.matched.append(MatchedResult(
            seq=seq,
            part_number=best.row.get(FIELD_PART_NUMBER) or NO_PART_NUMBER,
            name=entry.name,
            spec=entry.spec,
            quantity=entry.quantity,
            match_rate_percent=to_match_rate(best.score),
            sheet_name=best.sheet_name
        ))

    logger.info(f"Matched {len(result.matched)}/{result.total} items ({len(result.unmatched)} unmatched)")
    return result


def reconcile(
    ocr_text: str,
    catalog: Iterable[ReferenceSheet],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    name_replacements: Optional[Mapping[str, str]] = None,
    header_keywords: Iterable[str] = HEADER_KEYWORDS,
    furniture_keywords: Iterable[str] = FURNITURE_KEYWORDS,
    scorer: Scorer = compare_two_strings
) -> ReconcileResult:
    """
    Convenience function: parse OCR text and match it against a catalog.

    Example:
        >>> result = reconcile(text, load_catalog(Path("mydata.xlsx")))
        >>> result.to_dict()
        {'matched': [...], 'unmatched': [...]}
    """
    parsed = parse_ocr_text(ocr_text, name_replacements, header_keywords, furniture_keywords)
    return reconcile_items(parsed, catalog, threshold, scorer)
