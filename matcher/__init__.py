# Parts table OCR matching
from .text_normalize import normalize_str, extract_digits
from .item_parser import (
    ParsedItem,
    ParseError,
    NAME_REPLACEMENTS,
    expand_name_subitems,
    is_header_noise,
    parse_line,
    parse_ocr_text,
)
from .part_catalog import PartCatalog, ReferenceSheet, CatalogLoadError, load_catalog
from .part_matcher import (
    MatchCandidate,
    MatchedResult,
    UnmatchedResult,
    ReconcileResult,
    compute_score,
    find_best_match,
    reconcile_items,
    reconcile,
    DEFAULT_MATCH_THRESHOLD,
)
from .similarity import compare_two_strings

__all__ = [
    "normalize_str",
    "extract_digits",
    "ParsedItem",
    "ParseError",
    "NAME_REPLACEMENTS",
    "expand_name_subitems",
    "is_header_noise",
    "parse_line",
    "parse_ocr_text",
    "PartCatalog",
    "ReferenceSheet",
    "CatalogLoadError",
    "load_catalog",
    "MatchCandidate",
    "MatchedResult",
    "UnmatchedResult",
    "ReconcileResult",
    "compute_score",
    "find_best_match",
    "reconcile_items",
    "reconcile",
    "DEFAULT_MATCH_THRESHOLD",
    "compare_two_strings",
]
