"""
Item Parser - turns OCR text from a parts table into candidate items

Each surviving line of the table is expected to read
``NAME MATERIAL QUANTITY SPEC...``. Names listing several parts
("BOLT/SW,PW") are expanded into one item per part, with known
abbreviations spelled out.
"""

import logging
import re
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .text_normalize import extract_digits

logger = logging.getLogger(__name__)


# Abbreviation -> canonical part name. Lookups are case-insensitive.
NAME_REPLACEMENTS: Dict[str, str] = {
    "HEX SOCKET HEAD BOLT": "HEX BOLT",
    "SW": "SW (SPRING WASHER)",
    "PW": "PW (PLAIN WASHER)",
    "NUT": "NUT",
}

# A line holding all of these is the column header row
# (name / material / quantity / spec).
HEADER_KEYWORDS = ("명칭", "재료", "수량", "규격")

# Any one of these marks table furniture
# (sequence no. / part-number column / remarks).
FURNITURE_KEYWORDS = ("순번", "p.no", "비고", "remarks")

REASON_INSUFFICIENT_TOKENS = "insufficient tokens"

MIN_LINE_TOKENS = 4

_NAME_SEPARATOR_RE = re.compile(r'[,/]+')


@dataclass(frozen=True)
class ParsedItem:
    """One part row read from the OCR text."""
    name: str
    material: str
    quantity: str   # digits only, "0" when none were found
    spec: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> 'ParsedItem':
        return cls(
            name=data["name"],
            material=data["material"],
            quantity=data["quantity"],
            spec=data["spec"],
        )


@dataclass(frozen=True)
class ParseError:
    """A line that could not be split into table columns."""
    raw_line: str
    reason: str = REASON_INSUFFICIENT_TOKENS

    def to_dict(self) -> Dict[str, str]:
        return {"parse_error": True, "raw_line": self.raw_line, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> 'ParseError':
        return cls(raw_line=data["raw_line"], reason=data.get("reason", REASON_INSUFFICIENT_TOKENS))


ParseResult = Union[ParsedItem, ParseError]


def _replacement_lookup(name_replacements: Optional[Mapping[str, str]]) -> Dict[str, str]:
    if name_replacements is None:
        name_replacements = NAME_REPLACEMENTS
    return {key.strip().upper(): value for key, value in name_replacements.items()}


def expand_name_subitems(
    name: str,
    material: str,
    quantity: str,
    spec: str,
    name_replacements: Optional[Mapping[str, str]] = None
) -> List[ParsedItem]:
    """
    Split a compound name on ``,`` / ``/`` into one item per part.

    Each part is looked up in the abbreviation table; unknown parts are
    kept as written. All sub-items share material, quantity and spec.

    Example:
        >>> [i.name for i in expand_name_subitems("SW/PW,NUT", "SUS304", "10", "M6")]
        ['SW (SPRING WASHER)', 'PW (PLAIN WASHER)', 'NUT']
    """
    lookup = _replacement_lookup(name_replacements)
    items = []

    for token in _NAME_SEPARATOR_RE.split(name):
        trimmed = token.strip()
        if not trimmed:
            continue
        canonical = lookup.get(trimmed.upper(), trimmed)
        items.append(ParsedItem(name=canonical, material=material, quantity=quantity, spec=spec))

    return items


def is_header_noise(
    line: str,
    header_keywords: Iterable[str] = HEADER_KEYWORDS,
    furniture_keywords: Iterable[str] = FURNITURE_KEYWORDS
) -> bool:
    """
    Check if a line is a table header row rather than data.

    True when the line carries every column-header keyword, or any
    furniture keyword (sequence/part-number/remarks columns).
    """
    lower = line.lower()
    header_keywords = [kw.lower() for kw in header_keywords]

    if header_keywords and all(kw in lower for kw in header_keywords):
        return True

    return any(kw.lower() in lower for kw in furniture_keywords)


def _split_columns(line: str, lookup: Mapping[str, str]) -> List[str]:
    """
    Split a line into whitespace-separated columns.

    A leading multi-word name from the abbreviation table
    ("HEX SOCKET HEAD BOLT/SW ...") stays a single name column, as long
    as the line still has enough columns without it.
    """
    tokens = line.split()
    collapsed = " ".join(tokens)
    collapsed_upper = collapsed.upper()

    phrases = sorted((key for key in lookup if " " in key), key=len, reverse=True)
    for phrase in phrases:
        phrase = " ".join(phrase.split())
        if not collapsed_upper.startswith(phrase):
            continue

        end = len(phrase)
        if end < len(collapsed) and collapsed[end] not in " ,/":
            continue

        # Keep ",NUT" / "/SW" continuations glued to the phrase
        while end < len(collapsed) and collapsed[end] != " ":
            end += 1

        joined = [collapsed[:end]] + collapsed[end:].split()
        if len(joined) >= MIN_LINE_TOKENS:
            return joined

    return tokens


def parse_line(
    line: str,
    name_replacements: Optional[Mapping[str, str]] = None
) -> Union[List[ParsedItem], ParseError]:
    """
    Parse one table row into items.

    Columns: name, material, quantity, then everything else is the spec.
    Rows with fewer than four columns yield a ParseError carrying the
    line verbatim.
    """
    lookup = _replacement_lookup(name_replacements)
    parts = _split_columns(line.strip(), lookup)

    if len(parts) < MIN_LINE_TOKENS:
        return ParseError(raw_line=line, reason=REASON_INSUFFICIENT_TOKENS)

    raw_name, raw_material, raw_qty = parts[0], parts[1], parts[2]
    raw_spec = " ".join(parts[3:])
    quantity = extract_digits(raw_qty)

    items = expand_name_subitems(raw_name, raw_material, quantity, raw_spec, lookup)
    if not items:
        # Name column was nothing but separators
        items = [ParsedItem(name=raw_name, material=raw_material, quantity=quantity, spec=raw_spec)]
    return items


def parse_ocr_text(
    full_text: str,
    name_replacements: Optional[Mapping[str, str]] = None,
    header_keywords: Iterable[str] = HEADER_KEYWORDS,
    furniture_keywords: Iterable[str] = FURNITURE_KEYWORDS
) -> List[ParseResult]:
    """
    Parse full OCR text into an ordered list of items and parse errors.

    Steps:
    1. Split into lines, trim, drop blanks
    2. Drop header/furniture rows
    3. Parse each remaining row, expanding compound names in place

    The position in the returned list is the row's sequence number
    (1-based) in every downstream result.

    Args:
        full_text: Raw OCR text, newline-delimited
        name_replacements: Abbreviation table (defaults to NAME_REPLACEMENTS)
        header_keywords: Column-header keywords that must all be present
        furniture_keywords: Keywords that mark a row as table furniture

    Returns:
        List of ParsedItem / ParseError in table order
    """
    lookup = _replacement_lookup(name_replacements)
    header_keywords = tuple(header_keywords)
    furniture_keywords = tuple(furniture_keywords)

    lines = [line.strip() for line in full_text.split("\n")]
    lines = [line for line in lines if line]

    parsed: List[ParseResult] = []
    skipped = 0

    for line in lines:
        if is_header_noise(line, header_keywords, furniture_keywords):
            skipped += 1
            continue

        result = parse_line(line, lookup)
        if isinstance(result, ParseError):
            logger.debug(f"Unparseable line ({result.reason}): {line!r}")
            parsed.append(result)
        else:
            parsed.extend(result)

    logger.info(f"Parsed {len(parsed)} entries from {len(lines)} lines ({skipped} header lines skipped)")
    return parsed
