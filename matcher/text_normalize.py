"""
Text normalization helpers shared by the item parser and the matcher.
"""

import re

_NON_ALNUM_RE = re.compile(r'[^A-Z0-9]')
_NON_DIGIT_RE = re.compile(r'[^0-9]')


def normalize_str(s: str) -> str:
    """
    Canonicalize a string for similarity comparison.

    Upper-cases and drops everything outside [A-Z0-9]. Hangul and other
    non-Latin text collapses to an empty string.
    """
    return _NON_ALNUM_RE.sub('', s.upper()).strip()


def extract_digits(s: str) -> str:
    """Keep only the digits of a quantity cell ("3EA" -> "3"), "0" if none."""
    digits = _NON_DIGIT_RE.sub('', s)
    return digits or "0"
