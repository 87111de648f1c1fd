"""
String similarity used to score OCR items against catalog rows.

Sørensen-Dice coefficient over character bigrams, the same measure the
``string-similarity`` package computes. The 0.40 match threshold is
calibrated against it.
"""

from collections import Counter
from typing import Callable

# (item_string, reference_string) -> similarity in [0, 1]
Scorer = Callable[[str, str], float]


def bigrams(s: str) -> Counter:
    """Multiset of adjacent character pairs."""
    return Counter(s[i:i + 2] for i in range(len(s) - 1))


def compare_two_strings(first: str, second: str) -> float:
    """
    Dice coefficient of two strings, whitespace ignored.

    Identical non-empty strings score 1.0. An empty side always scores
    0.0, including when both are empty: text that normalizes to nothing
    (e.g. Hangul-only names) must never count as a match.
    """
    first = "".join(first.split())
    second = "".join(second.split())

    if not first or not second:
        return 0.0
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = bigrams(first)
    second_bigrams = bigrams(second)
    intersection = sum((first_bigrams & second_bigrams).values())

    return (2.0 * intersection) / (len(first) + len(second) - 2)
