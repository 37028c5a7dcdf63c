"""Local fuzzy scoring of an instruction against element text.

Tiers never overlap: exact 1.0, prefix 0.9, substring [0.6, 0.8), word overlap (0.3, 0.6],
character overlap (0, 0.2].
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import List

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.9
SUBSTRING_BASE = 0.6
SUBSTRING_CAP = 0.79
WORD_OVERLAP_FLOOR = 0.3
WORD_OVERLAP_SPAN = 0.3
CHAR_OVERLAP_WEIGHT = 0.2

_WORD_RE = re.compile(r"[a-z0-9]+")


def normalize(text: str) -> str:
    return " ".join((text or "").lower().split())


def words(text: str) -> List[str]:
    return _WORD_RE.findall(normalize(text))


def substring_score(position: int, query_length: int, target_length: int) -> float:
    """Earlier and relatively longer substrings score higher, always below the prefix tier."""

    if target_length <= 0:
        return 0.0
    position_score = 1.0 - (position / target_length)
    length_ratio = min(1.0, query_length / target_length)
    return min(SUBSTRING_CAP, SUBSTRING_BASE + 0.1 * position_score + 0.1 * length_ratio)


def word_overlap(query: str, target: str) -> float:
    """Fraction of query words that prefix or occur inside some target word."""

    query_words = words(query)
    target_words = words(target)
    if not query_words or not target_words:
        return 0.0
    matched = 0
    for word in query_words:
        if any(candidate.startswith(word) or word in candidate for candidate in target_words):
            matched += 1
    return matched / len(query_words)


def char_overlap_score(query: str, target: str) -> float:
    chars = [char for char in query if not char.isspace()]
    if not chars:
        return 0.0
    available = set(target)
    matched = sum(1 for char in chars if char in available)
    if matched * 2 < len(chars):
        return 0.0
    return (matched / len(chars)) * CHAR_OVERLAP_WEIGHT


def match_score(instruction: str, text: str) -> float:
    query = normalize(instruction)
    target = normalize(text)
    if not query or not target:
        return 0.0
    if query == target:
        return EXACT_SCORE
    if target.startswith(query):
        return PREFIX_SCORE
    position = target.find(query)
    if position >= 0:
        return substring_score(position, len(query), len(target))
    overlap = word_overlap(query, target)
    if overlap > 0:
        return WORD_OVERLAP_FLOOR + WORD_OVERLAP_SPAN * overlap
    return char_overlap_score(query, target)


def similarity(a: str, b: str) -> float:
    left, right = normalize(a), normalize(b)
    if not left or not right:
        return 0.0
    return SequenceMatcher(None, left, right).ratio()


__all__ = [
    "EXACT_SCORE",
    "PREFIX_SCORE",
    "char_overlap_score",
    "match_score",
    "normalize",
    "similarity",
    "substring_score",
    "word_overlap",
    "words",
]
