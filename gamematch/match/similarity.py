"""String similarity primitives used by the scoring engine.

Each function returns a float in ``[0.0, 1.0]`` and never raises on empty
input. They operate on the text exactly as given: case folding and
whitespace cleanup are the caller's job (see ``fold_text``).

Tokenization (cosine / Jaccard):
- Unicode punctuation and symbols (categories P* and S*) are dropped
  ("Pac-Man" -> "PacMan", "Game: Special!" -> "Game Special"); letters,
  combining marks and digits are kept, so Devanagari or Thai vowel signs stay
  inside their word
- The remainder is split on Unicode whitespace
- Scripts written without spaces (CJK) are not segmented, so a run such as
  "超级马里奥兄弟" is a single token
"""

from __future__ import annotations

import math
import unicodedata
from collections import Counter
from typing import List

from rapidfuzz.distance import Levenshtein

_DROPPED_CATEGORIES = ("P", "S")


def _strip_punctuation(text: str) -> str:
    return "".join(ch for ch in text if unicodedata.category(ch)[0] not in _DROPPED_CATEGORIES)


def tokenize(text: str) -> List[str]:
    """Split text into word tokens, dropping punctuation.

    Case is preserved. Returns an empty list for empty or punctuation-only input.
    """
    if not text:
        return []
    return _strip_punctuation(text).split()


def levenshtein_similarity(a: str, b: str) -> float:
    """Edit-distance similarity: ``1 - distance / max(len(a), len(b))``."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    distance = Levenshtein.distance(a, b)
    return 1.0 - distance / max(len(a), len(b))


def cosine_similarity(a: str, b: str) -> float:
    """Cosine of the term-frequency vectors of both strings.

    Word order is irrelevant: "hello world" and "world hello" score 1.0.
    Either string being empty scores 0.0.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    tf_a = Counter(tokenize(a))
    tf_b = Counter(tokenize(b))
    if not tf_a or not tf_b:
        return 0.0
    if tf_a == tf_b:
        return 1.0

    dot = sum(count * tf_b[token] for token, count in tf_a.items() if token in tf_b)
    if dot == 0:
        return 0.0
    norm_a = sum(count * count for count in tf_a.values())
    norm_b = sum(count * count for count in tf_b.values())
    # sqrt of the product keeps identical vectors at exactly 1.0
    return min(1.0, dot / math.sqrt(norm_a * norm_b))


def jaccard_similarity(a: str, b: str) -> float:
    """Token-set Jaccard index ``|A & B| / |A | B|``.

    Two empty strings are identical (1.0); one empty string scores 0.0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    set_a = set(tokenize(a))
    set_b = set(tokenize(b))
    if not set_a and not set_b:
        return 1.0
    union = set_a | set_b
    return len(set_a & set_b) / len(union)


__all__ = [
    "tokenize",
    "levenshtein_similarity",
    "cosine_similarity",
    "jaccard_similarity",
]
