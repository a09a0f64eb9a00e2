"""
Trigram similarity compatible with PostgreSQL's pg_trgm extension.

PostgreSQL computes similarity() natively. For SQLite (development and tests)
this module is registered as a SQL function on every new connection, see
couchqueue_app.database.create_db_engine().

Algorithm (mirrors pg_trgm):
  1. Lowercase, split into words on non-alphanumeric characters
  2. Pad each word with two leading spaces and one trailing space
  3. Collect the set of 3-character substrings
  4. similarity = |shared| / |union|
"""

import re
from functools import lru_cache
from typing import FrozenSet, Optional

# pg_trgm.similarity_threshold default; the `%` operator uses it
DEFAULT_THRESHOLD = 0.3

_WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)


@lru_cache(maxsize=4096)
def trigrams(value: str) -> FrozenSet[str]:
    """Return the set of pg_trgm-style trigrams for a string."""
    grams = set()
    for word in _WORD_RE.findall(value.lower()):
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i:i + 3])
    return frozenset(grams)


def similarity(left: Optional[str], right: Optional[str]) -> Optional[float]:
    """
    Trigram similarity between two strings in [0, 1].

    Returns None when either side is NULL, matching SQL semantics so that
    COALESCE(similarity(col, q), 0) behaves the same on both engines.
    """
    if left is None or right is None:
        return None

    a = trigrams(str(left))
    b = trigrams(str(right))
    if not a or not b:
        return 0.0

    shared = len(a & b)
    return shared / float(len(a) + len(b) - shared)


def is_match(left: Optional[str], right: Optional[str], threshold: float = DEFAULT_THRESHOLD) -> bool:
    """Python equivalent of `left % right`."""
    score = similarity(left, right)
    return score is not None and score >= threshold
