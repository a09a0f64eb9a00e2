"""
Confidence gate: decides whether local results are good enough to skip the
external metadata provider.
"""

from typing import Sequence

from ..metadata.models import SearchCandidate

DEFAULT_PAGE_SIZE = 10
DEFAULT_CONFIDENCE_FLOOR = 0.7


def is_satisfied(
    local_results: Sequence[SearchCandidate],
    page_size: int = DEFAULT_PAGE_SIZE,
    confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR
) -> bool:
    """
    True when the local result set alone can answer the query.

    Satisfied if there is a full page of results, or if the best result
    (results are ordered by similarity) meets the confidence floor.
    """
    if len(local_results) >= page_size:
        return True
    if not local_results:
        return False
    return local_results[0].similarity >= confidence_floor


class ConfidenceGate:
    """is_satisfied() bound to configured page size and floor."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR):
        self.page_size = page_size
        self.confidence_floor = confidence_floor

    def __call__(self, local_results: Sequence[SearchCandidate]) -> bool:
        return is_satisfied(local_results, self.page_size, self.confidence_floor)

    def __repr__(self):
        return f"<ConfidenceGate(page_size={self.page_size}, floor={self.confidence_floor})>"
