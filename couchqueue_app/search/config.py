"""
Discovery pipeline settings, read from the environment.
"""

import os
from dataclasses import dataclass

from .gate import DEFAULT_PAGE_SIZE, DEFAULT_CONFIDENCE_FLOOR

MERGE_REQUERY = 'requery'
MERGE_UNION = 'union'
MERGE_STRATEGIES = (MERGE_REQUERY, MERGE_UNION)


@dataclass
class DiscoveryConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR
    min_similarity: float = 0.3
    requery_min_similarity: float = 0.0
    merge_strategy: str = MERGE_REQUERY

    def __post_init__(self):
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.merge_strategy not in MERGE_STRATEGIES:
            raise ValueError(
                f"Unknown merge strategy '{self.merge_strategy}' "
                f"(expected one of {', '.join(MERGE_STRATEGIES)})"
            )

    @classmethod
    def from_env(cls) -> 'DiscoveryConfig':
        return cls(
            page_size=int(os.environ.get('SEARCH_PAGE_SIZE', DEFAULT_PAGE_SIZE)),
            confidence_floor=float(os.environ.get('SEARCH_CONFIDENCE_FLOOR', DEFAULT_CONFIDENCE_FLOOR)),
            min_similarity=float(os.environ.get('SEARCH_MIN_SIMILARITY', '0.3')),
            requery_min_similarity=float(os.environ.get('SEARCH_REQUERY_MIN_SIMILARITY', '0.0')),
            merge_strategy=os.environ.get('SEARCH_MERGE_STRATEGY', MERGE_REQUERY).strip().lower(),
        )
