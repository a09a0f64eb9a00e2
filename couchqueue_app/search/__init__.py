"""
================================================================================
CouchQueue v1.0 - Discovery Search Package
================================================================================
Local-first content discovery with TMDB fallthrough.

Components:
  - query_parser.py - Year / genre hints from free text
  - trigram.py - pg_trgm-compatible similarity (registered on SQLite)
  - local.py - Trigram search over the Local Store
  - gate.py - Decides whether local results are enough
  - reconcile.py - Upserts provider records into the Local Store
  - ranker.py - Union merge with composite relevance
  - smart_search.py - DiscoverySearch pipeline
  - config.py - Environment-driven settings

Only the pure modules are re-exported here; couchqueue_app.database imports
trigram.py, so this package must not pull in the store at import time.
================================================================================
"""

from .query_parser import parse_query
from .gate import ConfidenceGate, is_satisfied
from .ranker import merge_and_rank, merge_candidates, relevance_score
from .trigram import similarity

__all__ = [
    'parse_query',
    'ConfidenceGate',
    'is_satisfied',
    'merge_and_rank',
    'merge_candidates',
    'relevance_score',
    'similarity',
]
