"""Cross-catalog matching engine.

This module picks, for one canonical game name, the single storefront
listing that corresponds to it (or none), with the same policy for every
store.
"""

from .config import DEFAULT_CONFIG, MatchingConfig, get_matching_config
from .criteria import match_name, score
from .evaluator import best_match
from .filters import exclusion_reason, should_ignore
from .models import NO_MATCH, Candidate, MatchResult
from .normalizer import normalize_name

__all__ = [
    "MatchingConfig",
    "DEFAULT_CONFIG",
    "get_matching_config",
    "Candidate",
    "MatchResult",
    "NO_MATCH",
    "normalize_name",
    "exclusion_reason",
    "should_ignore",
    "match_name",
    "score",
    "best_match",
]
