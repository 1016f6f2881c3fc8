"""Match criteria between a query name and a listing name.

Each function evaluates the listing name and returns a score and reason.
Scoring is exact-or-nothing: a listing either equals the query after
normalization or it does not count at all.
"""

from __future__ import annotations

from .config import DEFAULT_CONFIG, MatchingConfig
from .normalizer import normalize_name


def match_name(
    query_name: str,
    candidate_name: str,
    config: MatchingConfig | None = None,
) -> tuple[float, str]:
    """Evaluate a listing name against the query.

    Args:
        query_name: Canonical title being searched
        candidate_name: Listing name from the storefront
        config: Matching configuration (defaults to ``DEFAULT_CONFIG``)

    Returns:
        Tuple of (score, reason)
    """
    if config is None:
        config = DEFAULT_CONFIG

    query_key = query_name.lower()
    candidate_key = normalize_name(candidate_name, config)

    if query_key == candidate_key:
        return (
            config.exact_match_score,
            f"Exact match: '{query_key}' == '{candidate_key}' (+{config.exact_match_score})",
        )

    # Punctuation and trademark glyphs are not folded, so "Foo: Bar" vs
    # "Foo - Bar" lands here.
    return config.no_match_score, f"No match: '{query_key}' vs '{candidate_key}'"


def score(query_name: str, candidate_name: str, config: MatchingConfig | None = None) -> float:
    """Return a similarity score in [0.0, 1.0] for a listing name."""
    return match_name(query_name, candidate_name, config)[0]
