"""Best-match selector - orchestrates the filter and the scorer.

This module provides the single entry point every store adapter uses to
pick its listing for a title, so matching policy stays the same across all
storefronts.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from .config import DEFAULT_CONFIG, MatchingConfig
from .criteria import match_name
from .filters import exclusion_reason
from .models import NO_MATCH, Candidate, MatchResult

logger = structlog.get_logger("dealarr.matching")


def best_match(
    query_name: str,
    candidates: Sequence[Candidate],
    config: MatchingConfig | None = None,
) -> MatchResult:
    """Select the listing that corresponds to ``query_name``.

    Candidates are scanned in the storefront's own order. Excluded listings
    are skipped, and the current best is only replaced by a strictly higher
    score, so the first of several equal matches wins and a zero score never
    wins.

    Args:
        query_name: Canonical title being searched
        candidates: Listings from one storefront, in relevance order
        config: Matching configuration (defaults to ``DEFAULT_CONFIG``)

    Returns:
        MatchResult for the winner, or ``NO_MATCH``
    """
    if not candidates:
        return NO_MATCH

    if config is None:
        config = DEFAULT_CONFIG

    best = NO_MATCH
    best_score = 0.0

    for index, candidate in enumerate(candidates):
        reason = exclusion_reason(candidate, config)
        if reason is not None:
            logger.debug("Skipping candidate", query=query_name, index=index, reason=reason)
            continue

        candidate_score, detail = match_name(query_name, candidate.name, config)
        if candidate_score > best_score:
            best_score = candidate_score
            best = MatchResult(index=index, candidate=candidate, score=candidate_score)
            logger.debug("New best candidate", query=query_name, index=index, detail=detail)

    return best
