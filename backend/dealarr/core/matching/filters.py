"""Exclusion filter for listings that are never the base game.

The filter only looks at the raw listing (name and price), never at the
query, so it can reject DLC, soundtracks, demos and bundle packs before any
scoring happens.
"""

from __future__ import annotations

from .config import DEFAULT_CONFIG, MatchingConfig
from .models import Candidate


def exclusion_reason(candidate: Candidate, config: MatchingConfig | None = None) -> str | None:
    """Explain why a candidate is excluded.

    Args:
        candidate: Listing to check (unnormalized name)
        config: Matching configuration (defaults to ``DEFAULT_CONFIG``)

    Returns:
        Reason string if the candidate must be skipped, None otherwise
    """
    if config is None:
        config = DEFAULT_CONFIG

    for keyword in config.exclusion_keywords:
        if keyword in candidate.name:
            return f"Excluded keyword: '{keyword.strip()}' in '{candidate.name}'"

    if config.ignore_free_listings and candidate.price == 0:
        return f"Free listing treated as demo: '{candidate.name}'"

    return None


def should_ignore(candidate: Candidate, config: MatchingConfig | None = None) -> bool:
    """Return True if the candidate can never be selected as a match."""
    return exclusion_reason(candidate, config) is not None
