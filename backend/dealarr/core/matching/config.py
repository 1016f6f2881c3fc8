"""Matching configuration - exclusion keywords, cosmetic suffixes and scores."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from dealarr.core.exceptions import ConfigError

if TYPE_CHECKING:
    from dealarr.core.config import Settings


@dataclass(frozen=True)
class MatchingConfig:
    """Configuration for cross-catalog matching.

    This class centralizes the keyword lists and scores used by the
    normalizer, exclusion filter and scorer. Instances are immutable so one
    config can be shared by every concurrent lookup.
    """

    # Substrings (case-sensitive) that mark a listing as not the base game
    exclusion_keywords: tuple[str, ...] = (
        "DLC",
        "Soundtrack",
        "OST",
        "Artbook",
        "Adventure Pack",
        "Content Pack",
        "Costume Pack",
        "Season Pass",
        " Demo",  # Leading space keeps words like "Demon" matchable
    )

    # Markers cut out of listing names before comparison, applied in order
    cosmetic_suffixes: tuple[str, ...] = (" PC", " Deluxe")

    # Free listings are treated as demos/placeholders, not free games
    ignore_free_listings: bool = True

    # Scores
    exact_match_score: float = 1.0
    no_match_score: float = 0.0


# Default config instance
DEFAULT_CONFIG = MatchingConfig()


def get_matching_config(settings: Settings | None = None) -> MatchingConfig:
    """Build the matching configuration from settings overrides.

    Args:
        settings: Application settings; ``settings.matching`` holds overrides
            keyed by ``MatchingConfig`` field name

    Returns:
        MatchingConfig instance (``DEFAULT_CONFIG`` when nothing is overridden)

    Raises:
        ConfigError: If an override names an unknown field
    """
    overrides: dict[str, Any] = dict(settings.matching) if settings is not None else {}
    if not overrides:
        return DEFAULT_CONFIG

    known = {f.name for f in fields(MatchingConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"Unknown matching settings: {', '.join(unknown)}")

    # Lists coming from JSON/env become tuples so the config stays hashable
    for key in ("exclusion_keywords", "cosmetic_suffixes"):
        if key in overrides:
            overrides[key] = tuple(overrides[key])

    return MatchingConfig(**overrides)
