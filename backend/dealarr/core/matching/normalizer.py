"""Listing name normalization used before exact comparison."""

from __future__ import annotations

from .config import DEFAULT_CONFIG, MatchingConfig


def normalize_name(raw_name: str, config: MatchingConfig | None = None) -> str:
    """Strip cosmetic markers from a listing name and lowercase it.

    Each marker is cut at its first occurrence and the text after it is
    trimmed and glued back, so "Foobar PC" and "Foobar Deluxe" both become
    "foobar". Punctuation and trademark glyphs are left untouched.

    Args:
        raw_name: Listing name as returned by the storefront
        config: Matching configuration (defaults to ``DEFAULT_CONFIG``)

    Returns:
        Normalized comparison key
    """
    if config is None:
        config = DEFAULT_CONFIG

    normalized = raw_name
    for marker in config.cosmetic_suffixes:
        before, found, after = normalized.partition(marker)
        if found:
            normalized = before + after.strip()

    return normalized.lower()
