"""Value types shared by the matching engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Candidate:
    """One storefront search hit, reduced to what matching needs.

    Attributes:
        name: Listing name exactly as returned by the storefront
        price: Price in USD (0 is a real value, unknown prices never get here)
        locator: Opaque slug, path or URL used later to build a deep link
    """

    name: str
    price: float
    locator: str = ""


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a best-match scan.

    Either one winning candidate (``index``, ``candidate``, ``score``) or the
    ``NO_MATCH`` sentinel, where ``index`` is None. Truthiness follows
    ``matched`` so a winner at index 0 is still truthy.
    """

    index: int | None = None
    candidate: Candidate | None = None
    score: float = 0.0

    @property
    def matched(self) -> bool:
        return self.index is not None

    def __bool__(self) -> bool:
        return self.matched

    def __repr__(self) -> str:
        if not self.matched:
            return "MatchResult(NO_MATCH)"
        return f"MatchResult(index={self.index}, score={self.score}, name={self.candidate.name!r})"


NO_MATCH = MatchResult()
