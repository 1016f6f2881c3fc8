"""Search results, aggregation and reporting.

The search service lives in ``dealarr.core.search.service``; it is not
re-exported here because the store clients import these models.
"""

from dealarr.core.search.models import (
    STORE_NAMES,
    BaseOffer,
    FanaticalOffer,
    GameQuery,
    GameResult,
    GreenManGamingOffer,
    HumbleBundleOffer,
    LoadedOffer,
    Offer,
    PriceReport,
    SteamOffer,
)
from dealarr.core.search.report import build_report, render_report

__all__ = [
    "STORE_NAMES",
    "BaseOffer",
    "Offer",
    "SteamOffer",
    "FanaticalOffer",
    "HumbleBundleOffer",
    "GreenManGamingOffer",
    "LoadedOffer",
    "GameQuery",
    "GameResult",
    "PriceReport",
    "build_report",
    "render_report",
]
