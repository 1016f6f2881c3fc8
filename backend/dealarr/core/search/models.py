"""Pydantic models for queries, per-store offers and aggregated results."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

StoreId = Literal["steam", "fanatical", "humblebundle", "greenmangaming", "loaded"]

STORE_NAMES: dict[str, str] = {
    "steam": "Steam",
    "fanatical": "Fanatical",
    "humblebundle": "Humble Bundle",
    "greenmangaming": "Green Man Gaming",
    "loaded": "Loaded",
}


class GameQuery(BaseModel):
    """One title to look up."""

    title: str = Field(..., min_length=1, description="Canonical game title")
    target_price: float | None = Field(
        default=None, ge=0, description="Target price in USD (None = configured default)"
    )


class BaseOffer(BaseModel, ABC):
    """The listing a store matched for a title.

    Each store has its own variant that narrows ``store`` to its id and
    knows how to build the deep link from its locator fields.
    """

    store: StoreId
    name: str = Field(..., description="Listing name as shown by the store")
    price: float = Field(..., ge=0, description="Price in USD")

    @property
    def store_name(self) -> str:
        return STORE_NAMES[self.store]

    @property
    @abstractmethod
    def url(self) -> str:
        """Deep link to the listing on the store."""


class SteamOffer(BaseOffer):
    """Steam listing, either an app or a bundle."""

    store: Literal["steam"] = "steam"
    app_id: int | None = Field(default=None, description="Steam app id")
    bundle_id: int | None = Field(default=None, description="Steam bundle id")

    @model_validator(mode="after")
    def _check_single_id(self) -> SteamOffer:
        if (self.app_id is None) == (self.bundle_id is None):
            raise ValueError("Steam offer needs exactly one of app_id or bundle_id")
        return self

    @property
    def url(self) -> str:
        if self.app_id is not None:
            return f"https://store.steampowered.com/app/{self.app_id}"
        return f"https://store.steampowered.com/bundle/{self.bundle_id}"


class FanaticalOffer(BaseOffer):
    store: Literal["fanatical"] = "fanatical"
    slug: str

    @property
    def url(self) -> str:
        return f"https://www.fanatical.com/en/game/{self.slug}"


class HumbleBundleOffer(BaseOffer):
    store: Literal["humblebundle"] = "humblebundle"
    path: str

    @property
    def url(self) -> str:
        return f"https://www.humblebundle.com/store/{self.path.lstrip('/')}"


class GreenManGamingOffer(BaseOffer):
    store: Literal["greenmangaming"] = "greenmangaming"
    path: str

    @property
    def url(self) -> str:
        return f"https://www.greenmangaming.com/{self.path.lstrip('/')}"


class LoadedOffer(BaseOffer):
    store: Literal["loaded"] = "loaded"
    link: str

    @property
    def url(self) -> str:
        return self.link


Offer = Annotated[
    SteamOffer | FanaticalOffer | HumbleBundleOffer | GreenManGamingOffer | LoadedOffer,
    Field(discriminator="store"),
]


class GameResult(BaseModel):
    """Everything found for one title across all stores."""

    query: GameQuery
    offers: dict[str, Offer] = Field(
        default_factory=dict, description="Matched offer per store id, Steam first"
    )
    steam_app_id: int | None = Field(default=None, description="Steam app id of the title")
    store_errors: dict[str, str] = Field(
        default_factory=dict, description="Per-store failures that did not stop the lookup"
    )
    error: str | None = Field(default=None, description="Fatal error for this title")

    @property
    def title(self) -> str:
        return self.query.title

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def cheapest(self) -> BaseOffer | None:
        """Lowest-priced offer; the earliest store wins ties."""
        if not self.offers:
            return None
        return min(self.offers.values(), key=lambda offer: offer.price)


class PriceReport(BaseModel):
    """Results partitioned against each title's target price."""

    under_target: list[GameResult] = Field(default_factory=list)
    over_target: list[GameResult] = Field(default_factory=list)
    not_found: list[GameResult] = Field(default_factory=list)
    failed: list[GameResult] = Field(default_factory=list)
