"""Steam client - the primary catalog, searched through the suggest endpoint."""

from __future__ import annotations

import httpx
from bs4 import BeautifulSoup, Tag

from dealarr.core.exceptions import StoreResponseError, UnknownTitleError
from dealarr.core.matching import Candidate, MatchingConfig
from dealarr.core.search.models import SteamOffer
from dealarr.core.stores.base import Listing, StoreClient, parse_price

STEAM_SEARCH_URL = "https://store.steampowered.com/search/suggest"
STEAM_APP_ID_ATTR = "data-ds-appid"
STEAM_BUNDLE_ID_ATTR = "data-ds-bundleid"
STEAM_NAME_CLASS = "match_name"
STEAM_PRICE_CLASS = "match_price"


def _parse_steam_price(text: str) -> float | None:
    """Parse a suggest price like "$9.99" or "Free To Play".

    The first character is the currency symbol and is dropped.
    """
    text = text.strip()
    if "Free" in text:
        return 0.0
    if len(text) < 2:
        return None
    return parse_price(text[1:])


def _parse_steam_id(store_id: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as e:
        raise StoreResponseError(store_id, f"Couldn't convert attribute to id ({value})") from e


class SteamStore(StoreClient):
    """Client for the Steam store search suggestions."""

    store_id = "steam"

    def __init__(
        self,
        name: str = "Steam",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        matching_config: MatchingConfig | None = None,
        country_code: str = "US",
    ) -> None:
        """Initialize Steam client.

        Args:
            name: Display name (for logging)
            client: Shared HTTP client
            timeout: Request timeout in seconds for an owned client
            matching_config: Matching configuration
            country_code: Store region; prices are only meaningful in USD
        """
        super().__init__(name, client=client, timeout=timeout, matching_config=matching_config)
        self.country_code = country_code

    async def search(self, title: str, steam_app_id: int | None = None) -> list[Listing]:
        """Search Steam for a title.

        Args:
            title: Canonical game title
            steam_app_id: Ignored, Steam is where app ids come from

        Returns:
            Priced listings in Steam's suggestion order. Empty when Steam
            lists the title but has no price for it yet.

        Raises:
            UnknownTitleError: If Steam suggests nothing at all for the title
        """
        params = {"term": title, "f": "games", "cc": self.country_code}
        self.logger.debug("Searching Steam", title=title)
        response = await self.client.get(STEAM_SEARCH_URL, params=params)
        response.raise_for_status()

        listings, anchors = self.parse_results(response.text)
        if anchors == 0:
            raise UnknownTitleError(title)

        self.logger.debug(
            "Steam search completed",
            title=title,
            anchors=anchors,
            results_count=len(listings),
        )
        return listings

    def parse_results(self, html: str) -> tuple[list[Listing], int]:
        """Parse the suggest HTML fragment.

        Each result is an anchor carrying the app (or bundle) id, with the
        name and price in child divs. The image is ignored.

        Returns:
            Tuple of (priced listings, number of result anchors found)

        Raises:
            StoreResponseError: If an id attribute is not numeric
        """
        soup = BeautifulSoup(html, "html.parser")
        anchors = soup.find_all("a")
        listings: list[Listing] = []

        for anchor in anchors:
            listing = self._parse_anchor(anchor)
            if listing is not None:
                listings.append(listing)

        return listings, len(anchors)

    def _parse_anchor(self, anchor: Tag) -> Listing | None:
        app_id_attr = anchor.get(STEAM_APP_ID_ATTR)
        bundle_id_attr = anchor.get(STEAM_BUNDLE_ID_ATTR)
        app_id = _parse_steam_id(self.store_id, app_id_attr) if app_id_attr else None
        bundle_id = (
            _parse_steam_id(self.store_id, bundle_id_attr)
            if bundle_id_attr and app_id is None
            else None
        )

        name_div = anchor.find("div", class_=STEAM_NAME_CLASS)
        name = name_div.get_text(strip=True) if name_div else ""

        if (app_id is None and bundle_id is None) or not name:
            self.logger.warning(
                "Dropping partially parsed game",
                name=name or None,
                app_id=app_id,
                bundle_id=bundle_id,
            )
            return None

        price_div = anchor.find("div", class_=STEAM_PRICE_CLASS)
        price = _parse_steam_price(price_div.get_text(strip=True)) if price_div else None
        if price is None:
            # Unreleased games have no price yet
            self.logger.debug("Dropping game without price", name=name, app_id=app_id)
            return None

        offer = SteamOffer(name=name, price=price, app_id=app_id, bundle_id=bundle_id)
        locator = f"app/{app_id}" if app_id is not None else f"bundle/{bundle_id}"
        return Listing(candidate=Candidate(name=name, price=price, locator=locator), offer=offer)
