"""Green Man Gaming client, searched through its Algolia index."""

from __future__ import annotations

from typing import Any

import httpx

from dealarr.core.exceptions import StoreResponseError
from dealarr.core.matching import Candidate, MatchingConfig
from dealarr.core.search.models import GreenManGamingOffer
from dealarr.core.stores.base import Listing, StoreClient, parse_price
from dealarr.core.stores.humblebundle import algolia_query

# The key is served by greenmangaming.com/en/Modals/AlgoliaSearchModal and looks hard-coded
GREENMANGAMING_SEARCH_URL = (
    "https://sczizsp09z-dsn.algolia.net/1/indexes/*/queries"
    "?x-algolia-api-key={key}&x-algolia-application-id=SCZIZSP09Z"
)
GREENMANGAMING_INDEX = "prod_ProductSearch_US"
BUNDLE_STEAM_APP_ID = "BUNDLE"


class GreenManGamingStore(StoreClient):
    """Client for the Green Man Gaming store.

    Every GMG product carries the Steam app id it activates, so when Steam
    already matched the title only listings for that app are considered.
    """

    store_id = "greenmangaming"

    def __init__(
        self,
        api_key: str,
        name: str = "Green Man Gaming",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        matching_config: MatchingConfig | None = None,
    ) -> None:
        super().__init__(name, client=client, timeout=timeout, matching_config=matching_config)
        self.api_key = api_key

    async def search(self, title: str, steam_app_id: int | None = None) -> list[Listing]:
        """Search Green Man Gaming for a title.

        Args:
            title: Canonical game title
            steam_app_id: When set, drop listings for any other Steam app

        Raises:
            StoreResponseError: If the response does not hold exactly one result set
        """
        url = GREENMANGAMING_SEARCH_URL.format(key=self.api_key)
        payload = {
            "requests": [
                {"indexName": GREENMANGAMING_INDEX, "params": f"query={algolia_query(title)}"}
            ]
        }
        self.logger.debug("Searching Green Man Gaming", title=title)
        data = await self._post_algolia(url, payload)

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list) or len(results) != 1:
            count = len(results) if isinstance(results, list) else None
            raise StoreResponseError(
                self.store_id, f"Unexpected number of result sets for '{title}': {count}"
            )

        hits = results[0].get("hits") if isinstance(results[0], dict) else None
        listings = self._parse_hits(hits, lambda hit: self._parse_hit(title, hit, steam_app_id))

        self.logger.debug(
            "Green Man Gaming search completed",
            title=title,
            steam_app_id=steam_app_id,
            results_count=len(listings),
        )
        return listings

    def _parse_hit(self, title: str, hit: Any, steam_app_id: int | None) -> Listing | None:
        if not isinstance(hit, dict):
            return None

        raw_app_id = str(hit.get("SteamAppId") or "").strip()
        if raw_app_id == BUNDLE_STEAM_APP_ID:
            return None
        try:
            hit_app_id = int(raw_app_id)
        except ValueError:
            self.logger.warning("Invalid SteamAppId", title=title, steam_app_id=raw_app_id)
            return None

        if steam_app_id is not None and hit_app_id != steam_app_id:
            return None

        name = hit.get("DisplayName")
        path = hit.get("Url")
        regions = hit.get("Regions") or {}
        us_region = regions.get("US") if isinstance(regions, dict) else None
        price = parse_price(us_region.get("Drp")) if isinstance(us_region, dict) else None
        if not name or not path or price is None:
            # Out of stock in the US region
            self.logger.debug("Ignoring incomplete hit", title=title, name=name)
            return None

        offer = GreenManGamingOffer(name=name, price=price, path=path)
        return Listing(candidate=Candidate(name=name, price=price, locator=path), offer=offer)
