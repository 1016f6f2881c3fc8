"""Loaded client, searched through its Magento Algolia index."""

from __future__ import annotations

from typing import Any
from urllib import parse as urllib_parse

import httpx

from dealarr.core.exceptions import StoreResponseError
from dealarr.core.matching import Candidate, MatchingConfig
from dealarr.core.search.models import LoadedOffer
from dealarr.core.stores.base import Listing, StoreClient, parse_price

LOADED_SEARCH_URL = (
    "https://muvyib7tey-dsn.algolia.net/1/indexes/*/queries"
    "?x-algolia-agent=Algolia%20for%20JavaScript%20(3.35.1)%3B%20Browser%3B%20instantsearch.js"
    "%20(4.7.2)%3B%20Magento2%20integration%20(3.10.5)%3B%20JS%20Helper%20(3.2.2)"
    "&x-algolia-application-id=MUVYIB7TEY"
    "&x-algolia-api-key=ODNjY2VjZjExZGE2NTg3ZDkyMGQ4MjljYzYwM2U0NmRjYWI4MDgwNTQ0NjgzNmE2ZGQy"
    "Y2ZmMDlkMzAyYTI4NXRhZ0ZpbHRlcnM9"
)
LOADED_INDEX = "magento2_default_products"


def _default_value(value: Any) -> Any:
    """Unwrap Magento store-view values (``{"default": ...}``)."""
    if isinstance(value, dict):
        return value.get("default", value.get("Default"))
    return value


class LoadedStore(StoreClient):
    """Client for the Loaded store.

    Loaded appends "PC" to most listing names; the normalizer strips it.
    """

    store_id = "loaded"

    def __init__(
        self,
        name: str = "Loaded",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        matching_config: MatchingConfig | None = None,
        hits_per_page: int = 5,
    ) -> None:
        super().__init__(name, client=client, timeout=timeout, matching_config=matching_config)
        self.hits_per_page = hits_per_page

    async def search(self, title: str, steam_app_id: int | None = None) -> list[Listing]:
        params = urllib_parse.urlencode({"hitsPerPage": self.hits_per_page, "query": title})
        payload = {"requests": [{"indexName": LOADED_INDEX, "params": params}]}
        self.logger.debug("Searching Loaded", title=title)
        data = await self._post_algolia(LOADED_SEARCH_URL, payload)

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise StoreResponseError(self.store_id, "Response has no results list")
        if not results:
            return []

        hits = results[0].get("hits") if isinstance(results[0], dict) else None
        listings = self._parse_hits(hits, self._parse_hit)
        self.logger.debug("Loaded search completed", title=title, results_count=len(listings))
        return listings

    def _parse_hit(self, hit: Any) -> Listing | None:
        if not isinstance(hit, dict):
            return None

        name = _default_value(hit.get("name"))
        link = _default_value(hit.get("url"))
        prices = hit.get("price") or {}
        usd = prices.get("USD") if isinstance(prices, dict) else None
        price = parse_price(_default_value(usd))
        if not name or not link or price is None:
            self.logger.debug("Ignoring incomplete hit", name=name)
            return None

        offer = LoadedOffer(name=name, price=price, link=link)
        return Listing(candidate=Candidate(name=name, price=price, locator=link), offer=offer)
