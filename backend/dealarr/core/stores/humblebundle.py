"""Humble Bundle client, searched through its Algolia index."""

from __future__ import annotations

from typing import Any
from urllib import parse as urllib_parse

import httpx

from dealarr.core.matching import Candidate, MatchingConfig
from dealarr.core.search.models import HumbleBundleOffer
from dealarr.core.stores.base import Listing, StoreClient, parse_price

# The key ships in the humblebundle.com page (a <script type="application/json">)
HUMBLEBUNDLE_SEARCH_URL = (
    "https://ayszewdaz2-dsn.algolia.net/1/indexes/replica_product_query_site_search/query"
    "?x-algolia-application-id=AYSZEWDAZ2&x-algolia-api-key={key}"
)


def algolia_query(title: str) -> str:
    """Escape a title for an Algolia ``params`` string (spaces as %20)."""
    return urllib_parse.quote(title, safe="")


class HumbleBundleStore(StoreClient):
    """Client for the Humble Bundle store."""

    store_id = "humblebundle"

    def __init__(
        self,
        api_key: str,
        name: str = "Humble Bundle",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        matching_config: MatchingConfig | None = None,
        hits_per_page: int = 5,
    ) -> None:
        super().__init__(name, client=client, timeout=timeout, matching_config=matching_config)
        self.api_key = api_key
        self.hits_per_page = hits_per_page

    async def search(self, title: str, steam_app_id: int | None = None) -> list[Listing]:
        """Search Humble Bundle for a title.

        Only hits delivered as Steam keys with a US price are returned.
        """
        url = HUMBLEBUNDLE_SEARCH_URL.format(key=self.api_key)
        payload = {
            "params": f"query={algolia_query(title)}&hitsPerPage={self.hits_per_page}&page=0"
        }
        self.logger.debug("Searching Humble Bundle", title=title)
        data = await self._post_algolia(url, payload)

        hits = data.get("hits") if isinstance(data, dict) else None
        listings = self._parse_hits(hits, lambda hit: self._parse_hit(title, hit))
        self.logger.debug(
            "Humble Bundle search completed", title=title, results_count=len(listings)
        )
        return listings

    def _parse_hit(self, title: str, hit: Any) -> Listing | None:
        if not isinstance(hit, dict):
            return None

        name = hit.get("human_name")
        path = hit.get("link")
        if not name or not path:
            return None

        delivery_methods = hit.get("delivery_methods")
        if not isinstance(delivery_methods, list) or "steam" not in delivery_methods:
            self.logger.debug("Ignoring hit without Steam delivery", title=title, name=name)
            return None

        pricing = hit.get("current_pricing") or {}
        us_pricing = pricing.get("US") if isinstance(pricing, dict) else None
        if not isinstance(us_pricing, list) or not us_pricing:
            self.logger.debug("Ignoring hit without price", title=title, name=name)
            return None

        # [price, currency]
        price = parse_price(us_pricing[0])
        if price is None:
            self.logger.warning("Invalid price", title=title, name=name, pricing=us_pricing)
            return None

        offer = HumbleBundleOffer(name=name, price=price, path=path)
        return Listing(candidate=Candidate(name=name, price=price, locator=path), offer=offer)
