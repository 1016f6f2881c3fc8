"""Fanatical client, searched through its Algolia index."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field

from dealarr.core.exceptions import StoreKeyError
from dealarr.core.matching import Candidate, MatchingConfig
from dealarr.core.search.models import FanaticalOffer
from dealarr.core.stores.base import Listing, StoreClient, parse_price

FANATICAL_KEY_URL = "https://www.fanatical.com/api/algolia/key"
FANATICAL_SEARCH_URL = (
    "https://w2m9492ddv-dsn.algolia.net/1/indexes/fan_alt_rank/query"
    "?x-algolia-api-key={key}&x-algolia-application-id=W2M9492DDV"
)

logger = structlog.get_logger("dealarr.stores.fanatical")


class FanaticalKey(BaseModel):
    """Anonymous Algolia search key handed out by fanatical.com.

    ``valid_until`` is informational: one run finishes well within the key
    lifetime, so the key is fetched once and never refreshed.
    """

    key: str = Field(..., description="Algolia search key")
    valid_until: int | None = Field(default=None, description="Expiry (epoch seconds)")


async def fetch_fanatical_key(client: httpx.AsyncClient, anon_id: str) -> FanaticalKey:
    """Fetch the anonymous search key.

    Args:
        client: HTTP client
        anon_id: Anonymous id sent in the ``anonid`` header

    Returns:
        FanaticalKey

    Raises:
        StoreKeyError: If the response carries no key
        httpx.HTTPError: On transport or HTTP status errors
    """
    response = await client.get(FANATICAL_KEY_URL, headers={"anonid": anon_id})
    response.raise_for_status()
    try:
        data = response.json()
    except ValueError as e:
        raise StoreKeyError("fanatical", f"Invalid key response: {e}") from e

    key = data.get("key") if isinstance(data, dict) else None
    if not key:
        raise StoreKeyError("fanatical", "Invalid search key for Fanatical")

    valid_until = data.get("validUntil")
    logger.debug("Fetched Fanatical search key", valid_until=valid_until)
    return FanaticalKey(key=key, valid_until=valid_until if isinstance(valid_until, int) else None)


class FanaticalStore(StoreClient):
    """Client for the Fanatical store."""

    store_id = "fanatical"

    def __init__(
        self,
        search_key: FanaticalKey,
        name: str = "Fanatical",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        matching_config: MatchingConfig | None = None,
        hits_per_page: int = 5,
    ) -> None:
        """Initialize Fanatical client.

        Args:
            search_key: Key from ``fetch_fanatical_key``
            name: Display name (for logging)
            client: Shared HTTP client
            timeout: Request timeout in seconds for an owned client
            matching_config: Matching configuration
            hits_per_page: Number of hits requested
        """
        super().__init__(name, client=client, timeout=timeout, matching_config=matching_config)
        self.search_key = search_key
        self.hits_per_page = hits_per_page

    async def search(self, title: str, steam_app_id: int | None = None) -> list[Listing]:
        url = FANATICAL_SEARCH_URL.format(key=self.search_key.key)
        payload = {"query": title, "hitsPerPage": self.hits_per_page, "filters": ""}
        self.logger.debug("Searching Fanatical", title=title)
        data = await self._post_algolia(url, payload)

        hits = data.get("hits") if isinstance(data, dict) else None
        listings = self._parse_hits(hits, self._parse_hit)
        self.logger.debug("Fanatical search completed", title=title, results_count=len(listings))
        return listings

    def _parse_hit(self, hit: Any) -> Listing | None:
        if not isinstance(hit, dict):
            return None

        name = hit.get("name")
        slug = hit.get("slug")
        prices = hit.get("price")
        price = parse_price(prices.get("USD")) if isinstance(prices, dict) else None
        if not name or not slug or price is None:
            self.logger.debug("Ignoring incomplete hit", name=name, slug=slug)
            return None

        offer = FanaticalOffer(name=name, price=price, slug=slug)
        return Listing(candidate=Candidate(name=name, price=price, locator=slug), offer=offer)
