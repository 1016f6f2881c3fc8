"""Base abstract class for storefront clients."""

from __future__ import annotations

import json
import math
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from dealarr.core.exceptions import StoreResponseError
from dealarr.core.matching import Candidate, MatchingConfig, best_match
from dealarr.core.search.models import BaseOffer

ALGOLIA_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class Listing:
    """One parsed search hit: what matching sees, and the offer it becomes."""

    candidate: Candidate
    offer: BaseOffer


class StoreClient(ABC):
    """Abstract base class for storefront clients."""

    store_id: str = ""

    def __init__(
        self,
        name: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        matching_config: MatchingConfig | None = None,
    ) -> None:
        """Initialize store client.

        Args:
            name: Display name of the store (for logging)
            client: Shared HTTP client; one is created (and closed) if omitted
            timeout: Request timeout in seconds for an owned client
            matching_config: Matching configuration passed to ``best_match``
        """
        self.name = name
        self.timeout = timeout
        self.matching_config = matching_config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout), follow_redirects=True
        )
        self.logger = structlog.get_logger(f"dealarr.stores.{self.store_id}")

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    @abstractmethod
    async def search(self, title: str, steam_app_id: int | None = None) -> list[Listing]:
        """Search the store for a title.

        Args:
            title: Canonical game title
            steam_app_id: Steam app id of the title, when the primary catalog
                already matched it

        Returns:
            Listings in the store's relevance order. Hits with an unknown
            price are not returned.
        """

    async def find_offer(self, title: str, steam_app_id: int | None = None) -> BaseOffer | None:
        """Search the store and pick the listing that matches ``title``.

        Returns:
            The matched offer, or None when the store does not list the title
        """
        listings = await self.search(title, steam_app_id=steam_app_id)
        return self.select_offer(title, listings)

    def select_offer(self, title: str, listings: list[Listing]) -> BaseOffer | None:
        """Run ``best_match`` over listings and return the winner's offer."""
        match = best_match(title, [listing.candidate for listing in listings], self.matching_config)
        if not match:
            self.logger.debug("No match", title=title, listings=len(listings))
            return None

        offer = listings[match.index].offer
        self.logger.debug("Matched", title=title, listing=offer.name, price=offer.price)
        return offer

    def _decode_json(self, response: httpx.Response) -> Any:
        """Raise for HTTP errors and decode a JSON body."""
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise StoreResponseError(self.store_id, f"Invalid JSON response: {e}") from e

    def _parse_hits(
        self, hits: Any, parse_hit: Callable[[Any], Listing | None]
    ) -> list[Listing]:
        """Turn a list of search hits into listings.

        Args:
            hits: ``hits`` value from the response
            parse_hit: Returns a listing, or None to skip the hit

        Raises:
            StoreResponseError: If ``hits`` is not a list or a hit has an
                unexpected shape
        """
        if not isinstance(hits, list):
            raise StoreResponseError(self.store_id, "Response has no hits list")

        listings: list[Listing] = []
        for hit in hits:
            try:
                listing = parse_hit(hit)
            except (TypeError, KeyError, AttributeError) as e:
                raise StoreResponseError(self.store_id, f"Malformed hit: {e}") from e
            if listing is not None:
                listings.append(listing)
        return listings

    async def _post_algolia(self, url: str, payload: dict[str, Any]) -> Any:
        """POST an Algolia query.

        The body is JSON sent under a form content type, the same way the
        storefront pages call Algolia.
        """
        response = await self.client.post(
            url,
            content=json.dumps(payload),
            headers={"Content-Type": ALGOLIA_CONTENT_TYPE},
        )
        return self._decode_json(response)


def parse_price(value: Any) -> float | None:
    """Parse a price field into a non-negative float.

    Returns:
        Price, or None when it is missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(str(value).replace(",", "").strip())
    except ValueError:
        return None
    if price < 0 or not math.isfinite(price):
        return None
    return price
