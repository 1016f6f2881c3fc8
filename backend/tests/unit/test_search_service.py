"""Tests for the price search service."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from dealarr.core.config import Settings
from dealarr.core.exceptions import StoreResponseError, UnknownTitleError
from dealarr.core.matching import Candidate
from dealarr.core.search.models import FanaticalOffer, GameQuery, SteamOffer
from dealarr.core.search.service import PriceSearchService
from dealarr.core.stores.base import Listing, StoreClient
from dealarr.core.stores.fanatical import FanaticalStore
from dealarr.core.stores.greenmangaming import GreenManGamingStore
from dealarr.core.stores.humblebundle import HumbleBundleStore
from dealarr.core.stores.loaded import LoadedStore
from dealarr.core.stores.steam import SteamStore


class FakeStore(StoreClient):
    """Store client returning canned listings per title."""

    def __init__(
        self,
        store_id: str,
        listings: dict[str, list[Listing]] | None = None,
        error: Exception | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.store_id = store_id
        super().__init__(store_id, client=httpx.AsyncClient())
        self.listings = listings or {}
        self.error = error
        self.delays = delays or {}
        self.calls: list[tuple[str, int | None]] = []
        self.active = 0
        self.max_active = 0

    async def search(self, title: str, steam_app_id: int | None = None) -> list[Listing]:
        self.calls.append((title, steam_app_id))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(title, 0))
            if self.error is not None:
                raise self.error
            return self.listings.get(title, [])
        finally:
            self.active -= 1


def steam_listing(name: str, price: float, app_id: int) -> Listing:
    offer = SteamOffer(name=name, price=price, app_id=app_id)
    return Listing(Candidate(name, price, f"app/{app_id}"), offer)


def fanatical_listing(name: str, price: float, slug: str) -> Listing:
    offer = FanaticalOffer(name=name, price=price, slug=slug)
    return Listing(Candidate(name, price, slug), offer)


@pytest.fixture
def settings() -> Settings:
    return Settings(parallelism=2)


@pytest.mark.asyncio
async def test_lookup_collects_offers(settings: Settings) -> None:
    steam = FakeStore("steam", {"Hades": [steam_listing("Hades", 24.99, 1145360)]})
    fanatical = FakeStore("fanatical", {"Hades": [fanatical_listing("Hades", 19.99, "hades")]})
    gmg = FakeStore("greenmangaming")
    service = PriceSearchService(
        settings, stores={"steam": steam, "fanatical": fanatical, "greenmangaming": gmg}
    )

    async with service:
        result = await service.lookup(GameQuery(title="Hades"))

    assert not result.failed
    assert list(result.offers) == ["steam", "fanatical"]
    assert result.steam_app_id == 1145360
    assert result.cheapest.store_name == "Fanatical"
    assert gmg.calls == [("Hades", 1145360)]
    assert result.store_errors == {}


@pytest.mark.asyncio
async def test_unknown_title_fails_without_secondary_search(settings: Settings) -> None:
    steam = FakeStore("steam", error=UnknownTitleError("Hadez"))
    fanatical = FakeStore("fanatical")
    service = PriceSearchService(settings, stores={"steam": steam, "fanatical": fanatical})

    result = await service.lookup(GameQuery(title="Hadez"))

    assert result.failed
    assert "Couldn't find a priced game for 'Hadez'" in result.error
    assert fanatical.calls == []


@pytest.mark.asyncio
async def test_steam_listings_without_match(settings: Settings) -> None:
    """Secondary stores are still searched when Steam lists only add-ons."""
    steam = FakeStore("steam", {"Hades": [steam_listing("Hades Soundtrack", 9.99, 1)]})
    fanatical = FakeStore("fanatical", {"Hades": [fanatical_listing("Hades", 19.99, "hades")]})
    service = PriceSearchService(settings, stores={"steam": steam, "fanatical": fanatical})

    result = await service.lookup(GameQuery(title="Hades"))

    assert not result.failed
    assert result.steam_app_id is None
    assert list(result.offers) == ["fanatical"]
    assert fanatical.calls == [("Hades", None)]


@pytest.mark.asyncio
async def test_secondary_store_error_is_recorded(settings: Settings) -> None:
    steam = FakeStore("steam", {"Hades": [steam_listing("Hades", 24.99, 1)]})
    fanatical = FakeStore("fanatical", error=StoreResponseError("fanatical", "Response has no hits list"))
    loaded = FakeStore("loaded", error=httpx.ConnectError("connection refused"))
    service = PriceSearchService(
        settings, stores={"steam": steam, "fanatical": fanatical, "loaded": loaded}
    )

    result = await service.lookup(GameQuery(title="Hades"))

    assert not result.failed
    assert list(result.offers) == ["steam"]
    assert result.store_errors == {
        "fanatical": "[fanatical] Response has no hits list",
        "loaded": "connection refused",
    }


@pytest.mark.asyncio
async def test_steam_error_fails_title(settings: Settings) -> None:
    steam = FakeStore("steam", error=httpx.ReadTimeout("timed out"))
    service = PriceSearchService(settings, stores={"steam": steam})

    result = await service.lookup(GameQuery(title="Hades"))

    assert result.failed
    assert result.error == "Steam search failed: timed out"


@pytest.mark.asyncio
async def test_search_all_keeps_input_order_and_bounds_workers(settings: Settings) -> None:
    titles = ["Hades", "Celeste", "Inside", "Limbo", "Tunic"]
    steam = FakeStore(
        "steam",
        {title: [steam_listing(title, 9.99, index + 1)] for index, title in enumerate(titles)},
        delays={"Hades": 0.05, "Celeste": 0.01, "Inside": 0.03},
    )
    service = PriceSearchService(settings, stores={"steam": steam})

    results = await service.search_all([GameQuery(title=title) for title in titles])

    assert [result.title for result in results] == titles
    assert [result.steam_app_id for result in results] == [1, 2, 3, 4, 5]
    assert steam.max_active <= settings.parallelism
    assert len(steam.calls) == len(titles)


@pytest.mark.asyncio
async def test_search_all_empty(settings: Settings) -> None:
    service = PriceSearchService(settings, stores={"steam": FakeStore("steam")})

    assert await service.search_all([]) == []


def test_stores_must_include_steam(settings: Settings) -> None:
    with pytest.raises(ValueError, match="Steam primary catalog"):
        PriceSearchService(settings, stores={"loaded": FakeStore("loaded")})


@pytest.mark.asyncio
async def test_fanatical_disabled_when_key_bootstrap_fails() -> None:
    settings = Settings(enabled_stores=["steam", "fanatical", "loaded"])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        async with PriceSearchService(settings, client=client) as service:
            assert list(service.stores) == ["steam", "loaded"]
            assert isinstance(service.stores["loaded"], LoadedStore)


@pytest.mark.asyncio
async def test_fanatical_created_with_key() -> None:
    settings = Settings(enabled_stores=["fanatical"], hits_per_page=7)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"key": "abc123", "validUntil": 1700000000})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        async with PriceSearchService(settings, client=client) as service:
            fanatical = service.stores["fanatical"]

    assert list(service.stores) == ["steam", "fanatical"]
    assert isinstance(fanatical, FanaticalStore)
    assert fanatical.search_key.key == "abc123"
    assert fanatical.hits_per_page == 7


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_unreleased_title_still_searches_secondary_stores(settings: Settings) -> None:
    """Steam lists the title without a price: no Steam offer, not a failure."""
    html = '<a data-ds-appid="123"><div class="match_name">Foobar</div><div class="match_price"></div></a>'
    steam = SteamStore(client=_mock_client(lambda request: httpx.Response(200, text=html)))
    fanatical = FakeStore("fanatical", {"Foobar": [fanatical_listing("Foobar", 29.99, "foobar")]})
    service = PriceSearchService(settings, stores={"steam": steam, "fanatical": fanatical})

    result = await service.lookup(GameQuery(title="Foobar"))

    assert not result.failed
    assert result.steam_app_id is None
    assert list(result.offers) == ["fanatical"]
    assert fanatical.calls == [("Foobar", None)]


@pytest.mark.asyncio
async def test_malformed_store_hits_do_not_stop_the_run(settings: Settings) -> None:
    titles = ["Foobar", "Other"]
    steam = FakeStore(
        "steam",
        {title: [steam_listing(title, 9.99, index + 1)] for index, title in enumerate(titles)},
    )
    humble_hit = {
        "human_name": "Foobar",
        "link": "foobar",
        "delivery_methods": 5,
        "current_pricing": {"US": [4.99, "USD"]},
    }
    humble = HumbleBundleStore(
        "key", client=_mock_client(lambda request: httpx.Response(200, json={"hits": [humble_hit]}))
    )
    gmg = GreenManGamingStore(
        "key",
        client=_mock_client(lambda request: httpx.Response(200, json={"results": [{"hits": 5}]})),
    )
    service = PriceSearchService(
        settings, stores={"steam": steam, "humblebundle": humble, "greenmangaming": gmg}
    )

    results = await service.search_all([GameQuery(title=title) for title in titles])

    assert [result.title for result in results] == titles
    for result in results:
        assert not result.failed
        assert list(result.offers) == ["steam"]
        assert result.store_errors == {
            "greenmangaming": "[greenmangaming] Response has no hits list"
        }
