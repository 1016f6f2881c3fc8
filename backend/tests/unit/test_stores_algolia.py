"""Tests for the Algolia-backed store clients."""

from __future__ import annotations

import json

import httpx
import pytest

from dealarr.core.exceptions import StoreKeyError, StoreResponseError
from dealarr.core.stores.base import parse_price
from dealarr.core.stores.fanatical import FanaticalKey, FanaticalStore, fetch_fanatical_key
from dealarr.core.stores.greenmangaming import GreenManGamingStore
from dealarr.core.stores.humblebundle import HumbleBundleStore, algolia_query
from dealarr.core.stores.loaded import LoadedStore


def _client(payload, status_code: int = 200, seen: list[httpx.Request] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParsePrice:
    """Test parse_price."""

    def test_valid_values(self):
        assert parse_price(9.99) == 9.99
        assert parse_price("14.99") == 14.99
        assert parse_price("1,299.00") == 1299.0
        assert parse_price(0) == 0.0

    def test_invalid_values(self):
        assert parse_price(None) is None
        assert parse_price(True) is None
        assert parse_price("n/a") is None
        assert parse_price(-1) is None
        assert parse_price("nan") is None


def test_algolia_query_escapes_spaces() -> None:
    assert algolia_query("Hollow Knight") == "Hollow%20Knight"
    assert algolia_query("Papers, Please") == "Papers%2C%20Please"


class TestFanatical:
    """Test the Fanatical key bootstrap and search."""

    @pytest.mark.asyncio
    async def test_fetch_key(self):
        seen: list[httpx.Request] = []
        client = _client({"key": "abc123", "validUntil": 1700000000}, seen=seen)

        key = await fetch_fanatical_key(client, "anon-1")

        assert key == FanaticalKey(key="abc123", valid_until=1700000000)
        assert seen[0].headers["anonid"] == "anon-1"

    @pytest.mark.asyncio
    async def test_fetch_key_missing(self):
        client = _client({"validUntil": 1700000000})

        with pytest.raises(StoreKeyError, match="Invalid search key"):
            await fetch_fanatical_key(client, "anon-1")

    @pytest.mark.asyncio
    async def test_search(self):
        seen: list[httpx.Request] = []
        client = _client(
            {
                "hits": [
                    {"name": "Hades Soundtrack", "slug": "hades-ost", "price": {"USD": 4.99}},
                    {"name": "Hades", "slug": "hades", "price": {"USD": 19.99}},
                    {"name": "Hades Deluxe", "slug": "hades-deluxe", "price": {"EUR": 25}},
                ]
            },
            seen=seen,
        )
        store = FanaticalStore(FanaticalKey(key="abc123"), client=client, hits_per_page=3)

        offer = await store.find_offer("Hades")

        assert offer is not None
        assert offer.slug == "hades"
        assert offer.price == 19.99
        assert offer.url == "https://www.fanatical.com/en/game/hades"

        request = seen[0]
        assert request.url.params["x-algolia-api-key"] == "abc123"
        assert json.loads(request.content) == {"query": "Hades", "hitsPerPage": 3, "filters": ""}

    @pytest.mark.asyncio
    async def test_search_without_hits(self):
        store = FanaticalStore(FanaticalKey(key="abc123"), client=_client({"message": "nope"}))

        with pytest.raises(StoreResponseError, match="no hits"):
            await store.search("Hades")


class TestHumbleBundle:
    """Test the Humble Bundle client."""

    @pytest.mark.asyncio
    async def test_search_filters_delivery_and_pricing(self):
        seen: list[httpx.Request] = []
        client = _client(
            {
                "hits": [
                    {
                        "human_name": "Hades",
                        "link": "hades",
                        "delivery_methods": ["download"],
                        "current_pricing": {"US": [14.99, "USD"]},
                    },
                    {
                        "human_name": "Hades",
                        "link": "hades-steam",
                        "delivery_methods": ["steam"],
                        "current_pricing": {"EU": [21.99, "EUR"]},
                    },
                    {
                        "human_name": "Hades",
                        "link": "hades-steam-us",
                        "delivery_methods": ["steam"],
                        "current_pricing": {"US": [24.99, "USD"]},
                    },
                ]
            },
            seen=seen,
        )
        store = HumbleBundleStore("key", client=client, hits_per_page=5)

        listings = await store.search("Hades Deluxe")
        offer = store.select_offer("Hades", listings)

        assert [listing.offer.path for listing in listings] == ["hades-steam-us"]
        assert offer.url == "https://www.humblebundle.com/store/hades-steam-us"
        assert json.loads(seen[0].content) == {
            "params": "query=Hades%20Deluxe&hitsPerPage=5&page=0"
        }

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        )
        store = HumbleBundleStore("key", client=client)

        with pytest.raises(StoreResponseError, match="Invalid JSON response"):
            await store.search("Hades")


class TestGreenManGaming:
    """Test the Green Man Gaming client."""

    HITS = [
        {"SteamAppId": "BUNDLE", "DisplayName": "Hades", "Url": "/bundle", "Regions": {}},
        {
            "SteamAppId": "1145350",
            "DisplayName": "Hades",
            "Url": "/games/hades-ost/",
            "Regions": {"US": {"Drp": 4.99}},
        },
        {
            "SteamAppId": "1145360",
            "DisplayName": "Hades",
            "Url": "/games/hades/",
            "Regions": {"US": {"Drp": 17.49}},
        },
        {"SteamAppId": "not-a-number", "DisplayName": "Hades", "Url": "/x/"},
    ]

    @pytest.mark.asyncio
    async def test_search_narrows_to_steam_app(self):
        seen: list[httpx.Request] = []
        client = _client({"results": [{"hits": self.HITS}]}, seen=seen)
        store = GreenManGamingStore("key", client=client)

        offer = await store.find_offer("Hades", steam_app_id=1145360)

        assert offer.path == "/games/hades/"
        assert offer.price == 17.49
        assert offer.url == "https://www.greenmangaming.com/games/hades/"
        body = json.loads(seen[0].content)
        assert body["requests"][0]["indexName"] == "prod_ProductSearch_US"
        assert body["requests"][0]["params"] == "query=Hades"

    @pytest.mark.asyncio
    async def test_search_without_app_id_takes_first_match(self):
        store = GreenManGamingStore("key", client=_client({"results": [{"hits": self.HITS}]}))

        listings = await store.search("Hades")

        assert [listing.offer.path for listing in listings] == ["/games/hades-ost/", "/games/hades/"]
        assert store.select_offer("Hades", listings).path == "/games/hades-ost/"

    @pytest.mark.asyncio
    async def test_unexpected_result_sets(self):
        store = GreenManGamingStore("key", client=_client({"results": []}))

        with pytest.raises(StoreResponseError, match="Unexpected number of result sets"):
            await store.search("Hades")


class TestLoaded:
    """Test the Loaded client."""

    @pytest.mark.asyncio
    async def test_search_unwraps_store_view_values(self):
        seen: list[httpx.Request] = []
        client = _client(
            {
                "results": [
                    {
                        "hits": [
                            {
                                "name": "Hades PC",
                                "url": "https://www.loaded.com/hades-pc",
                                "price": {"USD": {"default": 16.19}},
                            },
                            {"name": "Hades DLC", "url": "https://www.loaded.com/dlc"},
                        ]
                    }
                ]
            },
            seen=seen,
        )
        store = LoadedStore(client=client, hits_per_page=2)

        offer = await store.find_offer("Hades")

        assert offer.price == 16.19
        assert offer.url == "https://www.loaded.com/hades-pc"
        body = json.loads(seen[0].content)
        assert body["requests"][0]["params"] == "hitsPerPage=2&query=Hades"

    @pytest.mark.asyncio
    async def test_empty_results(self):
        store = LoadedStore(client=_client({"results": []}))

        assert await store.search("Hades") == []

    @pytest.mark.asyncio
    async def test_http_error(self):
        store = LoadedStore(client=_client({}, status_code=500))

        with pytest.raises(httpx.HTTPStatusError):
            await store.search("Hades")


class TestMalformedHits:
    """Test that unexpected hit shapes surface as StoreResponseError."""

    @pytest.mark.asyncio
    async def test_humble_non_list_delivery_methods_is_skipped(self):
        hit = {
            "human_name": "Foobar",
            "link": "foobar",
            "delivery_methods": 5,
            "current_pricing": {"US": [4.99, "USD"]},
        }
        store = HumbleBundleStore("key", client=_client({"hits": [hit]}))

        assert await store.search("Foobar") == []

    @pytest.mark.asyncio
    async def test_gmg_non_list_hits(self):
        store = GreenManGamingStore("key", client=_client({"results": [{"hits": 5}]}))

        with pytest.raises(StoreResponseError, match="Response has no hits list"):
            await store.search("Foobar")

    @pytest.mark.asyncio
    async def test_loaded_non_list_hits(self):
        store = LoadedStore(client=_client({"results": [{"hits": {"name": "Foobar"}}]}))

        with pytest.raises(StoreResponseError, match="Response has no hits list"):
            await store.search("Foobar")

    def test_parse_error_becomes_store_response_error(self):
        store = LoadedStore(client=_client({}))

        with pytest.raises(StoreResponseError, match=r"\[loaded\] Malformed hit"):
            store._parse_hits([{"url": "x"}], lambda hit: hit["name"])
