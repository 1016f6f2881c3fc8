"""Search service for looking up titles across every enabled store."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import httpx
import structlog
from pydantic import ValidationError

from dealarr.core.config import Settings
from dealarr.core.exceptions import StoreError, UnknownTitleError
from dealarr.core.matching import MatchingConfig, get_matching_config
from dealarr.core.search.models import GameQuery, GameResult, SteamOffer
from dealarr.core.stores.base import StoreClient
from dealarr.core.stores.fanatical import FanaticalKey, FanaticalStore, fetch_fanatical_key
from dealarr.core.stores.greenmangaming import GreenManGamingStore
from dealarr.core.stores.humblebundle import HumbleBundleStore
from dealarr.core.stores.loaded import LoadedStore
from dealarr.core.stores.steam import SteamStore

logger = structlog.get_logger("dealarr.search.service")

PRIMARY_STORE = "steam"

# Failures that cost one store (or the primary lookup) but not the whole run
STORE_FAILURES = (httpx.HTTPError, StoreError, ValidationError)

# (input position, query); None tells a worker to stop
WorkItem = tuple[int, GameQuery] | None
# (input position, result); None tells the collector a worker stopped
ResultMessage = tuple[int, GameResult] | None


class PriceSearchService:
    """Service for looking up titles across the primary catalog and retailers.

    Use as an async context manager: entering bootstraps the store clients
    (including the Fanatical search key) on one shared HTTP client.
    """

    def __init__(
        self,
        settings: Settings,
        matching_config: MatchingConfig | None = None,
        client: httpx.AsyncClient | None = None,
        stores: dict[str, StoreClient] | None = None,
    ) -> None:
        """Initialize search service.

        Args:
            settings: Application settings
            matching_config: Matching configuration (built from settings if None)
            client: Shared HTTP client; created (and closed) if omitted
            stores: Pre-built store clients keyed by store id, Steam included.
                Secondary clients are queried for the ids in
                ``settings.secondary_stores``, in that order.
        """
        if stores is not None and PRIMARY_STORE not in stores:
            raise ValueError("Store clients must include the Steam primary catalog")

        self.settings = settings
        self.matching_config = matching_config or get_matching_config(settings)
        self.client = client
        self._owns_client = False
        self.stores = stores
        self.logger = structlog.get_logger("dealarr.search.service")

    async def __aenter__(self) -> PriceSearchService:
        if self.stores is None:
            if self.client is None:
                self.client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.settings.request_timeout),
                    headers={"User-Agent": self.settings.user_agent},
                    follow_redirects=True,
                )
                self._owns_client = True
            self.stores = await self._create_stores()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_client and self.client is not None:
            await self.client.aclose()

    async def _create_stores(self) -> dict[str, StoreClient]:
        """Create one client per enabled store, in configured order."""
        stores: dict[str, StoreClient] = {}
        for store_id in self.settings.enabled_stores:
            fanatical_key = None
            if store_id == "fanatical":
                try:
                    fanatical_key = await fetch_fanatical_key(
                        self.client, self.settings.fanatical_anon_id
                    )
                except (httpx.HTTPError, StoreError) as e:
                    self.logger.error("Fanatical disabled: search key bootstrap failed", error=str(e))
                    continue

            stores[store_id] = self._create_store_client(store_id, fanatical_key)

        self.logger.debug("Store clients ready", stores=list(stores))
        return stores

    def _create_store_client(
        self, store_id: str, fanatical_key: FanaticalKey | None = None
    ) -> StoreClient:
        """Create a store client from its id.

        Args:
            store_id: Store identifier
            fanatical_key: Search key, required for Fanatical

        Returns:
            StoreClient instance
        """
        common = {
            "client": self.client,
            "timeout": self.settings.request_timeout,
            "matching_config": self.matching_config,
        }

        if store_id == "steam":
            return SteamStore(**common)
        elif store_id == "fanatical":
            if fanatical_key is None:
                raise ValueError("Fanatical needs a search key")
            return FanaticalStore(
                fanatical_key, hits_per_page=self.settings.hits_per_page, **common
            )
        elif store_id == "humblebundle":
            return HumbleBundleStore(
                self.settings.humblebundle_api_key,
                hits_per_page=self.settings.hits_per_page,
                **common,
            )
        elif store_id == "greenmangaming":
            return GreenManGamingStore(self.settings.greenmangaming_api_key, **common)
        elif store_id == "loaded":
            return LoadedStore(hits_per_page=self.settings.hits_per_page, **common)

        raise ValueError(f"Unknown store: {store_id}")

    async def lookup(self, query: GameQuery) -> GameResult:
        """Look up one title on every store.

        Steam is searched first; its app id then narrows Green Man Gaming.
        Secondary stores are searched concurrently. A failing secondary
        store is recorded in ``store_errors``. A failing Steam search, or one
        with no suggestions at all, marks the title as failed.

        Args:
            query: Title to look up

        Returns:
            GameResult with one offer per store that lists the title
        """
        result = GameResult(query=query)

        with structlog.contextvars.bound_contextvars(title=query.title):
            try:
                steam_offer = await self._lookup_primary(query.title)
            except UnknownTitleError as e:
                self.logger.warning("Unknown title", error=str(e))
                result.error = str(e)
                return result
            except STORE_FAILURES as e:
                self.logger.error("Steam search failed", error=str(e))
                result.error = f"Steam search failed: {e}"
                return result

            if steam_offer is not None:
                result.offers[PRIMARY_STORE] = steam_offer
                result.steam_app_id = steam_offer.app_id

            secondary = [
                (store_id, self.stores[store_id])
                for store_id in self.settings.secondary_stores
                if store_id in self.stores
            ]
            outcomes = await asyncio.gather(
                *(
                    self._lookup_secondary(store_id, store, query.title, result.steam_app_id)
                    for store_id, store in secondary
                )
            )
            for (store_id, _store), (offer, error) in zip(secondary, outcomes, strict=True):
                if offer is not None:
                    result.offers[store_id] = offer
                if error is not None:
                    result.store_errors[store_id] = error

        return result

    async def _lookup_primary(self, title: str) -> SteamOffer | None:
        """Match the title on Steam.

        Returns None when Steam lists the title without a price (unreleased)
        or lists only other products; the secondary stores are still searched.

        Raises:
            UnknownTitleError: If Steam suggests nothing at all
        """
        return await self.stores[PRIMARY_STORE].find_offer(title)

    async def _lookup_secondary(
        self,
        store_id: str,
        store: StoreClient,
        title: str,
        steam_app_id: int | None,
    ):
        """Return (offer, error message) for one secondary store."""
        with structlog.contextvars.bound_contextvars(store=store_id):
            try:
                return await store.find_offer(title, steam_app_id=steam_app_id), None
            except STORE_FAILURES as e:
                self.logger.warning("Store search failed", error=str(e))
                return None, str(e) or type(e).__name__

    async def search_all(self, queries: Sequence[GameQuery]) -> list[GameResult]:
        """Look up every title with a fixed-size worker pool.

        Workers pull titles from a work queue and push results onto a results
        queue drained by a single collector, so no result list is shared
        between workers.

        Args:
            queries: Titles to look up

        Returns:
            Results in the same order as ``queries``
        """
        if not queries:
            return []

        worker_count = min(self.settings.parallelism, len(queries))
        work: asyncio.Queue[WorkItem] = asyncio.Queue()
        results: asyncio.Queue[ResultMessage] = asyncio.Queue()

        for item in enumerate(queries):
            work.put_nowait(item)
        for _ in range(worker_count):
            work.put_nowait(None)

        self.logger.info("Searching titles", titles=len(queries), workers=worker_count)

        async with asyncio.TaskGroup() as group:
            for worker_id in range(worker_count):
                group.create_task(self._worker(worker_id, work, results))
            collector = group.create_task(self._collect(results, worker_count, len(queries)))

        return collector.result()

    async def _worker(
        self,
        worker_id: int,
        work: asyncio.Queue[WorkItem],
        results: asyncio.Queue[ResultMessage],
    ) -> None:
        while True:
            item = await work.get()
            if item is None:
                await results.put(None)
                return

            index, query = item
            result = await self.lookup(query)
            self.logger.debug("Done", worker=worker_id, title=query.title)
            await results.put((index, result))

    async def _collect(
        self,
        results: asyncio.Queue[ResultMessage],
        worker_count: int,
        total: int,
    ) -> list[GameResult]:
        collected: dict[int, GameResult] = {}
        stopped = 0
        while stopped < worker_count:
            message = await results.get()
            if message is None:
                stopped += 1
                continue

            index, result = message
            collected[index] = result
            self.logger.debug(
                "Collected result",
                title=result.title,
                offers=len(result.offers),
                progress=f"{len(collected)}/{total}",
            )

        return [collected[index] for index in range(total)]
