"""Storefront clients for searching game listings across retailers."""

from dealarr.core.stores.base import Listing, StoreClient
from dealarr.core.stores.fanatical import FanaticalKey, FanaticalStore, fetch_fanatical_key
from dealarr.core.stores.greenmangaming import GreenManGamingStore
from dealarr.core.stores.humblebundle import HumbleBundleStore
from dealarr.core.stores.loaded import LoadedStore
from dealarr.core.stores.steam import SteamStore

__all__ = [
    "StoreClient",
    "Listing",
    "SteamStore",
    "FanaticalStore",
    "FanaticalKey",
    "fetch_fanatical_key",
    "HumbleBundleStore",
    "GreenManGamingStore",
    "LoadedStore",
]
