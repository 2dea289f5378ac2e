# pylint: disable=line-too-long,broad-exception-caught
"""
Manifest Browser module for Destiny 2.

This module provides the ManifestBrowser class, the query API consumed by the UI shell and HTTP routes:
- Searching and paginating indexed item summaries
- Fetching full item definitions
- Resolving per-weapon option columns (barrels, magazines, traits, origin)
- Rebuilding the in-memory index from the manifest database

All lookups run against a local read-only manifest; no network calls are made.
"""
import logging
import threading
from typing import Any, List, Mapping, Optional

from constants import MANIFEST_DB_PATH, RESOLUTION_CACHE_ENABLED
from manifest_index import ManifestIndex, ManifestLoadError
from models import ItemDefinition, ResolvedColumn, SearchOptions, SearchResult
from option_resolver import OptionResolver
from query_service import ManifestQueryService
from record_store import SqliteRecordStore


class ManifestBrowser:
    """
    Facade over the manifest index, item queries and option resolution.

    Owns one record store, one index and the services built on them. Use
    ManifestBrowser.instance() for the shared process-wide browser.
    """
    _instance = None

    @classmethod
    def instance(cls, *args, **kwargs) -> "ManifestBrowser":
        """
        Get the thread-safe shared instance of ManifestBrowser singleton.
        Loads the manifest index on first instantiation; a failed load is logged
        and leaves an empty index that can be rebuilt with reindex().

        Returns:
            ManifestBrowser: Shared singleton instance.
        """
        if not hasattr(cls, "_instance_lock"):
            cls._instance_lock = threading.RLock()
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    browser = cls(*args, **kwargs)
                    try:
                        browser.load()
                    except ManifestLoadError as e:
                        logging.error("Failed to load manifest: %s", e)
                    cls._instance = browser
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (useful for tests)."""
        if hasattr(cls, "_instance_lock"):
            with cls._instance_lock:
                cls._instance = None
        else:
            cls._instance = None

    def __init__(
        self,
        storage_path: str = MANIFEST_DB_PATH,
        store: SqliteRecordStore = None,
        use_cache: bool = RESOLUTION_CACHE_ENABLED
    ):
        """
        Initialize ManifestBrowser with its storage and services.

        Args:
            storage_path (str): Path to the manifest SQLite DB (ignored when `store` is given).
            store (SqliteRecordStore): Record store to read definitions from.
            use_cache (bool): Cache resolved option columns per item.
        """
        self.store = store or SqliteRecordStore(storage_path)
        self.index = ManifestIndex(self.store)
        self.queries = ManifestQueryService(self.index)
        self.resolver = OptionResolver(self.index, self.store, use_cache=use_cache)

    def load(self) -> dict:
        """
        Build the in-memory index.

        Returns:
            dict: Snapshot statistics.
        Raises:
            ManifestLoadError: If the item table cannot be read.
        """
        return self.index.load().stats()

    def reindex(self) -> dict:
        """
        Rebuild the in-memory index; cached resolutions are dropped with the old snapshot.

        Returns:
            dict: Snapshot statistics of the new index.
        Raises:
            ManifestLoadError: If the item table cannot be read. The previous index stays active.
        """
        return self.index.reindex().stats()

    def search(self, options: SearchOptions | Mapping[str, Any] | None = None) -> SearchResult:
        """
        Search indexed items.

        Args:
            options (SearchOptions | Mapping): Search options, or raw `q`/`itemType`/`limit`/`offset` params.

        Returns:
            SearchResult: Total match count and the requested page.
        """
        return self.queries.search(options)

    def get_full(self, item_hash: int | str) -> Optional[ItemDefinition]:
        """
        Fetch the full definition of an indexed item.

        Returns:
            ItemDefinition or None: None if the hash is not indexed.
        """
        return self.queries.get_full(item_hash)

    def resolve_options(self, item_hash: int | str) -> Optional[List[ResolvedColumn]]:
        """
        Resolve the option columns of an indexed item.

        Returns:
            list[ResolvedColumn] or None: None if the hash is not indexed.
        """
        columns = self.resolver.resolve_hash(item_hash)
        if columns is None:
            logging.info("Item hash %s not found in manifest index.", item_hash)
        return columns

    def status(self) -> dict:
        """
        Index and resolver diagnostics.

        Returns:
            dict: Snapshot statistics, resolver counters and the manifest path.
        """
        return {
            "loaded": self.index.is_loaded,
            "manifestPath": self.store.storage_path,
            "index": self.index.snapshot.stats(),
            "resolver": self.resolver.stats(),
        }

    def close(self) -> None:
        """Release the manifest database connection."""
        self.store.close()
