# pylint: disable=broad-exception-caught, line-too-long
"""
ManifestIndex module for the in-memory Destiny 2 item index.

Builds an immutable snapshot of the item definition table (full records plus
lightweight summaries) and publishes it with a single reference swap, so
readers always see one complete snapshot. `load()` and `reindex()` share the
same semantics and may be called at any time.
"""
import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from constants import ITEM_TABLE
from helpers import decode_payload, normalize_item_hash
from models import ItemDefinition, ItemSummary
from record_store import RecordStoreError, SqliteRecordStore


class ManifestLoadError(Exception):
    """Raised when the item table cannot be read; the active snapshot is left in place."""


class ManifestSnapshot:
    """
    Immutable view of one load of the item table.

    `items` and `summaries` are read-only mappings with identical key sets,
    both in table order. Duplicate hashes are resolved last-writer-wins.
    """

    __slots__ = ("items", "summaries", "generation", "loaded_at", "row_count", "skipped")

    def __init__(
        self,
        items: Mapping[int, ItemDefinition],
        summaries: Mapping[int, ItemSummary],
        generation: int = 0,
        loaded_at: Optional[datetime] = None,
        row_count: int = 0,
        skipped: Optional[Mapping[str, int]] = None
    ):
        self.items = MappingProxyType(dict(items))
        self.summaries = MappingProxyType(dict(summaries))
        self.generation = generation
        self.loaded_at = loaded_at
        self.row_count = row_count
        self.skipped = MappingProxyType(dict(skipped or {}))

    @classmethod
    def empty(cls) -> "ManifestSnapshot":
        """Snapshot used before the first successful load."""
        return cls({}, {})

    def __len__(self) -> int:
        return len(self.items)

    def get(self, item_hash: int | str) -> Optional[ItemDefinition]:
        """O(1) full-record lookup accepting signed or unsigned hashes."""
        norm = normalize_item_hash(item_hash)
        if norm is None:
            return None
        return self.items.get(norm)

    def stats(self) -> dict:
        """Load statistics for status endpoints and logs."""
        return {
            "generation": self.generation,
            "loadedAt": self.loaded_at.isoformat() if self.loaded_at else None,
            "rowCount": self.row_count,
            "indexedItems": len(self.items),
            "skippedRows": self.skipped.get("decode", 0) + self.skipped.get("missingHash", 0),
            "skipped": dict(self.skipped),
        }


class ManifestIndex:
    """
    Thread-safe owner of the active ManifestSnapshot.

    Use ManifestIndex.instance() to get the shared instance.
    A single writer lock serializes load/reindex; readers never take a lock and
    simply read the current `snapshot` reference.
    """
    _instance = None

    @classmethod
    def instance(cls, *args, **kwargs) -> "ManifestIndex":
        """
        Get the thread-safe shared instance of ManifestIndex singleton.

        Returns:
            ManifestIndex: Shared singleton instance (not yet loaded).
        """
        if not hasattr(cls, "_instance_lock"):
            cls._instance_lock = threading.RLock()
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls(*args, **kwargs)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (useful for tests)."""
        if hasattr(cls, "_instance_lock"):
            with cls._instance_lock:
                cls._instance = None
        else:
            cls._instance = None

    def __init__(self, store: SqliteRecordStore = None, table_name: str = ITEM_TABLE):
        """
        Initialize the index with its record store.

        Args:
            store (SqliteRecordStore): Read-only record store for the manifest.
            table_name (str): Item definition table to index.
        """
        self.store = store or SqliteRecordStore()
        self.table_name = table_name
        self._write_lock = threading.Lock()
        self._snapshot = ManifestSnapshot.empty()
        self._generation = 0

    @property
    def snapshot(self) -> ManifestSnapshot:
        """The currently published snapshot."""
        return self._snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot.generation > 0

    def load(self) -> ManifestSnapshot:
        """
        Read the full item table and publish a new snapshot.

        Malformed rows and rows without a hash are skipped and counted.

        Returns:
            ManifestSnapshot: The newly published snapshot.
        Raises:
            ManifestLoadError: If the record store cannot read the item table.
        """
        with self._write_lock:
            try:
                rows = self.store.fetch_all_rows(self.table_name)
            except RecordStoreError as e:
                logging.error("Manifest load failed for %s: %s", self.table_name, e)
                raise ManifestLoadError(f"Cannot read manifest table {self.table_name}: {e}") from e

            items: dict[int, ItemDefinition] = {}
            summaries: dict[int, ItemSummary] = {}
            skipped: Counter = Counter()
            for key, payload in rows:
                record = decode_payload(payload)
                if record is None:
                    skipped["decode"] += 1
                    logging.debug("Skipping undecodable manifest row %s.", key)
                    continue
                try:
                    item = ItemDefinition.from_manifest(record)
                except ValueError as e:
                    # pydantic ValidationError subclasses ValueError
                    skipped["decode"] += 1
                    logging.debug("Skipping invalid manifest row %s: %s", key, e)
                    continue
                if item is None:
                    skipped["missingHash"] += 1
                    continue
                if item.hash in items:
                    skipped["duplicates"] += 1
                    logging.debug("Duplicate item hash %s; keeping the later row.", item.hash)
                items[item.hash] = item
                summaries[item.hash] = item.summary()

            self._generation += 1
            snapshot = ManifestSnapshot(
                items,
                summaries,
                generation=self._generation,
                loaded_at=datetime.now(timezone.utc),
                row_count=len(rows),
                skipped=skipped,
            )
            self._snapshot = snapshot
        logging.info(
            "Manifest loaded. Total items: %d (rows=%d, skipped=%d, duplicates=%d)",
            len(snapshot), snapshot.row_count,
            skipped["decode"] + skipped["missingHash"], skipped["duplicates"],
        )
        return snapshot

    def reindex(self) -> ManifestSnapshot:
        """Rebuild the index from the record store; same contract as load()."""
        logging.info("Reindexing manifest table %s.", self.table_name)
        return self.load()
