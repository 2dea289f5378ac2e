# pylint: disable=broad-exception-caught, line-too-long
"""
OptionResolver module for reconstructing weapon option columns.

Walks an item's socket graph (socket -> socket category / socket type ->
plug set -> plug items) and groups the selectable plugs into the columns shown
for a weapon: Barrel, Magazine, Trait 1, Trait 2 and Origin. Cosmetic and meta
plugs (shaders, ornaments, trackers, masterworks, mods, ...) are filtered out.

Any cross-reference that cannot be resolved contributes nothing; resolution
itself never fails.
"""
import logging
import threading
from collections import Counter
from typing import Callable, Dict, List, Optional

from constants import (COLUMN_ORDER, EXCLUDED_ITEM_TYPE_NAME_TERMS,
                       EXCLUDED_PLUG_CATEGORY_TERMS, EXCLUDED_PLUG_NAME_TERMS,
                       ITEM_TABLE, PLUG_SET_TABLE, PLUG_SOURCE_ORDER,
                       PLUG_SOURCE_RANDOMIZED_PLUG_SET,
                       PLUG_SOURCE_REUSABLE_PLUG_ITEMS,
                       PLUG_SOURCE_REUSABLE_PLUG_SET,
                       PLUG_SOURCE_SINGLE_INITIAL_ITEM,
                       RESOLUTION_CACHE_ENABLED, SOCKET_CATEGORY_COLUMNS,
                       SOCKET_TYPE_TABLE, TRAIT_COLUMNS)
from helpers import contains_any, decode_payload, normalize_item_hash
from manifest_index import ManifestIndex, ManifestSnapshot
from models import (ItemDefinition, PlugSetDefinition, ResolvedColumn,
                    SocketEntry, SocketTypeDefinition)
from record_store import RecordStoreError

_TRAIT_GROUP = "Trait"


def is_selectable_plug(plug: ItemDefinition) -> bool:
    """
    True if a plug is a functional weapon option rather than a cosmetic or meta plug.

    A plug qualifies when it has an icon, its plug category is not one of the
    excluded kinds, its name is not a deepsight plug and it is not a shader.
    """
    if not plug.icon:
        return False
    if contains_any(plug.plugCategoryIdentifier, EXCLUDED_PLUG_CATEGORY_TERMS):
        return False
    if contains_any(plug.name, EXCLUDED_PLUG_NAME_TERMS):
        return False
    if contains_any(plug.itemTypeDisplayName, EXCLUDED_ITEM_TYPE_NAME_TERMS):
        return False
    return True


class _ResolutionContext:
    """Per-call memo of secondary definitions; discarded when the call returns."""

    __slots__ = ("snapshot", "socket_types", "plug_sets", "items")

    def __init__(self, snapshot: ManifestSnapshot):
        self.snapshot = snapshot
        self.socket_types: Dict[int, Optional[SocketTypeDefinition]] = {}
        self.plug_sets: Dict[int, Optional[PlugSetDefinition]] = {}
        self.items: Dict[int, Optional[ItemDefinition]] = {}


class OptionResolver:
    """
    Resolves grouped, filtered and de-duplicated plug options for an item.

    Socket types and plug sets are read from the record store on demand and
    memoized only for the duration of one resolution. Results per item hash may
    be cached; the cache is bound to the snapshot it was computed against, so a
    reindex invalidates it together with the snapshot swap.
    """

    def __init__(
        self,
        index: ManifestIndex,
        store=None,
        use_cache: bool = RESOLUTION_CACHE_ENABLED,
        item_table: str = ITEM_TABLE,
        socket_type_table: str = SOCKET_TYPE_TABLE,
        plug_set_table: str = PLUG_SET_TABLE
    ):
        """
        Initialize the resolver.

        Args:
            index (ManifestIndex): Index providing the active snapshot.
            store: Record store for secondary lookups (defaults to the index's store).
            use_cache (bool): Cache resolved columns per item hash.
            item_table (str): Item definition table, used for plugs missing from the snapshot.
            socket_type_table (str): Socket type definition table.
            plug_set_table (str): Plug set definition table.
        """
        self.index = index
        self.store = store or index.store
        self.use_cache = use_cache
        self.item_table = item_table
        self.socket_type_table = socket_type_table
        self.plug_set_table = plug_set_table
        self._cache: tuple[Optional[ManifestSnapshot], Dict[int, List[ResolvedColumn]]] = (None, {})
        self._stats: Counter = Counter()
        self._stats_lock = threading.Lock()
        self._plug_sources: Dict[str, Callable[[SocketEntry, _ResolutionContext], List[int]]] = {
            PLUG_SOURCE_RANDOMIZED_PLUG_SET: self._from_randomized_plug_set,
            PLUG_SOURCE_REUSABLE_PLUG_SET: self._from_reusable_plug_set,
            PLUG_SOURCE_REUSABLE_PLUG_ITEMS: self._from_reusable_plug_items,
            PLUG_SOURCE_SINGLE_INITIAL_ITEM: self._from_single_initial_item,
        }

    # --- public API ---

    def resolve_hash(self, item_hash: int | str) -> Optional[List[ResolvedColumn]]:
        """
        Resolve options for an indexed item.

        Returns:
            list[ResolvedColumn] or None: None if the item is not in the active snapshot.
            Columns are copies; changing them leaves the cache and snapshot untouched.
        """
        snapshot = self.index.snapshot
        item = snapshot.get(item_hash)
        if item is None:
            return None
        if not self.use_cache:
            columns = self.resolve(item, snapshot)
        else:
            cache_snapshot, cache = self._cache
            if cache_snapshot is not snapshot:
                cache = {}
                self._cache = (snapshot, cache)
            columns = cache.get(item.hash)
            if columns is None:
                columns = self.resolve(item, snapshot)
                cache[item.hash] = columns
        return [column.model_copy(deep=True) for column in columns]

    def resolve(self, item: ItemDefinition, snapshot: ManifestSnapshot = None) -> List[ResolvedColumn]:
        """
        Build the option columns for an item.

        Args:
            item (ItemDefinition): Item whose sockets are resolved.
            snapshot (ManifestSnapshot): Snapshot to resolve plug items against (defaults to the active one).

        Returns:
            list[ResolvedColumn]: Non-empty columns in Barrel, Magazine, Trait 1, Trait 2, Origin order.
        """
        if not item.sockets:
            return []
        ctx = _ResolutionContext(snapshot or self.index.snapshot)
        columns: Dict[str, List[ItemDefinition]] = {label: [] for label in COLUMN_ORDER}
        seen: Dict[str, set] = {label: set() for label in COLUMN_ORDER}
        trait_count = 0
        for socket in item.sockets:
            group = self._socket_group(socket, ctx)
            if group is None:
                continue
            if group == _TRAIT_GROUP:
                # running counter across the whole item; later trait sockets share Trait 2
                label = TRAIT_COLUMNS[min(trait_count, len(TRAIT_COLUMNS) - 1)]
                trait_count += 1
            else:
                label = group
            for plug_hash in self._candidate_hashes(socket, ctx):
                plug = self._plug_item(plug_hash, ctx)
                if plug is None:
                    self._count("plugItemMiss")
                    continue
                if not is_selectable_plug(plug):
                    self._count("filtered")
                    continue
                if plug.hash in seen[label]:
                    continue
                seen[label].add(plug.hash)
                columns[label].append(plug)
        return [ResolvedColumn(column=label, plugs=columns[label]) for label in COLUMN_ORDER if columns[label]]

    def stats(self) -> dict:
        """Diagnostic counters of unresolved references and filtered plugs."""
        with self._stats_lock:
            return dict(self._stats)

    def clear_cache(self) -> None:
        self._cache = (None, {})

    # --- socket classification ---

    def _socket_group(self, socket: SocketEntry, ctx: _ResolutionContext) -> Optional[str]:
        """
        Column group for a socket: embedded category hashes first, the socket
        type's category as fallback. None if the socket is not a weapon option.
        """
        if socket.categoryHashes:
            for category_hash in socket.categoryHashes:
                group = SOCKET_CATEGORY_COLUMNS.get(category_hash)
                if group:
                    return group
            return None
        if not socket.socketTypeHash:
            return None
        socket_type = self._socket_type(socket.socketTypeHash, ctx)
        if socket_type is None or not socket_type.socketCategoryHash:
            return None
        return SOCKET_CATEGORY_COLUMNS.get(socket_type.socketCategoryHash)

    # --- candidate plug sources, tried in PLUG_SOURCE_ORDER ---

    def _candidate_hashes(self, socket: SocketEntry, ctx: _ResolutionContext) -> List[int]:
        for source in PLUG_SOURCE_ORDER:
            hashes = self._plug_sources[source](socket, ctx)
            if hashes:
                logging.debug("Socket %d: %d candidates from %s.", socket.socketIndex, len(hashes), source)
                return hashes
        return []

    def _from_randomized_plug_set(self, socket: SocketEntry, ctx: _ResolutionContext) -> List[int]:
        return self._plug_set_hashes(socket.randomizedPlugSetHash, ctx)

    def _from_reusable_plug_set(self, socket: SocketEntry, ctx: _ResolutionContext) -> List[int]:
        return self._plug_set_hashes(socket.reusablePlugSetHash, ctx)

    @staticmethod
    def _from_reusable_plug_items(socket: SocketEntry, ctx: _ResolutionContext) -> List[int]:
        return list(socket.reusablePlugItems)

    @staticmethod
    def _from_single_initial_item(socket: SocketEntry, ctx: _ResolutionContext) -> List[int]:
        return [socket.singleInitialItemHash] if socket.singleInitialItemHash else []

    def _plug_set_hashes(self, plug_set_hash: Optional[int], ctx: _ResolutionContext) -> List[int]:
        if not plug_set_hash:
            return []
        plug_set = self._plug_set(plug_set_hash, ctx)
        return plug_set.plug_item_hashes() if plug_set else []

    # --- record lookups (memoized per resolution) ---

    def _socket_type(self, socket_type_hash: int, ctx: _ResolutionContext) -> Optional[SocketTypeDefinition]:
        if socket_type_hash not in ctx.socket_types:
            record = self._fetch(self.socket_type_table, socket_type_hash)
            if record is None:
                self._count("socketTypeMiss")
            ctx.socket_types[socket_type_hash] = SocketTypeDefinition.from_manifest(record) if record else None
        return ctx.socket_types[socket_type_hash]

    def _plug_set(self, plug_set_hash: int, ctx: _ResolutionContext) -> Optional[PlugSetDefinition]:
        if plug_set_hash not in ctx.plug_sets:
            record = self._fetch(self.plug_set_table, plug_set_hash)
            if record is None:
                self._count("plugSetMiss")
            ctx.plug_sets[plug_set_hash] = PlugSetDefinition.from_manifest(record) if record else None
        return ctx.plug_sets[plug_set_hash]

    def _plug_item(self, plug_hash: int, ctx: _ResolutionContext) -> Optional[ItemDefinition]:
        plug = ctx.snapshot.get(plug_hash)
        if plug is not None:
            return plug
        norm = normalize_item_hash(plug_hash)
        if norm not in ctx.items:
            record = self._fetch(self.item_table, norm)
            try:
                ctx.items[norm] = ItemDefinition.from_manifest(record) if record else None
            except ValueError as e:
                logging.debug("Plug item %s could not be parsed: %s", norm, e)
                ctx.items[norm] = None
        return ctx.items[norm]

    def _fetch(self, table_name: str, key: int) -> Optional[dict]:
        """Fetch and decode one definition; store failures count as a miss."""
        try:
            payload = self.store.fetch_one_row(table_name, key)
        except RecordStoreError as e:
            self._count("storeError")
            logging.warning("Manifest lookup in %s for %s failed: %s", table_name, key, e)
            return None
        return decode_payload(payload)

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1
