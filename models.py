# pylint: disable=line-too-long, broad-exception-caught
"""
Models for Destiny 2 manifest browsing.

This module defines Pydantic models for the indexed manifest records and the query/resolution results.
Includes:
- ItemDefinition, ItemSummary: full and lightweight views of an inventory item definition.
- SocketEntry: one socket declared by an item, with its plug sources.
- SocketTypeDefinition, PlugSetDefinition: secondary definitions looked up during option resolution.
- ResolvedColumn: one grouped list of selectable plugs for a weapon.
- SearchOptions, SearchResult: query input/output for the item search.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from constants import (ANY_ITEM_TYPE_VALUES, DEFAULT_SEARCH_LIMIT,
                       DEFAULT_SEARCH_OFFSET, WEAPON_ITEM_TYPE)
from helpers import dig, first_present, hash_list, normalize_item_hash


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


# --- Manifest record models ---
class SocketEntry(BaseModel):
    """
    Pydantic model for a socket declared in an item's `sockets.socketEntries`.

    Attributes:
        socketIndex (int): Position of the socket within the item.
        socketTypeHash (Optional[int]): DestinySocketTypeDefinition hash.
        categoryHashes (Optional[Tuple[int, ...]]): Socket category hashes carried by the entry, if any.
        reusablePlugSetHash (Optional[int]): Shared plug set offered by the socket.
        randomizedPlugSetHash (Optional[int]): Shared plug set of randomly rolled plugs.
        reusablePlugItems (Tuple[int, ...]): Plug item hashes listed inline on the socket.
        singleInitialItemHash (Optional[int]): Default plug item for the socket.
    """
    model_config = ConfigDict(frozen=True)

    socketIndex: int
    socketTypeHash: Optional[int] = None
    categoryHashes: Optional[Tuple[int, ...]] = None
    reusablePlugSetHash: Optional[int] = None
    randomizedPlugSetHash: Optional[int] = None
    reusablePlugItems: Tuple[int, ...] = ()
    singleInitialItemHash: Optional[int] = None

    @classmethod
    def from_manifest(cls, index: int, entry: dict, category_hashes: Optional[List[int]] = None) -> "SocketEntry":
        """
        Build a SocketEntry from a raw socket entry.

        Category hashes carried on the entry itself take precedence over those
        derived from the parent item's `socketCategories` mapping.
        """
        own_categories = hash_list(entry.get("socketCategoryHashes"))
        if not own_categories:
            own = normalize_item_hash(entry.get("socketCategoryHash"))
            own_categories = [own] if own else []
        categories = own_categories or category_hashes or None
        # A zero hash marks an empty default plug in the manifest
        single = normalize_item_hash(entry.get("singleInitialItemHash")) or None
        return cls(
            socketIndex=index,
            socketTypeHash=normalize_item_hash(entry.get("socketTypeHash")) or None,
            categoryHashes=categories,
            reusablePlugSetHash=normalize_item_hash(entry.get("reusablePlugSetHash")) or None,
            randomizedPlugSetHash=normalize_item_hash(entry.get("randomizedPlugSetHash")) or None,
            reusablePlugItems=hash_list(entry.get("reusablePlugItems")),
            singleInitialItemHash=single,
        )


class ItemSummary(BaseModel):
    """
    Lightweight projection of an item definition used for listing and search.
    """
    model_config = ConfigDict(frozen=True)

    hash: int
    name: str = ""
    icon: str = ""
    itemType: Optional[int] = None
    itemTypeDisplayName: str = ""
    bucketHash: Optional[int] = None
    tierType: Optional[int] = None


class ItemDefinition(BaseModel):
    """
    Pydantic model for a DestinyInventoryItemDefinition record.

    Attributes:
        hash (int): Unsigned item hash (unique identifier).
        name (str): Display name of the item.
        icon (str): Relative icon path.
        description (str): Display description.
        itemType (Optional[int]): DestinyItemType code (3 = weapon).
        itemTypeDisplayName (str): Item type label (e.g., "Hand Cannon", "Shader").
        bucketHash (Optional[int]): Inventory bucket hash.
        tierType (Optional[int]): Inventory tier code.
        tierTypeName (str): Inventory tier label (e.g., "Legendary").
        sockets (Optional[Tuple[SocketEntry, ...]]): Ordered socket entries, None if the item has no sockets block.
        plugCategoryIdentifier (Optional[str]): Plug category for plug items (e.g., "frames").
        definition (Dict[str, Any]): The decoded manifest record as stored.
    """
    model_config = ConfigDict(frozen=True)

    hash: int
    name: str = ""
    icon: str = ""
    description: str = ""
    itemType: Optional[int] = None
    itemTypeDisplayName: str = ""
    bucketHash: Optional[int] = None
    tierType: Optional[int] = None
    tierTypeName: str = ""
    sockets: Optional[Tuple[SocketEntry, ...]] = None
    plugCategoryIdentifier: Optional[str] = None
    definition: Dict[str, Any] = {}

    @staticmethod
    def _extract_sockets(sockets_data) -> Optional[Tuple[SocketEntry, ...]]:
        """
        Extract socket entries, attaching category hashes from `socketCategories`.
        """
        if isinstance(sockets_data, list):
            entries, categories = sockets_data, []
        elif isinstance(sockets_data, dict):
            entries = sockets_data.get("socketEntries")
            categories = sockets_data.get("socketCategories") or []
        else:
            return None
        if not isinstance(entries, list):
            return None
        # socket index -> category hashes declared at item level
        index_categories: Dict[int, List[int]] = {}
        for cat in categories if isinstance(categories, list) else []:
            if not isinstance(cat, dict):
                continue
            cat_hash = normalize_item_hash(cat.get("socketCategoryHash"))
            indexes = cat.get("socketIndexes")
            if not cat_hash or not isinstance(indexes, list):
                continue
            for idx in indexes:
                idx = _optional_int(idx)
                if idx is not None:
                    index_categories.setdefault(idx, []).append(cat_hash)
        sockets_out = []
        for idx, entry in enumerate(entries):
            if not isinstance(entry, dict):
                continue
            sockets_out.append(SocketEntry.from_manifest(idx, entry, index_categories.get(idx)))
        return tuple(sockets_out)

    @classmethod
    def from_manifest(cls, record: dict) -> Optional["ItemDefinition"]:
        """
        Build an ItemDefinition from a decoded manifest record.

        The hash is read from `hash`, falling back to `itemHash`. Missing fields
        become empty values.

        Returns:
            ItemDefinition or None: None if the record carries no usable hash.
        """
        if not isinstance(record, dict):
            return None
        item_hash = normalize_item_hash(first_present(record, "hash", "itemHash"))
        if item_hash is None:
            return None
        return cls(
            hash=item_hash,
            name=_text(dig(record, "displayProperties", "name")),
            icon=_text(dig(record, "displayProperties", "icon")),
            description=_text(dig(record, "displayProperties", "description")),
            itemType=_optional_int(record.get("itemType")),
            itemTypeDisplayName=_text(record.get("itemTypeDisplayName")),
            bucketHash=normalize_item_hash(dig(record, "inventory", "bucketTypeHash")),
            tierType=_optional_int(dig(record, "inventory", "tierType")),
            tierTypeName=_text(dig(record, "inventory", "tierTypeName")),
            sockets=cls._extract_sockets(record.get("sockets")),
            plugCategoryIdentifier=_text(dig(record, "plug", "plugCategoryIdentifier")) or None,
            definition=record,
        )

    def summary(self) -> ItemSummary:
        """Project the lightweight listing view of this item."""
        return ItemSummary(
            hash=self.hash,
            name=self.name,
            icon=self.icon,
            itemType=self.itemType,
            itemTypeDisplayName=self.itemTypeDisplayName,
            bucketHash=self.bucketHash,
            tierType=self.tierType,
        )


class SocketTypeDefinition(BaseModel):
    """DestinySocketTypeDefinition; only the socket category is used."""
    model_config = ConfigDict(frozen=True)

    hash: Optional[int] = None
    socketCategoryHash: Optional[int] = None

    @classmethod
    def from_manifest(cls, record: dict) -> "SocketTypeDefinition":
        return cls(
            hash=normalize_item_hash(record.get("hash")),
            socketCategoryHash=normalize_item_hash(record.get("socketCategoryHash")) or None,
        )


class PlugSetDefinition(BaseModel):
    """DestinyPlugSetDefinition: a shared pool of plug item hashes."""
    model_config = ConfigDict(frozen=True)

    hash: Optional[int] = None
    randomizedPlugItems: Tuple[int, ...] = ()
    reusablePlugItems: Tuple[int, ...] = ()

    @classmethod
    def from_manifest(cls, record: dict) -> "PlugSetDefinition":
        return cls(
            hash=normalize_item_hash(record.get("hash")),
            randomizedPlugItems=hash_list(record.get("randomizedPlugItems")),
            reusablePlugItems=hash_list(record.get("reusablePlugItems")),
        )

    def plug_item_hashes(self) -> List[int]:
        """Randomized plugs when the set has any, else its reusable plugs."""
        return list(self.randomizedPlugItems or self.reusablePlugItems)


# --- Result models ---
class ResolvedColumn(BaseModel):
    """
    One option column for a weapon (e.g., "Barrel") and its selectable plugs.
    """
    model_config = ConfigDict(frozen=True)

    column: str
    plugs: Tuple[ItemDefinition, ...] = ()

    def as_dict(self) -> dict:
        """JSON-friendly view without the raw plug definitions."""
        return {
            "column": self.column,
            "plugs": [
                {**plug.summary().model_dump(), "description": plug.description, "plugCategoryIdentifier": plug.plugCategoryIdentifier}
                for plug in self.plugs
            ],
        }


class SearchOptions(BaseModel):
    """
    Item search options. Invalid or missing values fall back to the defaults.

    Attributes:
        text (str): Case-insensitive substring matched against item names.
        itemType (Optional[int]): Item type code filter; None disables the filter.
        limit (int): Page size.
        offset (int): Number of matches to skip.
    """
    model_config = ConfigDict(frozen=True)

    text: str = ""
    itemType: Optional[int] = WEAPON_ITEM_TYPE
    limit: int = DEFAULT_SEARCH_LIMIT
    offset: int = DEFAULT_SEARCH_OFFSET

    @field_validator("text", mode="before")
    @classmethod
    def _default_text(cls, value):
        if value is None:
            return ""
        if not isinstance(value, str):
            logging.warning("Invalid search text %r; using empty text.", value)
            return ""
        return value

    @field_validator("itemType", mode="before")
    @classmethod
    def _default_item_type(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            if value.strip().lower() in ANY_ITEM_TYPE_VALUES:
                return None
            if not value.strip():
                return WEAPON_ITEM_TYPE
        parsed = _optional_int(value)
        if parsed is None:
            logging.warning("Invalid itemType %r; using default %d.", value, WEAPON_ITEM_TYPE)
            return WEAPON_ITEM_TYPE
        return parsed

    @field_validator("limit", mode="before")
    @classmethod
    def _default_limit(cls, value):
        parsed = _optional_int(value)
        if parsed is None or parsed < 0:
            if value is not None:
                logging.warning("Invalid limit %r; using default %d.", value, DEFAULT_SEARCH_LIMIT)
            return DEFAULT_SEARCH_LIMIT
        return parsed

    @field_validator("offset", mode="before")
    @classmethod
    def _default_offset(cls, value):
        parsed = _optional_int(value)
        if parsed is None or parsed < 0:
            if value is not None:
                logging.warning("Invalid offset %r; using default %d.", value, DEFAULT_SEARCH_OFFSET)
            return DEFAULT_SEARCH_OFFSET
        return parsed

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]] = None) -> "SearchOptions":
        """
        Build options from transport parameters.

        Accepts `q` or `text`, `itemType` or `itemTypeFilter`, `limit` and `offset`.
        An absent item type keeps the weapon default; `any`/`all` disables the filter.
        """
        params = params or {}
        kwargs: Dict[str, Any] = {}
        text = first_present(params, "q", "text")
        if text is not None:
            kwargs["text"] = text
        if "itemType" in params or "itemTypeFilter" in params:
            kwargs["itemType"] = params.get("itemType", params.get("itemTypeFilter"))
        for key in ("limit", "offset"):
            if params.get(key) is not None:
                kwargs[key] = params[key]
        return cls(**kwargs)


class SearchResult(BaseModel):
    """Search output: total matches before pagination plus the requested page."""
    total: int
    items: List[ItemSummary] = []
