"""Shared fixtures: a small on-disk manifest database in the real (id, json) layout."""
import ctypes
import json
import sqlite3

import pytest

from constants import (ITEM_TABLE, PLUG_SET_TABLE, SOCKET_CATEGORY_BARREL,
                       SOCKET_CATEGORY_MAGAZINE, SOCKET_CATEGORY_ORIGIN,
                       SOCKET_CATEGORY_TRAIT, SOCKET_TYPE_TABLE)
from manifest_browser import ManifestBrowser

UNKNOWN_CATEGORY = 1111111111
BARREL_SOCKET_TYPE = 100
HIGH_HASH = 3000000000  # stored under a negative signed id


def item(item_hash, name, item_type=19, icon="/common/icon.png", type_name="Trait", plug_category=None, sockets=None, **extra):
    record = {
        "hash": item_hash,
        "displayProperties": {"name": name, "icon": icon, "description": f"{name} description"},
        "itemType": item_type,
        "itemTypeDisplayName": type_name,
        "inventory": {"bucketTypeHash": 1498876634, "tierType": 5, "tierTypeName": "Legendary"},
    }
    if plug_category is not None:
        record["plug"] = {"plugCategoryIdentifier": plug_category}
    if sockets is not None:
        record["sockets"] = sockets
    record.update(extra)
    return record


def default_items():
    return [
        item(1, "Hawkmoon", item_type=3, type_name="Hand Cannon", sockets={
            "socketEntries": [
                {"socketTypeHash": BARREL_SOCKET_TYPE, "randomizedPlugSetHash": 500, "singleInitialItemHash": 0},
                {"socketTypeHash": 200, "reusablePlugItems": [{"plugItemHash": 21}, {"plugItemHash": 22}]},
                {"socketTypeHash": 300, "socketCategoryHash": SOCKET_CATEGORY_TRAIT, "reusablePlugSetHash": 510},
                {"socketTypeHash": 300, "socketCategoryHash": SOCKET_CATEGORY_TRAIT, "reusablePlugSetHash": 520},
                {"socketTypeHash": 400, "socketCategoryHash": SOCKET_CATEGORY_ORIGIN, "singleInitialItemHash": 41},
                {"socketTypeHash": 600, "socketCategoryHash": UNKNOWN_CATEGORY, "reusablePlugItems": [{"plugItemHash": 51}]},
            ],
            "socketCategories": [
                {"socketCategoryHash": SOCKET_CATEGORY_MAGAZINE, "socketIndexes": [1]},
            ],
        }),
        item(2, "Crown of Tempests", item_type=2, type_name="Helmet"),
        item(3, "Ace of Spades", item_type=3, type_name="Hand Cannon"),
        item(HIGH_HASH, "Fatebringer", item_type=3, type_name="Hand Cannon"),
        item(11, "Arrowhead Brake", plug_category="barrels", type_name="Barrel"),
        item(12, "Hawkmoon Ornament", plug_category="v400.weapon.ornament", type_name="Weapon Ornament"),
        item(13, "Iconless Barrel", plug_category="barrels", icon=""),
        item(21, "Flared Magwell", plug_category="magazines", type_name="Magazine"),
        item(22, "Deepsight Resonance", plug_category="crafting.plugs", type_name="Magazine"),
        item(31, "Outlaw", plug_category="frames"),
        item(32, "Kill Clip", plug_category="frames"),
        item(33, "Rampage", plug_category="frames"),
        item(41, "Veist Stinger", plug_category="origins", type_name="Origin Trait"),
        item(51, "Gilded Shader", plug_category="shader", type_name="Shader"),
    ]


def default_socket_types():
    return [{"hash": BARREL_SOCKET_TYPE, "socketCategoryHash": SOCKET_CATEGORY_BARREL}]


def default_plug_sets():
    return [
        {"hash": 500, "randomizedPlugItems": [{"plugItemHash": h} for h in (11, 12, 13, 14)], "reusablePlugItems": [{"plugItemHash": 99}]},
        {"hash": 510, "reusablePlugItems": [{"plugItemHash": 31}, {"plugItemHash": 32}]},
        {"hash": 520, "reusablePlugItems": [{"plugItemHash": 33}, {"plugItemHash": 31}]},
    ]


def write_manifest(path, items=(), socket_types=(), plug_sets=(), raw_item_rows=()):
    """Write a manifest SQLite file; keys are stored in signed form like the real manifest."""
    conn = sqlite3.connect(str(path))
    try:
        tables = {ITEM_TABLE: items, SOCKET_TYPE_TABLE: socket_types, PLUG_SET_TABLE: plug_sets}
        for table, records in tables.items():
            conn.execute(f"CREATE TABLE {table} (id INTEGER PRIMARY KEY NOT NULL, json BLOB)")
            for record in records:
                key = ctypes.c_int32(record.get("hash", record.get("itemHash"))).value
                conn.execute(f"INSERT INTO {table} (id, json) VALUES (?, ?)", (key, json.dumps(record)))
        for key, payload in raw_item_rows:
            conn.execute(f"INSERT INTO {ITEM_TABLE} (id, json) VALUES (?, ?)", (key, payload))
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def item_record():
    """The item record builder, for tests that assemble their own datasets."""
    return item


@pytest.fixture
def make_manifest(tmp_path):
    """Factory writing a manifest DB under tmp_path and returning its path."""
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        return write_manifest(tmp_path / f"manifest-{counter['n']}.content", **kwargs)
    return _make


@pytest.fixture
def manifest_path(make_manifest):
    return make_manifest(
        items=default_items(),
        socket_types=default_socket_types(),
        plug_sets=default_plug_sets(),
        raw_item_rows=[
            (9001, "{not json"),
            (9002, json.dumps({"displayProperties": {"name": "Nameless"}, "itemType": 3})),
            (9003, json.dumps(["not", "an", "object"])),
        ],
    )


@pytest.fixture
def browser(manifest_path):
    b = ManifestBrowser(str(manifest_path), use_cache=True)
    b.load()
    yield b
    b.close()
