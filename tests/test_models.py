"""Unit tests for manifest record parsing and search option defaults."""
import pytest

# pylint: disable=import-error
from constants import (DEFAULT_SEARCH_LIMIT, SOCKET_CATEGORY_BARREL,
                       SOCKET_CATEGORY_TRAIT, WEAPON_ITEM_TYPE)
from models import ItemDefinition, PlugSetDefinition, SearchOptions


def test_item_definition_reads_nested_fields(item_record):
    record = item_record(1, "Hawkmoon", item_type=3, type_name="Hand Cannon", plug_category=None)
    item = ItemDefinition.from_manifest(record)
    assert item.hash == 1
    assert item.name == "Hawkmoon"
    assert item.icon == "/common/icon.png"
    assert item.description == "Hawkmoon description"
    assert item.bucketHash == 1498876634
    assert item.tierTypeName == "Legendary"
    assert item.sockets is None
    assert item.definition == record


def test_missing_fields_are_empty_values():
    item = ItemDefinition.from_manifest({"hash": 9, "displayProperties": None, "inventory": "bogus"})
    assert item.name == ""
    assert item.icon == ""
    assert item.itemType is None
    assert item.bucketHash is None
    assert item.plugCategoryIdentifier is None


def test_record_without_hash_is_rejected():
    assert ItemDefinition.from_manifest({"displayProperties": {"name": "Nameless"}}) is None
    assert ItemDefinition.from_manifest({"hash": None, "itemHash": None}) is None
    assert ItemDefinition.from_manifest({"hash": None, "itemHash": 12}).hash == 12


def test_socket_entries_get_item_level_categories(item_record):
    record = item_record(1, "Gun", item_type=3, sockets={
        "socketEntries": [
            {"socketTypeHash": 10, "reusablePlugItems": [{"plugItemHash": 5}, {"plugItemHash": "bad"}], "singleInitialItemHash": 0},
            {"socketTypeHash": 11, "socketCategoryHash": SOCKET_CATEGORY_TRAIT, "randomizedPlugSetHash": 70},
            {"socketTypeHash": 12},
            "not-a-socket",
        ],
        "socketCategories": [
            {"socketCategoryHash": SOCKET_CATEGORY_BARREL, "socketIndexes": [0, 1]},
        ],
    })
    sockets = ItemDefinition.from_manifest(record).sockets
    assert len(sockets) == 3
    assert sockets[0].categoryHashes == (SOCKET_CATEGORY_BARREL,)
    assert sockets[0].reusablePlugItems == (5,)
    assert sockets[0].singleInitialItemHash is None
    # categories carried on the entry win over the item-level mapping
    assert sockets[1].categoryHashes == (SOCKET_CATEGORY_TRAIT,)
    assert sockets[1].randomizedPlugSetHash == 70
    assert sockets[2].categoryHashes is None
    assert sockets[2].socketIndex == 2


def test_plug_set_accepts_bare_and_wrapped_hashes():
    plug_set = PlugSetDefinition.from_manifest({"hash": 1, "reusablePlugItems": [7, {"plugItemHash": 8}, {"other": 1}]})
    assert plug_set.plug_item_hashes() == [7, 8]


def test_search_option_defaults():
    options = SearchOptions.from_params({})
    assert options.text == ""
    assert options.itemType == WEAPON_ITEM_TYPE
    assert options.limit == DEFAULT_SEARCH_LIMIT
    assert options.offset == 0


@pytest.mark.parametrize("params, expected", [
    ({"q": "  Hawk "}, ("  Hawk ", WEAPON_ITEM_TYPE, DEFAULT_SEARCH_LIMIT, 0)),
    ({"text": "ace", "itemType": "2"}, ("ace", 2, DEFAULT_SEARCH_LIMIT, 0)),
    ({"itemTypeFilter": 19, "limit": "25", "offset": "50"}, ("", 19, 25, 50)),
    ({"itemType": "all"}, ("", None, DEFAULT_SEARCH_LIMIT, 0)),
    ({"itemType": None}, ("", None, DEFAULT_SEARCH_LIMIT, 0)),
    ({"itemType": ""}, ("", WEAPON_ITEM_TYPE, DEFAULT_SEARCH_LIMIT, 0)),
    ({"itemType": "sword", "limit": -1, "offset": "x"}, ("", WEAPON_ITEM_TYPE, DEFAULT_SEARCH_LIMIT, 0)),
    ({"q": 42}, ("", WEAPON_ITEM_TYPE, DEFAULT_SEARCH_LIMIT, 0)),
])
def test_search_options_from_params(params, expected):
    options = SearchOptions.from_params(params)
    assert (options.text, options.itemType, options.limit, options.offset) == expected
