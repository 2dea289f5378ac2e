"""Unit tests for manifest helper functions."""
import pytest

# pylint: disable=import-error
from helpers import (contains_any, decode_payload, dig, hash_list,
                     normalize_item_hash, signed_item_hash)


@pytest.mark.parametrize("value, expected", [
    (1, 1),
    ("3000000000", 3000000000),
    (-1294967296, 3000000000),
    (None, None),
    (True, None),
    ("abc", None),
    (2 ** 32 - 1, 2 ** 32 - 1),
    (-2 ** 31, 2 ** 31),
    (2 ** 32 + 1, None),
    (-2 ** 31 - 1, None),
])
def test_normalize_item_hash(value, expected):
    assert normalize_item_hash(value) == expected


def test_signed_item_hash():
    assert signed_item_hash(3000000000) == -1294967296
    assert signed_item_hash(5) == 5


def test_decode_payload():
    assert decode_payload('{"hash": 1}') == {"hash": 1}
    assert decode_payload(b'{"hash": 2}') == {"hash": 2}
    assert decode_payload("[1, 2]") is None
    assert decode_payload("{broken") is None
    assert decode_payload(None) is None


def test_dig():
    record = {"a": {"b": {"c": 3}}, "x": "flat"}
    assert dig(record, "a", "b", "c") == 3
    assert dig(record, "a", "missing", default="d") == "d"
    assert dig(record, "x", "y") is None


def test_hash_list_and_contains_any():
    assert hash_list([{"plugItemHash": 1}, 2, {"plugItemHash": None}]) == [1, 2]
    assert hash_list("nope") == []
    assert contains_any("v400.Weapon.ORNAMENT", ("ornament",))
    assert not contains_any(None, ("ornament",))
