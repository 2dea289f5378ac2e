# pylint: disable=broad-except, line-too-long
"""
Utility functions for Destiny 2 manifest decoding.

This module provides:
    - Manifest hash normalization (unsigned/signed 32-bit forms)
    - Row payload decoding
    - Nested field probing for loosely shaped manifest JSON
    - Case-insensitive term matching used by the option filters
"""
import ctypes
import json
import logging
from typing import Any, Iterable, Optional

# Accepted hash range: signed i32 (manifest ids) through unsigned u32 (JSON hashes)
HASH_MIN = -2 ** 31
HASH_MAX = 2 ** 32 - 1


def normalize_item_hash(item_hash: int | str | None) -> Optional[int]:
    """
    Convert a Destiny 2 item hash to its unsigned 32-bit integer form.

    The manifest SQLite tables key rows by the signed form while the JSON
    payloads carry the unsigned form; both normalize to the same value.

    Args:
        item_hash (int or str): The item hash to normalize.

    Returns:
        int or None: Unsigned 32-bit hash, or None if the value is not an integer
            or lies outside both the signed and unsigned 32-bit ranges.
    """
    if item_hash is None or isinstance(item_hash, bool):
        return None
    try:
        value = int(item_hash)
    except (TypeError, ValueError, OverflowError):
        return None
    if not HASH_MIN <= value <= HASH_MAX:
        return None
    return ctypes.c_uint32(value).value


def signed_item_hash(item_hash: int) -> int:
    """Return the two's complement signed form used by the manifest `id` column."""
    return ctypes.c_int32(int(item_hash)).value


def decode_payload(payload: str | bytes | None) -> Optional[dict]:
    """
    Decode a manifest row payload into a dict.

    Args:
        payload (str or bytes): JSON text of a definition row.

    Returns:
        dict or None: Decoded record, or None if the payload is not a JSON object.
    """
    if payload is None:
        return None
    try:
        if isinstance(payload, (bytes, bytearray, memoryview)):
            payload = bytes(payload).decode("utf-8")
        record = json.loads(payload)
    except (UnicodeDecodeError, ValueError) as e:
        logging.debug("Failed to decode manifest payload: %s", e)
        return None
    return record if isinstance(record, dict) else None


def dig(record: Any, *path: str, default: Any = None) -> Any:
    """
    Walk nested dict keys, returning default on any missing or non-dict hop.

    Example:
        dig(item, "displayProperties", "name", default="")
    """
    current = record
    for key in path:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def first_present(record: dict, *keys: str) -> Any:
    """Return the first non-null value among the given top-level keys."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def hash_list(values: Any, key: str = "plugItemHash") -> list[int]:
    """
    Normalize a manifest list of hashes.

    Entries may be bare integers or objects carrying the hash under `key`
    (e.g. `{"plugItemHash": 123}`). Unusable entries are dropped.
    """
    if not isinstance(values, list):
        return []
    out = []
    for entry in values:
        raw = entry.get(key) if isinstance(entry, dict) else entry
        h = normalize_item_hash(raw)
        if h is not None:
            out.append(h)
    return out


def contains_any(text: str | None, terms: Iterable[str]) -> bool:
    """Case-insensitive substring check of `text` against any of `terms`."""
    if not text:
        return False
    lowered = text.lower()
    return any(term in lowered for term in terms)
