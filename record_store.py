# pylint: disable=broad-exception-caught, line-too-long
"""
RecordStore module for read-only access to the Destiny 2 manifest SQLite database.

Wraps a single read-only SQLite connection and exposes the two lookups the
indexer and option resolver need: a full-table read and a single keyed row read.
"""
import logging
import os
import re
import sqlite3
import threading

from constants import MANIFEST_DB_PATH, MANIFEST_KEY_COLUMN, MANIFEST_PAYLOAD_COLUMN
from helpers import normalize_item_hash, signed_item_hash

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RecordStoreError(Exception):
    """Raised when the manifest database cannot be opened or queried."""


class SqliteRecordStore:
    """
    Read-only record store backed by the manifest SQLite file.

    Rows are `(id, json)` pairs. The connection is opened lazily in read-only
    URI mode and shared across threads behind a lock.
    """

    def __init__(
        self,
        storage_path: str = None,
        key_column: str = MANIFEST_KEY_COLUMN,
        payload_column: str = MANIFEST_PAYLOAD_COLUMN
    ):
        """
        Initialize the store.

        Args:
            storage_path (str): Path to the manifest SQLite DB.
            key_column (str): Name of the key column in every definition table.
            payload_column (str): Name of the JSON payload column.
        """
        self.storage_path = storage_path or MANIFEST_DB_PATH
        self.key_column = _checked_identifier(key_column)
        self.payload_column = _checked_identifier(payload_column)
        self._lock = threading.RLock()
        self._conn = None

    def __enter__(self) -> "SqliteRecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _connect(self) -> sqlite3.Connection:
        """
        Open a read-only SQLite connection to the manifest database (private).

        Returns:
            sqlite3.Connection: SQLite connection object.
        Raises:
            RecordStoreError: If the manifest DB file is missing or cannot be opened.
        """
        with self._lock:
            if self._conn:
                return self._conn
            if not os.path.exists(self.storage_path):
                raise RecordStoreError(f"Manifest DB not found at {self.storage_path}")
            try:
                # Open read-only; allow cross-thread reads
                self._conn = sqlite3.connect(f"file:{self.storage_path}?mode=ro", uri=True, check_same_thread=False)
            except sqlite3.Error as e:
                raise RecordStoreError(f"Failed to open manifest DB at {self.storage_path}: {e}") from e
            # Read-only performance PRAGMAs (no writes)
            try:
                self._conn.execute("PRAGMA temp_store=MEMORY;")
                self._conn.execute("PRAGMA cache_size=-32768;")    # ~32MB page cache
                self._conn.execute("PRAGMA mmap_size=134217728;")  # 128MB mmap if supported
            except sqlite3.Error as e:
                logging.debug("Manifest PRAGMA setup skipped: %s", e)
            return self._conn

    def list_tables(self) -> list[str]:
        """
        List the definition tables present in the manifest database.

        Returns:
            list[str]: Table names in alphabetical order.
        """
        with self._lock:
            conn = self._connect()
            try:
                rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name").fetchall()
            except sqlite3.Error as e:
                raise RecordStoreError(f"Failed to list manifest tables: {e}") from e
        return [row[0] for row in rows]

    def fetch_all_rows(self, table_name: str) -> list[tuple[int, str | bytes]]:
        """
        Read every row of a definition table.

        Args:
            table_name (str): Manifest table name.

        Returns:
            list[tuple]: `(unsigned key, payload)` pairs in table order.
        Raises:
            RecordStoreError: If the database or table cannot be read.
        """
        table = _checked_identifier(table_name)
        with self._lock:
            conn = self._connect()
            try:
                rows = conn.execute(f"SELECT {self.key_column}, {self.payload_column} FROM {table}").fetchall()
            except sqlite3.Error as e:
                logging.error("Manifest full-table read failed for %s: %s", table, e)
                raise RecordStoreError(f"Failed to read manifest table {table}: {e}") from e
        out = []
        for key, payload in rows:
            out.append((normalize_item_hash(key), payload))
        return out

    def fetch_one_row(self, table_name: str, key: int | str) -> str | bytes | None:
        """
        Resolve a single row by key, matching either the signed or unsigned form.

        Args:
            table_name (str): Manifest table name.
            key (int | str): Definition hash.

        Returns:
            str or bytes or None: The row payload, or None if the key is not present.
        Raises:
            RecordStoreError: If the database or table cannot be read.
        """
        table = _checked_identifier(table_name)
        norm = normalize_item_hash(key)
        if norm is None:
            return None
        signed = signed_item_hash(norm)
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute(
                    f"SELECT {self.payload_column} FROM {table} WHERE {self.key_column} IN (?, ?) LIMIT 1",
                    (signed, norm),
                ).fetchone()
            except sqlite3.Error as e:
                logging.error("Manifest lookup failed for %s (u32=%s, i32=%s): %s", table, norm, signed, e)
                raise RecordStoreError(f"Failed to read {table} row {norm}: {e}") from e
        return row[0] if row else None

    def close(self) -> None:
        """Close the SQLite connection. The manifest file itself is left untouched."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None


def _checked_identifier(name: str) -> str:
    """Reject table/column names that cannot be safely interpolated into SQL."""
    if not isinstance(name, str) or not _TABLE_NAME_RE.match(name):
        raise RecordStoreError(f"Invalid manifest identifier: {name!r}")
    return name
