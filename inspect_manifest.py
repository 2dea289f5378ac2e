'''
This script inspects a local Destiny 2 manifest database: it lists the tables
and prints the first weapons found in the item index.

Usage: python inspect_manifest.py [path/to/manifest.content] [count]
'''

import os
import sys

from constants import MANIFEST_DB_PATH
from manifest_browser import ManifestBrowser
from manifest_index import ManifestLoadError
from record_store import RecordStoreError


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    db_path = argv[0] if argv else MANIFEST_DB_PATH
    try:
        count = int(argv[1]) if len(argv) > 1 else 20
    except ValueError:
        print(f"Invalid count: {argv[1]!r} (expected an integer)")
        print("Usage: python inspect_manifest.py [path/to/manifest.content] [count]")
        return 2

    print("Opening DB at:", os.path.abspath(db_path))
    print("File exists:", os.path.exists(db_path))
    print("File size:", os.path.getsize(db_path) if os.path.exists(db_path) else "N/A")

    browser = ManifestBrowser(db_path, use_cache=False)
    try:
        tables = browser.store.list_tables()
        print("Tables found:", len(tables))
        for name in tables:
            print(name)

        stats = browser.load()
        print(f"Indexed items: {stats['indexedItems']} (skipped rows: {stats['skippedRows']})")

        result = browser.search({"limit": count})
        for summary in result.items:
            print(summary.name, "-", summary.itemTypeDisplayName)
        print(f"Total weapons found: {result.total}")
    except (RecordStoreError, ManifestLoadError) as e:
        print("Manifest error:", e)
        return 1
    finally:
        browser.close()
    return 0


# Run
if __name__ == "__main__":
    sys.exit(main())
