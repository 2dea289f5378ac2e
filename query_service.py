# pylint: disable=line-too-long
"""
Read-only item queries over the active manifest snapshot.
"""
from typing import Any, Mapping, Optional

from manifest_index import ManifestIndex
from models import ItemDefinition, SearchOptions, SearchResult


class ManifestQueryService:
    """
    Search, filter and paginate item summaries, and fetch full item records.

    Every call reads the index's snapshot reference once and works against that
    snapshot only, so a concurrent reindex never produces a mixed result.
    """

    def __init__(self, index: ManifestIndex):
        self.index = index

    def search(self, options: SearchOptions | Mapping[str, Any] | None = None) -> SearchResult:
        """
        Search item summaries.

        An entry matches when its item type equals `options.itemType` (unless
        None) and its name contains `options.text`, case-insensitively.

        Args:
            options (SearchOptions | Mapping): Search options or raw parameters.

        Returns:
            SearchResult: Total match count and the `[offset, offset + limit)` page, in index order.
        """
        if not isinstance(options, SearchOptions):
            options = SearchOptions.from_params(options)
        snapshot = self.index.snapshot
        needle = options.text.lower()
        item_type = options.itemType
        matches = [
            summary for summary in snapshot.summaries.values()
            if (item_type is None or summary.itemType == item_type)
            and (not needle or needle in summary.name.lower())
        ]
        page = matches[options.offset:options.offset + options.limit]
        return SearchResult(total=len(matches), items=page)

    def get_full(self, item_hash: int | str) -> Optional[ItemDefinition]:
        """
        Return the full item definition for a hash, or None if it is not indexed.

        The result is a deep copy, so callers may modify it without touching the
        published snapshot.
        """
        item = self.index.snapshot.get(item_hash)
        return item.model_copy(deep=True) if item is not None else None
