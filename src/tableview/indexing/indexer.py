"""
Row Metadata Indexer.

Builds one RowMetadata record per row for a dataset:
    - Row id (via the row-id callback, with index fallback)
    - Original index
    - Sort rank per sortable column (via per-column rank maps)
    - Lowercase compare value per string field
    - Cached search tokens per tokenized searchable field

Design Notes:
    - Runs only when the dataset, column definitions, row-id callback or
      table tokenizer change; never reuses metadata across rebuilds
    - O(rows x columns) plus one rank-map sort per sortable column
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from tableview.domain.entities import ColumnDefinition, RowId, TokenizerCallback
from tableview.domain.paths import get_nested_value
from tableview.domain.value_objects import RowMetadata
from tableview.indexing.collation import Collator
from tableview.indexing.rank_map import RankMap, create_rank_map
from tableview.pipeline.row_store import RowStore
from tableview.resilience.callback_guard import CallbackGuard

logger = logging.getLogger(__name__)

RowIdCallback = Callable[[Any, int], Optional[RowId]]

_ID_KEYS = ("id", "key", "_id")


def _is_row_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


class RowIndexer:
    """Builds the RowStore for a dataset."""

    def __init__(
        self,
        collator: Optional[Collator] = None,
        guard: Optional[CallbackGuard] = None,
    ) -> None:
        """
        Initialize the indexer.

        Args:
            collator: String collation for rank maps
            guard: Callback guard for user callbacks
        """
        self.collator = collator or Collator()
        self.guard = guard or CallbackGuard()

    @property
    def name(self) -> str:
        return "index"

    def build(
        self,
        rows: Sequence[Any],
        columns: Sequence[ColumnDefinition],
        tokenizer: TokenizerCallback,
        row_id: Optional[RowIdCallback] = None,
    ) -> RowStore:
        """
        Build metadata for every row.

        Args:
            rows: The full, unfiltered dataset
            columns: Registered column definitions
            tokenizer: Table-wide tokenizer for tokenized columns
            row_id: Row-id callback; defaults to the id/key/_id member

        Returns:
            RowStore holding the rows and their metadata
        """
        start = time.perf_counter()
        rows = list(rows)
        id_pass = _RowIdPass(row_id, self.guard)

        rank_maps = {
            column.field: self._rank_map(rows, column)
            for column in columns
            if column.sortable
        }

        metadata: List[RowMetadata] = []
        for index, row in enumerate(rows):
            meta = RowMetadata(id=id_pass.assign(row, index), index=index)
            for column in columns:
                value = get_nested_value(row, column.field)
                rank_map = rank_maps.get(column.field)
                meta.sort_values[column.field] = (
                    rank_map.get(value) if rank_map is not None else None
                )

                if isinstance(value, str):
                    meta.compare_values[column.field] = value.lower()

                if column.searchable and column.tokenize and value:
                    meta.tokens[column.field] = self._tokenize(
                        column, tokenizer, value
                    )
            metadata.append(meta)

        duration = time.perf_counter() - start
        logger.debug(
            f"Indexed {len(rows)} rows x {len(columns)} columns "
            f"({len(rank_maps)} rank maps) in {duration:.4f}s"
        )
        return RowStore(rows, metadata)

    def _rank_map(self, rows: List[Any], column: ColumnDefinition) -> RankMap:
        extractor = column.sort_value
        pairs = []
        for row in rows:
            original = get_nested_value(row, column.field)
            derived = None
            if extractor is not None:
                derived = self.guard.call(
                    extractor, original, name=f"sort_value[{column.field}]"
                )
            pairs.append((original, original if derived is None else derived))
        return create_rank_map(pairs, self.collator)

    def _tokenize(
        self,
        column: ColumnDefinition,
        tokenizer: TokenizerCallback,
        value: Any,
    ) -> List[str]:
        active = column.tokenizer or tokenizer
        tokens = self.guard.call(
            active, str(value), name=f"tokenizer[{column.field}]", fallback=[]
        )
        return [token.value for token in tokens]


class _RowIdPass:
    """Row id assignment for one indexing pass; warns at most once per kind."""

    def __init__(self, callback: Optional[RowIdCallback], guard: CallbackGuard) -> None:
        self._callback = callback
        self._guard = guard
        self._assigned: Dict[RowId, int] = {}
        self._warned_missing = False
        self._warned_invalid = False

    def assign(self, row: Any, index: int) -> RowId:
        if self._callback is None:
            row_id = self._default_id(row)
        else:
            row_id = self._guard.call(self._callback, row, index, name="row_id")

        if row_id is None or row_id in self._assigned:
            fallback = index if index not in self._assigned else f"__row_{index}"
            # Rows without an id member were already reported by _default_id.
            if row_id is not None or self._callback is not None:
                self._warn_invalid(index, row_id, fallback)
            row_id = fallback

        self._assigned[row_id] = index
        return row_id

    def _default_id(self, row: Any) -> Optional[RowId]:
        for key in _ID_KEYS:
            value = get_nested_value(row, key)
            if _is_row_id(value):
                return value
        if not self._warned_missing:
            self._warned_missing = True
            logger.warning(
                "Rows are missing a unique 'id', 'key' or '_id' member; "
                "falling back to the row index. Provide a row_id callback "
                "for stable ids."
            )
        return None

    def _warn_invalid(
        self, index: int, row_id: Optional[RowId], fallback: RowId
    ) -> None:
        if self._warned_invalid:
            return
        self._warned_invalid = True
        source = "row_id callback" if self._callback is not None else "row's id member"
        reason = "no id" if row_id is None else f"non-unique id {row_id!r}"
        logger.warning(
            f"The {source} gave {reason} for the row at index {index}; "
            f"using {fallback!r} instead"
        )
