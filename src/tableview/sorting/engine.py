"""
Sort Engine - Stable Multi-Column Ordering.

Orders the surviving rows by, in fixed precedence:
    1. Search score descending (scoring enabled and a query active)
    2. Each active column in ascending priority, by precomputed rank
    3. Original insertion index ascending

Missing ranks are replaced by the minimum integer, so missing values sort
first ascending and last descending. The index fallback makes the order a
deterministic total order regardless of which rows survived filtering.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Iterable, List, Sequence, Tuple

from tableview.domain.entities import ColumnState, SortOrder
from tableview.domain.value_objects import RowHandle

if TYPE_CHECKING:
    from tableview.pipeline.row_store import RowStore

logger = logging.getLogger(__name__)

MISSING_RANK = -sys.maxsize - 1


def active_sorts(states: Iterable[ColumnState]) -> List[ColumnState]:
    """Visible states with an active sort, ascending priority first."""
    return sorted(
        (state for state in states if state.visible and state.sort is not None),
        key=lambda state: state.sort.priority,
    )


class SortEngine:
    """Orders row handles by score, column ranks and original index."""

    @property
    def name(self) -> str:
        return "sort"

    def apply(
        self,
        handles: Sequence[RowHandle],
        store: "RowStore",
        states: Iterable[ColumnState],
        rank_by_score: bool = False,
    ) -> List[RowHandle]:
        """
        Sort row handles.

        Args:
            handles: Rows to order
            store: Row store with metadata
            states: Current column states
            rank_by_score: Order by search score first

        Returns:
            New list of handles in display order
        """
        columns = [
            (state.field, state.sort.order == SortOrder.DESC)
            for state in active_sorts(states)
        ]
        metadata = store.metadata

        def sort_key(handle: RowHandle) -> Tuple[Any, ...]:
            meta = metadata[handle]
            key: List[Any] = []
            if rank_by_score:
                key.append(-meta.search_score)
            for field, descending in columns:
                rank = meta.sort_values.get(field)
                if rank is None:
                    rank = MISSING_RANK
                key.append(-rank if descending else rank)
            key.append(meta.index)
            return tuple(key)

        return sorted(handles, key=sort_key)
