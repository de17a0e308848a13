"""
Sort Priority Assignment.

Sorting a column cycles unsorted -> asc -> desc -> unsorted. A column that
becomes sorted gets a priority one below the current minimum, making it
the most significant sort key without renumbering the others. Removing a
sort discards its priority. With ``clear`` every other column's sort is
reset in the same update (exclusive sort); without it sorts accumulate.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from tableview.domain.entities import ColumnState, SortOrder, SortState

_CYCLE = {
    None: SortOrder.ASC,
    SortOrder.ASC: SortOrder.DESC,
    SortOrder.DESC: None,
}


def next_sort_order(order: Optional[SortOrder]) -> Optional[SortOrder]:
    """Next order in the unsorted -> asc -> desc -> unsorted cycle."""
    return _CYCLE[order]


def next_priority(states: Dict[str, ColumnState], column_count: int) -> int:
    """Priority for a newly sorted column."""
    priorities = [s.sort.priority for s in states.values() if s.sort is not None]
    return min([column_count + 1, *priorities]) - 1


def apply_sort(
    states: Dict[str, ColumnState],
    field: str,
    order: Optional[SortOrder],
    column_count: int,
    clear: bool = True,
) -> List[ColumnState]:
    """
    Compute the state changes for sorting a column.

    Args:
        states: Current states of all columns, by field
        field: Column being sorted
        order: New order, or None to remove the sort
        column_count: Number of registered columns
        clear: Reset every other column's sort

    Returns:
        The new states that differ from the current ones; empty if the
        column already has this order and nothing needs clearing
    """
    current = states[field]
    current_order = current.sort.order if current.sort else None

    if order is None:
        sort = None
    elif current.sort is None:
        sort = SortState(order=order, priority=next_priority(states, column_count))
    else:
        sort = SortState(order=order, priority=current.sort.priority)

    changed: List[ColumnState] = []
    if order != current_order:
        changed.append(current.model_copy(update={"sort": sort}))

    if clear:
        for other_field, other in states.items():
            if other_field != field and other.sort is not None:
                changed.append(other.model_copy(update={"sort": None}))
    return changed
