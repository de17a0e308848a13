"""
Row Selection - Selected Row Ids.

Selection is keyed by row id and independent of filtering: a selected row
that is filtered out stays selected.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from tableview.domain.entities import RowId, SelectionMode


class RowSelection:
    """Selected row ids under a selection mode."""

    def __init__(self, mode: Optional[SelectionMode] = None) -> None:
        self.mode = mode
        self._ids: List[RowId] = []

    @property
    def ids(self) -> List[RowId]:
        """Selected ids as seen through the mode: none when disabled, one at most in single mode."""
        if self.mode is None:
            return []
        if self.mode == SelectionMode.SINGLE:
            return self._ids[:1]
        return list(self._ids)

    def replace(self, ids: Iterable[RowId]) -> bool:
        """Replace the selection. Returns True if it changed."""
        new_ids = list(dict.fromkeys(ids))
        if set(new_ids) == set(self._ids) and len(new_ids) == len(self._ids):
            return False
        self._ids = new_ids
        return True

    def contains(self, row_id: RowId) -> bool:
        return row_id in self.ids

    def discard(self, row_ids: Iterable[RowId]) -> None:
        removed = set(row_ids)
        self._ids = [i for i in self._ids if i not in removed]
