"""
Column Registry - Column Definitions and Per-Column State.

Holds the ordered column definitions of a table and the current state
(visibility, sort, width) of each column. Definitions are immutable and
change only by replacing the whole list; state is replaced per column.

Usage:
    registry = ColumnRegistry()
    registry.replace_all([
        ColumnDefinition(field="name", sortable=True, searchable=True),
        ColumnDefinition(field="age", sortable=True),
    ])
    registry.set_states([registry.get_state("age").model_copy(update={"visible": False})])
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Union

from tableview.domain.entities import ColumnDefinition, ColumnState

logger = logging.getLogger(__name__)


class UnknownColumnError(KeyError):
    """Raised when a field has no registered column."""

    def __init__(self, field: str) -> None:
        super().__init__(field)
        self.field = field

    def __str__(self) -> str:
        return f"No column registered for field '{self.field}'"


class ColumnNotSortableError(ValueError):
    """Raised when sorting a column that is not sortable."""


class SortPriorityConflict(ValueError):
    """Raised when two active sorts would share a priority."""


class ColumnRegistry:
    """
    Registry of column definitions and their state.

    Supports:
        - Full replacement of the ordered definition list
        - Lookup by field path
        - State get/set with change detection
        - Reordering of display columns
    """

    def __init__(self, columns: Optional[Iterable[ColumnDefinition]] = None) -> None:
        self._columns: List[ColumnDefinition] = []
        self._by_field: Dict[str, ColumnDefinition] = {}
        self._states: Dict[str, ColumnState] = {}
        if columns is not None:
            self.replace_all(columns)

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def replace_all(self, columns: Iterable[ColumnDefinition]) -> None:
        """
        Replace every column definition.

        State of fields that remain registered is kept; state of removed
        fields is dropped.

        Raises:
            ValueError: If two definitions share a field
        """
        columns = list(columns)
        by_field: Dict[str, ColumnDefinition] = {}
        for column in columns:
            if column.field in by_field:
                raise ValueError(f"Column '{column.field}' is registered twice")
            by_field[column.field] = column

        self._columns = columns
        self._by_field = by_field
        self._states = {
            name: state for name, state in self._states.items() if name in by_field
        }
        logger.info(f"Registered {len(columns)} columns")

    @property
    def columns(self) -> List[ColumnDefinition]:
        return list(self._columns)

    @property
    def display_columns(self) -> List[ColumnDefinition]:
        return [c for c in self._columns if c.is_display]

    @property
    def searchable_fields(self) -> List[str]:
        return [c.field for c in self._columns if c.searchable]

    def __len__(self) -> int:
        return len(self._columns)

    def __contains__(self, field: object) -> bool:
        return field in self._by_field

    def get(self, field: str) -> Optional[ColumnDefinition]:
        """Get the definition for a field, or None."""
        return self._by_field.get(field)

    def require(self, field: str) -> ColumnDefinition:
        """
        Get the definition for a field.

        Raises:
            UnknownColumnError: If the field is not registered
        """
        column = self._by_field.get(field)
        if column is None:
            raise UnknownColumnError(field)
        return column

    def move(self, field: str, position: Union[int, str]) -> bool:
        """
        Move a display column to a new position among display columns.

        Internal columns keep their relative place after the display
        columns.

        Args:
            field: Column to move
            position: Target index, or the field currently at the target

        Returns:
            True if the order changed
        """
        display = self.display_columns
        fields = [c.field for c in display]
        if field not in fields:
            return False
        if isinstance(position, str):
            if position not in fields:
                return False
            new_index = fields.index(position)
        else:
            new_index = position
        if not 0 <= new_index < len(display):
            return False

        moved = display.pop(fields.index(field))
        display.insert(new_index, moved)
        internal = [c for c in self._columns if not c.is_display]
        new_order = display + internal
        if new_order == self._columns:
            return False
        self._columns = new_order
        return True

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def get_state(self, field: str) -> ColumnState:
        """
        Get the current state of a column, creating the default if unset.

        Raises:
            UnknownColumnError: If the field is not registered
        """
        self.require(field)
        state = self._states.get(field)
        if state is None:
            state = ColumnState(field=field)
            self._states[field] = state
        return state

    @property
    def states(self) -> List[ColumnState]:
        """States of all columns in column order."""
        return [self.get_state(c.field) for c in self._columns]

    def set_states(self, states: Iterable[ColumnState]) -> List[str]:
        """
        Replace the state of one or more columns as one update.

        Args:
            states: New states; fields must be registered

        Returns:
            Names of the changed members across all states
            ("visible", "sort", "width"), de-duplicated

        Raises:
            UnknownColumnError: If a state's field is not registered
            SortPriorityConflict: If the update leaves two active sorts
                with the same priority
        """
        staged = dict(self._states)
        changes: List[str] = []
        for state in states:
            old = staged.get(state.field) or self.get_state(state.field)
            for name in old.changed_fields(state):
                if name not in changes:
                    changes.append(name)
                if name == "visible" and state.sort is not None and "sort" not in changes:
                    changes.append("sort")
            staged[state.field] = state

        self._check_priorities(staged.values())
        self._states = staged
        return changes

    @staticmethod
    def _check_priorities(states: Iterable[ColumnState]) -> None:
        seen: Dict[int, str] = {}
        for state in states:
            if state.sort is None:
                continue
            other = seen.get(state.sort.priority)
            if other is not None:
                raise SortPriorityConflict(
                    f"Columns '{other}' and '{state.field}' share sort "
                    f"priority {state.sort.priority}"
                )
            seen[state.sort.priority] = state.field
