"""
Registry Module - Column Management.

Components:
    - ColumnRegistry: Ordered column definitions and per-column state
    - UnknownColumnError: Field has no registered column
    - ColumnNotSortableError: Sort requested on a non-sortable column
    - SortPriorityConflict: Two active sorts share a priority
"""

from tableview.registry.column_registry import (
    ColumnNotSortableError,
    ColumnRegistry,
    SortPriorityConflict,
    UnknownColumnError,
)

__all__ = [
    "ColumnNotSortableError",
    "ColumnRegistry",
    "SortPriorityConflict",
    "UnknownColumnError",
]
