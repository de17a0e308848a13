"""
Sorting Package - Multi-Column Sort.

Components:
    - SortEngine: Score, rank and index ordering of row handles
    - active_sorts: Visible sorted columns in priority order
    - apply_sort / next_sort_order / next_priority: Sort state transitions
"""

from tableview.sorting.engine import MISSING_RANK, SortEngine, active_sorts
from tableview.sorting.priority import apply_sort, next_priority, next_sort_order

__all__ = [
    "MISSING_RANK",
    "SortEngine",
    "active_sorts",
    "apply_sort",
    "next_priority",
    "next_sort_order",
]
