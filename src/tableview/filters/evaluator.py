"""
Filter Evaluator.

Decides row inclusion from the current filter definition, which is one of:
    - None: no restriction
    - A callback (row, index) -> bool
    - A mapping field path -> criterion, AND across keys

Criterion matching, in order:
    1. List/tuple/set criterion: OR across elements (empty matches all)
    2. List/tuple value: OR across elements (empty matches nothing)
    3. Column filter predicate: predicate(value, criterion)
    4. Compiled regular expression: pattern.search(str(value))
    5. Strict equality (bools never equal ints)
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional, Sequence, Union

from tableview.domain.entities import ColumnFilterCallback
from tableview.domain.paths import get_nested_value
from tableview.domain.value_objects import FilterResult, RowHandle
from tableview.registry.column_registry import ColumnRegistry
from tableview.resilience.callback_guard import CallbackGuard

if TYPE_CHECKING:
    from tableview.pipeline.row_store import RowStore

logger = logging.getLogger(__name__)

FilterCallback = Callable[[Any, int], bool]
Filters = Union[Mapping[str, Any], FilterCallback, None]

_CRITERION_SEQUENCES = (list, tuple, set, frozenset)
_VALUE_SEQUENCES = (list, tuple)


def strict_equals(criterion: Any, value: Any) -> bool:
    """Equality that keeps booleans apart from numbers."""
    if isinstance(criterion, bool) != isinstance(value, bool):
        return False
    return criterion == value


class FilterEvaluator:
    """Evaluates structured or callback filters against rows."""

    def __init__(
        self,
        registry: ColumnRegistry,
        guard: Optional[CallbackGuard] = None,
    ) -> None:
        """
        Initialize with the column registry.

        Args:
            registry: Source of per-column filter predicates
            guard: Callback guard for user callbacks
        """
        self.registry = registry
        self.guard = guard or CallbackGuard()

    @property
    def name(self) -> str:
        return "filter"

    def matches(
        self,
        value: Any,
        criterion: Any,
        predicate: Optional[ColumnFilterCallback] = None,
        field: str = "",
    ) -> bool:
        """
        Match one value against one criterion.

        Args:
            value: Field value from the row
            criterion: Filter criterion
            predicate: Column's custom filter predicate, if any
            field: Field path, used to name failing predicates

        Returns:
            True if the value satisfies the criterion
        """
        if isinstance(criterion, _CRITERION_SEQUENCES):
            if not criterion:
                return True
            return any(
                self.matches(value, element, predicate, field) for element in criterion
            )

        if isinstance(value, _VALUE_SEQUENCES):
            return any(self.matches(element, criterion, predicate, field) for element in value)

        if predicate is not None:
            return bool(
                self.guard.call(
                    predicate, value, criterion, name=f"filter[{field}]", fallback=False
                )
            )

        if isinstance(criterion, re.Pattern):
            return criterion.search(str(value)) is not None

        return strict_equals(criterion, value)

    def matches_row(self, row: Any, index: int, filters: Filters) -> bool:
        """
        Decide whether a row passes the filter definition.

        Args:
            row: The row
            index: Original index of the row
            filters: Current filter definition

        Returns:
            True if the row is kept
        """
        if filters is None:
            return True

        if callable(filters):
            return bool(
                self.guard.call(filters, row, index, name="filters", fallback=False)
            )

        for field, criterion in filters.items():
            if criterion is None:
                continue
            value = get_nested_value(row, field)
            if callable(criterion) and not isinstance(criterion, re.Pattern):
                passed = self.guard.call(
                    criterion, value, name=f"criterion[{field}]", fallback=False
                )
            else:
                column = self.registry.get(field)
                predicate = column.filter if column is not None else None
                passed = self.matches(value, criterion, predicate, field)
            if not passed:
                return False
        return True

    def apply(
        self,
        handles: Sequence[RowHandle],
        store: "RowStore",
        filters: Filters,
    ) -> FilterResult:
        """
        Filter rows, resetting their search state first.

        Args:
            handles: Candidate rows
            store: Row store with metadata
            filters: Current filter definition

        Returns:
            FilterResult with the passing handles in input order
        """
        passed: List[RowHandle] = []
        for handle in handles:
            store.metadata[handle].reset_search()
            if self.matches_row(store.rows[handle], handle, filters):
                passed.append(handle)
        return FilterResult(passed=passed, rejected_count=len(handles) - len(passed))
