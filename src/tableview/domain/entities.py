"""
Core Domain Entities.

This module defines the column-level entities the pipeline operates on:
static column definitions and the mutable (by replacement) column state,
plus the serializable table-state snapshot.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, List, Optional, Union

from pydantic import BaseModel, Field

from tableview.domain.value_objects import QueryToken

RowId = Union[str, int]

# (value) -> derived comparable value used for ranking
SortValueCallback = Callable[[Any], Any]

# (cell value, criterion) -> keep row
ColumnFilterCallback = Callable[[Any, Any], bool]

# (text) -> tokens
TokenizerCallback = Callable[[str], List[QueryToken]]


class ColumnRole(str, Enum):
    """Whether a column is rendered or only indexed."""

    DISPLAY = "display"
    INTERNAL = "internal"


class SortOrder(str, Enum):
    """Direction of an active column sort."""

    ASC = "asc"
    DESC = "desc"


class SelectionMode(str, Enum):
    """Row selection behavior."""

    SINGLE = "single"
    MULTI = "multi"


class ColumnDefinition(BaseModel):
    """Static definition of a column."""

    field: str = Field(..., min_length=1, description="Dot-separated field path")
    title: Optional[str] = Field(default=None, description="Header text")
    role: ColumnRole = Field(default=ColumnRole.DISPLAY)
    sortable: bool = False
    searchable: bool = False
    tokenize: bool = False
    tokenizer: Optional[TokenizerCallback] = Field(
        default=None, description="Overrides the table tokenizer for this column"
    )
    filter: Optional[ColumnFilterCallback] = Field(
        default=None, description="Custom (value, criterion) predicate"
    )
    sort_value: Optional[SortValueCallback] = Field(
        default=None, description="Derives the value used for ranking"
    )

    model_config = {"frozen": True}

    @property
    def is_display(self) -> bool:
        return self.role == ColumnRole.DISPLAY

    @property
    def header(self) -> str:
        """Title for exports, falling back to the field path."""
        return self.title if self.title is not None else self.field


class SortState(BaseModel):
    """Active sort on a column. Lower priority is compared first."""

    order: SortOrder
    priority: int

    model_config = {"frozen": True}


class ColumnState(BaseModel):
    """Current per-column state."""

    field: str
    visible: bool = True
    sort: Optional[SortState] = None
    width: Optional[float] = Field(default=None, ge=0)

    model_config = {"frozen": True}

    def changed_fields(self, other: ColumnState) -> List[str]:
        """
        Names of the members that differ between two states of one column.

        Raises:
            ValueError: If the states belong to different columns
        """
        if other.field != self.field:
            raise ValueError(
                f"Cannot compare states of different columns: "
                f"{self.field}, {other.field}"
            )
        return [
            name
            for name in ("visible", "sort", "width")
            if getattr(self, name) != getattr(other, name)
        ]


class RestorableColumnState(BaseModel):
    """Column state where every member but the field is optional."""

    field: str
    visible: Optional[bool] = None
    sort: Optional[SortState] = None
    width: Optional[float] = Field(default=None, ge=0)


class TableState(BaseModel):
    """Serializable snapshot of the UI-facing table state."""

    query: str = ""
    selected_row_ids: List[RowId] = Field(default_factory=list)
    columns: List[ColumnState] = Field(default_factory=list)


class RestorableTableState(BaseModel):
    """Partial table state accepted by TableView.update_table_state."""

    query: Optional[str] = None
    selected_row_ids: Optional[List[RowId]] = None
    columns: Optional[List[RestorableColumnState]] = None
