"""
Domain Package - Core Entities and Value Objects.

Entities:
    - ColumnDefinition: Static column options and callbacks
    - ColumnState / SortState: Per-column mutable state
    - TableState: Serializable snapshot of query, selection and columns

Value Objects:
    - RowMetadata: Cached per-row ranks, compare values, tokens, score
    - QueryToken / SearchResult: Search units and outcomes
    - FilterResult / StageResult / PipelineRun: Stage outputs and audit trail
"""

from tableview.domain.entities import (
    ColumnDefinition,
    ColumnRole,
    ColumnState,
    RestorableColumnState,
    RestorableTableState,
    RowId,
    SelectionMode,
    SortOrder,
    SortState,
    TableState,
)
from tableview.domain.value_objects import (
    FilterResult,
    PipelineRun,
    QueryToken,
    RowMetadata,
    SearchResult,
    StageResult,
)

__all__ = [
    "ColumnDefinition",
    "ColumnRole",
    "ColumnState",
    "FilterResult",
    "PipelineRun",
    "QueryToken",
    "RestorableColumnState",
    "RestorableTableState",
    "RowId",
    "RowMetadata",
    "SearchResult",
    "SelectionMode",
    "SortOrder",
    "SortState",
    "StageResult",
    "TableState",
]
