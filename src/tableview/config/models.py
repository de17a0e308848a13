"""
Configuration Models - Pydantic Models for Type-Safe Config.

All configuration is validated at load time using Pydantic.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from tableview.domain.entities import (
    ColumnDefinition,
    ColumnRole,
    ColumnState,
    SelectionMode,
)


class CallbackPolicy(str, Enum):
    """What happens when a user callback raises during a pipeline run."""

    PROPAGATE = "propagate"  # abort the run
    ISOLATE = "isolate"  # log, record, use a fallback value


class SearchConfig(BaseModel):
    """Search behavior."""

    tokenize: bool = False
    scoring: bool = False
    token_pattern: str = Field(default=r"\S+", min_length=1)

    @field_validator("token_pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid token_pattern: {e}") from e
        return value


class CollationConfig(BaseModel):
    """Ordering of string values when ranking sort values."""

    locale: Optional[str] = None
    numeric: bool = True


class ResilienceConfig(BaseModel):
    """Callback failure handling."""

    callback_policy: CallbackPolicy = CallbackPolicy.PROPAGATE


class ColumnConfig(BaseModel):
    """Declarative column: definition flags plus initial state."""

    field: str = Field(..., min_length=1)
    title: Optional[str] = None
    role: ColumnRole = ColumnRole.DISPLAY
    sortable: bool = False
    searchable: bool = False
    tokenize: bool = False
    visible: bool = True
    width: Optional[float] = Field(default=None, ge=0)

    def to_definition(self, **callbacks: Any) -> ColumnDefinition:
        """
        Build the column definition.

        Args:
            **callbacks: Optional tokenizer, filter or sort_value callbacks

        Returns:
            ColumnDefinition for the registry
        """
        return ColumnDefinition(
            field=self.field,
            title=self.title,
            role=self.role,
            sortable=self.sortable,
            searchable=self.searchable,
            tokenize=self.tokenize,
            **callbacks,
        )

    def to_state(self) -> ColumnState:
        return ColumnState(field=self.field, visible=self.visible, width=self.width)


class ViewConfig(BaseModel):
    """Root configuration object."""

    version: str = "1.0"
    search: SearchConfig = Field(default_factory=SearchConfig)
    collation: CollationConfig = Field(default_factory=CollationConfig)
    resilience: ResilienceConfig = Field(default_factory=ResilienceConfig)
    selection_mode: Optional[SelectionMode] = None
    columns: List[ColumnConfig] = Field(default_factory=list)

    @field_validator("columns")
    @classmethod
    def _unique_fields(cls, columns: List[ColumnConfig]) -> List[ColumnConfig]:
        seen = set()
        for column in columns:
            if column.field in seen:
                raise ValueError(f"duplicate column field: {column.field}")
            seen.add(column.field)
        return columns
