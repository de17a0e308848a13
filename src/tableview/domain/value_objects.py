"""
Value Objects for Domain Layer.

Small objects passed between pipeline stages. The per-row and per-token
objects are plain dataclasses since they are created in bulk on every
index or search pass; the run audit objects are pydantic models like the
rest of the public surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


# =============================================================================
# Type Aliases for improved readability
# =============================================================================

# Half-open [start, end) character offsets
HighlightRange = Tuple[int, int]

# Highlight ranges indexed by field path
HighlightDict = Dict[str, List[HighlightRange]]

# Row handle: position of the row in the unfiltered dataset
RowHandle = int


@dataclass(frozen=True)
class QueryToken:
    """One unit of a compiled search query."""

    value: str
    quoted: bool = False


@dataclass
class SearchResult:
    """Score and highlight ranges of one search comparison."""

    score: float = 0.0
    ranges: List[HighlightRange] = field(default_factory=list)


@dataclass
class RowMetadata:
    """Cached, derived per-row state."""

    id: Any
    index: int
    sort_values: Dict[str, Optional[int]] = field(default_factory=dict)
    compare_values: Dict[str, str] = field(default_factory=dict)
    tokens: Dict[str, List[str]] = field(default_factory=dict)
    search_score: float = 0.0
    highlight_ranges: HighlightDict = field(default_factory=dict)

    def reset_search(self) -> None:
        """Drop the transient search state of the previous pass."""
        self.search_score = 0.0
        self.highlight_ranges = {}


@dataclass(frozen=True)
class FilterResult:
    """Result of a narrowing stage (filter or search)."""

    passed: List[RowHandle] = field(default_factory=list)
    rejected_count: int = 0

    @property
    def passed_count(self) -> int:
        return len(self.passed)


class StageResult(BaseModel):
    """Result of a single pipeline stage for the audit trail."""

    stage_name: str
    input_count: int
    output_count: int
    duration_seconds: float

    @property
    def reduction_ratio(self) -> float:
        """Calculate reduction ratio (0.0 = no reduction, 1.0 = all removed)."""
        if self.input_count == 0:
            return 0.0
        return 1.0 - (self.output_count / self.input_count)


class PipelineRun(BaseModel):
    """Audit record of the most recent reconcile."""

    trigger: str = Field(..., description="'filter' or 'sort'")
    audit_trail: List[StageResult] = Field(default_factory=list)
    duration_seconds: float = 0.0
    row_count: int = 0
    callback_failures: int = 0
