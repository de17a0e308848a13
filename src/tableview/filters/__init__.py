"""
Filters Package - Row Inclusion.

Components:
    - FilterEvaluator: Structured (field -> criterion) or callback filters
    - strict_equals: Equality used by the fallback criterion rule

Design Principles:
    - Filtering runs before search and takes precedence over it
    - Criteria lists are OR, mapping keys are AND
    - Regex criteria never raise on non-string values
"""

from tableview.filters.evaluator import (
    FilterCallback,
    FilterEvaluator,
    Filters,
    strict_equals,
)

__all__ = [
    "FilterCallback",
    "FilterEvaluator",
    "Filters",
    "strict_equals",
]
