"""
Rank Maps - Precomputed Sort Order per Column.

A rank map assigns every distinct original value of a column a dense
0-based integer in sorted order, so the sort stage compares integers
instead of repeating locale-aware string comparisons.
"""

from __future__ import annotations

import functools
import math
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from tableview.indexing.collation import Collator, comparable_value


def value_key(value: Any) -> Hashable:
    """
    Identity of an original value inside a rank map.

    Type-aware so that ``1``, ``1.0`` and ``True`` stay distinct;
    unhashable values are keyed by object identity.
    """
    try:
        hash(value)
    except TypeError:
        return (type(value), "id", id(value))
    return (type(value), value)


class RankMap:
    """Mapping from original values to their dense sort rank."""

    def __init__(self, ranks: Dict[Hashable, int]) -> None:
        self._ranks = ranks

    def get(self, value: Any) -> Optional[int]:
        return self._ranks.get(value_key(value))

    def __len__(self) -> int:
        return len(self._ranks)


def create_rank_map(
    pairs: Iterable[Tuple[Any, Any]],
    collator: Optional[Collator] = None,
) -> RankMap:
    """
    Build a rank map from (original value, sort value) pairs.

    Pairs are de-duplicated by original value (first occurrence wins),
    then ordered: None and NaN sort values first, strings by the collator,
    numbers numerically, numbers before strings. Ties keep first-seen
    order.

    Args:
        pairs: (original, sort value) for every row
        collator: String collation; defaults to Collator()

    Returns:
        RankMap of original value -> rank
    """
    collator = collator or Collator()

    unique: Dict[Hashable, Tuple[Any, Any]] = {}
    for original, sort_value in pairs:
        key = value_key(original)
        if key not in unique:
            unique[key] = (original, sort_value)

    with collator.activated():
        entries: List[Tuple[Hashable, Any]] = [
            (key, _prepare(sort_value, collator))
            for key, (_, sort_value) in unique.items()
        ]
    entries.sort(key=functools.cmp_to_key(_compare_prepared))

    return RankMap({key: rank for rank, (key, _) in enumerate(entries)})


def _prepare(sort_value: Any, collator: Collator) -> Tuple[int, Any]:
    # (kind, payload): 0 = missing, 1 = number, 2 = string
    if sort_value is None:
        return (0, None)
    value = comparable_value(sort_value)
    if isinstance(value, float) and math.isnan(value):
        # NaN is unordered; rank it with the missing values.
        return (0, None)
    if isinstance(value, str):
        return (2, collator.sort_key(value))
    return (1, value)


def _compare_prepared(a: Tuple[Hashable, Any], b: Tuple[Hashable, Any]) -> int:
    (a_kind, a_value), (b_kind, b_value) = a[1], b[1]
    if a_kind != b_kind:
        return -1 if a_kind < b_kind else 1
    if a_kind == 0:
        return 0
    if a_value < b_value:
        return -1
    if a_value > b_value:
        return 1
    return 0
