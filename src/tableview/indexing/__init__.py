"""
Indexing Package - Row Metadata Construction.

Components:
    - Collator: Base-sensitivity, numeric-aware string ordering
    - create_rank_map / RankMap: Dense sort ranks per column value
    - RowIndexer: Builds the RowStore (ids, ranks, compare values, tokens)
"""

from tableview.indexing.collation import Collator, comparable_value, fold
from tableview.indexing.indexer import RowIdCallback, RowIndexer
from tableview.indexing.rank_map import RankMap, create_rank_map

__all__ = [
    "Collator",
    "RankMap",
    "RowIdCallback",
    "RowIndexer",
    "comparable_value",
    "create_rank_map",
    "fold",
]
