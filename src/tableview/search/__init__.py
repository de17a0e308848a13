"""
Search Package - Tokenized, Relevance-Scored Search.

Components:
    - create_regex_tokenizer / whitespace_tokenizer: Query and field tokenizers
    - calculate_search_score: Tiered exact/prefix/substring scoring
    - compile_query: Raw query -> QueryTokens
    - SearchEngine: Per-field search, row scores and highlight ranges
"""

from tableview.search.engine import SearchEngine, compile_query
from tableview.search.scoring import (
    EXACT_WEIGHT,
    PREFIX_WEIGHT,
    SUBSTRING_WEIGHT,
    calculate_search_score,
    find_occurrences,
)
from tableview.search.tokenizer import create_regex_tokenizer, whitespace_tokenizer

__all__ = [
    "EXACT_WEIGHT",
    "PREFIX_WEIGHT",
    "SUBSTRING_WEIGHT",
    "SearchEngine",
    "calculate_search_score",
    "compile_query",
    "create_regex_tokenizer",
    "find_occurrences",
    "whitespace_tokenizer",
]
