"""
Search Engine - Query Compilation and Per-Row Relevance.

Runs as part of every filter pass, on the rows that survived filtering:
    - Compiles the raw query into QueryTokens
    - Searches every searchable string field with every token
    - Records the row's total score and per-field highlight ranges
    - Keeps a row iff there is no query or its score is positive

Quoted tokens, and fields without cached tokens, match against the whole
lowercase field value. Unquoted tokens match against the field's cached
tokens, while highlights are still located in the field value.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from tableview.domain.entities import TokenizerCallback
from tableview.domain.paths import get_nested_value
from tableview.domain.value_objects import (
    FilterResult,
    QueryToken,
    RowHandle,
    SearchResult,
)
from tableview.resilience.callback_guard import CallbackGuard
from tableview.search.scoring import calculate_search_score, find_occurrences

if TYPE_CHECKING:
    from tableview.pipeline.row_store import RowStore

logger = logging.getLogger(__name__)


def compile_query(
    query: str,
    tokenizer: TokenizerCallback,
    tokenize: bool,
    guard: Optional[CallbackGuard] = None,
) -> Optional[List[QueryToken]]:
    """
    Compile a raw query into tokens.

    The whole lowercased query is always the first, quoted token; with
    tokenization enabled the tokenizer's non-empty tokens follow it.

    Args:
        query: Raw query text
        tokenizer: Tokenizer for the query
        tokenize: Whether tokenized search is enabled
        guard: Callback guard for the tokenizer

    Returns:
        Token list, or None for an empty query
    """
    if not query:
        return None

    tokens = [QueryToken(value=query.lower(), quoted=True)]
    if tokenize:
        guard = guard or CallbackGuard()
        tokenized = guard.call(tokenizer, query, name="query_tokenizer", fallback=[])
        tokens.extend(token for token in tokenized if token.value)
    return tokens


class SearchEngine:
    """Scores rows against compiled query tokens."""

    def __init__(self, scoring: bool = False) -> None:
        """
        Args:
            scoring: Weighted relevance scoring instead of binary matching
        """
        self.scoring = scoring

    @property
    def name(self) -> str:
        return "search"

    def search_field(
        self,
        token: QueryToken,
        value: str,
        tokens: Optional[List[str]] = None,
    ) -> SearchResult:
        """
        Search one field with one query token.

        Args:
            token: Query token
            value: Cached lowercase field value
            tokens: Cached field tokens, if the field is tokenized

        Returns:
            SearchResult for this field and token
        """
        if token.quoted or tokens is None:
            if self.scoring:
                return calculate_search_score(token.value, value)
            if token.value in value:
                return SearchResult(score=1, ranges=find_occurrences(token.value, value))
            return SearchResult()

        if not self.scoring:
            if any(token.value in field_token for field_token in tokens):
                return SearchResult(score=1, ranges=find_occurrences(token.value, value))
            return SearchResult()

        result = SearchResult()
        for field_token in tokens:
            score = calculate_search_score(token.value, field_token).score
            if score > 0:
                result.score += score
        if result.score > 0:
            result.ranges = find_occurrences(token.value, value)
        return result

    def apply(
        self,
        handles: Sequence[RowHandle],
        store: "RowStore",
        fields: Sequence[str],
        query_tokens: Optional[List[QueryToken]],
    ) -> FilterResult:
        """
        Score rows and keep the matching ones.

        Args:
            handles: Rows that passed the filter stage
            store: Row store with metadata
            fields: Searchable field paths
            query_tokens: Compiled query, None when empty

        Returns:
            FilterResult with the kept handles in input order
        """
        if not query_tokens:
            return FilterResult(passed=list(handles), rejected_count=0)

        passed: List[RowHandle] = []
        for handle in handles:
            row = store.rows[handle]
            meta = store.metadata[handle]
            for field in fields:
                compare_value = meta.compare_values.get(field)
                if compare_value is None or not isinstance(
                    get_nested_value(row, field), str
                ):
                    continue

                field_tokens = meta.tokens.get(field)
                field_result = SearchResult()
                for token in query_tokens:
                    result = self.search_field(token, compare_value, field_tokens)
                    field_result.score += result.score
                    field_result.ranges.extend(result.ranges)

                if field_result.score > 0:
                    meta.search_score += field_result.score
                    meta.highlight_ranges[field] = field_result.ranges

            if meta.search_score > 0:
                passed.append(handle)

        return FilterResult(passed=passed, rejected_count=len(handles) - len(passed))
