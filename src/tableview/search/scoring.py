"""
Tiered Relevance Scoring.

    1. Exact match:     weight 100
    2. Prefix match:    weight 50
    3. Substring match: weight 10

score = len(query) * weight * 1 / (1 + len(target) - len(query))

The specificity bonus ranks exact and length-proximate matches above long
targets that merely contain a short needle.
"""

from __future__ import annotations

from typing import List

from tableview.domain.value_objects import HighlightRange, SearchResult

EXACT_WEIGHT = 100
PREFIX_WEIGHT = 50
SUBSTRING_WEIGHT = 10


def find_occurrences(needle: str, haystack: str) -> List[HighlightRange]:
    """Every, possibly overlapping, occurrence of needle as [start, end)."""
    ranges: List[HighlightRange] = []
    if not needle:
        return ranges
    cursor = haystack.find(needle)
    while cursor != -1:
        ranges.append((cursor, cursor + len(needle)))
        cursor = haystack.find(needle, cursor + 1)
    return ranges


def calculate_search_score(query: str, target: str) -> SearchResult:
    """
    Score how well a query matches a target string.

    Args:
        query: Lowercased search term
        target: Lowercased value being searched

    Returns:
        SearchResult; score 0 and no ranges when nothing matches
    """
    result = SearchResult()
    if not query or not target:
        return result

    if target == query:
        weight = EXACT_WEIGHT
        result.ranges.append((0, len(target)))
    elif target.startswith(query):
        weight = PREFIX_WEIGHT
        result.ranges.append((0, len(query)))
    else:
        ranges = find_occurrences(query, target)
        if not ranges:
            return result
        weight = SUBSTRING_WEIGHT
        result.ranges.extend(ranges)

    specificity_bonus = 1 / (1 + (len(target) - len(query)))
    result.score = len(query) * weight * specificity_bonus
    return result
