"""
Ranking & Pagination

Applies, in this order:
1. Threshold filter (drop score < min_score)
2. Sort: score desc, created_at desc (newer first), entity id asc
3. Offset, then limit

The reported total counts everything that survived step 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.models import MatchResult


@dataclass
class RankedPage:
    """A page of ranked results and the pre-pagination total."""
    results: List[MatchResult]
    total: int


def sort_key(result: MatchResult):
    return (-result.score, -result.created_at.timestamp(), result.entity_id)


def filter_by_min_score(results: Iterable[MatchResult], min_score: int) -> List[MatchResult]:
    """Keep results scoring at least ``min_score``."""
    return [r for r in results if r.score >= min_score]


def sort_results(results: Iterable[MatchResult]) -> List[MatchResult]:
    """Total, deterministic ordering of match results."""
    return sorted(results, key=sort_key)


def paginate(results: List[MatchResult], offset: int, limit: Optional[int]) -> List[MatchResult]:
    """Slice a sorted list. ``limit=None`` returns everything from offset."""
    if limit is None:
        return results[offset:]
    return results[offset:offset + limit]


def rank_and_paginate(
    results: Iterable[MatchResult],
    min_score: int,
    offset: int = 0,
    limit: Optional[int] = None,
) -> RankedPage:
    """
    Filter, sort and paginate scored pairs.

    Args:
        results: Scored pairs, in any order
        min_score: Inclusive threshold
        offset: Number of ranked results to skip
        limit: Page size, or None for no limit

    Returns:
        RankedPage with the requested slice and the filtered total
    """
    ranked = sort_results(filter_by_min_score(results, min_score))
    return RankedPage(
        results=paginate(ranked, offset, limit),
        total=len(ranked),
    )
