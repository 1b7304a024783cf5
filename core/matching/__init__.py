"""
Investor-Property Matching Engine

Deterministic, rule-based scoring of investor preference profiles against
the property catalog:
1. Criterion evaluators (price, bedrooms, type, location, amenities)
2. Score aggregation (weighted, rounded half-up once)
3. Ranking & pagination (score, recency, id)
4. Bidirectional façade (properties for investor, investors for property)
5. Preference profile resolution
"""

from .evaluators import (
    Criterion,
    CriterionScore,
    MatchWeights,
    DEFAULT_WEIGHTS,
    score_price,
    score_bedrooms,
    score_property_type,
    score_location,
    score_amenities,
)
from .scorer import MatchScorer, round_half_up
from .ranking import RankedPage, rank_and_paginate
from .resolver import PreferenceProfileResolver
from .digest import MatchDigest, render_digest
from .engine import MatchingEngine, MatchPolicy

__all__ = [
    # Evaluators
    "Criterion",
    "CriterionScore",
    "MatchWeights",
    "DEFAULT_WEIGHTS",
    "score_price",
    "score_bedrooms",
    "score_property_type",
    "score_location",
    "score_amenities",
    # Aggregation & ranking
    "MatchScorer",
    "round_half_up",
    "RankedPage",
    "rank_and_paginate",
    # Façade
    "PreferenceProfileResolver",
    "MatchingEngine",
    "MatchPolicy",
    # Digest
    "MatchDigest",
    "render_digest",
]
