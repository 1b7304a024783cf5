"""
Match score aggregation.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from core.models import PreferenceCriteria, Property, ScoreBreakdown

from .evaluators import (
    DEFAULT_WEIGHTS,
    Criterion,
    CriterionScore,
    MatchWeights,
    score_amenities,
    score_bedrooms,
    score_location,
    score_price,
    score_property_type,
)


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class MatchScorer:
    """
    Combines weighted criterion sub-scores into one 0-100 integer.

    score = round_half_up(sum(weight_i * subscore_i) / 100), clamped.

    Rounding happens once, at the end, on exact Decimal arithmetic, so the
    same (criteria, property) pair always gives the same integer. The
    scorer only sees criteria and a property; it does not know which side
    of a query was fixed.
    """

    def __init__(self, weights: Optional[MatchWeights] = None):
        self.weights = weights or DEFAULT_WEIGHTS

    def evaluate(self, criteria: PreferenceCriteria, prop: Property) -> List[CriterionScore]:
        """Run every criterion evaluator for one pair."""
        w = self.weights
        return [
            CriterionScore(
                Criterion.PRICE,
                score_price(criteria.price_range, prop.price_monthly),
                w.price,
            ),
            CriterionScore(
                Criterion.BEDROOMS,
                score_bedrooms(criteria.bedrooms_range, prop.bedrooms),
                w.bedrooms,
            ),
            CriterionScore(
                Criterion.PROPERTY_TYPE,
                score_property_type(criteria.property_types, prop.property_type),
                w.property_type,
            ),
            CriterionScore(
                Criterion.LOCATION,
                score_location(
                    criteria.locations, prop.city, prop.postcode, prop.local_authority
                ),
                w.location,
            ),
            CriterionScore(
                Criterion.AMENITIES,
                score_amenities(criteria.amenities, prop.amenities),
                w.amenities,
            ),
        ]

    @staticmethod
    def aggregate(scores: List[CriterionScore]) -> int:
        total = sum((s.weighted for s in scores), Decimal(0)) / 100
        return max(0, min(100, round_half_up(total)))

    def score(self, criteria: PreferenceCriteria, prop: Property) -> int:
        """Match score (0-100) for one pair."""
        return self.aggregate(self.evaluate(criteria, prop))

    def score_with_breakdown(
        self,
        criteria: PreferenceCriteria,
        prop: Property,
    ) -> Tuple[int, ScoreBreakdown]:
        """Match score plus the per-criterion sub-scores behind it."""
        scores = self.evaluate(criteria, prop)
        by_criterion = {s.criterion: round_half_up(s.sub_score) for s in scores}
        breakdown = ScoreBreakdown(
            price=by_criterion[Criterion.PRICE],
            bedrooms=by_criterion[Criterion.BEDROOMS],
            property_type=by_criterion[Criterion.PROPERTY_TYPE],
            location=by_criterion[Criterion.LOCATION],
            amenities=by_criterion[Criterion.AMENITIES],
        )
        return self.aggregate(scores), breakdown
