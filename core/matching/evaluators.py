"""
Criterion Evaluators

One pure function per matchable attribute. Each returns a sub-score in
[0, 100] as a Decimal so the aggregate can be rounded exactly once:
- Price (range with linear decay outside it)
- Bedrooms (range with a fixed penalty per bedroom of deviation)
- Property type (categorical, no partial credit)
- Location (city, postcode prefix, or expanded local authority)
- Amenities (coverage of the requested set)

Every evaluator is total: an unset preference scores 100 and a missing
property attribute is read as zero / empty instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Final, FrozenSet, Optional

from core.locations import expand_areas
from core.models import NumericRange


# =============================================================================
# Configuration Constants
# =============================================================================

FULL_SCORE: Final[Decimal] = Decimal(100)
NO_SCORE: Final[Decimal] = Decimal(0)

# Price decays to 0 across this share of the range width
PRICE_DECAY_RATIO: Final[Decimal] = Decimal("0.5")

# Decay span for an exact target price (min == max), in pence
PRICE_EXACT_TARGET_CAP: Final[int] = 10_000

# Points lost per bedroom outside the preferred range
BEDROOM_PENALTY_PER_STEP: Final[int] = 25


class Criterion(Enum):
    """Matchable attribute dimensions."""
    PRICE = "price"
    BEDROOMS = "bedrooms"
    PROPERTY_TYPE = "property_type"
    LOCATION = "location"
    AMENITIES = "amenities"


@dataclass(frozen=True)
class MatchWeights:
    """
    Fixed criterion weights. Must sum to 100.

    Tunable policy, not a per-request parameter.
    """
    price: int = 30
    bedrooms: int = 20
    property_type: int = 20
    location: int = 20
    amenities: int = 10

    def __post_init__(self):
        values = (self.price, self.bedrooms, self.property_type, self.location, self.amenities)
        if any(v < 0 for v in values):
            raise ValueError("weights must be non-negative")
        if sum(values) != 100:
            raise ValueError(f"weights must sum to 100, got {sum(values)}")

    def weight_for(self, criterion: Criterion) -> int:
        return getattr(self, criterion.value)


DEFAULT_WEIGHTS: Final[MatchWeights] = MatchWeights()


@dataclass(frozen=True)
class CriterionScore:
    """Sub-score for one criterion together with its weight."""
    criterion: Criterion
    sub_score: Decimal
    weight: int

    @property
    def weighted(self) -> Decimal:
        return self.sub_score * self.weight


# =============================================================================
# Numeric Criteria
# =============================================================================


def _distance_outside(value: int, bounds: NumericRange) -> int:
    """Distance from value to the nearest bound; 0 when inside."""
    if bounds.min is not None and value < bounds.min:
        return bounds.min - value
    if bounds.max is not None and value > bounds.max:
        return value - bounds.max
    return 0


def _price_decay_span(price_range: NumericRange) -> Decimal:
    """
    Distance at which the price sub-score reaches 0.

    Half the range width; an exact target uses the absolute cap; a
    one-sided range uses half of its single bound.
    """
    width = price_range.width
    if width is None:
        bound = price_range.min if price_range.min is not None else price_range.max
        span = Decimal(bound) * PRICE_DECAY_RATIO
    elif width == 0:
        span = Decimal(0)
    else:
        span = Decimal(width) * PRICE_DECAY_RATIO

    if span <= 0:
        return Decimal(PRICE_EXACT_TARGET_CAP)
    return span


def score_price(price_range: Optional[NumericRange], price_monthly: Optional[int]) -> Decimal:
    """
    Price sub-score (0-100).

    100 inside the range, then linear decay to 0 at the decay span.
    """
    if price_range is None:
        return FULL_SCORE

    distance = _distance_outside(price_monthly or 0, price_range)
    if distance == 0:
        return FULL_SCORE

    span = _price_decay_span(price_range)
    if distance >= span:
        return NO_SCORE
    return FULL_SCORE * (1 - Decimal(distance) / span)


def score_bedrooms(bedrooms_range: Optional[NumericRange], bedrooms: Optional[int]) -> Decimal:
    """
    Bedroom sub-score (0-100).

    100 inside the range, minus a fixed penalty per bedroom outside it.
    """
    if bedrooms_range is None:
        return FULL_SCORE

    deviation = _distance_outside(bedrooms or 0, bedrooms_range)
    return max(NO_SCORE, FULL_SCORE - deviation * BEDROOM_PENALTY_PER_STEP)


# =============================================================================
# Categorical Criteria
# =============================================================================


def score_property_type(property_types: FrozenSet[str], property_type: Optional[str]) -> Decimal:
    """Property type sub-score: exact membership or nothing."""
    if not property_types:
        return FULL_SCORE
    normalised = (property_type or "").strip().lower()
    return FULL_SCORE if normalised in property_types else NO_SCORE


def _compact(value: Optional[str]) -> str:
    """Lower-case and drop all whitespace (postcode comparison form)."""
    return "".join((value or "").split()).lower()


@lru_cache(maxsize=1024)
def _expanded_authorities(locations: FrozenSet[str]) -> FrozenSet[str]:
    return expand_areas(locations)


def score_location(
    locations: FrozenSet[str],
    city: Optional[str],
    postcode: Optional[str],
    local_authority: Optional[str] = None,
) -> Decimal:
    """
    Location sub-score: 100 on any match, else 0.

    Matches when the city equals a preferred token, the postcode starts
    with a preferred prefix, or the city / local authority lies inside an
    area a preferred token names.
    """
    if not locations:
        return FULL_SCORE

    city_key = (city or "").strip().lower()
    if city_key and city_key in locations:
        return FULL_SCORE

    compact_postcode = _compact(postcode)
    if compact_postcode:
        for token in locations:
            prefix = _compact(token)
            if prefix and compact_postcode.startswith(prefix):
                return FULL_SCORE

    authorities = _expanded_authorities(locations)
    authority_key = (local_authority or "").strip().lower()
    if authority_key and authority_key in authorities:
        return FULL_SCORE
    if city_key and city_key in authorities:
        return FULL_SCORE

    return NO_SCORE


def score_amenities(preferred: FrozenSet[str], available: Optional[FrozenSet[str]]) -> Decimal:
    """
    Amenity sub-score: share of requested amenities the property has.

    Extra amenities outside the requested set neither help nor hurt.
    """
    if not preferred:
        return FULL_SCORE
    covered = len(preferred & (available or frozenset()))
    return FULL_SCORE * covered / len(preferred)
