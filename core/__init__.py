"""
Ace Match Engine - Core Business Logic

Investor-property matching for the rental marketplace:
1. Models (preference profiles, properties, queries, results)
2. Stores (read interfaces over preferences and the catalog)
3. Matching (evaluators, scorer, ranking, façade, digests)
"""

from .models import (
    PropertyStatus,
    NumericRange,
    PreferenceCriteria,
    InvestorPreferenceProfile,
    Property,
    MatchQuery,
    ScoreBreakdown,
    MatchResult,
    PropertyMatchPage,
    InvestorMatchList,
)
from .errors import (
    MatchingError,
    StoreUnavailable,
    ProfileLookupFailed,
    CatalogLookupFailed,
    InvalidQuery,
    PropertyNotFound,
    MatchDeadlineExceeded,
)
from .stores import (
    PreferenceStore,
    PropertyStore,
    PreferenceRepository,
    PropertyRepository,
    get_preference_repository,
    get_property_repository,
    reset_repositories,
)
from .matching import MatchingEngine, MatchPolicy, MatchScorer, MatchWeights

__all__ = [
    # Models
    "PropertyStatus",
    "NumericRange",
    "PreferenceCriteria",
    "InvestorPreferenceProfile",
    "Property",
    "MatchQuery",
    "ScoreBreakdown",
    "MatchResult",
    "PropertyMatchPage",
    "InvestorMatchList",
    # Errors
    "MatchingError",
    "StoreUnavailable",
    "ProfileLookupFailed",
    "CatalogLookupFailed",
    "InvalidQuery",
    "PropertyNotFound",
    "MatchDeadlineExceeded",
    # Stores
    "PreferenceStore",
    "PropertyStore",
    "PreferenceRepository",
    "PropertyRepository",
    "get_preference_repository",
    "get_property_repository",
    "reset_repositories",
    # Matching
    "MatchingEngine",
    "MatchPolicy",
    "MatchScorer",
    "MatchWeights",
]
