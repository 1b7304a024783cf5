"""
Match Routes - Investor/Property Matching API

Routes:
- GET /api/investors/{investor_id}/matched-properties - Ranked properties for an investor
- GET /api/properties/{property_id}/matched-investors - Ranked investors for a property

Authentication and authorisation (investor-for-self, admin-for-any) happen
upstream; these routes receive an already validated id.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from core.matching import MatchingEngine
from core.models import MatchQuery, MatchResult, Property
from core.stores import get_preference_repository, get_property_repository
from utils.config import Config
from utils.formatting import format_pence


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api", tags=["matching"])


# =============================================================================
# Engine Dependency
# =============================================================================

_engine_instance: Optional[MatchingEngine] = None


def get_matching_engine() -> MatchingEngine:
    """Get the matching engine singleton, wired to the repository singletons."""
    global _engine_instance
    if _engine_instance is None:
        config = Config.load()
        _engine_instance = MatchingEngine(
            preference_store=get_preference_repository(config.preferences_path),
            property_store=get_property_repository(config.properties_path),
            policy=config.match_policy(),
        )
    return _engine_instance


def reset_matching_engine() -> None:
    """Reset the singleton instance (for testing)."""
    global _engine_instance
    _engine_instance = None


# =============================================================================
# Serialisation
# =============================================================================


class MatchBreakdownOut(BaseModel):
    price: int
    bedrooms: int
    propertyType: int
    location: int
    amenities: int


class MatchedInvestorOut(BaseModel):
    investorId: str
    matchScore: int
    matchBreakdown: MatchBreakdownOut
    scoredAt: datetime


class MatchedInvestorsResponse(BaseModel):
    success: bool = True
    investors: List[MatchedInvestorOut]


def property_card(prop: Property) -> dict:
    """Listing fields shown next to a match score."""
    return {
        "id": prop.id,
        "title": prop.display_title,
        "propertyType": prop.property_type,
        "bedrooms": prop.bedrooms,
        "city": prop.city,
        "postcode": prop.postcode,
        "localAuthority": prop.local_authority,
        "monthlyRent": prop.price_monthly,
        "monthlyRentFormatted": format_pence(prop.price_monthly),
        "amenities": sorted(prop.amenities),
        "createdAt": prop.created_at.isoformat(),
    }


def matched_property(result: MatchResult, prop: Property) -> dict:
    return {
        **property_card(prop),
        "matchScore": result.score,
        "matchBreakdown": result.breakdown.to_dict(),
    }


# =============================================================================
# Routes
# =============================================================================


@router.get("/investors/{investor_id}/matched-properties")
def matched_properties(
    investor_id: str,
    min_score: Optional[int] = Query(None, alias="minScore"),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    page: int = Query(1),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    """
    Ranked active properties for an investor.

    Offset defaults to (page - 1) * limit. Limit is capped at the configured
    maximum. Investors without preferences get an empty, successful response
    with hasPreferences=false.
    """
    policy = engine.policy
    query = MatchQuery.from_page(
        page=page,
        limit=policy.default_limit if limit is None else limit,
        min_score=policy.default_min_score if min_score is None else min_score,
        offset=offset,
        max_limit=policy.max_limit,
    )
    result = engine.match_properties_for_investor(investor_id, query)

    response = {
        "success": True,
        "properties": [
            matched_property(r, result.properties[r.entity_id]) for r in result.results
        ],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "totalPages": result.total_pages,
        "hasPreferences": result.has_preferences,
    }
    if result.has_preferences:
        response["preferences"] = {"criteria": result.preferences.to_dict()}
    else:
        response["message"] = "No preferences set up yet"
    return response


@router.get(
    "/properties/{property_id}/matched-investors",
    response_model=MatchedInvestorsResponse,
)
def matched_investors(
    property_id: str,
    min_score: Optional[int] = Query(None, alias="minScore"),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    """All investors whose active preferences match a property, best first."""
    query = MatchQuery(
        min_score=engine.policy.default_min_score if min_score is None else min_score,
        limit=None,
    )
    result = engine.match_investors_for_property(property_id, query)
    return {
        "success": True,
        "investors": [r.to_dict(id_key="investorId") for r in result.results],
    }
