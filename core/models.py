"""
Data models for the matching engine.

Preference fields are optional one by one: an unset range is ``None`` and an
unset tag set is empty, so "unset" is a typed state rather than a missing
key in a JSON blob. Money is always held in minor units (pence).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Final, Iterable, List, Optional

from .errors import InvalidQuery


# =============================================================================
# Query Defaults
# =============================================================================

DEFAULT_MIN_SCORE: Final[int] = 60
DEFAULT_LIMIT: Final[int] = 20
MAX_LIMIT: Final[int] = 50


# =============================================================================
# Helpers
# =============================================================================


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO-8601 string (or pass through a datetime) as aware UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalise_tags(values: Optional[Iterable[str]]) -> frozenset:
    """Lower-case, strip and de-duplicate a collection of tags."""
    if not values:
        return frozenset()
    return frozenset(
        str(v).strip().lower() for v in values if v is not None and str(v).strip()
    )


def new_profile_id() -> str:
    """Generate a unique preference profile id."""
    return f"PREF-{uuid.uuid4().hex[:12].upper()}"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


# =============================================================================
# Enums
# =============================================================================


class PropertyStatus(Enum):
    """Listing lifecycle status. Only ACTIVE listings are matched for investors."""

    ACTIVE = "active"
    PENDING = "pending"
    DRAFT = "draft"
    ARCHIVED = "archived"

    @classmethod
    def from_string(cls, value: str) -> Optional["PropertyStatus"]:
        """Convert string to PropertyStatus, case-insensitive."""
        normalised = value.lower().strip()
        for member in cls:
            if member.value == normalised:
                return member
        return None


# =============================================================================
# Preference Profile
# =============================================================================


@dataclass(frozen=True)
class NumericRange:
    """
    Inclusive range. Either bound may be open (None), but not both.
    """

    min: Optional[int] = None
    max: Optional[int] = None

    def __post_init__(self):
        if self.min is None and self.max is None:
            raise ValueError("range needs at least one bound")
        if self.min is not None and self.min < 0:
            raise ValueError("range min must be non-negative")
        if self.min is not None and self.max is not None and self.max < self.min:
            raise ValueError("range max must be >= min")

    def contains(self, value: int) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True

    @property
    def width(self) -> Optional[int]:
        """Range width, or None when one side is open."""
        if self.min is None or self.max is None:
            return None
        return self.max - self.min

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: Optional[dict], scale: int = 1) -> Optional["NumericRange"]:
        """Build a range from ``{min, max}``; returns None when both are missing."""
        if not data:
            return None
        low = _optional_int(data.get("min"))
        high = _optional_int(data.get("max"))
        if low is None and high is None:
            return None
        return cls(
            min=low * scale if low is not None else None,
            max=high * scale if high is not None else None,
        )


@dataclass(frozen=True)
class PreferenceCriteria:
    """
    An investor's desired property attributes.

    Every field is independently optional. A criteria object with no field
    set means "no preferences configured".
    """

    price_range: Optional[NumericRange] = None
    bedrooms_range: Optional[NumericRange] = None
    property_types: frozenset = field(default_factory=frozenset)
    locations: frozenset = field(default_factory=frozenset)
    amenities: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable of strings and store normalised frozensets
        object.__setattr__(self, "property_types", normalise_tags(self.property_types))
        object.__setattr__(self, "locations", normalise_tags(self.locations))
        object.__setattr__(self, "amenities", normalise_tags(self.amenities))

    @property
    def is_empty(self) -> bool:
        """True when no criterion is set at all."""
        return (
            self.price_range is None
            and self.bedrooms_range is None
            and not self.property_types
            and not self.locations
            and not self.amenities
        )

    def to_dict(self) -> dict:
        """Convert to the camelCase JSON shape used by the API."""
        return {
            "priceRange": self.price_range.to_dict() if self.price_range else None,
            "bedroomsRange": self.bedrooms_range.to_dict() if self.bedrooms_range else None,
            "propertyTypes": sorted(self.property_types),
            "locations": sorted(self.locations),
            "amenities": sorted(self.amenities),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PreferenceCriteria":
        """
        Parse criteria JSON.

        Accepts the current camelCase shape, and the legacy nested shape
        written by the old preferences form (``budget`` in whole pounds,
        ``bedrooms``, ``property_types`` and ``locations`` entries of
        ``{city, localAuthorities}``). Named authorities replace the city;
        an entry with no authorities keeps the whole city.
        """
        if not data:
            return cls()

        if "priceRange" in data:
            price_range = NumericRange.from_dict(data.get("priceRange"))
        else:
            # Legacy budget is whole pounds
            price_range = NumericRange.from_dict(data.get("budget"), scale=100)

        bedrooms_range = NumericRange.from_dict(
            data.get("bedroomsRange") or data.get("bedrooms")
        )

        locations: List[str] = []
        for entry in data.get("locations") or []:
            if isinstance(entry, dict):
                # Named authorities narrow the city; an empty list means all of it
                authorities = entry.get("localAuthorities") or []
                if authorities:
                    locations.extend(authorities)
                elif entry.get("city"):
                    locations.append(entry["city"])
            else:
                locations.append(entry)

        return cls(
            price_range=price_range,
            bedrooms_range=bedrooms_range,
            property_types=data.get("propertyTypes") or data.get("property_types") or (),
            locations=locations,
            amenities=data.get("amenities") or (),
        )


@dataclass(frozen=True)
class InvestorPreferenceProfile:
    """
    A stored preference profile.

    An investor has at most one active profile; inactive profiles are kept
    for history but never scored.
    """

    investor_id: str
    criteria: PreferenceCriteria
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    profile_id: str = ""
    notifications_enabled: bool = True

    def __post_init__(self):
        if not self.investor_id:
            raise ValueError("investor_id is required")
        object.__setattr__(self, "created_at", parse_datetime(self.created_at))
        if not self.profile_id:
            object.__setattr__(self, "profile_id", new_profile_id())

    @property
    def has_preferences(self) -> bool:
        return self.is_active and not self.criteria.is_empty

    def to_dict(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "investor_id": self.investor_id,
            "criteria": self.criteria.to_dict(),
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "notifications_enabled": self.notifications_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InvestorPreferenceProfile":
        return cls(
            investor_id=data["investor_id"],
            criteria=PreferenceCriteria.from_dict(
                data.get("criteria") or data.get("preference_data")
            ),
            is_active=bool(data.get("is_active", True)),
            created_at=parse_datetime(data["created_at"]) if data.get("created_at") else utc_now(),
            profile_id=data.get("profile_id") or data.get("id") or "",
            notifications_enabled=bool(data.get("notifications_enabled", True)),
        )


# =============================================================================
# Property
# =============================================================================


@dataclass(frozen=True)
class Property:
    """
    A rental listing as handed over by the landlord CRUD layer.

    Missing attributes never raise during scoring: absent amenities become
    the empty set, absent numbers are treated as zero by the evaluators.
    """

    id: str
    status: PropertyStatus
    price_monthly: Optional[int]  # pence
    bedrooms: Optional[int]
    property_type: str = ""
    city: str = ""
    postcode: str = ""
    amenities: frozenset = field(default_factory=frozenset)
    created_at: datetime = field(default_factory=utc_now)
    local_authority: str = ""
    title: str = ""

    def __post_init__(self):
        if not self.id:
            raise ValueError("id is required")
        if isinstance(self.status, str):
            status = PropertyStatus.from_string(self.status)
            if status is None:
                raise ValueError(f"unknown property status: {self.status}")
            object.__setattr__(self, "status", status)
        object.__setattr__(self, "amenities", normalise_tags(self.amenities))
        object.__setattr__(self, "created_at", parse_datetime(self.created_at))

    @property
    def is_active(self) -> bool:
        return self.status == PropertyStatus.ACTIVE

    @property
    def display_title(self) -> str:
        """Title for notifications, falling back to type and town."""
        if self.title:
            return self.title
        parts = [p for p in (self.property_type.title(), self.city) if p]
        return " in ".join(parts) if parts else self.id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status.value,
            "price_monthly": self.price_monthly,
            "bedrooms": self.bedrooms,
            "property_type": self.property_type,
            "city": self.city,
            "postcode": self.postcode,
            "amenities": sorted(self.amenities),
            "created_at": self.created_at.isoformat(),
            "local_authority": self.local_authority,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Property":
        return cls(
            id=str(data["id"]),
            status=data.get("status", "active"),
            price_monthly=_optional_int(data.get("price_monthly")),
            bedrooms=_optional_int(data.get("bedrooms")),
            property_type=data.get("property_type") or "",
            city=data.get("city") or "",
            postcode=data.get("postcode") or "",
            amenities=data.get("amenities") or (),
            created_at=parse_datetime(data["created_at"]) if data.get("created_at") else utc_now(),
            local_authority=data.get("local_authority") or "",
            title=data.get("title") or "",
        )


# =============================================================================
# Query
# =============================================================================


@dataclass(frozen=True)
class MatchQuery:
    """
    Match request parameters.

    ``limit=None`` means "no pagination" and is used by the inverse
    (property -> investors) query. Pagination always applies after
    filtering and sorting.
    """

    min_score: int = DEFAULT_MIN_SCORE
    limit: Optional[int] = DEFAULT_LIMIT
    offset: int = 0

    def validate(self, max_limit: int = MAX_LIMIT) -> "MatchQuery":
        """
        Check bounds and return a copy with ``limit`` capped at ``max_limit``.

        Raises:
            InvalidQuery: if min_score, limit or offset is out of range
        """
        if not _is_int(self.min_score) or not 0 <= self.min_score <= 100:
            raise InvalidQuery("minScore", "must be an integer between 0 and 100")
        if self.limit is not None and (not _is_int(self.limit) or self.limit <= 0):
            raise InvalidQuery("limit", "must be a positive integer")
        if not _is_int(self.offset) or self.offset < 0:
            raise InvalidQuery("offset", "must be a non-negative integer")

        if self.limit is not None and self.limit > max_limit:
            return replace(self, limit=max_limit)
        return self

    @classmethod
    def from_page(
        cls,
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
        min_score: int = DEFAULT_MIN_SCORE,
        offset: Optional[int] = None,
        max_limit: int = MAX_LIMIT,
    ) -> "MatchQuery":
        """Build a query from page-style parameters; explicit offset wins over page."""
        if page < 1:
            raise InvalidQuery("page", "must be >= 1")
        effective_limit = min(limit, max_limit) if limit > 0 else limit
        if offset is None:
            offset = (page - 1) * max(effective_limit, 0)
        return cls(min_score=min_score, limit=effective_limit, offset=offset)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-criterion sub-scores (0-100), rounded for display."""

    price: int
    bedrooms: int
    property_type: int
    location: int
    amenities: int

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "bedrooms": self.bedrooms,
            "propertyType": self.property_type,
            "location": self.location,
            "amenities": self.amenities,
        }


@dataclass(frozen=True)
class MatchResult:
    """
    Score for one (profile, property) pair, keyed by the iterated entity.

    Never persisted: results are recomputed on every query.
    """

    entity_id: str
    score: int
    created_at: datetime
    breakdown: ScoreBreakdown
    scored_at: datetime = field(default_factory=utc_now)

    def to_dict(self, id_key: str = "id") -> dict:
        return {
            id_key: self.entity_id,
            "matchScore": self.score,
            "matchBreakdown": self.breakdown.to_dict(),
            "scoredAt": self.scored_at.isoformat(),
        }


@dataclass
class PropertyMatchPage:
    """Ranked, paginated properties for one investor."""

    results: List[MatchResult]
    total: int
    has_preferences: bool
    preferences: Optional[PreferenceCriteria] = None
    limit: Optional[int] = None
    offset: int = 0
    properties: Dict[str, Property] = field(default_factory=dict)

    @property
    def page(self) -> int:
        if not self.limit:
            return 1
        return self.offset // self.limit + 1

    @property
    def total_pages(self) -> int:
        if not self.limit:
            return 1 if self.total else 0
        return -(-self.total // self.limit)

    @classmethod
    def no_preferences(cls, query: MatchQuery) -> "PropertyMatchPage":
        return cls(
            results=[],
            total=0,
            has_preferences=False,
            preferences=None,
            limit=query.limit,
            offset=query.offset,
        )


@dataclass
class InvestorMatchList:
    """Ranked investors whose preferences match one property."""

    property_id: str
    results: List[MatchResult]
    total: int
