"""
Shared fixtures for the matching tests.
"""

import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.models import (
    InvestorPreferenceProfile,
    NumericRange,
    PreferenceCriteria,
    Property,
    PropertyStatus,
)
from core.stores import PreferenceRepository, PropertyRepository, reset_repositories


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def now():
    """Fixed reference time for deterministic tests."""
    return NOW


@pytest.fixture
def make_property():
    """Factory for properties with sensible defaults (a 2-bed flat at £1,200 pcm)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = dict(
            id=f"prop-{counter['n']:03d}",
            status=PropertyStatus.ACTIVE,
            price_monthly=120000,
            bedrooms=2,
            property_type="flat",
            city="Manchester",
            postcode="M1 4BT",
            amenities=frozenset({"parking"}),
            created_at=NOW - timedelta(days=counter["n"]),
            local_authority="Manchester",
        )
        values.update(overrides)
        return Property(**values)

    return _make


@pytest.fixture
def make_profile():
    """Factory for active investor profiles."""
    counter = {"n": 0}

    def _make(investor_id=None, criteria=None, **overrides):
        counter["n"] += 1
        values = dict(
            investor_id=investor_id or f"inv-{counter['n']:03d}",
            criteria=criteria if criteria is not None else PreferenceCriteria(),
            created_at=NOW - timedelta(days=counter["n"]),
        )
        values.update(overrides)
        return InvestorPreferenceProfile(**values)

    return _make


@pytest.fixture
def flat_criteria():
    """£1,000-£1,500 pcm, 2-3 bed flats."""
    return PreferenceCriteria(
        price_range=NumericRange(min=100000, max=150000),
        bedrooms_range=NumericRange(min=2, max=3),
        property_types={"flat"},
    )


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def preference_repo():
    """In-memory preference repository."""
    return PreferenceRepository()


@pytest.fixture
def property_repo():
    """In-memory property repository."""
    return PropertyRepository()


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_repositories()
    yield
    reset_repositories()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
