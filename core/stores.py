"""
Preference and Property Stores

The matching engine only reads from these. Profiles are written by the
investor preferences flow and properties by landlord CRUD; both sit
outside the engine and are represented here by their read interface.

The repositories below are in-memory with optional JSON file persistence.
Production should back the same interfaces with the primary database.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.errors import StoreUnavailable
from core.models import InvestorPreferenceProfile, Property, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Read Interfaces
# =============================================================================


class PreferenceStore(ABC):
    """Read access to investor preference profiles."""

    @abstractmethod
    def get_active_profile(self, investor_id: str) -> Optional[InvestorPreferenceProfile]:
        """
        Return the investor's single active profile.

        Returns:
            The active profile, or None if the investor has none.

        Raises:
            StoreUnavailable: if storage cannot be read
        """

    @abstractmethod
    def list_active_profiles(self) -> List[InvestorPreferenceProfile]:
        """Return every active profile (one per investor at most)."""


class PropertyStore(ABC):
    """Read access to the property catalog."""

    @abstractmethod
    def get_property(self, property_id: str) -> Optional[Property]:
        """Return a property in any status, or None if unknown."""

    @abstractmethod
    def list_active_properties(self) -> List[Property]:
        """Return every property with status ACTIVE."""

    def list_active_since(self, since: datetime) -> List[Property]:
        """Return active properties created at or after ``since``."""
        return [p for p in self.list_active_properties() if p.created_at >= since]


# =============================================================================
# JSON-backed Repositories
# =============================================================================


class _JsonRepository:
    """Shared file persistence for the repositories below."""

    root_key = "records"

    def __init__(self, persist_path: Optional[str] = None):
        self._persist_path = Path(persist_path) if persist_path else None
        self._load_error: Optional[str] = None

    def _check_available(self) -> None:
        if self._load_error:
            raise StoreUnavailable(self._load_error)

    def _read_records(self) -> List[dict]:
        if not self._persist_path or not self._persist_path.exists():
            return []
        try:
            data = json.loads(self._persist_path.read_text())
            return list(data.get(self.root_key, []))
        except (json.JSONDecodeError, OSError, AttributeError) as e:
            # Keep the process up; reads raise until the repository is rebuilt
            self._load_error = f"could not load {self._persist_path}: {e}"
            logger.error("Repository unavailable: %s", self._load_error)
            return []

    def _write_records(self, records: List[dict]) -> None:
        if not self._persist_path:
            return
        data = {
            self.root_key: records,
            "saved_at": utc_now().isoformat(),
        }
        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2))


class PreferenceRepository(_JsonRepository, PreferenceStore):
    """
    Investor preference profiles keyed by profile id.

    Saving an active profile deactivates the investor's previous active
    profile, so at most one is active per investor.
    """

    root_key = "profiles"

    def __init__(self, persist_path: Optional[str] = None):
        super().__init__(persist_path)
        self._profiles: dict[str, InvestorPreferenceProfile] = {}
        for record in self._read_records():
            try:
                profile = InvestorPreferenceProfile.from_dict(record)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping malformed preference record: %s", e)
                continue
            self._profiles[profile.profile_id] = profile

    def _save_to_file(self) -> None:
        self._write_records([p.to_dict() for p in self._profiles.values()])

    def save(self, profile: InvestorPreferenceProfile) -> InvestorPreferenceProfile:
        """Insert or replace a profile."""
        self._check_available()
        if profile.is_active:
            for pid, existing in list(self._profiles.items()):
                if (
                    pid != profile.profile_id
                    and existing.investor_id == profile.investor_id
                    and existing.is_active
                ):
                    self._profiles[pid] = replace(existing, is_active=False)
        self._profiles[profile.profile_id] = profile
        self._save_to_file()
        return profile

    def get(self, profile_id: str) -> Optional[InvestorPreferenceProfile]:
        self._check_available()
        return self._profiles.get(profile_id)

    def delete(self, profile_id: str) -> bool:
        """Delete a profile. Returns False if it did not exist."""
        self._check_available()
        if profile_id in self._profiles:
            del self._profiles[profile_id]
            self._save_to_file()
            return True
        return False

    def list_for_investor(self, investor_id: str) -> List[InvestorPreferenceProfile]:
        """All profiles for an investor, newest first, active and historical."""
        self._check_available()
        profiles = [p for p in self._profiles.values() if p.investor_id == investor_id]
        return sorted(profiles, key=lambda p: p.created_at, reverse=True)

    def get_active_profile(self, investor_id: str) -> Optional[InvestorPreferenceProfile]:
        self._check_available()
        for profile in self._profiles.values():
            if profile.investor_id == investor_id and profile.is_active:
                return profile
        return None

    def list_active_profiles(self) -> List[InvestorPreferenceProfile]:
        self._check_available()
        return [p for p in self._profiles.values() if p.is_active]


class PropertyRepository(_JsonRepository, PropertyStore):
    """Property catalog keyed by property id."""

    root_key = "properties"

    def __init__(self, persist_path: Optional[str] = None):
        super().__init__(persist_path)
        self._properties: dict[str, Property] = {}
        for record in self._read_records():
            try:
                prop = Property.from_dict(record)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping malformed property record: %s", e)
                continue
            self._properties[prop.id] = prop

    def _save_to_file(self) -> None:
        self._write_records([p.to_dict() for p in self._properties.values()])

    def save(self, prop: Property) -> Property:
        """Insert or replace a property."""
        self._check_available()
        self._properties[prop.id] = prop
        self._save_to_file()
        return prop

    def delete(self, property_id: str) -> bool:
        self._check_available()
        if property_id in self._properties:
            del self._properties[property_id]
            self._save_to_file()
            return True
        return False

    def get_property(self, property_id: str) -> Optional[Property]:
        self._check_available()
        return self._properties.get(property_id)

    def list_active_properties(self) -> List[Property]:
        self._check_available()
        return [p for p in self._properties.values() if p.is_active]


# =============================================================================
# Singleton Instances
# =============================================================================

_preference_repository: Optional[PreferenceRepository] = None
_property_repository: Optional[PropertyRepository] = None


def get_preference_repository(persist_path: Optional[str] = None) -> PreferenceRepository:
    """
    Get the preference repository singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)
    """
    global _preference_repository
    if _preference_repository is None:
        _preference_repository = PreferenceRepository(
            persist_path or "data/preferences.json"
        )
    return _preference_repository


def get_property_repository(persist_path: Optional[str] = None) -> PropertyRepository:
    """
    Get the property repository singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)
    """
    global _property_repository
    if _property_repository is None:
        _property_repository = PropertyRepository(
            persist_path or "data/properties.json"
        )
    return _property_repository


def reset_repositories() -> None:
    """Reset the singleton instances (for testing)."""
    global _preference_repository, _property_repository
    _preference_repository = None
    _property_repository = None
