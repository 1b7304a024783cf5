"""
Preference Profile Resolver

Loads the active preference profile for an investor and decides whether
matching should run at all.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from core.errors import ProfileLookupFailed, StoreUnavailable
from core.models import InvestorPreferenceProfile
from core.stores import PreferenceStore

logger = logging.getLogger(__name__)


class PreferenceProfileResolver:
    """
    Resolves investors to matchable profiles.

    Policy:
    - No active profile, or an active profile with no criteria set
      -> None (caller short-circuits with hasPreferences=False)
    - Active profile with at least one criterion -> the profile
    - Storage failure -> ProfileLookupFailed, never "no preferences"
    """

    def __init__(self, store: PreferenceStore):
        self._store = store

    def resolve(self, investor_id: str) -> Optional[InvestorPreferenceProfile]:
        """
        Return the investor's matchable profile, or None.

        Raises:
            ProfileLookupFailed: if the preference store cannot be read
        """
        try:
            profile = self._store.get_active_profile(investor_id)
        except (StoreUnavailable, OSError) as e:
            logger.error("Preference lookup failed for %s: %s", investor_id, e)
            raise ProfileLookupFailed(investor_id, str(e)) from e

        if profile is None or not profile.is_active:
            logger.info("Investor %s has no active preference profile", investor_id)
            return None
        if profile.criteria.is_empty:
            logger.info("Investor %s has an active profile with no criteria", investor_id)
            return None
        return profile

    def resolve_all(self) -> List[InvestorPreferenceProfile]:
        """
        Every active profile with at least one criterion set.

        Raises:
            ProfileLookupFailed: if the preference store cannot be read
        """
        try:
            profiles = self._store.list_active_profiles()
        except (StoreUnavailable, OSError) as e:
            logger.error("Listing active preference profiles failed: %s", e)
            raise ProfileLookupFailed(None, str(e)) from e

        return [p for p in profiles if p.has_preferences]
