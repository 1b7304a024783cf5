"""
Bidirectional Query Façade

Two entry points share the same evaluators, scorer and ranking:
- match_properties_for_investor: fixed investor profile, iterate active properties
- match_investors_for_property: fixed property, iterate active investor profiles

Each call reads its inputs once (profile(s) and catalog), scores every
candidate, then ranks. Nothing is cached between calls.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, TypeVar

from core.errors import (
    CatalogLookupFailed,
    MatchDeadlineExceeded,
    ProfileLookupFailed,
    PropertyNotFound,
    StoreUnavailable,
)
from core.models import (
    DEFAULT_LIMIT,
    DEFAULT_MIN_SCORE,
    MAX_LIMIT,
    InvestorMatchList,
    InvestorPreferenceProfile,
    MatchQuery,
    MatchResult,
    PreferenceCriteria,
    Property,
    PropertyMatchPage,
    utc_now,
)
from core.stores import PreferenceStore, PropertyStore

from .digest import MatchDigest
from .ranking import rank_and_paginate
from .resolver import PreferenceProfileResolver
from .scorer import MatchScorer

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Configuration
# =============================================================================

DIGEST_MIN_SCORE = 85
DIGEST_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class MatchPolicy:
    """Engine tunables; built from Config in production."""
    default_min_score: int = DEFAULT_MIN_SCORE
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT
    workers: int = os.cpu_count() or 1
    parallel_threshold: int = 500
    deadline_seconds: Optional[float] = None
    digest_min_score: int = DIGEST_MIN_SCORE
    digest_window: timedelta = DIGEST_WINDOW


class MatchingEngine:
    """
    Investor-property matching service.

    Stateless: holds only its collaborators. Inputs are read once per call
    and treated as an immutable snapshot for that call.
    """

    def __init__(
        self,
        preference_store: PreferenceStore,
        property_store: PropertyStore,
        scorer: Optional[MatchScorer] = None,
        policy: Optional[MatchPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._property_store = property_store
        self._resolver = PreferenceProfileResolver(preference_store)
        self.scorer = scorer or MatchScorer()
        self.policy = policy or MatchPolicy()
        self._clock = clock

    # =========================================================================
    # Entry Points
    # =========================================================================

    def match_properties_for_investor(
        self,
        investor_id: str,
        query: Optional[MatchQuery] = None,
        deadline: Optional[float] = None,
    ) -> PropertyMatchPage:
        """
        Rank active properties for one investor.

        Args:
            investor_id: Validated investor id
            query: min_score / limit / offset (defaults from policy)
            deadline: Seconds allowed for the scoring pass (defaults from policy)

        Returns:
            PropertyMatchPage. has_preferences is False, with no results,
            when the investor has no active non-empty profile.

        Raises:
            InvalidQuery: before any lookup, if the query is out of range
            ProfileLookupFailed / CatalogLookupFailed: on storage failure
            MatchDeadlineExceeded: if scoring outlives the deadline
        """
        if query is None:
            query = MatchQuery(
                min_score=self.policy.default_min_score,
                limit=self.policy.default_limit,
            )
        query = query.validate(self.policy.max_limit)

        profile = self._resolver.resolve(investor_id)
        if profile is None:
            return PropertyMatchPage.no_preferences(query)

        catalog = self._fetch(self._property_store.list_active_properties, "active properties")
        scored_at = self._clock()
        criteria = profile.criteria

        results = self._score_all(
            catalog,
            lambda prop: self._match(criteria, prop, prop.id, prop.created_at, scored_at),
            self._deadline(deadline),
        )
        page = rank_and_paginate(results, query.min_score, query.offset, query.limit)

        logger.debug(
            "Investor %s: %d/%d properties >= %d, returning %d",
            investor_id, page.total, len(catalog), query.min_score, len(page.results),
        )
        by_id = {p.id: p for p in catalog}
        return PropertyMatchPage(
            results=page.results,
            total=page.total,
            has_preferences=True,
            preferences=criteria,
            limit=query.limit,
            offset=query.offset,
            properties={r.entity_id: by_id[r.entity_id] for r in page.results},
        )

    def match_investors_for_property(
        self,
        property_id: str,
        query: Optional[MatchQuery] = None,
        deadline: Optional[float] = None,
    ) -> InvestorMatchList:
        """
        Rank investors whose active, non-empty profile matches a property.

        The property may be in any status; only the investor-facing query is
        restricted to active listings.

        Raises:
            InvalidQuery: if the query is out of range
            PropertyNotFound: if the property id is unknown
            CatalogLookupFailed: if the property or the investor list cannot be read
            MatchDeadlineExceeded: if scoring outlives the deadline
        """
        if query is None:
            query = MatchQuery(min_score=self.policy.default_min_score, limit=None)
        query = query.validate(self.policy.max_limit)

        prop = self._fetch(lambda: self._property_store.get_property(property_id), "property")
        if prop is None:
            raise PropertyNotFound(property_id)

        profiles = self._active_profiles()
        scored_at = self._clock()

        results = self._score_all(
            profiles,
            lambda profile: self._match(
                profile.criteria, prop, profile.investor_id, profile.created_at, scored_at
            ),
            self._deadline(deadline),
        )
        page = rank_and_paginate(results, query.min_score, query.offset, query.limit)

        logger.debug(
            "Property %s: %d/%d investors >= %d",
            property_id, page.total, len(profiles), query.min_score,
        )
        return InvestorMatchList(property_id=property_id, results=page.results, total=page.total)

    def match_new_listings(
        self,
        now: Optional[datetime] = None,
        window: Optional[timedelta] = None,
        min_score: Optional[int] = None,
        deadline: Optional[float] = None,
    ) -> List[MatchDigest]:
        """
        Strong matches among recently listed properties, per investor.

        Scores every active property created inside the window against each
        active, non-empty profile whose owner has notifications enabled.

        Returns:
            One MatchDigest per investor with at least one match, ordered by
            investor id. Investors without matches are omitted.

        Raises:
            InvalidQuery: if min_score is out of range
            CatalogLookupFailed: if listings or profiles cannot be read
            MatchDeadlineExceeded: if scoring one investor outlives the deadline
        """
        now = now or self._clock()
        since = now - (window or self.policy.digest_window)
        threshold = self.policy.digest_min_score if min_score is None else min_score
        MatchQuery(min_score=threshold, limit=None).validate()

        new_listings = self._fetch(
            lambda: self._property_store.list_active_since(since), "new listings"
        )
        if not new_listings:
            logger.info("No new listings since %s", since.isoformat())
            return []

        profiles = [p for p in self._active_profiles() if p.notifications_enabled]
        by_id = {p.id: p for p in new_listings}
        digests = []

        for profile in profiles:
            criteria = profile.criteria
            results = self._score_all(
                new_listings,
                lambda prop, criteria=criteria: self._match(
                    criteria, prop, prop.id, prop.created_at, now
                ),
                self._deadline(deadline),
            )
            ranked = rank_and_paginate(results, threshold)
            if ranked.total == 0:
                continue
            digests.append(MatchDigest(
                investor_id=profile.investor_id,
                matches=ranked.results,
                properties={r.entity_id: by_id[r.entity_id] for r in ranked.results},
                generated_at=now,
            ))

        logger.info(
            "New-listing digest: %d listings, %d investors checked, %d digests",
            len(new_listings), len(profiles), len(digests),
        )
        return sorted(digests, key=lambda d: d.investor_id)

    def score_pair(self, profile: InvestorPreferenceProfile, prop: Property) -> int:
        """Score one pair directly with the engine's scorer."""
        return self.scorer.score(profile.criteria, prop)

    # =========================================================================
    # Internals
    # =========================================================================

    def _match(
        self,
        criteria: PreferenceCriteria,
        prop: Property,
        entity_id: str,
        created_at: datetime,
        scored_at: datetime,
    ) -> MatchResult:
        score, breakdown = self.scorer.score_with_breakdown(criteria, prop)
        return MatchResult(
            entity_id=entity_id,
            score=score,
            created_at=created_at,
            breakdown=breakdown,
            scored_at=scored_at,
        )

    def _active_profiles(self) -> List[InvestorPreferenceProfile]:
        # The investor list is the iterated catalog of an inverse query
        try:
            return self._resolver.resolve_all()
        except ProfileLookupFailed as e:
            raise CatalogLookupFailed(f"active investors: {e.reason}") from e

    @staticmethod
    def _fetch(read: Callable[[], T], what: str) -> T:
        try:
            return read()
        except (StoreUnavailable, OSError) as e:
            logger.error("Failed to read %s: %s", what, e)
            raise CatalogLookupFailed(f"{what}: {e}") from e

    def _deadline(self, deadline: Optional[float]) -> Optional[float]:
        return deadline if deadline is not None else self.policy.deadline_seconds

    def _score_all(
        self,
        candidates: Sequence[T],
        score_one: Callable[[T], MatchResult],
        deadline: Optional[float],
    ) -> List[MatchResult]:
        """
        Score every candidate, fanning out to a thread pool for large sets.

        No partial results: if the deadline passes, MatchDeadlineExceeded is
        raised and nothing is returned.
        """
        total = len(candidates)
        expires_at = None if deadline is None else time.monotonic() + deadline

        if total < self.policy.parallel_threshold or self.policy.workers <= 1:
            results = []
            for candidate in candidates:
                if expires_at is not None and time.monotonic() > expires_at:
                    raise MatchDeadlineExceeded(deadline, len(results), total)
                results.append(score_one(candidate))
            return results

        chunk_size = -(-total // self.policy.workers)
        chunks = [candidates[i:i + chunk_size] for i in range(0, total, chunk_size)]

        pool = ThreadPoolExecutor(max_workers=self.policy.workers)
        try:
            futures = [
                pool.submit(lambda chunk: [score_one(c) for c in chunk], chunk)
                for chunk in chunks
            ]
            timeout = None if expires_at is None else max(0.0, expires_at - time.monotonic())
            done, pending = wait(futures, timeout=timeout)
            if pending:
                scored = sum(len(f.result()) for f in done)
                raise MatchDeadlineExceeded(deadline, scored, total)

            results = []
            for future in futures:
                results.extend(future.result())
            return results
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
