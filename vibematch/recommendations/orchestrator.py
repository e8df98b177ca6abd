from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from ..analytics.store import record_event
from ..cache.store import CacheStore
from ..listings.fallback import fallback_pool, fallback_venue, generic_venue
from ..llm.groq_client import generate_vibe_profile, score_vibe_matches
from ..reservations.checker import check_availability
from ..vibe.analyzer import SingleFlight, VibeGenerator, VibeLookup, lookup_vibe_profile
from ..vibe.fallback import synthesize
from ..vibe.matcher import VibeScorer, match_vibe, sort_by_availability
from ..vibe.vibe_map import get_attributes_string
from .errors import PoolExhausted, UpstreamUnavailable
from .models import (
    Availability,
    FinalRecommendationRequest,
    MatchResult,
    Provenance,
    Recommendation,
    RecommendationRequest,
    RestaurantOut,
    RestaurantRecommendationRequest,
    RestaurantResults,
    Venue,
    VenueQuery,
    VibeProfile,
)
from .session import check_disposition, next_candidate

logger = logging.getLogger(__name__)

MATCH_POOL_LIMIT = 5
SESSION_POOL_LIMIT = 20
RESTAURANT_SEARCH_LIMIT = 20
RESTAURANT_RESULT_LIMIT = 5

FINAL_REASONS = [
    "This venue was your preferred choice",
    "It best matches your described vibe preferences",
    "Based on your selections, this is the perfect spot for you",
]
GENERIC_REASONS = [
    "Based on your preferences, we've selected this venue",
    "It offers a good balance of atmosphere and quality",
    "This is our best match for your criteria",
]

AvailabilityChecker = Callable[[str, int, str, str], Availability]


class ListingSource(Protocol):
    def search_businesses(self, query: VenueQuery) -> list[Venue]: ...

    def get_enhanced_business(self, business_id: str) -> Venue: ...


@dataclass(frozen=True)
class MatchedVenue:
    venue: Venue
    profile: VibeProfile
    match: MatchResult


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 1)


class RecommendationOrchestrator:
    """
    Drives every recommendation flow over injected collaborators.

    Each step recovers locally: a failed listing search yields the
    synthetic pool, a failed detail fetch yields the pool record or a
    placeholder, failed analysis yields a heuristic profile and failed
    matching yields input order. Only session-rule violations and an
    exhausted pool propagate.
    """

    def __init__(
        self,
        store: CacheStore,
        listings: ListingSource,
        analyzer: VibeGenerator = generate_vibe_profile,
        scorer: VibeScorer = score_vibe_matches,
        availability_checker: AvailabilityChecker = check_availability,
        single_flight: SingleFlight | None = None,
    ) -> None:
        self.store = store
        self.listings = listings
        self.analyzer = analyzer
        self.scorer = scorer
        self.availability_checker = availability_checker
        self.single_flight = single_flight or SingleFlight()

    # ── Building blocks ──────────────────────────────────────────────────

    def _search(self, query: VenueQuery) -> tuple[list[Venue], Provenance]:
        try:
            return self.listings.search_businesses(query), Provenance.generated
        except UpstreamUnavailable:
            logger.warning(
                "Venue search failed for %s in %s, using synthetic pool",
                query.type, query.location, exc_info=True,
            )
            return fallback_pool(query.type), Provenance.fallback

    def search_pool(self, query: VenueQuery) -> list[Venue]:
        start = time.time()
        venues, provenance = self._search(query)
        record_event("search", {
            "location": query.location,
            "venue_type": query.type,
            "pool_provenance": provenance.value,
            "result_count": len(venues),
            "response_time_ms": _elapsed_ms(start),
        })
        return venues

    def get_venue(self, venue_id: str) -> Venue:
        """Read-through venue lookup. Raises UpstreamUnavailable on fetch failure."""
        cached = self.store.get_venue(venue_id)
        if cached is not None:
            logger.debug("Using cached data for venue %s", venue_id)
            return cached

        logger.info("Fetching new data for venue %s", venue_id)
        venue = self.listings.get_enhanced_business(venue_id)
        self.store.save_venue(venue)
        return venue

    def _venue_or_substitute(self, venue_id: str, pool_record: Venue | None = None) -> tuple[Venue, bool]:
        """
        Fetched venue, falling back to the pool record, then the synthetic
        record, then a placeholder. The flag is False for a placeholder.
        """
        try:
            return self.get_venue(venue_id), True
        except UpstreamUnavailable:
            logger.warning("Venue details unavailable for %s", venue_id, exc_info=True)
        if pool_record is not None:
            return pool_record, True
        synthetic = fallback_venue(venue_id)
        if synthetic is not None:
            return synthetic, True
        return Venue.placeholder(venue_id), False

    def _lookup_vibe(self, venue: Venue) -> VibeLookup:
        return lookup_vibe_profile(self.store, venue, self.analyzer, self.single_flight)

    def get_vibe(self, venue: Venue) -> VibeProfile:
        return self._lookup_vibe(venue).profile

    def _compose(self, venue_id: str, pool_record: Venue | None = None) -> tuple[Venue, VibeLookup]:
        venue, known = self._venue_or_substitute(venue_id, pool_record)
        if not known:
            return venue, VibeLookup(synthesize(venue), cache_hit=False)
        return venue, self._lookup_vibe(venue)

    # ── Flows ────────────────────────────────────────────────────────────

    def describe_venue(self, venue_id: str) -> tuple[Venue, VibeProfile]:
        start = time.time()
        venue, lookup = self._compose(venue_id)
        record_event("detail", {
            "venue_id": venue_id,
            "vibe_provenance": lookup.profile.provenance.value,
            "vibe_cache_hit": lookup.cache_hit,
            "response_time_ms": _elapsed_ms(start),
        })
        return venue, lookup.profile

    def match_venues(
        self,
        description: str,
        query: VenueQuery,
        venue_ids: list[str] | None = None,
    ) -> tuple[list[MatchedVenue], Provenance]:
        start = time.time()
        if venue_ids:
            composed = [self._compose(venue_id) for venue_id in venue_ids]
            pool_provenance = Provenance.generated
        else:
            pool, pool_provenance = self._search(query.model_copy(update={"limit": MATCH_POOL_LIMIT}))
            composed = [self._compose(venue.id, pool_record=venue) for venue in pool]

        candidates = [(venue, lookup.profile) for venue, lookup in composed]
        ranking = match_vibe(description, candidates, self.scorer)

        by_id = {venue.id: (venue, profile) for venue, profile in candidates}
        matched = [MatchedVenue(*by_id[m.venue_id], m) for m in ranking.matches]

        record_event("match", {
            "vibe_description": description,
            "location": query.location,
            "pool_provenance": pool_provenance.value,
            "match_provenance": ranking.provenance.value,
            "result_count": len(matched),
            "response_time_ms": _elapsed_ms(start),
        })
        return matched, ranking.provenance

    def recommend_next(self, request: RecommendationRequest) -> tuple[Recommendation, int]:
        """Next unseen venue for a swipe session, with its remaining count."""
        start = time.time()
        state = request.session_state()
        check_disposition(state)

        pool, pool_provenance = self._search(request.query(limit=SESSION_POOL_LIMIT))
        event: dict[str, Any] = {
            "vibe_description": request.vibe_description,
            "location": request.location,
            "pool_provenance": pool_provenance.value,
        }
        try:
            selection = next_candidate(pool, state)
        except PoolExhausted:
            record_event("recommendation", {**event, "exhausted": True, "response_time_ms": _elapsed_ms(start)})
            raise

        venue, lookup = self._compose(selection.venue.id, pool_record=selection.venue)
        record_event("recommendation", {
            **event,
            "vibe_provenance": lookup.profile.provenance.value,
            "vibe_cache_hit": lookup.cache_hit,
            "response_time_ms": _elapsed_ms(start),
        })
        return Recommendation.compose(venue, lookup.profile), selection.remaining_count

    def resolve_final(self, request: FinalRecommendationRequest) -> Recommendation:
        """The session's winner. Always returns a recommendation."""
        start = time.time()
        winner_id = request.liked[0] if request.liked else None
        try:
            if winner_id is not None:
                recommendation = self._resolve_liked(winner_id)
            else:
                recommendation = self._resolve_unliked(request)
        except Exception:
            logger.warning("Final recommendation failed, using placeholder", exc_info=True)
            venue = Venue.placeholder(winner_id) if winner_id else generic_venue()
            recommendation = Recommendation.compose(
                venue, synthesize(venue), why=FINAL_REASONS if winner_id else GENERIC_REASONS,
            )

        record_event("final", {
            "vibe_description": request.vibe_description,
            "location": request.location,
            "liked_count": len(request.liked),
            "vibe_provenance": recommendation.vibe.provenance.value,
            "response_time_ms": _elapsed_ms(start),
        })
        return recommendation

    def _resolve_liked(self, venue_id: str) -> Recommendation:
        venue, lookup = self._compose(venue_id)
        return Recommendation.compose(venue, lookup.profile, why=FINAL_REASONS)

    def _resolve_unliked(self, request: FinalRecommendationRequest) -> Recommendation:
        pool, _ = self._search(request.query(limit=MATCH_POOL_LIMIT))
        rejected = set(request.rejected)
        remaining = [venue for venue in pool if venue.id not in rejected]
        if not remaining:
            venue = generic_venue()
            return Recommendation.compose(venue, synthesize(venue), why=GENERIC_REASONS)

        venue = remaining[0]
        return Recommendation.compose(venue, self.get_vibe(venue), why=GENERIC_REASONS)

    def recommend_restaurants(self, request: RestaurantRecommendationRequest) -> RestaurantResults:
        """Vibe-driven restaurant search, ordered by reservation availability when a slot is given."""
        start = time.time()
        query = VenueQuery(
            type="restaurant",
            location=request.location,
            term=request.cuisine or "",
            categories="restaurants",
            attributes=get_attributes_string(request.vibe),
            price=request.price or "",
            sort_by="rating",
            radius=request.radius,
            limit=RESTAURANT_SEARCH_LIMIT,
        )
        pool, pool_provenance = self._search(query)
        restaurants = [RestaurantOut.from_venue(venue) for venue in pool]

        label = request.vibe or "any"
        if request.reservation_date and request.reservation_time:
            checked = [
                restaurant.model_copy(update={
                    "availability": self.availability_checker(
                        restaurant.name,
                        request.party_size,
                        request.reservation_date,
                        request.reservation_time,
                    ),
                })
                for restaurant in restaurants[:RESTAURANT_RESULT_LIMIT]
            ]
            results = RestaurantResults(
                message=f"Found restaurants matching {label} vibe in {request.location} with reservation details",
                date=request.reservation_date,
                time=request.reservation_time,
                party_size=request.party_size,
                restaurants=sort_by_availability(checked),
            )
        else:
            results = RestaurantResults(
                message=f"Found restaurants matching {label} vibe in {request.location}",
                restaurants=restaurants[:RESTAURANT_RESULT_LIMIT],
            )

        record_event("restaurants", {
            "vibe_description": request.vibe,
            "location": request.location,
            "pool_provenance": pool_provenance.value,
            "result_count": len(results.restaurants),
            "response_time_ms": _elapsed_ms(start),
        })
        return results
