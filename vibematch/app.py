from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .cache.config import DEFAULT_CACHE_CONFIG
from .cache.store import CacheStore
from .listings.yelp_client import YelpClient
from .recommendations.errors import InvalidState, PoolExhausted
from .recommendations.models import (
    DEFAULT_LOCATION,
    FinalRecommendationRequest,
    FinalRecommendationResponse,
    MatchedVenueOut,
    MatchRequest,
    MatchResponse,
    RecommendationRequest,
    RecommendationResponse,
    RestaurantRecommendationRequest,
    RestaurantResults,
    VenueDetail,
    VenueDetailResponse,
    VenueQuery,
    VenueSearchResponse,
    VenueSummary,
)
from .recommendations.orchestrator import RecommendationOrchestrator

logger = logging.getLogger(__name__)

app = FastAPI(title="Vibe Match API", version="1.0.0")

_orchestrator: RecommendationOrchestrator | None = None


def build_orchestrator() -> RecommendationOrchestrator:
    store = CacheStore(DEFAULT_CACHE_CONFIG)
    store.open()
    return RecommendationOrchestrator(store=store, listings=YelpClient())


def get_orchestrator() -> RecommendationOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator()
    return _orchestrator


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(InvalidState)
async def invalid_state_handler(request: Request, exc: InvalidState) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(PoolExhausted)
async def pool_exhausted_handler(request: Request, exc: PoolExhausted) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": "No more venues available"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Venue endpoints ──────────────────────────────────────────────────────


@app.get("/api/venues/search", response_model=VenueSearchResponse)
def search_venues(
    venue_type: str = Query("restaurant", alias="type"),
    subtype: str = "",
    location: str = DEFAULT_LOCATION,
    price: str = "",
    limit: int = Query(10, ge=1, le=50),
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> VenueSearchResponse:
    query = VenueQuery(type=venue_type, subtype=subtype, location=location, price=price, limit=limit)
    venues = orchestrator.search_pool(query)
    return VenueSearchResponse(
        count=len(venues),
        venues=[VenueSummary.from_venue(v) for v in venues],
    )


@app.get("/api/venues/{venue_id}", response_model=VenueDetailResponse)
def venue_detail(
    venue_id: str,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> VenueDetailResponse:
    venue, profile = orchestrator.describe_venue(venue_id)
    summary = VenueSummary.from_venue(venue)
    return VenueDetailResponse(
        venue=VenueDetail(
            **summary.model_dump(),
            photos=venue.photos,
            phone=venue.phone,
            vibe_analysis=profile,
        ),
    )


@app.post("/api/venues/match", response_model=MatchResponse)
def match_venues(
    body: MatchRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> MatchResponse:
    matched, provenance = orchestrator.match_venues(
        body.vibe_description,
        body.query(limit=5),
        venue_ids=body.venue_ids,
    )
    venues = [
        MatchedVenueOut(
            id=m.venue.id,
            name=m.venue.name,
            image_url=m.venue.image_url,
            rating=m.venue.rating,
            price=m.venue.price,
            categories=m.venue.categories,
            location=m.venue.address,
            primary_vibe=m.profile.primary_vibe,
            match_score=m.match.match_score,
            match_reasons=m.match.match_reasons,
            rank=m.match.rank,
        )
        for m in matched
    ]
    return MatchResponse(count=len(venues), venues=venues, provenance=provenance)


@app.post("/api/venues/recommendation", response_model=RecommendationResponse)
def next_recommendation(
    body: RecommendationRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> RecommendationResponse:
    recommendation, remaining = orchestrator.recommend_next(body)
    return RecommendationResponse(recommendation=recommendation, remaining_count=remaining)


@app.post("/api/venues/final-recommendation", response_model=FinalRecommendationResponse)
def final_recommendation(
    body: FinalRecommendationRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> FinalRecommendationResponse:
    return FinalRecommendationResponse(recommendation=orchestrator.resolve_final(body))


@app.post("/api/restaurants/recommendations", response_model=RestaurantResults)
def restaurant_recommendations(
    body: RestaurantRecommendationRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> RestaurantResults:
    return orchestrator.recommend_restaurants(body)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())


@app.get("/cache/stats")
def cache_stats(orchestrator: RecommendationOrchestrator = Depends(get_orchestrator)) -> dict:
    return orchestrator.store.stats()


@app.post("/cache/sweep")
def cache_sweep(
    venue_days: float | None = Query(None, gt=0),
    vibe_days: float | None = Query(None, gt=0),
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> dict:
    removed = orchestrator.store.sweep_all(
        venue_max_age=timedelta(days=venue_days) if venue_days is not None else None,
        vibe_max_age=timedelta(days=vibe_days) if vibe_days is not None else None,
    )
    logger.info("Cache sweep removed %d records", removed)
    return {"status": "ok", "removed": removed}
