from __future__ import annotations

import logging
import math
from typing import Any, Callable, Iterable, Sequence

from ..llm.groq_client import score_vibe_matches
from ..recommendations.models import (
    MatchResult,
    Provenance,
    Ranking,
    RestaurantOut,
    Venue,
    VibeProfile,
)

logger = logging.getLogger(__name__)

GENERIC_REASON = "Based on your preferences"

Candidate = tuple[Venue, VibeProfile]
VibeScorer = Callable[[str, Sequence[Candidate]], Any]


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        score = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if math.isnan(score):
        return 0
    # Clamp before rounding; round() rejects infinities.
    return round(max(0.0, min(100.0, score)))


def _reasons(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return [GENERIC_REASON]
    reasons = [str(r).strip() for r in value if r is not None and str(r).strip()]
    return reasons or [GENERIC_REASON]


def fallback_ranking(candidates: Sequence[Candidate]) -> Ranking:
    """Input order ranking with scores stepping down by ten from 100."""
    matches = [
        MatchResult(
            venue_id=venue.id,
            venue_name=venue.name,
            match_score=max(0, 100 - 10 * i),
            match_reasons=[GENERIC_REASON],
            rank=i + 1,
        )
        for i, (venue, _) in enumerate(candidates)
    ]
    return Ranking(matches=matches, provenance=Provenance.fallback)


def validate_scored_items(items: Iterable[Any], candidates: Sequence[Candidate]) -> list[MatchResult]:
    """
    Turn raw scorer items into dense-ranked match results.

    Items with a missing or out-of-range ``venueIndex`` (1-based) are
    dropped, as are repeats of an index already accepted. Survivors are
    ordered by their ``rank`` (ties and missing ranks by input index) and
    renumbered 1..N.
    """
    accepted: list[tuple[float, int, dict[str, Any]]] = []
    taken: set[int] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        index = _as_int(item.get("venueIndex"))
        if index is None or not 1 <= index <= len(candidates) or index in taken:
            logger.debug("Dropping scored item with venueIndex %r", item.get("venueIndex"))
            continue
        taken.add(index)
        rank = _as_int(item.get("rank"))
        accepted.append((rank if rank is not None else float("inf"), index, item))

    accepted.sort(key=lambda entry: (entry[0], entry[1]))

    results: list[MatchResult] = []
    for position, (_, index, item) in enumerate(accepted, start=1):
        venue = candidates[index - 1][0]
        results.append(
            MatchResult(
                venue_id=venue.id,
                venue_name=venue.name,
                match_score=_clamp_score(item.get("matchScore")),
                match_reasons=_reasons(item.get("matchReasons")),
                rank=position,
            )
        )
    return results


def match_vibe(
    description: str,
    candidates: Sequence[Candidate],
    scorer: VibeScorer = score_vibe_matches,
) -> Ranking:
    """Rank candidates against a vibe description, falling back to input order."""
    candidates = list(candidates)
    if not candidates:
        return Ranking(matches=[], provenance=Provenance.fallback)

    try:
        items = scorer(description, candidates)
    except Exception:
        logger.warning("Vibe matching failed, falling back to input order", exc_info=True)
        return fallback_ranking(candidates)

    if not isinstance(items, list):
        logger.warning("Vibe scorer returned %s, falling back to input order", type(items).__name__)
        return fallback_ranking(candidates)

    try:
        matches = validate_scored_items(items, candidates)
    except Exception:
        logger.warning("Unusable scored items, falling back to input order", exc_info=True)
        return fallback_ranking(candidates)

    if not matches:
        logger.warning("No valid scored items for %d candidates, falling back", len(candidates))
        return fallback_ranking(candidates)

    return Ranking(matches=matches, provenance=Provenance.generated)


def sort_by_availability(restaurants: Iterable[RestaurantOut]) -> list[RestaurantOut]:
    """Available first, then by rating descending; stable for equal ratings."""
    def key(restaurant: RestaurantOut) -> tuple[bool, float]:
        available = restaurant.availability is not None and restaurant.availability.available
        return (not available, -(restaurant.rating or 0.0))

    return sorted(restaurants, key=key)
