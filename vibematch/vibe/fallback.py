from __future__ import annotations

from ..recommendations.models import (
    MAX_VIBE_KEYWORDS,
    AmbienceFactors,
    Provenance,
    Venue,
    VibeProfile,
    dedupe,
)

FINE_DINING_CATEGORIES = frozenset({"fine dining", "french", "steakhouse", "japanese"})
NIGHTLIFE_CATEGORIES = frozenset({"bar", "nightlife", "cocktail"})
CAFE_CATEGORIES = frozenset({"cafe", "bakery", "coffee"})
UPSCALE_TIERS = frozenset({3, 4})
BUDGET_TIER = 1

BASE_KEYWORDS = ["enjoyable", "pleasant"]
_VIBE_KEYWORDS = {
    "upscale": ["elegant", "refined", "sophisticated"],
    "lively": ["energetic", "vibrant", "social"],
    "cozy": ["comfortable", "relaxed", "warm"],
}
BUDGET_KEYWORDS = ["affordable", "relaxed", "laid-back"]


def _pick_primary_vibe(categories: list[str], tier: int | None) -> tuple[str, list[str]]:
    labels = {c.lower() for c in categories}
    if labels & FINE_DINING_CATEGORIES or tier in UPSCALE_TIERS:
        return "upscale", _VIBE_KEYWORDS["upscale"]
    if labels & NIGHTLIFE_CATEGORIES:
        return "lively", _VIBE_KEYWORDS["lively"]
    if labels & CAFE_CATEGORIES:
        return "cozy", _VIBE_KEYWORDS["cozy"]
    if tier == BUDGET_TIER:
        return "casual", BUDGET_KEYWORDS
    return "casual", []


def synthesize(venue: Venue) -> VibeProfile:
    """
    Derive a vibe profile from categories and price tier alone.

    Total and deterministic: any venue yields a profile, and the same
    venue always yields the same one.
    """
    primary, extra = _pick_primary_vibe(venue.categories, venue.price_tier)
    keywords = dedupe([*venue.categories, *BASE_KEYWORDS, *extra])[:MAX_VIBE_KEYWORDS]

    return VibeProfile(
        venue_id=venue.id,
        primary_vibe=primary,
        secondary_vibes=["pleasant"],
        vibe_keywords=keywords,
        suitable_for=["dining", "casual meetups"],
        ambience_factors=AmbienceFactors(
            lighting="moderate",
            noise_level="moderate",
            crowdedness="moderate",
            decor="appealing",
            music="suitable",
        ),
        provenance=Provenance.fallback,
        generated_at=venue.fetched_at,
    )
