from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VibeSearchParams:
    attributes: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)


# Vibe terms mapped to Yelp search attributes, categories and descriptive keywords.
VIBE_MAP: dict[str, VibeSearchParams] = {
    "romantic": VibeSearchParams(
        attributes=["romantic", "intimate"],
        categories=["wine_bars", "french", "italian", "newamerican"],
        keywords=["candlelight", "intimate", "romantic", "date night"],
    ),
    "lively": VibeSearchParams(
        attributes=["lively", "loud"],
        categories=["bars", "newamerican", "tapas", "spanish"],
        keywords=["energetic", "bustling", "vibrant", "happening"],
    ),
    "cozy": VibeSearchParams(
        attributes=["cozy", "casual"],
        categories=["cafes", "bistro", "gastropubs", "italian"],
        keywords=["warm", "homey", "comfortable", "relaxed"],
    ),
    "upscale": VibeSearchParams(
        attributes=["upscale", "classy"],
        categories=["french", "newamerican", "steak", "japanese"],
        keywords=["fine dining", "elegant", "refined", "sophisticated"],
    ),
    "trendy": VibeSearchParams(
        attributes=["hot_and_new", "trending"],
        categories=["newamerican", "cocktailbars", "asian", "fusion"],
        keywords=["hotspot", "popular", "instagram", "chic"],
    ),
    "quiet": VibeSearchParams(
        attributes=["quiet"],
        categories=["wine_bars", "french", "japanese", "tearooms"],
        keywords=["peaceful", "quiet conversation", "calm", "serene"],
    ),
    "outdoor": VibeSearchParams(
        attributes=["outdoor_seating", "restaurants_outdoor_seating"],
        categories=["restaurants", "bars", "cafes", "wineries"],
        keywords=["patio", "rooftop", "garden", "al fresco"],
    ),
    "casual": VibeSearchParams(
        attributes=["casual"],
        categories=["pizza", "sandwiches", "burgers", "tacos"],
        keywords=["relaxed", "laid-back", "informal", "everyday"],
    ),
    "hipster": VibeSearchParams(
        attributes=["hipster"],
        categories=["coffee", "vegan", "breweries", "barbers"],
        keywords=["artisanal", "craft", "local", "sustainable"],
    ),
    "classic": VibeSearchParams(
        attributes=["traditional_cuisine"],
        categories=["italian", "french", "steak", "seafood"],
        keywords=["old-school", "established", "timeless", "iconic"],
    ),
}

EMPTY_PARAMS = VibeSearchParams()


def get_search_params(vibe: str | None) -> VibeSearchParams:
    """
    Resolve a free-text vibe to search parameters.

    Tries an exact term first, then containment in either direction
    against each mapped term and its keywords (in map order). Unknown or
    blank vibes resolve to empty parameters.
    """
    wanted = (vibe or "").strip().lower()
    if not wanted:
        return EMPTY_PARAMS
    if wanted in VIBE_MAP:
        return VIBE_MAP[wanted]

    for term, params in VIBE_MAP.items():
        if wanted in term or term in wanted:
            return params
        if any(wanted in keyword or keyword in wanted for keyword in params.keywords):
            return params

    return EMPTY_PARAMS


def get_attributes_string(vibe: str | None) -> str:
    return ",".join(get_search_params(vibe).attributes)
