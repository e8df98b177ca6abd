from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_LOCATION = "New York, NY"
GENERIC_CATEGORY = "Restaurant"
MAX_VIBE_KEYWORDS = 10
PRICE_TIERS = ["$", "$$", "$$$", "$$$$"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def dedupe(values: Iterable[str]) -> list[str]:
    """Drop repeated strings, keeping first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


def normalize_categories(raw: Any) -> list[str]:
    """Flatten plain strings and ``{title}`` records into unique labels.

    Never returns an empty list: a venue without usable categories gets
    the single generic label.
    """
    if raw is None:
        items: list[Any] = []
    elif isinstance(raw, (str, dict)):
        items = [raw]
    else:
        items = list(raw)

    labels: list[str] = []
    for item in items:
        if isinstance(item, dict):
            item = item.get("title") or item.get("alias") or ""
        label = str(item).strip()
        if label:
            labels.append(label)
    return dedupe(labels) or [GENERIC_CATEGORY]


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, dict):
        raise ValueError("expected a list of strings")
    if not isinstance(value, (list, tuple, set)):
        value = [value]
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Provenance(str, Enum):
    generated = "generated"
    fallback = "fallback"


# ── Venues ───────────────────────────────────────────────────────────────


class Coordinates(BaseModel):
    latitude: float | None = None
    longitude: float | None = None


class Review(BaseModel):
    text: str = ""
    rating: float | None = None


class Venue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = "Unknown Venue"
    rating: float | None = None
    price: str | None = None
    categories: list[str] = Field(default_factory=lambda: [GENERIC_CATEGORY])
    address: str = ""
    coordinates: Coordinates | None = None
    image_url: str | None = None
    photos: list[str] = Field(default_factory=list)
    phone: str = ""
    url: str = ""
    reviews: list[Review] = Field(default_factory=list)
    raw: dict[str, Any] = Field(default_factory=dict)
    fetched_at: datetime = Field(default_factory=_utcnow)

    @field_validator("categories", mode="before")
    @classmethod
    def _normalize_categories(cls, value: Any) -> list[str]:
        return normalize_categories(value)

    @field_validator("price", mode="before")
    @classmethod
    def _normalize_price(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if text in PRICE_TIERS:
            return text
        if text.isdigit() and 1 <= int(text) <= len(PRICE_TIERS):
            return PRICE_TIERS[int(text) - 1]
        return None

    @field_validator("rating", mode="before")
    @classmethod
    def _clamp_rating(cls, value: Any) -> float | None:
        if value is None or value == "":
            return None
        return max(0.0, min(5.0, float(value)))

    @property
    def price_tier(self) -> int | None:
        """Ordinal price tier, 1 (``$``) to 4 (``$$$$``)."""
        if self.price is None:
            return None
        return PRICE_TIERS.index(self.price) + 1

    @classmethod
    def from_listing(cls, payload: dict[str, Any]) -> Venue:
        """Build a venue from a Yelp-shaped business payload."""
        location = payload.get("location")
        if isinstance(location, dict):
            address = location.get("address1") or ", ".join(
                location.get("display_address") or []
            )
        else:
            address = str(location or "")

        reviews = [
            Review(text=r.get("text") or "", rating=r.get("rating"))
            for r in payload.get("reviews") or []
            if isinstance(r, dict)
        ]

        return cls(
            id=str(payload["id"]),
            name=payload.get("name") or "Unknown Venue",
            rating=payload.get("rating"),
            price=payload.get("price"),
            categories=payload.get("categories"),
            address=address,
            coordinates=payload.get("coordinates") or None,
            image_url=payload.get("image_url") or None,
            photos=payload.get("photos") or [],
            phone=payload.get("phone") or "",
            url=payload.get("url") or "",
            reviews=reviews,
            raw={k: v for k, v in payload.items() if k != "reviews"},
        )

    @classmethod
    def placeholder(cls, venue_id: str) -> Venue:
        """Minimal record carrying only a known id."""
        return cls(id=venue_id, name="Your Selected Venue")


# ── Vibe profiles ────────────────────────────────────────────────────────


class AmbienceFactors(_CamelModel):
    lighting: str | None = None
    noise_level: str | None = None
    crowdedness: str | None = None
    decor: str | None = None
    music: str | None = None


class VibeProfile(_CamelModel):
    venue_id: str = ""
    primary_vibe: str = Field(..., min_length=1)
    secondary_vibes: list[str] = Field(default_factory=list)
    vibe_keywords: list[str] = Field(default_factory=list)
    suitable_for: list[str] = Field(default_factory=list)
    unique_attributes: list[str] = Field(default_factory=list)
    ambience_factors: AmbienceFactors = Field(default_factory=AmbienceFactors)
    similar_venue_types: list[str] = Field(default_factory=list)
    provenance: Provenance = Provenance.generated
    generated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("primary_vibe", mode="before")
    @classmethod
    def _strip_primary(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "secondary_vibes", "suitable_for", "unique_attributes", "similar_venue_types",
        mode="before",
    )
    @classmethod
    def _clean_lists(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("vibe_keywords", mode="before")
    @classmethod
    def _cap_keywords(cls, value: Any) -> list[str]:
        return dedupe(_string_list(value))[:MAX_VIBE_KEYWORDS]


# ── Matching ─────────────────────────────────────────────────────────────


class MatchResult(_CamelModel):
    venue_id: str
    venue_name: str = ""
    match_score: int = Field(..., ge=0, le=100)
    match_reasons: list[str] = Field(..., min_length=1)
    rank: int = Field(..., ge=1)


class Ranking(BaseModel):
    matches: list[MatchResult] = Field(default_factory=list)
    provenance: Provenance


# ── Swipe session ────────────────────────────────────────────────────────


class SessionState(BaseModel):
    seen: list[str] = Field(default_factory=list)
    liked: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    current: str | None = None

    def excluded_ids(self) -> set[str]:
        return set(self.seen) | set(self.liked) | set(self.rejected)

    def awaiting_disposition(self) -> bool:
        """True when ``current`` has been shown but not liked or rejected."""
        return bool(self.current) and (
            self.current not in self.liked and self.current not in self.rejected
        )

    def conflicting_ids(self) -> set[str]:
        return set(self.liked) & set(self.rejected)


# ── Requests ─────────────────────────────────────────────────────────────


class VenueQuery(BaseModel):
    type: str = "restaurant"
    subtype: str = ""
    location: str = DEFAULT_LOCATION
    price: str = ""
    limit: int = Field(default=20, ge=1, le=50)
    term: str = ""
    categories: str = ""
    attributes: str = ""
    sort_by: str = "best_match"
    radius: int = Field(default=5000, ge=1, le=40000)


class _VibeRequest(_CamelModel):
    type: str = "restaurant"
    subtype: str = ""
    location: str = DEFAULT_LOCATION

    def query(self, limit: int) -> VenueQuery:
        return VenueQuery(
            type=self.type, subtype=self.subtype, location=self.location, limit=limit,
        )


class RecommendationRequest(_VibeRequest):
    vibe_description: str = Field(..., min_length=1)
    seen: list[str] = Field(default_factory=list)
    liked: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    current: str | None = None

    @field_validator("vibe_description")
    @classmethod
    def _require_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Vibe description is required")
        return value

    def session_state(self) -> SessionState:
        return SessionState(
            seen=self.seen, liked=self.liked, rejected=self.rejected, current=self.current,
        )


class FinalRecommendationRequest(_VibeRequest):
    vibe_description: str | None = None
    liked: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)


class MatchRequest(_VibeRequest):
    vibe_description: str = Field(..., min_length=1)
    venue_ids: list[str] = Field(default_factory=list)

    @field_validator("vibe_description")
    @classmethod
    def _require_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Vibe description is required")
        return value


class RestaurantRecommendationRequest(_CamelModel):
    vibe: str = ""
    location: str = DEFAULT_LOCATION
    radius: int = Field(default=5000, ge=1, le=40000)
    price: str | None = Field(default=None, description='Yelp price levels, e.g. "3,4"')
    cuisine: str | None = None
    reservation_date: str | None = Field(default=None, description="YYYY-MM-DD")
    reservation_time: str | None = Field(default=None, description="HH:MM, 24-hour")
    party_size: int = Field(default=2, ge=1, le=20)


# ── Reservations ─────────────────────────────────────────────────────────


class PlatformAvailability(_CamelModel):
    platform: str
    available: bool = False
    times: list[str] = Field(default_factory=list)
    reservation_url: str | None = None
    error: str | None = None


class Availability(_CamelModel):
    restaurant_name: str
    date: str | None = None
    time: str | None = None
    party_size: int | None = None
    platforms: list[PlatformAvailability] = Field(default_factory=list)
    available: bool = False
    error: str | None = None


# ── Responses ────────────────────────────────────────────────────────────


class VibeSummary(_CamelModel):
    primary: str
    secondary: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    suitable_for: list[str] = Field(default_factory=list)
    unique_attributes: list[str] = Field(default_factory=list)
    provenance: Provenance = Provenance.generated

    @classmethod
    def from_profile(cls, profile: VibeProfile) -> VibeSummary:
        return cls(
            primary=profile.primary_vibe,
            secondary=profile.secondary_vibes,
            keywords=profile.vibe_keywords,
            suitable_for=profile.suitable_for,
            unique_attributes=profile.unique_attributes,
            provenance=profile.provenance,
        )


class Recommendation(BaseModel):
    id: str
    name: str
    image_url: str | None = None
    photos: list[str] = Field(default_factory=list)
    rating: float | None = None
    price: str | None = None
    categories: list[str] = Field(default_factory=list)
    location: str = ""
    phone: str = ""
    url: str = ""
    coordinates: Coordinates | None = None
    vibe: VibeSummary
    why: list[str] | None = None

    @classmethod
    def compose(
        cls, venue: Venue, profile: VibeProfile, why: list[str] | None = None,
    ) -> Recommendation:
        photos = venue.photos or ([venue.image_url] if venue.image_url else [])
        return cls(
            id=venue.id,
            name=venue.name,
            image_url=venue.image_url,
            photos=photos,
            rating=venue.rating,
            price=venue.price,
            categories=venue.categories,
            location=venue.address,
            phone=venue.phone,
            url=venue.url,
            coordinates=venue.coordinates,
            vibe=VibeSummary.from_profile(profile),
            why=list(why) if why is not None else None,
        )


class RecommendationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    recommendation: Recommendation
    remaining_count: int = Field(..., alias="remainingCount")


class FinalRecommendationResponse(BaseModel):
    success: bool = True
    recommendation: Recommendation


class VenueSummary(BaseModel):
    id: str
    name: str
    rating: float | None = None
    price: str | None = None
    categories: list[str]
    image_url: str | None = None
    location: str = ""
    url: str = ""
    coordinates: Coordinates | None = None

    @classmethod
    def from_venue(cls, venue: Venue) -> VenueSummary:
        return cls(
            id=venue.id,
            name=venue.name,
            rating=venue.rating,
            price=venue.price,
            categories=venue.categories,
            image_url=venue.image_url,
            location=venue.address,
            url=venue.url,
            coordinates=venue.coordinates,
        )


class VenueSearchResponse(BaseModel):
    success: bool = True
    count: int
    venues: list[VenueSummary]


class VenueDetail(VenueSummary):
    model_config = ConfigDict(populate_by_name=True)

    photos: list[str] = Field(default_factory=list)
    phone: str = ""
    vibe_analysis: VibeProfile = Field(..., alias="vibeAnalysis")


class VenueDetailResponse(BaseModel):
    success: bool = True
    venue: VenueDetail


class MatchedVenueOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    image_url: str | None = None
    rating: float | None = None
    price: str | None = None
    categories: list[str]
    location: str = ""
    primary_vibe: str = Field(..., alias="primaryVibe")
    match_score: int = Field(..., alias="matchScore")
    match_reasons: list[str] = Field(..., alias="matchReasons")
    rank: int


class MatchResponse(BaseModel):
    success: bool = True
    count: int
    venues: list[MatchedVenueOut]
    provenance: Provenance


class RestaurantOut(BaseModel):
    id: str
    name: str
    rating: float | None = None
    price: str | None = None
    address: str = ""
    phone: str = ""
    categories: list[str]
    image_url: str | None = None
    url: str = ""
    availability: Availability | None = None

    @classmethod
    def from_venue(cls, venue: Venue) -> RestaurantOut:
        return cls(
            id=venue.id,
            name=venue.name,
            rating=venue.rating,
            price=venue.price,
            address=venue.address,
            phone=venue.phone,
            categories=venue.categories,
            image_url=venue.image_url,
            url=venue.url,
        )


class RestaurantResults(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    date: str | None = None
    time: str | None = None
    party_size: int | None = Field(default=None, alias="partySize")
    restaurants: list[RestaurantOut]
