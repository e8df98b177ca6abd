from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..recommendations.models import Venue

# Fixed so synthetic records, and any profile derived from them, are stable.
SYNTHETIC_FETCHED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)

_IMAGE = "https://s3-media{n}.fl.yelpcdn.com/bphoto/placeholder{n}.jpg"


def _listing(
    venue_id: str,
    name: str,
    rating: float,
    price: str,
    categories: list[str],
    street: str,
    zip_code: str,
    n: int,
) -> dict[str, Any]:
    return {
        "id": venue_id,
        "name": name,
        "rating": rating,
        "price": price,
        "categories": [{"title": title} for title in categories],
        "image_url": _IMAGE.format(n=n),
        "location": {"address1": f"{street}, New York, NY {zip_code}"},
        "coordinates": {"latitude": 40.7128 + 0.009 * (n - 1), "longitude": -74.0060 + 0.01 * (n - 1)},
    }


_BAR_LISTINGS = [
    _listing("fallback-bar-1", "Cocktail Lounge NYC", 4.5, "$$$", ["Cocktail Bar", "Lounge"], "123 Bar Ave", "10001", 1),
    _listing("fallback-bar-2", "Wine & Spirits", 4.2, "$$", ["Wine Bar", "Cocktail Bar"], "456 Wines St", "10002", 2),
    _listing("fallback-bar-3", "Craft Beer Pub", 4.3, "$$", ["Beer Bar", "Gastropub"], "789 Brew St", "10003", 3),
    _listing("fallback-bar-4", "Speakeasy Lounge", 4.7, "$$$$", ["Cocktail Bar", "Speakeasy"], "101 Hidden St", "10004", 4),
    _listing("fallback-bar-5", "Rooftop Bar & Lounge", 4.4, "$$$", ["Lounge", "Cocktail Bar"], "222 Sky Ln", "10005", 5),
]

_RESTAURANT_LISTINGS = [
    _listing("fallback-restaurant-1", "Italian Trattoria", 4.5, "$$$", ["Italian", "Restaurant"], "123 Pasta Ave", "10001", 1),
    _listing("fallback-restaurant-2", "Sushi Place", 4.2, "$$", ["Japanese", "Sushi Bars", "Restaurant"], "456 Fish St", "10002", 2),
    _listing("fallback-restaurant-3", "French Bistro", 4.7, "$$$$", ["French", "Fine Dining", "Restaurant"], "789 Gourmet Ave", "10003", 3),
    _listing("fallback-restaurant-4", "Taco Shop", 4.0, "$", ["Mexican", "Restaurant"], "101 Salsa St", "10004", 4),
    _listing("fallback-restaurant-5", "Burger Joint", 4.3, "$$", ["American", "Burgers", "Restaurant"], "222 Patty Ln", "10005", 5),
]

_BAR_REVIEWS = [
    {"rating": 5, "text": "This bar has an amazing atmosphere! The lighting is perfect for an evening out, "
                          "and the staff is attentive without being intrusive. The cocktails are creative."},
    {"rating": 4, "text": "Great drinks and atmosphere. It can get a bit crowded on weekend evenings, "
                          "but the vibe is worth it. The wine selection is impressive."},
    {"rating": 5, "text": "One of the coziest bars in the city. The dim lighting and jazz music create "
                          "a wonderful atmosphere."},
]

_RESTAURANT_REVIEWS = [
    {"rating": 5, "text": "This restaurant has an amazing ambiance! The lighting is perfect for a romantic "
                          "dinner, and the staff is attentive without being intrusive."},
    {"rating": 4, "text": "Great food and atmosphere. It can get a bit crowded on weekend evenings, "
                          "but the intimate setting makes it perfect for date night."},
    {"rating": 5, "text": "One of the coziest Italian spots in the city. The dim lighting and quiet "
                          "background music create a wonderful atmosphere."},
]

_BAR_HOURS = [{"day": day, "start": "1600", "end": "0300" if day in (4, 5) else "0200"} for day in range(7)]
_RESTAURANT_HOURS = [{"day": day, "start": "1100", "end": "2300" if day in (4, 5) else "2200"} for day in range(7)]


def _is_bar(venue_type: str) -> bool:
    return "bar" in (venue_type or "").lower()


def fallback_pool(venue_type: str) -> list[Venue]:
    """Synthetic five-venue pool for the requested venue type."""
    listings = _BAR_LISTINGS if _is_bar(venue_type) else _RESTAURANT_LISTINGS
    return [
        Venue.from_listing(listing).model_copy(update={"fetched_at": SYNTHETIC_FETCHED_AT})
        for listing in listings
    ]


def fallback_venue(venue_id: str) -> Venue | None:
    """Synthetic detail record (photos, hours, reviews) for a synthetic pool id."""
    listing = next(
        (item for item in _BAR_LISTINGS + _RESTAURANT_LISTINGS if item["id"] == venue_id),
        None,
    )
    if listing is None:
        return None

    bar = venue_id.startswith("fallback-bar-")
    payload = {
        **listing,
        "photos": [_IMAGE.format(n=1), _IMAGE.format(n=2)],
        "phone": "+12125551234",
        "hours": [{"open": _BAR_HOURS if bar else _RESTAURANT_HOURS}],
        "reviews": _BAR_REVIEWS if bar else _RESTAURANT_REVIEWS,
    }
    return Venue.from_listing(payload).model_copy(update={"fetched_at": SYNTHETIC_FETCHED_AT})


def generic_venue() -> Venue:
    """Built-in venue used when no candidate at all can be resolved."""
    return Venue(
        id="fallback-generic",
        name="Recommended Venue",
        rating=4.5,
        price="$$",
        categories=["Restaurant"],
        address="New York, NY",
        fetched_at=SYNTHETIC_FETCHED_AT,
    )
