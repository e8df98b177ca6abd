"""
Yelp Fusion API client.

Searches businesses for a venue type and location, and fetches business
details and reviews. Handles rate limiting (HTTP 429) with exponential
backoff; every other failure raises UpstreamUnavailable so the caller
can substitute synthetic data.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from ..recommendations.errors import UpstreamUnavailable
from ..recommendations.models import Venue, VenueQuery
from .config import DEFAULT_YELP_CONFIG, YelpConfig

logger = logging.getLogger(__name__)

BAR_SUBTYPE_CATEGORIES: dict[str, str] = {
    "cocktail": "cocktailbars",
    "wine": "wine_bars",
    "beer": "beerbar",
    "pub": "pubs",
    "sports": "sportsbars",
    "lounge": "lounges",
}
_BAR_CATEGORY_ALIASES = frozenset({"cocktailbars", "wine_bars", "beerbar", "pubs", "sportsbars", "lounges"})

_BAR_TITLE_HINTS = ("bar", "pub", "lounge", "beer", "wine", "cocktail")
_RESTAURANT_TITLE_HINTS = ("restaurant", "food", "cafe")


def categories_for(venue_type: str, subtype: str = "") -> str:
    """Yelp category aliases for a venue type and optional subtype."""
    subtype = (subtype or "").strip().lower()
    if (venue_type or "").lower() == "bar":
        return BAR_SUBTYPE_CATEGORIES.get(subtype) or subtype or "bars"
    return subtype or "restaurants"


def _is_bar_search(categories: str) -> bool:
    return "bar" in categories or categories in _BAR_CATEGORY_ALIASES


def _keep_matching(venues: list[Venue], hints: tuple[str, ...]) -> list[Venue]:
    kept = [
        v for v in venues
        if any(hint in category.lower() for category in v.categories for hint in hints)
    ]
    # Empty after filtering: keep the unfiltered list.
    return kept or venues


def _to_venue(business: Any) -> Venue | None:
    if not isinstance(business, dict) or not business.get("id"):
        return None
    try:
        return Venue.from_listing(business)
    except ValidationError:
        logger.warning("Skipping malformed Yelp business %s", business.get("id"), exc_info=True)
        return None


class YelpClient:
    def __init__(
        self,
        config: YelpConfig = DEFAULT_YELP_CONFIG,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._sleep = sleep

    # ── Public API ───────────────────────────────────────────────────────

    def search_businesses(self, query: VenueQuery) -> list[Venue]:
        if not query.location:
            raise UpstreamUnavailable("A location is required to search venues")

        categories = query.categories or categories_for(query.type, query.subtype)
        bar_search = _is_bar_search(categories)
        restaurant_search = not bar_search and (
            "restaurant" in categories or query.type == "restaurant"
        )

        term = query.term
        if bar_search:
            term = f"{term} bar"
        elif restaurant_search:
            term = f"{term} restaurant"

        params: dict[str, Any] = {
            "term": term.strip(),
            "location": query.location,
            "categories": categories,
            "limit": query.limit,
            "offset": 0,
            "sort_by": query.sort_by,
            "radius": query.radius,
        }
        if query.price:
            params["price"] = query.price
        if query.attributes:
            params["attributes"] = query.attributes

        data = self._request("businesses/search", params)
        businesses = data.get("businesses") if isinstance(data, dict) else None
        if not isinstance(businesses, list):
            raise UpstreamUnavailable("Unexpected Yelp search response format")

        venues = [v for v in map(_to_venue, businesses) if v is not None]
        logger.info("Yelp returned %d %s venues for %s", len(venues), categories, query.location)

        if bar_search:
            return _keep_matching(venues, _BAR_TITLE_HINTS)
        if restaurant_search:
            return _keep_matching(venues, _RESTAURANT_TITLE_HINTS)
        return venues

    def get_business_details(self, business_id: str) -> dict[str, Any]:
        data = self._request(f"businesses/{business_id}")
        if not isinstance(data, dict) or not data.get("id"):
            raise UpstreamUnavailable(f"Unexpected Yelp details response for {business_id}")
        return data

    def get_business_reviews(self, business_id: str) -> list[dict[str, Any]]:
        data = self._request(
            f"businesses/{business_id}/reviews",
            {"limit": self.config.review_limit, "sort_by": "yelp_sort"},
        )
        reviews = data.get("reviews") if isinstance(data, dict) else None
        if not isinstance(reviews, list):
            raise UpstreamUnavailable(f"Unexpected Yelp reviews response for {business_id}")
        return reviews

    def get_enhanced_business(self, business_id: str) -> Venue:
        """Business details merged with its reviews."""
        details = self.get_business_details(business_id)
        reviews = self.get_business_reviews(business_id)
        try:
            return Venue.from_listing({**details, "reviews": reviews})
        except ValidationError as exc:
            raise UpstreamUnavailable(f"Malformed Yelp business {business_id}") from exc

    # ── Transport ────────────────────────────────────────────────────────

    def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Authenticated GET with retry on rate limit and timeout."""
        if not self.config.api_key:
            raise UpstreamUnavailable("Yelp API key not configured")

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Accept": "application/json",
        }
        retries = self.config.max_retries

        with httpx.Client(timeout=self.config.timeout) as client:
            for retry in range(retries):
                try:
                    response = client.get(
                        f"{self.config.base_url}/{endpoint}",
                        headers=headers,
                        params=params,
                    )

                    if response.status_code == 429:
                        delay = 2**retry
                        logger.warning(
                            "Yelp API rate limited (429), retrying in %ds (attempt %d/%d)",
                            delay, retry + 1, retries,
                        )
                        self._sleep(delay)
                        continue

                    response.raise_for_status()
                    return response.json()

                except httpx.TimeoutException:
                    logger.warning("Yelp API timeout (attempt %d/%d)", retry + 1, retries)
                    if retry < retries - 1:
                        self._sleep(1)
                    continue

                except httpx.HTTPStatusError as exc:
                    raise UpstreamUnavailable(
                        f"Yelp API HTTP error {exc.response.status_code} for {endpoint}"
                    ) from exc

                except httpx.HTTPError as exc:
                    raise UpstreamUnavailable(f"Yelp API request error for {endpoint}: {exc}") from exc

                except ValueError as exc:
                    raise UpstreamUnavailable(f"Yelp API returned invalid JSON for {endpoint}") from exc

        raise UpstreamUnavailable(f"Yelp API exhausted all {retries} retries for {endpoint}")
