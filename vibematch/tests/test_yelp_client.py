from unittest.mock import patch

import httpx
import pytest

from vibematch.listings.config import YelpConfig
from vibematch.listings.yelp_client import YelpClient, categories_for
from vibematch.recommendations.errors import UpstreamUnavailable
from vibematch.recommendations.models import VenueQuery

CONFIG = YelpConfig(api_key="test-key", max_retries=3)

_RealClient = httpx.Client


def _business(business_id, *titles, **extra):
    return {
        "id": business_id,
        "name": business_id.title(),
        "rating": 4.5,
        "categories": [{"alias": t.lower(), "title": t} for t in titles],
        "location": {"address1": "1 Main St"},
        **extra,
    }


class FakeYelp:
    """Serves queued responses through httpx.MockTransport and records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []
        self.sleeps: list[float] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, int):
            return httpx.Response(item, json={})
        return httpx.Response(200, json=item)

    def client(self) -> YelpClient:
        return YelpClient(CONFIG, sleep=self.sleeps.append)

    def patch(self):
        transport = httpx.MockTransport(self.handler)
        return patch(
            "vibematch.listings.yelp_client.httpx.Client",
            side_effect=lambda **kwargs: _RealClient(transport=transport),
        )


# ── Categories ───────────────────────────────────────────────────────────


def test_categories_for_bar_subtypes():
    assert categories_for("bar", "cocktail") == "cocktailbars"
    assert categories_for("bar", "Wine") == "wine_bars"
    assert categories_for("bar") == "bars"
    assert categories_for("bar", "tiki") == "tiki"


def test_categories_for_restaurants():
    assert categories_for("restaurant") == "restaurants"
    assert categories_for("restaurant", "italian") == "italian"


# ── Search ───────────────────────────────────────────────────────────────


def test_search_sends_expected_params():
    fake = FakeYelp({"businesses": [_business("lilia", "Italian", "Restaurants")]})
    with fake.patch():
        venues = fake.client().search_businesses(
            VenueQuery(type="restaurant", location="Brooklyn, NY", price="3", limit=5)
        )

    assert [v.id for v in venues] == ["lilia"]
    request = fake.requests[0]
    assert request.url.path == "/v3/businesses/search"
    assert request.headers["Authorization"] == "Bearer test-key"
    params = request.url.params
    assert params["term"] == "restaurant"
    assert params["location"] == "Brooklyn, NY"
    assert params["categories"] == "restaurants"
    assert params["limit"] == "5"
    assert params["price"] == "3"
    assert "attributes" not in params


def test_bar_search_filters_non_bars():
    fake = FakeYelp({"businesses": [
        _business("attaboy", "Cocktail Bars"),
        _business("joes", "Pizza"),
        _business("dead-rabbit", "Pubs"),
    ]})
    with fake.patch():
        venues = fake.client().search_businesses(VenueQuery(type="bar", subtype="cocktail"))

    assert [v.id for v in venues] == ["attaboy", "dead-rabbit"]
    assert fake.requests[0].url.params["term"] == "bar"


def test_filter_that_removes_everything_keeps_unfiltered_list():
    fake = FakeYelp({"businesses": [_business("joes", "Pizza"), _business("katz", "Delis")]})
    with fake.patch():
        venues = fake.client().search_businesses(VenueQuery(type="bar"))

    assert [v.id for v in venues] == ["joes", "katz"]


def test_malformed_businesses_are_skipped():
    fake = FakeYelp({"businesses": [{"name": "no id"}, "junk", _business("ok", "Restaurants")]})
    with fake.patch():
        venues = fake.client().search_businesses(VenueQuery())

    assert [v.id for v in venues] == ["ok"]


def test_missing_location_is_rejected_without_a_request():
    fake = FakeYelp()
    with fake.patch():
        with pytest.raises(UpstreamUnavailable):
            fake.client().search_businesses(VenueQuery(location=""))
    assert fake.requests == []


def test_missing_api_key():
    with pytest.raises(UpstreamUnavailable):
        YelpClient(YelpConfig(api_key="")).search_businesses(VenueQuery())


def test_unexpected_response_shape():
    fake = FakeYelp({"total": 0})
    with fake.patch():
        with pytest.raises(UpstreamUnavailable):
            fake.client().search_businesses(VenueQuery())


# ── Transport ────────────────────────────────────────────────────────────


def test_rate_limit_retries_with_backoff():
    fake = FakeYelp(429, 429, {"businesses": [_business("ok", "Restaurants")]})
    with fake.patch():
        venues = fake.client().search_businesses(VenueQuery())

    assert [v.id for v in venues] == ["ok"]
    assert fake.sleeps == [1, 2]
    assert len(fake.requests) == 3


def test_rate_limit_exhausts_retries():
    fake = FakeYelp(429, 429, 429)
    with fake.patch():
        with pytest.raises(UpstreamUnavailable, match="retries"):
            fake.client().search_businesses(VenueQuery())
    assert fake.sleeps == [1, 2, 4]


def test_timeout_is_retried():
    fake = FakeYelp(httpx.ReadTimeout("slow"), {"businesses": []})
    with fake.patch():
        assert fake.client().search_businesses(VenueQuery()) == []
    assert len(fake.requests) == 2


def test_http_error_is_not_retried():
    fake = FakeYelp(500)
    with fake.patch():
        with pytest.raises(UpstreamUnavailable, match="500"):
            fake.client().search_businesses(VenueQuery())
    assert len(fake.requests) == 1


# ── Details ──────────────────────────────────────────────────────────────


def test_enhanced_business_merges_reviews():
    fake = FakeYelp(
        _business("carbone", "Italian", price="$$$$", photos=["a.jpg", "b.jpg"]),
        {"reviews": [{"text": "Spicy rigatoni!", "rating": 5}]},
    )
    with fake.patch():
        venue = fake.client().get_enhanced_business("carbone")

    assert venue.id == "carbone"
    assert venue.photos == ["a.jpg", "b.jpg"]
    assert venue.reviews[0].text == "Spicy rigatoni!"
    reviews_request = fake.requests[1]
    assert reviews_request.url.path == "/v3/businesses/carbone/reviews"
    assert reviews_request.url.params["limit"] == "50"
    assert reviews_request.url.params["sort_by"] == "yelp_sort"


def test_enhanced_business_fails_when_reviews_fail():
    fake = FakeYelp(_business("carbone", "Italian"), 404)
    with fake.patch():
        with pytest.raises(UpstreamUnavailable):
            fake.client().get_enhanced_business("carbone")
