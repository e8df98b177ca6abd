import pytest
from pydantic import ValidationError

from vibematch.recommendations.models import (
    RecommendationRequest,
    SessionState,
    Venue,
    VibeProfile,
    normalize_categories,
)


class TestCategoryNormalization:
    def test_title_records(self):
        assert normalize_categories([{"title": "Italian"}, {"title": "Wine Bars"}]) == ["Italian", "Wine Bars"]

    def test_plain_strings(self):
        assert normalize_categories(["Italian", " Pizza "]) == ["Italian", "Pizza"]

    def test_single_string(self):
        assert normalize_categories("Sushi") == ["Sushi"]

    def test_mixed_and_duplicate(self):
        assert normalize_categories(["Bars", {"title": "Bars"}, {"alias": "pubs"}]) == ["Bars", "pubs"]

    def test_empty_becomes_generic(self):
        assert normalize_categories([]) == ["Restaurant"]
        assert normalize_categories(None) == ["Restaurant"]
        assert normalize_categories([{"title": ""}]) == ["Restaurant"]


def test_venue_from_listing_normalizes_location_and_price():
    venue = Venue.from_listing({
        "id": "abc",
        "name": "Lilia",
        "rating": 4.6,
        "price": "$$$",
        "categories": [{"alias": "italian", "title": "Italian"}],
        "location": {"address1": "567 Union Ave", "display_address": ["567 Union Ave", "Brooklyn, NY"]},
        "reviews": [{"text": "Pasta heaven", "rating": 5}],
    })
    assert venue.address == "567 Union Ave"
    assert venue.price_tier == 3
    assert venue.categories == ["Italian"]
    assert venue.reviews[0].text == "Pasta heaven"
    assert "reviews" not in venue.raw


def test_venue_from_listing_with_string_location():
    venue = Venue.from_listing({"id": "x", "location": "Brooklyn, NY"})
    assert venue.address == "Brooklyn, NY"
    assert venue.name == "Unknown Venue"
    assert venue.price is None
    assert venue.price_tier is None


def test_venue_is_frozen():
    venue = Venue(id="x")
    with pytest.raises(ValidationError):
        venue.id = "y"


def test_unknown_price_is_dropped_and_numeric_price_mapped():
    assert Venue(id="x", price="cheap").price is None
    assert Venue(id="x", price="2").price == "$$"


def test_placeholder_keeps_only_id():
    venue = Venue.placeholder("gone-123")
    assert venue.id == "gone-123"
    assert venue.categories == ["Restaurant"]
    assert venue.reviews == []


def test_vibe_profile_accepts_camel_case_and_caps_keywords():
    profile = VibeProfile.model_validate({
        "primaryVibe": " romantic ",
        "secondaryVibes": ["intimate"],
        "vibeKeywords": [f"k{i}" for i in range(15)] + ["k0"],
        "ambienceFactors": {"noiseLevel": "quiet"},
        "suitableFor": "date night",
    })
    assert profile.primary_vibe == "romantic"
    assert len(profile.vibe_keywords) == 10
    assert profile.ambience_factors.noise_level == "quiet"
    assert profile.suitable_for == ["date night"]


def test_vibe_profile_requires_primary_vibe():
    with pytest.raises(ValidationError):
        VibeProfile.model_validate({"primaryVibe": "   "})
    with pytest.raises(ValidationError):
        VibeProfile.model_validate({"vibeKeywords": ["x"]})


def test_recommendation_request_requires_description():
    with pytest.raises(ValidationError):
        RecommendationRequest.model_validate({})
    with pytest.raises(ValidationError):
        RecommendationRequest.model_validate({"vibeDescription": "  "})

    request = RecommendationRequest.model_validate({"vibeDescription": "cozy"})
    assert request.type == "restaurant"
    assert request.location == "New York, NY"


def test_session_state_helpers():
    state = SessionState(seen=["a"], liked=["b"], rejected=["c"], current="d")
    assert state.excluded_ids() == {"a", "b", "c"}
    assert state.awaiting_disposition()
    assert not SessionState(liked=["d"], current="d").awaiting_disposition()
    assert SessionState(liked=["x"], rejected=["x"]).conflicting_ids() == {"x"}
