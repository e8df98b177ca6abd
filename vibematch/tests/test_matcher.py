from unittest.mock import MagicMock

from vibematch.recommendations.errors import MatchingFailure
from vibematch.recommendations.models import Availability, Provenance, RestaurantOut, Venue
from vibematch.vibe.fallback import synthesize
from vibematch.vibe.matcher import GENERIC_REASON, match_vibe, sort_by_availability


def _candidates(n):
    venues = [Venue(id=f"v{i}", name=f"Venue {i}") for i in range(1, n + 1)]
    return [(v, synthesize(v)) for v in venues]


def _scorer(items):
    return MagicMock(return_value=items)


# ── Fallback ranking ─────────────────────────────────────────────────────


def test_fallback_when_scorer_raises():
    scorer = MagicMock(side_effect=MatchingFailure("down"))
    ranking = match_vibe("chill", _candidates(3), scorer)

    assert ranking.provenance is Provenance.fallback
    assert [m.venue_id for m in ranking.matches] == ["v1", "v2", "v3"]
    assert [m.match_score for m in ranking.matches] == [100, 90, 80]
    assert [m.rank for m in ranking.matches] == [1, 2, 3]
    assert all(m.match_reasons == [GENERIC_REASON] for m in ranking.matches)


def test_fallback_scores_are_non_increasing_and_floor_at_zero():
    ranking = match_vibe("chill", _candidates(12), MagicMock(side_effect=RuntimeError))
    scores = [m.match_score for m in ranking.matches]

    assert scores == sorted(scores, reverse=True)
    assert scores[-2:] == [0, 0]
    assert [m.rank for m in ranking.matches] == list(range(1, 13))


def test_fallback_when_scorer_returns_non_list():
    ranking = match_vibe("chill", _candidates(2), _scorer({"oops": True}))
    assert ranking.provenance is Provenance.fallback


def test_fallback_when_no_item_survives_validation():
    ranking = match_vibe("chill", _candidates(2), _scorer([{"venueIndex": 7}, "junk"]))
    assert ranking.provenance is Provenance.fallback
    assert len(ranking.matches) == 2


def test_empty_candidates_skip_the_scorer():
    scorer = MagicMock()
    ranking = match_vibe("chill", [], scorer)
    assert ranking.matches == []
    scorer.assert_not_called()


# ── Generated ranking ────────────────────────────────────────────────────


def test_scored_items_are_reordered_by_rank():
    ranking = match_vibe("romantic", _candidates(3), _scorer([
        {"venueIndex": 1, "matchScore": 60, "matchReasons": ["ok"], "rank": 3},
        {"venueIndex": 2, "matchScore": 95, "matchReasons": ["candlelit"], "rank": 1},
        {"venueIndex": 3, "matchScore": 80, "matchReasons": ["quiet"], "rank": 2},
    ]))

    assert ranking.provenance is Provenance.generated
    assert [m.venue_id for m in ranking.matches] == ["v2", "v3", "v1"]
    assert [m.rank for m in ranking.matches] == [1, 2, 3]
    assert ranking.matches[0].venue_name == "Venue 2"
    assert ranking.matches[0].match_reasons == ["candlelit"]


def test_invalid_and_duplicate_indices_are_dropped_and_ranks_renumbered():
    ranking = match_vibe("romantic", _candidates(3), _scorer([
        {"venueIndex": 0, "matchScore": 99, "matchReasons": ["x"], "rank": 1},
        {"venueIndex": 4, "matchScore": 99, "matchReasons": ["x"], "rank": 1},
        {"venueIndex": "two", "matchScore": 99, "matchReasons": ["x"], "rank": 1},
        {"venueIndex": 3, "matchScore": 70, "matchReasons": ["x"], "rank": 5},
        {"venueIndex": 3, "matchScore": 10, "matchReasons": ["dup"], "rank": 1},
        {"venueIndex": 1, "matchScore": 90, "matchReasons": ["x"], "rank": 2},
    ]))

    assert [m.venue_id for m in ranking.matches] == ["v1", "v3"]
    assert [m.rank for m in ranking.matches] == [1, 2]
    assert ranking.matches[1].match_score == 70


def test_scores_are_clamped_and_empty_reasons_replaced():
    ranking = match_vibe("romantic", _candidates(3), _scorer([
        {"venueIndex": 1, "matchScore": 140, "matchReasons": [], "rank": 1},
        {"venueIndex": 2, "matchScore": -5, "matchReasons": "single reason", "rank": 2},
        {"venueIndex": 3, "matchScore": "n/a", "rank": 3},
    ]))

    assert [m.match_score for m in ranking.matches] == [100, 0, 0]
    assert ranking.matches[0].match_reasons == [GENERIC_REASON]
    assert ranking.matches[1].match_reasons == ["single reason"]
    assert ranking.matches[2].match_reasons == [GENERIC_REASON]


def test_rank_ties_and_missing_ranks_follow_input_index():
    ranking = match_vibe("romantic", _candidates(3), _scorer([
        {"venueIndex": 3, "matchScore": 50, "matchReasons": ["x"]},
        {"venueIndex": 2, "matchScore": 50, "matchReasons": ["x"], "rank": 1},
        {"venueIndex": 1, "matchScore": 50, "matchReasons": ["x"], "rank": 1},
    ]))

    assert [m.venue_id for m in ranking.matches] == ["v1", "v2", "v3"]


def test_scorer_receives_description_and_candidates():
    candidates = _candidates(2)
    scorer = _scorer([{"venueIndex": 1, "matchScore": 80, "matchReasons": ["x"], "rank": 1}])

    match_vibe("dim and quiet", candidates, scorer)

    scorer.assert_called_once_with("dim and quiet", candidates)


# ── Availability ordering ────────────────────────────────────────────────


def _restaurant(name, rating, available=None):
    availability = None if available is None else Availability(restaurant_name=name, available=available)
    return RestaurantOut(id=name, name=name, rating=rating, categories=["Restaurant"], availability=availability)


def test_available_first_then_rating_descending():
    ordered = sort_by_availability([
        _restaurant("a", 4.9, available=False),
        _restaurant("b", 4.1, available=True),
        _restaurant("c", 4.6, available=True),
        _restaurant("d", 4.8),
    ])
    assert [r.name for r in ordered] == ["c", "b", "a", "d"]


def test_equal_ratings_keep_input_order():
    ordered = sort_by_availability([
        _restaurant("first", 4.5, available=True),
        _restaurant("second", 4.5, available=True),
    ])
    assert [r.name for r in ordered] == ["first", "second"]


# ── Malformed scorer output ──────────────────────────────────────────────


def test_non_finite_scores_are_clamped():
    ranking = match_vibe("cozy", _candidates(3), _scorer([
        {"venueIndex": 1, "matchScore": float("inf"), "matchReasons": ["x"], "rank": 1},
        {"venueIndex": 2, "matchScore": float("-inf"), "matchReasons": ["x"], "rank": 2},
        {"venueIndex": 3, "matchScore": float("nan"), "matchReasons": ["x"], "rank": 3},
    ]))

    assert ranking.provenance is Provenance.generated
    assert [m.match_score for m in ranking.matches] == [100, 0, 0]


def test_non_decimal_digit_index_is_dropped():
    ranking = match_vibe("cozy", _candidates(2), _scorer([
        {"venueIndex": "²", "matchScore": 90, "matchReasons": ["x"], "rank": 1},
        {"venueIndex": "2", "matchScore": 80, "matchReasons": ["x"], "rank": 2},
    ]))

    assert [m.venue_id for m in ranking.matches] == ["v2"]


def test_validation_errors_fall_back_to_input_order():
    class Exploding(dict):
        def get(self, key, default=None):
            raise RuntimeError("bad item")

    ranking = match_vibe("cozy", _candidates(2), _scorer([Exploding()]))

    assert ranking.provenance is Provenance.fallback
    assert [m.venue_id for m in ranking.matches] == ["v1", "v2"]
