from vibematch.vibe.vibe_map import EMPTY_PARAMS, VIBE_MAP, get_attributes_string, get_search_params


def test_map_covers_ten_vibes():
    assert set(VIBE_MAP) == {
        "romantic", "lively", "cozy", "upscale", "trendy",
        "quiet", "outdoor", "casual", "hipster", "classic",
    }


def test_exact_match_is_case_insensitive():
    assert get_search_params("Romantic") is VIBE_MAP["romantic"]


def test_input_containing_a_vibe_term():
    assert get_search_params("super cozy spot") is VIBE_MAP["cozy"]


def test_vibe_term_containing_input():
    assert get_search_params("trend") is VIBE_MAP["trendy"]


def test_keyword_match():
    assert get_search_params("rooftop") is VIBE_MAP["outdoor"]
    assert get_search_params("serene") is VIBE_MAP["quiet"]


def test_unknown_and_blank_vibes_are_empty():
    assert get_search_params("xyzzy") is EMPTY_PARAMS
    assert get_search_params("") is EMPTY_PARAMS
    assert get_search_params(None) is EMPTY_PARAMS


def test_attributes_string():
    assert get_attributes_string("outdoor") == "outdoor_seating,restaurants_outdoor_seating"
    assert get_attributes_string("nothing matches this") == ""
