from __future__ import annotations

import json
import logging
import re
from typing import Any, Sequence

from groq import Groq
from pydantic import ValidationError

from ..recommendations.errors import AnalysisFailure, MatchingFailure
from ..recommendations.models import Provenance, Venue, VibeProfile
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a restaurant and bar vibe analysis expert. "
    "Given a venue's details and reviews, describe its atmosphere.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    "{\n"
    '  "primaryVibe": "<dominant atmosphere, e.g. romantic, lively, cozy, upscale>",\n'
    '  "secondaryVibes": ["<vibe>", "<vibe>"],\n'
    '  "ambienceFactors": {"lighting": "", "noiseLevel": "", "crowdedness": "", "decor": "", "music": ""},\n'
    '  "suitableFor": ["<occasion, e.g. date night, business meeting>"],\n'
    '  "vibeKeywords": ["<10 keywords capturing the vibe>"],\n'
    '  "similarVenueTypes": ["<venue type>"],\n'
    '  "uniqueAttributes": ["<what sets this place apart>"]\n'
    "}"
)

MATCHING_SYSTEM_PROMPT = (
    "You are a venue matching expert. "
    "Given a user's vibe description and a numbered list of venues with their vibe "
    "profiles, score how well each venue matches the description.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"matches": [{"venueIndex": <venue number>, "matchScore": <0-100>, '
    '"matchReasons": ["<reason>", "<reason>"], "rank": <1 = best>}]}\n'
    "Include only venues from the provided list. Order from best match to worst."
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def _build_analysis_message(venue: Venue, review_limit: int) -> str:
    lines = ["## Venue"]
    lines.append(f"- Name: {venue.name}")
    lines.append(f"- Categories: {', '.join(venue.categories)}")
    lines.append(f"- Price range: {venue.price or 'Unknown'}")

    lines.append("\n## Reviews")
    reviews = venue.reviews[:review_limit]
    if not reviews:
        lines.append("No reviews available.")
    for review in reviews:
        lines.append(f'"{review.text}" - {review.rating or 0:g} stars')

    return "\n".join(lines)


def _build_matching_message(
    description: str,
    candidates: Sequence[tuple[Venue, VibeProfile]],
) -> str:
    lines = ["## Desired Vibe", description, "\n## Venues"]
    for i, (venue, profile) in enumerate(candidates, start=1):
        lines.append(f"Venue {i}: {venue.name}")
        lines.append(f"- Primary Vibe: {profile.primary_vibe}")
        lines.append(f"- Secondary Vibes: {', '.join(profile.secondary_vibes)}")
        lines.append(f"- Keywords: {', '.join(profile.vibe_keywords)}")
        lines.append(f"- Suitable For: {', '.join(profile.suitable_for)}")
    return "\n".join(lines)


def _complete(system_prompt: str, user_message: str, config: LLMConfig, temperature: float) -> str:
    client = Groq(api_key=config.api_key, timeout=config.timeout)
    response = client.chat.completions.create(
        model=config.model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        max_tokens=config.max_tokens,
        temperature=temperature,
        response_format={"type": "json_object"},
    )
    return response.choices[0].message.content or ""


def parse_vibe_profile(text: str) -> VibeProfile:
    """Extract the first JSON object from ``text`` as a vibe profile."""
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        raise AnalysisFailure("No JSON object in vibe analysis output")
    try:
        parsed = json.loads(match.group(0))
        return VibeProfile.model_validate(parsed)
    except (ValueError, TypeError, ValidationError) as exc:
        raise AnalysisFailure(f"Unusable vibe analysis output: {exc}") from exc


def parse_match_items(text: str) -> list[Any]:
    """
    Extract the scored items from matching output.

    Accepts a ``{"matches": [...]}`` object or a bare JSON array.
    """
    text = text or ""
    try:
        parsed: Any = json.loads(text)
    except ValueError:
        match = _JSON_ARRAY.search(text)
        if match is None:
            raise MatchingFailure("No JSON array in vibe matching output") from None
        try:
            parsed = json.loads(match.group(0))
        except ValueError as exc:
            raise MatchingFailure(f"Unparseable vibe matching output: {exc}") from exc

    if isinstance(parsed, dict):
        parsed = parsed.get("matches")
    if not isinstance(parsed, list):
        raise MatchingFailure("Vibe matching output is not a list of matches")
    return parsed


def generate_vibe_profile(venue: Venue, config: LLMConfig = DEFAULT_LLM_CONFIG) -> VibeProfile:
    """
    Call Groq LLM to produce a vibe profile for ``venue``.

    Raises AnalysisFailure when the LLM is disabled, the call fails, or
    the output does not parse into a profile with a primary vibe.
    """
    if not config.enabled or not config.api_key:
        raise AnalysisFailure("Groq vibe analysis is not configured")

    try:
        content = _complete(
            ANALYSIS_SYSTEM_PROMPT,
            _build_analysis_message(venue, config.review_limit),
            config,
            temperature=config.analysis_temperature,
        )
    except Exception as exc:
        raise AnalysisFailure(f"Groq vibe analysis call failed: {exc}") from exc

    profile = parse_vibe_profile(content)
    logger.debug("Generated vibe profile for %s: %s", venue.id, profile.primary_vibe)
    return profile.model_copy(update={"venue_id": venue.id, "provenance": Provenance.generated})


def score_vibe_matches(
    description: str,
    candidates: Sequence[tuple[Venue, VibeProfile]],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[Any]:
    """
    Call Groq LLM to score candidates against a vibe description.

    Returns the raw scored items; validation is left to the matcher.
    Raises MatchingFailure when the LLM is disabled, the call fails, or
    the output holds no list of items.
    """
    if not config.enabled or not config.api_key:
        raise MatchingFailure("Groq vibe matching is not configured")

    try:
        content = _complete(
            MATCHING_SYSTEM_PROMPT,
            _build_matching_message(description, candidates),
            config,
            temperature=config.match_temperature,
        )
    except Exception as exc:
        raise MatchingFailure(f"Groq vibe matching call failed: {exc}") from exc

    return parse_match_items(content)
