from __future__ import annotations


class VibeMatchError(Exception):
    """Base class for failures raised inside the recommendation engine."""


class UpstreamUnavailable(VibeMatchError):
    """Listing search, detail or review fetch failed."""


class AnalysisFailure(VibeMatchError):
    """Vibe-profile generation failed or returned unusable content."""


class MatchingFailure(VibeMatchError):
    """External vibe scoring failed or returned unusable content."""


class InvalidState(VibeMatchError):
    """The caller-supplied swipe session violates a disposition rule."""


class PoolExhausted(VibeMatchError):
    """Every venue in the candidate pool has already been seen."""
