from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from ..cache.store import CacheStore
from ..recommendations.models import Venue, VibeProfile
from .fallback import synthesize

logger = logging.getLogger(__name__)

VibeGenerator = Callable[[Venue], VibeProfile]


@dataclass(frozen=True)
class VibeLookup:
    profile: VibeProfile
    cache_hit: bool


class SingleFlight:
    """Per-key locks so concurrent misses for one key run a single generation."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]


def _generate(store: CacheStore, venue: Venue, generator: VibeGenerator) -> VibeProfile:
    logger.info("Generating new vibe analysis for %s", venue.id)
    try:
        profile = generator(venue)
    except Exception:
        logger.warning(
            "Vibe analysis failed for %s, falling back to category heuristics",
            venue.id,
            exc_info=True,
        )
        return synthesize(venue)

    profile = profile.model_copy(update={"venue_id": venue.id})
    store.save_vibe_profile(profile)
    return profile


def lookup_vibe_profile(
    store: CacheStore,
    venue: Venue,
    generator: VibeGenerator,
    single_flight: SingleFlight | None = None,
) -> VibeLookup:
    """
    Return the cached vibe profile for ``venue``, generating it on a miss.

    A generated profile is cached before it is returned. If generation
    fails the heuristic fallback profile is returned and nothing is
    cached. Never raises.
    """
    cached = store.get_vibe_profile(venue.id)
    if cached is not None:
        logger.debug("Using cached vibe analysis for %s", venue.id)
        return VibeLookup(cached, cache_hit=True)

    if single_flight is None:
        return VibeLookup(_generate(store, venue, generator), cache_hit=False)

    with single_flight.hold(venue.id):
        cached = store.get_vibe_profile(venue.id)
        if cached is not None:
            return VibeLookup(cached, cache_hit=True)
        return VibeLookup(_generate(store, venue, generator), cache_hit=False)


def get_or_create_vibe_profile(
    store: CacheStore,
    venue: Venue,
    generator: VibeGenerator,
    single_flight: SingleFlight | None = None,
) -> VibeProfile:
    return lookup_vibe_profile(store, venue, generator, single_flight).profile
