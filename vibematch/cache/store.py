from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from ..recommendations.models import Venue, VibeProfile
from .config import DEFAULT_CACHE_CONFIG, CacheConfig

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]{0,127}$")
_TIMESTAMP_FIELD = "cached_at"


class Namespace(str, Enum):
    VENUE_DATA = "venue-data"
    VIBE_ANALYSIS = "vibe-analysis"


@dataclass(frozen=True)
class CacheEntry:
    namespace: Namespace
    key: str
    value: dict[str, Any]
    cached_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _make_file_name(key: str) -> str:
    if _SAFE_KEY.match(key):
        return f"{key}.json"
    return hashlib.sha256(key.encode()).hexdigest()[:32] + ".json"


def _parse_timestamp(value: Any) -> datetime:
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    stamp = datetime.fromisoformat(text)
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def _read_record(path: Path) -> tuple[dict[str, Any], datetime]:
    record = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(record, dict):
        raise ValueError(f"cache record in {path.name} is not an object")
    return record, _parse_timestamp(record[_TIMESTAMP_FIELD])


class CacheStore:
    """
    File-backed, namespaced record cache with per-namespace TTLs.

    Each record is one JSON file under ``<root>/<namespace>/``. Reads past
    the TTL report absent but leave the file in place; ``sweep`` deletes.
    Storage errors never escape: reads degrade to a miss, writes to a
    logged warning.
    """

    def __init__(
        self,
        config: CacheConfig = DEFAULT_CACHE_CONFIG,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._counter_lock = threading.Lock()

    def _count(self, hit: bool) -> None:
        with self._counter_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def open(self) -> None:
        """Create the namespace directories."""
        for namespace in Namespace:
            try:
                self._dir(namespace).mkdir(parents=True, exist_ok=True)
            except OSError:
                logger.warning("Could not create cache directory for %s", namespace.value, exc_info=True)

    def ttl(self, namespace: Namespace) -> timedelta:
        if namespace is Namespace.VENUE_DATA:
            return self.config.venue_ttl
        return self.config.vibe_ttl

    # ── Generic records ──────────────────────────────────────────────────

    def get(
        self,
        namespace: Namespace,
        key: str,
        max_age: timedelta | None = None,
    ) -> CacheEntry | None:
        path = self._path(namespace, key)
        try:
            record, cached_at = _read_record(path)
        except FileNotFoundError:
            self._count(hit=False)
            return None
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Unreadable %s cache record for %s", namespace.value, key, exc_info=True)
            self._count(hit=False)
            return None

        limit = self.ttl(namespace) if max_age is None else max_age
        age = self._clock() - cached_at
        if age > limit:
            logger.info(
                "Cache expired for %s %s, age: %.1f days",
                namespace.value, key, age.total_seconds() / 86400,
            )
            self._count(hit=False)
            return None

        self._count(hit=True)
        value = {k: v for k, v in record.items() if k != _TIMESTAMP_FIELD}
        return CacheEntry(namespace=namespace, key=key, value=value, cached_at=cached_at)

    def put(self, namespace: Namespace, key: str, value: dict[str, Any]) -> bool:
        """Atomically write ``value`` stamped with the current time."""
        record = {**value, _TIMESTAMP_FIELD: self._clock().isoformat()}
        directory = self._dir(namespace)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(record, fh, indent=2)
                os.replace(tmp_name, self._path(namespace, key))
            except Exception:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError):
            logger.warning("Error writing %s cache record for %s", namespace.value, key, exc_info=True)
            return False
        return True

    def sweep(self, namespace: Namespace, max_age: timedelta | None = None) -> int:
        """Delete expired or unreadable records, returning how many went."""
        limit = self.ttl(namespace) if max_age is None else max_age
        now = self._clock()
        removed = 0
        for path in self._list_records(namespace):
            try:
                _, cached_at = _read_record(path)
                expired = now - cached_at > limit
            except (OSError, ValueError, KeyError, TypeError):
                expired = True
            if not expired:
                continue
            try:
                path.unlink()
                removed += 1
            except OSError:
                logger.warning("Could not delete cache file %s", path, exc_info=True)

        logger.info("Cleared %d expired %s cache entries", removed, namespace.value)
        return removed

    def sweep_all(
        self,
        venue_max_age: timedelta | None = None,
        vibe_max_age: timedelta | None = None,
    ) -> int:
        return self.sweep(Namespace.VENUE_DATA, venue_max_age) + self.sweep(
            Namespace.VIBE_ANALYSIS, vibe_max_age
        )

    # ── Typed records ────────────────────────────────────────────────────

    def get_venue(self, venue_id: str, max_age: timedelta | None = None) -> Venue | None:
        entry = self.get(Namespace.VENUE_DATA, venue_id, max_age)
        if entry is None:
            return None
        try:
            return Venue.model_validate(entry.value)
        except ValidationError:
            logger.warning("Discarding malformed cached venue %s", venue_id, exc_info=True)
            return None

    def save_venue(self, venue: Venue) -> bool:
        return self.put(Namespace.VENUE_DATA, venue.id, venue.model_dump(mode="json"))

    def get_vibe_profile(
        self, venue_id: str, max_age: timedelta | None = None,
    ) -> VibeProfile | None:
        entry = self.get(Namespace.VIBE_ANALYSIS, venue_id, max_age)
        if entry is None:
            return None
        try:
            return VibeProfile.model_validate(entry.value["analysis"])
        except (ValidationError, KeyError, TypeError):
            logger.warning("Discarding malformed cached vibe analysis %s", venue_id, exc_info=True)
            return None

    def save_vibe_profile(self, profile: VibeProfile) -> bool:
        record = {
            "venue_id": profile.venue_id,
            "analysis": profile.model_dump(mode="json", by_alias=True),
        }
        return self.put(Namespace.VIBE_ANALYSIS, profile.venue_id, record)

    # ── Housekeeping ─────────────────────────────────────────────────────

    def stats(self) -> dict[str, Any]:
        with self._counter_lock:
            hits, misses = self._hits, self._misses
        total = hits + misses
        return {
            "size": {ns.value: len(self._list_records(ns)) for ns in Namespace},
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / total * 100, 1) if total > 0 else 0.0,
        }

    def clear(self) -> None:
        for namespace in Namespace:
            for path in self._list_records(namespace):
                path.unlink(missing_ok=True)
        with self._counter_lock:
            self._hits = 0
            self._misses = 0

    def _list_records(self, namespace: Namespace) -> list[Path]:
        try:
            return sorted(self._dir(namespace).glob("*.json"))
        except OSError:
            logger.warning("Could not list %s cache records", namespace.value, exc_info=True)
            return []

    def _dir(self, namespace: Namespace) -> Path:
        return Path(self.config.root_dir) / namespace.value

    def _path(self, namespace: Namespace, key: str) -> Path:
        return self._dir(namespace) / _make_file_name(key)
