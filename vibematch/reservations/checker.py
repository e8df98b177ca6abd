"""
Reservation availability across OpenTable, Resy and SevenRooms.

Platform ids come from a static name mapping; each configured platform is
queried over HTTP and a platform failure is recorded on its own result
rather than raised.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urlencode

import httpx

from ..recommendations.models import Availability, PlatformAvailability
from .config import DEFAULT_RESERVATION_CONFIG, ReservationConfig

logger = logging.getLogger(__name__)

OPENTABLE_URL = "https://api.opentable.com/availability"
RESY_URL = "https://api.resy.com/api/4/find"
SEVENROOMS_URL = "https://api.sevenrooms.com/availability/check"


@dataclass(frozen=True)
class PlatformIds:
    opentable: str | None = None
    resy: str | None = None
    sevenrooms: str | None = None


RESERVATION_IDS: dict[str, PlatformIds] = {
    "Carbone": PlatformIds(opentable="123456", resy="carbone-nyc", sevenrooms="carbonenyc"),
    "Lilia": PlatformIds(resy="lilia-brooklyn"),
    "Le Bernardin": PlatformIds(opentable="789012", sevenrooms="lebernardinyc"),
}


def find_reservation_ids(restaurant_name: str) -> PlatformIds:
    """Platform ids for the first mapped name that contains, or is contained in, the query."""
    wanted = (restaurant_name or "").strip().lower()
    if not wanted:
        return PlatformIds()
    for name, ids in RESERVATION_IDS.items():
        if wanted in name.lower() or name.lower() in wanted:
            return ids
    return PlatformIds()


def _query_platform(
    client: httpx.Client,
    platform: str,
    url: str,
    params: dict[str, Any],
    headers: dict[str, str],
    parse: Callable[[Any], tuple[bool, list[str]]],
    reservation_url: str,
) -> PlatformAvailability:
    try:
        response = client.get(url, params=params, headers=headers)
        response.raise_for_status()
        available, times = parse(response.json())
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
        logger.error("%s API error: %s", platform, exc)
        return PlatformAvailability(platform=platform, available=False, error=str(exc))

    return PlatformAvailability(
        platform=platform, available=available, times=times, reservation_url=reservation_url,
    )


def _parse_opentable(data: Any) -> tuple[bool, list[str]]:
    return bool(data["available"]), [str(t) for t in data.get("available_times") or []]


def _parse_resy(data: Any) -> tuple[bool, list[str]]:
    results = data["results"]
    return len(results) > 0, [str(r["config"]["time_slot"]) for r in results]


def _parse_sevenrooms(data: Any) -> tuple[bool, list[str]]:
    return bool(data["availability"]), [str(t) for t in data.get("available_times") or []]


def check_opentable(
    client: httpx.Client, restaurant_id: str, party_size: int, date: str, time: str,
    config: ReservationConfig = DEFAULT_RESERVATION_CONFIG,
) -> PlatformAvailability:
    query = urlencode({"date": date, "time": time, "party": party_size})
    return _query_platform(
        client,
        "OpenTable",
        OPENTABLE_URL,
        {"restaurant_id": restaurant_id, "party_size": party_size, "date": date, "time": time},
        {"Authorization": f"Bearer {config.opentable_api_key}"},
        _parse_opentable,
        f"https://www.opentable.com/restaurant/profile/{restaurant_id}/reserve?{query}",
    )


def check_resy(
    client: httpx.Client, venue_id: str, party_size: int, date: str, time: str,
    config: ReservationConfig = DEFAULT_RESERVATION_CONFIG,
) -> PlatformAvailability:
    query = urlencode({"date": date, "seats": party_size})
    return _query_platform(
        client,
        "Resy",
        RESY_URL,
        {"venue_id": venue_id, "party_size": party_size, "day": date, "time": time},
        {
            "Authorization": f"Bearer {config.resy_api_key}",
            "X-Resy-Auth-Token": config.resy_auth_token,
        },
        _parse_resy,
        f"https://resy.com/restaurants/{venue_id}?{query}",
    )


def check_sevenrooms(
    client: httpx.Client, venue_id: str, party_size: int, date: str, time: str,
    config: ReservationConfig = DEFAULT_RESERVATION_CONFIG,
) -> PlatformAvailability:
    query = urlencode({"party": party_size, "date": date, "time": time})
    return _query_platform(
        client,
        "SevenRooms",
        SEVENROOMS_URL,
        {"venue_id": venue_id, "party_size": party_size, "date": date, "time": time},
        {"Authorization": f"Bearer {config.sevenrooms_api_key}"},
        _parse_sevenrooms,
        f"https://sevenrooms.com/reservations/{venue_id}?{query}",
    )


def check_availability(
    restaurant_name: str,
    party_size: int,
    date: str,
    time: str,
    config: ReservationConfig = DEFAULT_RESERVATION_CONFIG,
) -> Availability:
    """Availability for ``restaurant_name`` on every platform it is listed on. Never raises."""
    ids = find_reservation_ids(restaurant_name)
    platforms: list[PlatformAvailability] = []

    try:
        with httpx.Client(timeout=config.timeout) as client:
            if ids.opentable:
                platforms.append(check_opentable(client, ids.opentable, party_size, date, time, config))
            if ids.resy:
                platforms.append(check_resy(client, ids.resy, party_size, date, time, config))
            if ids.sevenrooms:
                platforms.append(check_sevenrooms(client, ids.sevenrooms, party_size, date, time, config))
    except httpx.HTTPError as exc:
        logger.error("Error checking availability for %s: %s", restaurant_name, exc)
        return Availability(restaurant_name=restaurant_name, available=False, error=str(exc))

    return Availability(
        restaurant_name=restaurant_name,
        date=date,
        time=time,
        party_size=party_size,
        platforms=platforms,
        available=any(p.available for p in platforms),
    )
