from __future__ import annotations

from collections import Counter
from typing import Any

FLOW_TYPES = ("search", "detail", "match", "recommendation", "final", "restaurants")


def _rate(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


def _fallback_usage(events: list[dict[str, Any]], field: str) -> dict[str, Any]:
    relevant = [e for e in events if field in e]
    fallbacks = sum(1 for e in relevant if e[field] == "fallback")
    return {"total": len(relevant), "fallback": fallbacks, "rate": _rate(fallbacks, len(relevant))}


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    flow_counts = Counter(e["type"] for e in events)

    # Average response time
    times = [e["response_time_ms"] for e in events if "response_time_ms" in e]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Top vibes
    vibe_counter: Counter[str] = Counter()
    for e in events:
        if e.get("vibe_description"):
            vibe_counter[e["vibe_description"].strip().lower()] += 1
    top_vibes = [{"name": n, "count": c} for n, c in vibe_counter.most_common(10)]

    # Top locations
    loc_counter: Counter[str] = Counter()
    for e in events:
        if "location" in e:
            loc_counter[e.get("location") or "unknown"] += 1
    top_locations = [{"name": n, "count": c} for n, c in loc_counter.most_common(10)]

    # Vibe cache stats
    lookups = [e for e in events if "vibe_cache_hit" in e]
    cache_hits = sum(1 for e in lookups if e["vibe_cache_hit"])

    return {
        "totals": {flow: flow_counts.get(flow, 0) for flow in FLOW_TYPES},
        "avg_response_time_ms": avg_time,
        "top_vibes": top_vibes,
        "top_locations": top_locations,
        "vibe_cache_stats": {
            "hits": cache_hits,
            "misses": len(lookups) - cache_hits,
            "hit_rate": _rate(cache_hits, len(lookups)),
        },
        "fallback_usage": {
            "pool": _fallback_usage(events, "pool_provenance"),
            "analysis": _fallback_usage(events, "vibe_provenance"),
            "matching": _fallback_usage(events, "match_provenance"),
        },
        "exhausted_sessions": sum(1 for e in events if e.get("exhausted")),
    }
