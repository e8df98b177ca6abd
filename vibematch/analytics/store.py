from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any

# Oldest events drop off once the log is full.
MAX_EVENTS = 10_000

_events: deque[dict[str, Any]] = deque(maxlen=MAX_EVENTS)
_lock = threading.Lock()


def record_event(flow: str, data: dict[str, Any]) -> None:
    """Append one flow event; ``data`` keys are merged into the event."""
    with _lock:
        _events.append({
            **data,
            "type": flow,
            "timestamp": time.time(),
        })


def get_events() -> list[dict[str, Any]]:
    with _lock:
        return list(_events)


def clear_events() -> None:
    with _lock:
        _events.clear()
