from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .errors import InvalidState, PoolExhausted
from .models import SessionState, Venue


class Disposition(str, Enum):
    liked = "liked"
    rejected = "rejected"


@dataclass(frozen=True)
class Selection:
    venue: Venue
    remaining_count: int


def check_disposition(state: SessionState) -> None:
    """Raise InvalidState unless the session may advance to a new candidate."""
    if state.awaiting_disposition():
        raise InvalidState(
            f"Venue {state.current} must be liked or rejected before requesting another"
        )
    overlap = state.conflicting_ids()
    if overlap:
        raise InvalidState(f"Venues cannot be both liked and rejected: {', '.join(sorted(overlap))}")


def next_candidate(pool: Iterable[Venue], state: SessionState) -> Selection:
    """
    Pick the first venue in pool order the session has not excluded.

    ``remaining_count`` counts the other distinct unexcluded venues.
    Raises InvalidState on a disposition violation and PoolExhausted when
    nothing is left.
    """
    check_disposition(state)
    excluded = state.excluded_ids()

    unseen: list[Venue] = []
    unseen_ids: set[str] = set()
    for venue in pool:
        if venue.id in excluded or venue.id in unseen_ids:
            continue
        unseen_ids.add(venue.id)
        unseen.append(venue)

    if not unseen:
        raise PoolExhausted("No more venues available")
    return Selection(venue=unseen[0], remaining_count=len(unseen) - 1)


def present(state: SessionState, venue_id: str) -> SessionState:
    """Session after ``venue_id`` is shown: it becomes current and seen."""
    seen = state.seen if venue_id in state.seen else [*state.seen, venue_id]
    return state.model_copy(update={"seen": seen, "current": venue_id})


def record_disposition(
    state: SessionState, venue_id: str, disposition: Disposition,
) -> SessionState:
    """Session after the user likes or rejects ``venue_id``."""
    liked, rejected = list(state.liked), list(state.rejected)
    target, other = (liked, rejected) if disposition is Disposition.liked else (rejected, liked)
    if venue_id in other:
        raise InvalidState(f"Venue {venue_id} is already {'rejected' if other is rejected else 'liked'}")
    if venue_id not in target:
        target.append(venue_id)
    seen = state.seen if venue_id in state.seen else [*state.seen, venue_id]
    return state.model_copy(update={"seen": seen, "liked": liked, "rejected": rejected})
