# carrymatch/shared/events/match_events.py
"""
Events of the matching domain.
"""

from __future__ import annotations

from typing import Literal

from carrymatch.shared.events.base import DomainEvent


class MatchProposed(DomainEvent):
    """A new match was stored for a demand/journey pair."""

    event_type: Literal["match.proposed"] = "match.proposed"

    match_id: int
    demand_id: str
    journey_id: int
    demand_owner_id: str
    journey_owner_id: str
    score: float


class MatchStatusChanged(DomainEvent):
    """A match moved between states."""

    event_type: Literal["match.status_changed"] = "match.status_changed"

    match_id: int
    demand_id: str
    journey_id: int
    old_status: str
    new_status: str
    changed_by: str
