# carrymatch/core/matching/models.py
"""
Match record owned by the ledger.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from carrymatch.shared.models.enums import MatchStatus


ACTIVE_STATUSES: frozenset[MatchStatus] = frozenset(
    {MatchStatus.PROPOSED, MatchStatus.PENDING, MatchStatus.CONFIRMED}
)
TERMINAL_STATUSES: frozenset[MatchStatus] = frozenset(
    {MatchStatus.REJECTED, MatchStatus.COMPLETED, MatchStatus.CANCELLED}
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Match(BaseModel):
    """Pairing of one demand with one journey."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = Field(None, description="Assigned by the ledger on insert")
    demand_id: str
    journey_id: int
    demand_owner_id: str
    journey_owner_id: str

    status: MatchStatus = MatchStatus.PROPOSED
    score: float = Field(..., ge=0.0, le=1.0)

    demander_confirmed: bool = False
    traveler_confirmed: bool = False

    matched_at: datetime = Field(default_factory=utcnow)
    confirmed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Optimistic concurrency token, bumped by every save
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def propose(
        cls,
        demand_id: str,
        journey_id: int,
        demand_owner_id: str,
        journey_owner_id: str,
        score: float,
        now: datetime | None = None,
    ) -> "Match":
        """New PROPOSED match with both confirmations cleared."""
        now = now or utcnow()
        return cls(
            demand_id=demand_id,
            journey_id=journey_id,
            demand_owner_id=demand_owner_id,
            journey_owner_id=journey_owner_id,
            status=MatchStatus.PROPOSED,
            score=score,
            matched_at=now,
            updated_at=now,
        )
