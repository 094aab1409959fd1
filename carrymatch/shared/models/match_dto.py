from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.enums import MatchStatus
from carrymatch.shared.models.journey_dto import JourneySummary


class MatchDTO(BaseModel):
    """A match as returned to API callers, optionally enriched with both summaries."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    demand_id: str
    journey_id: int
    demand_owner_id: str
    journey_owner_id: str
    status: MatchStatus
    score: float
    demander_confirmed: bool = False
    traveler_confirmed: bool = False

    matched_at: datetime
    confirmed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Left empty when the Source lookup fails
    demand: Optional[DemandSummary] = None
    journey: Optional[JourneySummary] = None


class MatchConfirmRequest(BaseModel):
    confirmed: bool
