from carrymatch.shared.models.common import ErrorResponse, HealthStatus
from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.enums import DemandStatus, JourneyStatus, MatchSide, MatchStatus
from carrymatch.shared.models.journey_dto import JourneySummary
from carrymatch.shared.models.match_dto import MatchConfirmRequest, MatchDTO

__all__ = [
    "DemandStatus",
    "DemandSummary",
    "ErrorResponse",
    "HealthStatus",
    "JourneyStatus",
    "JourneySummary",
    "MatchConfirmRequest",
    "MatchDTO",
    "MatchSide",
    "MatchStatus",
]
