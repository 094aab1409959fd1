# carrymatch/services/matching_service/dependencies.py
"""
Dependency injection for the Matching Service.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Header, HTTPException, Request, status

from carrymatch.common.constants import USER_ID_HEADER
from carrymatch.config import settings
from carrymatch.infra.database import get_db
from carrymatch.infra.event_bus import get_event_bus
from carrymatch.services.matching_service.clients import DemandSourceClient, JourneySourceClient
from carrymatch.services.matching_service.repository import MatchRepository
from carrymatch.services.matching_service.service import MatchingService


# Singletons living for the application lifetime
_demand_client: Optional[DemandSourceClient] = None
_journey_client: Optional[JourneySourceClient] = None


async def init_dependencies(
    demand_service_url: Optional[str] = None,
    journey_service_url: Optional[str] = None,
) -> None:
    """Creates the Source clients at startup."""
    global _demand_client, _journey_client
    _demand_client = DemandSourceClient(demand_service_url)
    _journey_client = JourneySourceClient(journey_service_url)


async def cleanup_dependencies() -> None:
    """Closes the Source clients at shutdown."""
    global _demand_client, _journey_client
    if _demand_client is not None:
        await _demand_client.close()
        _demand_client = None
    if _journey_client is not None:
        await _journey_client.close()
        _journey_client = None


def get_demand_client() -> DemandSourceClient:
    if _demand_client is None:
        raise RuntimeError("DemandSourceClient is not initialised. Call init_dependencies()")
    return _demand_client


def get_journey_client() -> JourneySourceClient:
    if _journey_client is None:
        raise RuntimeError("JourneySourceClient is not initialised. Call init_dependencies()")
    return _journey_client


def get_match_repository(request: Request) -> MatchRepository:
    return MatchRepository(get_db())


def get_matching_service(request: Request) -> MatchingService:
    return MatchingService(
        ledger=get_match_repository(request),
        demands=get_demand_client(),
        journeys=get_journey_client(),
        event_bus=get_event_bus(),
        min_score=settings.matching.MIN_MATCH_SCORE,
        max_retries=settings.matching.CONFIRM_MAX_RETRIES,
        enrichment_concurrency=settings.sources.ENRICHMENT_CONCURRENCY,
    )


async def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header(alias=USER_ID_HEADER)] = None,
) -> str:
    """
    Caller identity set by the gateway after authentication.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {USER_ID_HEADER} header",
        )
    return x_user_id.strip()
