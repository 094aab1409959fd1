from fastapi import APIRouter, Depends, HTTPException, status

from carrymatch.services.matching_service.dependencies import get_current_user_id, get_matching_service
from carrymatch.services.matching_service.service import MatchingService
from carrymatch.shared.models.enums import MatchStatus
from carrymatch.shared.models.match_dto import MatchConfirmRequest, MatchDTO

router = APIRouter(prefix="/matches", tags=["Matches"])

# Static paths are registered before /{match_id} so they are not shadowed


@router.get("", response_model=list[MatchDTO])
async def get_my_matches(
    user_id: str = Depends(get_current_user_id),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.get_matches_by_user(user_id)


@router.get("/status/{match_status}", response_model=list[MatchDTO])
async def get_my_matches_by_status(
    match_status: str,
    user_id: str = Depends(get_current_user_id),
    service: MatchingService = Depends(get_matching_service),
):
    try:
        parsed = MatchStatus.parse(match_status)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown match status: {match_status}",
        )
    return await service.get_matches_by_status_and_user(parsed, user_id)


@router.get("/demand/{demand_id}", response_model=list[MatchDTO])
async def get_matches_for_demand(
    demand_id: str,
    service: MatchingService = Depends(get_matching_service),
):
    return await service.get_matches_by_demand(demand_id)


@router.get("/journey/{journey_id}", response_model=list[MatchDTO])
async def get_matches_for_journey(
    journey_id: int,
    service: MatchingService = Depends(get_matching_service),
):
    return await service.get_matches_by_journey(journey_id)


@router.post("/demand/{demand_id}/find", response_model=list[MatchDTO])
async def find_matches_for_demand(
    demand_id: str,
    service: MatchingService = Depends(get_matching_service),
):
    return await service.find_matches_for_demand(demand_id)


@router.post("/journey/{journey_id}/find", response_model=list[MatchDTO])
async def find_matches_for_journey(
    journey_id: int,
    service: MatchingService = Depends(get_matching_service),
):
    return await service.find_matches_for_journey(journey_id)


@router.get("/{match_id}", response_model=MatchDTO)
async def get_match(
    match_id: int,
    service: MatchingService = Depends(get_matching_service),
):
    return await service.get_match(match_id)


@router.put("/{match_id}/confirm/demander", response_model=MatchDTO)
async def confirm_by_demander(
    match_id: int,
    request: MatchConfirmRequest,
    user_id: str = Depends(get_current_user_id),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.confirm_match_by_demander(match_id, user_id, request.confirmed)


@router.put("/{match_id}/confirm/traveler", response_model=MatchDTO)
async def confirm_by_traveler(
    match_id: int,
    request: MatchConfirmRequest,
    user_id: str = Depends(get_current_user_id),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.confirm_match_by_traveler(match_id, user_id, request.confirmed)


@router.put("/{match_id}/complete", response_model=MatchDTO)
async def complete_match(
    match_id: int,
    user_id: str = Depends(get_current_user_id),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.complete_match(match_id, user_id)


@router.put("/{match_id}/cancel", response_model=MatchDTO)
async def cancel_match(
    match_id: int,
    user_id: str = Depends(get_current_user_id),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.cancel_match(match_id, user_id)
