# carrymatch/services/matching_service/service.py
"""
Matching orchestration.

Discovery:
1. Load the anchor (demand or journey) and require PENDING / ACTIVE
2. Load the opposite side from its Source, filter and score outside any lock
3. Under a per-anchor advisory lock, drop counterparts already actively
   matched and insert the rest as PROPOSED
4. Publish MatchProposed, return every match of the anchor enriched

Transitions re-read the match, apply the state machine and save with an
optimistic version check, retrying on a lost race.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable

from carrymatch.common.constants import TypeMsg
from carrymatch.common.logger import log_error, log_info, log_warning
from carrymatch.core.matching.eligibility import eligible
from carrymatch.core.matching.exceptions import (
    ConcurrentUpdateError,
    InvalidStateError,
    SourceError,
    StaleMatchError,
)
from carrymatch.core.matching.models import Match
from carrymatch.core.matching.ports import DemandSource, JourneySource, MatchLedger
from carrymatch.core.matching.scorer import MIN_MATCH_SCORE, score
from carrymatch.core.matching.state_machine import MatchStateMachine
from carrymatch.shared.events.base import DomainEvent
from carrymatch.shared.events.match_events import MatchProposed, MatchStatusChanged
from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.enums import DemandStatus, JourneyStatus, MatchSide, MatchStatus
from carrymatch.shared.models.journey_dto import JourneySummary
from carrymatch.shared.models.match_dto import MatchDTO

if TYPE_CHECKING:
    from carrymatch.infra.event_bus import EventBus


class MatchingService:
    """Discovery, confirmation protocol and read queries over the match ledger."""

    def __init__(
        self,
        ledger: MatchLedger,
        demands: DemandSource,
        journeys: JourneySource,
        event_bus: "EventBus | None" = None,
        min_score: float = MIN_MATCH_SCORE,
        max_retries: int = 3,
        enrichment_concurrency: int = 10,
    ):
        self.ledger = ledger
        self.demands = demands
        self.journeys = journeys
        self.event_bus = event_bus
        self.min_score = min_score
        self.max_retries = max(1, max_retries)
        self.enrichment_concurrency = max(1, enrichment_concurrency)

    # =========================================================================
    # DISCOVERY
    # =========================================================================

    async def find_matches_for_demand(self, demand_id: str) -> list[MatchDTO]:
        demand = await self.demands.get_by_id(demand_id)
        if demand.status != DemandStatus.PENDING:
            raise InvalidStateError(
                f"Demand {demand_id} is {demand.status}, only PENDING demands can be matched",
                demand_id=demand_id,
                status=demand.status,
            )

        journeys = await self.journeys.list_by_status(JourneyStatus.ACTIVE.value)
        candidates = self._score_candidates(
            (demand, journey) for journey in journeys if journey.status == JourneyStatus.ACTIVE
        )

        created: list[Match] = []
        async with self.ledger.locked_scope(f"demand:{demand.id}") as scope:
            already_matched = await scope.find_active_by_demand(demand.id)
            for _, journey, pair_score in candidates:
                if journey.id in already_matched:
                    continue
                match = await scope.create(Match.propose(
                    demand_id=demand.id,
                    journey_id=journey.id,
                    demand_owner_id=demand.owner_id,
                    journey_owner_id=journey.owner_id,
                    score=pair_score,
                ))
                if match is not None:
                    created.append(match)

        await log_info(
            f"Discovery for demand {demand.id}: {len(journeys)} journeys, "
            f"{len(candidates)} candidates, {len(created)} new matches",
            type_msg=TypeMsg.INFO,
        )
        await self._publish_proposed(created)

        matches = await self.ledger.list_by_demand(demand.id)
        return await self._enrich(
            matches,
            known_demands={demand.id: demand},
            known_journeys={journey.id: journey for journey in journeys},
        )

    async def find_matches_for_journey(self, journey_id: int) -> list[MatchDTO]:
        journey = await self.journeys.get_by_id(journey_id)
        if journey.status != JourneyStatus.ACTIVE:
            raise InvalidStateError(
                f"Journey {journey_id} is {journey.status}, only ACTIVE journeys can be matched",
                journey_id=journey_id,
                status=journey.status,
            )

        demands = await self.demands.search(status=DemandStatus.PENDING.value)
        candidates = self._score_candidates(
            (demand, journey) for demand in demands if demand.status == DemandStatus.PENDING
        )

        created: list[Match] = []
        async with self.ledger.locked_scope(f"journey:{journey.id}") as scope:
            already_matched = await scope.find_active_by_journey(journey.id)
            for demand, _, pair_score in candidates:
                if demand.id in already_matched:
                    continue
                match = await scope.create(Match.propose(
                    demand_id=demand.id,
                    journey_id=journey.id,
                    demand_owner_id=demand.owner_id,
                    journey_owner_id=journey.owner_id,
                    score=pair_score,
                ))
                if match is not None:
                    created.append(match)

        await log_info(
            f"Discovery for journey {journey.id}: {len(demands)} demands, "
            f"{len(candidates)} candidates, {len(created)} new matches",
            type_msg=TypeMsg.INFO,
        )
        await self._publish_proposed(created)

        matches = await self.ledger.list_by_journey(journey.id)
        return await self._enrich(
            matches,
            known_demands={demand.id: demand for demand in demands},
            known_journeys={journey.id: journey},
        )

    def _score_candidates(
        self, pairs: Iterable[tuple[DemandSummary, JourneySummary]]
    ) -> list[tuple[DemandSummary, JourneySummary, float]]:
        """Eligible pairs scoring at least min_score."""
        scored = []
        for demand, journey in pairs:
            if not eligible(demand, journey):
                continue
            pair_score = score(demand, journey)
            if pair_score >= self.min_score:
                scored.append((demand, journey, pair_score))
        return scored

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def confirm_match_by_demander(self, match_id: int, user_id: str, confirmed: bool) -> MatchDTO:
        return await self._confirm(match_id, MatchSide.DEMANDER, user_id, confirmed)

    async def confirm_match_by_traveler(self, match_id: int, user_id: str, confirmed: bool) -> MatchDTO:
        return await self._confirm(match_id, MatchSide.TRAVELER, user_id, confirmed)

    async def _confirm(self, match_id: int, side: MatchSide, user_id: str, confirmed: bool) -> MatchDTO:
        match = await self._apply_transition(
            match_id,
            lambda current: MatchStateMachine.confirm(current, side, user_id, confirmed),
            actor=user_id,
        )
        return (await self._enrich([match]))[0]

    async def complete_match(self, match_id: int, user_id: str) -> MatchDTO:
        match = await self._apply_transition(match_id, MatchStateMachine.complete, actor=user_id)
        return (await self._enrich([match]))[0]

    async def cancel_match(self, match_id: int, user_id: str) -> MatchDTO:
        match = await self._apply_transition(match_id, MatchStateMachine.cancel, actor=user_id)
        return (await self._enrich([match]))[0]

    async def _apply_transition(
        self,
        match_id: int,
        transition: Callable[[Match], Match],
        actor: str,
    ) -> Match:
        """
        Read, transition, compare-and-set. A lost race re-reads and
        re-applies the transition against the fresh state.
        """
        for attempt in range(1, self.max_retries + 1):
            current = await self.ledger.get(match_id)
            updated = transition(current)
            try:
                saved = await self.ledger.save(updated)
            except StaleMatchError:
                await log_warning(
                    f"Match {match_id} changed concurrently (attempt {attempt}/{self.max_retries}), retrying"
                )
                continue

            await log_info(
                f"Match {match_id}: {current.status.value} -> {saved.status.value} by {actor}",
                type_msg=TypeMsg.INFO,
            )
            if saved.status != current.status:
                await self._publish(MatchStatusChanged(
                    match_id=saved.id,
                    demand_id=saved.demand_id,
                    journey_id=saved.journey_id,
                    old_status=current.status.value,
                    new_status=saved.status.value,
                    changed_by=str(actor),
                ))
            return saved

        raise ConcurrentUpdateError(
            f"Match {match_id} kept changing concurrently, gave up after {self.max_retries} attempts",
            match_id=match_id,
        )

    # =========================================================================
    # READS
    # =========================================================================

    async def get_match(self, match_id: int) -> MatchDTO:
        match = await self.ledger.get(match_id)
        return (await self._enrich([match]))[0]

    async def get_matches_by_user(self, user_id: str) -> list[MatchDTO]:
        return await self._enrich(await self.ledger.list_by_user(user_id))

    async def get_matches_by_status_and_user(self, status: MatchStatus, user_id: str) -> list[MatchDTO]:
        return await self._enrich(await self.ledger.list_by_status_and_user(status, user_id))

    async def get_matches_by_demand(self, demand_id: str) -> list[MatchDTO]:
        return await self._enrich(await self.ledger.list_by_demand(demand_id))

    async def get_matches_by_journey(self, journey_id: int) -> list[MatchDTO]:
        return await self._enrich(await self.ledger.list_by_journey(journey_id))

    # =========================================================================
    # ENRICHMENT
    # =========================================================================

    async def _enrich(
        self,
        matches: list[Match],
        known_demands: dict[str, DemandSummary] | None = None,
        known_journeys: dict[int, JourneySummary] | None = None,
    ) -> list[MatchDTO]:
        """
        Attaches demand and journey summaries to each match.

        Each distinct id is fetched once, bounded by enrichment_concurrency.
        A failed lookup leaves that field empty and never fails the call.
        """
        demands: dict[str, DemandSummary | None] = dict(known_demands or {})
        journeys: dict[int, JourneySummary | None] = dict(known_journeys or {})

        missing_demands = {m.demand_id for m in matches} - demands.keys()
        missing_journeys = {m.journey_id for m in matches} - journeys.keys()

        semaphore = asyncio.Semaphore(self.enrichment_concurrency)

        async def lookup(kind: str, fetch: Callable[[Any], Awaitable[Any]], entity_id: Any) -> tuple[Any, Any]:
            async with semaphore:
                try:
                    return entity_id, await fetch(entity_id)
                except SourceError as e:
                    await log_warning(f"Could not load {kind} {entity_id} for enrichment: {e}")
                    return entity_id, None

        demand_results, journey_results = await asyncio.gather(
            asyncio.gather(*(lookup("demand", self.demands.get_by_id, i) for i in missing_demands)),
            asyncio.gather(*(lookup("journey", self.journeys.get_by_id, i) for i in missing_journeys)),
        )
        demands.update(demand_results)
        journeys.update(journey_results)

        return [
            MatchDTO(
                **match.model_dump(exclude={"version"}),
                demand=demands.get(match.demand_id),
                journey=journeys.get(match.journey_id),
            )
            for match in matches
        ]

    # =========================================================================
    # EVENTS
    # =========================================================================

    async def _publish_proposed(self, created: list[Match]) -> None:
        for match in created:
            await self._publish(MatchProposed(
                match_id=match.id,
                demand_id=match.demand_id,
                journey_id=match.journey_id,
                demand_owner_id=match.demand_owner_id,
                journey_owner_id=match.journey_owner_id,
                score=match.score,
            ))

    async def _publish(self, event: DomainEvent) -> None:
        """Best-effort: the ledger change is already committed."""
        if self.event_bus is None:
            return
        try:
            await self.event_bus.publish(event)
        except Exception as e:
            await log_error(f"Failed to publish {event.event_type}: {e}")
