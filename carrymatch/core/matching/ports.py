# carrymatch/core/matching/ports.py
"""
Interfaces the matching service depends on.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from carrymatch.core.matching.models import Match
from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.enums import MatchStatus
from carrymatch.shared.models.journey_dto import JourneySummary


class MatchLedger(Protocol):
    """Persistent store of matches. Rows are never deleted."""

    async def find_active_by_demand(self, demand_id: str) -> set[int]:
        """Journey ids in an active match with the demand."""
        ...

    async def find_active_by_journey(self, journey_id: int) -> set[str]:
        """Demand ids in an active match with the journey."""
        ...

    async def create(self, match: Match) -> Match | None:
        """Inserts a PROPOSED match; None when the pair already has an active one."""
        ...

    async def get(self, match_id: int) -> Match:
        """Raises MatchNotFoundError when absent."""
        ...

    async def list_by_user(self, user_id: str) -> list[Match]: ...

    async def list_by_status_and_user(self, status: MatchStatus, user_id: str) -> list[Match]: ...

    async def list_by_demand(self, demand_id: str) -> list[Match]: ...

    async def list_by_journey(self, journey_id: int) -> list[Match]: ...

    async def save(self, match: Match) -> Match:
        """Compare-and-set on version; raises StaleMatchError when it lost."""
        ...

    def locked_scope(self, key: str) -> AbstractAsyncContextManager["MatchLedger"]:
        """Transaction serialised with every other scope using the same key."""
        ...


class DemandSource(Protocol):
    async def get_by_id(self, demand_id: str) -> DemandSummary: ...

    async def search(self, *, status: str | None = None, **filters: str) -> list[DemandSummary]: ...


class JourneySource(Protocol):
    async def get_by_id(self, journey_id: int) -> JourneySummary: ...

    async def list_by_status(self, status: str) -> list[JourneySummary]: ...
