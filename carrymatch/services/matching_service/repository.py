from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from asyncpg import Connection, Record

from carrymatch.core.matching.exceptions import MatchNotFoundError, StaleMatchError
from carrymatch.core.matching.models import ACTIVE_STATUSES, Match
from carrymatch.infra.database import DatabaseManager
from carrymatch.shared.models.enums import MatchStatus

ACTIVE = [s.value for s in ACTIVE_STATUSES]


class MatchRepository:
    """
    Match ledger on PostgreSQL (matching_schema.matches).

    Bound to the pool by default; locked_scope() yields a copy bound to a
    single connection inside a transaction.
    """

    def __init__(self, db: DatabaseManager, conn: Optional[Connection] = None):
        self.db = db
        self._conn = conn

    async def _fetch(self, query: str, *args: Any) -> list[Record]:
        if self._conn is not None:
            return await self._conn.fetch(query, *args)
        return await self.db.fetch(query, *args)

    async def _fetchrow(self, query: str, *args: Any) -> Optional[Record]:
        if self._conn is not None:
            return await self._conn.fetchrow(query, *args)
        return await self.db.fetchrow(query, *args)

    @staticmethod
    def _to_match(row: Record) -> Match:
        return Match.model_validate(dict(row))

    @asynccontextmanager
    async def locked_scope(self, key: str) -> AsyncIterator["MatchRepository"]:
        """Transaction holding a transaction-level advisory lock on key."""
        async with self.db.transaction() as conn:
            await conn.execute("SELECT pg_advisory_xact_lock(hashtext($1))", key)
            yield MatchRepository(self.db, conn)

    async def find_active_by_demand(self, demand_id: str) -> set[int]:
        rows = await self._fetch(
            """
            SELECT journey_id FROM matching_schema.matches
            WHERE demand_id = $1 AND status = ANY($2::text[])
            """,
            demand_id, ACTIVE,
        )
        return {row["journey_id"] for row in rows}

    async def find_active_by_journey(self, journey_id: int) -> set[str]:
        rows = await self._fetch(
            """
            SELECT demand_id FROM matching_schema.matches
            WHERE journey_id = $1 AND status = ANY($2::text[])
            """,
            journey_id, ACTIVE,
        )
        return {row["demand_id"] for row in rows}

    async def create(self, match: Match) -> Optional[Match]:
        """Inserts a PROPOSED match. Returns None if the pair is already actively matched."""
        row = await self._fetchrow(
            """
            INSERT INTO matching_schema.matches (
                demand_id, journey_id, demand_owner_id, journey_owner_id,
                status, score, demander_confirmed, traveler_confirmed,
                matched_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, FALSE, FALSE, $7, $7)
            ON CONFLICT (demand_id, journey_id)
                WHERE status IN ('PROPOSED', 'PENDING', 'CONFIRMED')
                DO NOTHING
            RETURNING *
            """,
            match.demand_id,
            match.journey_id,
            match.demand_owner_id,
            match.journey_owner_id,
            MatchStatus.PROPOSED.value,
            match.score,
            match.matched_at,
        )
        return self._to_match(row) if row else None

    async def get(self, match_id: int) -> Match:
        row = await self._fetchrow("SELECT * FROM matching_schema.matches WHERE id = $1", match_id)
        if row is None:
            raise MatchNotFoundError(match_id)
        return self._to_match(row)

    async def list_by_user(self, user_id: str) -> list[Match]:
        """Matches where the user owns either side, newest first."""
        rows = await self._fetch(
            """
            SELECT * FROM matching_schema.matches
            WHERE demand_owner_id = $1 OR journey_owner_id = $1
            ORDER BY matched_at DESC, id DESC
            """,
            user_id,
        )
        return [self._to_match(row) for row in rows]

    async def list_by_status_and_user(self, status: MatchStatus, user_id: str) -> list[Match]:
        rows = await self._fetch(
            """
            SELECT * FROM matching_schema.matches
            WHERE status = $1 AND (demand_owner_id = $2 OR journey_owner_id = $2)
            ORDER BY matched_at DESC, id DESC
            """,
            status.value, user_id,
        )
        return [self._to_match(row) for row in rows]

    async def list_by_demand(self, demand_id: str) -> list[Match]:
        rows = await self._fetch(
            "SELECT * FROM matching_schema.matches WHERE demand_id = $1 ORDER BY score DESC, id",
            demand_id,
        )
        return [self._to_match(row) for row in rows]

    async def list_by_journey(self, journey_id: int) -> list[Match]:
        rows = await self._fetch(
            "SELECT * FROM matching_schema.matches WHERE journey_id = $1 ORDER BY score DESC, id",
            journey_id,
        )
        return [self._to_match(row) for row in rows]

    async def save(self, match: Match) -> Match:
        """
        Writes the mutable columns if nobody saved since match.version was read.

        Ids, owners, score and matched_at are never rewritten.
        """
        row = await self._fetchrow(
            """
            UPDATE matching_schema.matches
            SET status = $3,
                demander_confirmed = $4,
                traveler_confirmed = $5,
                confirmed_at = $6,
                rejected_at = $7,
                updated_at = COALESCE($8, NOW()),
                version = version + 1
            WHERE id = $1 AND version = $2
            RETURNING *
            """,
            match.id,
            match.version,
            match.status.value,
            match.demander_confirmed,
            match.traveler_confirmed,
            match.confirmed_at,
            match.rejected_at,
            match.updated_at,
        )
        if row is None:
            raise StaleMatchError(match.id, match.version)
        return self._to_match(row)
