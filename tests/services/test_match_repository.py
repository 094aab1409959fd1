# tests/services/test_match_repository.py
"""
MatchRepository tests with a mocked DatabaseManager.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from carrymatch.core.matching.exceptions import MatchNotFoundError, StaleMatchError
from carrymatch.core.matching.models import Match
from carrymatch.services.matching_service.repository import MatchRepository
from carrymatch.shared.models.enums import MatchStatus

MATCHED_AT = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def match_row(**overrides):
    row = {
        "id": 7,
        "demand_id": "d-1",
        "journey_id": 101,
        "demand_owner_id": "alice",
        "journey_owner_id": "bob",
        "status": "PROPOSED",
        "score": 0.9,
        "demander_confirmed": False,
        "traveler_confirmed": False,
        "matched_at": MATCHED_AT,
        "confirmed_at": None,
        "rejected_at": None,
        "updated_at": MATCHED_AT,
        "version": 0,
    }
    row.update(overrides)
    return row


@pytest.fixture
def repo(mock_db):
    return MatchRepository(mock_db)


class TestQueries:

    @pytest.mark.asyncio
    async def test_find_active_by_demand(self, repo, mock_db):
        mock_db.fetch.return_value = [{"journey_id": 101}, {"journey_id": 102}]

        result = await repo.find_active_by_demand("d-1")

        assert result == {101, 102}
        query, demand_id, statuses = mock_db.fetch.call_args[0]
        assert "status = ANY" in query
        assert demand_id == "d-1"
        assert sorted(statuses) == ["CONFIRMED", "PENDING", "PROPOSED"]

    @pytest.mark.asyncio
    async def test_find_active_by_journey(self, repo, mock_db):
        mock_db.fetch.return_value = [{"demand_id": "d-1"}]
        assert await repo.find_active_by_journey(101) == {"d-1"}

    @pytest.mark.asyncio
    async def test_get(self, repo, mock_db):
        mock_db.fetchrow.return_value = match_row(status="PENDING", demander_confirmed=True)

        match = await repo.get(7)

        assert match.id == 7
        assert match.status == MatchStatus.PENDING
        assert match.demander_confirmed is True

    @pytest.mark.asyncio
    async def test_get_missing(self, repo, mock_db):
        mock_db.fetchrow.return_value = None
        with pytest.raises(MatchNotFoundError):
            await repo.get(404)

    @pytest.mark.asyncio
    async def test_list_by_user_matches_either_side(self, repo, mock_db):
        mock_db.fetch.return_value = [match_row(), match_row(id=8, journey_id=102)]

        result = await repo.list_by_user("alice")

        assert [m.id for m in result] == [7, 8]
        query = mock_db.fetch.call_args[0][0]
        assert "demand_owner_id = $1 OR journey_owner_id = $1" in query

    @pytest.mark.asyncio
    async def test_list_by_status_and_user(self, repo, mock_db):
        await repo.list_by_status_and_user(MatchStatus.CONFIRMED, "bob")
        assert mock_db.fetch.call_args[0][1:] == ("CONFIRMED", "bob")


class TestWrites:

    @pytest.mark.asyncio
    async def test_create_returns_stored_match(self, repo, mock_db):
        mock_db.fetchrow.return_value = match_row()

        created = await repo.create(Match.propose("d-1", 101, "alice", "bob", 0.9, now=MATCHED_AT))

        assert created.id == 7
        query = mock_db.fetchrow.call_args[0][0]
        assert "ON CONFLICT (demand_id, journey_id)" in query
        assert "DO NOTHING" in query

    @pytest.mark.asyncio
    async def test_create_conflict_returns_none(self, repo, mock_db):
        mock_db.fetchrow.return_value = None
        assert await repo.create(Match.propose("d-1", 101, "alice", "bob", 0.9)) is None

    @pytest.mark.asyncio
    async def test_save_checks_version(self, repo, mock_db):
        mock_db.fetchrow.return_value = match_row(status="PENDING", demander_confirmed=True, version=4)
        match = Match(**match_row(status="PENDING", demander_confirmed=True, version=3))

        saved = await repo.save(match)

        assert saved.version == 4
        args = mock_db.fetchrow.call_args[0]
        assert "WHERE id = $1 AND version = $2" in args[0]
        assert args[1:4] == (7, 3, "PENDING")

    @pytest.mark.asyncio
    async def test_save_never_rewrites_immutable_columns(self, repo, mock_db):
        mock_db.fetchrow.return_value = match_row(version=1)
        await repo.save(Match(**match_row()))

        set_clause = mock_db.fetchrow.call_args[0][0].split("WHERE")[0]
        for column in ("demand_id", "journey_id", "score", "matched_at", "owner_id"):
            assert column not in set_clause

    @pytest.mark.asyncio
    async def test_save_stale(self, repo, mock_db):
        mock_db.fetchrow.return_value = None
        with pytest.raises(StaleMatchError):
            await repo.save(Match(**match_row()))


class TestLockedScope:

    @pytest.mark.asyncio
    async def test_scope_takes_advisory_lock_and_uses_connection(self, mock_db):
        conn = AsyncMock()
        conn.fetch = AsyncMock(return_value=[{"journey_id": 101}])

        @asynccontextmanager
        async def transaction():
            yield conn

        mock_db.transaction = transaction
        repo = MatchRepository(mock_db)

        async with repo.locked_scope("demand:d-1") as scope:
            assert await scope.find_active_by_demand("d-1") == {101}

        conn.execute.assert_awaited_once_with("SELECT pg_advisory_xact_lock(hashtext($1))", "demand:d-1")
        mock_db.fetch.assert_not_called()
