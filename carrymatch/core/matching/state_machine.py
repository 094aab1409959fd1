# carrymatch/core/matching/state_machine.py
"""
Match lifecycle.

PROPOSED/PENDING --confirm(true)--> PENDING or CONFIRMED
PROPOSED/PENDING --confirm(false)-> REJECTED
CONFIRMED        --complete------> COMPLETED
CONFIRMED        --cancel--------> CANCELLED

Every transition returns a new Match and leaves the input untouched.
"""

from __future__ import annotations

from datetime import datetime

from carrymatch.core.matching.exceptions import InvalidStateError, UnauthorizedError
from carrymatch.core.matching.models import Match, utcnow
from carrymatch.shared.models.enums import MatchSide, MatchStatus


class MatchStateMachine:
    # Each transition method checks its target against this table
    ALLOWED_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
        MatchStatus.PROPOSED: frozenset({MatchStatus.PENDING, MatchStatus.REJECTED}),
        MatchStatus.PENDING: frozenset({MatchStatus.PENDING, MatchStatus.CONFIRMED, MatchStatus.REJECTED}),
        MatchStatus.CONFIRMED: frozenset({MatchStatus.COMPLETED, MatchStatus.CANCELLED}),
        MatchStatus.REJECTED: frozenset(),
        MatchStatus.COMPLETED: frozenset(),
        MatchStatus.CANCELLED: frozenset(),
    }

    @staticmethod
    def can_transition(current: MatchStatus, new: MatchStatus) -> bool:
        return new in MatchStateMachine.ALLOWED_TRANSITIONS[current]

    @staticmethod
    def _require_owner(match: Match, side: MatchSide, caller_id: str) -> None:
        owner = match.demand_owner_id if side is MatchSide.DEMANDER else match.journey_owner_id
        if str(caller_id) != owner:
            raise UnauthorizedError(
                f"User {caller_id} cannot act as {side.value} on match {match.id}",
                match_id=match.id,
                side=side.value,
            )

    @classmethod
    def _require_transition(cls, match: Match, target: MatchStatus, action: str) -> None:
        if not cls.can_transition(match.status, target):
            raise InvalidStateError(
                f"Cannot {action} match {match.id} in status {match.status.value}",
                match_id=match.id,
                status=match.status.value,
            )

    @classmethod
    def confirm(
        cls,
        match: Match,
        side: MatchSide,
        caller_id: str,
        confirmed: bool,
        now: datetime | None = None,
    ) -> Match:
        """
        Applies one party's answer.

        Ownership is checked before state, so a stranger gets Unauthorized
        even on a finished match.
        """
        cls._require_owner(match, side, caller_id)
        now = now or utcnow()

        if not confirmed:
            cls._require_transition(match, MatchStatus.REJECTED, "reject")
            return match.model_copy(update={
                "status": MatchStatus.REJECTED,
                "rejected_at": now,
                "updated_at": now,
            })

        demander = match.demander_confirmed or side is MatchSide.DEMANDER
        traveler = match.traveler_confirmed or side is MatchSide.TRAVELER
        target = MatchStatus.CONFIRMED if demander and traveler else MatchStatus.PENDING
        cls._require_transition(match, target, "confirm")

        update: dict = {
            "status": target,
            "demander_confirmed": demander,
            "traveler_confirmed": traveler,
            "updated_at": now,
        }
        if target is MatchStatus.CONFIRMED:
            update["confirmed_at"] = now
        return match.model_copy(update=update)

    @classmethod
    def complete(cls, match: Match, now: datetime | None = None) -> Match:
        cls._require_transition(match, MatchStatus.COMPLETED, "complete")
        return match.model_copy(update={"status": MatchStatus.COMPLETED, "updated_at": now or utcnow()})

    @classmethod
    def cancel(cls, match: Match, now: datetime | None = None) -> Match:
        cls._require_transition(match, MatchStatus.CANCELLED, "cancel")
        return match.model_copy(update={"status": MatchStatus.CANCELLED, "updated_at": now or utcnow()})
