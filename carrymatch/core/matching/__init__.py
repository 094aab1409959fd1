# carrymatch/core/matching/__init__.py
"""
Matching rules: eligibility, scoring and the match lifecycle.
"""

from carrymatch.core.matching.eligibility import eligible
from carrymatch.core.matching.models import ACTIVE_STATUSES, TERMINAL_STATUSES, Match
from carrymatch.core.matching.scorer import MIN_MATCH_SCORE, score
from carrymatch.core.matching.state_machine import MatchStateMachine

__all__ = [
    "ACTIVE_STATUSES",
    "MIN_MATCH_SCORE",
    "Match",
    "MatchStateMachine",
    "TERMINAL_STATUSES",
    "eligible",
    "score",
]
