# carrymatch/core/matching/scorer.py
"""
Compatibility score for eligible demand/journey pairs.

score = BASE
      + CAPACITY_WEIGHT * min(1, available / weight)
      + PREFERENCE_BONUS   (non-empty preference set containing the item type)
      + min(LEAD_TIME_CAP, lead_days * LEAD_TIME_PER_DAY)
      + CITY_BONUS         (exact origin and destination city)
clamped to [0, 1].
"""

from __future__ import annotations

import math

from carrymatch.core.matching.eligibility import same_destination, same_origin
from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.journey_dto import JourneySummary


BASE_SCORE = 0.6
CAPACITY_WEIGHT = 0.1
PREFERENCE_BONUS = 0.1
LEAD_TIME_PER_DAY = 0.015
LEAD_TIME_CAP = 0.1
CITY_BONUS = 0.1

# Eligible pairs scoring below this are discarded without a record
MIN_MATCH_SCORE = 0.5


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def capacity_bonus(demand: DemandSummary, journey: JourneySummary) -> float:
    return CAPACITY_WEIGHT * min(1.0, journey.available_weight_kg / demand.weight_kg)


def preference_bonus(demand: DemandSummary, journey: JourneySummary) -> float:
    if journey.preferred_item_types and demand.item_type in journey.preferred_item_types:
        return PREFERENCE_BONUS
    return 0.0


def lead_time_bonus(demand: DemandSummary, journey: JourneySummary) -> float:
    days = max(0, (demand.deadline - journey.departure_date).days)
    return min(LEAD_TIME_CAP, days * LEAD_TIME_PER_DAY)


def city_bonus(demand: DemandSummary, journey: JourneySummary) -> float:
    # Eligibility already requires this, so every eligible pair gets it
    if same_origin(demand, journey) and same_destination(demand, journey):
        return CITY_BONUS
    return 0.0


def score(demand: DemandSummary, journey: JourneySummary) -> float:
    """
    Scores a pair that already passed eligible().

    Pure: depends on nothing but its arguments.
    """
    # fsum keeps 0.6 + 4 * 0.1 at exactly 1.0
    raw = math.fsum([
        BASE_SCORE,
        capacity_bonus(demand, journey),
        preference_bonus(demand, journey),
        lead_time_bonus(demand, journey),
        city_bonus(demand, journey),
    ])
    return _clamp(raw)
