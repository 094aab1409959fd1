# carrymatch/core/matching/eligibility.py
"""
Hard constraints a demand/journey pair must satisfy before scoring.
"""

from __future__ import annotations

from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.journey_dto import JourneySummary


def _same(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def same_origin(demand: DemandSummary, journey: JourneySummary) -> bool:
    return _same(demand.origin_country, journey.from_country) and _same(demand.origin_city, journey.from_city)


def same_destination(demand: DemandSummary, journey: JourneySummary) -> bool:
    return _same(demand.destination_country, journey.to_country) and _same(demand.destination_city, journey.to_city)


def has_capacity(demand: DemandSummary, journey: JourneySummary) -> bool:
    return journey.available_weight_kg >= demand.weight_kg


def departs_before_deadline(demand: DemandSummary, journey: JourneySummary) -> bool:
    # Departing on the deadline day is too late
    return journey.departure_date < demand.deadline


def accepts_item_type(demand: DemandSummary, journey: JourneySummary) -> bool:
    return not journey.preferred_item_types or demand.item_type in journey.preferred_item_types


def eligible(demand: DemandSummary, journey: JourneySummary) -> bool:
    """
    True when the journey can carry the demand.

    Route comparison is exact apart from case. No fuzzy matching.
    """
    return (
        same_origin(demand, journey)
        and same_destination(demand, journey)
        and has_capacity(demand, journey)
        and departs_before_deadline(demand, journey)
        and accepts_item_type(demand, journey)
    )
