# carrymatch/shared/events/__init__.py
"""
Event schemas published to RabbitMQ.

Every event carries metadata.event_id for consumer-side deduplication.
"""

from carrymatch.shared.events.base import DomainEvent, EventMetadata
from carrymatch.shared.events.match_events import MatchProposed, MatchStatusChanged

__all__ = [
    "DomainEvent",
    "EventMetadata",
    "MatchProposed",
    "MatchStatusChanged",
]
