from enum import Enum


class MatchStatus(str, Enum):
    """Match lifecycle states."""
    PROPOSED = "PROPOSED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "MatchStatus":
        """Case-insensitive lookup; raises ValueError for unknown names."""
        return cls(value.strip().upper())


class DemandStatus(str, Enum):
    """Demand states reported by the Demand service."""
    PENDING = "PENDING"
    MATCHED = "MATCHED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value


class JourneyStatus(str, Enum):
    """Journey states reported by the Journey service."""
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value


class MatchSide(str, Enum):
    """Party confirming or rejecting a match."""
    DEMANDER = "demander"
    TRAVELER = "traveler"

    def __str__(self) -> str:
        return self.value
