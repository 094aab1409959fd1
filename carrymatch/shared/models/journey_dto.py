from datetime import date
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class JourneySummary(BaseModel):
    """Read-only view of a journey as served by the Journey service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: int
    owner_id: str = Field(validation_alias=AliasChoices("owner_id", "ownerId", "userId", "user_id"))

    from_country: str = Field(validation_alias=AliasChoices("from_country", "fromCountry"))
    from_city: str = Field(validation_alias=AliasChoices("from_city", "fromCity"))
    to_country: str = Field(validation_alias=AliasChoices("to_country", "toCountry"))
    to_city: str = Field(validation_alias=AliasChoices("to_city", "toCity"))

    departure_date: date = Field(validation_alias=AliasChoices("departure_date", "departureDate"))
    arrival_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("arrival_date", "arrivalDate"))
    available_weight_kg: float = Field(
        ge=0,
        validation_alias=AliasChoices("available_weight_kg", "availableWeightKg", "availableWeight"),
    )
    # Empty set means the traveler accepts any item type
    preferred_item_types: frozenset[str] = Field(
        default_factory=frozenset,
        validation_alias=AliasChoices("preferred_item_types", "preferredItemTypes"),
    )
    status: str

    @field_validator("owner_id", mode="before")
    @classmethod
    def coerce_owner_id(cls, v):
        return str(v) if v is not None else v

    @field_validator("preferred_item_types", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return frozenset() if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v):
        return str(v).strip().upper()
