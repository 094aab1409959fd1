from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class DemandSummary(BaseModel):
    """Read-only view of a demand as served by the Demand service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    owner_id: str = Field(validation_alias=AliasChoices("owner_id", "ownerId", "userId", "user_id"))
    title: Optional[str] = None
    item_type: str = Field(validation_alias=AliasChoices("item_type", "itemType"))
    weight_kg: float = Field(gt=0, validation_alias=AliasChoices("weight_kg", "weightKg"))

    origin_country: str = Field(validation_alias=AliasChoices("origin_country", "originCountry"))
    origin_city: str = Field(validation_alias=AliasChoices("origin_city", "originCity"))
    destination_country: str = Field(validation_alias=AliasChoices("destination_country", "destinationCountry"))
    destination_city: str = Field(validation_alias=AliasChoices("destination_city", "destinationCity"))

    deadline: date
    reward_amount: Optional[Decimal] = Field(default=None, validation_alias=AliasChoices("reward_amount", "rewardAmount"))
    status: str

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None else v

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v):
        return str(v).strip().upper()
