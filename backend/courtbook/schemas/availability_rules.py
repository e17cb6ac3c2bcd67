# backend/courtbook/schemas/availability_rules.py

from typing import Optional
from pydantic import BaseModel, Field, computed_field

from ..services.slots.config import minutes_to_time_str


class AvailabilityRuleCreate(BaseModel):
    """Either minutes (start_time) or "HH:MM" (start_time_formatted) per bound."""
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday … 6 = Saturday")

    start_time: Optional[int] = None
    end_time: Optional[int] = None
    start_time_formatted: Optional[str] = None
    end_time_formatted: Optional[str] = None

    price_per_hour_override: Optional[float] = None
    is_active: bool = True


class AvailabilityRuleUpdate(BaseModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6)

    start_time: Optional[int] = None
    end_time: Optional[int] = None
    start_time_formatted: Optional[str] = None
    end_time_formatted: Optional[str] = None

    price_per_hour_override: Optional[float] = None
    is_active: Optional[bool] = None


class AvailabilityRuleRead(BaseModel):
    id: int
    court_id: int
    day_of_week: int
    start_time: int
    end_time: int
    price_per_hour_override: Optional[float] = None
    is_active: bool

    @computed_field
    @property
    def start_time_formatted(self) -> str:
        return minutes_to_time_str(self.start_time)

    @computed_field
    @property
    def end_time_formatted(self) -> str:
        return minutes_to_time_str(self.end_time)

    model_config = {"from_attributes": True}
