# backend/courtbook/schemas/reservations.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, computed_field

from ..services.slots.config import minutes_to_time_str


class ReservationCreate(BaseModel):
    court_id: int
    booking_date: date

    start_time: Optional[int] = None
    end_time: Optional[int] = None
    start_time_formatted: Optional[str] = None
    end_time_formatted: Optional[str] = None


class ReservationDecision(BaseModel):
    reason: Optional[str] = None


class ReservationRead(BaseModel):
    id: int

    court_id: int
    user_id: int

    booking_date: date
    start_time: int
    end_time: int

    status: str
    price: Optional[float] = None
    expires_at: Optional[datetime] = None

    rejection_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    decided_by: Optional[int] = None

    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def start_time_formatted(self) -> str:
        return minutes_to_time_str(self.start_time)

    @computed_field
    @property
    def end_time_formatted(self) -> str:
        return "24:00" if self.end_time == 1440 else minutes_to_time_str(self.end_time)

    model_config = {"from_attributes": True}
