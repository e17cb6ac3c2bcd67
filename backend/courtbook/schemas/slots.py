# backend/courtbook/schemas/slots.py
"""
Pydantic schemas for availability API.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class TimeRangeInfo(BaseModel):
    """A [start, end) range with HH:MM echoes."""
    start_time: int
    end_time: int
    start_time_formatted: str
    end_time_formatted: str


class BlockInfo(TimeRangeInfo):
    duration_minutes: int
    price_per_hour_override: Optional[float] = None


class SlotInfo(TimeRangeInfo):
    duration_minutes: int


class OccupiedInfo(TimeRangeInfo):
    """Reservation or blocked range that removed time from the day."""
    id: int
    status: Optional[str] = None
    block_type: Optional[str] = None
    reason: Optional[str] = None


class AvailabilityMetadata(BaseModel):
    base_block_count: int
    available_block_count: int
    total_hours_available: float
    duration_minutes: Optional[int] = None


class DayAvailabilityResponse(BaseModel):
    """Free blocks (and slots when a duration is given) for one day."""
    court_id: int
    date: date
    day_of_week: int = Field(description="0 = Sunday … 6 = Saturday")
    has_rules: bool
    blocks: list[BlockInfo]
    slots: Optional[list[SlotInfo]] = None
    bookings: list[OccupiedInfo]
    blocked_ranges: list[OccupiedInfo]
    metadata: AvailabilityMetadata


class RangeDayInfo(BaseModel):
    date: date
    day_of_week: int
    has_rules: bool
    blocks: list[BlockInfo]
    slots: Optional[list[SlotInfo]] = None
    total_hours_available: float
    message: Optional[str] = None


class RangeAvailabilityResponse(BaseModel):
    court_id: int
    start_date: date
    end_date: date
    days: list[RangeDayInfo]


class SlotsResponse(BaseModel):
    """Slots keyed by duration; invalid durations are listed in errors."""
    court_id: int
    date: date
    has_rules: bool
    slots_by_duration: dict[int, list[SlotInfo]]
    errors: dict[int, str] = {}


class SweepResult(BaseModel):
    expired: int
    completed: int
