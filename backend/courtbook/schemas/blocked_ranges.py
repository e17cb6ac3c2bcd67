# backend/courtbook/schemas/blocked_ranges.py

from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel


class BlockedRangeCreate(BaseModel):
    block_type: Literal["one_time", "recurring", "date_range"] = "one_time"

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    start_time: Optional[int] = None
    end_time: Optional[int] = None
    start_time_formatted: Optional[str] = None
    end_time_formatted: Optional[str] = None

    day_of_week: Optional[int] = None
    reason: Optional[str] = None

    # apply to every court of the facility
    facility_wide: bool = False


class BlockedRangeRead(BaseModel):
    id: int
    facility_id: int
    court_id: Optional[int] = None
    block_type: str

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    day_of_week: Optional[int] = None

    reason: Optional[str] = None
    created_by: Optional[int] = None
    is_active: bool

    model_config = {"from_attributes": True}
