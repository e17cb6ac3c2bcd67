# backend/courtbook/routers/slots.py
"""
Availability API endpoints.

GET /courts/{court_id}/availability        - Free blocks for a day (+ slots with duration)
GET /courts/{court_id}/availability/range  - Per-day breakdown over a date range
GET /courts/{court_id}/availability/slots  - Slots for one or more durations
"""

from datetime import date, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_clock
from ..redis_client import get_redis
from ..schemas.slots import (
    DayAvailabilityResponse,
    RangeAvailabilityResponse,
    SlotsResponse,
)
from ..services.clock import Clock
from ..services.slots import (
    get_available_slots,
    get_booking_config,
    get_day_availability,
    get_range_availability,
)


router = APIRouter(prefix="/courts/{court_id}/availability", tags=["availability"])


@router.get("", response_model=DayAvailabilityResponse)
def get_court_availability(
    court_id: int,
    target_date: date = Query(..., alias="date"),
    duration: int | None = None,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    clock: Clock = Depends(get_clock),
):
    """Free blocks for a court on a day; slots too when duration is given."""
    result = get_day_availability(
        db=db,
        court_id=court_id,
        target_date=target_date,
        now=clock.now(),
        duration=duration,
        config=get_booking_config(),
        redis=redis,
    )
    return DayAvailabilityResponse(**result)


@router.get("/range", response_model=RangeAvailabilityResponse)
def get_court_availability_range(
    court_id: int,
    start_date: date,
    end_date: date | None = None,
    duration: int | None = None,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    clock: Clock = Depends(get_clock),
):
    """Availability per day; past dates dropped, capped at the booking horizon."""
    if end_date is None:
        end_date = start_date + timedelta(days=6)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    result = get_range_availability(
        db=db,
        court_id=court_id,
        start_date=start_date,
        end_date=end_date,
        now=clock.now(),
        duration=duration,
        redis=redis,
    )
    return RangeAvailabilityResponse(**result)


@router.get("/slots", response_model=SlotsResponse)
def get_court_slots(
    court_id: int,
    target_date: date = Query(..., alias="date"),
    duration: int | None = None,
    durations: str | None = Query(None, description="Comma-separated, e.g. 60,90,120"),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    clock: Clock = Depends(get_clock),
):
    """Slots for one duration or a batch of durations."""
    requested = _parse_durations(duration, durations)

    result = get_available_slots(
        db=db,
        court_id=court_id,
        target_date=target_date,
        now=clock.now(),
        durations=requested,
        redis=redis,
    )
    return SlotsResponse(**result)


def _parse_durations(duration: int | None, durations: str | None) -> list[int]:
    if durations:
        try:
            values = [int(part) for part in durations.split(",") if part.strip()]
        except ValueError:
            raise HTTPException(status_code=400, detail="durations must be comma-separated integers")
        if values:
            return values
    if duration is not None:
        return [duration]
    raise HTTPException(status_code=400, detail="duration or durations required")
