# backend/courtbook/routers/reservations.py
# API.md: PATCH = 405, DELETE = 405 (use /cancel)

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_clock, get_current_user_id
from ..errors import Forbidden, InvalidTimeRange
from ..schemas.reservations import (
    ReservationCreate,
    ReservationDecision,
    ReservationRead,
)
from ..services import reservations as manager
from ..services.clock import Clock
from ..services.resources import owner_of
from ..services.slots.config import resolve_minutes

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.get("/", response_model=list[ReservationRead])
def list_reservations(
    court_id: Optional[int] = None,
    booking_date: Optional[date] = Query(None, alias="date"),
    status_filter: Optional[list[str]] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Owners see every reservation of their court; others see their own."""
    if court_id is not None and owner_of(db, court_id) == user_id:
        return manager.list_reservations(db, court_id, None, booking_date, status_filter)
    return manager.list_reservations(db, court_id, user_id, booking_date, status_filter)


@router.get("/{id}", response_model=ReservationRead)
def get_reservation(
    id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    obj = manager.get_reservation(db, id)
    if obj.user_id != user_id and obj.court.facility.owner_id != user_id:
        raise Forbidden("Not allowed to view this reservation", reservation_id=id)
    return obj


@router.post("/", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
):
    start = resolve_minutes(data.start_time, data.start_time_formatted)
    end = resolve_minutes(data.end_time, data.end_time_formatted)
    if start is None or end is None:
        raise InvalidTimeRange("start and end time are required")

    return manager.reserve(
        db,
        court_id=data.court_id,
        target_date=data.booking_date,
        start_time=start,
        end_time=end,
        user_id=user_id,
        now=clock.now(),
    )


@router.post("/{id}/confirm", response_model=ReservationRead)
def confirm_reservation(
    id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
):
    return manager.confirm(db, id, user_id, now=clock.now())


@router.post("/{id}/reject", response_model=ReservationRead)
def reject_reservation(
    id: int,
    data: ReservationDecision | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
):
    reason = data.reason if data else None
    return manager.reject(db, id, user_id, reason=reason, now=clock.now())


@router.post("/{id}/cancel", response_model=ReservationRead)
def cancel_reservation(
    id: int,
    data: ReservationDecision | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
):
    reason = data.reason if data else None
    return manager.cancel(db, id, user_id, reason=reason, now=clock.now())


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
