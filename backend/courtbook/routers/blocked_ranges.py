# backend/courtbook/routers/blocked_ranges.py
# API.md: PATCH = 405, DELETE = ALLOWED (hard)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user_id
from ..schemas.blocked_ranges import BlockedRangeCreate, BlockedRangeRead
from ..services import blocked_ranges as blocked_store
from ..services.resources import ensure_owner
from ..services.slots.config import resolve_minutes

router = APIRouter(prefix="/courts/{court_id}/blocked-ranges", tags=["blocked_ranges"])


@router.get("/", response_model=list[BlockedRangeRead])
def list_blocked_ranges(court_id: int, db: Session = Depends(get_db)):
    return blocked_store.list_blocked_ranges(db, court_id)


@router.get("/{id}", response_model=BlockedRangeRead)
def get_blocked_range(court_id: int, id: int, db: Session = Depends(get_db)):
    return blocked_store.get_blocked_range(db, court_id, id)


@router.post("/", response_model=BlockedRangeRead, status_code=status.HTTP_201_CREATED)
def create_blocked_range(
    court_id: int,
    data: BlockedRangeCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_owner(db, court_id, user_id)
    return blocked_store.create_blocked_range(
        db,
        court_id,
        created_by=user_id,
        block_type=data.block_type,
        start_date=data.start_date,
        end_date=data.end_date,
        start_time=resolve_minutes(data.start_time, data.start_time_formatted),
        end_time=_resolve_end(data.end_time, data.end_time_formatted),
        day_of_week=data.day_of_week,
        reason=data.reason,
        facility_wide=data.facility_wide,
    )


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_range(
    court_id: int,
    id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_owner(db, court_id, user_id)
    blocked_store.delete_blocked_range(db, court_id, id)


def _resolve_end(minutes: int | None, formatted: str | None) -> int | None:
    # blocks may run to midnight: 1440 / "24:00"
    if formatted == "24:00":
        return 1440
    if formatted is None and minutes == 1440:
        return minutes
    return resolve_minutes(minutes, formatted)
