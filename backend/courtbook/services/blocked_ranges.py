# backend/courtbook/services/blocked_ranges.py
"""
Administrative blocks that always win over rule-derived availability.

Kinds:
  one_time:   start_date + start_time/end_time
  recurring:  day_of_week + start_time/end_time, every week
  date_range: start_date..end_date inclusive, whole days (no times)

court_id NULL applies the block to every court of the facility.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..database import write_transaction
from ..errors import BlockedRangeNotFound, InvalidBlockedRange, InvalidTimeRange
from ..models.generated import BlockedRanges as DBBlockedRanges
from .resources import get_court
from .slots.config import MINUTES_PER_DAY

logger = logging.getLogger(__name__)

BLOCK_TYPES = ("one_time", "recurring", "date_range")


def _validate(
    block_type: str,
    start_date: Optional[date],
    end_date: Optional[date],
    start_time: Optional[int],
    end_time: Optional[int],
    day_of_week: Optional[int],
) -> None:
    if block_type not in BLOCK_TYPES:
        raise InvalidBlockedRange(f"block_type must be one of {', '.join(BLOCK_TYPES)}")

    if block_type == "date_range":
        if start_date is None or end_date is None:
            raise InvalidBlockedRange("date_range requires start_date and end_date")
        if start_date > end_date:
            raise InvalidBlockedRange("start_date must not be after end_date")
        return

    if start_time is None or end_time is None:
        raise InvalidBlockedRange(f"{block_type} requires start_time and end_time")
    # a block may run to the end of the day
    if start_time < 0 or end_time > MINUTES_PER_DAY or start_time >= end_time:
        raise InvalidTimeRange(start_time=start_time, end_time=end_time)

    if block_type == "one_time" and start_date is None:
        raise InvalidBlockedRange("one_time requires start_date")
    if block_type == "recurring" and (day_of_week is None or not 0 <= day_of_week <= 6):
        raise InvalidBlockedRange("recurring requires day_of_week between 0 and 6")


def create_blocked_range(
    db: Session,
    court_id: int,
    created_by: int,
    block_type: str = "one_time",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    start_time: Optional[int] = None,
    end_time: Optional[int] = None,
    day_of_week: Optional[int] = None,
    reason: Optional[str] = None,
    facility_wide: bool = False,
) -> DBBlockedRanges:
    _validate(block_type, start_date, end_date, start_time, end_time, day_of_week)

    if block_type == "date_range":
        start_time = end_time = day_of_week = None
    elif block_type == "one_time":
        end_date = start_date
        day_of_week = None
    else:
        start_date = end_date = None

    with write_transaction(db):
        court = get_court(db, court_id)
        obj = DBBlockedRanges(
            facility_id=court.facility_id,
            court_id=None if facility_wide else court_id,
            block_type=block_type,
            start_date=start_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
            day_of_week=day_of_week,
            reason=reason,
            created_by=created_by,
            is_active=1,
        )
        db.add(obj)
        db.commit()
    db.refresh(obj)
    logger.info(
        f"Blocked range {obj.id} ({block_type}) created for "
        f"{'facility=' + str(court.facility_id) if facility_wide else 'court=' + str(court_id)}"
    )
    return obj


def list_blocked_ranges(db: Session, court_id: int) -> list[DBBlockedRanges]:
    """Active ranges affecting the court, including facility-wide ones."""
    court = get_court(db, court_id)
    return (
        db.query(DBBlockedRanges)
        .filter(
            or_(
                DBBlockedRanges.court_id == court_id,
                (DBBlockedRanges.court_id.is_(None))
                & (DBBlockedRanges.facility_id == court.facility_id),
            ),
            DBBlockedRanges.is_active == 1,
        )
        .order_by(DBBlockedRanges.id)
        .all()
    )


def get_blocked_range(db: Session, court_id: int, blocked_id: int) -> DBBlockedRanges:
    court = get_court(db, court_id)
    obj = db.get(DBBlockedRanges, blocked_id)
    if obj is None or obj.facility_id != court.facility_id or obj.court_id not in (None, court_id):
        raise BlockedRangeNotFound(blocked_range_id=blocked_id)
    return obj


def delete_blocked_range(db: Session, court_id: int, blocked_id: int) -> None:
    """Hard delete."""
    with write_transaction(db):
        obj = get_blocked_range(db, court_id, blocked_id)
        db.delete(obj)
        db.commit()
    logger.info(f"Blocked range {blocked_id} deleted")
