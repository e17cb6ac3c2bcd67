# backend/courtbook/services/slots/exclusions.py
"""
Exclusion filter: removes occupied and blocked time from base blocks.

Excluded:
✓ confirmed reservations
✓ pending reservations whose hold has not lapsed (expires_at >= now)
✓ blocked ranges (one_time / recurring / date_range, court or facility scope)
✓ today's blocks starting within the past-slot buffer

Not excluded:
✗ rejected / cancelled / expired / completed reservations
✗ pending reservations past expires_at, even before the reaper runs
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models.generated import (
    BlockedRanges as DBBlockedRanges,
    Courts as DBCourts,
    Reservations as DBReservations,
)
from .calculator import day_of_week
from .config import MINUTES_PER_DAY
from .intervals import TimeBlock, merge_ranges, subtract_ranges


@dataclass
class FilterResult:
    blocks: list[TimeBlock]
    bookings: list = field(default_factory=list)
    blocked_ranges: list = field(default_factory=list)


# ── Shared predicates ────────────────────────────────────────────────────

def active_reservation_clause(now: datetime):
    """SQL filter for reservations that currently occupy their range."""
    return or_(
        DBReservations.status == "confirmed",
        and_(
            DBReservations.status == "pending",
            DBReservations.expires_at >= now,
        ),
    )


def blocked_range_bounds(blocked) -> tuple[int, int]:
    """date_range blocks have no times and cover the whole day."""
    if blocked.block_type == "date_range" or blocked.start_time is None:
        return 0, MINUTES_PER_DAY
    return blocked.start_time, blocked.end_time


# ── Queries ──────────────────────────────────────────────────────────────

def get_active_reservations(
    db: Session,
    court_id: int,
    target_date: date,
    now: datetime,
) -> list[DBReservations]:
    return (
        db.query(DBReservations)
        .filter(
            DBReservations.court_id == court_id,
            DBReservations.booking_date == target_date,
            active_reservation_clause(now),
        )
        .order_by(DBReservations.start_time)
        .all()
    )


def get_blocked_ranges(
    db: Session,
    court_id: int,
    target_date: date,
    facility_id: int | None = None,
) -> list[DBBlockedRanges]:
    """Active blocked ranges that apply to the court on target_date."""
    if facility_id is None:
        facility_id = (
            db.query(DBCourts.facility_id).filter(DBCourts.id == court_id).scalar()
        )

    return (
        db.query(DBBlockedRanges)
        .filter(
            or_(
                DBBlockedRanges.court_id == court_id,
                and_(
                    DBBlockedRanges.court_id.is_(None),
                    DBBlockedRanges.facility_id == facility_id,
                ),
            ),
            or_(
                and_(
                    DBBlockedRanges.block_type == "one_time",
                    DBBlockedRanges.start_date == target_date,
                ),
                and_(
                    DBBlockedRanges.block_type == "recurring",
                    DBBlockedRanges.day_of_week == day_of_week(target_date),
                ),
                and_(
                    DBBlockedRanges.block_type == "date_range",
                    DBBlockedRanges.start_date <= target_date,
                    DBBlockedRanges.end_date >= target_date,
                ),
            ),
            DBBlockedRanges.is_active == 1,
        )
        .order_by(DBBlockedRanges.start_time)
        .all()
    )


# ── Filtering ────────────────────────────────────────────────────────────

def apply_exclusions(
    base_blocks: list[TimeBlock],
    excluded: list[tuple[int, int]],
) -> list[TimeBlock]:
    """Subtract the union of excluded ranges from every block."""
    merged = merge_ranges(excluded)
    result = []
    for block in base_blocks:
        result.extend(subtract_ranges(block, merged))
    return result


def drop_past_blocks(
    blocks: list[TimeBlock],
    target_date: date,
    now: datetime,
    buffer_minutes: int,
) -> list[TimeBlock]:
    """
    Hide today's blocks that start before now + buffer.

    Other dates are returned unchanged; past dates are rejected upstream.
    """
    if target_date != now.date():
        return blocks
    cutoff = now + timedelta(minutes=buffer_minutes)
    if cutoff.date() > target_date:
        return []
    cutoff_minutes = cutoff.hour * 60 + cutoff.minute
    return [b for b in blocks if b.start >= cutoff_minutes]


def filter_blocks(
    db: Session,
    base_blocks: list[TimeBlock],
    court_id: int,
    target_date: date,
    now: datetime,
) -> FilterResult:
    """Remove reserved and blocked time from base blocks."""
    bookings = get_active_reservations(db, court_id, target_date, now)
    blocked = get_blocked_ranges(db, court_id, target_date)

    excluded = [(r.start_time, r.end_time) for r in bookings]
    excluded += [blocked_range_bounds(b) for b in blocked]

    return FilterResult(
        blocks=apply_exclusions(base_blocks, excluded),
        bookings=bookings,
        blocked_ranges=blocked,
    )
