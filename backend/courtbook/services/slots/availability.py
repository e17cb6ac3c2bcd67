# backend/courtbook/services/slots/availability.py
"""
Availability queries: what can be booked on a court.

Pipeline per day:
  rules → base blocks (Redis-cached) → minus reservations/blocked ranges
  → minus today's past blocks → slots of the requested duration(s)

Read-only and lock-free; the result may be stale by the time a
reservation is attempted, the write path re-checks everything.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from redis import Redis
from sqlalchemy.orm import Session

from ...errors import NoAvailabilityRules, OutsideBookingWindow
from ..policies import BookingPolicy, resolve_policy
from ..resources import ensure_active, get_court
from .calculator import day_of_week, generate_base_blocks
from .composer import compose_multiple, compose_slots
from .config import BookingConfig, get_booking_config, minutes_to_time_str
from .exclusions import blocked_range_bounds, drop_past_blocks, filter_blocks
from .intervals import Slot, TimeBlock
from .redis_store import BlocksRedisStore

logger = logging.getLogger(__name__)


# ── Base blocks (cached) ─────────────────────────────────────────────────

def get_base_blocks(
    db: Session,
    court_id: int,
    target_date: date,
    config: BookingConfig | None = None,
    redis: Optional[Redis] = None,
) -> list[TimeBlock]:
    """Base blocks from cache, computing and storing them on a miss."""
    config = config or get_booking_config()
    if redis is None:
        return generate_base_blocks(db, court_id, target_date, config)

    store = BlocksRedisStore(redis, config)
    try:
        cached = store.get_day_blocks(court_id, target_date)
    except Exception as e:
        logger.warning(f"Blocks cache read failed for court={court_id}: {e}")
        return generate_base_blocks(db, court_id, target_date, config)

    if cached is not None:
        return cached

    blocks = generate_base_blocks(db, court_id, target_date, config)
    try:
        store.store_day_blocks(court_id, target_date, blocks)
    except Exception as e:
        logger.warning(f"Blocks cache write failed for court={court_id}: {e}")
    return blocks


# ── Serialization helpers ────────────────────────────────────────────────

def block_to_dict(block: TimeBlock) -> dict:
    return {
        "start_time": block.start,
        "end_time": block.end,
        "start_time_formatted": minutes_to_time_str(block.start),
        "end_time_formatted": _format_end(block.end),
        "duration_minutes": block.duration,
        "price_per_hour_override": block.price_override,
    }


def slot_to_dict(slot: Slot) -> dict:
    return {
        "start_time": slot.start,
        "end_time": slot.end,
        "start_time_formatted": minutes_to_time_str(slot.start),
        "end_time_formatted": _format_end(slot.end),
        "duration_minutes": slot.duration_minutes,
    }


def _format_end(minutes: int) -> str:
    # date_range blocks end at 1440, which has no HH:MM form of its own
    return "24:00" if minutes == 1440 else minutes_to_time_str(minutes)


def _occupied_to_dict(start: int, end: int, **extra) -> dict:
    return {
        "start_time": start,
        "end_time": end,
        "start_time_formatted": minutes_to_time_str(start),
        "end_time_formatted": _format_end(end),
        **extra,
    }


# ── Date window ──────────────────────────────────────────────────────────

def check_date_window(target_date: date, now: datetime, policy: BookingPolicy) -> None:
    today = now.date()
    if target_date < today:
        raise OutsideBookingWindow(
            "Date cannot be in the past", date=target_date.isoformat()
        )
    max_date = today + timedelta(days=policy.max_advance_booking_days)
    if target_date > max_date:
        raise OutsideBookingWindow(
            f"Date cannot be more than {policy.max_advance_booking_days} days ahead",
            date=target_date.isoformat(),
            max_date=max_date.isoformat(),
        )


# ── Queries ──────────────────────────────────────────────────────────────

def _free_blocks_for_day(
    db: Session,
    court_id: int,
    target_date: date,
    now: datetime,
    config: BookingConfig,
    redis: Optional[Redis],
):
    """(base_blocks, filter_result) with today's past blocks dropped."""
    base = get_base_blocks(db, court_id, target_date, config, redis)
    result = filter_blocks(db, base, court_id, target_date, now)
    result.blocks = drop_past_blocks(
        result.blocks, target_date, now, config.past_slot_buffer_minutes
    )
    return base, result


def get_day_availability(
    db: Session,
    court_id: int,
    target_date: date,
    now: datetime,
    duration: int | None = None,
    config: BookingConfig | None = None,
    redis: Optional[Redis] = None,
) -> dict:
    """
    Free blocks (and optionally slots) for one court and date.

    Returns:
        Dict matching schemas.slots.DayAvailabilityResponse.
    """
    config = config or get_booking_config()
    court = get_court(db, court_id)
    ensure_active(court)
    policy = resolve_policy(db, court, config)
    check_date_window(target_date, now, policy)

    response = {
        "court_id": court_id,
        "date": target_date,
        "day_of_week": day_of_week(target_date),
        "has_rules": True,
        "blocks": [],
        "slots": None,
        "bookings": [],
        "blocked_ranges": [],
        "metadata": {
            "base_block_count": 0,
            "available_block_count": 0,
            "total_hours_available": 0.0,
            "duration_minutes": duration,
        },
    }

    try:
        base, result = _free_blocks_for_day(db, court_id, target_date, now, config, redis)
    except NoAvailabilityRules:
        response["has_rules"] = False
        if duration is not None:
            compose_slots([], duration, config)  # still validate input
            response["slots"] = []
        return response

    response["blocks"] = [block_to_dict(b) for b in result.blocks]
    response["bookings"] = [
        _occupied_to_dict(r.start_time, r.end_time, id=r.id, status=r.status)
        for r in result.bookings
    ]
    response["blocked_ranges"] = [
        _occupied_to_dict(*blocked_range_bounds(b), id=b.id, block_type=b.block_type, reason=b.reason)
        for b in result.blocked_ranges
    ]
    if duration is not None:
        response["slots"] = [slot_to_dict(s) for s in compose_slots(result.blocks, duration, config)]

    free_minutes = sum(b.duration for b in result.blocks)
    response["metadata"].update({
        "base_block_count": len(base),
        "available_block_count": len(result.blocks),
        "total_hours_available": round(free_minutes / 60, 2),
    })
    return response


def get_range_availability(
    db: Session,
    court_id: int,
    start_date: date,
    end_date: date,
    now: datetime,
    duration: int | None = None,
    config: BookingConfig | None = None,
    redis: Optional[Redis] = None,
) -> dict:
    """
    Per-day availability over an inclusive date range.

    Dates before today are dropped; the range is capped at the policy's
    advance window. A failing day is reported inline, not raised.
    """
    config = config or get_booking_config()
    court = get_court(db, court_id)
    ensure_active(court)
    policy = resolve_policy(db, court, config)

    today = now.date()
    max_date = today + timedelta(days=policy.max_advance_booking_days)
    if start_date < today:
        start_date = today
    if end_date > max_date:
        end_date = max_date
    if duration is not None:
        compose_slots([], duration, config)

    days = []
    current = start_date
    while current <= end_date:
        entry = {
            "date": current,
            "day_of_week": day_of_week(current),
            "has_rules": True,
            "blocks": [],
            "slots": None,
            "total_hours_available": 0.0,
            "message": None,
        }
        try:
            _, result = _free_blocks_for_day(db, court_id, current, now, config, redis)
            entry["blocks"] = [block_to_dict(b) for b in result.blocks]
            if duration is not None:
                entry["slots"] = [slot_to_dict(s) for s in compose_slots(result.blocks, duration, config)]
            entry["total_hours_available"] = round(
                sum(b.duration for b in result.blocks) / 60, 2
            )
        except NoAvailabilityRules as e:
            entry["has_rules"] = False
            entry["message"] = e.message
        days.append(entry)
        current += timedelta(days=1)

    return {
        "court_id": court_id,
        "start_date": start_date,
        "end_date": end_date,
        "days": days,
    }


def get_available_slots(
    db: Session,
    court_id: int,
    target_date: date,
    now: datetime,
    durations: Iterable[int],
    config: BookingConfig | None = None,
    redis: Optional[Redis] = None,
) -> dict:
    """
    Slots for one or more durations on a date.

    Returns:
        {"slots_by_duration": {d: [...]}, "errors": {d: message}, "has_rules": bool}
    """
    config = config or get_booking_config()
    court = get_court(db, court_id)
    ensure_active(court)
    policy = resolve_policy(db, court, config)
    check_date_window(target_date, now, policy)

    durations = list(durations)
    try:
        _, result = _free_blocks_for_day(db, court_id, target_date, now, config, redis)
        free_blocks, has_rules = result.blocks, True
    except NoAvailabilityRules:
        free_blocks, has_rules = [], False

    slots, errors = compose_multiple(free_blocks, durations, config)
    return {
        "court_id": court_id,
        "date": target_date,
        "has_rules": has_rules,
        "slots_by_duration": {
            d: [slot_to_dict(s) for s in items] for d, items in slots.items()
        },
        "errors": errors,
    }
