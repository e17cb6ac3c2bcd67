# backend/courtbook/services/reservations.py
"""
Reservation manager: claims time ranges and drives the status machine.

    pending   → confirmed | rejected | expired | cancelled
    confirmed → cancelled | completed

reserve() runs as one transaction serialized on the court row
(SELECT ... FOR UPDATE; BEGIN IMMEDIATE on SQLite). Everything it checks
is re-read inside that transaction, so two overlapping attempts can
never both commit. Events are emitted only after commit.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..database import begin_write, write_transaction
from ..errors import (
    BookingError,
    BookingConflict,
    CannotCancelPastSlot,
    Forbidden,
    InvalidDuration,
    InvalidTimeGranularity,
    InvalidTimeRange,
    InvalidTransition,
    NoAvailabilityRules,
    OutsideAvailability,
    OutsideBookingWindow,
    ReservationExpired,
    ReservationNotFound,
    TimeBlocked,
)
from ..models.generated import Reservations as DBReservations
from .events import emit_reservation_event
from .policies import resolve_policy
from .resources import base_price, ensure_active, get_court
from .slots.calculator import generate_base_blocks
from .slots.config import MAX_MINUTE, BookingConfig, get_booking_config, minutes_to_time_str
from .slots.exclusions import (
    active_reservation_clause,
    blocked_range_bounds,
    get_blocked_ranges,
)
from .slots.intervals import covers, find_overlap, overlaps

logger = logging.getLogger(__name__)

TRANSITIONS = {
    "pending": {"confirmed", "rejected", "expired", "cancelled"},
    "confirmed": {"cancelled", "completed"},
    "rejected": set(),
    "cancelled": set(),
    "expired": set(),
    "completed": set(),
}

REAP_BATCH_SIZE = 100


# ── Helpers ──────────────────────────────────────────────────────────────

def slot_start(booking_date: date, minutes: int) -> datetime:
    return datetime.combine(booking_date, time(minutes // 60, minutes % 60))


def _validate_range(start_time: int, end_time: int, config: BookingConfig) -> None:
    if (
        start_time is None
        or end_time is None
        or start_time < 0
        or end_time > MAX_MINUTE + 1
        or start_time >= end_time
    ):
        raise InvalidTimeRange(start_time=start_time, end_time=end_time)
    if not config.is_aligned(start_time) or not config.is_aligned(end_time):
        raise InvalidTimeGranularity(
            f"Times must align to {config.granularity_minutes}-minute intervals",
            start_time=start_time,
            end_time=end_time,
        )


def _check_policy(
    policy,
    target_date: date,
    start_time: int,
    end_time: int,
    now: datetime,
) -> None:
    duration = end_time - start_time
    if duration < policy.min_duration_minutes or duration > policy.max_duration_minutes:
        raise InvalidDuration(
            f"Duration must be between {policy.min_duration_minutes} and "
            f"{policy.max_duration_minutes} minutes",
            duration_minutes=duration,
        )

    starts_at = slot_start(target_date, start_time)
    if starts_at <= now:
        raise OutsideBookingWindow("Cannot reserve a time in the past")
    if starts_at < now + timedelta(minutes=policy.min_advance_notice_minutes):
        raise OutsideBookingWindow(
            f"Reservations need at least {policy.min_advance_notice_minutes} minutes notice"
        )
    max_date = now.date() + timedelta(days=policy.max_advance_booking_days)
    if target_date > max_date:
        raise OutsideBookingWindow(
            f"Cannot reserve more than {policy.max_advance_booking_days} days ahead",
            max_date=max_date.isoformat(),
        )


def _compute_price(blocks, start_time: int, end_time: int, base_rate: float) -> float:
    """Per-block rate (rule override or court rate) times block length."""
    total = 0.0
    for block in blocks:
        if overlaps(start_time, end_time, block.start, block.end):
            rate = block.price_override if block.price_override is not None else base_rate
            total += rate * (min(end_time, block.end) - max(start_time, block.start)) / 60
    return round(total, 2)


def _transition(reservation: DBReservations, new_status: str, now: datetime) -> None:
    if new_status not in TRANSITIONS.get(reservation.status, set()):
        raise InvalidTransition(
            f"Cannot change reservation from {reservation.status} to {new_status}",
            reservation_id=reservation.id,
            status=reservation.status,
        )
    reservation.status = new_status
    reservation.updated_at = now
    if new_status != "pending":
        reservation.expires_at = None


def _load_for_update(db: Session, reservation_id: int) -> DBReservations:
    obj = (
        db.query(DBReservations)
        .filter(DBReservations.id == reservation_id)
        .with_for_update()
        .first()
    )
    if obj is None:
        raise ReservationNotFound(reservation_id=reservation_id)
    return obj


def _is_lapsed(reservation: DBReservations, now: datetime) -> bool:
    return (
        reservation.status == "pending"
        and reservation.expires_at is not None
        and reservation.expires_at < now
    )


# ── Reads ────────────────────────────────────────────────────────────────

def get_reservation(db: Session, reservation_id: int) -> DBReservations:
    obj = db.get(DBReservations, reservation_id)
    if obj is None:
        raise ReservationNotFound(reservation_id=reservation_id)
    return obj


def list_reservations(
    db: Session,
    court_id: Optional[int] = None,
    user_id: Optional[int] = None,
    booking_date: Optional[date] = None,
    statuses: Optional[Iterable[str]] = None,
) -> list[DBReservations]:
    query = db.query(DBReservations)
    if court_id is not None:
        query = query.filter(DBReservations.court_id == court_id)
    if user_id is not None:
        query = query.filter(DBReservations.user_id == user_id)
    if booking_date is not None:
        query = query.filter(DBReservations.booking_date == booking_date)
    if statuses:
        query = query.filter(DBReservations.status.in_(list(statuses)))
    return query.order_by(
        DBReservations.booking_date,
        DBReservations.start_time,
        DBReservations.id,
    ).all()


# ── Reserve ──────────────────────────────────────────────────────────────

def reserve(
    db: Session,
    court_id: int,
    target_date: date,
    start_time: int,
    end_time: int,
    user_id: int,
    now: Optional[datetime] = None,
    config: BookingConfig | None = None,
) -> DBReservations:
    """
    Claim [start_time, end_time) on target_date as a pending reservation.

    Raises:
        InvalidTimeRange / InvalidTimeGranularity: bad input, nothing read
        CourtNotFound / CourtInactive: unknown or disabled court
        InvalidDuration / OutsideBookingWindow: booking policy violated
        BookingConflict: overlaps a confirmed or live pending reservation
        OutsideAvailability: not fully inside the weekly rules
        TimeBlocked: overlaps a blocked range
    """
    config = config or get_booking_config()
    now = now or datetime.now()
    _validate_range(start_time, end_time, config)

    try:
        begin_write(db)
        court = get_court(db, court_id, lock=True)
        ensure_active(court)
        policy = resolve_policy(db, court, config)
        _check_policy(policy, target_date, start_time, end_time, now)

        existing = (
            db.query(DBReservations)
            .filter(
                DBReservations.court_id == court_id,
                DBReservations.booking_date == target_date,
                active_reservation_clause(now),
            )
            .order_by(DBReservations.start_time)
            .all()
        )
        conflict = find_overlap(start_time, end_time, existing)
        if conflict is not None:
            raise BookingConflict(
                f"Time slot overlaps a {conflict.status} reservation "
                f"{minutes_to_time_str(conflict.start_time)}-{minutes_to_time_str(conflict.end_time)}",
                conflicting_booking={
                    "start_time": conflict.start_time,
                    "end_time": conflict.end_time,
                    "status": conflict.status,
                },
            )

        try:
            base_blocks = generate_base_blocks(db, court_id, target_date, config)
        except NoAvailabilityRules:
            base_blocks = []
        if not covers(base_blocks, start_time, end_time):
            raise OutsideAvailability(
                "Requested time is outside available hours",
                start_time=start_time,
                end_time=end_time,
            )

        for blocked in get_blocked_ranges(db, court_id, target_date, court.facility_id):
            b_start, b_end = blocked_range_bounds(blocked)
            if overlaps(start_time, end_time, b_start, b_end):
                raise TimeBlocked(
                    f"Time slot is blocked: {blocked.reason or 'unavailable'}",
                    reason=blocked.reason,
                    block_type=blocked.block_type,
                )

        price = _compute_price(base_blocks, start_time, end_time, base_price(db, court_id))

        reservation = DBReservations(
            court_id=court_id,
            user_id=user_id,
            booking_date=target_date,
            start_time=start_time,
            end_time=end_time,
            status="pending",
            price=price,
            expires_at=now + timedelta(hours=policy.pending_expiration_hours),
            created_at=now,
            updated_at=now,
        )
        db.add(reservation)
        db.commit()
    except BookingError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"reserve failed for court={court_id} date={target_date}")
        raise

    db.refresh(reservation)
    logger.info(
        f"Reservation {reservation.id} pending: court={court_id} {target_date} "
        f"{minutes_to_time_str(start_time)}-{minutes_to_time_str(end_time)} user={user_id}"
    )
    emit_reservation_event("created", reservation)
    return reservation


# ── Owner decisions ──────────────────────────────────────────────────────

def _decide(
    db: Session,
    reservation_id: int,
    acting_user_id: Optional[int],
    new_status: str,
    now: datetime,
    reason: Optional[str] = None,
) -> DBReservations:
    with write_transaction(db):
        reservation = _load_for_update(db, reservation_id)
        if acting_user_id is not None and reservation.court.facility.owner_id != acting_user_id:
            raise Forbidden("Only the facility owner can do this", reservation_id=reservation_id)

        if _is_lapsed(reservation, now):
            _transition(reservation, "expired", now)
            db.commit()
            lapsed = True
        else:
            _transition(reservation, new_status, now)
            reservation.decided_by = acting_user_id
            if new_status == "rejected":
                reservation.rejection_reason = reason
            db.commit()
            lapsed = False

    db.refresh(reservation)
    if lapsed:
        emit_reservation_event("expired", reservation)
        raise ReservationExpired(reservation_id=reservation_id)

    logger.info(f"Reservation {reservation_id} {new_status} by user={acting_user_id}")
    emit_reservation_event(new_status, reservation)
    return reservation


def confirm(
    db: Session,
    reservation_id: int,
    acting_user_id: Optional[int],
    now: Optional[datetime] = None,
) -> DBReservations:
    """pending → confirmed. A lapsed hold becomes expired and ReservationExpired is raised."""
    return _decide(db, reservation_id, acting_user_id, "confirmed", now or datetime.now())


def reject(
    db: Session,
    reservation_id: int,
    acting_user_id: Optional[int],
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DBReservations:
    """pending → rejected; the range is free immediately."""
    return _decide(db, reservation_id, acting_user_id, "rejected", now or datetime.now(), reason)


def cancel(
    db: Session,
    reservation_id: int,
    acting_user_id: Optional[int],
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DBReservations:
    """
    pending | confirmed → cancelled, by the reserving user or the owner.

    Only allowed while the reservation has not started.
    """
    now = now or datetime.now()
    with write_transaction(db):
        reservation = _load_for_update(db, reservation_id)
        if acting_user_id is not None and acting_user_id not in (
            reservation.user_id,
            reservation.court.facility.owner_id,
        ):
            raise Forbidden("Not allowed to cancel this reservation", reservation_id=reservation_id)
        if slot_start(reservation.booking_date, reservation.start_time) <= now:
            raise CannotCancelPastSlot(reservation_id=reservation_id)

        _transition(reservation, "cancelled", now)
        reservation.cancellation_reason = reason
        reservation.decided_by = acting_user_id
        db.commit()

    db.refresh(reservation)
    logger.info(f"Reservation {reservation_id} cancelled by user={acting_user_id}")
    emit_reservation_event("cancelled", reservation)
    return reservation


# ── Sweeps ───────────────────────────────────────────────────────────────

def reap_expired(db: Session, now: Optional[datetime] = None) -> int:
    """
    pending with expires_at < now → expired, in batches.

    The UPDATE re-checks status and expiry, so a concurrent confirm or a
    second reaper never double-applies. Safe to call any number of times.
    """
    now = now or datetime.now()
    total = 0
    while True:
        with write_transaction(db):
            candidates = (
                db.query(DBReservations.id)
                .filter(
                    DBReservations.status == "pending",
                    DBReservations.expires_at < now,
                )
                .order_by(DBReservations.expires_at)
                .limit(REAP_BATCH_SIZE)
                .with_for_update(skip_locked=True)
                .all()
            )
            ids = [row.id for row in candidates]
            if not ids:
                db.commit()
                break

            updated = (
                db.query(DBReservations)
                .filter(
                    DBReservations.id.in_(ids),
                    DBReservations.status == "pending",
                    DBReservations.expires_at < now,
                )
                .update(
                    {"status": "expired", "expires_at": None, "updated_at": now},
                    synchronize_session=False,
                )
            )
            db.commit()
        total += updated

        for reservation in db.query(DBReservations).filter(
            DBReservations.id.in_(ids),
            DBReservations.status == "expired",
        ):
            emit_reservation_event("expired", reservation)

        if len(ids) < REAP_BATCH_SIZE:
            break

    if total:
        logger.info(f"Expired {total} pending reservations")
    return total


def complete_elapsed(db: Session, now: Optional[datetime] = None) -> int:
    """confirmed reservations whose end has passed → completed."""
    now = now or datetime.now()
    today = now.date()
    now_minutes = now.hour * 60 + now.minute

    with write_transaction(db):
        elapsed = (
            db.query(DBReservations)
            .filter(
                DBReservations.status == "confirmed",
                or_(
                    DBReservations.booking_date < today,
                    and_(
                        DBReservations.booking_date == today,
                        DBReservations.end_time <= now_minutes,
                    ),
                ),
            )
            .with_for_update(skip_locked=True)
            .all()
        )
        for reservation in elapsed:
            _transition(reservation, "completed", now)
        db.commit()

    for reservation in elapsed:
        emit_reservation_event("completed", reservation)
    if elapsed:
        logger.info(f"Completed {len(elapsed)} elapsed reservations")
    return len(elapsed)
