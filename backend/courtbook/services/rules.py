# backend/courtbook/services/rules.py
"""
Availability rule store.

Weekly recurring windows per court. Active rules for the same
court and weekday never overlap; rules are deactivated, not deleted.
Every mutation drops the court's cached base blocks.
"""

import json
import logging
from typing import Optional

from redis import Redis
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import write_transaction
from ..errors import (
    BookingError,
    InvalidDayOfWeek,
    InvalidPrice,
    InvalidTimeRange,
    RuleConflict,
    RuleNotFound,
)
from ..models.generated import AvailabilityRules as DBAvailabilityRules
from .resources import get_court
from .slots.calculator import DAY_NAMES
from .slots.config import MAX_MINUTE, minutes_to_time_str, time_str_to_minutes
from .slots.intervals import overlaps
from .slots.invalidator import invalidate_court_cache

logger = logging.getLogger(__name__)

DAY_NAME_TO_NUMBER = {name: i for i, name in enumerate(DAY_NAMES)}


# ── Validation ───────────────────────────────────────────────────────────

def _validate(day_of_week: int, start_time: int, end_time: int, price_override) -> None:
    if day_of_week is None or not 0 <= day_of_week <= 6:
        raise InvalidDayOfWeek(day_of_week=day_of_week)
    if start_time < 0 or end_time > MAX_MINUTE or start_time >= end_time:
        raise InvalidTimeRange(start_time=start_time, end_time=end_time)
    if price_override is not None and price_override <= 0:
        raise InvalidPrice(price_per_hour_override=price_override)


def _find_conflict(
    db: Session,
    court_id: int,
    day_of_week: int,
    start_time: int,
    end_time: int,
    exclude_id: Optional[int] = None,
) -> Optional[DBAvailabilityRules]:
    query = db.query(DBAvailabilityRules).filter(
        DBAvailabilityRules.court_id == court_id,
        DBAvailabilityRules.day_of_week == day_of_week,
        DBAvailabilityRules.is_active == 1,
    )
    if exclude_id is not None:
        query = query.filter(DBAvailabilityRules.id != exclude_id)
    for rule in query.all():
        if overlaps(start_time, end_time, rule.start_time, rule.end_time):
            return rule
    return None


def _find_exact(
    db: Session,
    court_id: int,
    day_of_week: int,
    start_time: int,
    end_time: int,
) -> Optional[DBAvailabilityRules]:
    return (
        db.query(DBAvailabilityRules)
        .filter(
            DBAvailabilityRules.court_id == court_id,
            DBAvailabilityRules.day_of_week == day_of_week,
            DBAvailabilityRules.start_time == start_time,
            DBAvailabilityRules.end_time == end_time,
        )
        .first()
    )


def _conflict_error(rule: DBAvailabilityRules) -> RuleConflict:
    return RuleConflict(
        f"Rule overlaps existing rule {minutes_to_time_str(rule.start_time)}"
        f"-{minutes_to_time_str(rule.end_time)}",
        conflicting_rule={
            "id": rule.id,
            "day_of_week": rule.day_of_week,
            "start_time": rule.start_time,
            "end_time": rule.end_time,
        },
    )


def _commit(db: Session) -> None:
    """Commit; a unique-constraint hit means a concurrent identical rule."""
    try:
        db.commit()
    except IntegrityError as e:
        raise RuleConflict("Rule with the same day and times already exists") from e


# ── Operations ───────────────────────────────────────────────────────────

def get_rule(db: Session, court_id: int, rule_id: int) -> DBAvailabilityRules:
    rule = db.get(DBAvailabilityRules, rule_id)
    if rule is None or rule.court_id != court_id:
        raise RuleNotFound(rule_id=rule_id, court_id=court_id)
    return rule


def list_rules(
    db: Session,
    court_id: int,
    active_only: bool = False,
) -> list[DBAvailabilityRules]:
    get_court(db, court_id)
    query = db.query(DBAvailabilityRules).filter(DBAvailabilityRules.court_id == court_id)
    if active_only:
        query = query.filter(DBAvailabilityRules.is_active == 1)
    return query.order_by(
        DBAvailabilityRules.day_of_week,
        DBAvailabilityRules.start_time,
    ).all()


def create_rule(
    db: Session,
    court_id: int,
    day_of_week: int,
    start_time: int,
    end_time: int,
    price_per_hour_override: Optional[float] = None,
    is_active: bool = True,
    redis: Optional[Redis] = None,
) -> DBAvailabilityRules:
    """
    Add a weekly window.

    An inactive rule with the exact same (day, start, end) is reactivated
    instead of inserting a duplicate.
    """
    _validate(day_of_week, start_time, end_time, price_per_hour_override)

    with write_transaction(db):
        get_court(db, court_id)
        if is_active:
            conflict = _find_conflict(db, court_id, day_of_week, start_time, end_time)
            if conflict is not None:
                raise _conflict_error(conflict)

        rule = _find_exact(db, court_id, day_of_week, start_time, end_time)
        if rule is not None:
            if rule.is_active:
                raise _conflict_error(rule)
            rule.is_active = 1 if is_active else 0
            rule.price_per_hour_override = price_per_hour_override
            rule.updated_at = func.current_timestamp()
        else:
            rule = DBAvailabilityRules(
                court_id=court_id,
                day_of_week=day_of_week,
                start_time=start_time,
                end_time=end_time,
                price_per_hour_override=price_per_hour_override,
                is_active=1 if is_active else 0,
            )
            db.add(rule)
        _commit(db)

    db.refresh(rule)
    invalidate_court_cache(redis, court_id)
    logger.info(
        f"Rule {rule.id} saved for court={court_id} day={day_of_week} "
        f"{minutes_to_time_str(start_time)}-{minutes_to_time_str(end_time)}"
    )
    return rule


def update_rule(
    db: Session,
    court_id: int,
    rule_id: int,
    changes: dict,
    redis: Optional[Redis] = None,
) -> DBAvailabilityRules:
    """
    Apply partial changes (day_of_week, start_time, end_time,
    price_per_hour_override, is_active) with the same checks as create.
    """
    with write_transaction(db):
        rule = get_rule(db, court_id, rule_id)

        day = changes.get("day_of_week", rule.day_of_week)
        start = changes.get("start_time", rule.start_time)
        end = changes.get("end_time", rule.end_time)
        price = changes.get("price_per_hour_override", rule.price_per_hour_override)
        active = changes.get("is_active", bool(rule.is_active))

        _validate(day, start, end, price)
        if active:
            conflict = _find_conflict(db, court_id, day, start, end, exclude_id=rule.id)
            if conflict is not None:
                raise _conflict_error(conflict)

        rule.day_of_week = day
        rule.start_time = start
        rule.end_time = end
        rule.price_per_hour_override = price
        rule.is_active = 1 if active else 0
        rule.updated_at = func.current_timestamp()
        _commit(db)

    db.refresh(rule)
    invalidate_court_cache(redis, court_id)
    return rule


def delete_rule(
    db: Session,
    court_id: int,
    rule_id: int,
    redis: Optional[Redis] = None,
) -> DBAvailabilityRules:
    """Soft delete: the rule stays for history with is_active = 0."""
    with write_transaction(db):
        rule = get_rule(db, court_id, rule_id)
        rule.is_active = 0
        rule.updated_at = func.current_timestamp()
        db.commit()

    db.refresh(rule)
    invalidate_court_cache(redis, court_id)
    logger.info(f"Rule {rule_id} deactivated for court={court_id}")
    return rule


# ── Seeding ──────────────────────────────────────────────────────────────

def rules_from_opening_hours(opening_hours: dict) -> list[tuple[int, int, int]]:
    """
    Map {"monday": {"open": "09:00", "close": "22:00"}, ...}
    to (day_of_week, start, end) tuples. Unusable days are skipped.
    """
    result = []
    if not isinstance(opening_hours, dict):
        return result

    for day_name, hours in opening_hours.items():
        day = DAY_NAME_TO_NUMBER.get(str(day_name).lower())
        if day is None:
            logger.warning(f"Skipping unknown day name in opening hours: {day_name!r}")
            continue
        if not isinstance(hours, dict) or not hours.get("open") or not hours.get("close"):
            continue
        try:
            start = time_str_to_minutes(hours["open"])
            end = time_str_to_minutes(hours["close"])
        except BookingError as e:
            logger.warning(f"Skipping invalid opening hours for {day_name}: {e.message}")
            continue
        if start >= end:
            logger.warning(f"Skipping opening hours for {day_name}: open is not before close")
            continue
        result.append((day, start, end))

    result.sort()
    return result


def seed_rules_from_opening_hours(
    db: Session,
    court_id: int,
    redis: Optional[Redis] = None,
) -> list[DBAvailabilityRules]:
    """
    Create rules for a court from its facility's opening hours.

    Days that already have an overlapping active rule are left alone.
    """
    with write_transaction(db):
        court = get_court(db, court_id)
        try:
            opening_hours = json.loads(court.facility.opening_hours or "{}")
        except json.JSONDecodeError:
            logger.warning(f"Facility {court.facility_id} has malformed opening_hours")
            opening_hours = {}

        created = []
        for day, start, end in rules_from_opening_hours(opening_hours):
            if _find_conflict(db, court_id, day, start, end) is not None:
                continue
            rule = _find_exact(db, court_id, day, start, end)
            if rule is not None:
                rule.is_active = 1
                rule.updated_at = func.current_timestamp()
            else:
                rule = DBAvailabilityRules(
                    court_id=court_id,
                    day_of_week=day,
                    start_time=start,
                    end_time=end,
                    is_active=1,
                )
                db.add(rule)
            created.append(rule)
        _commit(db)

    for rule in created:
        db.refresh(rule)
    if created:
        invalidate_court_cache(redis, court_id)
    logger.info(f"Seeded {len(created)} rules for court={court_id} from opening hours")
    return created
