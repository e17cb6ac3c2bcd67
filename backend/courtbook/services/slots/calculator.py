# backend/courtbook/services/slots/calculator.py
"""
Base block generation from weekly availability rules.

Produces [start, start + granularity) blocks for one court and date.

Contains:
✓ active availability_rules for the weekday
✓ per-rule price override

Does NOT contain:
✗ Reservations (removed in exclusions.py)
✗ Blocked ranges (removed in exclusions.py)
✗ Past-time filtering (exclusions.py)
"""

from datetime import date
from typing import Iterable
from sqlalchemy.orm import Session

from ...errors import NoAvailabilityRules
from ...models.generated import AvailabilityRules as DBAvailabilityRules
from .config import BookingConfig, get_booking_config
from .intervals import TimeBlock


# date.weekday() (Monday=0) → stored day_of_week (Sunday=0)
WEEKDAY_TO_DAY_OF_WEEK = (1, 2, 3, 4, 5, 6, 0)

DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")


def day_of_week(target_date: date) -> int:
    """Sunday=0 .. Saturday=6, independent of locale and timezone."""
    return WEEKDAY_TO_DAY_OF_WEEK[target_date.weekday()]


def expand_rules(rules: Iterable, step: int) -> list[TimeBlock]:
    """
    Expand rules into consecutive blocks of `step` minutes.

    A rule [s, e) yields [t, t+step) for t = s, s+step, ... while t+step <= e.
    A remainder shorter than one step is dropped.
    """
    blocks = []
    for rule in rules:
        t = rule.start_time
        while t + step <= rule.end_time:
            blocks.append(TimeBlock(t, t + step, rule.price_per_hour_override))
            t += step
    blocks.sort()
    return blocks


def get_day_rules(db: Session, court_id: int, target_date: date) -> list[DBAvailabilityRules]:
    return (
        db.query(DBAvailabilityRules)
        .filter(
            DBAvailabilityRules.court_id == court_id,
            DBAvailabilityRules.day_of_week == day_of_week(target_date),
            DBAvailabilityRules.is_active == 1,
        )
        .order_by(DBAvailabilityRules.start_time)
        .all()
    )


def generate_base_blocks(
    db: Session,
    court_id: int,
    target_date: date,
    config: BookingConfig | None = None,
) -> list[TimeBlock]:
    """
    Base blocks for a court on a date, sorted and disjoint.

    Raises:
        NoAvailabilityRules: no active rule applies to that weekday.
    """
    config = config or get_booking_config()
    rules = get_day_rules(db, court_id, target_date)
    if not rules:
        raise NoAvailabilityRules(
            court_id=court_id,
            date=target_date.isoformat(),
            day_of_week=day_of_week(target_date),
        )
    return expand_rules(rules, config.granularity_minutes)
