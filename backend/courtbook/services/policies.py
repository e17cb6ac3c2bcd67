# backend/courtbook/services/policies.py
"""
Booking policy resolution.

Lookup order for every field: court-level policy → facility-level policy
→ BookingConfig default. A NULL column falls through to the next level.
"""

from dataclasses import dataclass

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.generated import BookingPolicies as DBBookingPolicies
from .slots.config import BookingConfig, get_booking_config


@dataclass(frozen=True)
class BookingPolicy:
    max_advance_booking_days: int
    min_duration_minutes: int
    max_duration_minutes: int
    min_advance_notice_minutes: int
    pending_expiration_hours: int


_FIELDS = {
    # policy attr: (db column, config attr)
    "max_advance_booking_days": ("max_advance_booking_days", "horizon_days"),
    "min_duration_minutes": ("min_booking_duration_minutes", "min_duration_minutes"),
    "max_duration_minutes": ("max_booking_duration_minutes", "max_duration_minutes"),
    "min_advance_notice_minutes": ("min_advance_notice_minutes", None),
    "pending_expiration_hours": ("pending_expiration_hours", "pending_ttl_hours"),
}


def default_policy(config: BookingConfig | None = None) -> BookingPolicy:
    config = config or get_booking_config()
    return BookingPolicy(**{
        attr: getattr(config, config_attr) if config_attr else 0
        for attr, (_, config_attr) in _FIELDS.items()
    })


def resolve_policy(
    db: Session,
    court,
    config: BookingConfig | None = None,
) -> BookingPolicy:
    """Effective policy for a court (Courts row)."""
    rows = (
        db.query(DBBookingPolicies)
        .filter(DBBookingPolicies.facility_id == court.facility_id)
        .filter(or_(
            DBBookingPolicies.court_id == court.id,
            DBBookingPolicies.court_id.is_(None),
        ))
        .all()
    )
    court_row = next((r for r in rows if r.court_id is not None), None)
    facility_row = next((r for r in rows if r.court_id is None), None)
    fallback = default_policy(config)

    values = {}
    for attr, (column, _) in _FIELDS.items():
        value = None
        for row in (court_row, facility_row):
            if row is not None and getattr(row, column) is not None:
                value = getattr(row, column)
                break
        values[attr] = value if value is not None else getattr(fallback, attr)
    return BookingPolicy(**values)
