# backend/courtbook/services/resources.py
"""
Resource directory: read-only view over courts and facilities.

Courts, facilities and ownership are managed elsewhere; the scheduling
core only asks whether a court exists, who owns it and what it costs.
"""

from sqlalchemy.orm import Session

from ..errors import CourtInactive, CourtNotFound, Forbidden
from ..models.generated import Courts as DBCourts


def get_court(db: Session, court_id: int, lock: bool = False) -> DBCourts:
    """
    Load a court or raise CourtNotFound.

    lock=True takes a row lock (SELECT ... FOR UPDATE) for the rest of
    the transaction; this is the serialization point for reservations.
    """
    query = db.query(DBCourts).filter(DBCourts.id == court_id)
    if lock:
        query = query.with_for_update()
    court = query.first()
    if court is None:
        raise CourtNotFound(court_id=court_id)
    return court


def resource_exists(db: Session, court_id: int) -> bool:
    return db.query(DBCourts.id).filter(DBCourts.id == court_id).first() is not None


def owner_of(db: Session, court_id: int) -> int:
    return get_court(db, court_id).facility.owner_id


def base_price(db: Session, court_id: int) -> float:
    return get_court(db, court_id).price_per_hour or 0.0


def ensure_active(court: DBCourts) -> None:
    if not court.is_active or not court.facility.is_active:
        raise CourtInactive(court_id=court.id)


def ensure_owner(db: Session, court_id: int, user_id: int) -> DBCourts:
    """Return the court when user_id owns its facility, else Forbidden."""
    court = get_court(db, court_id)
    if court.facility.owner_id != user_id:
        raise Forbidden("Only the facility owner can do this", court_id=court_id)
    return court
