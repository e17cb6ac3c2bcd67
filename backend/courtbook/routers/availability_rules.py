# backend/courtbook/routers/availability_rules.py
# API.md: PATCH = ALLOWED, DELETE = ALLOWED (soft, is_active = 0)

from fastapi import APIRouter, Depends, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user_id
from ..errors import InvalidTimeRange
from ..redis_client import get_redis
from ..schemas.availability_rules import (
    AvailabilityRuleCreate,
    AvailabilityRuleRead,
    AvailabilityRuleUpdate,
)
from ..services import rules as rule_store
from ..services.resources import ensure_owner
from ..services.slots.config import resolve_minutes

router = APIRouter(prefix="/courts/{court_id}/rules", tags=["availability_rules"])


@router.get("/", response_model=list[AvailabilityRuleRead])
def list_rules(court_id: int, active_only: bool = False, db: Session = Depends(get_db)):
    return rule_store.list_rules(db, court_id, active_only=active_only)


@router.get("/{id}", response_model=AvailabilityRuleRead)
def get_rule(court_id: int, id: int, db: Session = Depends(get_db)):
    return rule_store.get_rule(db, court_id, id)


@router.post("/", response_model=AvailabilityRuleRead, status_code=status.HTTP_201_CREATED)
def create_rule(
    court_id: int,
    data: AvailabilityRuleCreate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    user_id: int = Depends(get_current_user_id),
):
    ensure_owner(db, court_id, user_id)
    start = resolve_minutes(data.start_time, data.start_time_formatted)
    end = resolve_minutes(data.end_time, data.end_time_formatted)
    if start is None or end is None:
        raise InvalidTimeRange("start and end time are required")

    return rule_store.create_rule(
        db,
        court_id,
        day_of_week=data.day_of_week,
        start_time=start,
        end_time=end,
        price_per_hour_override=data.price_per_hour_override,
        is_active=data.is_active,
        redis=redis,
    )


@router.post("/seed", response_model=list[AvailabilityRuleRead], status_code=status.HTTP_201_CREATED)
def seed_rules(
    court_id: int,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    user_id: int = Depends(get_current_user_id),
):
    """Create rules from the facility's opening hours."""
    ensure_owner(db, court_id, user_id)
    return rule_store.seed_rules_from_opening_hours(db, court_id, redis=redis)


@router.patch("/{id}", response_model=AvailabilityRuleRead)
def update_rule(
    court_id: int,
    id: int,
    data: AvailabilityRuleUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    user_id: int = Depends(get_current_user_id),
):
    ensure_owner(db, court_id, user_id)
    changes = data.model_dump(exclude_unset=True)

    for field in ("start_time", "end_time"):
        formatted = changes.pop(f"{field}_formatted", None)
        value = resolve_minutes(changes.get(field), formatted)
        if value is not None:
            changes[field] = value
        else:
            changes.pop(field, None)

    return rule_store.update_rule(db, court_id, id, changes, redis=redis)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
    court_id: int,
    id: int,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    user_id: int = Depends(get_current_user_id),
):
    ensure_owner(db, court_id, user_id)
    rule_store.delete_rule(db, court_id, id, redis=redis)
