"""
backend/courtbook/services/events.py

Event emitter: pushes reservation-changed facts to a Redis queue
for consumption by notification workers.

Queue:
- events:p2p: instant delivery (reservation notifications to specific users)
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    A failed push is logged; the caller's transaction is already committed.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(EVENTS_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def emit_reservation_event(event_type: str, reservation) -> None:
    """Emit reservation_<event_type> with the reservation's identifying fields."""
    emit_event(f"reservation_{event_type}", {
        "reservation_id": reservation.id,
        "court_id": reservation.court_id,
        "user_id": reservation.user_id,
        "booking_date": reservation.booking_date.isoformat(),
        "start_time": reservation.start_time,
        "end_time": reservation.end_time,
        "status": reservation.status,
    })
