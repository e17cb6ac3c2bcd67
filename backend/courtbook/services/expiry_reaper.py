"""
Reservation expiry reaper.

Periodically moves lapsed pending holds to expired (freeing their range
for good) and confirmed reservations whose time has passed to completed.

Runs as an asyncio task in backend lifespan.
Uses synchronous DB (via asyncio.to_thread).
"""

import asyncio
import logging
from typing import Optional

from ..database import SessionLocal
from .clock import Clock, system_clock
from .reservations import complete_elapsed, reap_expired
from .slots.config import get_booking_config

logger = logging.getLogger(__name__)


async def expiry_reaper_loop(clock: Optional[Clock] = None) -> None:
    """
    Periodic loop that sweeps reservations every reaper_interval_seconds.

    A failed sweep is logged and retried on the next tick.
    """
    clock = clock or system_clock
    interval = get_booking_config().reaper_interval_seconds
    logger.info("expiry_reaper_loop started")

    try:
        while True:
            try:
                await asyncio.to_thread(run_reaper_once, None, clock)
            except asyncio.CancelledError:
                logger.info("expiry_reaper_loop cancelled")
                raise
            except Exception:
                logger.exception("expiry_reaper_loop error")

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        pass


def run_reaper_once(session_factory=None, clock: Optional[Clock] = None) -> dict:
    """One sweep (synchronous). Returns counts per transition."""
    session_factory = session_factory or SessionLocal
    clock = clock or system_clock
    now = clock.now()

    db = session_factory()
    try:
        expired = reap_expired(db, now)
        completed = complete_elapsed(db, now)
    finally:
        db.close()

    return {"expired": expired, "completed": completed}
