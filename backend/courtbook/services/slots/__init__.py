# backend/courtbook/services/slots/__init__.py
"""
Availability calculation module.

Base blocks: weekly rules expanded to 30-minute blocks (cached in Redis)
Free blocks: base minus reservations and blocked ranges (calculated on-the-fly)
Slots: free blocks composed into the requested duration
"""

from .config import (
    BookingConfig,
    get_booking_config,
    minutes_to_time_str,
    time_str_to_minutes,
)
from .intervals import Slot, TimeBlock
from .calculator import generate_base_blocks
from .exclusions import filter_blocks
from .composer import compose_multiple, compose_slots
from .redis_store import BlocksRedisStore
from .invalidator import invalidate_court_cache
from .availability import (
    get_available_slots,
    get_day_availability,
    get_range_availability,
)

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "minutes_to_time_str",
    "time_str_to_minutes",
    "Slot",
    "TimeBlock",
    "generate_base_blocks",
    "filter_blocks",
    "compose_slots",
    "compose_multiple",
    "BlocksRedisStore",
    "invalidate_court_cache",
    "get_day_availability",
    "get_range_availability",
    "get_available_slots",
]
