# backend/courtbook/services/slots/config.py
"""
Booking configuration and time normalization.

Times of day are integer minutes since midnight (0..1439).
Wire format is "HH:MM"; both are accepted on input.
"""

import re
from dataclasses import dataclass
from functools import lru_cache

from ...errors import InvalidTimeFormat, OutOfRange


MINUTES_PER_DAY = 24 * 60
MAX_MINUTE = MINUTES_PER_DAY - 1

_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for availability/reservation system.

    Attributes:
        granularity_minutes: Block size and alignment of every time (30)
        horizon_days: How many days ahead reservations are accepted
        pending_ttl_hours: How long an unconfirmed reservation holds its range
        min_duration_minutes: Shortest bookable duration
        max_duration_minutes: Longest bookable duration
        past_slot_buffer_minutes: Today's blocks starting sooner than this are hidden
        cache_ttl_seconds: Redis cache TTL for base blocks
        reaper_interval_seconds: Delay between expiry sweeps
    """
    granularity_minutes: int = 30
    horizon_days: int = 30
    pending_ttl_hours: int = 24
    min_duration_minutes: int = 30
    max_duration_minutes: int = 480
    past_slot_buffer_minutes: int = 60
    cache_ttl_seconds: int = 86400  # 24 hours
    reaper_interval_seconds: int = 60

    def __post_init__(self):
        """Validate configuration."""
        if MINUTES_PER_DAY % self.granularity_minutes:
            raise ValueError(
                f"granularity_minutes must divide a day, got {self.granularity_minutes}"
            )
        if self.min_duration_minutes > self.max_duration_minutes:
            raise ValueError("min_duration_minutes exceeds max_duration_minutes")

    def is_aligned(self, minutes: int) -> bool:
        return minutes % self.granularity_minutes == 0


@lru_cache
def get_booking_config() -> BookingConfig:
    """
    Get booking configuration (singleton).

    Per-court values come from booking policies, see services/policies.py.
    """
    return BookingConfig()


# ── Time normalization ───────────────────────────────────────────────────

def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    if not isinstance(value, str) or not _TIME_RE.match(value):
        raise InvalidTimeFormat(f"Invalid time format: {value!r}, expected HH:MM")

    hours, minutes = int(value[:2]), int(value[3:])
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Invalid time value: {value!r}")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    if not isinstance(minutes, int) or isinstance(minutes, bool):
        raise OutOfRange(f"Minutes must be an integer, got {minutes!r}")
    if minutes < 0 or minutes > MAX_MINUTE:
        raise OutOfRange(f"Minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def resolve_minutes(minutes: int | None, formatted: str | None) -> int | None:
    """
    Pick a time value from either representation.

    "HH:MM" wins when both are given; None when neither is.
    """
    if formatted is not None:
        return time_str_to_minutes(formatted)
    if minutes is None:
        return None
    if minutes < 0 or minutes > MAX_MINUTE:
        raise OutOfRange(f"Minutes out of range: {minutes}")
    return minutes


def is_aligned(minutes: int, config: BookingConfig | None = None) -> bool:
    """True when minutes is a multiple of the block granularity."""
    config = config or get_booking_config()
    return config.is_aligned(minutes)
