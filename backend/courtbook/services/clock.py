# backend/courtbook/services/clock.py
"""
Injectable "now".

All reservation/expiry logic asks a Clock instead of calling
datetime.now() so tests can pin time. Values are naive datetimes in
the facility timezone (settings.timezone), matching how booking_date
and minute-of-day values are stored.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from ..config import settings


class Clock:
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def __init__(self, tz_name: str | None = None):
        self.tz = ZoneInfo(tz_name or settings.timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz).replace(tzinfo=None, microsecond=0)


class FixedClock(Clock):
    """Clock frozen at a given moment; advance() moves it forward."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def advance(self, delta) -> None:
        self.moment = self.moment + delta


system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency; overridden in tests."""
    return system_clock
