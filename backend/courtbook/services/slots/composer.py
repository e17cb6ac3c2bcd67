# backend/courtbook/services/slots/composer.py
"""
Slot composition: free blocks → bookable slots of a requested duration.

Adjacent blocks merge into windows; inside each window a slot starts at
every aligned time s with s + duration <= window end. Candidates overlap
on purpose (09:00–10:00 and 09:30–10:30 are both offered).
"""

from typing import Iterable, Sequence

from ...errors import InvalidDuration
from .config import BookingConfig, get_booking_config
from .intervals import Slot, TimeBlock, merge_adjacent


def validate_duration(duration_minutes: int, config: BookingConfig | None = None) -> None:
    config = config or get_booking_config()
    step = config.granularity_minutes
    if (
        not isinstance(duration_minutes, int)
        or isinstance(duration_minutes, bool)
        or duration_minutes <= 0
        or duration_minutes % step
    ):
        raise InvalidDuration(
            f"Duration must be a positive multiple of {step} minutes, got {duration_minutes}",
            duration_minutes=duration_minutes,
        )


def compose_slots(
    free_blocks: Sequence[TimeBlock],
    duration_minutes: int,
    config: BookingConfig | None = None,
) -> list[Slot]:
    """All slots of duration_minutes that fit in the free blocks, sorted by start."""
    config = config or get_booking_config()
    validate_duration(duration_minutes, config)
    step = config.granularity_minutes

    slots = []
    for w_start, w_end in merge_adjacent(free_blocks):
        # first aligned start inside the window
        start = -(-w_start // step) * step
        while start + duration_minutes <= w_end:
            slots.append(Slot(start, start + duration_minutes, duration_minutes))
            start += step
    return slots


def compose_multiple(
    free_blocks: Sequence[TimeBlock],
    durations: Iterable[int],
    config: BookingConfig | None = None,
) -> tuple[dict[int, list[Slot]], dict[int, str]]:
    """
    Slots for several durations over the same free blocks.

    Returns (slots_by_duration, errors_by_duration); an invalid duration
    is reported in errors instead of failing the whole batch.
    """
    config = config or get_booking_config()
    merged = sorted(free_blocks)
    result: dict[int, list[Slot]] = {}
    errors: dict[int, str] = {}
    for duration in durations:
        try:
            result[duration] = compose_slots(merged, duration, config)
        except InvalidDuration as e:
            errors[duration] = e.message
    return result, errors
