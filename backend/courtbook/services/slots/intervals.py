# backend/courtbook/services/slots/intervals.py
"""
Half-open minute ranges [start, end) and the set operations on them.

Pure functions, no DB access. Shared by the read path (exclusions)
and the write path (reservations) so both agree on what "overlap" means.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence


@dataclass(frozen=True, order=True)
class TimeBlock:
    """Contiguous [start, end) of bookable time, with optional per-hour price."""
    start: int
    end: int
    price_override: Optional[float] = None

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, order=True)
class Slot:
    """Bookable candidate of a requested duration."""
    start: int
    end: int
    duration_minutes: int


Range = tuple[int, int]


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Two half-open ranges overlap iff a.start < b.end and b.start < a.end."""
    return a_start < b_end and b_start < a_end


def find_overlap(start: int, end: int, ranges: Iterable) -> Optional[object]:
    """
    Return the first item of ranges overlapping [start, end), or None.

    Items may be (start, end) tuples or objects with start_time/end_time.
    """
    for item in ranges:
        item_start, item_end = _bounds(item)
        if overlaps(start, end, item_start, item_end):
            return item
    return None


def merge_ranges(ranges: Iterable[Range]) -> list[Range]:
    """Union of ranges as a sorted list of disjoint, non-adjacent ranges."""
    result: list[list[int]] = []
    for start, end in sorted(ranges):
        if start >= end:
            continue
        if result and start <= result[-1][1]:
            result[-1][1] = max(result[-1][1], end)
        else:
            result.append([start, end])
    return [(start, end) for start, end in result]


def subtract_ranges(block: TimeBlock, excluded: Sequence[Range]) -> list[TimeBlock]:
    """
    Remove every excluded range from block.

    Yields 0, 1 or 2+ pieces; each keeps the block's price override.
    Result does not depend on the order of excluded.
    """
    pieces = []
    cursor = block.start
    for ex_start, ex_end in merge_ranges(excluded):
        if ex_end <= cursor:
            continue
        if ex_start >= block.end:
            break
        if ex_start > cursor:
            pieces.append(TimeBlock(cursor, ex_start, block.price_override))
        cursor = max(cursor, ex_end)
        if cursor >= block.end:
            break
    if cursor < block.end:
        pieces.append(TimeBlock(cursor, block.end, block.price_override))
    return pieces


def merge_adjacent(blocks: Sequence[TimeBlock]) -> list[Range]:
    """Join blocks where one ends exactly where the next starts."""
    windows: list[list[int]] = []
    for block in sorted(blocks):
        if windows and block.start <= windows[-1][1]:
            windows[-1][1] = max(windows[-1][1], block.end)
        else:
            windows.append([block.start, block.end])
    return [(start, end) for start, end in windows]


def covers(blocks: Sequence[TimeBlock], start: int, end: int) -> bool:
    """True when the union of blocks contains all of [start, end)."""
    for w_start, w_end in merge_adjacent(blocks):
        if w_start <= start and end <= w_end:
            return True
    return False


def _bounds(item) -> Range:
    if isinstance(item, tuple):
        return item[0], item[1]
    if isinstance(item, TimeBlock):
        return item.start, item.end
    return item.start_time, item.end_time
