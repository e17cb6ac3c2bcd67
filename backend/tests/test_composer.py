import pytest

from courtbook.errors import InvalidDuration
from courtbook.services.slots.composer import compose_multiple, compose_slots
from courtbook.services.slots.intervals import Slot, TimeBlock


def _blocks(start, end, step=30):
    return [TimeBlock(t, t + step) for t in range(start, end, step)]


def test_monday_scenario_after_booking():
    free = _blocks(540, 600) + _blocks(690, 1080)

    slots = compose_slots(free, 60)
    starts = [s.start for s in slots]

    assert starts == [540] + list(range(690, 1021, 30))
    assert all(s.end - s.start == 60 for s in slots)
    assert all(s.start >= 690 or s.end <= 600 for s in slots)
    assert max(s.end for s in slots) == 1080


@pytest.mark.parametrize("length", [30, 60, 90, 180, 540])
@pytest.mark.parametrize("duration", [30, 60, 90, 120])
def test_slot_count_matches_window_length(length, duration):
    free = _blocks(600, 600 + length)
    expected = (length - duration) // 30 + 1 if length >= duration else 0
    assert len(compose_slots(free, duration)) == expected


def test_slots_never_bridge_a_gap():
    free = _blocks(540, 600) + _blocks(630, 690)
    assert compose_slots(free, 90) == []
    assert [s.start for s in compose_slots(free, 60)] == [540, 630]


def test_overlapping_candidates_are_offered():
    slots = compose_slots(_blocks(540, 660), 60)
    assert slots == [Slot(540, 600, 60), Slot(570, 630, 60), Slot(600, 660, 60)]


def test_unsorted_input_is_handled():
    free = list(reversed(_blocks(540, 660)))
    assert [s.start for s in compose_slots(free, 60)] == [540, 570, 600]


def test_unaligned_window_starts_on_next_boundary():
    # blocked range ending at 10:15 leaves a free piece starting off-grid
    free = [TimeBlock(615, 630)] + _blocks(630, 720)
    assert [s.start for s in compose_slots(free, 60)] == [630, 660]


@pytest.mark.parametrize("duration", [0, -30, 45, 61])
def test_invalid_duration(duration):
    with pytest.raises(InvalidDuration):
        compose_slots(_blocks(540, 600), duration)


def test_empty_input_gives_no_slots():
    assert compose_slots([], 60) == []


def test_compose_multiple_reports_bad_durations_separately():
    slots, errors = compose_multiple(_blocks(540, 660), [60, 45, 120])

    assert [s.start for s in slots[60]] == [540, 570, 600]
    assert [s.start for s in slots[120]] == [540]
    assert 45 not in slots
    assert set(errors) == {45}
