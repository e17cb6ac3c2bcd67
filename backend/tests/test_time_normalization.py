import pytest

from courtbook.errors import InvalidTimeFormat, OutOfRange
from courtbook.services.slots.config import (
    BookingConfig,
    is_aligned,
    minutes_to_time_str,
    resolve_minutes,
    time_str_to_minutes,
)


def test_parses_hh_mm():
    assert time_str_to_minutes("00:00") == 0
    assert time_str_to_minutes("09:30") == 570
    assert time_str_to_minutes("23:59") == 1439


def test_formats_minutes():
    assert minutes_to_time_str(0) == "00:00"
    assert minutes_to_time_str(690) == "11:30"
    assert minutes_to_time_str(1439) == "23:59"


def test_round_trip_every_minute():
    for minutes in range(0, 1440):
        assert time_str_to_minutes(minutes_to_time_str(minutes)) == minutes


@pytest.mark.parametrize("value", ["9:30", "09:3", "24:00", "12:60", "ab:cd", "", "09:30:00", None])
def test_rejects_malformed_time(value):
    with pytest.raises(InvalidTimeFormat):
        time_str_to_minutes(value)


@pytest.mark.parametrize("value", [-1, 1440, 5000])
def test_rejects_out_of_range_minutes(value):
    with pytest.raises(OutOfRange):
        minutes_to_time_str(value)


def test_resolve_prefers_formatted():
    assert resolve_minutes(600, "11:00") == 660
    assert resolve_minutes(600, None) == 600
    assert resolve_minutes(None, None) is None
    with pytest.raises(OutOfRange):
        resolve_minutes(1500, None)


def test_alignment():
    assert is_aligned(540)
    assert is_aligned(0)
    assert not is_aligned(545)
    assert not BookingConfig().is_aligned(15)


def test_config_rejects_granularity_not_dividing_day():
    with pytest.raises(ValueError):
        BookingConfig(granularity_minutes=7)
