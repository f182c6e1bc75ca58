import pytest

from classplanner.core.exceptions import InvalidIntervalError, InvalidTimeFormatError
from classplanner.services.time_interval import (
    WEEKDAY_NAMES,
    TimeInterval,
    format_time,
    normalize_time,
    overlaps,
    parse_time,
    weekday_name,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [("00:00", 0), ("09:00", 540), ("09:30", 570), ("12:05", 725), ("23:59", 1439), ("9:15", 555)],
)
def test_parse_time(text, expected):
    assert parse_time(text) == expected


@pytest.mark.parametrize(
    "text",
    ["", "9", "09:", ":30", "24:00", "12:60", "-1:00", "ab:cd", "09:00:00", "09-00", " 09:00", "09:5", "09:00\n", "\n09:00", None, 540],
)
def test_parse_time_rejects_malformed_input(text):
    with pytest.raises(InvalidTimeFormatError):
        parse_time(text)


def test_parse_time_does_not_default_to_midnight():
    # A missing time must never be mistaken for a real 00:00 session.
    with pytest.raises(InvalidTimeFormatError) as exc_info:
        parse_time(None)
    assert exc_info.value.status_code == 422


@pytest.mark.parametrize(("minutes", "expected"), [(0, "00:00"), (59, "00:59"), (60, "01:00"), (1439, "23:59")])
def test_format_time(minutes, expected):
    assert format_time(minutes) == expected


@pytest.mark.parametrize("minutes", [-1, -60, 1440, 10_000, True, 60.0])
def test_format_time_rejects_values_outside_one_day(minutes):
    with pytest.raises(InvalidTimeFormatError):
        format_time(minutes)


def test_every_clock_time_survives_parse_and_format():
    for hour in range(24):
        for minute in range(60):
            text = f"{hour:02d}:{minute:02d}"
            assert format_time(parse_time(text)) == text


def test_normalize_time_zero_pads():
    assert normalize_time("9:05") == "09:05"


def test_interval_from_strings():
    interval = TimeInterval.from_strings(1, "09:00", "10:30")
    assert interval.start_minutes == 540
    assert interval.end_minutes == 630
    assert interval.duration_minutes == 90
    assert interval.starts_at == "09:00"
    assert str(interval) == "Tuesday 09:00-10:30"


@pytest.mark.parametrize(("starts_at", "ends_at"), [("10:00", "10:00"), ("11:00", "10:00")])
def test_interval_rejects_empty_or_inverted_ranges(starts_at, ends_at):
    with pytest.raises(InvalidIntervalError, match="End time must be after start time"):
        TimeInterval.from_strings(0, starts_at, ends_at)


@pytest.mark.parametrize("weekday", [-1, 7, True, "1"])
def test_interval_rejects_invalid_weekday(weekday):
    with pytest.raises(InvalidIntervalError):
        TimeInterval(weekday=weekday, start_minutes=0, end_minutes=60)


def test_interval_rejects_out_of_day_offsets():
    with pytest.raises(InvalidIntervalError):
        TimeInterval(weekday=0, start_minutes=1380, end_minutes=1440)


def test_weekdays_start_on_monday():
    assert WEEKDAY_NAMES[0] == "Monday"
    assert weekday_name(6) == "Sunday"


def test_overlap_uses_half_open_ranges():
    first = TimeInterval.from_strings(1, "09:00", "10:00")
    touching = TimeInterval.from_strings(1, "10:00", "11:00")
    crossing = TimeInterval.from_strings(1, "09:59", "10:30")
    assert not overlaps(first, touching)
    assert overlaps(first, crossing)


def test_overlap_requires_same_weekday():
    monday = TimeInterval.from_strings(0, "09:00", "10:00")
    tuesday = TimeInterval.from_strings(1, "09:00", "10:00")
    assert not overlaps(monday, tuesday)


def test_overlap_is_symmetric():
    blocks = [
        TimeInterval.from_strings(weekday, start, end)
        for weekday in (0, 1)
        for start, end in [("08:00", "09:00"), ("08:30", "09:30"), ("09:00", "10:00"), ("07:00", "12:00")]
    ]
    for a in blocks:
        for b in blocks:
            assert overlaps(a, b) == overlaps(b, a)
            assert a.overlaps(b) == overlaps(a, b)


def test_interval_contains_itself():
    interval = TimeInterval.from_strings(3, "14:00", "14:15")
    assert overlaps(interval, interval)
