"""Weekly time blocks.

A block is a half-open range ``[start, end)`` of minutes since midnight on one
weekday. Weekdays are numbered Monday = 0 through Sunday = 6 across the whole
code base; ``WEEKDAY_NAMES`` is the single source for that order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from classplanner.core.exceptions import InvalidIntervalError, InvalidTimeFormatError

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

CLOCK_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})")


def parse_time(value: str) -> int:
    """Convert ``"HH:MM"`` into minutes since midnight.

    Raises ``InvalidTimeFormatError`` for anything that is not two
    colon-separated numeric groups with hour in 0..23 and minute in 0..59.
    """
    if not isinstance(value, str):
        raise InvalidTimeFormatError(value)
    match = CLOCK_PATTERN.fullmatch(value)
    if match is None:
        raise InvalidTimeFormatError(value)
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormatError(value)
    return hours * MINUTES_PER_HOUR + minutes


def format_time(value: int) -> str:
    """Convert minutes since midnight into zero-padded ``"HH:MM"``.

    Only ``0 <= value < 1440`` is accepted; negative offsets and values past
    the end of the day raise ``InvalidTimeFormatError`` instead of wrapping.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTimeFormatError(value)
    if value < 0 or value >= MINUTES_PER_DAY:
        raise InvalidTimeFormatError(value)
    hours, minutes = divmod(value, MINUTES_PER_HOUR)
    return f"{hours:02d}:{minutes:02d}"


def normalize_time(value: str) -> str:
    return format_time(parse_time(value))


def validate_weekday(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 6:
        raise InvalidIntervalError(
            f"Weekday must be an integer between 0 (Monday) and 6 (Sunday), got {value!r}",
            details={"weekday": value},
        )
    return value


def weekday_name(weekday: int) -> str:
    return WEEKDAY_NAMES[validate_weekday(weekday)]


@dataclass(frozen=True)
class TimeInterval:
    weekday: int
    start_minutes: int
    end_minutes: int

    def __post_init__(self) -> None:
        validate_weekday(self.weekday)
        for value in (self.start_minutes, self.end_minutes):
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < MINUTES_PER_DAY:
                raise InvalidIntervalError(
                    f"Minute offsets must be within [0, {MINUTES_PER_DAY}), got {value!r}",
                    details={"start_minutes": self.start_minutes, "end_minutes": self.end_minutes},
                )
        if self.start_minutes >= self.end_minutes:
            raise InvalidIntervalError(
                "End time must be after start time",
                details={"start_minutes": self.start_minutes, "end_minutes": self.end_minutes},
            )

    @classmethod
    def from_strings(cls, weekday: int, starts_at: str, ends_at: str) -> "TimeInterval":
        return cls(weekday=weekday, start_minutes=parse_time(starts_at), end_minutes=parse_time(ends_at))

    @property
    def starts_at(self) -> str:
        return format_time(self.start_minutes)

    @property
    def ends_at(self) -> str:
        return format_time(self.end_minutes)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"{WEEKDAY_NAMES[self.weekday]} {self.starts_at}-{self.ends_at}"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    # Half-open: a block ending at 10:00 does not touch one starting at 10:00.
    return a.weekday == b.weekday and a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes
