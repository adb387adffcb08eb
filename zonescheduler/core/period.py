"""Recurring weekly time windows that schedule entries are keyed by."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Final

logger = logging.getLogger(__name__)

MS_PER_MINUTE: Final[int] = 60 * 1000
MS_PER_HOUR: Final[int] = 60 * MS_PER_MINUTE
MS_PER_DAY: Final[int] = 24 * MS_PER_HOUR

MIN_DURATION_MS: Final[int] = MS_PER_MINUTE

DAY_LETTERS: Final[str] = "MTWTFSS"
ALL_DAYS: Final[int] = 0x7F
CLEARED_DAY_CHARS: Final[str] = " ."

# Tried in order, first success wins. Keep the specific formats first:
# a looser format must never get a chance to claim input meant for a stricter one.
TIME_FORMATS: Final[tuple[str, ...]] = (
    "%Y-%m-%dT%H:%M",
    "%y-%m-%dT%H:%M",
    "%I:%M %p",
    "%I:%M%p",
    "%H:%M",
    "%H%M",
)

# 12-hour forms are matched here rather than by strptime, whose %p follows the
# locale and whose %I rejects hour 0
_TWELVE_HOUR = re.compile(r"(\d{1,2}):(\d{2})( ?)([AaPp][Mm])")


def parse_time(value: str) -> int:
    """Parse a human readable time of day into an offset from midnight, in ms.

    Only hours and minutes are kept; a date part, if present, is ignored.
    """

    text = value.strip() if isinstance(value, str) else ""
    for fmt in TIME_FORMATS:
        try:
            hour, minute = _parse_with(text, fmt)
        except ValueError:
            logger.debug("Failed to parse '%s' as '%s'", value, fmt)
            continue
        return hour * MS_PER_HOUR + minute * MS_PER_MINUTE

    tried = ", ".join(f"'{fmt}'" for fmt in TIME_FORMATS)
    raise ValueError(f"Tried all available formats ({tried}) to parse '{value}' and failed")


def _parse_with(text: str, fmt: str) -> tuple[int, int]:
    if "%p" not in fmt:
        parsed = datetime.strptime(text, fmt)
        return parsed.hour, parsed.minute

    match = _TWELVE_HOUR.fullmatch(text)
    if match is None or bool(match.group(3)) != (" " in fmt):
        raise ValueError(f"'{text}' doesn't match '{fmt}'")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 12 or minute > 59:
        raise ValueError(f"'{text}' is out of range for '{fmt}'")
    # 0 and 12 both start the half day
    hour %= 12
    if match.group(4).upper() == "PM":
        hour += 12
    return hour, minute


def parse_days(pattern: str) -> int:
    """Convert a 7 character pattern, Monday first, into a day bitmask.

    A space or a dot clears the day, any other character sets it, so the
    output of :attr:`Period.days_pattern` parses back to the same mask.
    """

    if not isinstance(pattern, str) or len(pattern) != 7:
        raise ValueError(
            f"Days pattern must be exactly 7 characters, Monday first, got {pattern!r}"
        )
    mask = 0
    for offset, char in enumerate(pattern):
        if char not in CLEARED_DAY_CHARS:
            mask |= 1 << offset
    return mask


def format_offset(offset: int) -> str:
    hours, remainder = divmod(offset, MS_PER_HOUR)
    return f"{hours:02d}:{remainder // MS_PER_MINUTE:02d}"


def time_of_day_offset(timestamp: datetime | int | float) -> int:
    """Local wall clock distance from midnight, truncated to the minute.

    Naive and aware datetimes both contribute their own wall clock. Numbers are
    epoch milliseconds and are converted to local time first.
    """

    moment = _as_datetime(timestamp)
    return moment.hour * MS_PER_HOUR + moment.minute * MS_PER_MINUTE


def _as_datetime(timestamp: datetime | int | float) -> datetime:
    if isinstance(timestamp, datetime):
        return timestamp
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise TypeError(f"Expected datetime or epoch milliseconds, got {type(timestamp).__name__}")
    return datetime.fromtimestamp(timestamp / 1000)


@dataclass(frozen=True, slots=True)
class Period:
    """A named daily time window, eligible on some days of the week.

    ``start`` and ``end`` are offsets from local midnight in milliseconds.
    ``days`` is a bitmask with bit 0 for Monday through bit 6 for Sunday.

    Periods order by ascending ``start``. When two periods start together the
    one that ends later sorts first, so a narrower window placed over a broader
    one always sorts after it and wins when both match.
    """

    name: str
    start: int
    end: int
    days: int = ALL_DAYS
    _sort_key: tuple[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("name can't be null or empty")
        for label, offset in (("Start", self.start), ("End", self.end)):
            if offset < 0:
                raise ValueError(f"{label} time given ({offset}) is negative")
            if offset > MS_PER_DAY:
                raise ValueError(f"{label} time given ({offset}) is beyond 24 hours")
        if self.end - self.start < MIN_DURATION_MS:
            raise ValueError(
                f"Duration given ({self.end - self.start}) is less than a minute"
            )
        if not 0 <= self.days <= 0xFF:
            raise ValueError(f"Days mask {self.days:#x} doesn't fit in 8 bits")
        object.__setattr__(self, "_sort_key", (self.start, -self.end))

    @classmethod
    def parse(cls, name: str, start_time: str, end_time: str, days: str = DAY_LETTERS) -> Period:
        """Create a period from human readable times and a day pattern.

        ``Period.parse("Day", "9:00 AM", "17:00", "MTWTF  ")``
        """

        if not isinstance(name, str) or not name:
            raise ValueError("name can't be null or empty")
        return cls(name, parse_time(start_time), parse_time(end_time), parse_days(days))

    def includes(self, when: datetime | int | float) -> bool:
        """Inclusive check against both ends of the window.

        A number is a time-of-day offset in milliseconds. A datetime
        contributes its wall clock time, truncated to the minute. For epoch
        timestamps use :meth:`includes_timestamp`.
        """

        if isinstance(when, datetime):
            offset = time_of_day_offset(when)
        elif isinstance(when, (int, float)) and not isinstance(when, bool):
            offset = when
        else:
            raise TypeError(f"Expected offset or datetime, got {type(when).__name__}")
        return self.start <= offset <= self.end

    def includes_timestamp(self, timestamp: datetime | int | float) -> bool:
        """Like :meth:`includes`, numbers being epoch milliseconds."""
        return self.includes(time_of_day_offset(timestamp))

    def includes_day(self, timestamp: datetime | int | float) -> bool:
        weekday = _as_datetime(timestamp).weekday()
        return bool(self.days & (1 << weekday))

    def matches(self, timestamp: datetime | int | float) -> bool:
        return self.includes_day(timestamp) and self.includes_timestamp(timestamp)

    def compare(self, other: Period) -> int:
        """Negative, zero or positive as this period sorts before, with or after ``other``."""

        if self._sort_key < other._sort_key:
            return -1
        if self._sort_key > other._sort_key:
            return 1
        return 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self._sort_key < other._sort_key

    @property
    def sort_key(self) -> tuple[int, int]:
        return self._sort_key

    @property
    def days_pattern(self) -> str:
        return "".join(
            letter if self.days & (1 << offset) else "."
            for offset, letter in enumerate(DAY_LETTERS)
        )

    def __str__(self) -> str:
        return (
            f"{self.name} ({format_offset(self.start)} to {format_offset(self.end)}"
            f" on {self.days_pattern})"
        )


__all__ = [
    "ALL_DAYS",
    "MS_PER_DAY",
    "Period",
    "TIME_FORMATS",
    "format_offset",
    "parse_days",
    "parse_time",
    "time_of_day_offset",
]
