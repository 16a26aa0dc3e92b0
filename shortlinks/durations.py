"""Parsing of human written time spans such as ``"2w"`` or ``"1.5 months"``.

Grammar (surrounding whitespace is ignored)::

    <number> [spaces] <unit>

    number  := -?\\d+(\\.\\d+)?
    unit    := milliseconds | seconds | minutes | hours | days | weeks | months | years
             | millisecond  | second  | minute  | hour  | day  | week  | month  | year
             | ms | s | m | h | d | D | w | M | y

Units are case-sensitive: ``m`` is minutes and ``M`` is months.

Calendar model used for the decomposition::

    1 day   = 24 hours
    1 week  = 7 days
    1 year  = 365 days
    1 month = 1 year / 12   (30.41666... days)

so ``"1.5 months"`` decomposes into 1 month, 15 days and 5 hours.

Example::

    >>> d = parse_duration(" 1.5  months ")
    >>> (d.months, d.days, d.hours, d.weeks)
    (1, 15, 5, 6)
    >>> parse_duration("soon") is None
    True
"""

import datetime
import math
import re
from dataclasses import dataclass

__all__ = ["Duration", "UNITS", "parse_duration"]

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR
MS_PER_WEEK = 7 * MS_PER_DAY
MS_PER_YEAR = 365 * MS_PER_DAY
MS_PER_MONTH = MS_PER_YEAR / 12

UNITS: dict[str, float] = {
    "milliseconds": 1,
    "seconds": MS_PER_SECOND,
    "minutes": MS_PER_MINUTE,
    "hours": MS_PER_HOUR,
    "days": MS_PER_DAY,
    "weeks": MS_PER_WEEK,
    "months": MS_PER_MONTH,
    "years": MS_PER_YEAR,
    "millisecond": 1,
    "second": MS_PER_SECOND,
    "minute": MS_PER_MINUTE,
    "hour": MS_PER_HOUR,
    "day": MS_PER_DAY,
    "week": MS_PER_WEEK,
    "month": MS_PER_MONTH,
    "year": MS_PER_YEAR,
    "ms": 1,
    "s": MS_PER_SECOND,
    "m": MS_PER_MINUTE,
    "h": MS_PER_HOUR,
    "d": MS_PER_DAY,
    "D": MS_PER_DAY,
    "w": MS_PER_WEEK,
    "M": MS_PER_MONTH,
    "y": MS_PER_YEAR,
}

# Longest alternatives first so "ms" is not read as "m" followed by junk.
_UNIT_PATTERN = "|".join(sorted(UNITS, key=len, reverse=True))
_DURATION_RE = re.compile(rf"^(-?\d+(?:\.\d+)?) *({_UNIT_PATTERN})$")


def _split(value: float, size: float) -> tuple[int, float]:
    whole = math.trunc(value / size)
    return whole, math.fmod(value, size)


@dataclass(frozen=True)
class Duration:
    """A span of time measured in milliseconds."""

    total_ms: float

    @property
    def years(self) -> int:
        return _split(self.total_ms, MS_PER_YEAR)[0]

    @property
    def months(self) -> int:
        rest = math.fmod(self.total_ms, MS_PER_YEAR)
        return _split(rest, MS_PER_MONTH)[0]

    @property
    def weeks(self) -> int:
        return _split(self.total_ms, MS_PER_WEEK)[0]

    @property
    def days(self) -> int:
        return _split(self._below_month, MS_PER_DAY)[0]

    @property
    def hours(self) -> int:
        return _split(math.fmod(self._below_month, MS_PER_DAY), MS_PER_HOUR)[0]

    @property
    def minutes(self) -> int:
        return _split(math.fmod(self._below_month, MS_PER_HOUR), MS_PER_MINUTE)[0]

    @property
    def seconds(self) -> int:
        return _split(math.fmod(self._below_month, MS_PER_MINUTE), MS_PER_SECOND)[0]

    @property
    def milliseconds(self) -> int:
        return math.trunc(math.fmod(self._below_month, MS_PER_SECOND))

    @property
    def _below_month(self) -> float:
        return math.fmod(math.fmod(self.total_ms, MS_PER_YEAR), MS_PER_MONTH)

    def as_timedelta(self) -> datetime.timedelta:
        return datetime.timedelta(milliseconds=self.total_ms)

    def components(self) -> dict[str, int]:
        return {
            "milliseconds": self.milliseconds,
            "seconds": self.seconds,
            "minutes": self.minutes,
            "hours": self.hours,
            "days": self.days,
            "weeks": self.weeks,
            "months": self.months,
            "years": self.years,
        }


def parse_duration(value: str | None) -> Duration | None:
    """Parse ``value`` or return None when it is absent or not a duration."""
    if value is None:
        return None

    match = _DURATION_RE.match(value.strip())
    if match is None:
        return None

    number = float(match.group(1))
    if not math.isfinite(number):
        return None
    return Duration(number * UNITS[match.group(2)])
