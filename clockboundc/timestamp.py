"""Nanosecond-precision instants.

datetime only carries microseconds, and clockboundd reports instants with
nanosecond resolution up to 2554-07-21T23:34:33.709551615Z. Timestamp keeps
the whole-second and nanosecond parts as plain ints so nothing is lost
between the wire and the caller.
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Union

NANOS_PER_SECOND = 1_000_000_000

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


@dataclass(frozen=True, order=True)
class Timestamp:
    """An instant as whole seconds plus nanoseconds since the Unix epoch."""

    seconds: int
    nanoseconds: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanoseconds < NANOS_PER_SECOND:
            raise ValueError(
                f"nanoseconds out of range [0, {NANOS_PER_SECOND}): {self.nanoseconds}"
            )

    @classmethod
    def from_unix_nanos(cls, nanos: int) -> "Timestamp":
        seconds, fraction = divmod(nanos, NANOS_PER_SECOND)
        return cls(seconds, fraction)

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        """
        Convert a datetime to a Timestamp.

        Naive datetimes are interpreted as UTC.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - EPOCH
        seconds = delta.days * 86400 + delta.seconds
        return cls(seconds, delta.microseconds * 1000)

    @classmethod
    def now(cls) -> "Timestamp":
        """Current system time (not bounded; use ClockBoundClient.now for that)."""
        return cls.from_unix_nanos(time.time_ns())

    @classmethod
    def parse(cls, text: str) -> "Timestamp":
        """
        Parse an RFC 3339 timestamp or a decimal count of nanoseconds.

        Args:
            text: e.g. "2554-07-21T23:34:33.709551615Z", "2020-01-01T09:00:00+09:00"
                or "1637318405123456789"

        Returns:
            Parsed Timestamp

        Raises:
            ValueError: If text matches neither form
        """
        text = text.strip()
        if text.isdigit():
            return cls.from_unix_nanos(int(text))

        match = _RFC3339.match(text)
        if match is None:
            raise ValueError(f"Invalid timestamp: {text!r}")

        year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
        fraction, zulu, sign, off_hours, off_minutes = match.groups()[6:]

        if zulu:
            tz = timezone.utc
        else:
            offset = timedelta(hours=int(off_hours), minutes=int(off_minutes))
            tz = timezone(-offset if sign == "-" else offset)

        whole = datetime(year, month, day, hour, minute, second, tzinfo=tz)
        nanos = int(fraction.ljust(9, "0")) if fraction else 0
        return cls(cls.from_datetime(whole).seconds, nanos)

    def to_unix_nanos(self) -> int:
        return self.seconds * NANOS_PER_SECOND + self.nanoseconds

    def to_datetime(self) -> datetime:
        """
        Aware UTC datetime; sub-microsecond digits are truncated.

        Raises:
            ValueError: If the instant is outside years 1 to 9999
        """
        try:
            return EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanoseconds // 1000)
        except OverflowError:
            raise ValueError(
                f"Instant outside datetime range: {self.seconds}s {self.nanoseconds}ns"
            ) from None

    def isoformat(self) -> str:
        """RFC 3339 in UTC with trailing zeros of the fraction removed."""
        whole = Timestamp(self.seconds).to_datetime()
        text = f"{whole.year:04d}-" + whole.strftime("%m-%dT%H:%M:%S")
        if self.nanoseconds:
            text += "." + f"{self.nanoseconds:09d}".rstrip("0")
        return text + "Z"

    def __str__(self) -> str:
        return self.isoformat()

    def __sub__(self, other: "Timestamp") -> int:
        """Difference in nanoseconds."""
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.to_unix_nanos() - other.to_unix_nanos()


TimeLike = Union[Timestamp, datetime]


def as_timestamp(value: TimeLike) -> Timestamp:
    if isinstance(value, Timestamp):
        return value
    if isinstance(value, datetime):
        return Timestamp.from_datetime(value)
    raise TypeError(f"Expected Timestamp or datetime, got {type(value).__name__}")
