"""Minute-of-year timeline used by the occupancy indexes.

Every booking is mapped onto an integer axis of one-minute points anchored at
midnight, January 1st of the current year in the local timezone. The axis is
bounded to ``[0, MINUTES_PER_YEAR)``; the mapper itself does not reject values
outside that range, callers decide what to do with them.

Known limits of this representation:
  - the anchor is recomputed whenever a timeline is built (at startup), so
    a process restarted after New Year maps minutes onto the new year and
    bookings of the previous year drop out of the window;
  - ``MINUTES_PER_YEAR`` ignores leap days, so the last day of a leap year
    falls outside the window.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Optional


MINUTES_PER_YEAR = 525600
_ONE_MINUTE = timedelta(minutes=1)


@dataclass(frozen=True)
class YearTimeline:
    anchor: datetime

    @classmethod
    def for_year(cls, year: int, tz: Optional[tzinfo] = None) -> YearTimeline:
        if tz is None:
            # Naive midnight interpreted in the local timezone.
            return cls(anchor=datetime(year, 1, 1).astimezone())
        return cls(anchor=datetime(year, 1, 1, tzinfo=tz))

    @classmethod
    def current(cls, tz: Optional[tzinfo] = None) -> YearTimeline:
        now = datetime.now(tz) if tz is not None else datetime.now()
        return cls.for_year(now.year, tz)

    @property
    def year_start(self) -> datetime:
        return self.anchor

    @property
    def year_end(self) -> datetime:
        return self.anchor + timedelta(minutes=MINUTES_PER_YEAR)

    def to_minute(self, timestamp: datetime) -> int:
        """Whole minutes between the anchor and ``timestamp`` (truncated)."""
        return int((timestamp - self.anchor) / _ONE_MINUTE)

    def from_minute(self, minute: int) -> datetime:
        return self.anchor + timedelta(minutes=minute)

    def contains(self, start_minute: int, end_minute: int) -> bool:
        return 0 <= start_minute and end_minute <= MINUTES_PER_YEAR
