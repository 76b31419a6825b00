"""Domain models for projector time slot booking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


# Allocation/time-slot id carried by suggestions and not-yet-persisted slots.
UNSET_ID = -1


@dataclass(frozen=True)
class TimeSlotRequest:
    """Template of a single occurrence.

    A recurring booking is described only by its first occurrence; every
    later occurrence is derived from ``recur_interval`` and ``recur_end``.
    For non-recurring requests ``recur_end`` equals ``start``. ``team_id`` may
    only be None on an update, where it keeps the booking's team.
    """

    start: datetime
    duration: timedelta
    recur_interval: timedelta = timedelta(0)
    recur_end: datetime | None = None
    team_id: int | None = None

    @property
    def end(self) -> datetime:
        return self.start + self.duration

    @property
    def is_recurring(self) -> bool:
        return self.recur_interval != timedelta(0)


@dataclass(frozen=True)
class AllocatedTimeSlot(TimeSlotRequest):
    """A time slot bound to a projector.

    ``allocation_id == UNSET_ID`` marks a suggestion that was never persisted.
    """

    allocation_id: int = UNSET_ID
    projector_id: int = UNSET_ID
    time_slot_id: int = UNSET_ID

    @property
    def is_suggestion(self) -> bool:
        return self.allocation_id == UNSET_ID


@dataclass(frozen=True)
class OccupiedWindow:
    """One merged busy interval of a projector schedule."""

    start: datetime
    duration: timedelta

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)
