"""Expansion of a booking into its concrete occurrence windows."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterator

from projector_service.domain.models import TimeSlotRequest
from projector_service.domain.occupancy import Interval
from projector_service.domain.timeline import YearTimeline


def expand_recurrence(
    start: datetime,
    duration: timedelta,
    recur_interval: timedelta,
    recur_end: datetime,
    timeline: YearTimeline,
) -> Iterator[Interval]:
    """Yield ``(start_minute, end_minute)`` for every occurrence.

    Stops at the first occurrence starting at or after ``recur_end`` or
    leaving the timeline's year window. Occurrences that would fall into the
    next year are never produced.
    """
    if recur_interval <= timedelta(0):
        raise ValueError("recur_interval must be positive to expand a recurrence")

    occurrence_start = start
    while occurrence_start < recur_end:
        start_minute = timeline.to_minute(occurrence_start)
        end_minute = timeline.to_minute(occurrence_start + duration)
        if not timeline.contains(start_minute, end_minute):
            return
        yield start_minute, end_minute
        occurrence_start += recur_interval


def occurrence_windows(slot: TimeSlotRequest, timeline: YearTimeline) -> list[Interval]:
    """All minute windows a slot occupies: one, or the full recurrence."""
    if not slot.is_recurring:
        return [(timeline.to_minute(slot.start), timeline.to_minute(slot.end))]
    recur_end = slot.recur_end if slot.recur_end is not None else slot.start
    return list(
        expand_recurrence(
            slot.start,
            slot.duration,
            slot.recur_interval,
            recur_end,
            timeline,
        )
    )
