from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from projector_service.domain.models import TimeSlotRequest
from projector_service.domain.recurrence import expand_recurrence, occurrence_windows
from projector_service.domain.timeline import YearTimeline


TIMELINE = YearTimeline.for_year(2030, timezone.utc)


def _at(month: int, day: int, hour: int = 12, minute: int = 0, year: int = 2030) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def test_every_three_days_until_recurrence_end() -> None:
    windows = list(
        expand_recurrence(
            _at(7, 7),
            timedelta(minutes=60),
            timedelta(days=3),
            _at(8, 5, 14),
            TIMELINE,
        )
    )

    expected_days = [(7, 7), (7, 10), (7, 13), (7, 16), (7, 19), (7, 22), (7, 25), (7, 28), (7, 31), (8, 3)]
    assert windows == [
        (TIMELINE.to_minute(_at(month, day)), TIMELINE.to_minute(_at(month, day)) + 60)
        for month, day in expected_days
    ]


def test_recurrence_end_is_exclusive() -> None:
    windows = list(
        expand_recurrence(
            _at(3, 1),
            timedelta(minutes=30),
            timedelta(days=1),
            _at(3, 3),
            TIMELINE,
        )
    )
    assert len(windows) == 2


def test_start_at_or_after_end_yields_nothing() -> None:
    assert list(
        expand_recurrence(_at(5, 1), timedelta(minutes=30), timedelta(days=1), _at(5, 1), TIMELINE)
    ) == []
    assert list(
        expand_recurrence(_at(5, 2), timedelta(minutes=30), timedelta(days=1), _at(5, 1), TIMELINE)
    ) == []


def test_expansion_stops_at_year_boundary() -> None:
    windows = list(
        expand_recurrence(
            _at(12, 28),
            timedelta(minutes=60),
            timedelta(days=2),
            _at(2, 1, year=2031),
            TIMELINE,
        )
    )
    assert windows == [
        (TIMELINE.to_minute(_at(12, 28)), TIMELINE.to_minute(_at(12, 28)) + 60),
        (TIMELINE.to_minute(_at(12, 30)), TIMELINE.to_minute(_at(12, 30)) + 60),
    ]


def test_first_occurrence_before_year_start_yields_nothing() -> None:
    windows = list(
        expand_recurrence(
            _at(12, 20, year=2029),
            timedelta(minutes=60),
            timedelta(days=7),
            _at(3, 1),
            TIMELINE,
        )
    )
    assert windows == []


def test_non_positive_interval_is_rejected() -> None:
    with pytest.raises(ValueError):
        list(expand_recurrence(_at(5, 1), timedelta(minutes=30), timedelta(0), _at(6, 1), TIMELINE))


def test_occurrence_windows_of_single_slot() -> None:
    slot = TimeSlotRequest(start=_at(4, 2, 9), duration=timedelta(minutes=45), recur_end=_at(4, 2, 9))
    start = TIMELINE.to_minute(_at(4, 2, 9))
    assert occurrence_windows(slot, TIMELINE) == [(start, start + 45)]


def test_occurrence_windows_of_recurring_slot() -> None:
    slot = TimeSlotRequest(
        start=_at(4, 1, 9),
        duration=timedelta(minutes=15),
        recur_interval=timedelta(weeks=1),
        recur_end=_at(4, 30),
    )
    windows = occurrence_windows(slot, TIMELINE)
    assert len(windows) == 5
    assert all(end - start == 15 for start, end in windows)
    assert windows[1][0] - windows[0][0] == 7 * 1440
