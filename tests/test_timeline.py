from __future__ import annotations

from datetime import datetime, timedelta, timezone

from projector_service.domain.timeline import MINUTES_PER_YEAR, YearTimeline


def test_anchor_maps_to_minute_zero() -> None:
    timeline = YearTimeline.for_year(2030, timezone.utc)
    assert timeline.year_start == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert timeline.to_minute(timeline.year_start) == 0


def test_to_minute_and_from_minute_are_consistent() -> None:
    timeline = YearTimeline.for_year(2017, timezone.utc)
    july_third = datetime(2017, 7, 3, 13, 0, tzinfo=timezone.utc)

    minute = timeline.to_minute(july_third)

    assert minute == 183 * 1440 + 13 * 60
    assert timeline.from_minute(minute) == july_third


def test_to_minute_truncates_partial_minutes() -> None:
    timeline = YearTimeline.for_year(2030, timezone.utc)
    assert timeline.to_minute(timeline.year_start + timedelta(seconds=30)) == 0
    assert timeline.to_minute(timeline.year_start + timedelta(seconds=90)) == 1
    assert timeline.to_minute(timeline.year_start - timedelta(seconds=30)) == 0


def test_to_minute_handles_other_offsets() -> None:
    timeline = YearTimeline.for_year(2030, timezone.utc)
    plus_two = timezone(timedelta(hours=2))
    same_instant = datetime(2030, 1, 1, 3, 0, tzinfo=plus_two)
    assert timeline.to_minute(same_instant) == 60


def test_year_window_is_fixed_number_of_minutes() -> None:
    timeline = YearTimeline.for_year(2030, timezone.utc)
    assert timeline.year_end - timeline.year_start == timedelta(minutes=MINUTES_PER_YEAR)
    assert timeline.to_minute(timeline.year_end) == MINUTES_PER_YEAR


def test_leap_year_window_misses_last_day() -> None:
    timeline = YearTimeline.for_year(2028, timezone.utc)
    assert timeline.year_end == datetime(2028, 12, 31, tzinfo=timezone.utc)


def test_contains_bounds_the_year() -> None:
    timeline = YearTimeline.for_year(2030, timezone.utc)
    assert timeline.contains(0, 60)
    assert timeline.contains(MINUTES_PER_YEAR - 60, MINUTES_PER_YEAR)
    assert not timeline.contains(-1, 60)
    assert not timeline.contains(MINUTES_PER_YEAR - 30, MINUTES_PER_YEAR + 30)


def test_local_timezone_anchor_is_aware() -> None:
    timeline = YearTimeline.for_year(2030)
    assert timeline.anchor.tzinfo is not None
    assert timeline.anchor.month == 1 and timeline.anchor.day == 1
    assert timeline.anchor.hour == 0


def test_current_timeline_contains_now() -> None:
    timeline = YearTimeline.current(timezone.utc)
    now = datetime.now(timezone.utc)
    assert timeline.year_start <= now
    assert timeline.anchor.year == now.year
