"""Tests for the per-projector occupancy index."""

from __future__ import annotations

import random

from projector_service.domain.occupancy import OccupancyIndex


def _runs(minutes: set[int]) -> list[tuple[int, int]]:
    """Collapse a set of busy minutes into half-open runs."""
    runs: list[tuple[int, int]] = []
    for minute in sorted(minutes):
        if runs and runs[-1][1] == minute:
            runs[-1] = (runs[-1][0], minute + 1)
        else:
            runs.append((minute, minute + 1))
    return runs


def test_empty_index_never_intersects() -> None:
    index = OccupancyIndex()
    assert index.is_empty
    assert not index.intersects(0, 525600)


def test_intersects_uses_half_open_windows() -> None:
    index = OccupancyIndex()
    index.reserve(600, 720)

    assert index.intersects(600, 720)
    assert index.intersects(650, 660)
    assert index.intersects(500, 601)
    assert index.intersects(719, 800)
    # Touching windows do not conflict.
    assert not index.intersects(720, 780)
    assert not index.intersects(540, 600)


def test_empty_window_never_intersects() -> None:
    index = OccupancyIndex()
    index.reserve(600, 720)
    assert not index.intersects(650, 650)


def test_disjoint_bookings_are_both_detected() -> None:
    index = OccupancyIndex()
    index.reserve(100, 200)
    index.reserve(300, 400)

    assert index.intersects(150, 160)
    assert index.intersects(350, 360)
    assert index.intersects(199, 301)
    assert not index.intersects(200, 300)
    assert not index.intersects(0, 100)
    assert not index.intersects(400, 500)


def test_reserve_coalesces_adjacent_and_overlapping_intervals() -> None:
    index = OccupancyIndex()
    index.reserve(10, 20)
    index.reserve(20, 30)
    assert index.snapshot() == [(10, 30)]

    index.reserve(5, 12)
    assert index.snapshot() == [(5, 30)]

    index.reserve(40, 50)
    assert index.snapshot() == [(5, 30), (40, 50)]

    index.reserve(25, 45)
    assert index.snapshot() == [(5, 50)]
    assert len(index) == 1


def test_reserve_inserts_in_order() -> None:
    index = OccupancyIndex()
    index.reserve(500, 600)
    index.reserve(100, 200)
    index.reserve(300, 400)
    assert index.snapshot() == [(100, 200), (300, 400), (500, 600)]


def test_release_splits_intervals() -> None:
    index = OccupancyIndex()
    index.reserve(0, 100)

    index.release(20, 30)
    assert index.snapshot() == [(0, 20), (30, 100)]

    index.release(90, 200)
    assert index.snapshot() == [(0, 20), (30, 90)]

    index.release(-10, 5)
    assert index.snapshot() == [(5, 20), (30, 90)]


def test_release_of_missing_window_is_a_no_op() -> None:
    index = OccupancyIndex()
    index.reserve(100, 200)
    index.release(300, 400)
    index.release(200, 300)
    assert index.snapshot() == [(100, 200)]


def test_release_spanning_several_intervals() -> None:
    index = OccupancyIndex()
    index.reserve(0, 10)
    index.reserve(20, 30)
    index.reserve(40, 50)

    index.release(5, 45)
    assert index.snapshot() == [(0, 5), (45, 50)]


def test_reserve_then_release_restores_free_window() -> None:
    index = OccupancyIndex()
    index.reserve(0, 60)
    index.reserve(200, 260)

    index.reserve(100, 160)
    assert index.intersects(100, 160)
    index.release(100, 160)

    assert not index.intersects(100, 160)
    assert index.snapshot() == [(0, 60), (200, 260)]


def test_index_matches_minute_set_model() -> None:
    rng = random.Random(7)
    index = OccupancyIndex()
    busy: set[int] = set()

    for _ in range(500):
        start = rng.randrange(0, 300)
        end = start + rng.randrange(0, 40)
        if rng.random() < 0.6:
            index.reserve(start, end)
            busy.update(range(start, end))
        else:
            index.release(start, end)
            busy.difference_update(range(start, end))

        query_start = rng.randrange(0, 320)
        query_end = query_start + rng.randrange(0, 30)
        expected = any(minute in busy for minute in range(query_start, query_end))
        assert index.intersects(query_start, query_end) == expected
        assert index.snapshot() == _runs(busy)


def test_clear_empties_index() -> None:
    index = OccupancyIndex()
    index.reserve(0, 10)
    index.clear()
    assert index.is_empty
    assert index.snapshot() == []
