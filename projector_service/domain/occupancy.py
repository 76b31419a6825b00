"""Per-projector occupancy index.

Bookings are half-open minute intervals ``[start, end)`` on the year timeline.
The index keeps them as two parallel sorted lists of interval bounds so that
overlap checks, inserts and removals are a couple of binary searches plus a
slice assignment.

Invariants:
    - intervals are disjoint and sorted by start
    - no two stored intervals touch: adjacent inserts are coalesced
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right


Interval = tuple[int, int]


class OccupancyIndex:
    """Merged set of busy minutes for one projector."""

    def __init__(self) -> None:
        self._starts: list[int] = []
        self._ends: list[int] = []

    def __len__(self) -> int:
        return len(self._starts)

    @property
    def is_empty(self) -> bool:
        return not self._starts

    def intersects(self, start: int, end: int) -> bool:
        """True if any stored interval shares a minute with ``[start, end)``."""
        if start >= end or not self._starts:
            return False
        # Last interval starting at or before `start` may still be running.
        position = bisect_right(self._starts, start) - 1
        if position >= 0 and self._ends[position] > start:
            return True
        following = position + 1
        return following < len(self._starts) and self._starts[following] < end

    def reserve(self, start: int, end: int) -> None:
        """Insert ``[start, end)``; the caller has already checked for overlap."""
        if start >= end:
            return
        # Every interval touching or overlapping the new one is folded into it.
        low = bisect_left(self._ends, start)
        high = bisect_right(self._starts, end)
        if low < high:
            start = min(start, self._starts[low])
            end = max(end, self._ends[high - 1])
        self._starts[low:high] = [start]
        self._ends[low:high] = [end]

    def release(self, start: int, end: int) -> None:
        """Remove ``[start, end)``, keeping whatever lies outside of it."""
        if start >= end:
            return
        low = bisect_right(self._ends, start)
        high = bisect_left(self._starts, end)
        if low >= high:
            return

        kept_starts: list[int] = []
        kept_ends: list[int] = []
        if self._starts[low] < start:
            kept_starts.append(self._starts[low])
            kept_ends.append(start)
        if self._ends[high - 1] > end:
            kept_starts.append(end)
            kept_ends.append(self._ends[high - 1])

        self._starts[low:high] = kept_starts
        self._ends[low:high] = kept_ends

    def snapshot(self) -> list[Interval]:
        return list(zip(self._starts, self._ends))

    def clear(self) -> None:
        self._starts.clear()
        self._ends.clear()
