"""Dictionary-backed store with the same contract as the SQLite repository."""

from __future__ import annotations

from datetime import datetime
from itertools import count
from typing import List, Optional

from projector_service.domain.models import AllocatedTimeSlot, TimeSlotRequest


class InMemoryRepository:
    """Non-durable store used by tests and throwaway engines."""

    def __init__(self) -> None:
        self._time_slots: dict[int, TimeSlotRequest] = {}
        self._allocations: dict[int, tuple[int, int, int]] = {}
        self._time_slot_ids = count(1)
        self._allocation_ids = count(1)

    def initialize_database(self) -> None:
        return None

    def load_allocations(
        self,
        year_start: datetime,
        year_end: datetime,
    ) -> List[AllocatedTimeSlot]:
        loaded = []
        for allocation_id in sorted(self._allocations):
            allocation = self.find_allocation(allocation_id)
            if allocation is None:
                continue
            if allocation.is_recurring or year_start <= allocation.start <= year_end:
                loaded.append(allocation)
        return loaded

    def insert_time_slot(self, request: TimeSlotRequest) -> int:
        time_slot_id = next(self._time_slot_ids)
        self._time_slots[time_slot_id] = request
        return time_slot_id

    def insert_allocation(self, projector_id: int, time_slot_id: int, team_id: int) -> int:
        allocation_id = next(self._allocation_ids)
        self._allocations[allocation_id] = (projector_id, time_slot_id, team_id)
        return allocation_id

    def delete_allocation(self, allocation_id: int) -> None:
        self._allocations.pop(allocation_id, None)

    def delete_time_slot(self, time_slot_id: int) -> None:
        self._time_slots.pop(time_slot_id, None)

    def find_allocation(self, allocation_id: int) -> Optional[AllocatedTimeSlot]:
        binding = self._allocations.get(allocation_id)
        if binding is None:
            return None
        projector_id, time_slot_id, team_id = binding
        request = self._time_slots.get(time_slot_id)
        if request is None:
            return None
        return AllocatedTimeSlot(
            start=request.start,
            duration=request.duration,
            recur_interval=request.recur_interval,
            recur_end=request.recur_end if request.recur_end is not None else request.start,
            team_id=team_id,
            allocation_id=allocation_id,
            projector_id=projector_id,
            time_slot_id=time_slot_id,
        )

    def count_allocations(self) -> int:
        return len(self._allocations)

    def count_time_slots(self) -> int:
        return len(self._time_slots)
