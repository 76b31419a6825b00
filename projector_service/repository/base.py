"""Storage contract the scheduling service depends on."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from projector_service.domain.models import AllocatedTimeSlot, TimeSlotRequest


class PersistenceError(RuntimeError):
    """Raised when a storage call fails or times out."""


class AllocationStore(Protocol):
    """Time slot and allocation records keyed by integer ids."""

    def load_allocations(
        self,
        year_start: datetime,
        year_end: datetime,
    ) -> list[AllocatedTimeSlot]:
        ...

    def insert_time_slot(self, request: TimeSlotRequest) -> int:
        ...

    def insert_allocation(self, projector_id: int, time_slot_id: int, team_id: int) -> int:
        ...

    def delete_allocation(self, allocation_id: int) -> None:
        ...

    def delete_time_slot(self, time_slot_id: int) -> None:
        ...

    def find_allocation(self, allocation_id: int) -> Optional[AllocatedTimeSlot]:
        ...
