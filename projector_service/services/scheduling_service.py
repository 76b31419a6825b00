"""Projector allocation engine.

Each projector owns an OccupancyIndex over the minute-of-year timeline. A
booking is accepted on the lowest-numbered projector whose index is free for
every occurrence of the request; the store is written first and the index is
only mutated once the write succeeded. All writers share one lock so the
check -> persist -> commit sequence can never interleave with another
request.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from threading import RLock
from typing import Optional

from projector_service.domain.constraints import (
    SchedulerConfig,
    validate_scheduler_config,
    validate_time_slot_request,
)
from projector_service.domain.models import (
    UNSET_ID,
    AllocatedTimeSlot,
    OccupiedWindow,
    TimeSlotRequest,
)
from projector_service.domain.occupancy import Interval, OccupancyIndex
from projector_service.domain.recurrence import occurrence_windows
from projector_service.domain.timeline import YearTimeline
from projector_service.repository.base import AllocationStore, PersistenceError
from projector_service.repository.data_repository import DataRepository
from projector_service.utils.config import Settings, get_settings
from projector_service.utils.logger import get_logger


logger = get_logger(__name__)


class ProjectorSchedulingService:
    """Books, cancels and updates projector allocations."""

    def __init__(
        self,
        repository: Optional[AllocationStore] = None,
        settings: Optional[Settings] = None,
        timeline: Optional[YearTimeline] = None,
    ) -> None:
        self._settings = settings or get_settings()
        config = SchedulerConfig(
            projector_count=self._settings.projector_count,
            suggestion_window_minutes=self._settings.suggestion_window_minutes,
        )
        validate_scheduler_config(config)
        self._config = config
        self._repository: AllocationStore = repository or DataRepository(self._settings)
        self._timeline = timeline or YearTimeline.current()
        self._indexes = [OccupancyIndex() for _ in range(config.projector_count)]
        self._lock = RLock()

    @property
    def projector_count(self) -> int:
        return self._config.projector_count

    @property
    def timeline(self) -> YearTimeline:
        return self._timeline

    def _is_known_projector(self, projector_id: int) -> bool:
        return 0 <= projector_id < self._config.projector_count

    def _windows(self, slot: TimeSlotRequest) -> list[Interval]:
        return occurrence_windows(slot, self._timeline)

    def _fits(self, projector_id: int, windows: list[Interval]) -> bool:
        index = self._indexes[projector_id]
        return not any(index.intersects(start, end) for start, end in windows)

    def _commit(self, projector_id: int, windows: list[Interval]) -> None:
        index = self._indexes[projector_id]
        for start, end in windows:
            index.reserve(start, end)

    def _release(self, projector_id: int, windows: list[Interval]) -> bool:
        if not self._is_known_projector(projector_id):
            logger.error("Refusing to release windows on unknown projector %s", projector_id)
            return False
        index = self._indexes[projector_id]
        for start, end in windows:
            index.release(start, end)
        return True

    # --- startup -----------------------------------------------------------

    def rebuild(self) -> int:
        """Reload every index from the store. Returns the allocations applied."""
        with self._lock:
            for index in self._indexes:
                index.clear()
            allocations = self._repository.load_allocations(
                self._timeline.year_start,
                self._timeline.year_end,
            )
            applied = 0
            for allocation in allocations:
                if not self._is_known_projector(allocation.projector_id):
                    logger.warning(
                        "Skipping allocation %s bound to unknown projector %s",
                        allocation.allocation_id,
                        allocation.projector_id,
                    )
                    continue
                self._commit(allocation.projector_id, self._windows(allocation))
                applied += 1
            logger.info(
                "Occupancy rebuilt from %s allocations for year starting %s",
                applied,
                self._timeline.year_start.isoformat(),
            )
            return applied

    # --- selection ---------------------------------------------------------

    def choose_resource(self, start_minute: int, end_minute: int) -> Optional[int]:
        """Lowest projector id free over ``[start_minute, end_minute)``."""
        for projector_id, index in enumerate(self._indexes):
            if not index.intersects(start_minute, end_minute):
                return projector_id
        return None

    def choose_resource_recurring(self, request: TimeSlotRequest) -> Optional[int]:
        """Lowest projector id free for every occurrence of ``request``."""
        if request.recur_end is None or request.start >= request.recur_end:
            return None
        windows = self._windows(request)
        if not windows:
            return None
        for projector_id in range(self._config.projector_count):
            if self._fits(projector_id, windows):
                return projector_id
        return None

    def _select(self, request: TimeSlotRequest) -> Optional[int]:
        if request.is_recurring:
            return self.choose_resource_recurring(request)
        start, end = self._windows(request)[0]
        return self.choose_resource(start, end)

    # --- reservation -------------------------------------------------------

    def _persist(self, request: TimeSlotRequest, projector_id: int) -> AllocatedTimeSlot:
        time_slot_id = self._repository.insert_time_slot(request)
        try:
            allocation_id = self._repository.insert_allocation(
                projector_id,
                time_slot_id,
                request.team_id,
            )
        except PersistenceError:
            logger.error("Allocation insert failed, removing time slot %s", time_slot_id)
            self._discard_time_slot(time_slot_id)
            raise
        return AllocatedTimeSlot(
            start=request.start,
            duration=request.duration,
            recur_interval=request.recur_interval,
            recur_end=request.recur_end if request.recur_end is not None else request.start,
            team_id=request.team_id,
            allocation_id=allocation_id,
            projector_id=projector_id,
            time_slot_id=time_slot_id,
        )

    def _reserve_locked(self, request: TimeSlotRequest) -> Optional[AllocatedTimeSlot]:
        projector_id = self._select(request)
        if projector_id is None:
            logger.info("No projector free for request starting %s", request.start.isoformat())
            return None

        allocation = self._persist(request, projector_id)
        self._commit(projector_id, self._windows(request))
        logger.info(
            "Allocation %s reserved projector %s from %s",
            allocation.allocation_id,
            projector_id,
            request.start.isoformat(),
        )
        return allocation

    def reserve(self, request: TimeSlotRequest) -> Optional[AllocatedTimeSlot]:
        """Book the first free projector; None when every projector is busy."""
        validate_time_slot_request(request)
        with self._lock:
            return self._reserve_locked(request)

    # --- suggestion --------------------------------------------------------

    def _suggest_locked(self, request: TimeSlotRequest) -> Optional[AllocatedTimeSlot]:
        for offset in range(self._config.suggestion_window_minutes):
            candidate = request.start + timedelta(minutes=offset)
            projector_id = self.choose_resource(
                self._timeline.to_minute(candidate),
                self._timeline.to_minute(candidate + request.duration),
            )
            if projector_id is not None:
                return AllocatedTimeSlot(
                    start=candidate,
                    duration=request.duration,
                    recur_interval=request.recur_interval,
                    recur_end=candidate,
                    team_id=request.team_id,
                    allocation_id=UNSET_ID,
                    projector_id=projector_id,
                    time_slot_id=UNSET_ID,
                )
        return None

    def suggest_next(self, request: TimeSlotRequest) -> Optional[AllocatedTimeSlot]:
        """Earliest start within the look-ahead window that some projector can take.

        Recurring requests never get a suggestion. Nothing is booked.
        """
        validate_time_slot_request(request)
        if request.is_recurring:
            return None
        with self._lock:
            return self._suggest_locked(request)

    def request_resource(self, request: TimeSlotRequest) -> Optional[AllocatedTimeSlot]:
        """Reserve, falling back to a suggestion for non-recurring requests."""
        validate_time_slot_request(request)
        with self._lock:
            allocation = self._reserve_locked(request)
            if allocation is None and not request.is_recurring:
                allocation = self._suggest_locked(request)
                if allocation is not None:
                    logger.info(
                        "Suggested %s on projector %s",
                        allocation.start.isoformat(),
                        allocation.projector_id,
                    )
            return allocation

    # --- cancellation and update -------------------------------------------

    def find_allocation(self, allocation_id: int) -> Optional[AllocatedTimeSlot]:
        return self._repository.find_allocation(allocation_id)

    def _discard_time_slot(self, time_slot_id: int) -> None:
        # Time slot rows without an allocation are never loaded again.
        try:
            self._repository.delete_time_slot(time_slot_id)
        except PersistenceError:
            logger.exception("Could not remove orphaned time slot %s", time_slot_id)

    def _cancel_locked(self, allocation: AllocatedTimeSlot) -> None:
        # Removing the allocation row commits the cancellation.
        self._repository.delete_allocation(allocation.allocation_id)
        self._release(allocation.projector_id, self._windows(allocation))
        self._discard_time_slot(allocation.time_slot_id)
        logger.info(
            "Allocation %s released projector %s",
            allocation.allocation_id,
            allocation.projector_id,
        )

    def cancel(self, allocation_id: int) -> bool:
        """Delete an allocation. False when the id is unknown."""
        with self._lock:
            allocation = self._repository.find_allocation(allocation_id)
            if allocation is None:
                logger.info("Cancel requested for unknown allocation %s", allocation_id)
                return False
            self._cancel_locked(allocation)
            return True

    def update(
        self,
        allocation_id: int,
        new_request: TimeSlotRequest,
    ) -> Optional[AllocatedTimeSlot]:
        """Move an allocation to ``new_request``.

        On success the booking gets a new allocation id and ``allocation_id``
        is gone. When the new slot cannot be booked, or a store write fails,
        the original allocation is left exactly as it was. A ``team_id`` of
        None keeps the original team.
        """
        validate_time_slot_request(new_request, require_team=False)
        with self._lock:
            existing = self._repository.find_allocation(allocation_id)
            if existing is None:
                logger.info("Update requested for unknown allocation %s", allocation_id)
                return None
            if new_request.team_id is None:
                new_request = replace(new_request, team_id=existing.team_id)

            # The original windows are vacated while the new slot is placed.
            held_windows = self._windows(existing)
            held = self._release(existing.projector_id, held_windows)
            try:
                updated = self._move_locked(existing, new_request)
            except PersistenceError:
                if held:
                    self._commit(existing.projector_id, held_windows)
                raise
            if updated is None:
                if held:
                    self._commit(existing.projector_id, held_windows)
                logger.info("Update of allocation %s failed, original slot kept", allocation_id)
            return updated

    def _move_locked(
        self,
        existing: AllocatedTimeSlot,
        new_request: TimeSlotRequest,
    ) -> Optional[AllocatedTimeSlot]:
        projector_id = self._select(new_request)
        if projector_id is None:
            return None

        updated = self._persist(new_request, projector_id)
        try:
            self._repository.delete_allocation(existing.allocation_id)
        except PersistenceError:
            logger.error(
                "Could not retire allocation %s, dropping replacement %s",
                existing.allocation_id,
                updated.allocation_id,
            )
            self._drop_persisted(updated)
            raise

        self._commit(projector_id, self._windows(new_request))
        self._discard_time_slot(existing.time_slot_id)
        logger.info(
            "Allocation %s moved to allocation %s on projector %s",
            existing.allocation_id,
            updated.allocation_id,
            projector_id,
        )
        return updated

    def _drop_persisted(self, allocation: AllocatedTimeSlot) -> None:
        try:
            self._repository.delete_allocation(allocation.allocation_id)
        except PersistenceError:
            # Both rows stay stored until an operator removes one.
            logger.exception("Could not remove replacement allocation %s", allocation.allocation_id)
            return
        self._discard_time_slot(allocation.time_slot_id)

    # --- queries -----------------------------------------------------------

    def schedule_of(self, projector_id: int) -> Optional[list[OccupiedWindow]]:
        """Merged busy windows of a projector; None for an unknown id."""
        if not self._is_known_projector(projector_id):
            return None
        with self._lock:
            intervals = self._indexes[projector_id].snapshot()
        return [
            OccupiedWindow(
                start=self._timeline.from_minute(start),
                duration=timedelta(minutes=end - start),
            )
            for start, end in intervals
        ]
