"""Domain-level validation rules for scheduling configuration and requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from projector_service.domain.models import TimeSlotRequest


MIN_RECUR_INTERVAL = timedelta(minutes=1)


class TimeSlotValidationError(ValueError):
    """Raised when a time slot request is malformed."""


@dataclass(frozen=True)
class SchedulerConfig:
    projector_count: int
    suggestion_window_minutes: int


def validate_scheduler_config(config: SchedulerConfig) -> None:
    if config.projector_count <= 0:
        raise ValueError("projector_count must be > 0")
    if config.suggestion_window_minutes < 0:
        raise ValueError("suggestion_window_minutes must be >= 0")


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def validate_time_slot_request(request: TimeSlotRequest, require_team: bool = True) -> None:
    """Reject requests the engine must never see.

    ``require_team=False`` accepts a missing team, as used by updates.
    """
    if not _is_aware(request.start):
        raise TimeSlotValidationError("start must be timezone-aware")
    if request.duration <= timedelta(0):
        raise TimeSlotValidationError("duration must be > 0")
    if request.recur_interval < timedelta(0):
        raise TimeSlotValidationError("recur_interval must be >= 0")
    if request.is_recurring and request.recur_interval < MIN_RECUR_INTERVAL:
        # The timeline resolves whole minutes.
        raise TimeSlotValidationError("recur_interval must be at least one minute")

    if request.team_id is None:
        if require_team:
            raise TimeSlotValidationError("team_id is required")
    elif request.team_id < 0:
        raise TimeSlotValidationError("team_id must be >= 0")

    if request.recur_end is not None and not _is_aware(request.recur_end):
        raise TimeSlotValidationError("recur_end must be timezone-aware")

    if request.is_recurring:
        if request.recur_end is None:
            raise TimeSlotValidationError("recurring requests require recur_end")
    elif request.recur_end is not None and request.recur_end != request.start:
        raise TimeSlotValidationError(
            "non-recurring requests must not carry a recurrence end"
        )
