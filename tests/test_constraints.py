"""Tests for scheduler configuration and request validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from projector_service.domain.constraints import (
    SchedulerConfig,
    TimeSlotValidationError,
    validate_scheduler_config,
    validate_time_slot_request,
)
from projector_service.domain.models import TimeSlotRequest


START = datetime(2030, 7, 7, 12, 0, tzinfo=timezone.utc)


def valid_request(**overrides) -> TimeSlotRequest:
    """Return a valid baseline request, optionally overriding fields."""
    defaults = {
        "start": START,
        "duration": timedelta(minutes=60),
        "recur_interval": timedelta(0),
        "recur_end": START,
        "team_id": 1,
    }
    defaults.update(overrides)
    return TimeSlotRequest(**defaults)


# --- SchedulerConfig ---

def test_valid_config_passes() -> None:
    validate_scheduler_config(SchedulerConfig(projector_count=3, suggestion_window_minutes=120))


def test_zero_projectors_raises() -> None:
    with pytest.raises(ValueError):
        validate_scheduler_config(SchedulerConfig(projector_count=0, suggestion_window_minutes=120))


def test_negative_suggestion_window_raises() -> None:
    with pytest.raises(ValueError):
        validate_scheduler_config(SchedulerConfig(projector_count=3, suggestion_window_minutes=-1))


# --- TimeSlotRequest ---

def test_valid_single_request_passes() -> None:
    validate_time_slot_request(valid_request())


def test_valid_recurring_request_passes() -> None:
    validate_time_slot_request(
        valid_request(recur_interval=timedelta(days=3), recur_end=START + timedelta(days=30))
    )


def test_single_request_without_recurrence_end_passes() -> None:
    validate_time_slot_request(valid_request(recur_end=None))


def test_naive_start_raises() -> None:
    naive = datetime(2030, 7, 7, 12, 0)
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(valid_request(start=naive, recur_end=naive))


def test_zero_duration_raises() -> None:
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(valid_request(duration=timedelta(0)))


def test_negative_interval_raises() -> None:
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(valid_request(recur_interval=timedelta(minutes=-5)))


def test_recurring_without_end_raises() -> None:
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(valid_request(recur_interval=timedelta(days=1), recur_end=None))


def test_single_request_with_foreign_recurrence_end_raises() -> None:
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(valid_request(recur_end=START + timedelta(days=2)))


def test_validation_error_is_value_error() -> None:
    assert issubclass(TimeSlotValidationError, ValueError)


def test_sub_minute_interval_raises() -> None:
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(
            valid_request(recur_interval=timedelta(milliseconds=1), recur_end=START + timedelta(days=30))
        )


def test_one_minute_interval_passes() -> None:
    validate_time_slot_request(
        valid_request(recur_interval=timedelta(minutes=1), recur_end=START + timedelta(hours=2))
    )


def test_missing_team_raises_unless_allowed() -> None:
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(valid_request(team_id=None))
    validate_time_slot_request(valid_request(team_id=None), require_team=False)


def test_team_zero_passes_and_negative_team_raises() -> None:
    validate_time_slot_request(valid_request(team_id=0))
    with pytest.raises(TimeSlotValidationError):
        validate_time_slot_request(valid_request(team_id=-1))
