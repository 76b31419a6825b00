"""HTTP controller layer for projector booking.

The JSON wire format uses camelCase keys and millisecond durations.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from projector_service.controllers.dependencies import get_scheduling_service
from projector_service.domain.constraints import MIN_RECUR_INTERVAL, TimeSlotValidationError
from projector_service.domain.models import UNSET_ID, AllocatedTimeSlot, TimeSlotRequest
from projector_service.repository.base import PersistenceError
from projector_service.services.scheduling_service import ProjectorSchedulingService
from projector_service.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/projector", tags=["projector"])

MIN_RECUR_INTERVAL_MS = MIN_RECUR_INTERVAL // timedelta(milliseconds=1)


class TimeSlotPayload(BaseModel):
    """Input DTO validated before entering service layer."""

    model_config = ConfigDict(populate_by_name=True)

    start_date_time: AwareDatetime = Field(alias="startDateTime")
    duration: int = Field(gt=0, description="Milliseconds")
    recur_interval: int = Field(default=0, ge=0, alias="recurInterval", description="Milliseconds")
    recur_end_date_time: Optional[AwareDatetime] = Field(default=None, alias="recurEndDateTime")

    @model_validator(mode="after")
    def validate_recurrence(self) -> "TimeSlotPayload":
        if 0 < self.recur_interval < MIN_RECUR_INTERVAL_MS:
            raise ValueError("recurInterval must be at least one minute")
        if self.recur_interval > 0 and self.recur_end_date_time is None:
            raise ValueError("recurEndDateTime is required for recurring requests")
        return self

    def to_request(self, team_id: Optional[int]) -> TimeSlotRequest:
        # A non-recurring slot ends its "recurrence" where it starts.
        recur_end = self.start_date_time
        if self.recur_interval > 0 and self.recur_end_date_time is not None:
            recur_end = self.recur_end_date_time
        return TimeSlotRequest(
            start=self.start_date_time,
            duration=timedelta(milliseconds=self.duration),
            recur_interval=timedelta(milliseconds=self.recur_interval),
            recur_end=recur_end,
            team_id=team_id,
        )


class BookingRequest(TimeSlotPayload):
    team_id: int = Field(ge=0, alias="teamID")


class UpdateBookingRequest(TimeSlotPayload):
    allocation_id: int = Field(alias="allocationID")
    # Omitted keeps the booking's team.
    team_id: Optional[int] = Field(default=None, ge=0, alias="teamID")


class CancelBookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    allocation_id: int = Field(alias="allocationID")


class AllocationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    allocated_id: int = Field(alias="allocatedID")
    projector_id: Optional[int] = Field(default=None, alias="projectorID")
    next_available_start_time: Optional[datetime] = Field(
        default=None,
        alias="nextAvailableStartTime",
    )


class ScheduleEntryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: datetime = Field(alias="startDate")
    duration_in_minutes: int = Field(ge=0, alias="durationInMinutes")


class ScheduleResponse(BaseModel):
    schedule: list[ScheduleEntryResponse]


def _to_response(allocation: Optional[AllocatedTimeSlot]) -> AllocationResponse:
    if allocation is None:
        return AllocationResponse(allocated_id=UNSET_ID)
    if allocation.is_suggestion:
        return AllocationResponse(
            allocated_id=UNSET_ID,
            projector_id=allocation.projector_id,
            next_available_start_time=allocation.start,
        )
    return AllocationResponse(
        allocated_id=allocation.allocation_id,
        projector_id=allocation.projector_id,
    )


@router.get(
    "/status/{projector_id}",
    response_model=ScheduleResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
)
async def projector_status(
    projector_id: int,
    service: ProjectorSchedulingService = Depends(get_scheduling_service),
) -> ScheduleResponse:
    """Return the merged busy windows of one projector."""
    schedule = service.schedule_of(projector_id)
    if schedule is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown projector {projector_id}",
        )
    return ScheduleResponse(
        schedule=[
            ScheduleEntryResponse(
                start_date=window.start,
                duration_in_minutes=window.duration_minutes,
            )
            for window in schedule
        ]
    )


@router.post(
    "/request",
    response_model=AllocationResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
async def request_projector(
    payload: BookingRequest,
    service: ProjectorSchedulingService = Depends(get_scheduling_service),
) -> AllocationResponse:
    """Book a projector, or suggest the next start time when all are busy."""
    try:
        allocation = service.request_resource(payload.to_request(payload.team_id))
        return _to_response(allocation)
    except TimeSlotValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store allocation",
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected booking failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to book projector",
        ) from exc


@router.delete("/delete", status_code=status.HTTP_200_OK)
async def delete_projector_booking(
    payload: CancelBookingRequest,
    service: ProjectorSchedulingService = Depends(get_scheduling_service),
) -> dict[str, int]:
    try:
        cancelled = service.cancel(payload.allocation_id)
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete allocation",
        ) from exc
    if not cancelled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Allocation {payload.allocation_id} not found",
        )
    return {"allocationID": payload.allocation_id}


@router.put(
    "/update",
    response_model=AllocationResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
async def update_projector_booking(
    payload: UpdateBookingRequest,
    service: ProjectorSchedulingService = Depends(get_scheduling_service),
) -> AllocationResponse:
    """Move a booking; the original slot is kept when the new one is taken."""
    try:
        allocation = service.update(
            payload.allocation_id,
            payload.to_request(payload.team_id),
        )
        return _to_response(allocation)
    except TimeSlotValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update allocation",
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update allocation",
        ) from exc
