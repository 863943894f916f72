# officehours/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    POST / - Publish an availability block
    DELETE /{mentor_id}/{block_id} - Revoke a block
    GET /mentor/{mentor_id} - Calendar view (available and booked slots)
"""

import asyncio
from datetime import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from ...api.dependencies import get_availability_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.availability import (
    AvailabilityBlockCreate,
    AvailabilityBlockResponse,
    MentorAvailabilityResponse,
    TimeSlotResponse,
)
from ...services.availability_service import AvailabilityService, MentorCalendar
from ...services.slot_generator import TimeSlot

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


def _slot_response(slot: TimeSlot) -> TimeSlotResponse:
    return TimeSlotResponse(
        start=slot.start,
        end=slot.end,
        available=slot.available,
        duration_minutes=slot.duration_minutes,
    )


def _calendar_response(calendar: MentorCalendar) -> MentorAvailabilityResponse:
    return MentorAvailabilityResponse(
        mentor_id=calendar.mentor_id,
        range_start=calendar.range_start,
        range_end=calendar.range_end,
        timezone=calendar.timezone,
        available_slots=[_slot_response(slot) for slot in calendar.available_slots],
        booked_slots=[_slot_response(slot) for slot in calendar.booked_slots],
    )


@router.post(
    "",
    response_model=AvailabilityBlockResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid time range"},
        404: {"description": "Mentor not found"},
        409: {"description": "Overlaps existing availability or bookings"},
    },
)
async def create_availability_block(
    payload: AvailabilityBlockCreate = Body(...),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityBlockResponse:
    """Publish an open block on a mentor's calendar."""
    try:
        block = await asyncio.to_thread(
            availability_service.create_block,
            payload.mentor_id,
            payload.start,
            payload.end,
            payload.location,
        )
        return AvailabilityBlockResponse.model_validate(block)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{mentor_id}/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Availability block not found"}},
)
async def delete_availability_block(
    mentor_id: str,
    block_id: str,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    """Revoke an availability block."""
    try:
        await asyncio.to_thread(availability_service.delete_block, mentor_id, block_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/mentor/{mentor_id}",
    response_model=MentorAvailabilityResponse,
    responses={404: {"description": "Mentor not found"}},
)
async def get_mentor_availability(
    mentor_id: str,
    range_start: Optional[datetime] = Query(None, description="Defaults to now"),
    range_end: Optional[datetime] = Query(None, description="Defaults to 14 days after start"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> MentorAvailabilityResponse:
    """
    Get a mentor's calendar for a range.

    Only blocks and sessions starting inside the range are listed.
    """
    try:
        calendar = await asyncio.to_thread(
            availability_service.get_mentor_availability,
            mentor_id,
            range_start,
            range_end,
        )
        return _calendar_response(calendar)
    except DomainException as e:
        handle_domain_exception(e)
