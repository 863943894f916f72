# officehours/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Book a session
    GET /{session_id} - Session details
    POST /{session_id}/cancel - Cancel a scheduled session
    POST /{session_id}/complete - Mark a scheduled session completed
    POST /{session_id}/reschedule - Move a scheduled session to a new interval
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Path, status

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.booking import BookingCreate, BookingReschedule, BookingResponse
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def _session_id_path() -> Any:
    return Path(
        ...,
        description="Session ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    )


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid time range or duration"},
        404: {"description": "Mentor or mentee not found"},
        409: {"description": "Time conflict"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Book a session with a mentor."""
    try:
        session = await asyncio.to_thread(booking_service.create_booking, booking_data)
        return BookingResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{session_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Session not found"}},
)
async def get_booking(
    session_id: str = _session_id_path(),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Get full session details."""
    try:
        session = await asyncio.to_thread(booking_service.get_booking, session_id)
        return BookingResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{session_id}/cancel",
    response_model=BookingResponse,
    responses={
        404: {"description": "Session not found"},
        422: {"description": "Session is not scheduled"},
    },
)
async def cancel_booking(
    session_id: str = _session_id_path(),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Cancel a scheduled session."""
    try:
        session = await asyncio.to_thread(booking_service.cancel_booking, session_id)
        return BookingResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{session_id}/complete",
    response_model=BookingResponse,
    responses={
        404: {"description": "Session not found"},
        422: {"description": "Session is not scheduled"},
    },
)
async def complete_booking(
    session_id: str = _session_id_path(),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Mark a scheduled session as completed."""
    try:
        session = await asyncio.to_thread(booking_service.complete_booking, session_id)
        return BookingResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{session_id}/reschedule",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Session not found"},
        409: {"description": "Time conflict"},
        422: {"description": "Session is not scheduled"},
    },
)
async def reschedule_booking(
    session_id: str = _session_id_path(),
    payload: BookingReschedule = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Reschedule flow:
    - Creates a new scheduled session for the new interval
    - Moves the original session to ``rescheduled``
    - Returns the new session
    """
    try:
        session = await asyncio.to_thread(
            booking_service.reschedule_booking, session_id, payload
        )
        return BookingResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)
