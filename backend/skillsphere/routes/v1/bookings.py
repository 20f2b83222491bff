# backend/skillsphere/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService, AvailabilityService
and NotificationService.

Endpoints:
    POST / - Create a booking request (learner)
    GET / - List my bookings
    GET /available-slots/{mentor_id} - Free hourly slots for a mentor on a date
    GET /notifications - My notifications with unread count
    PUT /notifications/read-all - Mark all my notifications read
    PUT /notifications/{notification_id}/read - Mark one notification read
    GET /{booking_id} - Booking detail (participants only)
    PUT /{booking_id}/confirm - Confirm (mentor)
    PUT /{booking_id}/reject - Reject (mentor)
    PUT /{booking_id}/complete - Complete (participants)
    DELETE /{booking_id} - Cancel (participants)
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ...api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_current_user,
    get_notification_service,
)
from ...core.constants import DEFAULT_NOTIFICATION_LIMIT
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.booking import (
    AvailableSlotsResponse,
    BookingActionResponse,
    BookingCancel,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
)
from ...schemas.notifications import (
    NotificationListResponse,
    NotificationReadAllResponse,
    NotificationReadResponse,
    NotificationResponse,
)
from ...schemas.session import SessionResponse
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingActionResult, BookingService
from ...services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _action_response(result: BookingActionResult, message: str) -> BookingActionResponse:
    return BookingActionResponse(
        message=message,
        booking=BookingResponse.model_validate(result.booking),
        session=SessionResponse.model_validate(result.session) if result.session else None,
        warning=result.warning,
    )


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("", response_model=BookingActionResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    """Request a slot with a mentor; the mentor is notified."""
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking,
            current_user.id,
            payload.mentor_id,
            payload.booking_date,
            payload.booking_time,
            payload.message,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _action_response(BookingActionResult(booking=booking), "Booking request sent successfully")


@router.get("", response_model=BookingListResponse)
async def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Bookings where the caller is learner or mentor, newest first."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.get_bookings_for_user, current_user.id, status_filter
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return BookingListResponse(
        message="Bookings retrieved successfully",
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.get("/available-slots/{mentor_id}", response_model=AvailableSlotsResponse)
async def get_available_slots(
    mentor_id: str,
    target_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
    current_user: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailableSlotsResponse:
    try:
        result = await asyncio.to_thread(
            availability_service.get_available_slots, mentor_id, target_date
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return AvailableSlotsResponse(
        message="Available slots retrieved successfully",
        mentor_id=result["mentor_id"],
        date=result["date"].isoformat(),
        available_slots=result["available_slots"],
        booked_slots=result["booked_slots"],
        total_slots=result["total_slots"],
        available_count=result["available_count"],
    )


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(DEFAULT_NOTIFICATION_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    try:
        result = await asyncio.to_thread(
            notification_service.list_notifications, current_user.id, limit
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return NotificationListResponse(
        message="Notifications retrieved successfully",
        notifications=[NotificationResponse.model_validate(n) for n in result["notifications"]],
        unread_count=result["unread_count"],
    )


@router.put("/notifications/read-all", response_model=NotificationReadAllResponse)
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationReadAllResponse:
    try:
        updated = await asyncio.to_thread(notification_service.mark_all_read, current_user.id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return NotificationReadAllResponse(
        message="All notifications marked as read", updated_count=updated
    )


@router.put("/notifications/{notification_id}/read", response_model=NotificationReadResponse)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationReadResponse:
    try:
        notification = await asyncio.to_thread(
            notification_service.mark_read, notification_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return NotificationReadResponse(
        message="Notification marked as read",
        notification=NotificationResponse.model_validate(notification),
    )


# ============================================================================
# SECTION 2: Dynamic routes (with booking_id)
# ============================================================================


@router.get("/{booking_id}", response_model=BookingActionResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_user, booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _action_response(
        BookingActionResult(booking=booking, session=booking.session),
        "Booking retrieved successfully",
    )


@router.put("/{booking_id}/confirm", response_model=BookingActionResponse)
async def confirm_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    """Confirm a pending booking; session provisioning problems come back as ``warning``."""
    try:
        result = await asyncio.to_thread(
            booking_service.confirm_booking, booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _action_response(result, "Booking confirmed successfully")


@router.put("/{booking_id}/reject", response_model=BookingActionResponse)
async def reject_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    try:
        result = await asyncio.to_thread(
            booking_service.reject_booking, booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _action_response(result, "Booking rejected successfully")


@router.put("/{booking_id}/complete", response_model=BookingActionResponse)
async def complete_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    try:
        result = await asyncio.to_thread(
            booking_service.complete_booking, booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _action_response(result, "Booking completed successfully")


@router.delete("/{booking_id}", response_model=BookingActionResponse)
async def cancel_booking(
    booking_id: str,
    payload: Optional[BookingCancel] = Body(None),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    try:
        result = await asyncio.to_thread(
            booking_service.cancel_booking,
            booking_id,
            current_user.id,
            payload.reason if payload else None,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _action_response(result, "Booking cancelled successfully")
