# backend/skillsphere/schemas/booking.py
"""Schemas for booking creation, transitions and availability."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from ..core.constants import MAX_BOOKING_MESSAGE_LENGTH
from ._strict_base import OrmModel, StrictModel, StrictRequestModel
from .session import SessionResponse


class BookingCreate(StrictRequestModel):
    """
    Booking request from a learner.

    Required fields are validated by BookingService so that missing values
    produce the same error body as every other booking rule.
    """

    mentor_id: Optional[str] = None
    booking_date: Optional[date] = None
    booking_time: Optional[str] = Field(default=None, description="Slot label, HH:MM (UTC)")
    message: Optional[str] = None


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(default=None, max_length=MAX_BOOKING_MESSAGE_LENGTH)


class ParticipantSummary(OrmModel):
    id: str
    full_name: str
    avatar_url: Optional[str] = None


class BookingResponse(OrmModel):
    id: str
    mentor_id: str
    learner_id: str
    booking_date: date
    booking_time: str
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
    cancellation_reason: Optional[str] = None
    mentor: Optional[ParticipantSummary] = None
    learner: Optional[ParticipantSummary] = None


class BookingActionResponse(StrictModel):
    """Envelope for create and every transition."""

    success: bool = True
    message: str
    booking: BookingResponse
    session: Optional[SessionResponse] = None
    warning: Optional[str] = None


class BookingListResponse(StrictModel):
    success: bool = True
    message: str
    bookings: List[BookingResponse]
    total: int


class AvailableSlotsResponse(StrictModel):
    success: bool = True
    message: str
    mentor_id: str
    date: str
    available_slots: List[str]
    booked_slots: List[str]
    total_slots: int
    available_count: int
