# backend/skillsphere/schemas/notifications.py
"""Schemas for notification inbox endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from ._strict_base import OrmModel, StrictModel


class NotificationResponse(OrmModel):
    """Notification inbox entry; names and slot are snapshots from creation time."""

    id: str
    user_id: str
    type: str
    booking_id: str
    message: str
    read: bool
    mentor_name: Optional[str] = None
    learner_name: Optional[str] = None
    booking_date: Optional[date] = None
    booking_time: Optional[str] = None
    created_at: Optional[datetime] = None


class NotificationListResponse(StrictModel):
    success: bool = True
    message: str
    notifications: List[NotificationResponse]
    unread_count: int = Field(..., ge=0)


class NotificationReadResponse(StrictModel):
    success: bool = True
    message: str
    notification: NotificationResponse


class NotificationReadAllResponse(StrictModel):
    success: bool = True
    message: str
    updated_count: int = Field(..., ge=0)
