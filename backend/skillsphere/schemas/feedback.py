# backend/skillsphere/schemas/feedback.py
"""Schemas for learner feedback and mentor ratings."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import Field

from ._strict_base import OrmModel, StrictModel, StrictRequestModel
from .booking import ParticipantSummary
from .transcript import PaginationInfo


class FeedbackSubmit(StrictRequestModel):
    """
    Rating for a completed booking.

    Presence and range are checked by FeedbackService so every rule returns
    the same error body.
    """

    booking_id: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    is_anonymous: bool = True


class FeedbackResponse(OrmModel):
    id: str
    rating: int
    comment: str
    created_at: Optional[datetime] = None


class PublicFeedbackItem(OrmModel):
    """Mentor-page entry; the learner is never exposed."""

    rating: int
    comment: str
    created_at: Optional[datetime] = None


class FeedbackBookingSummary(OrmModel):
    id: str
    booking_date: date
    booking_time: str


class MyFeedbackItem(OrmModel):
    id: str
    booking_id: str
    rating: int
    comment: str
    is_anonymous: bool
    created_at: Optional[datetime] = None
    mentor: Optional[ParticipantSummary] = None
    booking: Optional[FeedbackBookingSummary] = None


class FeedbackSubmitResponse(StrictModel):
    success: bool = True
    message: str
    feedback: FeedbackResponse


class MentorFeedbackResponse(StrictModel):
    success: bool = True
    message: str
    feedback: List[PublicFeedbackItem]
    pagination: PaginationInfo


class MentorStatsResponse(StrictModel):
    success: bool = True
    message: str
    average_rating: float
    total_reviews: int
    rating_distribution: Dict[int, int]


class CanReviewResponse(StrictModel):
    success: bool = True
    can_review: bool
    reason: Optional[str] = None


class RatedMentor(StrictModel):
    mentor: ParticipantSummary
    average_rating: float = Field(..., ge=0, le=5)
    total_reviews: int


class MentorsByRatingResponse(StrictModel):
    success: bool = True
    message: str
    mentors: List[RatedMentor]
    pagination: PaginationInfo


class MyFeedbackResponse(StrictModel):
    success: bool = True
    message: str
    feedback: List[MyFeedbackItem]
    total: int
