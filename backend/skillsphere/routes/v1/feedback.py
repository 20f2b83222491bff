# backend/skillsphere/routes/v1/feedback.py
"""
Feedback routes - API v1

Versioned feedback endpoints under /api/v1/feedback.
All business logic delegated to FeedbackService.

Endpoints:
    POST / - Rate a completed booking (learner)
    GET /mentors-by-rating - Rated mentors, best average first (public)
    GET /my-feedback - Feedback the caller has given
    GET /can-review/{booking_id} - Whether the caller may rate a booking
    GET /mentor/{mentor_id}/stats - Average and star distribution (public)
    GET /mentor/{mentor_id} - Anonymous feedback for a mentor (public)
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_current_user, get_feedback_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.booking import ParticipantSummary
from ...schemas.feedback import (
    CanReviewResponse,
    FeedbackResponse,
    FeedbackSubmit,
    FeedbackSubmitResponse,
    MentorFeedbackResponse,
    MentorsByRatingResponse,
    MentorStatsResponse,
    MyFeedbackItem,
    MyFeedbackResponse,
    PublicFeedbackItem,
    RatedMentor,
)
from ...schemas.transcript import PaginationInfo
from ...services.feedback_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, FeedbackService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["feedback-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("", response_model=FeedbackSubmitResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    payload: FeedbackSubmit,
    current_user: User = Depends(get_current_user),
    feedback_service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackSubmitResponse:
    try:
        feedback = await asyncio.to_thread(
            feedback_service.submit_feedback,
            current_user.id,
            payload.booking_id,
            payload.rating,
            payload.comment,
            payload.is_anonymous,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return FeedbackSubmitResponse(
        message="Feedback submitted successfully",
        feedback=FeedbackResponse.model_validate(feedback),
    )


@router.get("/mentors-by-rating", response_model=MentorsByRatingResponse)
async def list_mentors_by_rating(
    min_rating: float = Query(0, alias="minRating", ge=0, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    feedback_service: FeedbackService = Depends(get_feedback_service),
) -> MentorsByRatingResponse:
    try:
        result = await asyncio.to_thread(feedback_service.get_mentors_by_rating, min_rating, page, limit)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MentorsByRatingResponse(
        message="Mentors retrieved successfully",
        mentors=[
            RatedMentor(
                mentor=ParticipantSummary.model_validate(entry["mentor"]),
                average_rating=entry["average_rating"],
                total_reviews=entry["total_reviews"],
            )
            for entry in result["mentors"]
        ],
        pagination=PaginationInfo(**result["pagination"]),
    )


@router.get("/my-feedback", response_model=MyFeedbackResponse)
async def list_my_feedback(
    current_user: User = Depends(get_current_user),
    feedback_service: FeedbackService = Depends(get_feedback_service),
) -> MyFeedbackResponse:
    try:
        items = await asyncio.to_thread(feedback_service.get_my_feedback, current_user.id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MyFeedbackResponse(
        message="Feedback retrieved successfully",
        feedback=[MyFeedbackItem.model_validate(item) for item in items],
        total=len(items),
    )


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters)
# ============================================================================


@router.get("/can-review/{booking_id}", response_model=CanReviewResponse)
async def can_review(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    feedback_service: FeedbackService = Depends(get_feedback_service),
) -> CanReviewResponse:
    try:
        result = await asyncio.to_thread(feedback_service.can_review, booking_id, current_user.id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return CanReviewResponse(**result)


@router.get("/mentor/{mentor_id}/stats", response_model=MentorStatsResponse)
async def get_mentor_stats(
    mentor_id: str,
    feedback_service: FeedbackService = Depends(get_feedback_service),
) -> MentorStatsResponse:
    try:
        stats = await asyncio.to_thread(feedback_service.get_mentor_stats, mentor_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MentorStatsResponse(message="Feedback stats retrieved successfully", **stats)


@router.get("/mentor/{mentor_id}", response_model=MentorFeedbackResponse)
async def get_mentor_feedback(
    mentor_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    feedback_service: FeedbackService = Depends(get_feedback_service),
) -> MentorFeedbackResponse:
    try:
        result = await asyncio.to_thread(feedback_service.get_mentor_feedback, mentor_id, page, limit)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MentorFeedbackResponse(
        message="Feedback retrieved successfully",
        feedback=[PublicFeedbackItem.model_validate(item) for item in result["feedback"]],
        pagination=PaginationInfo(**result["pagination"]),
    )
