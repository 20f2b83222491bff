# backend/skillsphere/services/feedback_service.py
"""
Feedback Service for SkillSphere

Learners rate a completed booking once, from 1 to 5 stars with an optional
comment. Public reads never expose the learner: mentor listings carry only
the rating, comment and timestamp.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import (
    ConflictException,
    DuplicateRecordException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..models.feedback import MAX_COMMENT_LENGTH, MAX_RATING, MIN_RATING, Feedback
from ..models.user import User
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.feedback_repository import FeedbackRepository
from ..repositories.user_repository import UserRepository
from .base import BaseService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

ALREADY_SUBMITTED = "Feedback already submitted for this booking"


def _pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_count": total,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


class FeedbackService(BaseService):
    """Submission, eligibility and public rating reads."""

    def __init__(
        self,
        db: Session,
        repository: Optional[FeedbackRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ) -> None:
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_feedback_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    @staticmethod
    def _page_args(page: int, limit: int) -> tuple[int, int]:
        if page < 1:
            raise ValidationException("Page must be at least 1", details={"page": page})
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationException(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}", details={"limit": limit}
            )
        return page, limit

    @BaseService.measure_operation("submit_feedback")
    def submit_feedback(
        self,
        learner_id: str,
        booking_id: Optional[str],
        rating: Optional[int],
        comment: Optional[str] = None,
        is_anonymous: bool = True,
    ) -> Feedback:
        """
        Record the learner's rating for a completed booking.

        Raises:
            ValidationException: missing fields, rating out of range, comment
                too long, or booking not completed
            NotFoundException: unknown booking
            ForbiddenException: caller is not the booking's learner
            ConflictException: feedback already exists for the booking
        """
        if not booking_id or rating is None:
            raise ValidationException("Booking ID and rating are required")
        if rating < MIN_RATING or rating > MAX_RATING:
            raise ValidationException(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}", details={"rating": rating}
            )
        text = (comment or "").strip()
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationException(
                f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters",
                details={"length": len(text)},
            )

        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        if booking.learner_id != learner_id:
            raise ForbiddenException("Only the learner can give feedback for this booking")
        if booking.status != BookingStatus.COMPLETED.value:
            raise ValidationException(
                "Booking must be completed to give feedback", details={"status": booking.status}
            )
        if self.repository.get_by_booking_id(booking_id):
            raise ConflictException(ALREADY_SUBMITTED, details={"booking_id": booking_id})

        try:
            with self.transaction():
                feedback = self.repository.create(
                    booking_id=booking.id,
                    mentor_id=booking.mentor_id,
                    learner_id=learner_id,
                    rating=rating,
                    comment=text,
                    is_anonymous=is_anonymous,
                )
        except DuplicateRecordException as exc:
            raise ConflictException(ALREADY_SUBMITTED, details={"booking_id": booking_id}) from exc

        self.log_operation("submit_feedback", feedback_id=feedback.id, booking_id=booking.id, rating=rating)
        return feedback

    @BaseService.measure_operation("can_review")
    def can_review(self, booking_id: str, user_id: str) -> Dict[str, Any]:
        """Whether the caller may rate the booking now, with the reason when not."""
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})

        if booking.learner_id != user_id:
            return {"can_review": False, "reason": "Not the learner for this booking"}
        if booking.status != BookingStatus.COMPLETED.value:
            return {"can_review": False, "reason": "Booking not completed yet"}
        if self.repository.get_by_booking_id(booking_id):
            return {"can_review": False, "reason": "Feedback already submitted"}
        return {"can_review": True, "reason": None}

    def _require_mentor(self, mentor_id: str) -> User:
        mentor = self.user_repository.get_by_id(mentor_id)
        if not mentor or not mentor.is_mentor:
            raise NotFoundException("Mentor not found", details={"mentor_id": mentor_id})
        return mentor

    @BaseService.measure_operation("get_mentor_feedback")
    def get_mentor_feedback(
        self, mentor_id: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Dict[str, Any]:
        page, limit = self._page_args(page, limit)
        self._require_mentor(mentor_id)
        items, total = self.repository.list_for_mentor(mentor_id, page=page, limit=limit)
        return {"feedback": items, "pagination": _pagination(page, limit, total)}

    @BaseService.measure_operation("get_mentor_stats")
    def get_mentor_stats(self, mentor_id: str) -> Dict[str, Any]:
        self._require_mentor(mentor_id)
        aggregates = self.repository.get_mentor_aggregates(mentor_id)
        return {
            "average_rating": round(aggregates["raw_average"], 1),
            "total_reviews": aggregates["total_reviews"],
            "rating_distribution": aggregates["distribution"],
        }

    @BaseService.measure_operation("get_mentors_by_rating")
    def get_mentors_by_rating(
        self, min_rating: float = 0.0, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Dict[str, Any]:
        """Rated mentors at or above ``min_rating``, best average first."""
        if min_rating < 0 or min_rating > MAX_RATING:
            raise ValidationException(
                f"Minimum rating must be between 0 and {MAX_RATING}", details={"min_rating": min_rating}
            )
        page, limit = self._page_args(page, limit)

        ranked = [
            {
                "mentor": mentor,
                "average_rating": round(average, 1),
                "total_reviews": total,
            }
            for mentor, average, total in self.repository.get_mentor_averages(min_rating)
            if mentor.is_mentor
        ]
        start = (page - 1) * limit
        return {
            "mentors": ranked[start : start + limit],
            "pagination": _pagination(page, limit, len(ranked)),
        }

    @BaseService.measure_operation("get_my_feedback")
    def get_my_feedback(self, learner_id: str) -> List[Feedback]:
        return self.repository.list_for_learner(learner_id)
