"""
Repository for learner feedback.

Follows repository pattern: no business logic, DB-only operations.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, TypedDict, cast

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.feedback import MAX_RATING, MIN_RATING, Feedback
from ..models.user import User
from .base_repository import BaseRepository


class MentorAggregate(TypedDict):
    total_reviews: int
    raw_average: float
    distribution: Dict[int, int]


class FeedbackRepository(BaseRepository[Feedback]):
    """Data access for Feedback rows."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Feedback)

    def get_by_booking_id(self, booking_id: str) -> Optional[Feedback]:
        return self.find_one_by(booking_id=booking_id)

    def list_for_mentor(self, mentor_id: str, page: int = 1, limit: int = 10) -> Tuple[List[Feedback], int]:
        """One page of a mentor's feedback, newest first, plus the total count."""
        query = self.db.query(Feedback).filter(Feedback.mentor_id == mentor_id)
        total = query.count()
        items = (
            query.order_by(Feedback.created_at.desc(), Feedback.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return cast(List[Feedback], items), total

    def list_for_learner(self, learner_id: str) -> List[Feedback]:
        query = (
            self.db.query(Feedback)
            .options(joinedload(Feedback.mentor), joinedload(Feedback.booking))
            .filter(Feedback.learner_id == learner_id)
            .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        )
        return cast(List[Feedback], query.all())

    def get_mentor_aggregates(self, mentor_id: str) -> MentorAggregate:
        """Count, average and per-star distribution of a mentor's ratings."""
        try:
            rows = (
                self.db.query(Feedback.rating, func.count(Feedback.id))
                .filter(Feedback.mentor_id == mentor_id)
                .group_by(Feedback.rating)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error aggregating feedback for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to aggregate feedback: {str(e)}")

        distribution = {star: 0 for star in range(MIN_RATING, MAX_RATING + 1)}
        for rating, count in rows:
            if rating in distribution:
                distribution[rating] = int(count)
        total = sum(distribution.values())
        rating_sum = sum(star * count for star, count in distribution.items())
        return {
            "total_reviews": total,
            "raw_average": rating_sum / total if total else 0.0,
            "distribution": distribution,
        }

    def get_mentor_averages(self, min_average: float = 0.0) -> List[Tuple[User, float, int]]:
        """
        (mentor, average, count) for every rated user whose average is at least
        ``min_average``, best rated first.
        """
        average = func.avg(Feedback.rating * 1.0).label("average_rating")
        count = func.count(Feedback.id).label("total_reviews")
        try:
            rows = (
                self.db.query(User, average, count)
                .join(Feedback, Feedback.mentor_id == User.id)
                .group_by(User.id)
                .having(average >= min_average)
                .order_by(average.desc(), count.desc(), User.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error ranking mentors by rating: {str(e)}")
            raise RepositoryException(f"Failed to rank mentors: {str(e)}")

        return [(user, float(avg_rating), int(total)) for user, avg_rating, total in rows]
