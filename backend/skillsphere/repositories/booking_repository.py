# backend/skillsphere/repositories/booking_repository.py
"""
Booking Repository for SkillSphere

Implements all data access operations for booking management:
- Booking CRUD operations
- Participant-scoped listing (learner or mentor side)
- Slot occupancy queries for the availability grid
- Guarded status transitions (compare-and-set on the current status)
"""

from datetime import date
import logging
from typing import Any, Iterable, List, Optional, cast

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def transition_status(
        self,
        booking_id: str,
        expected: Iterable[BookingStatus],
        target: BookingStatus,
        **fields: Any,
    ) -> bool:
        """
        Move a booking to ``target`` only if it is currently in ``expected``.

        The status check and the write are one UPDATE statement, so two
        concurrent callers cannot both win. Returns False when no row matched,
        meaning the booking is gone or another writer changed it first.
        """
        expected_values = [status.value for status in expected]
        try:
            stmt = (
                update(Booking)
                .where(Booking.id == booking_id, Booking.status.in_(expected_values))
                .values(status=target.value, **fields)
                .execution_options(synchronize_session=False)
            )
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error transitioning booking {booking_id} to {target.value}: {str(e)}")
            raise RepositoryException(f"Failed to update booking status: {str(e)}")

        if result.rowcount != 1:
            self.logger.info(
                "Guarded transition missed",
                extra={"booking_id": booking_id, "expected": expected_values, "target": target.value},
            )
            return False

        # Pull the new column values into any instance already in the identity map
        booking = self.db.get(Booking, booking_id)
        if booking is not None:
            self.db.refresh(booking)
        return True

    def get_bookings_for_user(
        self,
        user_id: str,
        status: Optional[BookingStatus] = None,
        limit: int = 100,
    ) -> List[Booking]:
        """Bookings where the user is learner or mentor, newest first."""
        try:
            query = self._apply_eager_loading(self._build_query()).filter(
                or_(Booking.learner_id == user_id, Booking.mentor_id == user_id)
            )
            if status is not None:
                query = query.filter(Booking.status == status.value)
            query = query.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit)
            return cast(List[Booking], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to get bookings: {str(e)}")

    def get_occupied_slots(self, mentor_id: str, target_date: date) -> List[str]:
        """Slot labels held by pending or confirmed bookings for a mentor/date."""
        try:
            rows = (
                self.db.query(Booking.booking_time)
                .filter(
                    Booking.mentor_id == mentor_id,
                    Booking.booking_date == target_date,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
                .all()
            )
            return sorted({row[0] for row in rows})
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting occupied slots: {str(e)}")
            raise RepositoryException(f"Failed to get occupied slots: {str(e)}")

    def is_slot_taken(self, mentor_id: str, target_date: date, slot: str) -> bool:
        try:
            return (
                self.db.query(Booking.id)
                .filter(
                    Booking.mentor_id == mentor_id,
                    Booking.booking_date == target_date,
                    Booking.booking_time == slot,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking slot {slot} for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to check slot: {str(e)}")

    # Helper method overrides

    def _apply_eager_loading(self, query: Query) -> Query:
        """Load both participants; notifications and listings need their names."""
        return query.options(joinedload(Booking.learner), joinedload(Booking.mentor))
