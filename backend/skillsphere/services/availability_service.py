# backend/skillsphere/services/availability_service.py
"""
Availability Service for SkillSphere

Mentors share one fixed daily grid of hourly slots. A slot is free unless a
pending or confirmed booking already holds it for that mentor and date.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import SLOT_END_HOUR, SLOT_START_HOUR
from ..core.exceptions import NotFoundException
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def daily_slot_grid() -> List[str]:
    """Hourly slot labels from the first to the last bookable hour, inclusive."""
    return [f"{hour:02d}:00" for hour in range(SLOT_START_HOUR, SLOT_END_HOUR + 1)]


class AvailabilityService(BaseService):
    """Read-only slot calculator."""

    def __init__(
        self,
        db: Session,
        booking_repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ) -> None:
        super().__init__(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(self, mentor_id: str, target_date: date) -> Dict[str, Any]:
        mentor = self.user_repository.get_active(mentor_id)
        if mentor is None or not mentor.is_mentor:
            raise NotFoundException("Mentor not found")

        grid = daily_slot_grid()
        booked = set(self.booking_repository.get_occupied_slots(mentor_id, target_date))
        available = [slot for slot in grid if slot not in booked]
        booked_on_grid = [slot for slot in grid if slot in booked]

        return {
            "mentor_id": mentor_id,
            "date": target_date,
            "available_slots": available,
            "booked_slots": booked_on_grid,
            "total_slots": len(grid),
            "available_count": len(available),
        }
