# backend/tests/services/test_availability_service.py
"""Tests for the fixed daily slot grid and AvailabilityService."""

from datetime import date

import pytest

from skillsphere.core.enums import BookingStatus
from skillsphere.core.exceptions import NotFoundException
from skillsphere.services.availability_service import AvailabilityService, daily_slot_grid

FUTURE_DATE = date(2030, 1, 15)


def test_daily_grid_is_thirteen_hourly_slots():
    grid = daily_slot_grid()
    assert len(grid) == 13
    assert grid[0] == "09:00"
    assert grid[-1] == "21:00"
    assert "14:00" in grid


class TestAvailableSlots:
    @pytest.fixture
    def service(self, db):
        return AvailabilityService(db)

    def test_all_slots_free_without_bookings(self, service, mentor):
        result = service.get_available_slots(mentor.id, FUTURE_DATE)

        assert result["mentor_id"] == mentor.id
        assert result["date"] == FUTURE_DATE
        assert result["available_slots"] == daily_slot_grid()
        assert result["booked_slots"] == []
        assert result["total_slots"] == 13
        assert result["available_count"] == 13

    def test_live_bookings_hold_slots(self, service, make_booking, mentor):
        make_booking(BookingStatus.PENDING, booking_time="10:00")
        make_booking(BookingStatus.CONFIRMED, booking_time="15:00")

        result = service.get_available_slots(mentor.id, FUTURE_DATE)

        assert result["booked_slots"] == ["10:00", "15:00"]
        assert "10:00" not in result["available_slots"]
        assert "15:00" not in result["available_slots"]
        assert result["available_count"] == 11

    def test_cancelled_and_completed_bookings_free_their_slot(self, service, make_booking, mentor):
        make_booking(BookingStatus.CANCELLED, booking_time="10:00")
        make_booking(BookingStatus.COMPLETED, booking_time="11:00")

        result = service.get_available_slots(mentor.id, FUTURE_DATE)

        assert result["available_count"] == 13

    def test_other_dates_do_not_interfere(self, service, make_booking, mentor):
        make_booking(BookingStatus.PENDING, booking_time="10:00", booking_date=date(2030, 1, 16))

        result = service.get_available_slots(mentor.id, FUTURE_DATE)

        assert result["available_count"] == 13

    def test_off_grid_booking_not_reported_as_grid_slot(self, service, make_booking, mentor):
        make_booking(BookingStatus.PENDING, booking_time="22:30")

        result = service.get_available_slots(mentor.id, FUTURE_DATE)

        assert result["booked_slots"] == []
        assert result["available_count"] == 13

    def test_unknown_mentor(self, service):
        with pytest.raises(NotFoundException):
            service.get_available_slots("01HZZZZZZZZZZZZZZZZZZZZZZZ", FUTURE_DATE)

    def test_learner_is_not_a_mentor(self, service, learner):
        with pytest.raises(NotFoundException):
            service.get_available_slots(learner.id, FUTURE_DATE)
