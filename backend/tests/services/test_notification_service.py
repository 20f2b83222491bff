# backend/tests/services/test_notification_service.py
"""Tests for NotificationService: templated emission, inbox reads, read flags."""

from datetime import date

import pytest

from skillsphere.core.enums import NotificationType
from skillsphere.core.exceptions import NotFoundException
from skillsphere.models.notification import Notification
from skillsphere.services.notification_templates import NOTIFICATION_TEMPLATES, NotificationContext

FUTURE_DATE = date(2030, 1, 15)


@pytest.fixture
def context():
    return NotificationContext(
        mentor_name="Marco Mentor",
        learner_name="Lena Learner",
        booking_date=FUTURE_DATE,
        booking_time="10:00",
    )


def test_every_notification_type_has_a_template():
    assert set(NOTIFICATION_TEMPLATES) == set(NotificationType)


class TestEmit:
    def test_persists_snapshot_and_rendered_message(
        self, db, notification_service, make_booking, mentor, context
    ):
        booking = make_booking()

        notification = notification_service.emit(
            mentor.id, NotificationType.NEW_BOOKING_REQUEST, booking.id, context
        )
        db.commit()

        assert notification is not None
        stored = db.query(Notification).one()
        assert stored.user_id == mentor.id
        assert stored.type == "new_booking_request"
        assert stored.message == "Lena Learner requested a session on January 15, 2030 at 10:00"
        assert stored.read is False
        assert stored.mentor_name == "Marco Mentor"
        assert stored.learner_name == "Lena Learner"
        assert stored.booking_date == FUTURE_DATE
        assert stored.booking_time == "10:00"

    def test_accepts_plain_type_string(self, notification_service, make_booking, learner, context):
        booking = make_booking()
        notification = notification_service.emit(learner.id, "booking_confirmed", booking.id, context)
        assert notification is not None
        assert notification.message.startswith("Marco Mentor confirmed")

    def test_unknown_type_is_swallowed(self, db, notification_service, make_booking, learner, context):
        booking = make_booking()
        assert notification_service.emit(learner.id, "booking_exploded", booking.id, context) is None
        assert db.query(Notification).count() == 0

    def test_write_failure_rolls_back_only_the_savepoint(
        self, db, notification_service, make_booking, learner, mentor, context, monkeypatch
    ):
        booking = make_booking()
        booking.message = "edited in the same transaction"

        def _boom(**kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(notification_service.notification_repository, "create", _boom)
        assert notification_service.emit(learner.id, NotificationType.BOOKING_CONFIRMED, booking.id, context) is None
        db.commit()

        db.refresh(booking)
        assert booking.message == "edited in the same transaction"
        assert db.query(Notification).count() == 0

    def test_snapshot_survives_later_renames(
        self, db, notification_service, make_booking, learner, mentor
    ):
        booking = make_booking()
        notification_service.emit(
            mentor.id,
            NotificationType.NEW_BOOKING_REQUEST,
            booking.id,
            NotificationContext.from_booking(booking),
        )
        db.commit()

        learner.full_name = "Lena Renamed"
        db.commit()

        stored = db.query(Notification).one()
        assert stored.learner_name == "Lena Learner"
        assert "Lena Learner" in stored.message


class TestInbox:
    @pytest.fixture
    def inbox(self, db, notification_service, make_booking, learner, context):
        booking = make_booking()
        created = [
            notification_service.emit(learner.id, NotificationType.BOOKING_CONFIRMED, booking.id, context)
            for _ in range(3)
        ]
        db.commit()
        return created

    def test_lists_newest_first_with_unread_count(self, notification_service, learner, inbox):
        result = notification_service.list_notifications(learner.id)

        assert [n.id for n in result["notifications"]] == [n.id for n in reversed(inbox)]
        assert result["unread_count"] == 3

    def test_limit_does_not_change_unread_count(self, notification_service, learner, inbox):
        result = notification_service.list_notifications(learner.id, limit=2)
        assert len(result["notifications"]) == 2
        assert result["unread_count"] == 3

    def test_mark_read_is_idempotent(self, notification_service, learner, inbox):
        target = inbox[0]

        first = notification_service.mark_read(target.id, learner.id)
        second = notification_service.mark_read(target.id, learner.id)

        assert first.read is True
        assert second.read is True
        assert notification_service.list_notifications(learner.id)["unread_count"] == 2

    def test_mark_read_requires_ownership(self, notification_service, mentor, inbox):
        with pytest.raises(NotFoundException):
            notification_service.mark_read(inbox[0].id, mentor.id)

    def test_mark_read_unknown_id(self, notification_service, learner, inbox):
        with pytest.raises(NotFoundException):
            notification_service.mark_read("01HZZZZZZZZZZZZZZZZZZZZZZZ", learner.id)

    def test_mark_all_read_counts_flipped_rows(self, notification_service, learner, mentor, inbox):
        notification_service.mark_read(inbox[0].id, learner.id)

        assert notification_service.mark_all_read(learner.id) == 2
        assert notification_service.mark_all_read(learner.id) == 0
        assert notification_service.list_notifications(learner.id)["unread_count"] == 0
        assert notification_service.mark_all_read(mentor.id) == 0
