# backend/tests/services/test_session_provisioner.py
"""Tests for SessionProvisioningService: idempotent room provisioning."""

import pytest

from skillsphere.core.enums import BookingStatus, SessionStatus
from skillsphere.core.exceptions import (
    ConflictException,
    DuplicateRecordException,
    ExternalServiceException,
    ForbiddenException,
    NotFoundException,
)
from skillsphere.integrations import StreamChatError
from skillsphere.models.session import MentoringSession
from skillsphere.services.session_provisioner import chat_room_id_for, video_room_id_for


def test_room_ids_are_derived_from_booking_id(clock):
    assert chat_room_id_for("01ABC") == "booking_01ABC"
    video_room_id = video_room_id_for("01ABC", clock())
    assert video_room_id.startswith("session_01ABC_")
    assert video_room_id.rsplit("_", 1)[1].isdigit()


class TestProvision:
    def test_creates_session_and_chat_room(self, db, provisioning_service, chat_client, confirmed_booking, mentor, learner):
        session = provisioning_service.provision(confirmed_booking)

        assert session.booking_id == confirmed_booking.id
        assert session.mentor_id == mentor.id
        assert session.learner_id == learner.id
        assert session.status == SessionStatus.UPCOMING.value
        assert session.chat_room_id == chat_room_id_for(confirmed_booking.id)
        assert session.video_room_id.startswith(f"session_{confirmed_booking.id}_")

        room = chat_client.rooms[session.chat_room_id]
        assert room["members"] == [mentor.id, learner.id]
        assert room["booking_id"] == confirmed_booking.id
        assert room["name"] == "Session: Marco Mentor & Lena Learner"
        assert set(chat_client.users) == {mentor.id, learner.id}
        assert chat_client.users[mentor.id]["role"] == "mentor"

    def test_second_call_returns_existing_without_provider_calls(
        self, db, provisioning_service, chat_client, confirmed_booking
    ):
        first = provisioning_service.provision(confirmed_booking)
        second = provisioning_service.provision(confirmed_booking)

        assert second.id == first.id
        assert len(chat_client.calls_for("create_or_get_room")) == 1
        assert db.query(MentoringSession).count() == 1

    @pytest.mark.parametrize(
        "status", [BookingStatus.PENDING, BookingStatus.CANCELLED, BookingStatus.COMPLETED]
    )
    def test_requires_confirmed_booking(self, provisioning_service, chat_client, make_booking, status):
        booking = make_booking(status)

        with pytest.raises(ConflictException):
            provisioning_service.provision(booking)
        assert chat_client.calls_for("upsert_participants") == []

    def test_provider_failure_writes_nothing(self, db, provisioning_service, chat_client, confirmed_booking):
        chat_client.set_error("upsert_participants", StreamChatError("stream down", 503))

        with pytest.raises(ExternalServiceException) as exc_info:
            provisioning_service.provision(confirmed_booking)

        assert exc_info.value.details["provider"] == "stream_chat"
        assert db.query(MentoringSession).count() == 0

    def test_retry_after_provider_failure_uses_same_room(
        self, provisioning_service, chat_client, confirmed_booking
    ):
        chat_client.set_error("create_or_get_room", StreamChatError("timeout", 504))
        with pytest.raises(ExternalServiceException):
            provisioning_service.provision(confirmed_booking)
        chat_client.clear_errors()

        session = provisioning_service.provision(confirmed_booking)

        room_ids = {call["room_id"] for call in chat_client.calls_for("create_or_get_room")}
        assert room_ids == {session.chat_room_id}

    def test_lost_insert_race_returns_winner(
        self, db, provisioning_service, confirmed_booking, monkeypatch
    ):
        winner = MentoringSession(
            booking_id=confirmed_booking.id,
            mentor_id=confirmed_booking.mentor_id,
            learner_id=confirmed_booking.learner_id,
            chat_room_id=chat_room_id_for(confirmed_booking.id),
            video_room_id=f"session_{confirmed_booking.id}_1",
            status=SessionStatus.UPCOMING.value,
        )
        repo = provisioning_service.session_repository
        lookups = iter([None, winner])

        monkeypatch.setattr(repo, "get_by_booking_id", lambda booking_id: next(lookups))

        def _conflicting_create(**kwargs):
            raise DuplicateRecordException("sessions.booking_id already exists")

        monkeypatch.setattr(repo, "create", _conflicting_create)

        assert provisioning_service.provision(confirmed_booking) is winner


class TestEnsureSession:
    def test_participant_can_retry_provisioning(self, provisioning_service, confirmed_booking, learner):
        session = provisioning_service.ensure_session(confirmed_booking.id, learner.id)
        assert session.booking_id == confirmed_booking.id

    def test_outsider_forbidden(self, provisioning_service, confirmed_booking, outsider):
        with pytest.raises(ForbiddenException):
            provisioning_service.ensure_session(confirmed_booking.id, outsider.id)

    def test_unknown_booking(self, provisioning_service, learner):
        with pytest.raises(NotFoundException):
            provisioning_service.ensure_session("01HZZZZZZZZZZZZZZZZZZZZZZZ", learner.id)
