# backend/tests/conftest.py
"""
Pytest configuration for the SkillSphere backend.

Every test gets a fresh in-memory SQLite database (StaticPool, so the
threads used by asyncio.to_thread share one connection) with SAVEPOINT
support enabled, the same way the application engine is configured.
Provider clients are the in-memory fakes.
"""

import os

# Set test configuration BEFORE any skillsphere imports
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-entropy-1234"
os.environ["TRANSCRIPT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["STREAM_API_KEY"] = "test-stream-key"
os.environ.pop("GEMINI_API_KEY", None)

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from skillsphere import models  # noqa: F401  registers mappers on Base.metadata
from skillsphere.api.dependencies import database as database_deps
from skillsphere.api.dependencies import services as service_deps
from skillsphere.auth import create_access_token
from skillsphere.core.enums import BookingStatus, RoleName
from skillsphere.database import Base, configure_sqlite_savepoints
from skillsphere.integrations import (
    FakeAssemblyAIClient,
    FakeHundredMsClient,
    FakeStreamChatClient,
    FakeTextGenerator,
)
from skillsphere.main import app
from skillsphere.models.booking import Booking
from skillsphere.models.user import User
from skillsphere.services.booking_service import BookingService
from skillsphere.services.feedback_service import FeedbackService
from skillsphere.services.notification_service import NotificationService
from skillsphere.services.session_provisioner import SessionProvisioningService
from skillsphere.services.session_service import SessionService
from skillsphere.services.transcript_service import TranscriptService

FIXED_NOW = datetime(2030, 1, 10, 12, 0, tzinfo=timezone.utc)
FUTURE_DATE = date(2030, 1, 15)


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    configure_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Iterator[Session]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Users
# ============================================================================


def _make_user(db: Session, full_name: str, roles: list, **kwargs) -> User:
    user = User(
        full_name=full_name,
        email=f"{full_name.lower().replace(' ', '.')}@example.com",
        roles=roles,
        **kwargs,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def learner(db: Session) -> User:
    return _make_user(db, "Lena Learner", [RoleName.LEARNER.value])


@pytest.fixture
def mentor(db: Session) -> User:
    return _make_user(
        db,
        "Marco Mentor",
        [RoleName.MENTOR.value],
        is_approved=True,
        is_profile_complete=True,
    )


@pytest.fixture
def unapproved_mentor(db: Session) -> User:
    return _make_user(
        db,
        "Nia Newmentor",
        [RoleName.MENTOR.value],
        is_approved=False,
        is_profile_complete=True,
    )


@pytest.fixture
def outsider(db: Session) -> User:
    return _make_user(db, "Otto Outsider", [RoleName.LEARNER.value])


# ============================================================================
# Clock and provider fakes
# ============================================================================


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def chat_client() -> FakeStreamChatClient:
    return FakeStreamChatClient()


@pytest.fixture
def video_client() -> FakeHundredMsClient:
    return FakeHundredMsClient()


@pytest.fixture
def stt_client() -> FakeAssemblyAIClient:
    return FakeAssemblyAIClient()


@pytest.fixture
def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def notification_service(db: Session) -> NotificationService:
    return NotificationService(db)


@pytest.fixture
def provisioning_service(db: Session, chat_client, clock) -> SessionProvisioningService:
    return SessionProvisioningService(db, chat_client, now_fn=clock)


@pytest.fixture
def booking_service(
    db: Session, provisioning_service, notification_service, clock
) -> BookingService:
    return BookingService(db, provisioning_service, notification_service, now_fn=clock)


@pytest.fixture
def session_service(db: Session, chat_client, video_client, clock) -> SessionService:
    return SessionService(db, chat_client, video_client, video_token_ttl_seconds=600, now_fn=clock)


@pytest.fixture
def transcript_service(db: Session, stt_client, clock) -> TranscriptService:
    return TranscriptService(
        db,
        stt_client,
        webhook_url="https://api.example.test/api/v1/transcripts/webhook",
        webhook_secret="test-webhook-secret",
        max_audio_bytes=1024,
        now_fn=clock,
    )


@pytest.fixture
def feedback_service(db: Session) -> FeedbackService:
    return FeedbackService(db)


# ============================================================================
# Booking helpers
# ============================================================================


@pytest.fixture
def make_booking(db: Session, learner: User, mentor: User) -> Callable[..., Booking]:
    """Insert a booking directly, bypassing the service guards."""

    def _make(
        status: BookingStatus = BookingStatus.PENDING,
        booking_time: str = "10:00",
        booking_date: date = FUTURE_DATE,
    ) -> Booking:
        booking = Booking(
            mentor_id=mentor.id,
            learner_id=learner.id,
            booking_date=booking_date,
            booking_time=booking_time,
            message="Looking forward to it",
            status=status.value,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def confirmed_booking(make_booking) -> Booking:
    return make_booking(BookingStatus.CONFIRMED)


# ============================================================================
# HTTP client
# ============================================================================


def auth_headers_for(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, roles=user.roles)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db: Session, chat_client, video_client, stt_client, text_generator) -> Iterator[TestClient]:
    """TestClient bound to the per-test database and provider fakes."""

    def override_get_db():
        yield db

    app.dependency_overrides[database_deps.get_db] = override_get_db
    app.dependency_overrides[service_deps.get_chat_client] = lambda: chat_client
    app.dependency_overrides[service_deps.get_video_client] = lambda: video_client
    app.dependency_overrides[service_deps.get_speech_to_text_client] = lambda: stt_client
    app.dependency_overrides[service_deps.get_text_generator] = lambda: text_generator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def next_week() -> date:
    """A bookable date relative to the real clock, for route tests."""
    return date.today() + timedelta(days=7)


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    return auth_headers_for


@pytest.fixture
def learner_headers(learner: User) -> Dict[str, str]:
    return auth_headers_for(learner)


@pytest.fixture
def mentor_headers(mentor: User) -> Dict[str, str]:
    return auth_headers_for(mentor)
