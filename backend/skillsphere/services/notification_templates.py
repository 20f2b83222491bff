from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class NotificationContext:
    """Names and slot captured when the notification is written."""

    mentor_name: str
    learner_name: str
    booking_date: Optional[date]
    booking_time: Optional[str]
    actor_name: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: Any, actor_name: Optional[str] = None) -> "NotificationContext":
        mentor = getattr(booking, "mentor", None)
        learner = getattr(booking, "learner", None)
        return cls(
            mentor_name=getattr(mentor, "full_name", None) or "Your mentor",
            learner_name=getattr(learner, "full_name", None) or "A learner",
            booking_date=booking.booking_date,
            booking_time=booking.booking_time,
            actor_name=actor_name,
        )

    def format_kwargs(self) -> Dict[str, str]:
        return {
            "mentor_name": self.mentor_name,
            "learner_name": self.learner_name,
            "date": self.booking_date.strftime("%B %d, %Y") if self.booking_date else "",
            "time": self.booking_time or "",
            "actor_name": self.actor_name or "The other participant",
        }


@dataclass(frozen=True)
class NotificationTemplate:
    type: NotificationType
    title: str
    body_template: str

    def render(self, context: NotificationContext) -> str:
        return self.body_template.format(**context.format_kwargs())


# Mentor templates
MENTOR_NEW_BOOKING_REQUEST = NotificationTemplate(
    type=NotificationType.NEW_BOOKING_REQUEST,
    title="New Booking Request",
    body_template="{learner_name} requested a session on {date} at {time}",
)

# Learner templates
LEARNER_BOOKING_CONFIRMED = NotificationTemplate(
    type=NotificationType.BOOKING_CONFIRMED,
    title="Booking Confirmed",
    body_template="{mentor_name} confirmed your session on {date} at {time}",
)

LEARNER_BOOKING_REJECTED = NotificationTemplate(
    type=NotificationType.BOOKING_REJECTED,
    title="Booking Declined",
    body_template="{mentor_name} declined your session request for {date} at {time}",
)

# Either side
BOOKING_CANCELLED = NotificationTemplate(
    type=NotificationType.BOOKING_CANCELLED,
    title="Booking Cancelled",
    body_template="{actor_name} cancelled the session on {date} at {time}",
)

NOTIFICATION_TEMPLATES: Dict[NotificationType, NotificationTemplate] = {
    template.type: template
    for template in (
        MENTOR_NEW_BOOKING_REQUEST,
        LEARNER_BOOKING_CONFIRMED,
        LEARNER_BOOKING_REJECTED,
        BOOKING_CANCELLED,
    )
}
