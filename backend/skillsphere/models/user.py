# backend/skillsphere/models/user.py
"""
User model for the SkillSphere platform.

Accounts are owned by the identity provider; this table mirrors the parts
the booking workflow needs: display names for notifications and chat rooms,
the role set, and the mentor approval flags checked at booking time.
"""

from typing import Any, cast

from sqlalchemy import JSON, Boolean, Column, DateTime, String
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base


class User(Base):
    """Learner, mentor or admin account."""

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String, unique=True, index=True, nullable=True)
    full_name = Column(String(120), nullable=False)
    avatar_url = Column(String(500), nullable=True)
    roles = Column(JSON, nullable=False, default=lambda: [RoleName.LEARNER.value])
    is_approved = Column(Boolean, nullable=False, default=False)
    is_profile_complete = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.full_name} roles={self.roles}>"

    def has_role(self, role: RoleName | str) -> bool:
        wanted = role.value if isinstance(role, RoleName) else role
        return wanted in cast(list[Any], self.roles or [])

    @property
    def is_mentor(self) -> bool:
        return self.has_role(RoleName.MENTOR)

    @property
    def is_learner(self) -> bool:
        return self.has_role(RoleName.LEARNER)

    @property
    def is_bookable_mentor(self) -> bool:
        """Mentors accept bookings only once approved with a complete profile."""
        return bool(self.is_mentor and self.is_approved and self.is_profile_complete)
