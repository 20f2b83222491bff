"""Repository for locally mirrored user accounts."""

from __future__ import annotations

from typing import Optional, cast

from sqlalchemy.orm import Session

from ..models.user import User
from .base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Data access for User rows."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, User)

    def get_active(self, user_id: str) -> Optional[User]:
        user = self.get_by_id(user_id, load_relationships=False)
        if user is None or not user.is_active:
            return None
        return cast(User, user)
