# backend/skillsphere/api/dependencies/auth.py
"""
Authentication dependencies.

The bearer token only proves who the caller is; the role set and mentor
eligibility used by the services come from the locally mirrored User row.
"""

import asyncio
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import CallerIdentity, JwtIdentityProvider, oauth2_scheme_optional
from ...core.exceptions import UnauthorizedException
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)

_identity_provider: Optional[JwtIdentityProvider] = None


def get_identity_provider() -> JwtIdentityProvider:
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = JwtIdentityProvider()
    return _identity_provider


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_caller_identity(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    identity_provider: JwtIdentityProvider = Depends(get_identity_provider),
) -> CallerIdentity:
    try:
        return identity_provider.verify_caller(token)
    except UnauthorizedException as exc:
        raise _unauthorized(exc.message) from exc


async def get_current_user(
    identity: CallerIdentity = Depends(get_caller_identity),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from the database.

    Raises:
        HTTPException: 401 if the token subject has no active local account
    """
    repository = RepositoryFactory.create_user_repository(db)
    user = await asyncio.to_thread(repository.get_active, identity.id)
    if user is None:
        logger.warning("Authenticated subject has no active account", extra={"user_id": identity.id})
        raise _unauthorized("User not found")
    return user
