from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, FrozenSet, Iterable, Optional, cast

from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


@dataclass(frozen=True)
class CallerIdentity:
    """Opaque caller id plus the role set asserted by the identity provider."""

    id: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def create_access_token(
    user_id: str,
    roles: Iterable[str] = (),
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: Subject of the token
        roles: Role names to embed in the ``roles`` claim
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: Dict[str, Any] = {"sub": user_id, "roles": sorted(set(roles)), "exp": expire}
    return cast(
        str,
        jwt.encode(to_encode, _secret_value(settings.secret_key), algorithm=settings.algorithm),
    )


class JwtIdentityProvider:
    """Verifies HS256 bearer tokens issued by the identity service."""

    def __init__(self, secret: Any = None, algorithm: Optional[str] = None) -> None:
        self._secret = _secret_value(secret if secret is not None else settings.secret_key)
        self._algorithm = algorithm or settings.algorithm

    def verify_caller(self, token: Optional[str]) -> CallerIdentity:
        if not token:
            raise UnauthorizedException("Not authenticated")
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except PyJWTError as e:
            logger.warning(f"JWT validation error: {str(e)}")
            raise UnauthorizedException("Could not validate credentials") from e

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            logger.warning("Token payload missing 'sub' field")
            raise UnauthorizedException("Could not validate credentials")

        raw_roles = payload.get("roles") or []
        if not isinstance(raw_roles, list):
            raw_roles = [raw_roles]
        return CallerIdentity(id=subject, roles=frozenset(str(role) for role in raw_roles))
