"""Bearer token handling and role checks.

Tokens are HS256 JWTs carrying the user id (``sub``) and role. A decoded
token becomes an immutable :class:`Identity` that lives for one request.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pytz
from jose import JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY
from core.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass(frozen=True)
class Identity:
    """The acting user of a request, as asserted by its bearer token."""

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def can_access(identity: Optional[Identity], owner_id: int) -> bool:
    """Return True when the identity may read or mutate a resource.

    Admins may touch anything; everyone else only what they own.

    Args:
        identity: The acting identity, or None for anonymous callers.
        owner_id: User id that owns the resource.
    """
    if identity is None:
        return False
    return identity.is_admin or identity.user_id == owner_id


def create_access_token(
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
    secret_key: str = JWT_SECRET_KEY,
) -> str:
    """Create a signed JWT access token.

    Args:
        user_id: User id stored in the ``sub`` claim.
        role: Role stored in the ``role`` claim.
        expires_delta: Optional expiration time delta.
        secret_key: Signing key. Defaults to JWT_SECRET_KEY.

    Returns:
        Encoded JWT token string.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(user_id),
        "role": role,
        "exp": datetime.now(pytz.utc) + expires_delta,
    }
    return jwt.encode(to_encode, secret_key, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret_key: str = JWT_SECRET_KEY) -> Identity:
    """Verify a JWT access token and return the identity it asserts.

    Args:
        token: Encoded JWT token string.
        secret_key: Verification key. Defaults to JWT_SECRET_KEY.

    Returns:
        Identity built from the token claims.

    Raises:
        InvalidTokenError: If the signature, expiry or claims are invalid.
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    subject = payload.get("sub")
    role = payload.get("role")
    if subject is None or role not in ROLES:
        raise InvalidTokenError("Token is missing required claims")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as e:
        raise InvalidTokenError("Token subject is not a user id") from e
    return Identity(user_id=user_id, role=role)


def parse_bearer_header(value: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` value."""
    if not value:
        return None
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
