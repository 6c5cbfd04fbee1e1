"""Bearer token authentication for storefront users and admins.

Tokens are issued by the storefront's auth service and signed with the shared
``JWT_SECRET_KEY``. The ``sub`` claim carries the user UUID and ``role`` the
user's role.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request

from app.core.config import settings


@dataclass(frozen=True)
class CurrentUser:
    id: UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == settings.ADMIN_ROLE


def create_access_token(user_id: UUID, role: str = "customer", expires_in: int = 3600) -> str:
    """Sign a token the way the storefront's auth service does."""
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": datetime.now(UTC) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    """Decode and validate a bearer token.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
    """
    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    try:
        user_id = UUID(str(payload["sub"]))
    except (KeyError, ValueError):
        raise jwt.InvalidTokenError("Invalid subject claim") from None
    return CurrentUser(id=user_id, role=str(payload.get("role", "customer")))


def get_optional_user(request: Request) -> CurrentUser | None:
    """Return the authenticated user, or None for anonymous requests."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = auth_header[7:]
    if not token:
        raise HTTPException(status_code=401, detail="Token is required")

    try:
        return decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired") from None
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token") from None


def require_admin(user: CurrentUser | None = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
