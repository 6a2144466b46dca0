"""Authentication dependencies.

Sign-in is handled by the external identity provider; it issues HS256
access tokens whose `sub` is the user's id. This module only verifies those
tokens and resolves them to an active `User`.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from designdesk.config import get_settings
from designdesk.database import get_db
from designdesk.logging_config import bind_user_context, get_logger
from designdesk.models import User
from designdesk.workflow.commands import Actor
from designdesk.workflow.policy import UserRole

logger = get_logger(__name__)

JWT_ACCESS_TOKEN_EXPIRE_MINUTES = 60


def _secret() -> str:
    secret = get_settings().jwt_secret_key
    if not secret:
        raise RuntimeError("DESIGNDESK_JWT_SECRET_KEY environment variable is required")
    return secret


def create_access_token(user_id: str, expires_minutes: int = JWT_ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """Create an access token the way the identity provider does (tests, seed)."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": user_id, "exp": expire, "type": "access"}
    return jwt.encode(payload, _secret(), algorithm=get_settings().jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and validate a JWT token. Raises HTTPException on failure."""
    try:
        return jwt.decode(token, _secret(), algorithms=[get_settings().jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    FastAPI dependency: extract and validate the Bearer token.

    Returns the active User ORM object or raises 401/403.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )

    token = auth_header.removeprefix("Bearer ").strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Empty token",
        )

    payload = decode_jwt(token)
    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    user_id = payload.get("sub")
    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if user is None or user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User not found or inactive",
        )

    bind_user_context(str(user.id), user.role)
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """FastAPI dependency: the current user, who must be an admin."""
    if user.role != UserRole.admin.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This action requires the 'admin' role",
        )
    return user


def actor_for(user: User) -> Actor:
    """Build the workflow Actor for an authenticated user."""
    return Actor(id=user.id, role=UserRole(user.role), username=user.username)
