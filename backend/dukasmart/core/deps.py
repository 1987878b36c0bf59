"""Dependency injection: session-cookie auth and the role/permission gate."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyCookie
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.config import settings
from dukasmart.core.security import decode_session_token
from dukasmart.db.base import get_db
from dukasmart.models.mixins import utcnow
from dukasmart.models.role import Permission
from dukasmart.models.user import User, UserSession
from dukasmart.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

session_cookie = APIKeyCookie(name=settings.SESSION_COOKIE_NAME, auto_error=False)

PERMISSION_DENIED = "Permission denied"


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
    )


async def get_current_user(
    token: str | None = Depends(session_cookie),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the session cookie to an active user. Raises 401 otherwise."""
    if not token:
        raise _unauthenticated()
    try:
        session_id, user_id = decode_session_token(token)
    except JWTError:
        raise _unauthenticated()

    result = await db.execute(
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(
            UserSession.id == session_id,
            UserSession.user_id == user_id,
            UserSession.revoked_at.is_(None),
            UserSession.expires_at > utcnow(),
        )
    )
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise _unauthenticated()

    return CurrentUser.from_user(user)


async def get_session_id(token: str | None = Depends(session_cookie)):
    """Session row id behind the cookie, or None. Used by logout."""
    if not token:
        return None
    try:
        session_id, _ = decode_session_token(token)
    except JWTError:
        return None
    return session_id


def ensure_permission(user: CurrentUser, permission: Permission) -> None:
    """Raise 403 unless the user holds `permission`. Admins hold every permission."""
    if not user.has_permission(permission):
        logger.warning("Permission %s denied for user=%s", permission.value, user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=PERMISSION_DENIED)


def require_permission(*required: Permission):
    """Dependency factory: checks the user has ALL required permissions."""

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        for permission in required:
            ensure_permission(user, permission)
        return user

    return checker


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Only admins may pass."""
    if not user.is_admin:
        logger.warning("Admin route denied for user=%s role=%s", user.id, user.role.value)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=PERMISSION_DENIED)
    return user
