"""Authentication endpoints: register, login, logout, current user."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.config import settings
from dukasmart.core.deps import get_current_user, get_session_id
from dukasmart.core.security import create_session_token, hash_password, session_expiry, verify_password
from dukasmart.db.base import get_db
from dukasmart.db.seed_rbac import count_users
from dukasmart.models.mixins import utcnow
from dukasmart.models.role import UserRole
from dukasmart.models.user import User, UserSession
from dukasmart.schemas.auth import CurrentUser, LoginRequest, MessageResponse, RegisterRequest
from dukasmart.services import audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _start_session(db: AsyncSession, user: User, request: Request, response: Response) -> None:
    """Persist a session row and hand its signed id to the client as a cookie."""
    expires_at = session_expiry()
    session = UserSession(
        user_id=user.id,
        expires_at=expires_at,
        user_agent=(request.headers.get("user-agent") or "")[:255] or None,
    )
    db.add(session)
    await db.flush()  # get session.id

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(session.id, user.id, expires_at),
        max_age=settings.SESSION_TTL_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/login", response_model=CurrentUser)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate via username + password and start a cookie session."""
    result = await db.execute(select(User).where(User.username == body.username))
    user = result.scalar_one_or_none()

    if not user or not user.is_active or not verify_password(body.password, user.hashed_password):
        logger.info("Failed login for username=%s", body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    user.last_login_at = utcnow()
    await _start_session(db, user, request, response)
    await audit.record(db, user_id=user.id, action="LOGIN", entity_type="users", entity_id=user.id)
    await db.commit()
    await db.refresh(user)

    logger.info("User logged in: %s", user.username)
    return CurrentUser.from_user(user)


def _new_account(body: RegisterRequest, role: UserRole) -> User:
    return User(
        username=body.username,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        hashed_password=hash_password(body.password),
        role=role,
        permissions=[],
        is_active=True,
        bootstrap_admin=True if role == UserRole.ADMIN else None,
        last_login_at=utcnow(),
    )


@router.post("/register", response_model=CurrentUser, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Self-service sign-up. The first account of an empty system becomes the admin."""
    conditions = [User.username == body.username]
    if body.email:
        conditions.append(User.email == body.email)
    existing = await db.execute(select(User).where(or_(*conditions)))
    if existing.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already registered",
        )

    role = UserRole.ADMIN if await count_users(db) == 0 else UserRole.EMPLOYEE
    user = _new_account(body, role)
    db.add(user)
    try:
        await db.flush()  # get user.id
    except IntegrityError:
        if role != UserRole.ADMIN:
            raise
        # A concurrent sign-up already claimed the bootstrap admin slot
        await db.rollback()
        role = UserRole.EMPLOYEE
        user = _new_account(body, role)
        db.add(user)
        await db.flush()

    await _start_session(db, user, request, response)
    await audit.record(
        db,
        user_id=user.id,
        action="CREATE",
        entity_type="users",
        entity_id=user.id,
        details={"username": user.username, "role": role.value, "source": "register"},
    )
    await db.commit()
    await db.refresh(user)

    logger.info("User registered: %s role=%s", user.username, role.value)
    return CurrentUser.from_user(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    session_id=Depends(get_session_id),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the server-side session and clear the cookie."""
    if session_id is not None:
        await db.execute(
            update(UserSession)
            .where(UserSession.id == session_id, UserSession.revoked_at.is_(None))
            .values(revoked_at=utcnow())
        )
        await db.commit()

    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=CurrentUser)
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Return the profile of the current authenticated user."""
    return current_user
