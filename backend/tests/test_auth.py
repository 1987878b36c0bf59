"""Unit tests for auth: security utils, the permission gate and the session flow."""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from jose import JWTError, jwt
from sqlalchemy import select

from dukasmart.core.config import settings
from dukasmart.core.security import (
    create_session_token,
    decode_session_token,
    hash_password,
    session_expiry,
    verify_password,
)
from dukasmart.db.seed_rbac import seed_admin
from dukasmart.models.role import Permission, UserRole
from dukasmart.models.user import User
from dukasmart.schemas.auth import CurrentUser
from conftest import PASSWORD


def _current_user(role: UserRole, permissions: list[Permission]) -> CurrentUser:
    return CurrentUser(
        id=uuid.uuid4(),
        username="someone",
        role=role,
        permissions=permissions,
        is_active=True,
    )


# ── Password hashing ──────────────────────────────

def test_hash_and_verify():
    plain = "SecurePass123!"
    hashed = hash_password(plain)
    assert hashed != plain
    assert verify_password(plain, hashed)
    assert not verify_password("wrong", hashed)


# ── Session token ─────────────────────────────────

def test_create_and_decode_session_token():
    sid = uuid.uuid4()
    uid = uuid.uuid4()
    token = create_session_token(sid, uid, session_expiry())
    assert decode_session_token(token) == (sid, uid)


def test_expired_session_token():
    token = create_session_token(uuid.uuid4(), uuid.uuid4(), session_expiry(timedelta(seconds=-1)))
    with pytest.raises(JWTError):
        decode_session_token(token)


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode(
        {"sid": str(uuid.uuid4()), "sub": str(uuid.uuid4())}, "not-the-key", algorithm=settings.ALGORITHM
    )
    with pytest.raises(JWTError):
        decode_session_token(token)


def test_token_without_session_id_is_rejected():
    token = jwt.encode({"sub": str(uuid.uuid4())}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(JWTError):
        decode_session_token(token)


# ── Permission matrix sanity ──────────────────────

def test_rbac_matrix():
    from dukasmart.db.seed_rbac import ROLE_PERMISSIONS, default_permissions

    # Admin has ALL permissions
    assert set(ROLE_PERMISSIONS[UserRole.ADMIN]) == set(Permission)
    assert ROLE_PERMISSIONS[UserRole.EMPLOYEE] == [Permission.SALES]

    # Nothing stored for admins; the role grants everything
    assert default_permissions(UserRole.ADMIN) == []
    assert default_permissions(UserRole.EMPLOYEE) == ["sales"]


def test_admin_effective_permissions_ignore_stored_list():
    from dukasmart.models.user import User

    admin = User(username="boss", hashed_password="x", role=UserRole.ADMIN, permissions=[])
    assert admin.effective_permissions == list(Permission)

    clerk = User(username="clerk", hashed_password="x", role=UserRole.EMPLOYEE, permissions=["stock_out", "sales"])
    assert clerk.effective_permissions == [Permission.SALES, Permission.STOCK_OUT]
    assert not clerk.has_permission(Permission.VIEW_REPORTS)


def test_ensure_permission_admin_bypass():
    from dukasmart.core.deps import ensure_permission

    ensure_permission(_current_user(UserRole.ADMIN, []), Permission.VIEW_REPORTS)


def test_ensure_permission_denies_with_fixed_message():
    from dukasmart.core.deps import ensure_permission

    with pytest.raises(HTTPException) as exc_info:
        ensure_permission(_current_user(UserRole.EMPLOYEE, [Permission.SALES]), Permission.PURCHASES)

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "Permission denied"


@pytest.mark.asyncio
async def test_require_admin_rejects_employee():
    from dukasmart.core.deps import require_admin

    with pytest.raises(HTTPException) as exc_info:
        await require_admin(_current_user(UserRole.EMPLOYEE, list(Permission)))
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_get_current_user_without_cookie():
    from dukasmart.core.deps import get_current_user

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token=None, db=MagicMock())
    assert exc_info.value.status_code == 401


# ── Session flow ──────────────────────────────────

@pytest.mark.asyncio
async def test_first_registration_becomes_admin(make_client):
    client = await make_client()
    response = await client.post(
        "/api/auth/register",
        json={"username": "founder", "password": PASSWORD, "first_name": "Asha"},
    )
    assert response.status_code == 201
    assert response.json()["role"] == "admin"
    assert set(response.json()["permissions"]) == {p.value for p in Permission}

    other = await make_client()
    response = await other.post("/api/auth/register", json={"username": "latecomer", "password": PASSWORD})
    assert response.status_code == 201
    assert response.json()["role"] == "employee"
    assert response.json()["permissions"] == []


@pytest.mark.asyncio
async def test_register_racing_bootstrap_falls_back_to_employee(make_client, session_factory, monkeypatch):
    async with session_factory() as session:
        await seed_admin(session, "owner", PASSWORD)

    # Registration still saw an empty system when it counted users
    monkeypatch.setattr("dukasmart.api.auth.count_users", AsyncMock(return_value=0))

    client = await make_client()
    response = await client.post("/api/auth/register", json={"username": "second", "password": PASSWORD})
    assert response.status_code == 201
    assert response.json()["role"] == "employee"

    async with session_factory() as session:
        admins = (await session.execute(select(User.username).where(User.role == UserRole.ADMIN))).scalars().all()
    assert admins == ["owner"]


@pytest.mark.asyncio
async def test_register_duplicate_username(make_client, admin):
    client = await make_client()
    response = await client.post("/api/auth/register", json={"username": admin.username, "password": PASSWORD})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_register_validation_errors_list_fields(make_client):
    client = await make_client()
    response = await client.post("/api/auth/register", json={"username": "ab", "password": "short"})
    assert response.status_code == 422
    body = response.json()
    assert body["detail"] == "Validation failed"
    assert {error["field"] for error in body["errors"]} == {"username", "password"}


@pytest.mark.asyncio
async def test_login_wrong_password(make_client, admin):
    client = await make_client()
    response = await client.post("/api/auth/login", json={"username": admin.username, "password": "nope-nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(make_client, make_user):
    await make_user("ghost", is_active=False)
    client = await make_client()
    response = await client.post("/api/auth/login", json={"username": "ghost", "password": PASSWORD})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_current_user_and_logout(admin_client):
    response = await admin_client.get("/api/auth/user")
    assert response.status_code == 200
    assert response.json()["username"] == "admin"

    response = await admin_client.post("/api/auth/logout")
    assert response.status_code == 200

    response = await admin_client.get("/api/auth/user")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_revoked_session_cookie_is_rejected(admin_client, make_client):
    cookie = admin_client.cookies.get(settings.SESSION_COOKIE_NAME)
    await admin_client.post("/api/auth/logout")

    replay = await make_client()
    response = await replay.get("/api/auth/user", headers={"Cookie": f"{settings.SESSION_COOKIE_NAME}={cookie}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_requires_session(make_client):
    client = await make_client()
    response = await client.get("/api/products")
    assert response.status_code == 401
