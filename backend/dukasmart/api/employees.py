"""Employee management (admin only)."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import require_admin
from dukasmart.core.security import hash_password
from dukasmart.db.base import get_db
from dukasmart.db.seed_rbac import default_permissions
from dukasmart.models.role import Permission, UserRole
from dukasmart.models.user import User
from dukasmart.schemas.auth import CurrentUser
from dukasmart.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate, PermissionOption
from dukasmart.services import audit, notifications

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[EmployeeResponse])
async def list_employees(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return [EmployeeResponse.model_validate(u) for u in result.scalars().all()]


@router.get("/permissions", response_model=list[PermissionOption])
async def list_permissions(current_user: CurrentUser = Depends(require_admin)):
    """Capabilities that can be granted to an employee, for the account form."""
    return [PermissionOption(value=p, label=p.label) for p in Permission]


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    body: EmployeeCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create an account. Permissions default to the role's matrix row when omitted."""
    conditions = [User.username == body.username]
    if body.email:
        conditions.append(User.email == body.email)
    existing = await db.execute(select(User).where(or_(*conditions)))
    if existing.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already registered",
        )

    if body.permissions is None:
        permissions = default_permissions(body.role)
    else:
        permissions = [p.value for p in body.permissions]

    user = User(
        username=body.username,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        hashed_password=hash_password(body.password),
        role=body.role,
        permissions=permissions,
        is_active=True,
    )
    db.add(user)
    await db.flush()  # get user.id

    await notifications.publish(db, notifications.employee_added(user))
    await audit.record(
        db,
        user_id=current_user.id,
        action="CREATE",
        entity_type="users",
        entity_id=user.id,
        details={"username": user.username, "role": user.role.value, "permissions": permissions},
    )
    await db.commit()
    await db.refresh(user)

    logger.info("Employee created: %s role=%s by=%s", user.username, user.role.value, current_user.id)
    return EmployeeResponse.model_validate(user)


@router.patch("/{user_id}", response_model=EmployeeResponse)
async def update_employee(
    user_id: UUID,
    body: EmployeeUpdate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Change names, role, permissions or active flag."""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )

    update_data = body.model_dump(exclude_unset=True)
    if user.id == current_user.id:
        if update_data.get("is_active") is False:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot deactivate your own account",
            )
        if update_data.get("role") not in (None, UserRole.ADMIN):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot remove your own admin role",
            )

    if update_data.get("email") and update_data["email"] != user.email:
        clash = await db.execute(select(User.id).where(User.email == update_data["email"], User.id != user.id))
        if clash.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered",
            )

    for field, value in update_data.items():
        if value is None and field != "email":
            continue
        if field == "permissions":
            value = [p.value for p in value]
        setattr(user, field, value)

    await audit.record(
        db,
        user_id=current_user.id,
        action="UPDATE",
        entity_type="users",
        entity_id=user.id,
        details={k: str(v) for k, v in update_data.items()},
    )
    await db.commit()
    await db.refresh(user)

    return EmployeeResponse.model_validate(user)
