"""Role capability matrix and admin bootstrap.

RBAC Matrix (defaults applied when an account is created):
┌─────────────────────┬───────┬──────────┐
│ Permission          │ Admin │ Employee │
├─────────────────────┼───────┼──────────┤
│ sales               │  ✓    │   ✓      │
│ purchases           │  ✓    │          │
│ stock_in            │  ✓    │          │
│ stock_out           │  ✓    │          │
│ view_reports        │  ✓    │          │
└─────────────────────┴───────┴──────────┘

Admins always hold every permission regardless of what is stored on the row.
An admin may grant any permission to an employee afterwards.

Usage:
    python -m dukasmart.db.seed_rbac --username admin --password 'S3cret-pass'
"""

import argparse
import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.security import hash_password
from dukasmart.models.role import Permission, UserRole
from dukasmart.models.user import User

logger = logging.getLogger(__name__)

ROLE_PERMISSIONS: dict[UserRole, list[Permission]] = {
    UserRole.ADMIN: list(Permission),  # All permissions
    UserRole.EMPLOYEE: [Permission.SALES],
}


def default_permissions(role: UserRole) -> list[str]:
    """Permission values stored on a freshly created account."""
    if role == UserRole.ADMIN:
        return []
    return [p.value for p in ROLE_PERMISSIONS[role]]


async def count_users(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


async def seed_admin(db: AsyncSession, username: str, password: str) -> User | None:
    """Create the first admin account. No-op once any user exists."""
    if await count_users(db) > 0:
        logger.info("Users already present, skipping admin bootstrap")
        return None

    admin = User(
        username=username,
        hashed_password=hash_password(password),
        role=UserRole.ADMIN,
        permissions=[],
        is_active=True,
        bootstrap_admin=True,
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    logger.info("Bootstrap admin created: %s", username)
    return admin


async def _main(username: str, password: str) -> None:
    from dukasmart.db.base import async_session

    async with async_session() as db:
        await seed_admin(db, username, password)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()
    asyncio.run(_main(args.username, args.password))
