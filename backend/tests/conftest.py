"""Shared fixtures: a throwaway SQLite database per test and ASGI clients bound to it."""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import dukasmart.models  # noqa: F401
from dukasmart.core.security import hash_password
from dukasmart.db.base import Base, get_db
from dukasmart.main import app
from dukasmart.models.category import MainCategory, SubCategory
from dukasmart.models.product import Product
from dukasmart.models.role import Permission, UserRole
from dukasmart.models.user import User

PASSWORD = "Str0ng-pass"


@pytest.fixture
async def engine(tmp_path):
    # File-backed so concurrent sessions get separate connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'dukasmart.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def make_user(session_factory):
    async def _make(
        username: str,
        *,
        role: UserRole = UserRole.EMPLOYEE,
        permissions: list[Permission] | None = None,
        is_active: bool = True,
    ) -> User:
        async with session_factory() as session:
            user = User(
                username=username,
                first_name=username.capitalize(),
                hashed_password=hash_password(PASSWORD),
                role=role,
                permissions=[p.value for p in permissions or []],
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make


@pytest.fixture
async def admin(make_user):
    return await make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
async def make_client(session_factory):
    """Factory for ASGI clients; each keeps its own cookie jar (one session per user)."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    clients: list[AsyncClient] = []

    async def _make(username: str | None = None) -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        if username is not None:
            response = await client.post(
                "/api/auth/login", json={"username": username, "password": PASSWORD}
            )
            assert response.status_code == 200, response.text
        return client

    yield _make

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(admin, make_client):
    return await make_client(admin.username)


@pytest.fixture
async def sub_category(session_factory):
    async with session_factory() as session:
        main = MainCategory(name="Beverages")
        session.add(main)
        await session.flush()
        sub = SubCategory(name="Soft drinks", main_category_id=main.id)
        session.add(sub)
        await session.commit()
        await session.refresh(sub)
        return sub


@pytest.fixture
async def product(session_factory, sub_category):
    """A product with no stock, price 500 and the default threshold of 5."""
    async with session_factory() as session:
        item = Product(
            name="Soda 500ml",
            product_code="SODA-500",
            price=Decimal("500.00"),
            stock_quantity=0,
            low_stock_threshold=5,
            sub_category_id=sub_category.id,
        )
        session.add(item)
        await session.commit()
        await session.refresh(item)
        return item
