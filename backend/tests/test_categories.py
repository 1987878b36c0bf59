"""Tests for category endpoints."""

from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException

from dukasmart.models.role import Permission


@pytest.mark.asyncio
async def test_create_main_category_duplicate_name():
    """Creating a main category with an existing name should fail."""
    from dukasmart.api.categories import create_main_category
    from dukasmart.schemas.category import MainCategoryCreate

    mock_user = MagicMock()
    mock_user.id = uuid.uuid4()

    mock_db = AsyncMock()
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = MagicMock()
    mock_db.execute.return_value = mock_result

    with pytest.raises(HTTPException) as exc_info:
        await create_main_category(MainCategoryCreate(name="Beverages"), mock_user, mock_db)

    assert exc_info.value.status_code == 409
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_sub_category_unknown_main():
    """A sub category must hang under an existing main category."""
    from dukasmart.api.categories import create_sub_category
    from dukasmart.schemas.category import SubCategoryCreate

    mock_user = MagicMock()
    mock_db = AsyncMock()
    mock_db.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await create_sub_category(
            SubCategoryCreate(name="Juices", main_category_id=uuid.uuid4()), mock_user, mock_db
        )

    assert exc_info.value.status_code == 404


# ── Through the API ───────────────────────────────

@pytest.mark.asyncio
async def test_category_tree_and_counts(admin_client):
    response = await admin_client.post("/api/categories/main", json={"name": "Household"})
    assert response.status_code == 201
    main_id = response.json()["id"]

    response = await admin_client.post(
        "/api/categories/sub", json={"name": "Cleaning", "main_category_id": main_id}
    )
    assert response.status_code == 201
    sub_id = response.json()["id"]

    response = await admin_client.post(
        "/api/categories/sub", json={"name": "Cleaning", "main_category_id": main_id}
    )
    assert response.status_code == 409

    response = await admin_client.post(
        "/api/products",
        json={"name": "Bleach 1L", "product_code": "BLE-1", "price": "350.00", "sub_category_id": sub_id},
    )
    assert response.status_code == 201
    product_id = response.json()["id"]

    mains = (await admin_client.get("/api/categories/main")).json()
    household = next(c for c in mains if c["id"] == main_id)
    assert household["sub_category_count"] == 1
    assert household["product_count"] == 1

    subs = (await admin_client.get("/api/categories/sub", params={"main_category_id": main_id})).json()
    assert [s["product_count"] for s in subs] == [1]

    # Counts follow deletions
    response = await admin_client.delete(f"/api/products/{product_id}")
    assert response.status_code == 204
    subs = (await admin_client.get("/api/categories/sub", params={"main_category_id": main_id})).json()
    assert [s["product_count"] for s in subs] == [0]


@pytest.mark.asyncio
async def test_employee_cannot_create_category(make_user, make_client):
    await make_user("clerk", permissions=list(Permission))
    client = await make_client("clerk")

    response = await client.post("/api/categories/main", json={"name": "Snacks"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Permission denied"

    # Reading is open to every signed-in user
    response = await client.get("/api/categories/main")
    assert response.status_code == 200
