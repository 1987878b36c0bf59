"""Employee management endpoints."""

import pytest

from dukasmart.models.role import Permission
from conftest import PASSWORD


@pytest.mark.asyncio
async def test_create_employee_with_role_defaults(admin_client, make_client):
    response = await admin_client.post(
        "/api/employees",
        json={"username": "wanjiku", "password": PASSWORD, "first_name": "Wanjiku", "last_name": "Kamau"},
    )
    assert response.status_code == 201
    employee = response.json()
    assert employee["role"] == "employee"
    assert employee["permissions"] == ["sales"]
    assert "hashed_password" not in employee

    feed = (await admin_client.get("/api/notifications")).json()
    added = [n for n in feed["items"] if n["type"] == "employee_added"]
    assert len(added) == 1
    assert "Wanjiku Kamau" in added[0]["message"]

    # The new account can sign in straight away
    await make_client("wanjiku")


@pytest.mark.asyncio
async def test_create_employee_with_explicit_permissions(admin_client):
    response = await admin_client.post(
        "/api/employees",
        json={
            "username": "storekeeper",
            "password": PASSWORD,
            "first_name": "Otieno",
            "last_name": "Odhiambo",
            "permissions": ["stock_in", "stock_out"],
        },
    )
    assert response.status_code == 201
    assert response.json()["permissions"] == ["stock_in", "stock_out"]

    response = await admin_client.post(
        "/api/employees",
        json={"username": "storekeeper", "password": PASSWORD, "first_name": "A", "last_name": "B"},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_permissions_and_deactivate(admin_client, make_user, make_client):
    clerk = await make_user("clerk", permissions=[Permission.SALES])

    response = await admin_client.patch(
        f"/api/employees/{clerk.id}", json={"permissions": ["sales", "view_reports"]}
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == ["sales", "view_reports"]

    client = await make_client("clerk")
    assert (await client.get("/api/reports/low-stock")).status_code == 200

    response = await admin_client.patch(f"/api/employees/{clerk.id}", json={"is_active": False})
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    # Existing sessions stop working once the account is disabled
    assert (await client.get("/api/auth/user")).status_code == 401


@pytest.mark.asyncio
async def test_admin_cannot_deactivate_self(admin_client, admin):
    response = await admin_client.patch(f"/api/employees/{admin.id}", json={"is_active": False})
    assert response.status_code == 400
    assert (await admin_client.get("/api/auth/user")).status_code == 200


@pytest.mark.asyncio
async def test_admin_cannot_demote_self(admin_client, admin):
    response = await admin_client.patch(f"/api/employees/{admin.id}", json={"role": "employee"})
    assert response.status_code == 400

    me = (await admin_client.get("/api/auth/user")).json()
    assert me["role"] == "admin"
    assert (await admin_client.get("/api/employees")).status_code == 200


@pytest.mark.asyncio
async def test_employee_routes_are_admin_only(make_user, make_client):
    await make_user("clerk", permissions=list(Permission))
    client = await make_client("clerk")

    assert (await client.get("/api/employees")).status_code == 403
    response = await client.post(
        "/api/employees",
        json={"username": "sneaky", "password": PASSWORD, "first_name": "S", "last_name": "N"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_employees(admin_client, make_user):
    await make_user("clerk")
    employees = (await admin_client.get("/api/employees")).json()
    assert {e["username"] for e in employees} == {"admin", "clerk"}
    admin_row = next(e for e in employees if e["username"] == "admin")
    assert admin_row["permissions"] == [p.value for p in Permission]


@pytest.mark.asyncio
async def test_permission_options(admin_client):
    options = (await admin_client.get("/api/employees/permissions")).json()
    assert [o["value"] for o in options] == [p.value for p in Permission]
    assert {"value": "view_reports", "label": "View Reports"} in options
