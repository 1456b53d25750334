"""
API flows through the real routers with the database dependencies pointed
at the per-test SQLite file.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from tasktracker.api.main import app
from tasktracker.core.db import get_session, get_session_maker
from tasktracker.core.jwt import create_access_token
from tasktracker.models import UserRole


@pytest.fixture
async def client(session_maker):
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_maker] = lambda: session_maker

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.pop(get_session, None)
    app.dependency_overrides.pop(get_session_maker, None)


def _auth(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
async def people(make_user, async_db_session):
    admin = await make_user("Admin", role=UserRole.ADMIN)
    seven = await make_user("Seven")
    nine = await make_user("Nine")
    await async_db_session.commit()
    return admin, seven, nine


@pytest.mark.asyncio
async def test_department_manager_lifecycle(client, people) -> None:
    admin, seven, nine = people

    created = await client.post(
        "/api/v1/departments",
        json={"name": "Finance", "manager_id": seven.id},
        headers=_auth(admin),
    )
    assert created.status_code == 201
    department = created.json()["data"]
    assert department["manager_id"] == seven.id

    me = await client.get("/api/v1/auth/me", headers=_auth(seven))
    assert me.json()["data"]["role"] == "manager"

    updated = await client.put(
        f"/api/v1/departments/{department['id']}",
        json={"manager_id": nine.id},
        headers=_auth(admin),
    )
    assert updated.status_code == 200

    seven_me = await client.get("/api/v1/auth/me", headers=_auth(seven))
    nine_me = await client.get("/api/v1/auth/me", headers=_auth(nine))
    assert seven_me.json()["data"]["role"] == "employee"
    assert nine_me.json()["data"]["role"] == "manager"

    conflict = await client.post(
        "/api/v1/departments",
        json={"name": "Treasury", "manager_id": nine.id},
        headers=_auth(admin),
    )
    assert conflict.status_code == 409
    assert conflict.json()["error"]["code"] == "ConflictError"


@pytest.mark.asyncio
async def test_admin_routes_reject_non_admin(client, people) -> None:
    _, seven, _ = people

    response = await client.get("/api/v1/departments", headers=_auth(seven))

    assert response.status_code == 403
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client) -> None:
    response = await client.get("/api/v1/tasks")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_subtask_status_flow(client, people) -> None:
    _, seven, _ = people
    headers = _auth(seven)
    base = {"description": "d", "deadline": "2030-01-01T00:00:00Z", "priority": "high"}

    parent = (
        await client.post("/api/v1/tasks", json={"title": "Parent", **base}, headers=headers)
    ).json()["data"]
    child = (
        await client.post(
            "/api/v1/tasks",
            json={"title": "Child", "parent_id": parent["id"], **base},
            headers=headers,
        )
    ).json()["data"]

    response = await client.patch(
        f"/api/v1/tasks/{child['id']}/status",
        json={"status": "completed"},
        headers=headers,
    )
    assert response.status_code == 200

    listing = (await client.get("/api/v1/tasks", headers=headers)).json()["data"]
    statuses = {task["id"]: task["status"] for task in listing}
    assert statuses[parent["id"]] == "completed"

    stats = (await client.get("/api/v1/tasks/stats", headers=headers)).json()["data"]
    assert stats == {"total": 2, "todo": 0, "in_progress": 0, "completed": 2, "blocker": 0}

    in_progress = await client.get(
        "/api/v1/tasks", params={"status": "in-progress"}, headers=headers
    )
    assert in_progress.status_code == 200
    assert in_progress.json()["data"] == []


@pytest.mark.asyncio
async def test_role_consistency_endpoints(client, people, make_user, async_db_session) -> None:
    admin, _, _ = people
    await make_user("Stale", role=UserRole.MANAGER)
    await async_db_session.commit()

    report = (await client.get("/api/v1/admin/role-consistency", headers=_auth(admin))).json()
    assert report["data"]["is_consistent"] is False

    result = await client.post("/api/v1/admin/role-consistency/sync", headers=_auth(admin))
    assert result.json()["data"] == {"demoted": 1, "promoted": 0, "failed": 0}


@pytest.mark.asyncio
async def test_health(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ok"
