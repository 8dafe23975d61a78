import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core import models, storage


async def active_configs(db_session):
    result = await db_session.execute(
        select(models.DatabaseConfig).where(models.DatabaseConfig.is_active.is_(True))
    )
    return result.scalars().all()


def config_payload(name, is_active=True, backend_type="postgresql"):
    return {
        "name": name,
        "backendType": backend_type,
        "connectionString": f"postgresql://localhost/{name}",
        "isActive": is_active,
    }


@pytest.mark.asyncio
async def test_no_active_config(client: AsyncClient):
    response = await client.get("/api/database/configs")
    assert response.status_code == 200
    assert response.json() == {"activeConfig": None}


@pytest.mark.asyncio
async def test_create_and_read_active_config(client: AsyncClient):
    response = await client.post("/api/database/configs", json=config_payload("sales"))
    assert response.status_code == 200
    created = response.json()
    assert created["name"] == "sales"
    assert created["backendType"] == "postgresql"
    assert created["isActive"] is True
    assert "id" in created

    response = await client.get("/api/database/configs")
    assert response.json()["activeConfig"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_activating_leaves_exactly_one_active(client: AsyncClient, db_session):
    for name in ["one", "two", "three"]:
        await client.post("/api/database/configs", json=config_payload(name))

    active = await active_configs(db_session)
    assert [config.name for config in active] == ["three"]


@pytest.mark.asyncio
async def test_inactive_config_keeps_current_active(client: AsyncClient, db_session):
    await client.post("/api/database/configs", json=config_payload("main"))
    await client.post("/api/database/configs", json=config_payload("spare", is_active=False))

    active = await active_configs(db_session)
    assert [config.name for config in active] == ["main"]


@pytest.mark.asyncio
async def test_backend_type_is_case_insensitive(client: AsyncClient):
    response = await client.post(
        "/api/database/configs",
        json=config_payload("warehouse", backend_type="SQLServer"),
    )
    assert response.status_code == 200
    assert response.json()["backendType"] == "sqlserver"


@pytest.mark.asyncio
async def test_unknown_backend_type_is_rejected(client: AsyncClient):
    response = await client.post(
        "/api/database/configs", json=config_payload("legacy", backend_type="oracle")
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_activates_and_keeps_backend_type(client: AsyncClient, db_session):
    first = (await client.post("/api/database/configs", json=config_payload("first"))).json()
    second = (
        await client.post(
            "/api/database/configs", json=config_payload("second", is_active=False)
        )
    ).json()

    response = await client.patch(
        f"/api/database/configs/{second['id']}",
        json={"isActive": True, "backendType": "sqlserver"},
    )
    assert response.status_code == 200
    assert response.json()["isActive"] is True
    assert response.json()["backendType"] == "postgresql"

    active = await active_configs(db_session)
    assert [config.id for config in active] == [second["id"]]

    response = await client.get(f"/api/database/configs/{first['id']}")
    assert response.json()["isActive"] is False


@pytest.mark.asyncio
async def test_missing_config_is_404(client: AsyncClient):
    assert (await client.get("/api/database/configs/999")).status_code == 404
    response = await client.patch("/api/database/configs/999", json={"name": "x"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_connection_test_success(client: AsyncClient, fake_backend, db_session):
    response = await client.post(
        "/api/database/test",
        json={"backendType": "postgresql", "connectionString": "postgresql://localhost/db"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Database connection successful"}
    assert fake_backend.created[0].closed == 1
    assert await storage.get_active_config(db_session) is None


@pytest.mark.asyncio
async def test_connection_test_failure(client: AsyncClient, fake_backend):
    fake_backend.reachable = False
    response = await client.post(
        "/api/database/test",
        json={"backendType": "sqlserver", "connectionString": "Server=nowhere"},
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Database connection failed"}
    assert fake_backend.created[0].closed == 1


@pytest.mark.asyncio
async def test_connection_test_unsupported_backend(client: AsyncClient):
    response = await client.post(
        "/api/database/test",
        json={"backendType": "oracle", "connectionString": "whatever"},
    )
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Unsupported database type: oracle",
    }


@pytest.mark.asyncio
async def test_seed_default_config_only_on_empty_store(db_session):
    created = await storage.seed_default_config(db_session, "postgresql://localhost/demo")
    assert created.is_active is True
    assert created.backend_type == "postgresql"

    assert await storage.seed_default_config(db_session, "postgresql://other/db") is None
    assert await storage.count_configs(db_session) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["isActive", "name", "connectionString"])
async def test_update_with_null_is_rejected(client: AsyncClient, db_session, field):
    created = (await client.post("/api/database/configs", json=config_payload("main"))).json()

    response = await client.patch(f"/api/database/configs/{created['id']}", json={field: None})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data"

    response = await client.get(f"/api/database/configs/{created['id']}")
    assert response.json()["isActive"] is True
    assert response.json()["name"] == "main"
