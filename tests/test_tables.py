from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import ProgrammingError

from conftest import FakeResult
from pgdash.core.admin.migrations import migration_targets
from pgdash.core.config import settings


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


@pytest.mark.asyncio
async def test_list_tables(client: AsyncClient, db_session):
    db_session.queue(
        FakeResult(
            rows=[
                {"table_name": "orders", "table_type": "BASE TABLE", "row_count": 12, "size": "16 kB"}
            ]
        )
    )

    response = await client.get("/api/dev/tables")

    assert response.status_code == 200
    assert response.json()[0]["table_name"] == "orders"


@pytest.mark.asyncio
async def test_list_tables_invalid_environment(client: AsyncClient):
    response = await client.get("/api/staging/tables")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_tables_database_error(client: AsyncClient, db_session):
    db_session.queue(RuntimeError("connection refused"))

    response = await client.get("/api/dev/tables")

    assert response.status_code == 500
    assert response.json()["detail"] == "connection refused"


@pytest.mark.asyncio
async def test_table_schema_binds_table_name(client: AsyncClient, db_session):
    db_session.queue(
        FakeResult(rows=[{"column_name": "id", "data_type": "integer", "is_nullable": "NO"}])
    )

    response = await client.get("/api/dev/tables/orders/schema")

    assert response.status_code == 200
    assert response.json()[0]["column_name"] == "id"
    assert db_session.params[0] == {"table_name": "orders"}


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient, db_session):
    db_session.queue(
        FakeResult(
            rows=[
                {
                    "active_connections": 2,
                    "idle_connections": 3,
                    "total_connections": 5,
                    "max_connections": 100,
                }
            ]
        ),
        FakeResult(rows=[{"database_size": 1536, "blocks_hit": 99, "blocks_read": 1, "commits": 7}]),
        FakeResult(rows=[{"name": "pg_default", "size": "8 MB", "size_bytes": 8388608}]),
        FakeResult(rows=[]),
        FakeResult(rows=[{"query": "SELECT 1", "calls": 4, "total_exec_time": 2.0, "mean_exec_time": 0.5, "rows": 4}]),
    )

    response = await client.get("/api/dev/metrics")

    assert response.status_code == 200
    data = response.json()
    assert data["connections"] == {"active": 2, "idle": 3, "total": 5, "max": 100}
    assert data["performance"]["cache_hit_ratio"] == 99.0
    assert data["performance"]["commits"] == 7
    assert data["storage"]["database_size_formatted"] == "1.5 KB"
    assert data["storage"]["tablespaces"][0]["size_bytes"] == 8388608
    assert data["slow_queries"][0]["query"] == "SELECT 1..."


@pytest.mark.asyncio
async def test_metrics_without_pg_stat_statements(client: AsyncClient, db_session):
    db_session.queue(
        FakeResult(rows=[{"total_connections": 1}]),
        FakeResult(rows=[]),
        FakeResult(rows=[]),
        FakeResult(rows=[]),
        ProgrammingError("SELECT", {}, Exception("relation does not exist")),
    )

    response = await client.get("/api/dev/metrics")

    assert response.status_code == 200
    assert response.json()["slow_queries"] == []


@pytest.mark.asyncio
async def test_migrations(client: AsyncClient, db_session):
    applied = datetime(2026, 1, 2, tzinfo=timezone.utc)
    db_session.queue(
        FakeResult(
            scalars=[
                SimpleNamespace(
                    id=2,
                    version="0002",
                    name="add_orders",
                    description=None,
                    status="applied",
                    applied_at=applied,
                )
            ]
        )
    )

    response = await client.get("/api/dev/migrations")

    assert response.status_code == 200
    assert response.json()[0]["version"] == "0002"
    assert "migration_status" in db_session.statements[0]


@pytest.mark.asyncio
async def test_prod_migrations_read_ledger_table(client: AsyncClient, db_session):
    db_session.queue(FakeResult(scalars=[]))

    response = await client.get("/api/prod/migrations")

    assert response.status_code == 200
    assert response.json() == []
    assert "FROM migration_status" in db_session.statements[0]
    assert "ORDER BY migration_status.version DESC" in db_session.statements[0]


def test_migrations_target_every_environment():
    assert migration_targets() == {
        "dev": settings.DEV_DATABASE_URL,
        "prod": settings.PROD_DATABASE_URL,
    }


def test_migrations_target_one_environment():
    assert migration_targets("prod") == {"prod": settings.PROD_DATABASE_URL}

    with pytest.raises(ValueError):
        migration_targets("staging")
