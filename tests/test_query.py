import pytest
from httpx import AsyncClient

from conftest import FakeResult


@pytest.mark.asyncio
async def test_readonly_query(client: AsyncClient, db_session):
    db_session.queue(FakeResult(rows=[{"total": 4}]))

    response = await client.post(
        "/api/dev/query", json={"query": "SELECT count(*) AS total FROM orders"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["rows"] == [{"total": 4}]
    assert data["row_count"] == 1
    assert data["fields"] == ["total"]
    assert data["command"] == "SELECT"
    assert db_session.statements == ["SELECT count(*) AS total FROM orders"]


@pytest.mark.asyncio
async def test_readonly_rejects_writes(client: AsyncClient, db_session):
    response = await client.post(
        "/api/dev/query", json={"query": "UPDATE orders SET total = 0"}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Only SELECT queries are allowed in readonly mode"
    assert db_session.statements == []


@pytest.mark.asyncio
async def test_write_query_when_not_readonly(client: AsyncClient, db_session):
    db_session.queue(FakeResult(returns_rows=False, rowcount=2))

    response = await client.post(
        "/api/prod/query",
        json={"query": "UPDATE orders SET total = 0 WHERE id < 3", "readonly": False},
    )

    assert response.status_code == 200
    assert response.json()["row_count"] == 2
    assert response.json()["command"] == "UPDATE"
    assert db_session.commits == 1


@pytest.mark.asyncio
async def test_query_failure_rolls_back(client: AsyncClient, db_session):
    db_session.queue(RuntimeError("syntax error"))

    response = await client.post("/api/dev/query", json={"query": "SELECT FROM"})

    assert response.status_code == 500
    assert response.json()["detail"] == "syntax error"
    assert db_session.rollbacks == 1


@pytest.mark.asyncio
async def test_blank_query_is_rejected(client: AsyncClient, db_session):
    response = await client.post("/api/dev/query", json={"query": "   \n\t"})

    assert response.status_code == 422
    assert db_session.statements == []
