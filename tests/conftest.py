import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from pgdash.main import app
from pgdash.core.database import get_db
from pgdash.core.sql import POSTGRES_DIALECT


class FakeResult:
    """Stands in for a SQLAlchemy Result in endpoint tests."""

    def __init__(self, rows=None, rowcount=None, returns_rows=True, scalars=None):
        self._rows = [dict(row) for row in rows or []]
        self._scalars = list(scalars or [])
        self.returns_rows = returns_rows
        self.rowcount = len(self._rows) if rowcount is None else rowcount

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None

    def keys(self):
        return list(self._rows[0].keys()) if self._rows else []

    def scalar(self):
        return next(iter(self._rows[0].values())) if self._rows else None

    def scalars(self):
        return _Scalars(self._scalars)


class _Scalars:
    def __init__(self, values):
        self._values = values

    def all(self):
        return list(self._values)


class _Savepoint:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeConnection:
    """Session connection; driver-level SQL lands in the same statement log."""

    def __init__(self, session):
        self.session = session
        self.dialect = POSTGRES_DIALECT

    async def exec_driver_sql(self, statement):
        return await self.session.execute(statement)


class FakeSession:
    """
    Records every statement and hands out queued results in order.
    An Exception in the queue is raised by the matching execute() call.
    """

    def __init__(self):
        self.results = []
        self.statements = []
        self.params = []
        self.commits = 0
        self.rollbacks = 0

    def queue(self, *results):
        self.results.extend(results)

    async def execute(self, statement, params=None):
        self.statements.append(str(statement).strip())
        self.params.append(params)
        result = self.results.pop(0) if self.results else FakeResult()
        if isinstance(result, Exception):
            raise result
        return result

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    async def connection(self):
        return FakeConnection(self)

    def begin_nested(self):
        return _Savepoint()


@pytest_asyncio.fixture(scope="function")
async def db_session():
    return FakeSession()


# Client
@pytest_asyncio.fixture(scope="function")
async def client(db_session: FakeSession):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
