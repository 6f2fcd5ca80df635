"""HTTP tests for the health endpoint with a stand-in database session."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from leadflow.adapters.persistence.database import get_session
from leadflow.main import create_app


class FakeResult:
    def __init__(self, value):
        self._value = value

    def scalar(self):
        return self._value


class FakeSession:
    """Answers ``SELECT 1`` and the alembic revision lookup."""

    def __init__(self, revision: str | None = "001", error: Exception | None = None):
        self.revision = revision
        self.error = error
        self.statements: list[str] = []

    async def execute(self, statement):
        self.statements.append(str(statement))
        if self.error is not None:
            raise self.error
        if "alembic_version" in str(statement):
            return FakeResult(self.revision)
        return FakeResult(1)


async def _get_health(session: FakeSession) -> dict:
    app = create_app()
    app.dependency_overrides[get_session] = lambda: session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.get("/api/health")
    assert resp.status_code == 200
    return resp.json()


@pytest_asyncio.fixture
async def healthy():
    session = FakeSession()
    return session, await _get_health(session)


@pytest.mark.asyncio
async def test_health_ok_with_migrated_schema(healthy):
    session, body = healthy

    assert body["status"] == "ok"
    assert body["database"] == "connected"
    assert body["schema_revision"] == "001"
    assert session.statements == ["SELECT 1", "SELECT version_num FROM alembic_version"]


@pytest.mark.asyncio
async def test_health_reports_pool_counters(healthy):
    _, body = healthy

    pool = body["pool"]
    assert pool["class"].endswith("QueuePool")
    assert pool["checked_out"] == 0
    assert pool["size"] >= 1


@pytest.mark.asyncio
async def test_health_degraded_without_migrations():
    body = await _get_health(FakeSession(revision=None))

    assert body["status"] == "degraded"
    assert body["database"] == "connected"
    assert body["schema_revision"] is None


@pytest.mark.asyncio
async def test_health_degraded_when_database_unreachable():
    body = await _get_health(FakeSession(error=OSError("connection refused")))

    assert body["status"] == "degraded"
    assert body["database"] == "error: connection refused"
    assert body["schema_revision"] is None
    assert "pool" in body
