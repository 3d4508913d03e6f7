"""End-to-end API flows backed by sqlite and an in-process Redis fake."""

from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.infrastructure.cache.redis_client import RedisCacheManager
from app.infrastructure.llm.models import PredictedRisk, RiskForecast
from app.main import create_app


class _FakeRedisInner:
    def __init__(self):
        self._store = {}

    async def set(self, key, value, ex=None):
        self._store[key] = value
        return True

    async def get(self, key):
        return self._store.get(key)


class _FakeRedisClient:
    def __init__(self):
        self._client = _FakeRedisInner()

    async def close(self):
        return None

    async def health_check(self):
        return True

    def get_client(self):
        return self._client


@pytest.fixture
def llm_client():
    mock = Mock()
    mock.chat = AsyncMock(return_value="Everything is green.")
    mock.forecast_risks = AsyncMock(
        return_value=RiskForecast(
            predicted_risks=[
                PredictedRisk(
                    risk_category="Schedule",
                    risk_description="UAT likely to slip",
                    probability=80,
                    potential_impact="high",
                )
            ],
            portfolio_risk_score=70,
        )
    )
    return mock


@pytest_asyncio.fixture
async def test_app(test_database, llm_client, monkeypatch):
    """Create test FastAPI application."""
    from app.core import dependencies

    # TestClient without a context manager skips the lifespan, so wire by hand
    redis_client = _FakeRedisClient()
    monkeypatch.setattr(dependencies, "database", test_database)
    monkeypatch.setattr(dependencies, "redis_client", redis_client)
    monkeypatch.setattr(
        dependencies, "cache_manager", RedisCacheManager(redis_client, prefix="test")
    )
    monkeypatch.setattr(dependencies, "llm_client", llm_client)

    yield create_app()


@pytest.fixture
def client(test_app):
    """Create test client."""
    return TestClient(test_app)


def test_health_endpoint(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["services"] == {"database": True, "redis": True}
    assert "version" in data


def test_register_login_and_create_project(client):
    """A new user signs up, logs in and their project is persisted."""
    credentials = {"email": "dana@example.com", "password": "correct-horse"}
    assert client.post("/api/v1/auth/register", json=credentials).status_code == 201

    token = client.post("/api/v1/auth/login", json=credentials).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    created = client.post(
        "/api/v1/projects/",
        json={
            "name": "ERP Rollout",
            "start_date": "2025-01-01",
            "go_live_date": "2025-12-31",
        },
        headers=headers,
    )
    assert created.status_code == 201

    projects = client.get("/api/v1/projects/", headers=headers).json()
    assert [p["name"] for p in projects] == ["ERP Rollout"]


def test_risk_forecast_is_cached(client, auth_headers, llm_client):
    """The second forecast for a project is served from Redis."""
    project = client.post(
        "/api/v1/projects/",
        json={
            "name": "CRM Upgrade",
            "start_date": "2025-01-01",
            "go_live_date": "2025-12-31",
        },
        headers=auth_headers,
    ).json()
    payload = {"project_id": project["id"]}

    first = client.post("/api/v1/ai/forecast-risks", json=payload, headers=auth_headers)
    second = client.post("/api/v1/ai/forecast-risks", json=payload, headers=auth_headers)

    assert first.status_code == 200
    assert first.json()["cached"] is False
    assert first.json()["high_risk_insights_created"] == 1
    assert second.json()["cached"] is True
    assert second.json()["risk_forecast"]["portfolio_risk_score"] == 70
    llm_client.forecast_risks.assert_awaited_once()

    insights = client.get("/api/v1/ai/insights", headers=auth_headers).json()
    assert [i["title"] for i in insights["insights"]] == ["Risk Alert: Schedule"]


def test_import_tasks_and_build_graph(client, auth_headers):
    content = (
        "S.No,Owner,Action Item,Reported Date,Target Date,Status,Comments\n"
        "1,Alex,Configure SSO,02/Sep/25,30/Sep/25,In Progress,\n"
        "2,Priya,Data migration,03/Sep/25,10/Oct/25,Not Started,\n"
    )
    imported = client.post(
        "/api/v1/tasks/import",
        files={"file": ("tasks.csv", content.encode("utf-8"), "text/csv")},
        headers=auth_headers,
    )
    assert imported.json()["imported"] == 2

    tasks = client.get("/api/v1/tasks/", headers=auth_headers).json()
    by_serial = {t["serial_no"]: t["id"] for t in tasks}
    client.put(
        f"/api/v1/tasks/{by_serial[2]}/dependencies",
        json={"dependencies": [by_serial[1]]},
        headers=auth_headers,
    )

    graph = client.get("/api/v1/tasks/graph", headers=auth_headers).json()
    assert [(e["source"], e["target"]) for e in graph["graph"]["edges"]] == [
        (by_serial[1], by_serial[2])
    ]
