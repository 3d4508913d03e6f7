"""Global test configuration and fixtures."""

import os
from datetime import date, timedelta
from types import SimpleNamespace
from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["PROMETHEUS_METRICS_ENABLED"] = "false"

from app.core.security import security_service
from app.domain.entities import (
    Document,
    DocumentStatus,
    Idea,
    Milestone,
    MilestoneStatus,
    Project,
    RAGStatus,
    Risk,
    Task,
)
from app.infrastructure.db.database import Database
from tests._helpers.fakes import (
    FakeChecklistRepository,
    FakeDocumentRepository,
    FakeDocumentTemplateRepository,
    FakeIdeaRepository,
    FakeInsightRepository,
    FakeMetricsHistoryRepository,
    FakeMilestoneRepository,
    FakePhaseRepository,
    FakePredictionRepository,
    FakeProjectRepository,
    FakeRiskRepository,
    FakeStatusUpdateRepository,
    FakeSubtaskRepository,
    FakeTaskRepository,
    FakeUserRepository,
    FakeVendorRepository,
)


# Database fixtures
@pytest_asyncio.fixture
async def test_database() -> AsyncGenerator[Database, None]:
    """In-memory sqlite database with all tables created."""
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.initialize()
    await database.create_tables()

    yield database

    await database.close()


@pytest_asyncio.fixture
async def db_session(test_database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    async with test_database.async_session_maker() as session:
        yield session


# Authentication fixtures
@pytest.fixture
def test_user_id() -> str:
    """Test user ID."""
    return "test-user-123"


@pytest.fixture
def jwt_token(test_user_id: str) -> str:
    """Valid JWT token for testing."""
    return security_service.create_access_token(
        test_user_id, expires_delta=timedelta(hours=1)
    )


@pytest.fixture
def expired_jwt_token(test_user_id: str) -> str:
    """Expired JWT token for testing."""
    return security_service.create_access_token(
        test_user_id,
        expires_delta=timedelta(seconds=-1),  # Already expired
    )


@pytest.fixture
def auth_headers(jwt_token: str) -> Dict[str, str]:
    """Authorization headers for API requests."""
    return {"Authorization": f"Bearer {jwt_token}"}


# Repository fixtures
@pytest.fixture
def fake_repos() -> SimpleNamespace:
    """One in-memory fake per repository interface."""
    return SimpleNamespace(
        projects=FakeProjectRepository(),
        milestones=FakeMilestoneRepository(),
        risks=FakeRiskRepository(),
        status_updates=FakeStatusUpdateRepository(),
        documents=FakeDocumentRepository(),
        tasks=FakeTaskRepository(),
        subtasks=FakeSubtaskRepository(),
        ideas=FakeIdeaRepository(),
        templates=FakeDocumentTemplateRepository(),
        checklist=FakeChecklistRepository(),
        insights=FakeInsightRepository(),
        predictions=FakePredictionRepository(),
        users=FakeUserRepository(),
        phases=FakePhaseRepository(),
        metrics_history=FakeMetricsHistoryRepository(),
        vendors=FakeVendorRepository(),
    )


# Test data factories
class TestDataFactory:
    """Factory for creating test data."""

    __test__ = False

    @staticmethod
    def create_project(**kwargs) -> Project:
        defaults = {
            "name": "ERP Rollout",
            "project_manager": "Dana",
            "business_owner": "Finance",
            "tco": 100000,
            "actual_spent": 40000,
            "start_date": date(2025, 1, 1),
            "go_live_date": date(2025, 12, 31),
            "overall_rag": RAGStatus.GREEN,
        }
        defaults.update(kwargs)
        return Project(**defaults)

    @staticmethod
    def create_milestone(project_id, order_index: int = 0, **kwargs) -> Milestone:
        target = date(2025, 3, 1) + timedelta(days=30 * order_index)
        defaults = {
            "project_id": project_id,
            "name": f"Milestone {order_index + 1}",
            "target_date": target,
            "baseline_target_date": target,
            "order_index": order_index,
            "status": MilestoneStatus.PLANNED,
        }
        defaults.update(kwargs)
        return Milestone(**defaults)

    @staticmethod
    def create_risk(project_id, **kwargs) -> Risk:
        defaults = {
            "project_id": project_id,
            "risk_number": "R-001",
            "risk_details": "Vendor may miss the data migration window",
            "mitigation_plan": "Weekly checkpoint with vendor",
            "risk_reported_date": date(2025, 2, 1),
            "owner": "Dana",
            "rag_status": RAGStatus.AMBER,
        }
        defaults.update(kwargs)
        return Risk(**defaults)

    @staticmethod
    def create_document(project_id, **kwargs) -> Document:
        defaults = {
            "project_id": project_id,
            "name": "Business Case",
            "phase": "Phase 1: Initiation",
            "status": DocumentStatus.DRAFT,
        }
        defaults.update(kwargs)
        return Document(**defaults)

    @staticmethod
    def create_task(serial_no: int = 1, **kwargs) -> Task:
        defaults = {
            "serial_no": serial_no,
            "owner": ["Alex"],
            "action_item": f"Action item {serial_no}",
            "reported_date": date(2025, 9, 1),
            "target_date": date(2025, 9, 30),
            "status": "In Progress",
        }
        defaults.update(kwargs)
        return Task(**defaults)

    @staticmethod
    def create_idea(**kwargs) -> Idea:
        defaults = {
            "title": "Automate invoice matching",
            "description": "Use OCR to match invoices with purchase orders",
            "category": "Automation",
            "priority": "High",
        }
        defaults.update(kwargs)
        return Idea(**defaults)


@pytest.fixture
def test_factory():
    """Test data factory fixture."""
    return TestDataFactory


# Domain entity fixtures
@pytest.fixture
def sample_project() -> Project:
    return TestDataFactory.create_project(id=uuid4())


@pytest.fixture
def sample_milestones(sample_project: Project):
    return [
        TestDataFactory.create_milestone(sample_project.id, order_index=i)
        for i in range(3)
    ]


# Mock fixtures
@pytest.fixture
def mock_llm_client():
    """Mock LLM client for testing."""
    mock = Mock()
    mock.chat = AsyncMock(return_value="All projects are on track.")
    mock.prioritize_tasks = AsyncMock()
    mock.generate_status_report = AsyncMock()
    mock.forecast_risks = AsyncMock()
    mock.predict_milestones = AsyncMock()
    mock.portfolio_insights = AsyncMock()
    return mock


@pytest.fixture
def mock_cache_manager():
    """Mock cache manager for testing."""
    mock = Mock()
    mock.key = Mock(side_effect=lambda *parts: ":".join(["test", *map(str, parts)]))
    mock.get_temporary_data = AsyncMock(return_value=None)
    mock.set_temporary_data = AsyncMock()
    return mock

