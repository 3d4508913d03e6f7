"""Fixtures wiring the FastAPI app to in-memory repositories."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.application.services import (
    AIService,
    AnalyticsService,
    AuthService,
    ChecklistService,
    IdeaService,
    PhaseService,
    ProjectService,
    TaskService,
    VendorService,
)
from app.core.dependencies import (
    get_ai_service,
    get_analytics_service,
    get_auth_service,
    get_checklist_service,
    get_idea_service,
    get_phase_service,
    get_project_service,
    get_task_service,
    get_vendor_service,
)
from app.core.security import HTMLSanitizer, security_service
from app.main import create_app


@pytest.fixture
def services(fake_repos, mock_llm_client, mock_cache_manager) -> SimpleNamespace:
    return SimpleNamespace(
        projects=ProjectService(
            project_repo=fake_repos.projects,
            milestone_repo=fake_repos.milestones,
            risk_repo=fake_repos.risks,
            status_update_repo=fake_repos.status_updates,
            document_repo=fake_repos.documents,
            checklist_repo=fake_repos.checklist,
            phase_repo=fake_repos.phases,
            vendor_repo=fake_repos.vendors,
            metrics_history_repo=fake_repos.metrics_history,
            sanitizer=HTMLSanitizer(),
        ),
        tasks=TaskService(fake_repos.tasks, fake_repos.subtasks),
        checklist=ChecklistService(
            template_repo=fake_repos.templates,
            checklist_repo=fake_repos.checklist,
            project_repo=fake_repos.projects,
        ),
        ideas=IdeaService(fake_repos.ideas),
        analytics=AnalyticsService(
            project_repo=fake_repos.projects,
            milestone_repo=fake_repos.milestones,
            risk_repo=fake_repos.risks,
            document_repo=fake_repos.documents,
            task_repo=fake_repos.tasks,
            idea_repo=fake_repos.ideas,
            metrics_history_repo=fake_repos.metrics_history,
        ),
        ai=AIService(
            llm_client=mock_llm_client,
            project_repo=fake_repos.projects,
            milestone_repo=fake_repos.milestones,
            risk_repo=fake_repos.risks,
            document_repo=fake_repos.documents,
            task_repo=fake_repos.tasks,
            idea_repo=fake_repos.ideas,
            insight_repo=fake_repos.insights,
            prediction_repo=fake_repos.predictions,
            cache_manager=mock_cache_manager,
        ),
        phases=PhaseService(
            phase_repo=fake_repos.phases,
            template_repo=fake_repos.templates,
            checklist_repo=fake_repos.checklist,
            project_repo=fake_repos.projects,
        ),
        vendors=VendorService(fake_repos.vendors, fake_repos.projects),
        auth=AuthService(fake_repos.users, security_service),
    )


@pytest.fixture
def client(services):
    """Test client without lifespan; every service is backed by fakes."""
    app = create_app()
    app.dependency_overrides.update(
        {
            get_project_service: lambda: services.projects,
            get_task_service: lambda: services.tasks,
            get_checklist_service: lambda: services.checklist,
            get_idea_service: lambda: services.ideas,
            get_analytics_service: lambda: services.analytics,
            get_ai_service: lambda: services.ai,
            get_auth_service: lambda: services.auth,
            get_phase_service: lambda: services.phases,
            get_vendor_service: lambda: services.vendors,
        }
    )
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def project_payload():
    return {
        "name": "ERP Rollout",
        "project_manager": "Dana",
        "tco": 100000,
        "start_date": "2025-01-01",
        "go_live_date": "2025-12-31",
    }
