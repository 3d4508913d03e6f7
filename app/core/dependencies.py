from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

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
from app.core.security import html_sanitizer, security_service
from app.domain.exceptions import UnauthorizedAccessException
from app.infrastructure.cache.redis_client import RedisCacheManager, RedisClient
from app.infrastructure.db.database import Database
from app.infrastructure.db.repositories import (
    PostgresChecklistRepository,
    PostgresDocumentRepository,
    PostgresDocumentTemplateRepository,
    PostgresIdeaRepository,
    PostgresInsightRepository,
    PostgresMetricsHistoryRepository,
    PostgresMilestoneRepository,
    PostgresPhaseRepository,
    PostgresPredictionRepository,
    PostgresProjectRepository,
    PostgresRiskRepository,
    PostgresStatusUpdateRepository,
    PostgresSubtaskRepository,
    PostgresTaskRepository,
    PostgresUserRepository,
    PostgresVendorRepository,
)
from app.infrastructure.llm.client import LLMClient

# Global instances (initialized in main.py)
database: Optional[Database] = None
redis_client: Optional[RedisClient] = None
cache_manager: Optional[RedisCacheManager] = None
llm_client: Optional[LLMClient] = None

bearer_scheme = HTTPBearer(auto_error=False)


async def get_database_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    if not database:
        raise HTTPException(status_code=500, detail="Database not initialized")

    async with database.session() as session:
        yield session


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Extract user ID from the bearer JWT."""
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return security_service.user_id_from_token(credentials.credentials)
    except UnauthorizedAccessException:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_llm_client() -> LLMClient:
    if not llm_client:
        raise HTTPException(status_code=503, detail="AI gateway not configured")
    return llm_client


def get_cache_manager() -> Optional[RedisCacheManager]:
    return cache_manager


async def get_project_service(
    session: AsyncSession = Depends(get_database_session),
) -> ProjectService:
    return ProjectService(
        project_repo=PostgresProjectRepository(session),
        milestone_repo=PostgresMilestoneRepository(session),
        risk_repo=PostgresRiskRepository(session),
        status_update_repo=PostgresStatusUpdateRepository(session),
        document_repo=PostgresDocumentRepository(session),
        checklist_repo=PostgresChecklistRepository(session),
        phase_repo=PostgresPhaseRepository(session),
        vendor_repo=PostgresVendorRepository(session),
        metrics_history_repo=PostgresMetricsHistoryRepository(session),
        sanitizer=html_sanitizer,
    )


async def get_task_service(
    session: AsyncSession = Depends(get_database_session),
) -> TaskService:
    return TaskService(
        task_repo=PostgresTaskRepository(session),
        subtask_repo=PostgresSubtaskRepository(session),
    )


async def get_checklist_service(
    session: AsyncSession = Depends(get_database_session),
) -> ChecklistService:
    return ChecklistService(
        template_repo=PostgresDocumentTemplateRepository(session),
        checklist_repo=PostgresChecklistRepository(session),
        project_repo=PostgresProjectRepository(session),
    )


async def get_idea_service(
    session: AsyncSession = Depends(get_database_session),
) -> IdeaService:
    return IdeaService(idea_repo=PostgresIdeaRepository(session))


async def get_phase_service(
    session: AsyncSession = Depends(get_database_session),
) -> PhaseService:
    return PhaseService(
        phase_repo=PostgresPhaseRepository(session),
        template_repo=PostgresDocumentTemplateRepository(session),
        checklist_repo=PostgresChecklistRepository(session),
        project_repo=PostgresProjectRepository(session),
    )


async def get_vendor_service(
    session: AsyncSession = Depends(get_database_session),
) -> VendorService:
    return VendorService(
        vendor_repo=PostgresVendorRepository(session),
        project_repo=PostgresProjectRepository(session),
    )


async def get_analytics_service(
    session: AsyncSession = Depends(get_database_session),
) -> AnalyticsService:
    return AnalyticsService(
        project_repo=PostgresProjectRepository(session),
        milestone_repo=PostgresMilestoneRepository(session),
        risk_repo=PostgresRiskRepository(session),
        document_repo=PostgresDocumentRepository(session),
        task_repo=PostgresTaskRepository(session),
        idea_repo=PostgresIdeaRepository(session),
        metrics_history_repo=PostgresMetricsHistoryRepository(session),
    )


async def get_ai_service(
    session: AsyncSession = Depends(get_database_session),
    llm: LLMClient = Depends(get_llm_client),
    cache: Optional[RedisCacheManager] = Depends(get_cache_manager),
) -> AIService:
    return AIService(
        llm_client=llm,
        project_repo=PostgresProjectRepository(session),
        milestone_repo=PostgresMilestoneRepository(session),
        risk_repo=PostgresRiskRepository(session),
        document_repo=PostgresDocumentRepository(session),
        task_repo=PostgresTaskRepository(session),
        idea_repo=PostgresIdeaRepository(session),
        insight_repo=PostgresInsightRepository(session),
        prediction_repo=PostgresPredictionRepository(session),
        cache_manager=cache,
    )


async def get_auth_service(
    session: AsyncSession = Depends(get_database_session),
) -> AuthService:
    return AuthService(
        user_repo=PostgresUserRepository(session), security=security_service
    )
