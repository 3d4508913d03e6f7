from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.schemas import (
    MetricsSnapshotRequest,
    PortfolioDashboardResponse,
    ProjectPerformanceSummary,
)
from app.application.services import AnalyticsService
from app.core.dependencies import get_analytics_service, get_current_user_id
from app.domain.entities import ProjectMetricsSnapshot

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/portfolio", response_model=PortfolioDashboardResponse)
async def get_portfolio_dashboard(
    user_id: str = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> PortfolioDashboardResponse:
    """Every chart of the portfolio dashboard in one response."""
    return await analytics_service.portfolio_dashboard()


@router.get("/performance", response_model=List[ProjectPerformanceSummary])
async def get_performance_overview(
    user_id: str = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> List[ProjectPerformanceSummary]:
    return await analytics_service.performance_overview()


@router.get(
    "/projects/{project_id}/metrics-history",
    response_model=List[ProjectMetricsSnapshot],
)
async def get_metrics_history(
    project_id: UUID,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> List[ProjectMetricsSnapshot]:
    return await analytics_service.metrics_history(project_id, limit)


@router.post(
    "/projects/{project_id}/metrics-history",
    response_model=ProjectMetricsSnapshot,
    status_code=201,
)
async def record_metrics_snapshot(
    project_id: UUID,
    request: MetricsSnapshotRequest,
    user_id: str = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> ProjectMetricsSnapshot:
    return await analytics_service.record_snapshot(project_id, request)
