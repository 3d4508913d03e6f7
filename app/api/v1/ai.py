from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.schemas import (
    ChatRequest,
    ChatResponse,
    InsightListResponse,
    MilestoneForecastResponse,
    PortfolioInsightsResponse,
    PrioritizeTasksRequest,
    PrioritizeTasksResponse,
    ProjectAIRequest,
    RiskForecastResponse,
)
from app.application.services import AIService
from app.core.dependencies import get_ai_service, get_current_user_id
from app.core.observability import trace_async_operation
from app.domain.entities import AIInsight
from app.infrastructure.llm.models import StatusReport

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> ChatResponse:
    """Ask the portfolio assistant a question.

    Gateway failures are reported in ``error`` next to a fallback reply
    instead of an error status.
    """
    async with trace_async_operation("api_ai_chat", user_id=user_id):
        return await ai_service.chat(request.message, request.history)


@router.post("/prioritize-tasks", response_model=PrioritizeTasksResponse)
async def prioritize_tasks(
    request: PrioritizeTasksRequest,
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> PrioritizeTasksResponse:
    return await ai_service.prioritize_tasks(request.task_ids)


@router.post("/status-report", response_model=StatusReport)
async def generate_status_report(
    request: ProjectAIRequest,
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> StatusReport:
    return await ai_service.generate_status_report(request.project_id)


@router.post("/forecast-risks", response_model=RiskForecastResponse)
async def forecast_risks(
    request: ProjectAIRequest,
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> RiskForecastResponse:
    async with trace_async_operation(
        "api_forecast_risks", project_id=str(request.project_id)
    ):
        return await ai_service.forecast_risks(request.project_id)


@router.post("/predict-milestones", response_model=MilestoneForecastResponse)
async def predict_milestones(
    request: ProjectAIRequest,
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> MilestoneForecastResponse:
    async with trace_async_operation(
        "api_predict_milestones", project_id=str(request.project_id)
    ):
        return await ai_service.predict_milestones(request.project_id)


@router.post("/portfolio-insights", response_model=PortfolioInsightsResponse)
async def portfolio_insights(
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> PortfolioInsightsResponse:
    return await ai_service.portfolio_insights()


@router.get("/insights", response_model=InsightListResponse)
async def list_insights(
    limit: int = Query(default=50, ge=1, le=200),
    status: Optional[str] = Query(default=None, pattern="^(new|acknowledged)$"),
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> InsightListResponse:
    insights = await ai_service.list_insights(limit=limit, status=status)
    return InsightListResponse(insights=insights)


@router.post("/insights/{insight_id}/acknowledge", response_model=AIInsight)
async def acknowledge_insight(
    insight_id: UUID,
    user_id: str = Depends(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
) -> AIInsight:
    return await ai_service.acknowledge_insight(insight_id, user_id)
