from datetime import date, datetime, timedelta, UTC
from typing import Any, List, Optional, Sequence
from uuid import UUID

import structlog
from pydantic_core import to_json

from app.api.schemas import (
    ChatMessage,
    ChatResponse,
    MilestoneForecastResponse,
    PortfolioInsightsResponse,
    PrioritizeTasksResponse,
    RiskForecastResponse,
)
from app.core.config import settings
from app.core.observability import trace_async_operation
from app.domain.analytics import build_assistant_context
from app.domain.entities import (
    AIInsight,
    AIPrediction,
    DocumentStatus,
    Project,
    RAGStatus,
)
from app.domain.exceptions import CacheException, EntityNotFoundException
from app.domain.repositories import (
    DocumentRepository,
    IdeaRepository,
    InsightRepository,
    MilestoneRepository,
    PredictionRepository,
    ProjectRepository,
    RiskRepository,
    TaskRepository,
)
from app.domain.timeline import delayed_milestones
from app.infrastructure.cache.redis_client import RedisCacheManager
from app.infrastructure.llm.client import LLMClient
from app.infrastructure.llm.models import (
    MilestoneForecast,
    MilestonePrediction,
    RiskForecast,
    StatusReport,
)
from app.infrastructure.llm.prompts import CHAT_FALLBACK_RESPONSE, build_chat_system_prompt

logger = structlog.get_logger(__name__)

RISK_ASSESSMENT = "risk_assessment"
MILESTONE_FORECAST = "milestone_forecast"
CHAT_CONTEXT_LIMIT = 200
INSIGHT_CONTEXT_LIMIT = 50


def _json(data: Any) -> str:
    return to_json(data, indent=2).decode()


class AIService:
    def __init__(
        self,
        llm_client: LLMClient,
        project_repo: ProjectRepository,
        milestone_repo: MilestoneRepository,
        risk_repo: RiskRepository,
        document_repo: DocumentRepository,
        task_repo: TaskRepository,
        idea_repo: IdeaRepository,
        insight_repo: InsightRepository,
        prediction_repo: PredictionRepository,
        cache_manager: Optional[RedisCacheManager] = None,
    ) -> None:
        self.llm_client = llm_client
        self.project_repo = project_repo
        self.milestone_repo = milestone_repo
        self.risk_repo = risk_repo
        self.document_repo = document_repo
        self.task_repo = task_repo
        self.idea_repo = idea_repo
        self.insight_repo = insight_repo
        self.prediction_repo = prediction_repo
        self.cache_manager = cache_manager

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.project_repo.get_by_id(project_id)
        if not project:
            raise EntityNotFoundException("Project", project_id)
        return project

    def _cache_key(self, kind: str, project_id: UUID) -> Optional[str]:
        if self.cache_manager is None:
            return None
        return self.cache_manager.key(kind, project_id)

    async def _cached(self, key: Optional[str]) -> Optional[dict]:
        if key is None:
            return None
        return await self.cache_manager.get_temporary_data(key)

    async def _cache(self, key: Optional[str], data: dict, ttl_hours: int) -> None:
        if key is None:
            return
        try:
            await self.cache_manager.set_temporary_data(key, data, ttl=ttl_hours * 3600)
        except CacheException as e:
            # The prediction is already stored; a cold cache only costs a new call
            logger.warning("Forecast not cached", key=key, error=str(e))

    async def _latest_predictions(
        self, project_id: UUID, prediction_type: str
    ) -> List[AIPrediction]:
        """Unexpired predictions from the most recent run, if any."""
        valid = await self.prediction_repo.list_valid(
            project_id, prediction_type, datetime.now(UTC)
        )
        if not valid:
            return []
        latest = valid[0].generated_at
        return [p for p in valid if p.generated_at == latest]

    # Chat

    async def chat(self, message: str, history: Sequence[ChatMessage] = ()) -> ChatResponse:
        """Answer a question about the portfolio.

        Failures never propagate: the caller gets a friendly fallback
        message together with the error text.
        """
        async with trace_async_operation("ai_chat"):
            try:
                tasks = (await self.task_repo.list_all())[:CHAT_CONTEXT_LIMIT]
                milestones = (await self.milestone_repo.list_all())[:CHAT_CONTEXT_LIMIT]
                context = build_assistant_context(
                    tasks=tasks,
                    milestones=milestones,
                    risks=await self.risk_repo.list_all(),
                    documents=await self.document_repo.list_all(),
                    ideas=await self.idea_repo.list_all(),
                    insights=await self.insight_repo.list_recent(INSIGHT_CONTEXT_LIMIT),
                    today=date.today(),
                )
                reply = await self.llm_client.chat(
                    build_chat_system_prompt(context),
                    message,
                    [m.model_dump() for m in history],
                )
                return ChatResponse(response=reply)
            except Exception as e:
                logger.error("Assistant chat failed", error=str(e))
                return ChatResponse(response=CHAT_FALLBACK_RESPONSE, error=str(e))

    # Task prioritization

    async def prioritize_tasks(
        self, task_ids: Optional[List[UUID]] = None
    ) -> PrioritizeTasksResponse:
        async with trace_async_operation("ai_prioritize_tasks"):
            tasks = await self.task_repo.list_all()
            if task_ids is not None:
                wanted = set(task_ids)
                tasks = [t for t in tasks if t.id in wanted]

            payload = [
                {
                    "id": str(t.id),
                    "action_item": t.action_item,
                    "owner": t.owner,
                    "status": t.status,
                    "target_date": t.target_date.isoformat(),
                    "progress_comments": t.progress_comments,
                }
                for t in tasks
            ]
            result = await self.llm_client.prioritize_tasks(_json(payload))

            by_id = {str(t.id): t for t in tasks}
            updated = 0
            for item in result.prioritized_tasks:
                task = by_id.get(item.id)
                if task is None:
                    continue
                task.priority_score = item.priority_score
                task.sentiment = item.sentiment
                task.touch()
                await self.task_repo.update(task)
                updated += 1

            logger.info("Tasks prioritized", requested=len(tasks), updated=updated)
            return PrioritizeTasksResponse(
                prioritized_tasks=result.prioritized_tasks, updated=updated
            )

    # Status report

    async def generate_status_report(self, project_id: UUID) -> StatusReport:
        async with trace_async_operation("ai_status_report", project_id=str(project_id)):
            project = await self._get_project(project_id)
            tasks = [t for t in await self.task_repo.list_all() if t.project_id == project_id]
            risks = await self.risk_repo.list_by_project(project_id)
            milestones = await self.milestone_repo.list_by_project(project_id)

            report = await self.llm_client.generate_status_report(
                _json(project.model_dump(exclude={"comments"})),
                _json([t.model_dump() for t in tasks]),
                _json([r.model_dump() for r in risks]),
                _json([m.model_dump() for m in milestones]),
            )
            logger.info("Status report generated", project_id=str(project_id))
            return report

    # Forecasts

    async def forecast_risks(self, project_id: UUID) -> RiskForecastResponse:
        async with trace_async_operation("ai_forecast_risks", project_id=str(project_id)):
            await self._get_project(project_id)
            cache_key = self._cache_key(RISK_ASSESSMENT, project_id)
            cached = await self._cached(cache_key)
            if cached:
                logger.info("Risk forecast served from cache", project_id=str(project_id))
                return RiskForecastResponse(**{**cached, "cached": True})

            stored = await self._latest_predictions(project_id, RISK_ASSESSMENT)
            if stored:
                logger.info(
                    "Risk forecast served from stored prediction", project_id=str(project_id)
                )
                return RiskForecastResponse(
                    risk_forecast=RiskForecast.model_validate(stored[0].prediction_data),
                    cached=True,
                )

            milestones = await self.milestone_repo.list_by_project(project_id)
            risks = await self.risk_repo.list_by_project(project_id)
            documents = await self.document_repo.list_by_project(project_id)
            approved = sum(1 for d in documents if d.status == DocumentStatus.APPROVED)

            forecast = await self.llm_client.forecast_risks(
                _json([m.model_dump() for m in milestones]),
                _json([r.model_dump() for r in risks]),
                len(documents),
                approved,
            )

            now = datetime.now(UTC)
            await self.prediction_repo.create_many(
                [
                    AIPrediction(
                        project_id=project_id,
                        prediction_type=RISK_ASSESSMENT,
                        prediction_data=forecast.model_dump(),
                        confidence_score=forecast.portfolio_risk_score,
                        model_version=settings.openai_model,
                        expires_at=now + timedelta(hours=settings.risk_forecast_ttl_hours),
                        generated_at=now,
                    )
                ]
            )

            alerts = [
                AIInsight(
                    insight_type="risk_alert",
                    title=f"Risk Alert: {risk.risk_category}",
                    description=risk.risk_description,
                    severity=risk.potential_impact,
                    affected_projects=[str(project_id)],
                    action_items=risk.preventive_actions,
                    generated_at=now,
                )
                for risk in forecast.predicted_risks
                if risk.probability >= settings.risk_alert_probability_threshold
            ]
            await self.insight_repo.create_many(alerts)

            response = RiskForecastResponse(
                risk_forecast=forecast, high_risk_insights_created=len(alerts)
            )
            await self._cache(
                cache_key,
                response.model_dump(mode="json", exclude={"cached"}),
                settings.risk_forecast_ttl_hours,
            )
            logger.info(
                "Risk forecast generated",
                project_id=str(project_id),
                risks=len(forecast.predicted_risks),
                alerts=len(alerts),
            )
            return response

    async def predict_milestones(self, project_id: UUID) -> MilestoneForecastResponse:
        async with trace_async_operation("ai_predict_milestones", project_id=str(project_id)):
            await self._get_project(project_id)
            milestones = await self.milestone_repo.list_by_project(project_id)
            if not milestones:
                raise EntityNotFoundException("Milestones for project", project_id)

            cache_key = self._cache_key(MILESTONE_FORECAST, project_id)
            cached = await self._cached(cache_key)
            if cached:
                logger.info("Milestone forecast served from cache", project_id=str(project_id))
                return MilestoneForecastResponse(**{**cached, "cached": True})

            stored = await self._latest_predictions(project_id, MILESTONE_FORECAST)
            if stored:
                logger.info(
                    "Milestone forecast served from stored predictions",
                    project_id=str(project_id),
                )
                summary = stored[0].prediction_data
                return MilestoneForecastResponse(
                    predictions=MilestoneForecast(
                        predictions=[
                            MilestonePrediction.model_validate(p.prediction_data)
                            for p in stored
                        ],
                        overall_timeline_risk=summary["overall_timeline_risk"],
                        suggested_actions=summary.get("suggested_actions", []),
                    ),
                    predictions_stored=0,
                    cached=True,
                )

            forecast = await self.llm_client.predict_milestones(
                _json([m.model_dump() for m in milestones])
            )

            now = datetime.now(UTC)
            expires_at = now + timedelta(hours=settings.milestone_forecast_ttl_hours)
            stored = await self.prediction_repo.create_many(
                [
                    AIPrediction(
                        project_id=project_id,
                        prediction_type=MILESTONE_FORECAST,
                        # Each row carries the run summary so a stored run can be replayed
                        prediction_data={
                            **prediction.model_dump(),
                            "overall_timeline_risk": forecast.overall_timeline_risk,
                            "suggested_actions": forecast.suggested_actions,
                        },
                        confidence_score=prediction.confidence_score,
                        model_version=settings.openai_model,
                        expires_at=expires_at,
                        generated_at=now,
                    )
                    for prediction in forecast.predictions
                ]
            )

            response = MilestoneForecastResponse(
                predictions=forecast, predictions_stored=len(stored)
            )
            await self._cache(
                cache_key,
                response.model_dump(mode="json", exclude={"cached"}),
                settings.milestone_forecast_ttl_hours,
            )
            logger.info(
                "Milestone forecast generated",
                project_id=str(project_id),
                predictions=len(stored),
                timeline_risk=forecast.overall_timeline_risk,
            )
            return response

    # Portfolio insights

    async def _portfolio_context(self) -> dict:
        projects = await self.project_repo.list_all()
        milestones = await self.milestone_repo.list_all()
        risks = await self.risk_repo.list_all()
        today = date.today()

        summaries = []
        for project in projects:
            own = [m for m in milestones if m.project_id == project.id]
            summaries.append(
                {
                    "project_id": str(project.id),
                    "name": project.name,
                    "overall_rag": project.overall_rag.value,
                    "current_status": project.current_status,
                    "go_live_date": project.go_live_date.isoformat(),
                    "budget": project.tco,
                    "spent": project.actual_spent,
                    "milestone_count": len(own),
                    "completed_milestones": sum(1 for m in own if m.is_completed()),
                    "delayed_milestones": len(delayed_milestones(own)),
                    "overdue_milestones": sum(
                        1 for m in own if m.target_date < today and not m.is_completed()
                    ),
                    "open_red_risks": sum(
                        1
                        for r in risks
                        if r.project_id == project.id
                        and r.is_open()
                        and r.rag_status == RAGStatus.RED
                    ),
                }
            )
        return {"total_projects": len(projects), "projects": summaries}

    async def portfolio_insights(self) -> PortfolioInsightsResponse:
        async with trace_async_operation("ai_portfolio_insights"):
            context = await self._portfolio_context()
            insights = await self.llm_client.portfolio_insights(_json(context))
            now = datetime.now(UTC)

            critical = [
                AIInsight(
                    insight_type="risk_alert",
                    title=f"Critical Attention Required: Project {cp.project_id}",
                    description=cp.reason,
                    severity="critical" if cp.urgency == "immediate" else "high",
                    affected_projects=[cp.project_id],
                    action_items=[],
                    generated_at=now,
                )
                for cp in insights.critical_projects
            ]
            recommendations = [
                AIInsight(
                    insight_type="recommendation",
                    title=ri.action,
                    description=f"Expected impact: {ri.expected_impact}",
                    severity="high" if ri.urgency == "immediate" else "medium",
                    affected_projects=ri.affected_projects,
                    action_items=[ri.action],
                    generated_at=now,
                )
                for ri in insights.recommended_interventions
            ]
            stored = await self.insight_repo.create_many([*critical, *recommendations])

            logger.info(
                "Portfolio insights generated",
                projects=context["total_projects"],
                health_score=insights.portfolio_health_score,
                stored=len(stored),
            )
            return PortfolioInsightsResponse(insights=insights, insights_stored=len(stored))

    async def list_insights(
        self, limit: int = 50, status: Optional[str] = None
    ) -> List[AIInsight]:
        return await self.insight_repo.list_recent(limit=limit, status=status)

    async def acknowledge_insight(self, insight_id: UUID, user_id: str) -> AIInsight:
        insight = await self.insight_repo.get_by_id(insight_id)
        if not insight:
            raise EntityNotFoundException("AIInsight", insight_id)
        insight.acknowledge(user_id)
        await self.insight_repo.update(insight)
        logger.info("Insight acknowledged", insight_id=str(insight_id), user_id=user_id)
        return insight
