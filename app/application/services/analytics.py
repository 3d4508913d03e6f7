from datetime import date
from typing import List, Optional
from uuid import UUID

import structlog

from app.api.schemas import (
    MetricsSnapshotRequest,
    PortfolioDashboardResponse,
    ProjectPerformanceSummary,
)
from app.core.observability import trace_async_operation
from app.domain import analytics
from app.domain.entities import ProjectMetricsSnapshot, RAGStatus
from app.domain.exceptions import EntityNotFoundException
from app.domain.performance import update_project_performance
from app.domain.repositories import (
    DocumentRepository,
    IdeaRepository,
    MetricsHistoryRepository,
    MilestoneRepository,
    ProjectRepository,
    RiskRepository,
    TaskRepository,
)

logger = structlog.get_logger(__name__)


class AnalyticsService:
    def __init__(
        self,
        project_repo: ProjectRepository,
        milestone_repo: MilestoneRepository,
        risk_repo: RiskRepository,
        document_repo: DocumentRepository,
        task_repo: TaskRepository,
        idea_repo: IdeaRepository,
        metrics_history_repo: MetricsHistoryRepository,
    ) -> None:
        self.project_repo = project_repo
        self.milestone_repo = milestone_repo
        self.risk_repo = risk_repo
        self.document_repo = document_repo
        self.task_repo = task_repo
        self.idea_repo = idea_repo
        self.metrics_history_repo = metrics_history_repo

    async def portfolio_dashboard(self) -> PortfolioDashboardResponse:
        async with trace_async_operation("portfolio_dashboard"):
            projects = await self.project_repo.list_all()
            milestones = await self.milestone_repo.list_all()
            risks = await self.risk_repo.list_all()
            documents = await self.document_repo.list_all()
            tasks = await self.task_repo.list_all()
            ideas = await self.idea_repo.list_all()

            metrics = analytics.portfolio_metrics(projects, milestones, risks)
            logger.debug(
                "Portfolio dashboard computed",
                projects=len(projects),
                health_score=metrics.health_score,
            )
            return PortfolioDashboardResponse(
                metrics=metrics,
                timeline_performance=analytics.timeline_performance(projects, milestones),
                budget_trends=analytics.budget_trends(projects),
                risk_matrix=analytics.risk_matrix(risks),
                task_velocity=analytics.task_velocity(tasks),
                documents_by_phase=analytics.documents_by_phase(documents),
                health_radar=analytics.portfolio_health_radar(metrics),
                task_status=analytics.task_status_breakdown(tasks),
                overdue_tasks=len(analytics.overdue_tasks(tasks, date.today())),
                idea_stages=analytics.idea_stage_statistics(ideas),
            )

    async def performance_overview(self) -> List[ProjectPerformanceSummary]:
        """Current delay and adoption rating of every project, without storing it."""
        async with trace_async_operation("performance_overview"):
            projects = await self.project_repo.list_all()
            milestones = await self.milestone_repo.list_all()
            today = date.today()
            return [
                ProjectPerformanceSummary(
                    project_id=project.id,
                    name=project.name,
                    overall_rag=project.overall_rag,
                    metrics=update_project_performance(
                        project,
                        [m for m in milestones if m.project_id == project.id],
                        today,
                    ),
                )
                for project in projects
            ]

    # Metrics history

    async def record_snapshot(
        self, project_id: UUID, request: MetricsSnapshotRequest
    ) -> ProjectMetricsSnapshot:
        """Store today's health figures of a project for its trend charts."""
        async with trace_async_operation("record_metrics_snapshot", project_id=str(project_id)):
            project = await self.project_repo.get_by_id(project_id)
            if not project:
                raise EntityNotFoundException("Project", project_id)
            milestones = await self.milestone_repo.list_by_project(project_id)
            open_risks = [
                r for r in await self.risk_repo.list_by_project(project_id) if r.is_open()
            ]
            today = date.today()
            performance = update_project_performance(project, milestones, today)

            snapshot = ProjectMetricsSnapshot(
                project_id=project_id,
                snapshot_date=request.snapshot_date or today,
                budget_variance=project.budget_variance(),
                total_milestones=len(milestones),
                completed_milestones=sum(1 for m in milestones if m.is_completed()),
                open_risks=len(open_risks),
                critical_risks=sum(1 for r in open_risks if r.rag_status == RAGStatus.RED),
                delay_percentage=performance.project_delay_percentage,
                performance_rating=performance.performance_rating,
                rag_status=project.overall_rag,
                resource_utilization=request.resource_utilization,
            )
            await self.metrics_history_repo.create(snapshot)
            logger.info(
                "Metrics snapshot recorded",
                project_id=str(project_id),
                snapshot_date=snapshot.snapshot_date.isoformat(),
                delay_percentage=snapshot.delay_percentage,
            )
            return snapshot

    async def metrics_history(
        self, project_id: UUID, limit: Optional[int] = None
    ) -> List[ProjectMetricsSnapshot]:
        if not await self.project_repo.get_by_id(project_id):
            raise EntityNotFoundException("Project", project_id)
        return await self.metrics_history_repo.list_by_project(project_id, limit)
