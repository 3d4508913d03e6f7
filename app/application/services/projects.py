from datetime import date, datetime, UTC
from typing import List, Optional
from uuid import UUID

import structlog

from app.api.schemas import (
    CommentCreateRequest,
    DocumentCreateRequest,
    DocumentUpdateRequest,
    MilestoneCreateRequest,
    MilestoneUpdateRequest,
    PerformanceResponse,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    RiskCreateRequest,
    RiskUpdateRequest,
    StatusUpdateCreateRequest,
    TimelineResponse,
)
from app.core.observability import trace_async_operation
from app.core.security import HTMLSanitizer
from app.domain.entities import (
    Document,
    DocumentStatus,
    Milestone,
    MilestoneStatus,
    PerformanceMetrics,
    Project,
    ProjectComment,
    Risk,
    StatusUpdate,
)
from app.domain.exceptions import EntityNotFoundException, ValidationException
from app.domain.performance import (
    PERFORMANCE_CRITERIA,
    get_adoption_measurement_date,
    get_performance_insights,
    update_project_performance,
)
from app.domain.repositories import (
    ChecklistRepository,
    DocumentRepository,
    MetricsHistoryRepository,
    MilestoneRepository,
    PhaseRepository,
    ProjectRepository,
    RiskRepository,
    StatusUpdateRepository,
    VendorRepository,
)
from app.domain.timeline import (
    calculate_timeline_stats,
    create_timeline_tracks,
    get_delay_info_list,
)

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


class ProjectService:
    def __init__(
        self,
        project_repo: ProjectRepository,
        milestone_repo: MilestoneRepository,
        risk_repo: RiskRepository,
        status_update_repo: StatusUpdateRepository,
        document_repo: DocumentRepository,
        checklist_repo: ChecklistRepository,
        phase_repo: PhaseRepository,
        vendor_repo: VendorRepository,
        metrics_history_repo: MetricsHistoryRepository,
        sanitizer: HTMLSanitizer,
    ) -> None:
        self.project_repo = project_repo
        self.milestone_repo = milestone_repo
        self.risk_repo = risk_repo
        self.status_update_repo = status_update_repo
        self.document_repo = document_repo
        self.checklist_repo = checklist_repo
        self.phase_repo = phase_repo
        self.vendor_repo = vendor_repo
        self.metrics_history_repo = metrics_history_repo
        self.sanitizer = sanitizer

    # Projects

    async def create_project(self, request: ProjectCreateRequest, user_id: str) -> Project:
        async with trace_async_operation("create_project", user_id=user_id):
            project = Project(**request.model_dump(), created_by=user_id)
            created = await self.project_repo.create(project)
            logger.info("Project created", project_id=str(project.id), user_id=user_id)
            return created

    async def get_project(self, project_id: UUID) -> Project:
        project = await self.project_repo.get_by_id(project_id)
        if not project:
            raise EntityNotFoundException("Project", project_id)
        return project

    async def list_projects(self) -> List[Project]:
        async with trace_async_operation("list_projects"):
            return await self.project_repo.list_all()

    async def update_project(
        self, project_id: UUID, request: ProjectUpdateRequest
    ) -> Project:
        async with trace_async_operation("update_project", project_id=str(project_id)):
            project = await self.get_project(project_id)
            changes = request.changes()
            adoption_rate = changes.pop("user_adoption_rate", None)

            updated = request.apply_to(project, changes)
            if updated.go_live_date < updated.start_date:
                raise ValidationException(
                    "go_live_date must not be before start_date",
                    details={
                        "start_date": updated.start_date.isoformat(),
                        "go_live_date": updated.go_live_date.isoformat(),
                    },
                )

            if adoption_rate is not None:
                metrics = updated.performance_metrics or PerformanceMetrics()
                updated.performance_metrics = metrics.model_copy(
                    update={
                        "user_adoption_rate": adoption_rate,
                        "adoption_measurement_date": date.today(),
                    }
                )
                milestones = await self.milestone_repo.list_by_project(project_id)
                updated.performance_metrics = update_project_performance(
                    updated, milestones, date.today()
                )

            updated.touch()
            await self.project_repo.update(updated)
            logger.info(
                "Project updated", project_id=str(project_id), fields=sorted(changes)
            )
            return updated

    async def add_comment(
        self, project_id: UUID, request: CommentCreateRequest, user_id: str
    ) -> Project:
        project = await self.get_project(project_id)
        project.comments.append(
            ProjectComment(text=request.text, author=request.author or user_id)
        )
        project.touch()
        return await self.project_repo.update(project)

    async def delete_project(self, project_id: UUID) -> None:
        async with trace_async_operation("delete_project", project_id=str(project_id)):
            await self.get_project(project_id)

            removed = {
                "phases": await self.phase_repo.delete_by_project(project_id),
                "vendor_records": await self.vendor_repo.delete_by_project(project_id),
                "metrics_history": await self.metrics_history_repo.delete_by_project(
                    project_id
                ),
                "checklist": await self.checklist_repo.delete_by_project(project_id),
                "documents": await self.document_repo.delete_by_project(project_id),
                "status_updates": await self.status_update_repo.delete_by_project(project_id),
                "risks": await self.risk_repo.delete_by_project(project_id),
                "milestones": await self.milestone_repo.delete_by_project(project_id),
            }
            await self.project_repo.delete(project_id)
            logger.info("Project deleted", project_id=str(project_id), **removed)

    # Milestones

    async def list_milestones(self, project_id: UUID) -> List[Milestone]:
        await self.get_project(project_id)
        return await self.milestone_repo.list_by_project(project_id)

    async def get_milestone(self, milestone_id: UUID) -> Milestone:
        milestone = await self.milestone_repo.get_by_id(milestone_id)
        if not milestone:
            raise EntityNotFoundException("Milestone", milestone_id)
        return milestone

    async def add_milestone(
        self, project_id: UUID, request: MilestoneCreateRequest
    ) -> Milestone:
        async with trace_async_operation("add_milestone", project_id=str(project_id)):
            await self.get_project(project_id)
            data = request.model_dump()
            if data["order_index"] is None:
                data["order_index"] = len(
                    await self.milestone_repo.list_by_project(project_id)
                )
            if data["baseline_target_date"] is None:
                # The first plan is the baseline
                data["baseline_target_date"] = data["target_date"]

            milestone = Milestone(project_id=project_id, **data)
            await self.milestone_repo.create(milestone)
            logger.info(
                "Milestone added",
                project_id=str(project_id),
                milestone_id=str(milestone.id),
            )
            return milestone

    async def update_milestone(
        self, milestone_id: UUID, request: MilestoneUpdateRequest
    ) -> Milestone:
        milestone = await self.get_milestone(milestone_id)
        changes = request.changes()
        if (
            changes.get("status") == MilestoneStatus.COMPLETED
            and "completed_date" not in changes
            and milestone.completed_date is None
        ):
            changes["completed_date"] = date.today()

        updated = request.apply_to(milestone, {**changes, "updated_at": _now()})
        return await self.milestone_repo.update(updated)

    async def delete_milestone(self, milestone_id: UUID) -> None:
        if not await self.milestone_repo.delete(milestone_id):
            raise EntityNotFoundException("Milestone", milestone_id)

    async def get_timeline(self, project_id: UUID) -> TimelineResponse:
        async with trace_async_operation("get_timeline", project_id=str(project_id)):
            project = await self.get_project(project_id)
            milestones = await self.milestone_repo.list_by_project(project_id)
            return TimelineResponse(
                stats=calculate_timeline_stats(milestones),
                delays=get_delay_info_list(milestones),
                tracks=create_timeline_tracks(milestones, project.start_date),
            )

    # Risks

    async def list_risks(self, project_id: UUID) -> List[Risk]:
        await self.get_project(project_id)
        return await self.risk_repo.list_by_project(project_id)

    async def get_risk(self, risk_id: UUID) -> Risk:
        risk = await self.risk_repo.get_by_id(risk_id)
        if not risk:
            raise EntityNotFoundException("Risk", risk_id)
        return risk

    async def add_risk(self, project_id: UUID, request: RiskCreateRequest) -> Risk:
        await self.get_project(project_id)
        risk = Risk(project_id=project_id, **request.model_dump())
        await self.risk_repo.create(risk)
        logger.info(
            "Risk registered",
            project_id=str(project_id),
            risk_number=risk.risk_number,
            rag=risk.rag_status.value,
        )
        return risk

    async def update_risk(self, risk_id: UUID, request: RiskUpdateRequest) -> Risk:
        risk = await self.get_risk(risk_id)
        updated = request.apply_to(risk, {**request.changes(), "updated_at": _now()})
        return await self.risk_repo.update(updated)

    async def delete_risk(self, risk_id: UUID) -> None:
        if not await self.risk_repo.delete(risk_id):
            raise EntityNotFoundException("Risk", risk_id)

    # Status updates

    async def list_status_updates(self, project_id: UUID) -> List[StatusUpdate]:
        await self.get_project(project_id)
        return await self.status_update_repo.list_by_project(project_id)

    async def add_status_update(
        self, project_id: UUID, request: StatusUpdateCreateRequest, user_id: str
    ) -> StatusUpdate:
        project = await self.get_project(project_id)
        update = StatusUpdate(
            project_id=project_id, created_by=user_id, **request.model_dump()
        )
        await self.status_update_repo.create(update)

        project.last_status_update = update.created_at
        project.touch()
        await self.project_repo.update(project)
        return update

    # Documents

    async def list_documents(self, project_id: UUID) -> List[Document]:
        await self.get_project(project_id)
        return await self.document_repo.list_by_project(project_id)

    async def get_document(self, document_id: UUID) -> Document:
        document = await self.document_repo.get_by_id(document_id)
        if not document:
            raise EntityNotFoundException("Document", document_id)
        return document

    def _clean(self, content: Optional[str]) -> Optional[str]:
        return self.sanitizer.sanitize(content) if content else content

    async def add_document(
        self, project_id: UUID, request: DocumentCreateRequest, user_id: str
    ) -> Document:
        await self.get_project(project_id)
        data = request.model_dump()
        data["content"] = self._clean(data["content"])
        document = Document(project_id=project_id, **data)
        if document.status == DocumentStatus.APPROVED:
            document.approved_by = user_id
            document.approved_date = _now()
        await self.document_repo.create(document)
        logger.info(
            "Document added",
            project_id=str(project_id),
            document_id=str(document.id),
            phase=document.phase,
        )
        return document

    async def update_document(
        self, document_id: UUID, request: DocumentUpdateRequest, user_id: str
    ) -> Document:
        document = await self.get_document(document_id)
        changes = request.changes()
        if "content" in changes:
            changes["content"] = self._clean(changes["content"])

        updated = request.apply_to(document, {**changes, "updated_at": _now()})
        if (
            updated.status == DocumentStatus.APPROVED
            and document.status != DocumentStatus.APPROVED
        ):
            updated.approved_by = user_id
            updated.approved_date = _now()
        return await self.document_repo.update(updated)

    async def delete_document(self, document_id: UUID) -> None:
        if not await self.document_repo.delete(document_id):
            raise EntityNotFoundException("Document", document_id)

    # Performance

    async def refresh_performance(self, project_id: UUID) -> PerformanceResponse:
        async with trace_async_operation("refresh_performance", project_id=str(project_id)):
            project = await self.get_project(project_id)
            milestones = await self.milestone_repo.list_by_project(project_id)
            today = date.today()

            metrics = update_project_performance(project, milestones, today)
            if metrics.adoption_measurement_date is None:
                metrics.adoption_measurement_date = get_adoption_measurement_date(
                    project.go_live_date
                )
            project.performance_metrics = metrics
            project.touch()
            await self.project_repo.update(project)

            logger.info(
                "Project performance recalculated",
                project_id=str(project_id),
                delay_percentage=metrics.project_delay_percentage,
                rating=metrics.performance_rating.value,
            )
            return PerformanceResponse(
                metrics=metrics,
                insights=get_performance_insights(
                    metrics, project, len(milestones), today
                ),
                criteria=PERFORMANCE_CRITERIA,
            )
