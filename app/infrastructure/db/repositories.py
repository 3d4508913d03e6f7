from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.observability import metrics
from app.domain.entities import (
    AIInsight,
    AIPrediction,
    ChecklistItem,
    Document,
    DocumentTemplate,
    Idea,
    IdeaComment,
    IdeaReview,
    IdeaStageHistory,
    Milestone,
    Project,
    ProjectBlueprint,
    ProjectMetricsSnapshot,
    ProjectPhase,
    Risk,
    StatusUpdate,
    Subtask,
    Task,
    User,
    Vendor,
    VendorContract,
    VendorDeliverable,
    VendorPerformanceReview,
)
from app.domain.exceptions import EntityNotFoundException
from app.domain.repositories import (
    ChecklistRepository,
    DocumentRepository,
    DocumentTemplateRepository,
    IdeaRepository,
    InsightRepository,
    MetricsHistoryRepository,
    MilestoneRepository,
    PhaseRepository,
    PredictionRepository,
    ProjectRepository,
    RiskRepository,
    StatusUpdateRepository,
    SubtaskRepository,
    TaskRepository,
    UserRepository,
    VendorRepository,
)
from app.infrastructure.db.models import (
    AIInsightModel,
    AIPredictionModel,
    ChecklistItemModel,
    DocumentModel,
    DocumentTemplateModel,
    IdeaCommentModel,
    IdeaModel,
    IdeaReviewModel,
    IdeaStageHistoryModel,
    MilestoneModel,
    ProjectBlueprintModel,
    ProjectMetricsHistoryModel,
    ProjectModel,
    ProjectPhaseModel,
    RiskModel,
    StatusUpdateModel,
    SubtaskModel,
    TaskModel,
    UserModel,
    VendorContractModel,
    VendorDeliverableModel,
    VendorModel,
    VendorPerformanceReviewModel,
)

EntityT = TypeVar("EntityT", bound=BaseModel)


class _SQLAlchemyRepository(Generic[EntityT]):
    """Shared row <-> entity mapping. Columns are named after entity fields."""

    model: Type[Any]
    entity: Type[EntityT]
    table: str

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @contextmanager
    def _recording(self, operation: str) -> Iterator[None]:
        try:
            yield
        except Exception:
            metrics.record_database_operation(operation, self.table, "error")
            raise
        metrics.record_database_operation(operation, self.table, "success")

    def _to_row(self, entity: EntityT) -> Dict[str, Any]:
        values = entity.model_dump()
        return {
            key: value.value if isinstance(value, Enum) else value
            for key, value in values.items()
        }

    def _to_entity(self, row: Any) -> EntityT:
        return self.entity.model_validate(row, from_attributes=True)

    async def _add(self, entity: EntityT) -> EntityT:
        with self._recording("create"):
            self.session.add(self.model(**self._to_row(entity)))
            await self.session.flush()
        return entity

    async def _add_all(self, entities: Sequence[EntityT]) -> List[EntityT]:
        if not entities:
            return []
        with self._recording("create_many"):
            self.session.add_all([self.model(**self._to_row(e)) for e in entities])
            await self.session.flush()
        return list(entities)

    async def _get_row(self, entity_id: UUID) -> Optional[Any]:
        result = await self.session.execute(
            select(self.model).where(self.model.id == entity_id)
        )
        return result.scalar_one_or_none()

    async def _get(self, entity_id: UUID) -> Optional[EntityT]:
        with self._recording("get"):
            row = await self._get_row(entity_id)
        return self._to_entity(row) if row is not None else None

    async def _list(
        self, *criteria: Any, order_by: Sequence[Any] = (), limit: Optional[int] = None
    ) -> List[EntityT]:
        with self._recording("list"):
            stmt = select(self.model).where(*criteria).order_by(*order_by)
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await self.session.execute(stmt)
            rows = result.scalars().all()
        return [self._to_entity(row) for row in rows]

    async def _update(self, entity: EntityT) -> EntityT:
        with self._recording("get"):
            row = await self._get_row(entity.id)

        if row is None:
            metrics.record_database_operation("update", self.table, "not_found")
            raise EntityNotFoundException(self.entity.__name__, str(entity.id))

        with self._recording("update"):
            for key, value in self._to_row(entity).items():
                if key != "id":
                    setattr(row, key, value)
            await self.session.flush()
        return entity

    async def _delete(self, entity_id: UUID) -> bool:
        with self._recording("delete"):
            result = await self.session.execute(
                delete(self.model).where(self.model.id == entity_id)
            )
            await self.session.flush()
        if result.rowcount == 0:
            metrics.record_database_operation("delete", self.table, "not_found")
            return False
        return True

    async def _delete_where(self, *criteria: Any) -> int:
        with self._recording("delete_many"):
            result = await self.session.execute(delete(self.model).where(*criteria))
            await self.session.flush()
        return result.rowcount or 0

    async def _count(self, *criteria: Any) -> int:
        with self._recording("count"):
            result = await self.session.execute(
                select(func.count()).select_from(self.model).where(*criteria)
            )
        return int(result.scalar_one())


class PostgresProjectRepository(_SQLAlchemyRepository[Project], ProjectRepository):
    model = ProjectModel
    entity = Project
    table = "projects"

    async def create(self, project: Project) -> Project:
        return await self._add(project)

    async def get_by_id(self, project_id: UUID) -> Optional[Project]:
        return await self._get(project_id)

    async def list_all(self) -> List[Project]:
        return await self._list(order_by=[desc(ProjectModel.created_at)])

    async def update(self, project: Project) -> Project:
        return await self._update(project)

    async def delete(self, project_id: UUID) -> bool:
        return await self._delete(project_id)


class PostgresMilestoneRepository(_SQLAlchemyRepository[Milestone], MilestoneRepository):
    model = MilestoneModel
    entity = Milestone
    table = "milestones"

    async def create(self, milestone: Milestone) -> Milestone:
        return await self._add(milestone)

    async def get_by_id(self, milestone_id: UUID) -> Optional[Milestone]:
        return await self._get(milestone_id)

    async def list_by_project(self, project_id: UUID) -> List[Milestone]:
        return await self._list(
            MilestoneModel.project_id == project_id,
            order_by=[MilestoneModel.order_index, MilestoneModel.target_date],
        )

    async def list_all(self) -> List[Milestone]:
        return await self._list(order_by=[MilestoneModel.target_date])

    async def update(self, milestone: Milestone) -> Milestone:
        return await self._update(milestone)

    async def delete(self, milestone_id: UUID) -> bool:
        return await self._delete(milestone_id)

    async def delete_by_project(self, project_id: UUID) -> int:
        return await self._delete_where(MilestoneModel.project_id == project_id)


class PostgresRiskRepository(_SQLAlchemyRepository[Risk], RiskRepository):
    model = RiskModel
    entity = Risk
    table = "risks"

    async def create(self, risk: Risk) -> Risk:
        return await self._add(risk)

    async def get_by_id(self, risk_id: UUID) -> Optional[Risk]:
        return await self._get(risk_id)

    async def list_by_project(self, project_id: UUID) -> List[Risk]:
        return await self._list(
            RiskModel.project_id == project_id,
            order_by=[desc(RiskModel.risk_reported_date)],
        )

    async def list_all(self) -> List[Risk]:
        return await self._list(order_by=[desc(RiskModel.risk_reported_date)])

    async def update(self, risk: Risk) -> Risk:
        return await self._update(risk)

    async def delete(self, risk_id: UUID) -> bool:
        return await self._delete(risk_id)

    async def delete_by_project(self, project_id: UUID) -> int:
        return await self._delete_where(RiskModel.project_id == project_id)


class PostgresStatusUpdateRepository(
    _SQLAlchemyRepository[StatusUpdate], StatusUpdateRepository
):
    model = StatusUpdateModel
    entity = StatusUpdate
    table = "status_updates"

    async def create(self, update: StatusUpdate) -> StatusUpdate:
        return await self._add(update)

    async def list_by_project(self, project_id: UUID) -> List[StatusUpdate]:
        return await self._list(
            StatusUpdateModel.project_id == project_id,
            order_by=[
                desc(StatusUpdateModel.update_date),
                desc(StatusUpdateModel.created_at),
            ],
        )

    async def delete_by_project(self, project_id: UUID) -> int:
        return await self._delete_where(StatusUpdateModel.project_id == project_id)


class PostgresDocumentRepository(_SQLAlchemyRepository[Document], DocumentRepository):
    model = DocumentModel
    entity = Document
    table = "documents"

    async def create(self, document: Document) -> Document:
        return await self._add(document)

    async def get_by_id(self, document_id: UUID) -> Optional[Document]:
        return await self._get(document_id)

    async def list_by_project(self, project_id: UUID) -> List[Document]:
        return await self._list(
            DocumentModel.project_id == project_id,
            order_by=[desc(DocumentModel.upload_date)],
        )

    async def list_all(self) -> List[Document]:
        return await self._list(order_by=[desc(DocumentModel.upload_date)])

    async def update(self, document: Document) -> Document:
        return await self._update(document)

    async def delete(self, document_id: UUID) -> bool:
        return await self._delete(document_id)

    async def delete_by_project(self, project_id: UUID) -> int:
        return await self._delete_where(DocumentModel.project_id == project_id)


class PostgresTaskRepository(_SQLAlchemyRepository[Task], TaskRepository):
    model = TaskModel
    entity = Task
    table = "tasks"

    async def create(self, task: Task) -> Task:
        return await self._add(task)

    async def create_many(self, tasks: Sequence[Task]) -> List[Task]:
        return await self._add_all(tasks)

    async def get_by_id(self, task_id: UUID) -> Optional[Task]:
        return await self._get(task_id)

    async def list_all(self) -> List[Task]:
        return await self._list(
            order_by=[desc(TaskModel.created_at), desc(TaskModel.serial_no)]
        )

    async def count(self) -> int:
        return await self._count()

    async def update(self, task: Task) -> Task:
        return await self._update(task)

    async def delete(self, task_id: UUID) -> bool:
        return await self._delete(task_id)


class PostgresSubtaskRepository(_SQLAlchemyRepository[Subtask], SubtaskRepository):
    model = SubtaskModel
    entity = Subtask
    table = "subtasks"

    async def create(self, subtask: Subtask) -> Subtask:
        return await self._add(subtask)

    async def get_by_id(self, subtask_id: UUID) -> Optional[Subtask]:
        return await self._get(subtask_id)

    async def list_by_task(self, task_id: UUID) -> List[Subtask]:
        return await self._list(
            SubtaskModel.parent_task_id == task_id,
            order_by=[SubtaskModel.order_index],
        )

    async def update(self, subtask: Subtask) -> Subtask:
        return await self._update(subtask)

    async def delete(self, subtask_id: UUID) -> bool:
        return await self._delete(subtask_id)

    async def delete_by_task(self, task_id: UUID) -> int:
        return await self._delete_where(SubtaskModel.parent_task_id == task_id)


class _IdeaReviewTable(_SQLAlchemyRepository[IdeaReview]):
    model = IdeaReviewModel
    entity = IdeaReview
    table = "idea_reviews"


class _IdeaHistoryTable(_SQLAlchemyRepository[IdeaStageHistory]):
    model = IdeaStageHistoryModel
    entity = IdeaStageHistory
    table = "idea_stage_history"


class _IdeaCommentTable(_SQLAlchemyRepository[IdeaComment]):
    model = IdeaCommentModel
    entity = IdeaComment
    table = "idea_comments"


class PostgresIdeaRepository(_SQLAlchemyRepository[Idea], IdeaRepository):
    model = IdeaModel
    entity = Idea
    table = "ideas"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.reviews = _IdeaReviewTable(session)
        self.history = _IdeaHistoryTable(session)
        self.comments = _IdeaCommentTable(session)

    async def create(self, idea: Idea) -> Idea:
        return await self._add(idea)

    async def create_many(self, ideas: Sequence[Idea]) -> List[Idea]:
        return await self._add_all(ideas)

    async def get_by_id(self, idea_id: UUID) -> Optional[Idea]:
        return await self._get(idea_id)

    async def list_all(self) -> List[Idea]:
        return await self._list(order_by=[desc(IdeaModel.created_at)])

    async def update(self, idea: Idea) -> Idea:
        return await self._update(idea)

    async def delete(self, idea_id: UUID) -> bool:
        await self.comments._delete_where(IdeaCommentModel.idea_id == idea_id)
        await self.reviews._delete_where(IdeaReviewModel.idea_id == idea_id)
        await self.history._delete_where(IdeaStageHistoryModel.idea_id == idea_id)
        return await self._delete(idea_id)

    async def add_review(self, review: IdeaReview) -> IdeaReview:
        return await self.reviews._add(review)

    async def list_reviews(self, idea_id: UUID) -> List[IdeaReview]:
        return await self.reviews._list(
            IdeaReviewModel.idea_id == idea_id,
            order_by=[desc(IdeaReviewModel.review_date)],
        )

    async def add_history(self, entry: IdeaStageHistory) -> IdeaStageHistory:
        return await self.history._add(entry)

    async def list_history(self, idea_id: UUID) -> List[IdeaStageHistory]:
        return await self.history._list(
            IdeaStageHistoryModel.idea_id == idea_id,
            order_by=[desc(IdeaStageHistoryModel.created_at)],
        )

    async def add_comment(self, comment: IdeaComment) -> IdeaComment:
        return await self.comments._add(comment)

    async def list_comments(self, idea_id: UUID) -> List[IdeaComment]:
        return await self.comments._list(
            IdeaCommentModel.idea_id == idea_id,
            order_by=[IdeaCommentModel.created_at],
        )


class PostgresDocumentTemplateRepository(
    _SQLAlchemyRepository[DocumentTemplate], DocumentTemplateRepository
):
    model = DocumentTemplateModel
    entity = DocumentTemplate
    table = "document_templates"

    async def list(self, phase_name: Optional[str] = None) -> List[DocumentTemplate]:
        criteria = []
        if phase_name is not None:
            criteria.append(DocumentTemplateModel.phase_name == phase_name)
        return await self._list(
            *criteria,
            order_by=[DocumentTemplateModel.phase_name, DocumentTemplateModel.name],
        )

    async def get_by_id(self, template_id: UUID) -> Optional[DocumentTemplate]:
        return await self._get(template_id)

    async def count(self) -> int:
        return await self._count()

    async def create_many(
        self, templates: Sequence[DocumentTemplate]
    ) -> List[DocumentTemplate]:
        return await self._add_all(templates)


class PostgresChecklistRepository(
    _SQLAlchemyRepository[ChecklistItem], ChecklistRepository
):
    model = ChecklistItemModel
    entity = ChecklistItem
    table = "project_document_checklist"

    async def list_by_project(self, project_id: UUID) -> List[ChecklistItem]:
        return await self._list(
            ChecklistItemModel.project_id == project_id,
            order_by=[ChecklistItemModel.created_at],
        )

    async def create_many(self, items: Sequence[ChecklistItem]) -> List[ChecklistItem]:
        return await self._add_all(items)

    async def get_by_id(self, item_id: UUID) -> Optional[ChecklistItem]:
        return await self._get(item_id)

    async def update(self, item: ChecklistItem) -> ChecklistItem:
        return await self._update(item)

    async def delete(self, item_id: UUID) -> bool:
        return await self._delete(item_id)

    async def delete_by_project(self, project_id: UUID) -> int:
        return await self._delete_where(ChecklistItemModel.project_id == project_id)


class PostgresInsightRepository(_SQLAlchemyRepository[AIInsight], InsightRepository):
    model = AIInsightModel
    entity = AIInsight
    table = "ai_insights"

    async def create_many(self, insights: Sequence[AIInsight]) -> List[AIInsight]:
        return await self._add_all(insights)

    async def get_by_id(self, insight_id: UUID) -> Optional[AIInsight]:
        return await self._get(insight_id)

    async def list_recent(
        self, limit: int = 50, status: Optional[str] = None
    ) -> List[AIInsight]:
        criteria = []
        if status is not None:
            criteria.append(AIInsightModel.status == status)
        return await self._list(
            *criteria, order_by=[desc(AIInsightModel.generated_at)], limit=limit
        )

    async def update(self, insight: AIInsight) -> AIInsight:
        return await self._update(insight)


class PostgresPredictionRepository(
    _SQLAlchemyRepository[AIPrediction], PredictionRepository
):
    model = AIPredictionModel
    entity = AIPrediction
    table = "ai_predictions"

    async def create_many(
        self, predictions: Sequence[AIPrediction]
    ) -> List[AIPrediction]:
        return await self._add_all(predictions)

    async def list_valid(
        self, project_id: UUID, prediction_type: str, now: datetime
    ) -> List[AIPrediction]:
        predictions = await self._list(
            AIPredictionModel.project_id == project_id,
            AIPredictionModel.prediction_type == prediction_type,
            order_by=[desc(AIPredictionModel.generated_at)],
        )
        return [p for p in predictions if not p.is_expired(now)]


class PostgresUserRepository(_SQLAlchemyRepository[User], UserRepository):
    model = UserModel
    entity = User
    table = "users"

    async def create(self, user: User) -> User:
        return await self._add(user)

    async def get_by_email(self, email: str) -> Optional[User]:
        users = await self._list(UserModel.email == email.lower(), limit=1)
        return users[0] if users else None


class _BlueprintTable(_SQLAlchemyRepository[ProjectBlueprint]):
    model = ProjectBlueprintModel
    entity = ProjectBlueprint
    table = "project_blueprints"


class PostgresPhaseRepository(_SQLAlchemyRepository[ProjectPhase], PhaseRepository):
    model = ProjectPhaseModel
    entity = ProjectPhase
    table = "project_phases"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.blueprints = _BlueprintTable(session)

    async def create_many(self, phases: Sequence[ProjectPhase]) -> List[ProjectPhase]:
        return await self._add_all(phases)

    async def get_by_id(self, phase_id: UUID) -> Optional[ProjectPhase]:
        return await self._get(phase_id)

    async def list_by_project(self, project_id: UUID) -> List[ProjectPhase]:
        return await self._list(
            ProjectPhaseModel.project_id == project_id,
            order_by=[ProjectPhaseModel.phase_number],
        )

    async def update(self, phase: ProjectPhase) -> ProjectPhase:
        return await self._update(phase)

    async def delete_by_project(self, project_id: UUID) -> int:
        await self.blueprints._delete_where(
            ProjectBlueprintModel.project_id == project_id
        )
        return await self._delete_where(ProjectPhaseModel.project_id == project_id)

    async def get_blueprint(self, project_id: UUID) -> Optional[ProjectBlueprint]:
        blueprints = await self.blueprints._list(
            ProjectBlueprintModel.project_id == project_id, limit=1
        )
        return blueprints[0] if blueprints else None

    async def save_blueprint(self, blueprint: ProjectBlueprint) -> ProjectBlueprint:
        existing = await self.get_blueprint(blueprint.project_id)
        if existing is None:
            return await self.blueprints._add(blueprint)
        return await self.blueprints._update(
            blueprint.model_copy(
                update={"id": existing.id, "created_at": existing.created_at}
            )
        )


class PostgresMetricsHistoryRepository(
    _SQLAlchemyRepository[ProjectMetricsSnapshot], MetricsHistoryRepository
):
    model = ProjectMetricsHistoryModel
    entity = ProjectMetricsSnapshot
    table = "project_metrics_history"

    async def create(self, snapshot: ProjectMetricsSnapshot) -> ProjectMetricsSnapshot:
        return await self._add(snapshot)

    async def list_by_project(
        self, project_id: UUID, limit: Optional[int] = None
    ) -> List[ProjectMetricsSnapshot]:
        return await self._list(
            ProjectMetricsHistoryModel.project_id == project_id,
            order_by=[
                desc(ProjectMetricsHistoryModel.snapshot_date),
                desc(ProjectMetricsHistoryModel.created_at),
            ],
            limit=limit,
        )

    async def delete_by_project(self, project_id: UUID) -> int:
        return await self._delete_where(
            ProjectMetricsHistoryModel.project_id == project_id
        )


class _VendorContractTable(_SQLAlchemyRepository[VendorContract]):
    model = VendorContractModel
    entity = VendorContract
    table = "vendor_contracts"


class _VendorDeliverableTable(_SQLAlchemyRepository[VendorDeliverable]):
    model = VendorDeliverableModel
    entity = VendorDeliverable
    table = "vendor_deliverables"


class _VendorReviewTable(_SQLAlchemyRepository[VendorPerformanceReview]):
    model = VendorPerformanceReviewModel
    entity = VendorPerformanceReview
    table = "vendor_performance_reviews"


class PostgresVendorRepository(_SQLAlchemyRepository[Vendor], VendorRepository):
    model = VendorModel
    entity = Vendor
    table = "vendors"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.contracts = _VendorContractTable(session)
        self.deliverables = _VendorDeliverableTable(session)
        self.reviews = _VendorReviewTable(session)

    async def create(self, vendor: Vendor) -> Vendor:
        return await self._add(vendor)

    async def get_by_id(self, vendor_id: UUID) -> Optional[Vendor]:
        return await self._get(vendor_id)

    async def list_all(self) -> List[Vendor]:
        return await self._list(order_by=[desc(VendorModel.created_at)])

    async def update(self, vendor: Vendor) -> Vendor:
        return await self._update(vendor)

    async def delete(self, vendor_id: UUID) -> bool:
        # Deliverables point at contracts, so they go first
        await self.deliverables._delete_where(VendorDeliverableModel.vendor_id == vendor_id)
        await self.reviews._delete_where(VendorPerformanceReviewModel.vendor_id == vendor_id)
        await self.contracts._delete_where(VendorContractModel.vendor_id == vendor_id)
        return await self._delete(vendor_id)

    async def add_contract(self, contract: VendorContract) -> VendorContract:
        return await self.contracts._add(contract)

    async def get_contract(self, contract_id: UUID) -> Optional[VendorContract]:
        return await self.contracts._get(contract_id)

    async def update_contract(self, contract: VendorContract) -> VendorContract:
        return await self.contracts._update(contract)

    async def list_contracts(self, project_id: UUID) -> List[VendorContract]:
        return await self.contracts._list(
            VendorContractModel.project_id == project_id,
            order_by=[desc(VendorContractModel.created_at)],
        )

    async def add_deliverable(self, deliverable: VendorDeliverable) -> VendorDeliverable:
        return await self.deliverables._add(deliverable)

    async def get_deliverable(self, deliverable_id: UUID) -> Optional[VendorDeliverable]:
        return await self.deliverables._get(deliverable_id)

    async def update_deliverable(
        self, deliverable: VendorDeliverable
    ) -> VendorDeliverable:
        return await self.deliverables._update(deliverable)

    async def list_deliverables(self, project_id: UUID) -> List[VendorDeliverable]:
        return await self.deliverables._list(
            VendorDeliverableModel.project_id == project_id,
            order_by=[VendorDeliverableModel.due_date.asc().nulls_last()],
        )

    async def add_review(
        self, review: VendorPerformanceReview
    ) -> VendorPerformanceReview:
        return await self.reviews._add(review)

    async def list_reviews(self, project_id: UUID) -> List[VendorPerformanceReview]:
        return await self.reviews._list(
            VendorPerformanceReviewModel.project_id == project_id,
            order_by=[desc(VendorPerformanceReviewModel.review_date)],
        )

    async def delete_by_project(self, project_id: UUID) -> int:
        removed = await self.deliverables._delete_where(
            VendorDeliverableModel.project_id == project_id
        )
        removed += await self.reviews._delete_where(
            VendorPerformanceReviewModel.project_id == project_id
        )
        removed += await self.contracts._delete_where(
            VendorContractModel.project_id == project_id
        )
        return removed
