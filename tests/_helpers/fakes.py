"""Fake repository implementations for testing."""

from datetime import date, datetime
from typing import Dict, Generic, List, Optional, Sequence, TypeVar
from uuid import UUID

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

T = TypeVar("T")


class _InMemoryStore(Generic[T]):
    """Dict keyed by entity id, shared by the fakes below."""

    entity_name = "Entity"

    def __init__(self) -> None:
        self.items: Dict[UUID, T] = {}

    async def create(self, item: T) -> T:
        self.items[item.id] = item
        return item

    async def create_many(self, items: Sequence[T]) -> List[T]:
        for item in items:
            self.items[item.id] = item
        return list(items)

    async def get_by_id(self, item_id: UUID) -> Optional[T]:
        return self.items.get(item_id)

    async def update(self, item: T) -> T:
        if item.id not in self.items:
            raise EntityNotFoundException(self.entity_name, item.id)
        self.items[item.id] = item
        return item

    async def delete(self, item_id: UUID) -> bool:
        return self.items.pop(item_id, None) is not None

    def _delete_matching(self, predicate) -> int:
        doomed = [key for key, item in self.items.items() if predicate(item)]
        for key in doomed:
            del self.items[key]
        return len(doomed)


class FakeProjectRepository(_InMemoryStore[Project], ProjectRepository):
    entity_name = "Project"

    async def list_all(self) -> List[Project]:
        return sorted(self.items.values(), key=lambda p: p.created_at, reverse=True)


class FakeMilestoneRepository(_InMemoryStore[Milestone], MilestoneRepository):
    entity_name = "Milestone"

    async def list_by_project(self, project_id: UUID) -> List[Milestone]:
        milestones = [m for m in self.items.values() if m.project_id == project_id]
        return sorted(milestones, key=lambda m: (m.order_index, m.target_date))

    async def list_all(self) -> List[Milestone]:
        return sorted(self.items.values(), key=lambda m: m.target_date)

    async def delete_by_project(self, project_id: UUID) -> int:
        return self._delete_matching(lambda m: m.project_id == project_id)


class FakeRiskRepository(_InMemoryStore[Risk], RiskRepository):
    entity_name = "Risk"

    async def list_by_project(self, project_id: UUID) -> List[Risk]:
        risks = [r for r in self.items.values() if r.project_id == project_id]
        return sorted(risks, key=lambda r: r.risk_reported_date, reverse=True)

    async def list_all(self) -> List[Risk]:
        return sorted(
            self.items.values(), key=lambda r: r.risk_reported_date, reverse=True
        )

    async def delete_by_project(self, project_id: UUID) -> int:
        return self._delete_matching(lambda r: r.project_id == project_id)


class FakeStatusUpdateRepository(_InMemoryStore[StatusUpdate], StatusUpdateRepository):
    entity_name = "StatusUpdate"

    async def list_by_project(self, project_id: UUID) -> List[StatusUpdate]:
        updates = [u for u in self.items.values() if u.project_id == project_id]
        return sorted(
            updates, key=lambda u: (u.update_date, u.created_at), reverse=True
        )

    async def delete_by_project(self, project_id: UUID) -> int:
        return self._delete_matching(lambda u: u.project_id == project_id)


class FakeDocumentRepository(_InMemoryStore[Document], DocumentRepository):
    entity_name = "Document"

    async def list_by_project(self, project_id: UUID) -> List[Document]:
        documents = [d for d in self.items.values() if d.project_id == project_id]
        return sorted(documents, key=lambda d: d.upload_date, reverse=True)

    async def list_all(self) -> List[Document]:
        return sorted(self.items.values(), key=lambda d: d.upload_date, reverse=True)

    async def delete_by_project(self, project_id: UUID) -> int:
        return self._delete_matching(lambda d: d.project_id == project_id)


class FakeTaskRepository(_InMemoryStore[Task], TaskRepository):
    entity_name = "Task"

    async def list_all(self) -> List[Task]:
        return sorted(
            self.items.values(),
            key=lambda t: (t.created_at, t.serial_no),
            reverse=True,
        )

    async def count(self) -> int:
        return len(self.items)


class FakeSubtaskRepository(_InMemoryStore[Subtask], SubtaskRepository):
    entity_name = "Subtask"

    async def list_by_task(self, task_id: UUID) -> List[Subtask]:
        subtasks = [s for s in self.items.values() if s.parent_task_id == task_id]
        return sorted(subtasks, key=lambda s: s.order_index)

    async def delete_by_task(self, task_id: UUID) -> int:
        return self._delete_matching(lambda s: s.parent_task_id == task_id)


class FakeIdeaRepository(_InMemoryStore[Idea], IdeaRepository):
    entity_name = "Idea"

    def __init__(self) -> None:
        super().__init__()
        self.reviews: List[IdeaReview] = []
        self.history: List[IdeaStageHistory] = []
        self.comments: List[IdeaComment] = []

    async def list_all(self) -> List[Idea]:
        return sorted(self.items.values(), key=lambda i: i.created_at, reverse=True)

    async def delete(self, idea_id: UUID) -> bool:
        self.reviews = [r for r in self.reviews if r.idea_id != idea_id]
        self.history = [h for h in self.history if h.idea_id != idea_id]
        self.comments = [c for c in self.comments if c.idea_id != idea_id]
        return await super().delete(idea_id)

    async def add_review(self, review: IdeaReview) -> IdeaReview:
        self.reviews.append(review)
        return review

    async def list_reviews(self, idea_id: UUID) -> List[IdeaReview]:
        reviews = [r for r in self.reviews if r.idea_id == idea_id]
        return sorted(reviews, key=lambda r: r.review_date, reverse=True)

    async def add_history(self, entry: IdeaStageHistory) -> IdeaStageHistory:
        self.history.append(entry)
        return entry

    async def list_history(self, idea_id: UUID) -> List[IdeaStageHistory]:
        entries = [h for h in self.history if h.idea_id == idea_id]
        return sorted(entries, key=lambda h: h.created_at, reverse=True)

    async def add_comment(self, comment: IdeaComment) -> IdeaComment:
        self.comments.append(comment)
        return comment

    async def list_comments(self, idea_id: UUID) -> List[IdeaComment]:
        comments = [c for c in self.comments if c.idea_id == idea_id]
        return sorted(comments, key=lambda c: c.created_at)


class FakeDocumentTemplateRepository(
    _InMemoryStore[DocumentTemplate], DocumentTemplateRepository
):
    entity_name = "DocumentTemplate"

    async def list(self, phase_name: Optional[str] = None) -> List[DocumentTemplate]:
        templates = [
            t
            for t in self.items.values()
            if phase_name is None or t.phase_name == phase_name
        ]
        return sorted(templates, key=lambda t: (t.phase_name, t.name))

    async def count(self) -> int:
        return len(self.items)


class FakeChecklistRepository(_InMemoryStore[ChecklistItem], ChecklistRepository):
    entity_name = "ChecklistItem"

    async def list_by_project(self, project_id: UUID) -> List[ChecklistItem]:
        items = [i for i in self.items.values() if i.project_id == project_id]
        return sorted(items, key=lambda i: i.created_at)

    async def delete_by_project(self, project_id: UUID) -> int:
        return self._delete_matching(lambda i: i.project_id == project_id)


class FakeInsightRepository(_InMemoryStore[AIInsight], InsightRepository):
    entity_name = "AIInsight"

    async def list_recent(
        self, limit: int = 50, status: Optional[str] = None
    ) -> List[AIInsight]:
        insights = [
            i for i in self.items.values() if status is None or i.status == status
        ]
        insights.sort(key=lambda i: i.generated_at, reverse=True)
        return insights[:limit]


class FakePredictionRepository(_InMemoryStore[AIPrediction], PredictionRepository):
    entity_name = "AIPrediction"

    async def list_valid(
        self, project_id: UUID, prediction_type: str, now: datetime
    ) -> List[AIPrediction]:
        predictions = [
            p
            for p in self.items.values()
            if p.project_id == project_id
            and p.prediction_type == prediction_type
            and not p.is_expired(now)
        ]
        return sorted(predictions, key=lambda p: p.generated_at, reverse=True)


class FakeUserRepository(_InMemoryStore[User], UserRepository):
    entity_name = "User"

    async def get_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self.items.values() if u.email == email), None)


class FakePhaseRepository(_InMemoryStore[ProjectPhase], PhaseRepository):
    entity_name = "ProjectPhase"

    def __init__(self) -> None:
        super().__init__()
        self.blueprints: Dict[UUID, ProjectBlueprint] = {}

    async def list_by_project(self, project_id: UUID) -> List[ProjectPhase]:
        phases = [p for p in self.items.values() if p.project_id == project_id]
        return sorted(phases, key=lambda p: p.phase_number)

    async def delete_by_project(self, project_id: UUID) -> int:
        self.blueprints.pop(project_id, None)
        return self._delete_matching(lambda p: p.project_id == project_id)

    async def get_blueprint(self, project_id: UUID) -> Optional[ProjectBlueprint]:
        return self.blueprints.get(project_id)

    async def save_blueprint(self, blueprint: ProjectBlueprint) -> ProjectBlueprint:
        existing = self.blueprints.get(blueprint.project_id)
        if existing is not None:
            blueprint = blueprint.model_copy(
                update={"id": existing.id, "created_at": existing.created_at}
            )
        self.blueprints[blueprint.project_id] = blueprint
        return blueprint


class FakeMetricsHistoryRepository(
    _InMemoryStore[ProjectMetricsSnapshot], MetricsHistoryRepository
):
    entity_name = "ProjectMetricsSnapshot"

    async def list_by_project(
        self, project_id: UUID, limit: Optional[int] = None
    ) -> List[ProjectMetricsSnapshot]:
        snapshots = [s for s in self.items.values() if s.project_id == project_id]
        snapshots.sort(key=lambda s: (s.snapshot_date, s.created_at), reverse=True)
        return snapshots if limit is None else snapshots[:limit]

    async def delete_by_project(self, project_id: UUID) -> int:
        return self._delete_matching(lambda s: s.project_id == project_id)


class FakeVendorRepository(_InMemoryStore[Vendor], VendorRepository):
    entity_name = "Vendor"

    def __init__(self) -> None:
        super().__init__()
        self.contracts: Dict[UUID, VendorContract] = {}
        self.deliverables: Dict[UUID, VendorDeliverable] = {}
        self.reviews: Dict[UUID, VendorPerformanceReview] = {}

    @staticmethod
    def _drop(records: Dict[UUID, T], predicate) -> int:
        doomed = [key for key, record in records.items() if predicate(record)]
        for key in doomed:
            del records[key]
        return len(doomed)

    async def list_all(self) -> List[Vendor]:
        return sorted(self.items.values(), key=lambda v: v.created_at, reverse=True)

    async def delete(self, vendor_id: UUID) -> bool:
        for records in (self.deliverables, self.reviews, self.contracts):
            self._drop(records, lambda r: r.vendor_id == vendor_id)
        return await super().delete(vendor_id)

    async def add_contract(self, contract: VendorContract) -> VendorContract:
        self.contracts[contract.id] = contract
        return contract

    async def get_contract(self, contract_id: UUID) -> Optional[VendorContract]:
        return self.contracts.get(contract_id)

    async def update_contract(self, contract: VendorContract) -> VendorContract:
        if contract.id not in self.contracts:
            raise EntityNotFoundException("VendorContract", contract.id)
        self.contracts[contract.id] = contract
        return contract

    async def list_contracts(self, project_id: UUID) -> List[VendorContract]:
        contracts = [c for c in self.contracts.values() if c.project_id == project_id]
        return sorted(contracts, key=lambda c: c.created_at, reverse=True)

    async def add_deliverable(self, deliverable: VendorDeliverable) -> VendorDeliverable:
        self.deliverables[deliverable.id] = deliverable
        return deliverable

    async def get_deliverable(self, deliverable_id: UUID) -> Optional[VendorDeliverable]:
        return self.deliverables.get(deliverable_id)

    async def update_deliverable(
        self, deliverable: VendorDeliverable
    ) -> VendorDeliverable:
        if deliverable.id not in self.deliverables:
            raise EntityNotFoundException("VendorDeliverable", deliverable.id)
        self.deliverables[deliverable.id] = deliverable
        return deliverable

    async def list_deliverables(self, project_id: UUID) -> List[VendorDeliverable]:
        deliverables = [
            d for d in self.deliverables.values() if d.project_id == project_id
        ]
        return sorted(
            deliverables, key=lambda d: (d.due_date is None, d.due_date or date.min)
        )

    async def add_review(
        self, review: VendorPerformanceReview
    ) -> VendorPerformanceReview:
        self.reviews[review.id] = review
        return review

    async def list_reviews(self, project_id: UUID) -> List[VendorPerformanceReview]:
        reviews = [r for r in self.reviews.values() if r.project_id == project_id]
        return sorted(reviews, key=lambda r: r.review_date, reverse=True)

    async def delete_by_project(self, project_id: UUID) -> int:
        return sum(
            self._drop(records, lambda r: r.project_id == project_id)
            for records in (self.deliverables, self.reviews, self.contracts)
        )
