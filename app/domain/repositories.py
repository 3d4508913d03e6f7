from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
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


class ProjectRepository(ABC):
    @abstractmethod
    async def create(self, project: Project) -> Project:
        pass

    @abstractmethod
    async def get_by_id(self, project_id: UUID) -> Optional[Project]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Project]:
        pass

    @abstractmethod
    async def update(self, project: Project) -> Project:
        pass

    @abstractmethod
    async def delete(self, project_id: UUID) -> bool:
        pass


class MilestoneRepository(ABC):
    @abstractmethod
    async def create(self, milestone: Milestone) -> Milestone:
        pass

    @abstractmethod
    async def get_by_id(self, milestone_id: UUID) -> Optional[Milestone]:
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> List[Milestone]:
        """Milestones of a project by order index."""

    @abstractmethod
    async def list_all(self) -> List[Milestone]:
        """All milestones by target date."""

    @abstractmethod
    async def update(self, milestone: Milestone) -> Milestone:
        pass

    @abstractmethod
    async def delete(self, milestone_id: UUID) -> bool:
        pass

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        pass


class RiskRepository(ABC):
    @abstractmethod
    async def create(self, risk: Risk) -> Risk:
        pass

    @abstractmethod
    async def get_by_id(self, risk_id: UUID) -> Optional[Risk]:
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> List[Risk]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Risk]:
        pass

    @abstractmethod
    async def update(self, risk: Risk) -> Risk:
        pass

    @abstractmethod
    async def delete(self, risk_id: UUID) -> bool:
        pass

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        pass


class StatusUpdateRepository(ABC):
    @abstractmethod
    async def create(self, update: StatusUpdate) -> StatusUpdate:
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> List[StatusUpdate]:
        """Newest first."""

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        pass


class DocumentRepository(ABC):
    @abstractmethod
    async def create(self, document: Document) -> Document:
        pass

    @abstractmethod
    async def get_by_id(self, document_id: UUID) -> Optional[Document]:
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> List[Document]:
        """Newest upload first."""

    @abstractmethod
    async def list_all(self) -> List[Document]:
        pass

    @abstractmethod
    async def update(self, document: Document) -> Document:
        pass

    @abstractmethod
    async def delete(self, document_id: UUID) -> bool:
        pass

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        pass


class TaskRepository(ABC):
    @abstractmethod
    async def create(self, task: Task) -> Task:
        pass

    @abstractmethod
    async def create_many(self, tasks: Sequence[Task]) -> List[Task]:
        pass

    @abstractmethod
    async def get_by_id(self, task_id: UUID) -> Optional[Task]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Task]:
        """Newest first."""

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def update(self, task: Task) -> Task:
        pass

    @abstractmethod
    async def delete(self, task_id: UUID) -> bool:
        pass


class SubtaskRepository(ABC):
    @abstractmethod
    async def create(self, subtask: Subtask) -> Subtask:
        pass

    @abstractmethod
    async def get_by_id(self, subtask_id: UUID) -> Optional[Subtask]:
        pass

    @abstractmethod
    async def list_by_task(self, task_id: UUID) -> List[Subtask]:
        """Subtasks of a task by order index."""

    @abstractmethod
    async def update(self, subtask: Subtask) -> Subtask:
        pass

    @abstractmethod
    async def delete(self, subtask_id: UUID) -> bool:
        pass

    @abstractmethod
    async def delete_by_task(self, task_id: UUID) -> int:
        pass


class IdeaRepository(ABC):
    @abstractmethod
    async def create(self, idea: Idea) -> Idea:
        pass

    @abstractmethod
    async def create_many(self, ideas: Sequence[Idea]) -> List[Idea]:
        pass

    @abstractmethod
    async def get_by_id(self, idea_id: UUID) -> Optional[Idea]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Idea]:
        """Newest first."""

    @abstractmethod
    async def update(self, idea: Idea) -> Idea:
        pass

    @abstractmethod
    async def delete(self, idea_id: UUID) -> bool:
        pass

    @abstractmethod
    async def add_review(self, review: IdeaReview) -> IdeaReview:
        pass

    @abstractmethod
    async def list_reviews(self, idea_id: UUID) -> List[IdeaReview]:
        pass

    @abstractmethod
    async def add_history(self, entry: IdeaStageHistory) -> IdeaStageHistory:
        pass

    @abstractmethod
    async def list_history(self, idea_id: UUID) -> List[IdeaStageHistory]:
        pass

    @abstractmethod
    async def add_comment(self, comment: IdeaComment) -> IdeaComment:
        pass

    @abstractmethod
    async def list_comments(self, idea_id: UUID) -> List[IdeaComment]:
        """Oldest first, so threads read top to bottom."""


class DocumentTemplateRepository(ABC):
    @abstractmethod
    async def list(self, phase_name: Optional[str] = None) -> List[DocumentTemplate]:
        pass

    @abstractmethod
    async def get_by_id(self, template_id: UUID) -> Optional[DocumentTemplate]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def create_many(
        self, templates: Sequence[DocumentTemplate]
    ) -> List[DocumentTemplate]:
        pass


class ChecklistRepository(ABC):
    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> List[ChecklistItem]:
        pass

    @abstractmethod
    async def create_many(self, items: Sequence[ChecklistItem]) -> List[ChecklistItem]:
        pass

    @abstractmethod
    async def get_by_id(self, item_id: UUID) -> Optional[ChecklistItem]:
        pass

    @abstractmethod
    async def update(self, item: ChecklistItem) -> ChecklistItem:
        pass

    @abstractmethod
    async def delete(self, item_id: UUID) -> bool:
        pass

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        pass


class InsightRepository(ABC):
    @abstractmethod
    async def create_many(self, insights: Sequence[AIInsight]) -> List[AIInsight]:
        pass

    @abstractmethod
    async def get_by_id(self, insight_id: UUID) -> Optional[AIInsight]:
        pass

    @abstractmethod
    async def list_recent(
        self, limit: int = 50, status: Optional[str] = None
    ) -> List[AIInsight]:
        pass

    @abstractmethod
    async def update(self, insight: AIInsight) -> AIInsight:
        pass


class PredictionRepository(ABC):
    @abstractmethod
    async def create_many(
        self, predictions: Sequence[AIPrediction]
    ) -> List[AIPrediction]:
        pass

    @abstractmethod
    async def list_valid(
        self, project_id: UUID, prediction_type: str, now: datetime
    ) -> List[AIPrediction]:
        """Predictions that have not expired yet, newest first."""


class UserRepository(ABC):
    @abstractmethod
    async def create(self, user: User) -> User:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass


class PhaseRepository(ABC):
    """Project phases together with the project's blueprint."""

    @abstractmethod
    async def create_many(self, phases: Sequence[ProjectPhase]) -> List[ProjectPhase]:
        pass

    @abstractmethod
    async def get_by_id(self, phase_id: UUID) -> Optional[ProjectPhase]:
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> List[ProjectPhase]:
        """Ordered by phase number."""

    @abstractmethod
    async def update(self, phase: ProjectPhase) -> ProjectPhase:
        pass

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        """Removes the phases and the blueprint."""

    @abstractmethod
    async def get_blueprint(self, project_id: UUID) -> Optional[ProjectBlueprint]:
        pass

    @abstractmethod
    async def save_blueprint(self, blueprint: ProjectBlueprint) -> ProjectBlueprint:
        """Insert or replace the single blueprint of a project."""


class MetricsHistoryRepository(ABC):
    @abstractmethod
    async def create(self, snapshot: ProjectMetricsSnapshot) -> ProjectMetricsSnapshot:
        pass

    @abstractmethod
    async def list_by_project(
        self, project_id: UUID, limit: Optional[int] = None
    ) -> List[ProjectMetricsSnapshot]:
        """Newest snapshot first."""

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        pass


class VendorRepository(ABC):
    """Vendors plus the contracts, deliverables and reviews tied to projects."""

    @abstractmethod
    async def create(self, vendor: Vendor) -> Vendor:
        pass

    @abstractmethod
    async def get_by_id(self, vendor_id: UUID) -> Optional[Vendor]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Vendor]:
        pass

    @abstractmethod
    async def update(self, vendor: Vendor) -> Vendor:
        pass

    @abstractmethod
    async def delete(self, vendor_id: UUID) -> bool:
        """Also removes the vendor's contracts, deliverables and reviews."""

    @abstractmethod
    async def add_contract(self, contract: VendorContract) -> VendorContract:
        pass

    @abstractmethod
    async def get_contract(self, contract_id: UUID) -> Optional[VendorContract]:
        pass

    @abstractmethod
    async def update_contract(self, contract: VendorContract) -> VendorContract:
        pass

    @abstractmethod
    async def list_contracts(self, project_id: UUID) -> List[VendorContract]:
        """Newest first."""

    @abstractmethod
    async def add_deliverable(self, deliverable: VendorDeliverable) -> VendorDeliverable:
        pass

    @abstractmethod
    async def get_deliverable(self, deliverable_id: UUID) -> Optional[VendorDeliverable]:
        pass

    @abstractmethod
    async def update_deliverable(
        self, deliverable: VendorDeliverable
    ) -> VendorDeliverable:
        pass

    @abstractmethod
    async def list_deliverables(self, project_id: UUID) -> List[VendorDeliverable]:
        """Earliest due date first."""

    @abstractmethod
    async def add_review(
        self, review: VendorPerformanceReview
    ) -> VendorPerformanceReview:
        pass

    @abstractmethod
    async def list_reviews(self, project_id: UUID) -> List[VendorPerformanceReview]:
        """Most recent review first."""

    @abstractmethod
    async def delete_by_project(self, project_id: UUID) -> int:
        """Removes a project's contracts, deliverables and reviews."""
