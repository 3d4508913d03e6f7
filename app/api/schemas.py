from datetime import date, datetime, UTC
from typing import Any, Dict, List, Literal, Optional, TypeVar
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    model_validator,
)

from app.domain.analytics import (
    BudgetTrend,
    HealthDimension,
    PhaseDocuments,
    PortfolioMetrics,
    ProjectTimelinePerformance,
    RiskMatrixPoint,
    StageStatistics,
    VelocityPoint,
)
from app.domain.dependency_graph import DependencyGraph
from app.domain.entities import (
    AIInsight,
    ContractStatus,
    ContractType,
    DeliverableStatus,
    DocumentStatus,
    DocumentTemplate,
    Idea,
    IdeaComment,
    IdeaReview,
    IdeaStageHistory,
    MilestoneStatus,
    PerformanceMetrics,
    PhaseStatus,
    ProjectPhase,
    RAGStatus,
    RiskStatus,
    Task,
    UpdateType,
    VendorContract,
    VendorDeliverable,
    VendorPerformanceReview,
    VendorRating,
)
from app.domain.exceptions import ValidationException
from app.domain.ideation import L2Scores
from app.domain.performance import PerformanceCriteria
from app.domain.timeline import DelayInfo, TimelineStats, TimelineTracks
from app.infrastructure.llm.models import (
    MilestoneForecast,
    PortfolioInsights,
    RiskForecast,
    TaskPriority,
)


EntityT = TypeVar("EntityT", bound=BaseModel)


class PatchModel(BaseModel):
    """Partial update: only fields the client sent are applied."""

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    def apply_to(
        self, entity: EntityT, changes: Optional[Dict[str, Any]] = None
    ) -> EntityT:
        """Merge changes into entity and validate the result as a whole.

        An explicit null on a field the entity requires is rejected here
        instead of being stored.
        """
        if changes is None:
            changes = self.changes()
        try:
            return type(entity).model_validate({**entity.model_dump(), **changes})
        except ValidationError as exc:
            raise ValidationException(
                f"Invalid update for {type(entity).__name__}",
                details={
                    ".".join(str(part) for part in error["loc"]): error["msg"]
                    for error in exc.errors()
                },
            ) from exc


# Projects
class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    project_manager: str = Field(default="", max_length=255)
    business_owner: str = Field(default="", max_length=255)
    project_team: List[str] = Field(default_factory=list)
    tco: float = Field(default=0, ge=0)
    capex: float = Field(default=0, ge=0)
    opex: float = Field(default=0, ge=0)
    actual_spent: float = Field(default=0, ge=0)
    start_date: date
    go_live_date: date
    hypercare_end_date: Optional[date] = None
    project_overview: str = ""
    business_benefits: str = ""
    project_value_delivery: str = ""
    current_status: str = ""
    overall_rag: RAGStatus = RAGStatus.GREEN
    timeline_rag: RAGStatus = RAGStatus.GREEN
    budget_rag: RAGStatus = RAGStatus.GREEN
    scope_rag: RAGStatus = RAGStatus.GREEN
    key_activities: str = ""

    @model_validator(mode="after")
    def check_dates(self) -> "ProjectCreateRequest":
        if self.go_live_date < self.start_date:
            raise ValueError("go_live_date must not be before start_date")
        return self


class ProjectUpdateRequest(PatchModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    project_manager: Optional[str] = None
    business_owner: Optional[str] = None
    project_team: Optional[List[str]] = None
    tco: Optional[float] = Field(None, ge=0)
    capex: Optional[float] = Field(None, ge=0)
    opex: Optional[float] = Field(None, ge=0)
    actual_spent: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    go_live_date: Optional[date] = None
    hypercare_end_date: Optional[date] = None
    project_overview: Optional[str] = None
    business_benefits: Optional[str] = None
    project_value_delivery: Optional[str] = None
    current_status: Optional[str] = None
    overall_rag: Optional[RAGStatus] = None
    timeline_rag: Optional[RAGStatus] = None
    budget_rag: Optional[RAGStatus] = None
    scope_rag: Optional[RAGStatus] = None
    key_activities: Optional[str] = None
    user_adoption_rate: Optional[float] = Field(None, ge=0, le=100)


class CommentCreateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    author: Optional[str] = Field(None, max_length=255)


# Milestones
class MilestoneCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    target_date: date
    baseline_target_date: Optional[date] = None
    completed_date: Optional[date] = None
    status: MilestoneStatus = MilestoneStatus.PLANNED
    description: Optional[str] = None
    order_index: Optional[int] = Field(None, ge=0)
    dependencies: List[UUID] = Field(default_factory=list)
    is_critical_path: bool = False
    approval_required: bool = False


class MilestoneUpdateRequest(PatchModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    target_date: Optional[date] = None
    baseline_target_date: Optional[date] = None
    completed_date: Optional[date] = None
    status: Optional[MilestoneStatus] = None
    description: Optional[str] = None
    order_index: Optional[int] = Field(None, ge=0)
    dependencies: Optional[List[UUID]] = None
    is_critical_path: Optional[bool] = None
    approval_required: Optional[bool] = None
    approved_by: Optional[str] = None
    approved_date: Optional[date] = None


class TimelineResponse(BaseModel):
    stats: TimelineStats
    delays: List[DelayInfo]
    tracks: TimelineTracks


# Risks
class RiskCreateRequest(BaseModel):
    risk_number: str = Field(..., min_length=1, max_length=50)
    risk_details: str = Field(..., min_length=1)
    mitigation_plan: str = ""
    risk_reported_date: date
    target_completion_date: Optional[date] = None
    owner: str = ""
    status: RiskStatus = RiskStatus.OPEN
    rag_status: RAGStatus = RAGStatus.AMBER


class RiskUpdateRequest(PatchModel):
    risk_number: Optional[str] = Field(None, min_length=1, max_length=50)
    risk_details: Optional[str] = Field(None, min_length=1)
    mitigation_plan: Optional[str] = None
    risk_reported_date: Optional[date] = None
    target_completion_date: Optional[date] = None
    owner: Optional[str] = None
    status: Optional[RiskStatus] = None
    rag_status: Optional[RAGStatus] = None


# Status updates
class StatusUpdateCreateRequest(BaseModel):
    update_date: date
    update_type: UpdateType = UpdateType.WEEKLY
    summary: str = Field(..., min_length=1)
    accomplishments: str = ""
    challenges: str = ""
    next_steps: str = ""
    overall_rag: RAGStatus = RAGStatus.GREEN


# Documents
class DocumentCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(default="document", max_length=50)
    phase: str = Field(..., min_length=1, max_length=100)
    status: DocumentStatus = DocumentStatus.DRAFT
    version: str = Field(default="1.0", max_length=20)
    url: Optional[str] = None
    content: Optional[str] = None
    document_template_id: Optional[UUID] = None
    is_critical_milestone: bool = False


class DocumentUpdateRequest(PatchModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=50)
    phase: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[DocumentStatus] = None
    version: Optional[str] = Field(None, max_length=20)
    url: Optional[str] = None
    content: Optional[str] = None
    is_critical_milestone: Optional[bool] = None


class PerformanceResponse(BaseModel):
    metrics: PerformanceMetrics
    insights: List[str]
    criteria: List[PerformanceCriteria]


# Checklist
class ChecklistToggleRequest(BaseModel):
    template_id: UUID


class ChecklistTemplateView(DocumentTemplate):
    is_selected: bool = False
    checklist_id: Optional[UUID] = None


class ChecklistProgress(BaseModel):
    selected: int
    total: int
    percentage: int


class ChecklistResponse(BaseModel):
    phase_name: str
    templates: List[ChecklistTemplateView]
    by_category: Dict[str, List[ChecklistTemplateView]]
    progress: ChecklistProgress


class ChecklistChangeResponse(BaseModel):
    added: int = 0
    removed: int = 0


class ChecklistItemUpdateRequest(PatchModel):
    completion_status: Optional[PhaseStatus] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    due_date: Optional[date] = None
    notes: Optional[str] = None
    document_id: Optional[UUID] = None


# Phases and blueprints
class PhaseView(ProjectPhase):
    progress: int = 0
    is_current: bool = False


class PhaseUpdateRequest(PatchModel):
    status: Optional[PhaseStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_end_date: Optional[date] = None


class BlueprintSaveRequest(BaseModel):
    purpose: str = ""
    validation_criteria: List[str] = Field(default_factory=list)
    success_metrics: List[str] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)


# Tasks
class TaskCreateRequest(BaseModel):
    owner: List[str] = Field(default_factory=list)
    action_item: str = Field(..., min_length=1)
    reported_date: date
    target_date: date
    status: str = Field(default="Not Started", min_length=1, max_length=100)
    progress_comments: str = ""
    category: Optional[str] = Field(None, max_length=100)
    project_id: Optional[UUID] = None
    dependencies: List[UUID] = Field(default_factory=list)


class TaskUpdateRequest(PatchModel):
    owner: Optional[List[str]] = None
    action_item: Optional[str] = Field(None, min_length=1)
    reported_date: Optional[date] = None
    target_date: Optional[date] = None
    status: Optional[str] = Field(None, min_length=1, max_length=100)
    progress_comments: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    project_id: Optional[UUID] = None


class DependencyUpdateRequest(BaseModel):
    dependencies: List[UUID] = Field(default_factory=list)


class SubtaskCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    status: str = Field(default="Not Started", max_length=100)
    owner: List[str] = Field(default_factory=list)
    target_date: Optional[date] = None
    order_index: Optional[int] = Field(None, ge=0)
    progress_comments: Optional[str] = None


class SubtaskUpdateRequest(PatchModel):
    title: Optional[str] = Field(None, min_length=1)
    status: Optional[str] = Field(None, max_length=100)
    owner: Optional[List[str]] = None
    target_date: Optional[date] = None
    completion_date: Optional[date] = None
    order_index: Optional[int] = Field(None, ge=0)
    progress_comments: Optional[str] = None


class TaskImportResponse(BaseModel):
    imported: int
    owners: List[str]
    tasks: List[Task]


class TaskGraphResponse(BaseModel):
    graph: DependencyGraph
    cycles: List[List[UUID]]


class TaskFacetsResponse(BaseModel):
    categories: List[str]
    owners: List[str]
    statuses: Dict[str, int]


# Ideas
class IdeaCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    category: str = "Innovation"
    priority: str = "Medium"
    problem_statement: Optional[str] = None
    proposed_solution: Optional[str] = None
    expected_benefits: Optional[str] = None
    remarks: Optional[str] = None
    department_code: Optional[str] = None
    submitter_name: Optional[str] = None
    submitter_email: Optional[EmailStr] = None
    submitter_employee_id: Optional[str] = None
    project_id: Optional[UUID] = None


class IdeaUpdateRequest(PatchModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    problem_statement: Optional[str] = None
    proposed_solution: Optional[str] = None
    expected_benefits: Optional[str] = None
    remarks: Optional[str] = None
    department_code: Optional[str] = None
    project_id: Optional[UUID] = None
    l5_project_lead: Optional[str] = None
    l5_team_members: Optional[List[str]] = None
    l5_start_date: Optional[date] = None
    l5_target_completion_date: Optional[date] = None
    l5_progress_percentage: Optional[float] = Field(None, ge=0, le=100)
    l5_comments: Optional[str] = None


class L2ReviewRequest(L2Scores):
    comments: Optional[str] = None


class IdeaDetailResponse(BaseModel):
    idea: Idea
    reviews: List[IdeaReview]
    history: List[IdeaStageHistory]
    comments: List[IdeaComment] = Field(default_factory=list)


class IdeaCommentCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    author_name: str = Field(..., min_length=1, max_length=255)
    author_email: Optional[EmailStr] = None
    content: str = Field(..., min_length=1, max_length=5000)
    is_internal: bool = False
    parent_comment_id: Optional[UUID] = None


class IdeaImportResponse(BaseModel):
    imported: int
    skipped: int
    errors: List[str]
    ideas: List[Idea]


# Analytics
class PortfolioDashboardResponse(BaseModel):
    metrics: PortfolioMetrics
    timeline_performance: List[ProjectTimelinePerformance]
    budget_trends: List[BudgetTrend]
    risk_matrix: List[RiskMatrixPoint]
    task_velocity: List[VelocityPoint]
    documents_by_phase: List[PhaseDocuments]
    health_radar: List[HealthDimension]
    task_status: Dict[str, int]
    overdue_tasks: int
    idea_stages: List[StageStatistics]


class ProjectPerformanceSummary(BaseModel):
    project_id: UUID
    name: str
    overall_rag: RAGStatus
    metrics: PerformanceMetrics


class MetricsSnapshotRequest(BaseModel):
    snapshot_date: Optional[date] = None
    resource_utilization: Optional[float] = Field(None, ge=0, le=100)


# Vendors
class VendorCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_person: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    website: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    status: str = Field(default="active", max_length=20)


class VendorUpdateRequest(PatchModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_person: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    website: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    status: Optional[str] = Field(None, max_length=20)


class ContractCreateRequest(BaseModel):
    vendor_id: UUID
    contract_type: ContractType = ContractType.MSA
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    contract_number: Optional[str] = Field(None, max_length=100)
    status: ContractStatus = ContractStatus.DRAFT
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    value: Optional[float] = Field(None, ge=0)
    signed_date: Optional[date] = None
    document_url: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_term(self) -> "ContractCreateRequest":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ContractUpdateRequest(PatchModel):
    contract_type: Optional[ContractType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    contract_number: Optional[str] = Field(None, max_length=100)
    status: Optional[ContractStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    value: Optional[float] = Field(None, ge=0)
    signed_date: Optional[date] = None
    document_url: Optional[str] = None
    notes: Optional[str] = None


class DeliverableCreateRequest(BaseModel):
    vendor_id: UUID
    contract_id: Optional[UUID] = None
    deliverable_name: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    status: DeliverableStatus = DeliverableStatus.PENDING
    due_date: Optional[date] = None
    document_url: Optional[str] = None


class DeliverableUpdateRequest(PatchModel):
    deliverable_name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[DeliverableStatus] = None
    due_date: Optional[date] = None
    submission_date: Optional[date] = None
    quality_rating: Optional[VendorRating] = None
    review_notes: Optional[str] = None
    document_url: Optional[str] = None


class VendorReviewCreateRequest(BaseModel):
    vendor_id: UUID
    review_period_start: date
    review_period_end: date
    overall_rating: VendorRating = VendorRating.SATISFACTORY
    quality_rating: Optional[VendorRating] = None
    timeliness_rating: Optional[VendorRating] = None
    communication_rating: Optional[VendorRating] = None
    cost_effectiveness_rating: Optional[VendorRating] = None
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    recommendations: Optional[str] = None
    review_date: Optional[date] = None

    @model_validator(mode="after")
    def check_period(self) -> "VendorReviewCreateRequest":
        if self.review_period_end < self.review_period_start:
            raise ValueError("review_period_end must not be before review_period_start")
        return self


class VendorSummary(BaseModel):
    vendors: int
    active_contracts: int
    pending_deliverables: int
    performance_reviews: int


class ProjectVendorsResponse(BaseModel):
    summary: VendorSummary
    contracts: List[VendorContract]
    deliverables: List[VendorDeliverable]
    reviews: List[VendorPerformanceReview]


# AI assistant
class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    history: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str
    error: Optional[str] = None


class PrioritizeTasksRequest(BaseModel):
    # None means every stored task
    task_ids: Optional[List[UUID]] = None


class PrioritizeTasksResponse(BaseModel):
    prioritized_tasks: List[TaskPriority]
    updated: int


class ProjectAIRequest(BaseModel):
    project_id: UUID


class RiskForecastResponse(BaseModel):
    success: bool = True
    risk_forecast: RiskForecast
    high_risk_insights_created: int = 0
    cached: bool = False


class MilestoneForecastResponse(BaseModel):
    success: bool = True
    predictions: MilestoneForecast
    predictions_stored: int = 0
    cached: bool = False


class PortfolioInsightsResponse(BaseModel):
    success: bool = True
    insights: PortfolioInsights
    insights_stored: int = 0


class InsightListResponse(BaseModel):
    insights: List[AIInsight]


# Authentication Schemas
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    created_at: datetime
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


# Health Check Schema
class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    services: Dict[str, bool] = Field(default_factory=dict)
    version: str


# Error Schemas
class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Any] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
