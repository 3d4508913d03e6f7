from datetime import date, datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, EmailStr, Field


def _now() -> datetime:
    return datetime.now(UTC)


class RAGStatus(str, Enum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"


class MilestoneStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    AT_RISK = "at-risk"


class RiskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    MITIGATED = "mitigated"
    CLOSED = "closed"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    REJECTED = "rejected"


class UpdateType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class EvaluationStage(str, Enum):
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    L4 = "L4"
    L5 = "L5"


class StageStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"


class PerformanceRating(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DelaySeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"


class TemplateCategory(str, Enum):
    STRATEGIC = "strategic"
    CONTRACTUAL = "contractual"
    TECHNICAL = "technical"
    QUALITY = "quality"
    GOVERNANCE = "governance"
    VENDOR = "vendor"


class PhaseStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class ContractType(str, Enum):
    NDA = "NDA"
    MSA = "MSA"
    SOW = "SOW"
    SLA = "SLA"
    OTHER = "Other"


class ContractStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class DeliverableStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class VendorRating(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    SATISFACTORY = "satisfactory"
    NEEDS_IMPROVEMENT = "needs_improvement"
    POOR = "poor"


COMPLETED_TASK_STATUS = "Completed"


class ProjectComment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    text: str
    author: str
    timestamp: datetime = Field(default_factory=_now)


class PerformanceMetrics(BaseModel):
    project_delay_percentage: int = 0
    # None until adoption can be measured, six months after go-live
    user_adoption_rate: Optional[float] = None
    performance_rating: PerformanceRating = PerformanceRating.LOW
    adoption_measurement_date: Optional[date] = None
    last_calculated: datetime = Field(default_factory=_now)


class Project(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    project_manager: str = ""
    business_owner: str = ""
    project_team: List[str] = Field(default_factory=list)

    tco: float = 0
    capex: float = 0
    opex: float = 0
    actual_spent: float = 0

    start_date: date
    go_live_date: date
    hypercare_end_date: Optional[date] = None

    project_overview: str = ""
    business_benefits: str = ""
    project_value_delivery: str = ""

    current_status: str = ""
    comments: List[ProjectComment] = Field(default_factory=list)
    overall_rag: RAGStatus = RAGStatus.GREEN
    timeline_rag: RAGStatus = RAGStatus.GREEN
    budget_rag: RAGStatus = RAGStatus.GREEN
    scope_rag: RAGStatus = RAGStatus.GREEN

    key_activities: str = ""
    performance_metrics: Optional[PerformanceMetrics] = None

    created_by: Optional[str] = None
    last_status_update: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def budget_variance(self) -> float:
        return self.actual_spent - self.tco

    def touch(self) -> None:
        self.updated_at = _now()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Project):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class Milestone(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    name: str
    target_date: date
    baseline_target_date: Optional[date] = None
    completed_date: Optional[date] = None
    status: MilestoneStatus = MilestoneStatus.PLANNED
    description: Optional[str] = None
    order_index: int = 0
    dependencies: List[UUID] = Field(default_factory=list)
    is_critical_path: bool = False
    approval_required: bool = False
    approved_by: Optional[str] = None
    approved_date: Optional[date] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def has_baseline_drift(self) -> bool:
        """True when the revised target no longer matches the baseline."""
        return (
            self.baseline_target_date is not None
            and self.target_date != self.baseline_target_date
        )

    def is_completed(self) -> bool:
        return self.status == MilestoneStatus.COMPLETED


class Risk(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    risk_number: str
    risk_details: str
    mitigation_plan: str = ""
    risk_reported_date: date
    target_completion_date: Optional[date] = None
    owner: str = ""
    status: RiskStatus = RiskStatus.OPEN
    rag_status: RAGStatus = RAGStatus.AMBER
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def is_open(self) -> bool:
        return self.status in {RiskStatus.OPEN, RiskStatus.IN_PROGRESS}


class StatusUpdate(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    update_date: date
    update_type: UpdateType = UpdateType.WEEKLY
    summary: str
    accomplishments: str = ""
    challenges: str = ""
    next_steps: str = ""
    overall_rag: RAGStatus = RAGStatus.GREEN
    created_by: str = ""
    created_at: datetime = Field(default_factory=_now)


class Document(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    name: str
    type: str = "document"
    phase: str
    status: DocumentStatus = DocumentStatus.DRAFT
    version: str = "1.0"
    url: Optional[str] = None
    content: Optional[str] = None
    document_template_id: Optional[UUID] = None
    is_critical_milestone: bool = False
    approved_by: Optional[str] = None
    approved_date: Optional[datetime] = None
    upload_date: datetime = Field(default_factory=_now)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def is_pending(self) -> bool:
        return self.status in {DocumentStatus.DRAFT, DocumentStatus.REVIEW}


class Task(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    serial_no: int
    owner: List[str] = Field(default_factory=list)
    action_item: str
    reported_date: date
    target_date: date
    # Free-form; imported values are kept exactly as written
    status: str = "Not Started"
    progress_comments: str = ""
    category: Optional[str] = None
    dependencies: List[UUID] = Field(default_factory=list)
    priority_score: Optional[float] = None
    sentiment: Optional[str] = None
    project_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def is_completed(self) -> bool:
        return self.status == COMPLETED_TASK_STATUS

    def is_overdue(self, today: date) -> bool:
        return self.target_date < today and not self.is_completed()

    def touch(self) -> None:
        self.updated_at = _now()


class Subtask(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    parent_task_id: UUID
    title: str
    status: str = "Not Started"
    owner: List[str] = Field(default_factory=list)
    target_date: Optional[date] = None
    completion_date: Optional[date] = None
    order_index: int = 0
    progress_comments: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Idea(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    category: str = "Innovation"
    priority: str = "Medium"
    status: str = "new"
    created_by: Optional[str] = None
    problem_statement: Optional[str] = None
    proposed_solution: Optional[str] = None
    expected_benefits: Optional[str] = None
    remarks: Optional[str] = None
    department_code: Optional[str] = None
    submitter_name: Optional[str] = None
    submitter_email: Optional[str] = None
    submitter_employee_id: Optional[str] = None
    submission_date: Optional[datetime] = None

    evaluation_stage: EvaluationStage = EvaluationStage.L1
    stage_status: StageStatus = StageStatus.PENDING

    # L2 screening
    l2_novelty_score: Optional[float] = None
    l2_feasibility_score: Optional[float] = None
    l2_alignment_score: Optional[float] = None
    l2_impact_score: Optional[float] = None
    l2_overall_score: Optional[float] = None
    l2_screening_date: Optional[datetime] = None
    l2_screened_by: Optional[str] = None
    l2_comments: Optional[str] = None

    # L3 feasibility and business case
    l3_technical_feasibility: Optional[str] = None
    l3_resource_requirements: Optional[str] = None
    l3_timeline_estimate: Optional[str] = None
    l3_risk_assessment: Optional[str] = None
    l3_dependencies: Optional[str] = None
    l3_feasibility_score: Optional[int] = None
    l3_assessment_date: Optional[datetime] = None
    l3_assessed_by: Optional[str] = None
    l3_comments: Optional[str] = None

    # L4 executive review
    l4_estimated_cost: Optional[float] = None
    l4_estimated_benefits: Optional[float] = None
    l4_roi_percentage: Optional[float] = None
    l4_payback_period_months: Optional[int] = None
    l4_npv: Optional[float] = None
    l4_strategic_fit_score: Optional[float] = None
    l4_market_potential: Optional[str] = None
    l4_competitive_advantage: Optional[str] = None
    l4_approval_date: Optional[datetime] = None
    l4_approved_by: Optional[str] = None
    l4_comments: Optional[str] = None

    # L5 implementation
    l5_project_lead: Optional[str] = None
    l5_team_members: List[str] = Field(default_factory=list)
    l5_start_date: Optional[date] = None
    l5_target_completion_date: Optional[date] = None
    l5_progress_percentage: Optional[float] = None
    l5_comments: Optional[str] = None

    l1_completed_at: Optional[datetime] = None
    l2_completed_at: Optional[datetime] = None
    l3_completed_at: Optional[datetime] = None
    l4_completed_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class IdeaReview(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    idea_id: UUID
    reviewer_name: str
    reviewer_email: Optional[EmailStr] = None
    stage: EvaluationStage
    novelty_score: Optional[float] = None
    feasibility_score: Optional[float] = None
    alignment_score: Optional[float] = None
    impact_score: Optional[float] = None
    overall_score: Optional[float] = None
    recommendation: Optional[str] = None
    comments: Optional[str] = None
    review_date: datetime = Field(default_factory=_now)


class IdeaStageHistory(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    idea_id: UUID
    from_stage: Optional[EvaluationStage] = None
    to_stage: EvaluationStage
    from_status: Optional[StageStatus] = None
    to_status: StageStatus
    changed_by: str
    change_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


class IdeaComment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    idea_id: UUID
    author_name: str
    author_email: Optional[EmailStr] = None
    content: str
    is_internal: bool = False
    parent_comment_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=_now)


class DocumentTemplate(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    phase_name: str
    category: TemplateCategory
    is_critical_milestone: bool = False
    description: str = ""
    typical_owner: str = ""
    estimated_days: int = 0
    dependencies: List[str] = Field(default_factory=list)
    template_content: Optional[str] = None


class ChecklistItem(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    document_template_id: UUID
    completion_status: PhaseStatus = PhaseStatus.NOT_STARTED
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    document_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=_now)


class ProjectPhase(BaseModel):
    """Delivery phase of a project, closed by a stage gate approval."""

    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    phase_number: int
    phase_name: str
    status: PhaseStatus = PhaseStatus.NOT_STARTED
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_end_date: Optional[date] = None
    gate_approved: bool = False
    gate_approved_by: Optional[str] = None
    gate_approval_date: Optional[date] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class ProjectBlueprint(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    purpose: str = ""
    validation_criteria: List[str] = Field(default_factory=list)
    success_metrics: List[str] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class ProjectMetricsSnapshot(BaseModel):
    """Point-in-time copy of a project's health figures for trend charts."""

    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    snapshot_date: date
    budget_variance: float = 0
    total_milestones: int = 0
    completed_milestones: int = 0
    open_risks: int = 0
    critical_risks: int = 0
    delay_percentage: int = 0
    performance_rating: PerformanceRating = PerformanceRating.LOW
    rag_status: RAGStatus = RAGStatus.GREEN
    resource_utilization: Optional[float] = None
    created_at: datetime = Field(default_factory=_now)


class AIInsight(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    insight_type: str  # risk_alert | recommendation
    title: str
    description: str
    severity: Optional[str] = None
    affected_projects: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)
    status: str = "new"
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    generated_at: datetime = Field(default_factory=_now)

    def acknowledge(self, user_id: str) -> None:
        self.status = "acknowledged"
        self.acknowledged_by = user_id
        self.acknowledged_at = _now()


class AIPrediction(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    prediction_type: str  # risk_assessment | milestone_forecast
    prediction_data: Dict[str, Any] = Field(default_factory=dict)
    confidence_score: Optional[float] = None
    model_version: Optional[str] = None
    expires_at: Optional[datetime] = None
    generated_at: datetime = Field(default_factory=_now)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            # Some backends (sqlite) drop the offset; values are stored in UTC
            expires_at = expires_at.replace(tzinfo=UTC)
        return (now or _now()) >= expires_at


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: EmailStr
    full_name: Optional[str] = None
    hashed_password: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=_now)


class Vendor(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    status: str = "active"
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class VendorContract(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    project_id: UUID
    contract_type: ContractType = ContractType.MSA
    title: str
    description: Optional[str] = None
    contract_number: Optional[str] = None
    status: ContractStatus = ContractStatus.DRAFT
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    value: Optional[float] = None
    signed_date: Optional[date] = None
    approved_by: Optional[str] = None
    approval_date: Optional[date] = None
    document_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class VendorDeliverable(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    project_id: UUID
    contract_id: Optional[UUID] = None
    deliverable_name: str
    description: Optional[str] = None
    status: DeliverableStatus = DeliverableStatus.PENDING
    due_date: Optional[date] = None
    submission_date: Optional[date] = None
    quality_rating: Optional[VendorRating] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    document_url: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class VendorPerformanceReview(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    project_id: UUID
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
    reviewed_by: str
    review_date: date = Field(default_factory=lambda: _now().date())
    created_at: datetime = Field(default_factory=_now)
