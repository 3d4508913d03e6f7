from uuid import uuid4

from pydantic_core import to_jsonable_python
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import CHAR, TypeDecorator

Base = declarative_base()


class GUID(TypeDecorator):
    """Platform-independent GUID type."""
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgresUUID())
        else:
            return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return str(value)
        else:
            if not isinstance(value, str):
                return "%.32x" % int(value.hex, 16)
            else:
                return "%.32x" % int(value.replace('-', ''), 16)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        else:
            if not isinstance(value, str):
                return str(value)
            return value


class JSONValue(TypeDecorator):
    """JSON column that accepts UUIDs, dates and nested pydantic models."""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return to_jsonable_python(value)


def _timestamps():
    # updated_at is maintained by the entities, not by the database
    return (
        Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
        Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
    )


class UserModel(Base):
    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email='{self.email}')>"


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(GUID(), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    project_manager = Column(String(255), nullable=False, default="")
    business_owner = Column(String(255), nullable=False, default="")
    project_team = Column(JSONValue, nullable=False, default=list)

    tco = Column(Float, nullable=False, default=0)
    capex = Column(Float, nullable=False, default=0)
    opex = Column(Float, nullable=False, default=0)
    actual_spent = Column(Float, nullable=False, default=0)

    start_date = Column(Date, nullable=False)
    go_live_date = Column(Date, nullable=False)
    hypercare_end_date = Column(Date, nullable=True)

    project_overview = Column(Text, nullable=False, default="")
    business_benefits = Column(Text, nullable=False, default="")
    project_value_delivery = Column(Text, nullable=False, default="")

    current_status = Column(Text, nullable=False, default="")
    comments = Column(JSONValue, nullable=False, default=list)
    overall_rag = Column(String(10), nullable=False, default="green", index=True)
    timeline_rag = Column(String(10), nullable=False, default="green")
    budget_rag = Column(String(10), nullable=False, default="green")
    scope_rag = Column(String(10), nullable=False, default="green")

    key_activities = Column(Text, nullable=False, default="")
    performance_metrics = Column(JSONValue, nullable=True)

    created_by = Column(String(255), nullable=True)
    last_status_update = Column(DateTime(timezone=True), nullable=True)
    created_at, updated_at = _timestamps()

    def __repr__(self) -> str:
        return f"<ProjectModel(id={self.id}, name='{self.name}')>"


class MilestoneModel(Base):
    __tablename__ = "milestones"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    target_date = Column(Date, nullable=False)
    baseline_target_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="planned")
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    dependencies = Column(JSONValue, nullable=False, default=list)
    is_critical_path = Column(Boolean, nullable=False, default=False)
    approval_required = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String(255), nullable=True)
    approved_date = Column(Date, nullable=True)
    created_at, updated_at = _timestamps()

    def __repr__(self) -> str:
        return f"<MilestoneModel(id={self.id}, name='{self.name}', status='{self.status}')>"


class RiskModel(Base):
    __tablename__ = "risks"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    risk_number = Column(String(50), nullable=False)
    risk_details = Column(Text, nullable=False)
    mitigation_plan = Column(Text, nullable=False, default="")
    risk_reported_date = Column(Date, nullable=False)
    target_completion_date = Column(Date, nullable=True)
    owner = Column(String(255), nullable=False, default="")
    status = Column(String(20), nullable=False, default="open")
    rag_status = Column(String(10), nullable=False, default="amber")
    created_at, updated_at = _timestamps()


class StatusUpdateModel(Base):
    __tablename__ = "status_updates"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    update_date = Column(Date, nullable=False)
    update_type = Column(String(10), nullable=False, default="weekly")
    summary = Column(Text, nullable=False)
    accomplishments = Column(Text, nullable=False, default="")
    challenges = Column(Text, nullable=False, default="")
    next_steps = Column(Text, nullable=False, default="")
    overall_rag = Column(String(10), nullable=False, default="green")
    created_by = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DocumentModel(Base):
    __tablename__ = "documents"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default="document")
    phase = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="draft")
    version = Column(String(20), nullable=False, default="1.0")
    url = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    document_template_id = Column(GUID(), ForeignKey("document_templates.id", ondelete="SET NULL"), nullable=True)
    is_critical_milestone = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String(255), nullable=True)
    approved_date = Column(DateTime(timezone=True), nullable=True)
    upload_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at, updated_at = _timestamps()


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(GUID(), primary_key=True, default=uuid4)
    serial_no = Column(Integer, nullable=False)
    owner = Column(JSONValue, nullable=False, default=list)
    action_item = Column(Text, nullable=False)
    reported_date = Column(Date, nullable=False)
    target_date = Column(Date, nullable=False)
    status = Column(String(100), nullable=False, default="Not Started")
    progress_comments = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=True)
    dependencies = Column(JSONValue, nullable=False, default=list)
    priority_score = Column(Float, nullable=True)
    sentiment = Column(String(20), nullable=True)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at, updated_at = _timestamps()

    def __repr__(self) -> str:
        return f"<TaskModel(id={self.id}, serial_no={self.serial_no})>"


class SubtaskModel(Base):
    __tablename__ = "subtasks"

    id = Column(GUID(), primary_key=True, default=uuid4)
    parent_task_id = Column(GUID(), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    status = Column(String(100), nullable=False, default="Not Started")
    owner = Column(JSONValue, nullable=False, default=list)
    target_date = Column(Date, nullable=True)
    completion_date = Column(Date, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    progress_comments = Column(Text, nullable=True)
    created_at, updated_at = _timestamps()


class IdeaModel(Base):
    __tablename__ = "ideas"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="Innovation")
    priority = Column(String(20), nullable=False, default="Medium")
    status = Column(String(20), nullable=False, default="new")
    created_by = Column(String(255), nullable=True)
    problem_statement = Column(Text, nullable=True)
    proposed_solution = Column(Text, nullable=True)
    expected_benefits = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    department_code = Column(String(50), nullable=True)
    submitter_name = Column(String(255), nullable=True)
    submitter_email = Column(String(255), nullable=True)
    submitter_employee_id = Column(String(50), nullable=True)
    submission_date = Column(DateTime(timezone=True), nullable=True)

    evaluation_stage = Column(String(2), nullable=False, default="L1", index=True)
    stage_status = Column(String(20), nullable=False, default="pending")

    l2_novelty_score = Column(Float, nullable=True)
    l2_feasibility_score = Column(Float, nullable=True)
    l2_alignment_score = Column(Float, nullable=True)
    l2_impact_score = Column(Float, nullable=True)
    l2_overall_score = Column(Float, nullable=True)
    l2_screening_date = Column(DateTime(timezone=True), nullable=True)
    l2_screened_by = Column(String(255), nullable=True)
    l2_comments = Column(Text, nullable=True)

    l3_technical_feasibility = Column(Text, nullable=True)
    l3_resource_requirements = Column(Text, nullable=True)
    l3_timeline_estimate = Column(Text, nullable=True)
    l3_risk_assessment = Column(Text, nullable=True)
    l3_dependencies = Column(Text, nullable=True)
    l3_feasibility_score = Column(Integer, nullable=True)
    l3_assessment_date = Column(DateTime(timezone=True), nullable=True)
    l3_assessed_by = Column(String(255), nullable=True)
    l3_comments = Column(Text, nullable=True)

    l4_estimated_cost = Column(Float, nullable=True)
    l4_estimated_benefits = Column(Float, nullable=True)
    l4_roi_percentage = Column(Float, nullable=True)
    l4_payback_period_months = Column(Integer, nullable=True)
    l4_npv = Column(Float, nullable=True)
    l4_strategic_fit_score = Column(Float, nullable=True)
    l4_market_potential = Column(Text, nullable=True)
    l4_competitive_advantage = Column(Text, nullable=True)
    l4_approval_date = Column(DateTime(timezone=True), nullable=True)
    l4_approved_by = Column(String(255), nullable=True)
    l4_comments = Column(Text, nullable=True)

    l5_project_lead = Column(String(255), nullable=True)
    l5_team_members = Column(JSONValue, nullable=False, default=list)
    l5_start_date = Column(Date, nullable=True)
    l5_target_completion_date = Column(Date, nullable=True)
    l5_progress_percentage = Column(Float, nullable=True)
    l5_comments = Column(Text, nullable=True)

    l1_completed_at = Column(DateTime(timezone=True), nullable=True)
    l2_completed_at = Column(DateTime(timezone=True), nullable=True)
    l3_completed_at = Column(DateTime(timezone=True), nullable=True)
    l4_completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at, updated_at = _timestamps()

    def __repr__(self) -> str:
        return f"<IdeaModel(id={self.id}, stage='{self.evaluation_stage}')>"


class IdeaReviewModel(Base):
    __tablename__ = "idea_reviews"

    id = Column(GUID(), primary_key=True, default=uuid4)
    idea_id = Column(GUID(), ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_name = Column(String(255), nullable=False)
    reviewer_email = Column(String(255), nullable=True)
    stage = Column(String(2), nullable=False)
    novelty_score = Column(Float, nullable=True)
    feasibility_score = Column(Float, nullable=True)
    alignment_score = Column(Float, nullable=True)
    impact_score = Column(Float, nullable=True)
    overall_score = Column(Float, nullable=True)
    recommendation = Column(String(20), nullable=True)
    comments = Column(Text, nullable=True)
    review_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class IdeaStageHistoryModel(Base):
    __tablename__ = "idea_stage_history"

    id = Column(GUID(), primary_key=True, default=uuid4)
    idea_id = Column(GUID(), ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False, index=True)
    from_stage = Column(String(2), nullable=True)
    to_stage = Column(String(2), nullable=False)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    changed_by = Column(String(255), nullable=False)
    change_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class IdeaCommentModel(Base):
    __tablename__ = "idea_comments"

    id = Column(GUID(), primary_key=True, default=uuid4)
    idea_id = Column(GUID(), ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False, index=True)
    author_name = Column(String(255), nullable=False)
    author_email = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)
    is_internal = Column(Boolean, nullable=False, default=False)
    parent_comment_id = Column(
        GUID(), ForeignKey("idea_comments.id", ondelete="CASCADE"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DocumentTemplateModel(Base):
    __tablename__ = "document_templates"

    id = Column(GUID(), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    phase_name = Column(String(100), nullable=False, index=True)
    category = Column(String(20), nullable=False)
    is_critical_milestone = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=False, default="")
    typical_owner = Column(String(255), nullable=False, default="")
    estimated_days = Column(Integer, nullable=False, default=0)
    dependencies = Column(JSONValue, nullable=False, default=list)
    template_content = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("phase_name", "name", name="uq_template_phase_name"),
    )


class ChecklistItemModel(Base):
    __tablename__ = "project_document_checklist"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    document_template_id = Column(
        GUID(), ForeignKey("document_templates.id", ondelete="CASCADE"), nullable=False
    )
    completion_status = Column(String(20), nullable=False, default="not-started")
    assigned_to = Column(String(255), nullable=True)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    document_id = Column(GUID(), ForeignKey("documents.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("project_id", "document_template_id", name="uq_checklist_project_template"),
    )


class AIInsightModel(Base):
    __tablename__ = "ai_insights"

    id = Column(GUID(), primary_key=True, default=uuid4)
    insight_type = Column(String(30), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(20), nullable=True)
    affected_projects = Column(JSONValue, nullable=False, default=list)
    action_items = Column(JSONValue, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="new", index=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_by = Column(String(255), nullable=True)
    generated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AIPredictionModel(Base):
    __tablename__ = "ai_predictions"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    prediction_type = Column(String(30), nullable=False)
    prediction_data = Column(JSONValue, nullable=False, default=dict)
    confidence_score = Column(Float, nullable=True)
    model_version = Column(String(100), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    generated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ProjectPhaseModel(Base):
    __tablename__ = "project_phases"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    phase_number = Column(Integer, nullable=False)
    phase_name = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="not-started")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    target_end_date = Column(Date, nullable=True)
    gate_approved = Column(Boolean, nullable=False, default=False)
    gate_approved_by = Column(String(255), nullable=True)
    gate_approval_date = Column(Date, nullable=True)

    created_at, updated_at = _timestamps()

    __table_args__ = (
        UniqueConstraint("project_id", "phase_number", name="uq_phase_project_number"),
    )


class ProjectBlueprintModel(Base):
    __tablename__ = "project_blueprints"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(
        GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    purpose = Column(Text, nullable=False, default="")
    validation_criteria = Column(JSONValue, nullable=False, default=list)
    success_metrics = Column(JSONValue, nullable=False, default=list)
    assumptions = Column(JSONValue, nullable=False, default=list)
    constraints = Column(JSONValue, nullable=False, default=list)

    created_at, updated_at = _timestamps()


class ProjectMetricsHistoryModel(Base):
    __tablename__ = "project_metrics_history"

    id = Column(GUID(), primary_key=True, default=uuid4)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    snapshot_date = Column(Date, nullable=False)
    budget_variance = Column(Float, nullable=False, default=0)
    total_milestones = Column(Integer, nullable=False, default=0)
    completed_milestones = Column(Integer, nullable=False, default=0)
    open_risks = Column(Integer, nullable=False, default=0)
    critical_risks = Column(Integer, nullable=False, default=0)
    delay_percentage = Column(Integer, nullable=False, default=0)
    performance_rating = Column(String(20), nullable=False, default="low")
    rag_status = Column(String(10), nullable=False, default="green")
    resource_utilization = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class VendorModel(Base):
    __tablename__ = "vendors"

    id = Column(GUID(), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    contact_person = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    website = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")

    created_at, updated_at = _timestamps()


class VendorContractModel(Base):
    __tablename__ = "vendor_contracts"

    id = Column(GUID(), primary_key=True, default=uuid4)
    vendor_id = Column(GUID(), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    contract_type = Column(String(10), nullable=False, default="MSA")
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    contract_number = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="draft")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    value = Column(Float, nullable=True)
    signed_date = Column(Date, nullable=True)
    approved_by = Column(String(255), nullable=True)
    approval_date = Column(Date, nullable=True)
    document_url = Column(String(1000), nullable=True)
    notes = Column(Text, nullable=True)

    created_at, updated_at = _timestamps()


class VendorDeliverableModel(Base):
    __tablename__ = "vendor_deliverables"

    id = Column(GUID(), primary_key=True, default=uuid4)
    vendor_id = Column(GUID(), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    contract_id = Column(
        GUID(), ForeignKey("vendor_contracts.id", ondelete="SET NULL"), nullable=True
    )
    deliverable_name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    due_date = Column(Date, nullable=True)
    submission_date = Column(Date, nullable=True)
    quality_rating = Column(String(20), nullable=True)
    review_notes = Column(Text, nullable=True)
    reviewed_by = Column(String(255), nullable=True)
    document_url = Column(String(1000), nullable=True)

    created_at, updated_at = _timestamps()


class VendorPerformanceReviewModel(Base):
    __tablename__ = "vendor_performance_reviews"

    id = Column(GUID(), primary_key=True, default=uuid4)
    vendor_id = Column(GUID(), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(GUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    review_period_start = Column(Date, nullable=False)
    review_period_end = Column(Date, nullable=False)
    overall_rating = Column(String(20), nullable=False, default="satisfactory")
    quality_rating = Column(String(20), nullable=True)
    timeliness_rating = Column(String(20), nullable=True)
    communication_rating = Column(String(20), nullable=True)
    cost_effectiveness_rating = Column(String(20), nullable=True)
    strengths = Column(Text, nullable=True)
    areas_for_improvement = Column(Text, nullable=True)
    recommendations = Column(Text, nullable=True)
    reviewed_by = Column(String(255), nullable=False)
    review_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
