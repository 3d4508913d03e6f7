"""Portfolio dashboards and the data summary handed to the chat assistant."""

from collections import Counter
from datetime import date
from typing import Dict, List, Sequence
from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.entities import (
    AIInsight,
    Document,
    DocumentStatus,
    EvaluationStage,
    Idea,
    Milestone,
    MilestoneStatus,
    Project,
    RAGStatus,
    Risk,
    RiskStatus,
    Task,
)
from app.domain.rounding import round_half_up

CRITICAL_ITEMS_LIMIT = 5
RECENT_TASKS_LIMIT = 10
HIGH_PRIORITY_THRESHOLD = 7

# (probability, impact) by RAG status
RISK_WEIGHTS = {
    RAGStatus.RED: (0.8, 0.9),
    RAGStatus.AMBER: (0.5, 0.6),
    RAGStatus.GREEN: (0.2, 0.3),
}


class PortfolioMetrics(BaseModel):
    total_projects: int
    total_budget: float
    total_spent: float
    budget_variance: float
    on_track_projects: int
    at_risk_projects: int
    off_track_projects: int
    completed_milestones: int
    total_milestones: int
    milestone_completion_rate: float
    critical_risks: int
    open_risks: int
    health_score: int


class ProjectTimelinePerformance(BaseModel):
    project_id: UUID
    name: str
    on_time: int
    delayed: int
    budget: float
    spent: float


class BudgetTrend(BaseModel):
    project_id: UUID
    name: str
    budget: float
    actual: float
    variance: float


class RiskMatrixPoint(BaseModel):
    risk_id: UUID
    name: str
    probability: float
    impact: float
    status: RAGStatus


class VelocityPoint(BaseModel):
    month: str
    completed: int


class PhaseDocuments(BaseModel):
    phase: str
    completed: int = 0
    pending: int = 0


class HealthDimension(BaseModel):
    metric: str
    value: float


class StageStatistics(BaseModel):
    stage: EvaluationStage
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    approved: int = 0
    rejected: int = 0
    on_hold: int = 0


class AssistantSummary(BaseModel):
    total_tasks: int
    completed_tasks: int
    total_milestones: int
    completed_milestones: int
    delayed_milestones: int
    total_risks: int
    critical_risks: int
    total_documents: int
    pending_documents: int
    total_ideas: int
    recent_insights: int


class AssistantContext(BaseModel):
    summary: AssistantSummary
    critical_milestones: List[Dict] = Field(default_factory=list)
    high_priority_tasks: List[Dict] = Field(default_factory=list)
    critical_risks: List[Dict] = Field(default_factory=list)
    overdue_tasks: List[Dict] = Field(default_factory=list)
    pending_documents: List[Dict] = Field(default_factory=list)
    recent_tasks: List[Dict] = Field(default_factory=list)
    upcoming_milestones: List[Dict] = Field(default_factory=list)


def portfolio_metrics(
    projects: Sequence[Project],
    milestones: Sequence[Milestone],
    risks: Sequence[Risk],
) -> PortfolioMetrics:
    total_budget = sum(p.tco or 0 for p in projects)
    total_spent = sum(p.actual_spent or 0 for p in projects)
    budget_variance = (
        (total_spent - total_budget) / total_budget * 100 if total_budget > 0 else 0
    )

    rag_counts = Counter(p.overall_rag for p in projects)
    completed = sum(1 for m in milestones if m.is_completed())

    return PortfolioMetrics(
        total_projects=len(projects),
        total_budget=total_budget,
        total_spent=total_spent,
        budget_variance=budget_variance,
        on_track_projects=rag_counts[RAGStatus.GREEN],
        at_risk_projects=rag_counts[RAGStatus.AMBER],
        off_track_projects=rag_counts[RAGStatus.RED],
        completed_milestones=completed,
        total_milestones=len(milestones),
        milestone_completion_rate=completed / len(milestones) * 100 if milestones else 0,
        critical_risks=sum(1 for r in risks if r.rag_status == RAGStatus.RED),
        open_risks=sum(1 for r in risks if r.status == RiskStatus.OPEN),
        health_score=(
            round_half_up(rag_counts[RAGStatus.GREEN] / len(projects) * 100) if projects else 0
        ),
    )


def timeline_performance(
    projects: Sequence[Project], milestones: Sequence[Milestone]
) -> List[ProjectTimelinePerformance]:
    results = []
    for project in projects:
        finished = [
            m
            for m in milestones
            if m.project_id == project.id and m.is_completed() and m.completed_date
        ]
        delayed = sum(1 for m in finished if m.completed_date > m.target_date)
        results.append(
            ProjectTimelinePerformance(
                project_id=project.id,
                name=project.name,
                on_time=len(finished) - delayed,
                delayed=delayed,
                budget=project.tco or 0,
                spent=project.actual_spent or 0,
            )
        )
    return results


def budget_trends(projects: Sequence[Project]) -> List[BudgetTrend]:
    trends = [
        BudgetTrend(
            project_id=p.id,
            name=p.name,
            budget=p.tco or 0,
            actual=p.actual_spent or 0,
            variance=p.budget_variance(),
        )
        for p in projects
    ]
    return sorted(trends, key=lambda t: abs(t.variance), reverse=True)


def risk_matrix(risks: Sequence[Risk]) -> List[RiskMatrixPoint]:
    points = []
    for risk in risks:
        probability, impact = RISK_WEIGHTS[risk.rag_status]
        points.append(
            RiskMatrixPoint(
                risk_id=risk.id,
                name=risk.risk_details[:40],
                probability=probability,
                impact=impact,
                status=risk.rag_status,
            )
        )
    return points


def task_velocity(tasks: Sequence[Task]) -> List[VelocityPoint]:
    """Completed tasks grouped by the month they were reported, e.g. "Sep 2025"."""
    by_month: Dict[str, int] = {}
    for task in tasks:
        if task.is_completed():
            month = task.reported_date.strftime("%b %Y")
            by_month[month] = by_month.get(month, 0) + 1
    return [VelocityPoint(month=m, completed=c) for m, c in by_month.items()]


def documents_by_phase(documents: Sequence[Document]) -> List[PhaseDocuments]:
    groups: Dict[str, PhaseDocuments] = {}
    for doc in documents:
        phase = doc.phase or "Unassigned"
        group = groups.setdefault(phase, PhaseDocuments(phase=phase))
        if doc.status == DocumentStatus.APPROVED:
            group.completed += 1
        else:
            group.pending += 1
    return list(groups.values())


def portfolio_health_radar(
    metrics: PortfolioMetrics,
) -> List[HealthDimension]:
    total = metrics.total_projects
    quality = (total - metrics.off_track_projects) / total * 100 if total else 0
    return [
        HealthDimension(metric="Timeline", value=metrics.milestone_completion_rate),
        HealthDimension(
            metric="Budget", value=max(0.0, 100 - abs(metrics.budget_variance))
        ),
        HealthDimension(metric="Quality", value=quality),
        HealthDimension(
            metric="Risks", value=max(0, 100 - metrics.critical_risks * 20)
        ),
        HealthDimension(metric="Delivery", value=metrics.health_score),
    ]


def task_status_breakdown(tasks: Sequence[Task]) -> Dict[str, int]:
    return dict(Counter(task.status for task in tasks))


def overdue_tasks(tasks: Sequence[Task], today: date) -> List[Task]:
    return [task for task in tasks if task.is_overdue(today)]


def idea_stage_statistics(ideas: Sequence[Idea]) -> List[StageStatistics]:
    stats = {stage: StageStatistics(stage=stage) for stage in EvaluationStage}
    for idea in ideas:
        entry = stats[idea.evaluation_stage]
        entry.total += 1
        field = idea.stage_status.value
        setattr(entry, field, getattr(entry, field) + 1)
    return list(stats.values())


def _is_critical_milestone(milestone: Milestone, today: date) -> bool:
    return milestone.status == MilestoneStatus.DELAYED or (
        milestone.target_date < today and not milestone.is_completed()
    )


def build_assistant_context(
    tasks: Sequence[Task],
    milestones: Sequence[Milestone],
    risks: Sequence[Risk],
    documents: Sequence[Document],
    ideas: Sequence[Idea],
    insights: Sequence[AIInsight],
    today: date,
) -> AssistantContext:
    """Summarise stored data for the chat system prompt.

    ``tasks`` are expected newest first and ``milestones`` by target date.
    """
    critical_milestones = [m for m in milestones if _is_critical_milestone(m, today)]
    high_priority = [
        t for t in tasks if t.priority_score and t.priority_score > HIGH_PRIORITY_THRESHOLD
    ]
    overdue = overdue_tasks(tasks, today)
    red_risks = [r for r in risks if r.rag_status == RAGStatus.RED]
    pending_docs = [d for d in documents if d.is_pending()]
    upcoming = [m for m in milestones if m.target_date > today]

    summary = AssistantSummary(
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.is_completed()),
        total_milestones=len(milestones),
        completed_milestones=sum(1 for m in milestones if m.is_completed()),
        delayed_milestones=len(critical_milestones),
        total_risks=len(risks),
        critical_risks=len(red_risks),
        total_documents=len(documents),
        pending_documents=len(pending_docs),
        total_ideas=len(ideas),
        recent_insights=len(insights),
    )

    return AssistantContext(
        summary=summary,
        critical_milestones=[
            {
                "name": m.name,
                "target_date": m.target_date.isoformat(),
                "status": m.status.value,
                "project_id": str(m.project_id),
            }
            for m in critical_milestones[:CRITICAL_ITEMS_LIMIT]
        ],
        high_priority_tasks=[
            {
                "action": t.action_item,
                "status": t.status,
                "priority": t.priority_score,
                "owner": t.owner,
            }
            for t in high_priority[:CRITICAL_ITEMS_LIMIT]
        ],
        critical_risks=[
            {
                "description": r.risk_details,
                "severity": r.rag_status.value,
                "status": r.status.value,
                "mitigation": r.mitigation_plan,
            }
            for r in red_risks[:CRITICAL_ITEMS_LIMIT]
        ],
        overdue_tasks=[
            {
                "action": t.action_item,
                "due_date": t.target_date.isoformat(),
                "owner": t.owner,
            }
            for t in overdue[:CRITICAL_ITEMS_LIMIT]
        ],
        pending_documents=[
            {"name": d.name, "phase": d.phase, "status": d.status.value}
            for d in pending_docs[:CRITICAL_ITEMS_LIMIT]
        ],
        recent_tasks=[
            {
                "action": t.action_item,
                "status": t.status,
                "created_at": t.created_at.isoformat(),
            }
            for t in tasks[:RECENT_TASKS_LIMIT]
        ],
        upcoming_milestones=[
            {
                "name": m.name,
                "target_date": m.target_date.isoformat(),
                "status": m.status.value,
            }
            for m in upcoming[:CRITICAL_ITEMS_LIMIT]
        ],
    )
