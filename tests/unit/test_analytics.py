"""Tests for portfolio analytics and the assistant context."""

from datetime import date

import pytest

from app.domain.analytics import (
    budget_trends,
    build_assistant_context,
    documents_by_phase,
    idea_stage_statistics,
    portfolio_health_radar,
    portfolio_metrics,
    risk_matrix,
    task_status_breakdown,
    task_velocity,
    timeline_performance,
)
from app.domain.entities import (
    DocumentStatus,
    EvaluationStage,
    MilestoneStatus,
    RAGStatus,
    RiskStatus,
    StageStatus,
)

TODAY = date(2025, 6, 15)


@pytest.fixture
def portfolio(test_factory):
    green = test_factory.create_project(name="Green", tco=100000, actual_spent=90000)
    amber = test_factory.create_project(
        name="Amber", tco=50000, actual_spent=70000, overall_rag=RAGStatus.AMBER
    )
    red = test_factory.create_project(
        name="Red", tco=50000, actual_spent=40000, overall_rag=RAGStatus.RED
    )
    green2 = test_factory.create_project(name="Green 2", tco=0, actual_spent=0)
    return [green, amber, red, green2]


class TestPortfolioMetrics:
    def test_totals_and_rates(self, portfolio, test_factory):
        green = portfolio[0]
        milestones = [
            test_factory.create_milestone(green.id, 0, status=MilestoneStatus.COMPLETED),
            test_factory.create_milestone(green.id, 1, status=MilestoneStatus.COMPLETED),
            test_factory.create_milestone(green.id, 2),
            test_factory.create_milestone(green.id, 3, status=MilestoneStatus.DELAYED),
        ]
        risks = [
            test_factory.create_risk(green.id, rag_status=RAGStatus.RED),
            test_factory.create_risk(green.id, rag_status=RAGStatus.RED,
                                     status=RiskStatus.CLOSED),
            test_factory.create_risk(green.id),
        ]

        metrics = portfolio_metrics(portfolio, milestones, risks)

        assert metrics.total_projects == 4
        assert metrics.total_budget == 200000
        assert metrics.total_spent == 200000
        assert metrics.budget_variance == 0
        assert (metrics.on_track_projects, metrics.at_risk_projects,
                metrics.off_track_projects) == (2, 1, 1)
        assert metrics.milestone_completion_rate == 50
        assert metrics.critical_risks == 2
        assert metrics.open_risks == 2
        assert metrics.health_score == 50

    def test_empty_portfolio(self):
        metrics = portfolio_metrics([], [], [])

        assert metrics.budget_variance == 0
        assert metrics.milestone_completion_rate == 0
        assert metrics.health_score == 0

    def test_health_score_rounds_half_up(self, test_factory):
        projects = [test_factory.create_project(name="Green")] + [
            test_factory.create_project(name=f"Amber {i}", overall_rag=RAGStatus.AMBER)
            for i in range(7)
        ]

        assert portfolio_metrics(projects, [], []).health_score == 13

    def test_health_radar(self, portfolio):
        metrics = portfolio_metrics(portfolio, [], [])
        radar = {d.metric: d.value for d in portfolio_health_radar(metrics)}

        assert radar == {
            "Timeline": 0,
            "Budget": 100,
            "Quality": 75,
            "Risks": 100,
            "Delivery": 50,
        }


def test_timeline_performance_counts_finished_milestones(portfolio, test_factory):
    green = portfolio[0]
    milestones = [
        test_factory.create_milestone(green.id, 0, status=MilestoneStatus.COMPLETED,
                                      target_date=date(2025, 3, 1),
                                      completed_date=date(2025, 3, 1)),
        test_factory.create_milestone(green.id, 1, status=MilestoneStatus.COMPLETED,
                                      target_date=date(2025, 4, 1),
                                      completed_date=date(2025, 4, 5)),
        # completed without a date is not counted
        test_factory.create_milestone(green.id, 2, status=MilestoneStatus.COMPLETED),
    ]

    results = {r.name: r for r in timeline_performance(portfolio, milestones)}

    assert (results["Green"].on_time, results["Green"].delayed) == (1, 1)
    assert (results["Red"].on_time, results["Red"].delayed) == (0, 0)


def test_budget_trends_sorted_by_absolute_variance(portfolio):
    trends = budget_trends(portfolio)

    assert [t.name for t in trends] == ["Amber", "Green", "Red", "Green 2"]
    assert trends[0].variance == 20000
    assert trends[1].variance == -10000


def test_risk_matrix_weights(test_factory, sample_project):
    risk = test_factory.create_risk(
        sample_project.id, rag_status=RAGStatus.RED, risk_details="x" * 60
    )

    point = risk_matrix([risk])[0]

    assert (point.probability, point.impact) == (0.8, 0.9)
    assert point.name == "x" * 40


def test_task_velocity_and_status_breakdown(test_factory):
    tasks = [
        test_factory.create_task(1, status="Completed", reported_date=date(2025, 8, 3)),
        test_factory.create_task(2, status="Completed", reported_date=date(2025, 8, 20)),
        test_factory.create_task(3, status="Completed", reported_date=date(2025, 9, 1)),
        test_factory.create_task(4, status="In Progress"),
    ]

    velocity = task_velocity(tasks)

    assert [(v.month, v.completed) for v in velocity] == [("Aug 2025", 2), ("Sep 2025", 1)]
    assert task_status_breakdown(tasks) == {"Completed": 3, "In Progress": 1}


def test_documents_by_phase(test_factory, sample_project):
    pid = sample_project.id
    documents = [
        test_factory.create_document(pid, status=DocumentStatus.APPROVED),
        test_factory.create_document(pid),
        test_factory.create_document(pid, phase="Phase 2: Design",
                                     status=DocumentStatus.REJECTED),
    ]

    groups = {g.phase: (g.completed, g.pending) for g in documents_by_phase(documents)}

    assert groups == {"Phase 1: Initiation": (1, 1), "Phase 2: Design": (0, 1)}


def test_idea_stage_statistics(test_factory):
    ideas = [
        test_factory.create_idea(),
        test_factory.create_idea(stage_status=StageStatus.REJECTED),
        test_factory.create_idea(
            evaluation_stage=EvaluationStage.L3, stage_status=StageStatus.APPROVED
        ),
    ]

    stats = {s.stage: s for s in idea_stage_statistics(ideas)}

    assert len(stats) == 5
    assert (stats[EvaluationStage.L1].total, stats[EvaluationStage.L1].pending,
            stats[EvaluationStage.L1].rejected) == (2, 1, 1)
    assert stats[EvaluationStage.L3].approved == 1
    assert stats[EvaluationStage.L5].total == 0


class TestAssistantContext:
    def test_summary_and_sections(self, test_factory, sample_project):
        pid = sample_project.id
        tasks = [
            test_factory.create_task(1, priority_score=9, target_date=date(2025, 6, 1)),
            test_factory.create_task(2, priority_score=5, status="Completed",
                                     target_date=date(2025, 6, 1)),
            test_factory.create_task(3, target_date=date(2025, 7, 1)),
        ]
        milestones = [
            test_factory.create_milestone(pid, 0, target_date=date(2025, 5, 1)),
            test_factory.create_milestone(pid, 1, status=MilestoneStatus.COMPLETED,
                                          target_date=date(2025, 6, 1)),
            test_factory.create_milestone(pid, 2, target_date=date(2025, 8, 1)),
        ]
        risks = [
            test_factory.create_risk(pid, rag_status=RAGStatus.RED),
            test_factory.create_risk(pid),
        ]
        documents = [
            test_factory.create_document(pid),
            test_factory.create_document(pid, status=DocumentStatus.APPROVED),
        ]

        context = build_assistant_context(
            tasks, milestones, risks, documents, [test_factory.create_idea()], [], TODAY
        )
        summary = context.summary

        assert (summary.total_tasks, summary.completed_tasks) == (3, 1)
        assert (summary.total_milestones, summary.completed_milestones,
                summary.delayed_milestones) == (3, 1, 1)
        assert (summary.total_risks, summary.critical_risks) == (2, 1)
        assert (summary.total_documents, summary.pending_documents) == (2, 1)
        assert (summary.total_ideas, summary.recent_insights) == (1, 0)

        assert [t["priority"] for t in context.high_priority_tasks] == [9]
        assert [t["action"] for t in context.overdue_tasks] == ["Action item 1"]
        assert context.critical_milestones[0]["target_date"] == "2025-05-01"
        assert [m["name"] for m in context.upcoming_milestones] == ["Milestone 3"]
        assert len(context.recent_tasks) == 3

    def test_sections_are_capped(self, test_factory, sample_project):
        tasks = [
            test_factory.create_task(i, priority_score=8, target_date=date(2025, 1, 1))
            for i in range(1, 13)
        ]

        context = build_assistant_context(tasks, [], [], [], [], [], TODAY)

        assert len(context.high_priority_tasks) == 5
        assert len(context.overdue_tasks) == 5
        assert len(context.recent_tasks) == 10
