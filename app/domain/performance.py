import math
from datetime import date, datetime, UTC
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel

from app.domain.entities import (
    Milestone,
    MilestoneStatus,
    PerformanceMetrics,
    PerformanceRating,
    Project,
)
from app.domain.rounding import round_half_up

ADOPTION_MEASUREMENT_MONTHS = 6

# Worst last
_RATING_ORDER = [
    PerformanceRating.LOW,
    PerformanceRating.MEDIUM,
    PerformanceRating.HIGH,
    PerformanceRating.CRITICAL,
]


class PerformanceCriteria(BaseModel):
    driver: str
    criteria: str
    critical: str
    high: str
    medium: str
    low: str


PERFORMANCE_CRITERIA = [
    PerformanceCriteria(
        driver="Project Delay",
        criteria="% of digital initiatives delayed",
        critical=">20% delayed",
        high="10-20% delayed",
        medium="5-10% delayed",
        low="<5% delayed",
    ),
    PerformanceCriteria(
        driver="User Adoption Rate",
        criteria="Weighted average of active user adoption rate (measured 6 months post go-live)",
        critical="<70% user adoption",
        high="70-80% user adoption",
        medium="80-90% user adoption",
        low=">90% user adoption",
    ),
]


def _is_milestone_delayed(milestone: Milestone, today: date) -> bool:
    if milestone.status == MilestoneStatus.DELAYED:
        return True
    if milestone.completed_date is not None:
        return milestone.completed_date > milestone.target_date
    return (
        milestone.status != MilestoneStatus.COMPLETED
        and milestone.target_date < today
    )


def calculate_project_delay_percentage(
    milestones: Sequence[Milestone], today: date
) -> int:
    if not milestones:
        return 0
    delayed = sum(1 for m in milestones if _is_milestone_delayed(m, today))
    return round_half_up(delayed / len(milestones) * 100)


def _delay_rating(delay_percentage: float) -> PerformanceRating:
    if delay_percentage > 20:
        return PerformanceRating.CRITICAL
    if delay_percentage >= 10:
        return PerformanceRating.HIGH
    if delay_percentage >= 5:
        return PerformanceRating.MEDIUM
    return PerformanceRating.LOW


def _adoption_rating(adoption_rate: float) -> PerformanceRating:
    if adoption_rate < 70:
        return PerformanceRating.CRITICAL
    if adoption_rate < 80:
        return PerformanceRating.HIGH
    if adoption_rate < 90:
        return PerformanceRating.MEDIUM
    return PerformanceRating.LOW


def determine_performance_rating(
    delay_percentage: float, adoption_rate: Optional[float]
) -> PerformanceRating:
    """Return the more conservative of the delay and adoption ratings."""
    delay_rating = _delay_rating(delay_percentage)
    if adoption_rate is None:
        return delay_rating

    adoption_rating = _adoption_rating(adoption_rate)
    return max(delay_rating, adoption_rating, key=_RATING_ORDER.index)


def can_measure_adoption(go_live_date: date, today: date) -> bool:
    elapsed = relativedelta(today, go_live_date)
    return elapsed.years * 12 + elapsed.months >= ADOPTION_MEASUREMENT_MONTHS


def get_adoption_measurement_date(go_live_date: date) -> date:
    return go_live_date + relativedelta(months=ADOPTION_MEASUREMENT_MONTHS)


def get_performance_insights(
    metrics: PerformanceMetrics,
    project: Project,
    total_milestones: int,
    today: date,
) -> List[str]:
    insights: List[str] = []

    delay = metrics.project_delay_percentage
    if delay > 20:
        insights.append(
            "🚨 Critical: Project significantly behind schedule. Immediate intervention required."
        )
    elif delay >= 10:
        insights.append(
            "⚠️ Warning: Project experiencing delays. Review milestone timeline and resource allocation."
        )
    elif delay >= 5:
        delayed_count = math.ceil(delay / 100 * total_milestones)
        need_to_complete = math.ceil(total_milestones * 0.05) - delayed_count
        insights.append(
            f"⚡ Action: Complete {need_to_complete} more milestone(s) on time to reach Low rating."
        )
    else:
        insights.append("✅ Excellent: Project on track with minimal delays.")

    adoption = metrics.user_adoption_rate
    if adoption is None:
        if can_measure_adoption(project.go_live_date, today):
            insights.append(
                "📊 Action Required: User adoption measurement window is now open. "
                "Schedule adoption survey immediately."
            )
        else:
            measurement_date = get_adoption_measurement_date(project.go_live_date)
            insights.append(
                f"📅 Upcoming: User adoption can be measured after {measurement_date.isoformat()}."
            )
    elif adoption < 70:
        insights.append(
            "🚨 Critical: User adoption below target. Implement user training and support programs."
        )
    elif adoption < 80:
        insights.append(
            "⚠️ Warning: User adoption needs improvement. Consider additional change management activities."
        )
    elif adoption < 90:
        insights.append(
            "⚡ Good: User adoption is acceptable. Continue monitoring and support."
        )
    else:
        insights.append("✅ Excellent: Outstanding user adoption rate.")

    # Counts the current month, so October leaves 3
    months_to_year_end = 12 - (today.month - 1)
    if months_to_year_end <= 3:
        insights.append(
            f"📋 Year-End: {months_to_year_end} month(s) until evaluation. "
            f"Current rating: {metrics.performance_rating.value.upper()}."
        )

    return insights


def update_project_performance(
    project: Project, milestones: Sequence[Milestone], today: date
) -> PerformanceMetrics:
    previous = project.performance_metrics
    delay_percentage = calculate_project_delay_percentage(milestones, today)
    adoption_rate = previous.user_adoption_rate if previous else None

    return PerformanceMetrics(
        project_delay_percentage=delay_percentage,
        user_adoption_rate=adoption_rate,
        performance_rating=determine_performance_rating(delay_percentage, adoption_rate),
        adoption_measurement_date=previous.adoption_measurement_date if previous else None,
        last_calculated=datetime.now(UTC),
    )
