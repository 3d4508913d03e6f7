"""Baseline vs revised milestone timeline reconciliation."""

from datetime import date
from typing import List, Literal, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.entities import DelaySeverity, Milestone
from app.domain.rounding import round_half_up

BASELINE_LABEL = "Original Plan"
CURRENT_LABEL = "Revised Plan"


class TimelineStats(BaseModel):
    total_milestones: int
    delayed_milestones: int
    average_delay_days: int
    max_delay_days: int
    branch_point_date: Optional[date] = None
    critical_path_impacted: bool


class DelayInfo(BaseModel):
    milestone_id: UUID
    milestone_name: str
    baseline_date: date
    revised_date: date
    delay_days: int
    severity: DelaySeverity


class Connection(BaseModel):
    from_milestone_id: UUID
    to_milestone_id: UUID
    type: Literal["sequential", "branch", "dependency"]
    is_baseline: bool


class MilestoneNode(BaseModel):
    milestone: Milestone
    position: int  # days from project start
    is_branch_point: bool
    delay_days: int
    y_position: int
    connections: List[Connection] = Field(default_factory=list)


class TimelineTrack(BaseModel):
    type: Literal["baseline", "current"]
    label: str
    milestones: List[MilestoneNode] = Field(default_factory=list)


class TimelineTracks(BaseModel):
    baseline_track: TimelineTrack
    current_track: TimelineTrack


def _delay_days(milestone: Milestone) -> int:
    if milestone.baseline_target_date is None:
        return 0
    return abs((milestone.target_date - milestone.baseline_target_date).days)


def delayed_milestones(milestones: Sequence[Milestone]) -> List[Milestone]:
    return [m for m in milestones if m.has_baseline_drift()]


def calculate_timeline_stats(milestones: Sequence[Milestone]) -> TimelineStats:
    delayed = delayed_milestones(milestones)
    delays = [_delay_days(m) for m in delayed]

    average = sum(delays) / len(delays) if delays else 0
    branch_point = min(delayed, key=lambda m: m.target_date) if delayed else None

    return TimelineStats(
        total_milestones=len(milestones),
        delayed_milestones=len(delayed),
        average_delay_days=round_half_up(average),
        max_delay_days=max(delays) if delays else 0,
        branch_point_date=branch_point.target_date if branch_point else None,
        critical_path_impacted=any(m.is_critical_path for m in delayed),
    )


def get_delay_severity(delay_days: int) -> DelaySeverity:
    if delay_days <= 7:
        return DelaySeverity.MINOR
    if delay_days <= 30:
        return DelaySeverity.MODERATE
    if delay_days <= 60:
        return DelaySeverity.MAJOR
    return DelaySeverity.CRITICAL


def get_delay_info_list(milestones: Sequence[Milestone]) -> List[DelayInfo]:
    infos = [
        DelayInfo(
            milestone_id=m.id,
            milestone_name=m.name,
            baseline_date=m.baseline_target_date,
            revised_date=m.target_date,
            delay_days=_delay_days(m),
            severity=get_delay_severity(_delay_days(m)),
        )
        for m in delayed_milestones(milestones)
    ]
    # sorted() is stable, so ties keep input order
    return sorted(infos, key=lambda info: info.delay_days, reverse=True)


def create_timeline_tracks(
    milestones: Sequence[Milestone], project_start_date: date
) -> TimelineTracks:
    """Build the two-track (baseline/current) view used by the git-style timeline.

    Connections reference milestone ids rather than nodes so the result can be
    serialized directly.
    """
    if not milestones:
        return TimelineTracks(
            baseline_track=TimelineTrack(type="baseline", label=BASELINE_LABEL),
            current_track=TimelineTrack(type="current", label=CURRENT_LABEL),
        )

    branch_point = next((m for m in milestones if m.has_baseline_drift()), None)
    branch_point_id = branch_point.id if branch_point else None

    baseline_nodes = [
        MilestoneNode(
            milestone=m,
            position=(m.baseline_target_date - project_start_date).days,
            is_branch_point=m.id == branch_point_id,
            delay_days=_delay_days(m),
            y_position=0,
        )
        for m in milestones
        if m.baseline_target_date is not None
    ]

    current_nodes = [
        MilestoneNode(
            milestone=m,
            position=(m.target_date - project_start_date).days,
            is_branch_point=m.id == branch_point_id,
            delay_days=_delay_days(m),
            y_position=1,
        )
        for m in milestones
    ]

    for idx, node in enumerate(baseline_nodes):
        if idx < len(baseline_nodes) - 1:
            node.connections.append(
                Connection(
                    from_milestone_id=node.milestone.id,
                    to_milestone_id=baseline_nodes[idx + 1].milestone.id,
                    type="sequential",
                    is_baseline=True,
                )
            )
        if node.is_branch_point:
            # Every milestone has a current node, so the counterpart always exists
            node.connections.append(
                Connection(
                    from_milestone_id=node.milestone.id,
                    to_milestone_id=node.milestone.id,
                    type="branch",
                    is_baseline=False,
                )
            )

    for idx, node in enumerate(current_nodes[:-1]):
        node.connections.append(
            Connection(
                from_milestone_id=node.milestone.id,
                to_milestone_id=current_nodes[idx + 1].milestone.id,
                type="sequential",
                is_baseline=False,
            )
        )

    return TimelineTracks(
        baseline_track=TimelineTrack(
            type="baseline", label=BASELINE_LABEL, milestones=baseline_nodes
        ),
        current_track=TimelineTrack(
            type="current", label=CURRENT_LABEL, milestones=current_nodes
        ),
    )
