"""Tests for milestone timeline reconciliation."""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from app.domain.entities import DelaySeverity, Milestone
from app.domain.timeline import (
    BASELINE_LABEL,
    CURRENT_LABEL,
    calculate_timeline_stats,
    create_timeline_tracks,
    get_delay_info_list,
    get_delay_severity,
)

PROJECT_ID = uuid4()
START = date(2025, 1, 1)


def milestone(name, baseline, target, **kwargs) -> Milestone:
    return Milestone(
        project_id=PROJECT_ID,
        name=name,
        baseline_target_date=baseline,
        target_date=target,
        **kwargs,
    )


class TestDelaySeverity:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (0, DelaySeverity.MINOR),
            (7, DelaySeverity.MINOR),
            (8, DelaySeverity.MODERATE),
            (30, DelaySeverity.MODERATE),
            (31, DelaySeverity.MAJOR),
            (60, DelaySeverity.MAJOR),
            (61, DelaySeverity.CRITICAL),
        ],
    )
    def test_thresholds(self, days, expected):
        assert get_delay_severity(days) == expected


class TestTimelineStats:
    def test_no_milestones(self):
        stats = calculate_timeline_stats([])

        assert stats.total_milestones == 0
        assert stats.delayed_milestones == 0
        assert stats.average_delay_days == 0
        assert stats.max_delay_days == 0
        assert stats.branch_point_date is None
        assert stats.critical_path_impacted is False

    def test_delays_are_measured_against_baseline(self):
        milestones = [
            milestone("Design", date(2025, 2, 1), date(2025, 2, 1)),
            milestone("Build", date(2025, 3, 1), date(2025, 3, 11)),
            milestone(
                "UAT", date(2025, 4, 1), date(2025, 4, 26), is_critical_path=True
            ),
        ]

        stats = calculate_timeline_stats(milestones)

        assert stats.total_milestones == 3
        assert stats.delayed_milestones == 2
        # (10 + 25) / 2 = 17.5 rounds half up
        assert stats.average_delay_days == 18
        assert stats.max_delay_days == 25
        assert stats.branch_point_date == date(2025, 3, 11)
        assert stats.critical_path_impacted is True

    def test_pulled_in_milestone_counts_as_drift(self):
        stats = calculate_timeline_stats(
            [milestone("Go-live", date(2025, 6, 30), date(2025, 6, 20))]
        )

        assert stats.delayed_milestones == 1
        assert stats.max_delay_days == 10

    def test_missing_baseline_is_not_delayed(self):
        stats = calculate_timeline_stats([milestone("Kickoff", None, date(2025, 1, 5))])

        assert stats.delayed_milestones == 0


class TestDelayInfo:
    def test_sorted_by_delay_descending(self):
        small = milestone("Small", date(2025, 2, 1), date(2025, 2, 4))
        large = milestone("Large", date(2025, 3, 1), date(2025, 5, 15))
        on_time = milestone("On time", date(2025, 4, 1), date(2025, 4, 1))

        infos = get_delay_info_list([small, on_time, large])

        assert [i.milestone_name for i in infos] == ["Large", "Small"]
        assert infos[0].severity == DelaySeverity.CRITICAL
        assert infos[0].baseline_date == date(2025, 3, 1)
        assert infos[0].revised_date == date(2025, 5, 15)
        assert infos[1].delay_days == 3
        assert infos[1].severity == DelaySeverity.MINOR


class TestTimelineTracks:
    def test_empty_tracks_keep_labels(self):
        tracks = create_timeline_tracks([], START)

        assert tracks.baseline_track.label == BASELINE_LABEL
        assert tracks.current_track.label == CURRENT_LABEL
        assert tracks.baseline_track.milestones == []
        assert tracks.current_track.milestones == []

    def test_positions_and_branch_point(self):
        first = milestone("Design", date(2025, 1, 11), date(2025, 1, 11))
        second = milestone("Build", date(2025, 2, 1), date(2025, 2, 15))
        third = milestone("Launch", date(2025, 3, 1), date(2025, 3, 20))

        tracks = create_timeline_tracks([first, second, third], START)
        baseline = tracks.baseline_track.milestones
        current = tracks.current_track.milestones

        assert [n.position for n in baseline] == [10, 31, 59]
        assert [n.position for n in current] == [10, 45, 78]
        assert all(n.y_position == 0 for n in baseline)
        assert all(n.y_position == 1 for n in current)

        # The first drifting milestone is the branch point on both tracks
        assert [n.is_branch_point for n in baseline] == [False, True, False]
        assert [n.is_branch_point for n in current] == [False, True, False]

        branch = [c for c in baseline[1].connections if c.type == "branch"]
        assert len(branch) == 1
        assert branch[0].from_milestone_id == second.id
        assert branch[0].to_milestone_id == second.id
        assert branch[0].is_baseline is False

    def test_sequential_connections(self):
        first = milestone("A", date(2025, 1, 10), date(2025, 1, 10))
        second = milestone("B", date(2025, 2, 10), date(2025, 2, 10))

        tracks = create_timeline_tracks([first, second], START)
        baseline = tracks.baseline_track.milestones
        current = tracks.current_track.milestones

        assert baseline[0].connections[0].to_milestone_id == second.id
        assert baseline[0].connections[0].is_baseline is True
        assert current[0].connections[0].to_milestone_id == second.id
        assert current[0].connections[0].is_baseline is False
        assert baseline[-1].connections == []
        assert current[-1].connections == []

    def test_milestones_without_baseline_only_on_current_track(self):
        planned = milestone("A", date(2025, 1, 10), date(2025, 1, 10))
        added = milestone("B", None, START + timedelta(days=40))

        tracks = create_timeline_tracks([planned, added], START)

        assert len(tracks.baseline_track.milestones) == 1
        assert len(tracks.current_track.milestones) == 2
