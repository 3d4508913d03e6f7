"""Tests for task dependency graphs."""

from datetime import date
from uuid import uuid4

import pytest

from app.domain.dependency_graph import (
    build_dependency_graph,
    detect_circular_dependency,
    find_cycles,
    topological_order,
    validate_dependencies,
)
from app.domain.entities import Task
from app.domain.exceptions import (
    CircularDependencyException,
    DependencyCycleException,
    ValidationException,
)


def task(serial_no: int, *dependencies) -> Task:
    return Task(
        serial_no=serial_no,
        action_item=f"Task {serial_no}",
        reported_date=date(2025, 9, 1),
        target_date=date(2025, 9, 30),
        dependencies=[d.id for d in dependencies],
    )


class TestDetectCircularDependency:
    def test_self_dependency(self):
        a = task(1)
        assert detect_circular_dependency(a.id, a.id, [a]) is True

    def test_direct_cycle(self):
        a = task(1)
        b = task(2, a)  # b depends on a
        # a depending on b closes a -> b -> a
        assert detect_circular_dependency(a.id, b.id, [a, b]) is True

    def test_transitive_cycle(self):
        a = task(1)
        b = task(2, a)
        c = task(3, b)
        assert detect_circular_dependency(a.id, c.id, [a, b, c]) is True

    def test_independent_tasks(self):
        a, b = task(1), task(2)
        assert detect_circular_dependency(a.id, b.id, [a, b]) is False

    def test_diamond_is_not_a_cycle(self):
        a = task(1)
        b = task(2, a)
        c = task(3, a)
        d = task(4)
        tasks = [a, b, c, d]
        # d depending on both branches of the diamond is fine
        assert detect_circular_dependency(d.id, b.id, tasks) is False
        assert detect_circular_dependency(d.id, c.id, tasks) is False

    def test_unknown_dependency_ids_are_ignored(self):
        a = task(1)
        a.dependencies = [uuid4()]
        b = task(2)
        assert detect_circular_dependency(b.id, a.id, [a, b]) is False


class TestValidateDependencies:
    def test_raises_on_first_offender(self):
        a = task(1)
        b = task(2, a)
        c = task(3)

        with pytest.raises(CircularDependencyException) as exc_info:
            validate_dependencies(a.id, [c.id, b.id], [a, b, c])

        assert exc_info.value.dependency_id == str(b.id)
        assert isinstance(exc_info.value, ValidationException)

    def test_accepts_acyclic(self):
        a, b, c = task(1), task(2), task(3)
        validate_dependencies(a.id, [b.id, c.id], [a, b, c])


class TestFindCycles:
    def test_no_cycles(self):
        a = task(1)
        b = task(2, a)
        assert find_cycles([a, b]) == []

    def test_each_cycle_reported_once(self):
        a, b, c = task(1), task(2), task(3)
        a.dependencies = [b.id]
        b.dependencies = [c.id]
        c.dependencies = [a.id]

        cycles = find_cycles([a, b, c])

        assert len(cycles) == 1
        assert set(cycles[0]) == {a.id, b.id, c.id}
        assert cycles[0][0] == min([a.id, b.id, c.id], key=str)


class TestTopologicalOrder:
    def test_dependencies_come_first(self):
        a = task(1)
        b = task(2, a)
        c = task(3, b)

        ordered = topological_order([c, b, a])

        assert [t.serial_no for t in ordered] == [1, 2, 3]

    def test_raises_on_cycle(self):
        a, b = task(1), task(2)
        a.dependencies = [b.id]
        b.dependencies = [a.id]

        with pytest.raises(DependencyCycleException):
            topological_order([a, b])


class TestBuildDependencyGraph:
    def test_nodes_and_grid_positions(self):
        tasks = [task(i) for i in range(1, 7)]
        graph = build_dependency_graph(tasks)

        assert [(n.x, n.y) for n in graph.nodes] == [
            (0, 0),
            (250, 0),
            (500, 0),
            (750, 0),
            (0, 150),
            (250, 150),
        ]
        assert all(n.is_root and n.is_leaf for n in graph.nodes)
        assert graph.edges == []

    def test_edges_roots_leaves_and_highlight(self):
        a = task(1)
        b = task(2, a)
        c = task(3, b)
        c.dependencies.append(uuid4())  # dangling id gets no edge

        graph = build_dependency_graph([a, b, c], selected_task_id=c.id)
        nodes = {n.serial_no: n for n in graph.nodes}

        assert nodes[1].is_root and not nodes[1].is_leaf
        assert not nodes[3].is_root and nodes[3].is_leaf
        assert nodes[3].is_selected

        edges = {(e.source, e.target): e for e in graph.edges}
        assert set(edges) == {(a.id, b.id), (b.id, c.id)}
        assert edges[(b.id, c.id)].highlighted is True
        assert edges[(a.id, b.id)].highlighted is False
        assert edges[(a.id, b.id)].id == f"{a.id}-{b.id}"
