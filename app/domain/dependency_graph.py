"""Task dependency graph: cycle detection, ordering and the graph view."""

from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel

from app.domain.entities import Task
from app.domain.exceptions import CircularDependencyException, DependencyCycleException

COLUMNS = 4
COLUMN_WIDTH = 250
ROW_HEIGHT = 150


class GraphNode(BaseModel):
    id: UUID
    label: str
    serial_no: int
    status: str
    is_root: bool
    is_leaf: bool
    is_selected: bool
    x: int
    y: int


class GraphEdge(BaseModel):
    id: str
    source: UUID
    target: UUID
    highlighted: bool


class DependencyGraph(BaseModel):
    nodes: List[GraphNode]
    edges: List[GraphEdge]


def _adjacency(tasks: Iterable[Task]) -> Dict[UUID, List[UUID]]:
    return {task.id: list(task.dependencies) for task in tasks}


def detect_circular_dependency(
    task_id: UUID, dependency_id: UUID, tasks: Sequence[Task]
) -> bool:
    """Return True if making ``task_id`` depend on ``dependency_id`` closes a cycle."""
    if task_id == dependency_id:
        return True

    graph = _adjacency(tasks)
    visited = set()
    stack = [dependency_id]
    while stack:
        current = stack.pop()
        if current == task_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        # Unknown ids have no outgoing edges
        stack.extend(graph.get(current, ()))
    return False


def validate_dependencies(
    task_id: UUID, dependency_ids: Sequence[UUID], tasks: Sequence[Task]
) -> None:
    """Raise on the first dependency that would introduce a cycle."""
    for dependency_id in dependency_ids:
        if detect_circular_dependency(task_id, dependency_id, tasks):
            raise CircularDependencyException(str(task_id), str(dependency_id))


def find_cycles(tasks: Sequence[Task]) -> List[List[UUID]]:
    """Find every cycle in the stored graph, each reported once.

    A cycle is returned as the list of task ids along its path, rotated so
    that it starts at its smallest id.
    """
    graph = _adjacency(tasks)
    seen = set()
    cycles: List[List[UUID]] = []

    def walk(node: UUID, path: List[UUID], on_path: set) -> None:
        for dep in graph.get(node, ()):
            if dep not in graph:
                continue
            if dep in on_path:
                cycle = path[path.index(dep):]
                pivot = cycle.index(min(cycle, key=str))
                normalized = tuple(cycle[pivot:] + cycle[:pivot])
                if normalized not in seen:
                    seen.add(normalized)
                    cycles.append(list(normalized))
                continue
            path.append(dep)
            on_path.add(dep)
            walk(dep, path, on_path)
            path.pop()
            on_path.discard(dep)

    for start in graph:
        walk(start, [start], {start})

    return cycles


def topological_order(tasks: Sequence[Task]) -> List[Task]:
    """Order tasks so every task comes after the tasks it depends on."""
    by_id = {task.id: task for task in tasks}
    ordered: List[Task] = []
    state: Dict[UUID, int] = {}  # 1 = visiting, 2 = done

    def visit(task_id: UUID, trail: List[UUID]) -> None:
        mark = state.get(task_id)
        if mark == 2:
            return
        if mark == 1:
            raise DependencyCycleException(
                [str(t) for t in trail[trail.index(task_id):]] + [str(task_id)]
            )
        state[task_id] = 1
        trail.append(task_id)
        for dep in by_id[task_id].dependencies:
            if dep in by_id:
                visit(dep, trail)
        trail.pop()
        state[task_id] = 2
        ordered.append(by_id[task_id])

    for task in tasks:
        visit(task.id, [])

    return ordered


def build_dependency_graph(
    tasks: Sequence[Task], selected_task_id: Optional[UUID] = None
) -> DependencyGraph:
    known = {task.id for task in tasks}
    depended_upon = {dep for task in tasks for dep in task.dependencies}

    nodes = [
        GraphNode(
            id=task.id,
            label=task.action_item,
            serial_no=task.serial_no,
            status=task.status,
            is_root=not task.dependencies,
            is_leaf=task.id not in depended_upon,
            is_selected=task.id == selected_task_id,
            x=(index % COLUMNS) * COLUMN_WIDTH,
            y=(index // COLUMNS) * ROW_HEIGHT,
        )
        for index, task in enumerate(tasks)
    ]

    edges = [
        GraphEdge(
            id=f"{dep}-{task.id}",
            source=dep,
            target=task.id,
            highlighted=selected_task_id is not None
            and selected_task_id in (task.id, dep),
        )
        for task in tasks
        for dep in task.dependencies
        if dep in known
    ]

    return DependencyGraph(nodes=nodes, edges=edges)
