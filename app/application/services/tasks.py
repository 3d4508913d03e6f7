import time
from datetime import datetime, UTC
from typing import List, Optional
from uuid import UUID

import structlog

from app.api.schemas import (
    SubtaskCreateRequest,
    SubtaskUpdateRequest,
    TaskCreateRequest,
    TaskFacetsResponse,
    TaskGraphResponse,
    TaskImportResponse,
    TaskUpdateRequest,
)
from app.core.observability import metrics, trace_async_operation
from app.domain.analytics import task_status_breakdown
from app.domain.dependency_graph import (
    build_dependency_graph,
    find_cycles,
    topological_order,
    validate_dependencies,
)
from app.domain.entities import Subtask, Task
from app.domain.exceptions import EntityNotFoundException, ValidationException
from app.domain.repositories import SubtaskRepository, TaskRepository
from app.importers.tasks_csv import parse_tasks_csv

logger = structlog.get_logger(__name__)


def _unique(values) -> List[str]:
    return sorted({v for v in values if v})


class TaskService:
    def __init__(self, task_repo: TaskRepository, subtask_repo: SubtaskRepository) -> None:
        self.task_repo = task_repo
        self.subtask_repo = subtask_repo

    async def get_task(self, task_id: UUID) -> Task:
        task = await self.task_repo.get_by_id(task_id)
        if not task:
            raise EntityNotFoundException("Task", task_id)
        return task

    async def list_tasks(self, dependency_order: bool = False) -> List[Task]:
        """Newest first, or dependencies before their dependents."""
        async with trace_async_operation("list_tasks"):
            tasks = await self.task_repo.list_all()
            return topological_order(tasks) if dependency_order else tasks

    async def create_task(self, request: TaskCreateRequest) -> Task:
        async with trace_async_operation("create_task"):
            task = Task(
                serial_no=await self.task_repo.count() + 1,
                **request.model_dump(),
            )
            if task.dependencies:
                existing = await self.task_repo.list_all()
                self._check_known(task.dependencies, existing)
                validate_dependencies(task.id, task.dependencies, existing)

            await self.task_repo.create(task)
            logger.info("Task created", task_id=str(task.id), serial_no=task.serial_no)
            return task

    async def update_task(self, task_id: UUID, request: TaskUpdateRequest) -> Task:
        task = await self.get_task(task_id)
        updated = request.apply_to(task)
        updated.touch()
        return await self.task_repo.update(updated)

    async def delete_task(self, task_id: UUID) -> None:
        async with trace_async_operation("delete_task", task_id=str(task_id)):
            await self.get_task(task_id)
            await self.subtask_repo.delete_by_task(task_id)

            # Drop dangling references to the removed task
            for other in await self.task_repo.list_all():
                if task_id in other.dependencies:
                    other.dependencies = [d for d in other.dependencies if d != task_id]
                    other.touch()
                    await self.task_repo.update(other)

            await self.task_repo.delete(task_id)
            logger.info("Task deleted", task_id=str(task_id))

    def _check_known(self, dependency_ids: List[UUID], tasks: List[Task]) -> None:
        known = {t.id for t in tasks}
        missing = [str(d) for d in dependency_ids if d not in known]
        if missing:
            raise ValidationException(
                "Unknown dependency task ids", details={"missing": missing}
            )

    async def update_dependencies(
        self, task_id: UUID, dependency_ids: List[UUID]
    ) -> Task:
        """Replace a task's dependencies, rejecting any that would close a cycle."""
        async with trace_async_operation("update_dependencies", task_id=str(task_id)):
            task = await self.get_task(task_id)
            tasks = await self.task_repo.list_all()
            dependency_ids = list(dict.fromkeys(dependency_ids))
            self._check_known(dependency_ids, tasks)

            # Validate against the graph without this task's current edges
            others = [
                t if t.id != task_id else t.model_copy(update={"dependencies": []})
                for t in tasks
            ]
            try:
                validate_dependencies(task_id, dependency_ids, others)
            except ValidationException:
                logger.warning(
                    "Rejected circular dependency",
                    task_id=str(task_id),
                    dependencies=[str(d) for d in dependency_ids],
                )
                raise

            task.dependencies = dependency_ids
            task.touch()
            await self.task_repo.update(task)
            return task

    async def dependency_graph(
        self, selected_task_id: Optional[UUID] = None
    ) -> TaskGraphResponse:
        tasks = await self.task_repo.list_all()
        return TaskGraphResponse(
            graph=build_dependency_graph(tasks, selected_task_id),
            cycles=find_cycles(tasks),
        )

    async def import_csv(
        self, content: str, filename: str = "upload.csv"
    ) -> TaskImportResponse:
        async with trace_async_operation("import_tasks_csv", filename=filename):
            start_time = time.time()
            parsed = parse_tasks_csv(content, filename=filename)
            created = await self.task_repo.create_many(parsed)

            owners = _unique(owner for task in created for owner in task.owner)
            metrics.record_import("tasks", len(created), 0)
            logger.info(
                "Tasks imported",
                count=len(created),
                owners=len(owners),
                duration=f"{time.time() - start_time:.2f}s",
            )
            return TaskImportResponse(imported=len(created), owners=owners, tasks=created)

    async def facets(self) -> TaskFacetsResponse:
        """Categories, owners and status counts derived from stored tasks."""
        tasks = await self.task_repo.list_all()
        return TaskFacetsResponse(
            categories=_unique(t.category for t in tasks),
            owners=_unique(owner for t in tasks for owner in t.owner),
            statuses=task_status_breakdown(tasks),
        )

    # Subtasks

    async def list_subtasks(self, task_id: UUID) -> List[Subtask]:
        await self.get_task(task_id)
        return await self.subtask_repo.list_by_task(task_id)

    async def add_subtask(self, task_id: UUID, request: SubtaskCreateRequest) -> Subtask:
        await self.get_task(task_id)
        data = request.model_dump()
        if data["order_index"] is None:
            data["order_index"] = len(await self.subtask_repo.list_by_task(task_id))
        subtask = Subtask(parent_task_id=task_id, **data)
        return await self.subtask_repo.create(subtask)

    async def update_subtask(
        self, subtask_id: UUID, request: SubtaskUpdateRequest
    ) -> Subtask:
        subtask = await self.subtask_repo.get_by_id(subtask_id)
        if not subtask:
            raise EntityNotFoundException("Subtask", subtask_id)
        updated = request.apply_to(
            subtask, {**request.changes(), "updated_at": datetime.now(UTC)}
        )
        return await self.subtask_repo.update(updated)

    async def delete_subtask(self, subtask_id: UUID) -> None:
        if not await self.subtask_repo.delete(subtask_id):
            raise EntityNotFoundException("Subtask", subtask_id)
