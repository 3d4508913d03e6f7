from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile

from app.api.schemas import (
    DependencyUpdateRequest,
    SubtaskCreateRequest,
    SubtaskUpdateRequest,
    TaskCreateRequest,
    TaskFacetsResponse,
    TaskGraphResponse,
    TaskImportResponse,
    TaskUpdateRequest,
)
from app.application.services import TaskService
from app.core.dependencies import get_current_user_id, get_task_service
from app.core.observability import trace_async_operation
from app.domain.entities import Subtask, Task
from app.domain.exceptions import ImportFormatException

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/", response_model=List[Task])
async def list_tasks(
    order: Literal["newest", "dependency"] = Query(default="newest"),
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> List[Task]:
    return await task_service.list_tasks(dependency_order=order == "dependency")


@router.post("/", response_model=Task, status_code=201)
async def create_task(
    request: TaskCreateRequest,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> Task:
    async with trace_async_operation("api_create_task", user_id=user_id):
        return await task_service.create_task(request)


@router.post("/import", response_model=TaskImportResponse, status_code=201)
async def import_tasks(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> TaskImportResponse:
    """Import tasks from a CSV export (S.No, Owner, Action Item, ...)."""
    filename = file.filename or "upload.csv"
    async with trace_async_operation("api_import_tasks", filename=filename):
        raw = await file.read()
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportFormatException(filename, f"file is not UTF-8 text ({e})")
        return await task_service.import_csv(content, filename)


@router.get("/graph", response_model=TaskGraphResponse)
async def get_dependency_graph(
    selected: Optional[UUID] = Query(default=None, description="Task to highlight"),
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> TaskGraphResponse:
    return await task_service.dependency_graph(selected)


@router.get("/facets", response_model=TaskFacetsResponse)
async def get_task_facets(
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> TaskFacetsResponse:
    """Categories, owners and status counts for task filters."""
    return await task_service.facets()


@router.patch("/subtasks/{subtask_id}", response_model=Subtask)
async def update_subtask(
    subtask_id: UUID,
    request: SubtaskUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> Subtask:
    return await task_service.update_subtask(subtask_id, request)


@router.delete("/subtasks/{subtask_id}", status_code=204)
async def delete_subtask(
    subtask_id: UUID,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> None:
    await task_service.delete_subtask(subtask_id)


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: UUID,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> Task:
    return await task_service.get_task(task_id)


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: UUID,
    request: TaskUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> Task:
    return await task_service.update_task(task_id, request)


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: UUID,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> None:
    await task_service.delete_task(task_id)


@router.put("/{task_id}/dependencies", response_model=Task)
async def update_dependencies(
    task_id: UUID,
    request: DependencyUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> Task:
    """Replace a task's dependencies. Cycles are rejected with 400."""
    async with trace_async_operation("api_update_dependencies", task_id=str(task_id)):
        return await task_service.update_dependencies(task_id, request.dependencies)


@router.get("/{task_id}/subtasks", response_model=List[Subtask])
async def list_subtasks(
    task_id: UUID,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> List[Subtask]:
    return await task_service.list_subtasks(task_id)


@router.post("/{task_id}/subtasks", response_model=Subtask, status_code=201)
async def add_subtask(
    task_id: UUID,
    request: SubtaskCreateRequest,
    user_id: str = Depends(get_current_user_id),
    task_service: TaskService = Depends(get_task_service),
) -> Subtask:
    return await task_service.add_subtask(task_id, request)
