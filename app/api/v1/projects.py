from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.schemas import (
    ChecklistChangeResponse,
    ChecklistItemUpdateRequest,
    ChecklistResponse,
    ChecklistToggleRequest,
    CommentCreateRequest,
    DocumentCreateRequest,
    MilestoneCreateRequest,
    PerformanceResponse,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    RiskCreateRequest,
    StatusUpdateCreateRequest,
    TimelineResponse,
)
from app.application.services import ChecklistService, ProjectService
from app.core.dependencies import (
    get_checklist_service,
    get_current_user_id,
    get_project_service,
)
from app.core.observability import trace_async_operation
from app.domain.entities import (
    ChecklistItem,
    Document,
    Milestone,
    Project,
    Risk,
    StatusUpdate,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/", response_model=Project, status_code=201)
async def create_project(
    request: ProjectCreateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Project:
    async with trace_async_operation("api_create_project", user_id=user_id):
        return await project_service.create_project(request, user_id)


@router.get("/", response_model=List[Project])
async def list_projects(
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> List[Project]:
    return await project_service.list_projects()


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Project:
    return await project_service.get_project(project_id)


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: UUID,
    request: ProjectUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Project:
    async with trace_async_operation("api_update_project", project_id=str(project_id)):
        return await project_service.update_project(project_id, request)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> None:
    """Delete a project together with its milestones, risks, updates and documents."""
    async with trace_async_operation("api_delete_project", project_id=str(project_id)):
        await project_service.delete_project(project_id)


@router.post("/{project_id}/comments", response_model=Project, status_code=201)
async def add_comment(
    project_id: UUID,
    request: CommentCreateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Project:
    return await project_service.add_comment(project_id, request, user_id)


# Milestones


@router.get("/{project_id}/milestones", response_model=List[Milestone])
async def list_milestones(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> List[Milestone]:
    return await project_service.list_milestones(project_id)


@router.post("/{project_id}/milestones", response_model=Milestone, status_code=201)
async def add_milestone(
    project_id: UUID,
    request: MilestoneCreateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Milestone:
    return await project_service.add_milestone(project_id, request)


@router.get("/{project_id}/timeline", response_model=TimelineResponse)
async def get_timeline(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> TimelineResponse:
    """Timeline statistics, delayed milestones and baseline/current tracks."""
    return await project_service.get_timeline(project_id)


# Risks


@router.get("/{project_id}/risks", response_model=List[Risk])
async def list_risks(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> List[Risk]:
    return await project_service.list_risks(project_id)


@router.post("/{project_id}/risks", response_model=Risk, status_code=201)
async def add_risk(
    project_id: UUID,
    request: RiskCreateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Risk:
    return await project_service.add_risk(project_id, request)


# Status updates


@router.get("/{project_id}/status-updates", response_model=List[StatusUpdate])
async def list_status_updates(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> List[StatusUpdate]:
    return await project_service.list_status_updates(project_id)


@router.post(
    "/{project_id}/status-updates", response_model=StatusUpdate, status_code=201
)
async def add_status_update(
    project_id: UUID,
    request: StatusUpdateCreateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> StatusUpdate:
    return await project_service.add_status_update(project_id, request, user_id)


# Documents


@router.get("/{project_id}/documents", response_model=List[Document])
async def list_documents(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> List[Document]:
    return await project_service.list_documents(project_id)


@router.post("/{project_id}/documents", response_model=Document, status_code=201)
async def add_document(
    project_id: UUID,
    request: DocumentCreateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Document:
    return await project_service.add_document(project_id, request, user_id)


# Performance


@router.get("/{project_id}/performance", response_model=PerformanceResponse)
async def get_performance(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> PerformanceResponse:
    """Recalculate and store the project's performance metrics."""
    return await project_service.refresh_performance(project_id)


# Document checklist


@router.get("/{project_id}/checklist", response_model=ChecklistResponse)
async def get_checklist(
    project_id: UUID,
    phase: str = Query(..., min_length=1),
    search: Optional[str] = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    checklist_service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistResponse:
    return await checklist_service.get_checklist(project_id, phase, search)


@router.post("/{project_id}/checklist/toggle", response_model=ChecklistChangeResponse)
async def toggle_checklist_item(
    project_id: UUID,
    request: ChecklistToggleRequest,
    user_id: str = Depends(get_current_user_id),
    checklist_service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistChangeResponse:
    return await checklist_service.toggle(project_id, request.template_id)


@router.post(
    "/{project_id}/checklist/select-all", response_model=ChecklistChangeResponse
)
async def select_all_templates(
    project_id: UUID,
    phase: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    checklist_service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistChangeResponse:
    return await checklist_service.select_all(project_id, phase)


@router.post(
    "/{project_id}/checklist/select-critical", response_model=ChecklistChangeResponse
)
async def select_critical_templates(
    project_id: UUID,
    phase: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    checklist_service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistChangeResponse:
    return await checklist_service.select_critical(project_id, phase)


@router.patch(
    "/{project_id}/checklist/items/{item_id}", response_model=ChecklistItem
)
async def update_checklist_item(
    project_id: UUID,
    item_id: UUID,
    request: ChecklistItemUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    checklist_service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistItem:
    return await checklist_service.update_item(project_id, item_id, request)
