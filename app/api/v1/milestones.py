from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.schemas import MilestoneUpdateRequest
from app.application.services import ProjectService
from app.core.dependencies import get_current_user_id, get_project_service
from app.domain.entities import Milestone

router = APIRouter(prefix="/milestones", tags=["milestones"])


@router.get("/{milestone_id}", response_model=Milestone)
async def get_milestone(
    milestone_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Milestone:
    return await project_service.get_milestone(milestone_id)


@router.patch("/{milestone_id}", response_model=Milestone)
async def update_milestone(
    milestone_id: UUID,
    request: MilestoneUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Milestone:
    """Partially update a milestone; completing it stamps the completion date."""
    return await project_service.update_milestone(milestone_id, request)


@router.delete("/{milestone_id}", status_code=204)
async def delete_milestone(
    milestone_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> None:
    await project_service.delete_milestone(milestone_id)
