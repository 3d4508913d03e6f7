from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.schemas import RiskUpdateRequest
from app.application.services import ProjectService
from app.core.dependencies import get_current_user_id, get_project_service
from app.domain.entities import Risk

router = APIRouter(prefix="/risks", tags=["risks"])


@router.get("/{risk_id}", response_model=Risk)
async def get_risk(
    risk_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Risk:
    return await project_service.get_risk(risk_id)


@router.patch("/{risk_id}", response_model=Risk)
async def update_risk(
    risk_id: UUID,
    request: RiskUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Risk:
    return await project_service.update_risk(risk_id, request)


@router.delete("/{risk_id}", status_code=204)
async def delete_risk(
    risk_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> None:
    await project_service.delete_risk(risk_id)
