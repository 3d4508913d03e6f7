from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.schemas import BlueprintSaveRequest, PhaseUpdateRequest, PhaseView
from app.application.services import PhaseService
from app.core.dependencies import get_current_user_id, get_phase_service
from app.domain.entities import ProjectBlueprint, ProjectPhase

router = APIRouter(prefix="/projects", tags=["phases"])


@router.get("/{project_id}/phases", response_model=List[PhaseView])
async def list_phases(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    phase_service: PhaseService = Depends(get_phase_service),
) -> List[PhaseView]:
    """All eight phases with the share of their checklist documents completed."""
    return await phase_service.list_phases(project_id)


@router.patch("/{project_id}/phases/{phase_id}", response_model=ProjectPhase)
async def update_phase(
    project_id: UUID,
    phase_id: UUID,
    request: PhaseUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    phase_service: PhaseService = Depends(get_phase_service),
) -> ProjectPhase:
    return await phase_service.update_phase(project_id, phase_id, request)


@router.post("/{project_id}/phases/{phase_id}/gate-approval", response_model=ProjectPhase)
async def approve_phase_gate(
    project_id: UUID,
    phase_id: UUID,
    user_id: str = Depends(get_current_user_id),
    phase_service: PhaseService = Depends(get_phase_service),
) -> ProjectPhase:
    return await phase_service.approve_gate(project_id, phase_id, user_id)


@router.get("/{project_id}/blueprint", response_model=Optional[ProjectBlueprint])
async def get_blueprint(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    phase_service: PhaseService = Depends(get_phase_service),
) -> Optional[ProjectBlueprint]:
    return await phase_service.get_blueprint(project_id)


@router.put("/{project_id}/blueprint", response_model=ProjectBlueprint)
async def save_blueprint(
    project_id: UUID,
    request: BlueprintSaveRequest,
    user_id: str = Depends(get_current_user_id),
    phase_service: PhaseService = Depends(get_phase_service),
) -> ProjectBlueprint:
    return await phase_service.save_blueprint(project_id, request)
