from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.application.services import ChecklistService
from app.core.dependencies import get_checklist_service, get_current_user_id
from app.domain.entities import DocumentTemplate

router = APIRouter(prefix="/document-templates", tags=["document-templates"])


@router.get("/", response_model=List[DocumentTemplate])
async def list_templates(
    phase: Optional[str] = Query(default=None, description="Phase name or key"),
    user_id: str = Depends(get_current_user_id),
    checklist_service: ChecklistService = Depends(get_checklist_service),
) -> List[DocumentTemplate]:
    return await checklist_service.list_templates(phase)
