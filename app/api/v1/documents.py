from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.schemas import DocumentUpdateRequest
from app.application.services import ProjectService
from app.core.dependencies import get_current_user_id, get_project_service
from app.core.observability import trace_async_operation
from app.domain.entities import Document

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("/{document_id}", response_model=Document)
async def get_document(
    document_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Document:
    return await project_service.get_document(document_id)


@router.patch("/{document_id}", response_model=Document)
async def update_document(
    document_id: UUID,
    request: DocumentUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> Document:
    """Update a document. Content is sanitized and approval records the approver."""
    async with trace_async_operation("api_update_document", document_id=str(document_id)):
        return await project_service.update_document(document_id, request, user_id)


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: UUID,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
) -> None:
    await project_service.delete_document(document_id)
