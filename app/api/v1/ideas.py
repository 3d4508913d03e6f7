from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.schemas import (
    IdeaCommentCreateRequest,
    IdeaCreateRequest,
    IdeaDetailResponse,
    IdeaImportResponse,
    IdeaUpdateRequest,
    L2ReviewRequest,
)
from app.application.services import IdeaService
from app.core.dependencies import get_current_user_id, get_idea_service
from app.core.observability import trace_async_operation
from app.domain.analytics import StageStatistics
from app.domain.entities import Idea, IdeaComment
from app.domain.ideation import L3Assessment, L4Review

router = APIRouter(prefix="/ideas", tags=["ideas"])


@router.get("/", response_model=List[Idea])
async def list_ideas(
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> List[Idea]:
    return await idea_service.list_ideas()


@router.post("/", response_model=Idea, status_code=201)
async def create_idea(
    request: IdeaCreateRequest,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> Idea:
    return await idea_service.create_idea(request, user_id)


@router.post("/import", response_model=IdeaImportResponse, status_code=201)
async def import_ideas(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> IdeaImportResponse:
    """Import ideas from an XLSX or CSV sheet with a Title column."""
    filename = file.filename or "upload"
    async with trace_async_operation("api_import_ideas", filename=filename):
        data = await file.read()
        return await idea_service.import_file(data, filename, user_id)


@router.get("/statistics", response_model=List[StageStatistics])
async def get_stage_statistics(
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> List[StageStatistics]:
    return await idea_service.stage_statistics()


@router.get("/{idea_id}", response_model=IdeaDetailResponse)
async def get_idea(
    idea_id: UUID,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> IdeaDetailResponse:
    """An idea with its reviews, stage history and comments."""
    return await idea_service.get_idea_detail(idea_id)


@router.patch("/{idea_id}", response_model=Idea)
async def update_idea(
    idea_id: UUID,
    request: IdeaUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> Idea:
    return await idea_service.update_idea(idea_id, request)


@router.delete("/{idea_id}", status_code=204)
async def delete_idea(
    idea_id: UUID,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> None:
    await idea_service.delete_idea(idea_id)


@router.get("/{idea_id}/comments", response_model=List[IdeaComment])
async def list_idea_comments(
    idea_id: UUID,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> List[IdeaComment]:
    return await idea_service.list_comments(idea_id)


@router.post("/{idea_id}/comments", response_model=IdeaComment, status_code=201)
async def add_idea_comment(
    idea_id: UUID,
    request: IdeaCommentCreateRequest,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> IdeaComment:
    return await idea_service.add_comment(idea_id, request)


@router.post("/{idea_id}/l2", response_model=Idea)
async def review_l2(
    idea_id: UUID,
    request: L2ReviewRequest,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> Idea:
    """Screening: ideas averaging 3 or more advance to L2."""
    return await idea_service.review_l2(idea_id, request, user_id)


@router.post("/{idea_id}/l3", response_model=Idea)
async def assess_l3(
    idea_id: UUID,
    request: L3Assessment,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> Idea:
    """Business case: an ROI of at least 20% advances to L3."""
    return await idea_service.assess_l3(idea_id, request, user_id)


@router.post("/{idea_id}/l4", response_model=Idea)
async def review_l4(
    idea_id: UUID,
    request: L4Review,
    user_id: str = Depends(get_current_user_id),
    idea_service: IdeaService = Depends(get_idea_service),
) -> Idea:
    return await idea_service.review_l4(idea_id, request, user_id)
