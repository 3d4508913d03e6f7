from datetime import datetime, UTC
from typing import List
from uuid import UUID

import structlog

from app.api.schemas import (
    IdeaCommentCreateRequest,
    IdeaCreateRequest,
    IdeaDetailResponse,
    IdeaImportResponse,
    IdeaUpdateRequest,
    L2ReviewRequest,
)
from app.core.config import settings
from app.core.observability import metrics, trace_async_operation
from app.domain.analytics import StageStatistics, idea_stage_statistics
from app.domain.entities import (
    EvaluationStage,
    Idea,
    IdeaComment,
    IdeaStageHistory,
    StageStatus,
)
from app.domain.exceptions import EntityNotFoundException, ValidationException
from app.domain.ideation import (
    EvaluationOutcome,
    L2Scores,
    L3Assessment,
    L4Review,
    evaluate_l2,
    evaluate_l3,
    evaluate_l4,
)
from app.domain.repositories import IdeaRepository
from app.importers.ideas import parse_ideas_file

logger = structlog.get_logger(__name__)


class IdeaService:
    def __init__(self, idea_repo: IdeaRepository) -> None:
        self.idea_repo = idea_repo

    async def get_idea(self, idea_id: UUID) -> Idea:
        idea = await self.idea_repo.get_by_id(idea_id)
        if not idea:
            raise EntityNotFoundException("Idea", idea_id)
        return idea

    async def get_idea_detail(self, idea_id: UUID) -> IdeaDetailResponse:
        idea = await self.get_idea(idea_id)
        return IdeaDetailResponse(
            idea=idea,
            reviews=await self.idea_repo.list_reviews(idea_id),
            history=await self.idea_repo.list_history(idea_id),
            comments=await self.idea_repo.list_comments(idea_id),
        )

    async def list_ideas(self) -> List[Idea]:
        return await self.idea_repo.list_all()

    async def create_idea(self, request: IdeaCreateRequest, user_id: str) -> Idea:
        async with trace_async_operation("create_idea", user_id=user_id):
            now = datetime.now(UTC)
            idea = Idea(**request.model_dump(), created_by=user_id, submission_date=now)
            await self.idea_repo.create(idea)
            await self.idea_repo.add_history(
                IdeaStageHistory(
                    idea_id=idea.id,
                    to_stage=EvaluationStage.L1,
                    to_status=StageStatus.PENDING,
                    changed_by=user_id,
                    change_reason="Idea submitted",
                    created_at=now,
                )
            )
            logger.info("Idea submitted", idea_id=str(idea.id), user_id=user_id)
            return idea

    async def update_idea(self, idea_id: UUID, request: IdeaUpdateRequest) -> Idea:
        idea = await self.get_idea(idea_id)
        updated = request.apply_to(
            idea, {**request.changes(), "updated_at": datetime.now(UTC)}
        )
        return await self.idea_repo.update(updated)

    async def delete_idea(self, idea_id: UUID) -> None:
        if not await self.idea_repo.delete(idea_id):
            raise EntityNotFoundException("Idea", idea_id)

    async def list_comments(self, idea_id: UUID) -> List[IdeaComment]:
        await self.get_idea(idea_id)
        return await self.idea_repo.list_comments(idea_id)

    async def add_comment(
        self, idea_id: UUID, request: IdeaCommentCreateRequest
    ) -> IdeaComment:
        await self.get_idea(idea_id)
        if request.parent_comment_id is not None:
            thread = await self.idea_repo.list_comments(idea_id)
            if all(c.id != request.parent_comment_id for c in thread):
                raise ValidationException(
                    "Reply must point at a comment on the same idea",
                    details={"parent_comment_id": str(request.parent_comment_id)},
                )

        comment = IdeaComment(idea_id=idea_id, **request.model_dump())
        await self.idea_repo.add_comment(comment)
        logger.info(
            "Idea comment added",
            idea_id=str(idea_id),
            comment_id=str(comment.id),
            internal=comment.is_internal,
        )
        return comment

    async def import_file(
        self, data: bytes, filename: str, user_id: str
    ) -> IdeaImportResponse:
        async with trace_async_operation("import_ideas", filename=filename):
            if len(data) > settings.max_import_bytes:
                raise ValidationException(
                    "Import file is too large",
                    details={"max_bytes": settings.max_import_bytes},
                )

            result = parse_ideas_file(data, filename)
            now = datetime.now(UTC)
            ideas = [
                idea.model_copy(update={"created_by": user_id, "submission_date": now})
                for idea in result.ideas
            ]
            await self.idea_repo.create_many(ideas)

            metrics.record_import("ideas", len(ideas), result.skipped)
            logger.info(
                "Ideas imported",
                filename=filename,
                count=len(ideas),
                skipped=result.skipped,
            )
            return IdeaImportResponse(
                imported=len(ideas),
                skipped=result.skipped,
                errors=result.errors,
                ideas=ideas,
            )

    async def _persist(self, outcome: EvaluationOutcome) -> Idea:
        await self.idea_repo.update(outcome.idea)
        if outcome.review is not None:
            await self.idea_repo.add_review(outcome.review)
        await self.idea_repo.add_history(outcome.history)
        logger.info(
            "Idea evaluated",
            idea_id=str(outcome.idea.id),
            stage=outcome.idea.evaluation_stage.value,
            status=outcome.idea.stage_status.value,
            reason=outcome.history.change_reason,
        )
        return outcome.idea

    async def review_l2(
        self, idea_id: UUID, request: L2ReviewRequest, reviewer: str
    ) -> Idea:
        async with trace_async_operation("review_l2", idea_id=str(idea_id)):
            idea = await self.get_idea(idea_id)
            scores = L2Scores(**request.model_dump(exclude={"comments"}))
            outcome = evaluate_l2(idea, scores, reviewer, request.comments, datetime.now(UTC))
            return await self._persist(outcome)

    async def assess_l3(
        self, idea_id: UUID, assessment: L3Assessment, assessor: str
    ) -> Idea:
        async with trace_async_operation("assess_l3", idea_id=str(idea_id)):
            idea = await self.get_idea(idea_id)
            outcome = evaluate_l3(idea, assessment, assessor, datetime.now(UTC))
            return await self._persist(outcome)

    async def review_l4(self, idea_id: UUID, review: L4Review, approver: str) -> Idea:
        async with trace_async_operation("review_l4", idea_id=str(idea_id)):
            idea = await self.get_idea(idea_id)
            outcome = evaluate_l4(idea, review, approver, datetime.now(UTC))
            return await self._persist(outcome)

    async def stage_statistics(self) -> List[StageStatistics]:
        return idea_stage_statistics(await self.idea_repo.list_all())
