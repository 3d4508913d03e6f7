from collections import defaultdict
from typing import Dict, List, Optional
from uuid import UUID

import structlog

from app.api.schemas import (
    ChecklistChangeResponse,
    ChecklistItemUpdateRequest,
    ChecklistProgress,
    ChecklistResponse,
    ChecklistTemplateView,
)
from app.core.observability import trace_async_operation
from app.domain.document_templates import default_templates, phase_name
from app.domain.entities import ChecklistItem, DocumentTemplate
from app.domain.exceptions import EntityNotFoundException, ValidationException
from app.domain.repositories import (
    ChecklistRepository,
    DocumentTemplateRepository,
    ProjectRepository,
)
from app.domain.rounding import round_half_up

logger = structlog.get_logger(__name__)


class ChecklistService:
    """Per-phase document checklists over the shared template catalogue."""

    def __init__(
        self,
        template_repo: DocumentTemplateRepository,
        checklist_repo: ChecklistRepository,
        project_repo: ProjectRepository,
    ) -> None:
        self.template_repo = template_repo
        self.checklist_repo = checklist_repo
        self.project_repo = project_repo

    async def seed_templates(self) -> int:
        """Load the built-in catalogue when the table is empty."""
        if await self.template_repo.count() > 0:
            return 0
        created = await self.template_repo.create_many(default_templates())
        logger.info("Document templates seeded", count=len(created))
        return len(created)

    @staticmethod
    def resolve_phase(value: str) -> str:
        resolved = phase_name(value)
        if resolved is None:
            raise ValidationException(f"Unknown phase: {value}", details={"phase": value})
        return resolved

    async def list_templates(self, phase: Optional[str] = None) -> List[DocumentTemplate]:
        return await self.template_repo.list(self.resolve_phase(phase) if phase else None)

    async def _ensure_project(self, project_id: UUID) -> None:
        if not await self.project_repo.get_by_id(project_id):
            raise EntityNotFoundException("Project", project_id)

    async def _selected(self, project_id: UUID) -> Dict[UUID, ChecklistItem]:
        items = await self.checklist_repo.list_by_project(project_id)
        return {item.document_template_id: item for item in items}

    async def get_checklist(
        self, project_id: UUID, phase: str, search: Optional[str] = None
    ) -> ChecklistResponse:
        async with trace_async_operation("get_checklist", project_id=str(project_id)):
            await self._ensure_project(project_id)
            resolved = self.resolve_phase(phase)
            templates = await self.template_repo.list(resolved)
            selected = await self._selected(project_id)

            views = []
            for template in templates:
                item = selected.get(template.id)
                views.append(
                    ChecklistTemplateView(
                        **template.model_dump(),
                        is_selected=item is not None,
                        checklist_id=item.id if item else None,
                    )
                )

            selected_count = sum(1 for v in views if v.is_selected)
            total = len(views)

            if search:
                needle = search.strip().lower()
                views = [v for v in views if needle in v.name.lower()]

            by_category: Dict[str, List[ChecklistTemplateView]] = defaultdict(list)
            for view in views:
                by_category[view.category.value].append(view)

            return ChecklistResponse(
                phase_name=resolved,
                templates=views,
                by_category=dict(by_category),
                progress=ChecklistProgress(
                    selected=selected_count,
                    total=total,
                    percentage=(
                        round_half_up(selected_count / total * 100) if total else 0
                    ),
                ),
            )

    async def toggle(self, project_id: UUID, template_id: UUID) -> ChecklistChangeResponse:
        await self._ensure_project(project_id)
        if not await self.template_repo.get_by_id(template_id):
            raise EntityNotFoundException("DocumentTemplate", template_id)

        selected = await self._selected(project_id)
        item = selected.get(template_id)
        if item is not None:
            await self.checklist_repo.delete(item.id)
            logger.info(
                "Checklist item removed",
                project_id=str(project_id),
                template_id=str(template_id),
            )
            return ChecklistChangeResponse(removed=1)

        await self.checklist_repo.create_many(
            [ChecklistItem(project_id=project_id, document_template_id=template_id)]
        )
        logger.info(
            "Checklist item added", project_id=str(project_id), template_id=str(template_id)
        )
        return ChecklistChangeResponse(added=1)

    async def _select(
        self, project_id: UUID, phase: str, critical_only: bool
    ) -> ChecklistChangeResponse:
        await self._ensure_project(project_id)
        templates = await self.template_repo.list(self.resolve_phase(phase))
        selected = await self._selected(project_id)

        new_items = [
            ChecklistItem(project_id=project_id, document_template_id=t.id)
            for t in templates
            if t.id not in selected and (t.is_critical_milestone or not critical_only)
        ]
        await self.checklist_repo.create_many(new_items)
        logger.info(
            "Checklist bulk selection",
            project_id=str(project_id),
            phase=phase,
            critical_only=critical_only,
            added=len(new_items),
        )
        return ChecklistChangeResponse(added=len(new_items))

    async def select_all(self, project_id: UUID, phase: str) -> ChecklistChangeResponse:
        return await self._select(project_id, phase, critical_only=False)

    async def select_critical(
        self, project_id: UUID, phase: str
    ) -> ChecklistChangeResponse:
        return await self._select(project_id, phase, critical_only=True)

    async def update_item(
        self, project_id: UUID, item_id: UUID, request: ChecklistItemUpdateRequest
    ) -> ChecklistItem:
        """Track the delivery of a selected document; feeds phase progress."""
        item = await self.checklist_repo.get_by_id(item_id)
        if item is None or item.project_id != project_id:
            raise EntityNotFoundException("ChecklistItem", item_id)

        updated = request.apply_to(item)
        await self.checklist_repo.update(updated)
        logger.info(
            "Checklist item updated",
            project_id=str(project_id),
            item_id=str(item_id),
            completion_status=updated.completion_status.value,
        )
        return updated
