from collections import Counter
from datetime import date, datetime, UTC
from typing import Dict, List, Optional
from uuid import UUID

import structlog

from app.api.schemas import BlueprintSaveRequest, PhaseUpdateRequest, PhaseView
from app.core.observability import trace_async_operation
from app.domain.document_templates import PHASE_NAMES
from app.domain.entities import PhaseStatus, ProjectBlueprint, ProjectPhase
from app.domain.exceptions import EntityNotFoundException, ValidationException
from app.domain.repositories import (
    ChecklistRepository,
    DocumentTemplateRepository,
    PhaseRepository,
    ProjectRepository,
)
from app.domain.rounding import round_half_up

logger = structlog.get_logger(__name__)

BLUEPRINT_LISTS = ("validation_criteria", "success_metrics", "assumptions", "constraints")


def _now() -> datetime:
    return datetime.now(UTC)


class PhaseService:
    """Delivery phases of a project, their document progress and the blueprint.

    Every project runs through the eight phases of the document catalogue.
    Phase rows are created the first time a project's phases are read.
    """

    def __init__(
        self,
        phase_repo: PhaseRepository,
        template_repo: DocumentTemplateRepository,
        checklist_repo: ChecklistRepository,
        project_repo: ProjectRepository,
    ) -> None:
        self.phase_repo = phase_repo
        self.template_repo = template_repo
        self.checklist_repo = checklist_repo
        self.project_repo = project_repo

    async def _ensure_project(self, project_id: UUID) -> None:
        if not await self.project_repo.get_by_id(project_id):
            raise EntityNotFoundException("Project", project_id)

    async def _ensure_phases(self, project_id: UUID) -> List[ProjectPhase]:
        phases = await self.phase_repo.list_by_project(project_id)
        existing = {phase.phase_number for phase in phases}
        missing = [
            ProjectPhase(project_id=project_id, phase_number=number, phase_name=name)
            for number, name in enumerate(PHASE_NAMES)
            if number not in existing
        ]
        if missing:
            await self.phase_repo.create_many(missing)
            logger.info(
                "Project phases created", project_id=str(project_id), count=len(missing)
            )
            phases = sorted([*phases, *missing], key=lambda p: p.phase_number)
        return phases

    async def progress_by_phase(self, project_id: UUID) -> Dict[str, int]:
        """Share of a phase's checklist documents that are completed, in percent."""
        phase_of = {t.id: t.phase_name for t in await self.template_repo.list()}
        totals: Counter = Counter()
        completed: Counter = Counter()
        for item in await self.checklist_repo.list_by_project(project_id):
            name = phase_of.get(item.document_template_id)
            if name is None:
                continue
            totals[name] += 1
            if item.completion_status == PhaseStatus.COMPLETED:
                completed[name] += 1

        return {
            name: round_half_up(completed[name] / total * 100) if total else 0
            for name, total in totals.items()
        }

    async def list_phases(self, project_id: UUID) -> List[PhaseView]:
        async with trace_async_operation("list_phases", project_id=str(project_id)):
            await self._ensure_project(project_id)
            phases = await self._ensure_phases(project_id)
            progress = await self.progress_by_phase(project_id)

            current = next(
                (p.phase_number for p in phases if p.status != PhaseStatus.COMPLETED),
                None,
            )
            return [
                PhaseView(
                    **phase.model_dump(),
                    progress=progress.get(phase.phase_name, 0),
                    is_current=phase.phase_number == current,
                )
                for phase in phases
            ]

    async def _get_phase(self, project_id: UUID, phase_id: UUID) -> ProjectPhase:
        phase = await self.phase_repo.get_by_id(phase_id)
        if phase is None or phase.project_id != project_id:
            raise EntityNotFoundException("ProjectPhase", phase_id)
        return phase

    async def update_phase(
        self, project_id: UUID, phase_id: UUID, request: PhaseUpdateRequest
    ) -> ProjectPhase:
        phase = await self._get_phase(project_id, phase_id)
        changes = request.changes()
        status = changes.get("status")
        today = date.today()
        if (
            status == PhaseStatus.IN_PROGRESS
            and "start_date" not in changes
            and phase.start_date is None
        ):
            changes["start_date"] = today
        if (
            status == PhaseStatus.COMPLETED
            and "end_date" not in changes
            and phase.end_date is None
        ):
            changes["end_date"] = today

        updated = request.apply_to(phase, {**changes, "updated_at": _now()})
        if updated.start_date and updated.end_date and updated.end_date < updated.start_date:
            raise ValidationException(
                "end_date must not be before start_date",
                details={
                    "start_date": updated.start_date.isoformat(),
                    "end_date": updated.end_date.isoformat(),
                },
            )

        await self.phase_repo.update(updated)
        logger.info(
            "Project phase updated",
            project_id=str(project_id),
            phase=updated.phase_name,
            status=updated.status.value,
        )
        return updated

    async def approve_gate(
        self, project_id: UUID, phase_id: UUID, user_id: str
    ) -> ProjectPhase:
        """Sign off the stage gate that closes a completed phase."""
        phase = await self._get_phase(project_id, phase_id)
        if phase.status != PhaseStatus.COMPLETED:
            raise ValidationException(
                "Only a completed phase can pass its gate",
                details={"phase": phase.phase_name, "status": phase.status.value},
            )

        phase.gate_approved = True
        phase.gate_approved_by = user_id
        phase.gate_approval_date = date.today()
        phase.updated_at = _now()
        await self.phase_repo.update(phase)
        logger.info(
            "Phase gate approved",
            project_id=str(project_id),
            phase=phase.phase_name,
            user_id=user_id,
        )
        return phase

    # Blueprint

    async def get_blueprint(self, project_id: UUID) -> Optional[ProjectBlueprint]:
        await self._ensure_project(project_id)
        return await self.phase_repo.get_blueprint(project_id)

    async def save_blueprint(
        self, project_id: UUID, request: BlueprintSaveRequest
    ) -> ProjectBlueprint:
        await self._ensure_project(project_id)
        data = request.model_dump()
        for field in BLUEPRINT_LISTS:
            # Blank rows left over from the editor are not stored
            data[field] = [entry.strip() for entry in data[field] if entry.strip()]

        blueprint = ProjectBlueprint(project_id=project_id, **data)
        saved = await self.phase_repo.save_blueprint(blueprint)
        logger.info("Project blueprint saved", project_id=str(project_id))
        return saved
