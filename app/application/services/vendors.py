from datetime import date, datetime, UTC
from typing import List
from uuid import UUID

import structlog

from app.api.schemas import (
    ContractCreateRequest,
    ContractUpdateRequest,
    DeliverableCreateRequest,
    DeliverableUpdateRequest,
    ProjectVendorsResponse,
    VendorCreateRequest,
    VendorReviewCreateRequest,
    VendorSummary,
    VendorUpdateRequest,
)
from app.core.observability import trace_async_operation
from app.domain.entities import (
    ContractStatus,
    DeliverableStatus,
    Vendor,
    VendorContract,
    VendorDeliverable,
    VendorPerformanceReview,
)
from app.domain.exceptions import EntityNotFoundException, ValidationException
from app.domain.repositories import ProjectRepository, VendorRepository

logger = structlog.get_logger(__name__)

SUBMITTED_STATUSES = {DeliverableStatus.SUBMITTED, DeliverableStatus.COMPLETED}


def _now() -> datetime:
    return datetime.now(UTC)


class VendorService:
    """Vendor register plus per-project contracts, deliverables and reviews."""

    def __init__(
        self, vendor_repo: VendorRepository, project_repo: ProjectRepository
    ) -> None:
        self.vendor_repo = vendor_repo
        self.project_repo = project_repo

    async def _ensure_project(self, project_id: UUID) -> None:
        if not await self.project_repo.get_by_id(project_id):
            raise EntityNotFoundException("Project", project_id)

    # Vendors

    async def list_vendors(self) -> List[Vendor]:
        return await self.vendor_repo.list_all()

    async def get_vendor(self, vendor_id: UUID) -> Vendor:
        vendor = await self.vendor_repo.get_by_id(vendor_id)
        if not vendor:
            raise EntityNotFoundException("Vendor", vendor_id)
        return vendor

    async def create_vendor(self, request: VendorCreateRequest) -> Vendor:
        vendor = Vendor(**request.model_dump())
        await self.vendor_repo.create(vendor)
        logger.info("Vendor registered", vendor_id=str(vendor.id), name=vendor.name)
        return vendor

    async def update_vendor(self, vendor_id: UUID, request: VendorUpdateRequest) -> Vendor:
        vendor = await self.get_vendor(vendor_id)
        updated = request.apply_to(vendor, {**request.changes(), "updated_at": _now()})
        return await self.vendor_repo.update(updated)

    async def delete_vendor(self, vendor_id: UUID) -> None:
        if not await self.vendor_repo.delete(vendor_id):
            raise EntityNotFoundException("Vendor", vendor_id)
        logger.info("Vendor deleted", vendor_id=str(vendor_id))

    # Project view

    async def project_overview(self, project_id: UUID) -> ProjectVendorsResponse:
        async with trace_async_operation("vendor_overview", project_id=str(project_id)):
            await self._ensure_project(project_id)
            vendors = await self.vendor_repo.list_all()
            contracts = await self.vendor_repo.list_contracts(project_id)
            deliverables = await self.vendor_repo.list_deliverables(project_id)
            reviews = await self.vendor_repo.list_reviews(project_id)
            return ProjectVendorsResponse(
                summary=VendorSummary(
                    vendors=len(vendors),
                    active_contracts=sum(
                        1 for c in contracts if c.status == ContractStatus.ACTIVE
                    ),
                    pending_deliverables=sum(
                        1 for d in deliverables if d.status == DeliverableStatus.PENDING
                    ),
                    performance_reviews=len(reviews),
                ),
                contracts=contracts,
                deliverables=deliverables,
                reviews=reviews,
            )

    # Contracts

    async def get_contract(self, contract_id: UUID) -> VendorContract:
        contract = await self.vendor_repo.get_contract(contract_id)
        if not contract:
            raise EntityNotFoundException("VendorContract", contract_id)
        return contract

    async def add_contract(
        self, project_id: UUID, request: ContractCreateRequest, user_id: str
    ) -> VendorContract:
        await self._ensure_project(project_id)
        await self.get_vendor(request.vendor_id)

        contract = VendorContract(project_id=project_id, **request.model_dump())
        if contract.status == ContractStatus.APPROVED:
            contract.approved_by = user_id
            contract.approval_date = date.today()
        await self.vendor_repo.add_contract(contract)
        logger.info(
            "Vendor contract added",
            project_id=str(project_id),
            vendor_id=str(contract.vendor_id),
            contract_type=contract.contract_type.value,
        )
        return contract

    async def update_contract(
        self, contract_id: UUID, request: ContractUpdateRequest, user_id: str
    ) -> VendorContract:
        contract = await self.get_contract(contract_id)
        updated = request.apply_to(contract, {**request.changes(), "updated_at": _now()})
        if updated.start_date and updated.end_date and updated.end_date < updated.start_date:
            raise ValidationException(
                "end_date must not be before start_date",
                details={
                    "start_date": updated.start_date.isoformat(),
                    "end_date": updated.end_date.isoformat(),
                },
            )
        if (
            updated.status == ContractStatus.APPROVED
            and contract.status != ContractStatus.APPROVED
        ):
            updated.approved_by = user_id
            updated.approval_date = date.today()
        return await self.vendor_repo.update_contract(updated)

    # Deliverables

    async def get_deliverable(self, deliverable_id: UUID) -> VendorDeliverable:
        deliverable = await self.vendor_repo.get_deliverable(deliverable_id)
        if not deliverable:
            raise EntityNotFoundException("VendorDeliverable", deliverable_id)
        return deliverable

    async def add_deliverable(
        self, project_id: UUID, request: DeliverableCreateRequest
    ) -> VendorDeliverable:
        await self._ensure_project(project_id)
        await self.get_vendor(request.vendor_id)
        if request.contract_id is not None:
            contract = await self.get_contract(request.contract_id)
            if contract.vendor_id != request.vendor_id or contract.project_id != project_id:
                raise ValidationException(
                    "Contract belongs to another vendor or project",
                    details={"contract_id": str(request.contract_id)},
                )

        deliverable = VendorDeliverable(project_id=project_id, **request.model_dump())
        await self.vendor_repo.add_deliverable(deliverable)
        logger.info(
            "Vendor deliverable added",
            project_id=str(project_id),
            deliverable_id=str(deliverable.id),
        )
        return deliverable

    async def update_deliverable(
        self, deliverable_id: UUID, request: DeliverableUpdateRequest, user_id: str
    ) -> VendorDeliverable:
        deliverable = await self.get_deliverable(deliverable_id)
        changes = request.changes()
        if (
            changes.get("status") in SUBMITTED_STATUSES
            and "submission_date" not in changes
            and deliverable.submission_date is None
        ):
            changes["submission_date"] = date.today()
        if "quality_rating" in changes or "review_notes" in changes:
            changes["reviewed_by"] = user_id

        updated = request.apply_to(deliverable, {**changes, "updated_at": _now()})
        return await self.vendor_repo.update_deliverable(updated)

    # Performance reviews

    async def add_review(
        self, project_id: UUID, request: VendorReviewCreateRequest, user_id: str
    ) -> VendorPerformanceReview:
        await self._ensure_project(project_id)
        await self.get_vendor(request.vendor_id)

        data = request.model_dump()
        if data["review_date"] is None:
            data["review_date"] = date.today()
        review = VendorPerformanceReview(project_id=project_id, reviewed_by=user_id, **data)
        await self.vendor_repo.add_review(review)
        logger.info(
            "Vendor performance reviewed",
            project_id=str(project_id),
            vendor_id=str(review.vendor_id),
            rating=review.overall_rating.value,
        )
        return review
