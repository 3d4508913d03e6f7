from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.schemas import (
    ContractCreateRequest,
    ContractUpdateRequest,
    DeliverableCreateRequest,
    DeliverableUpdateRequest,
    ProjectVendorsResponse,
    VendorCreateRequest,
    VendorReviewCreateRequest,
    VendorUpdateRequest,
)
from app.application.services import VendorService
from app.core.dependencies import get_current_user_id, get_vendor_service
from app.domain.entities import (
    Vendor,
    VendorContract,
    VendorDeliverable,
    VendorPerformanceReview,
)

router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.get("/", response_model=List[Vendor])
async def list_vendors(
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> List[Vendor]:
    return await vendor_service.list_vendors()


@router.post("/", response_model=Vendor, status_code=201)
async def create_vendor(
    request: VendorCreateRequest,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> Vendor:
    return await vendor_service.create_vendor(request)


@router.get("/{vendor_id}", response_model=Vendor)
async def get_vendor(
    vendor_id: UUID,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> Vendor:
    return await vendor_service.get_vendor(vendor_id)


@router.patch("/{vendor_id}", response_model=Vendor)
async def update_vendor(
    vendor_id: UUID,
    request: VendorUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> Vendor:
    return await vendor_service.update_vendor(vendor_id, request)


@router.delete("/{vendor_id}", status_code=204)
async def delete_vendor(
    vendor_id: UUID,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> None:
    """Delete a vendor together with its contracts, deliverables and reviews."""
    await vendor_service.delete_vendor(vendor_id)


# Project vendor management


@router.get("/projects/{project_id}", response_model=ProjectVendorsResponse)
async def get_project_vendors(
    project_id: UUID,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> ProjectVendorsResponse:
    """Contracts, deliverables and reviews of a project with summary counts."""
    return await vendor_service.project_overview(project_id)


@router.post(
    "/projects/{project_id}/contracts", response_model=VendorContract, status_code=201
)
async def add_contract(
    project_id: UUID,
    request: ContractCreateRequest,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorContract:
    return await vendor_service.add_contract(project_id, request, user_id)


@router.patch("/contracts/{contract_id}", response_model=VendorContract)
async def update_contract(
    contract_id: UUID,
    request: ContractUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorContract:
    return await vendor_service.update_contract(contract_id, request, user_id)


@router.post(
    "/projects/{project_id}/deliverables",
    response_model=VendorDeliverable,
    status_code=201,
)
async def add_deliverable(
    project_id: UUID,
    request: DeliverableCreateRequest,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorDeliverable:
    return await vendor_service.add_deliverable(project_id, request)


@router.patch("/deliverables/{deliverable_id}", response_model=VendorDeliverable)
async def update_deliverable(
    deliverable_id: UUID,
    request: DeliverableUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorDeliverable:
    """Submitting stamps the submission date; rating records the reviewer."""
    return await vendor_service.update_deliverable(deliverable_id, request, user_id)


@router.post(
    "/projects/{project_id}/reviews",
    response_model=VendorPerformanceReview,
    status_code=201,
)
async def add_performance_review(
    project_id: UUID,
    request: VendorReviewCreateRequest,
    user_id: str = Depends(get_current_user_id),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorPerformanceReview:
    return await vendor_service.add_review(project_id, request, user_id)
