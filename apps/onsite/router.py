from fastapi import APIRouter, Depends, status, Query
from typing import Optional
import math

from apps.onsite.schemas import (
    OnSiteJobCreate, OnSiteJobUpdate, OnSiteJobResponse, OnSiteJobListResponse,
    ComplaintStatusUpdate, PaymentStatusUpdate, OnSiteWorkerAssignment
)
from apps.onsite.services import OnSiteJobService, get_onsite_service
from apps.onsite.models import WarrantyStatus, ComplaintStatus, PaymentStatus
from core.config import settings

router = APIRouter()


@router.post(
    "/",
    response_model=OnSiteJobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an on-site complaint",
)
def create_complaint(
    complaint: OnSiteJobCreate,
    service: OnSiteJobService = Depends(get_onsite_service)
):
    return service.create_complaint(complaint)


@router.get(
    "/",
    response_model=OnSiteJobListResponse,
    summary="Search on-site complaints",
    description="Search complaints with filters and pagination, newest first"
)
def search_complaints(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    search_term: Optional[str] = Query(None, description="Search in customer, phone, complaint number, dealer, make"),
    warranty_status: Optional[WarrantyStatus] = Query(None),
    complaint_status: Optional[ComplaintStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    service: OnSiteJobService = Depends(get_onsite_service)
):
    complaints, total = service.search_complaints(
        page=page,
        limit=limit,
        search=search_term,
        warranty_status=warranty_status,
        complaint_status=complaint_status,
        payment_status=payment_status,
    )
    return OnSiteJobListResponse(
        items=[OnSiteJobResponse.model_validate(c) for c in complaints],
        total=total,
        page=page,
        size=limit,
        total_pages=math.ceil(total / limit)
    )


@router.put(
    "/{complaint_id}/assign-worker",
    response_model=OnSiteJobResponse,
    summary="Assign a worker to a complaint",
)
def assign_worker(
    complaint_id: int,
    assignment: OnSiteWorkerAssignment,
    service: OnSiteJobService = Depends(get_onsite_service)
):
    return service.assign_worker(complaint_id, assignment.worker_id)


@router.put(
    "/{complaint_id}/status",
    response_model=OnSiteJobResponse,
    summary="Update complaint status",
)
def update_complaint_status(
    complaint_id: int,
    status_update: ComplaintStatusUpdate,
    service: OnSiteJobService = Depends(get_onsite_service)
):
    return service.update_complaint_status(complaint_id, status_update.complaint_status)


@router.put(
    "/{complaint_id}/payment-status",
    response_model=OnSiteJobResponse,
    summary="Update payment status",
)
def update_payment_status(
    complaint_id: int,
    payment_update: PaymentStatusUpdate,
    service: OnSiteJobService = Depends(get_onsite_service)
):
    return service.update_payment_status(complaint_id, payment_update.payment_status)


@router.get(
    "/{complaint_id}",
    response_model=OnSiteJobResponse,
    summary="Get a complaint by ID",
)
def get_complaint(
    complaint_id: int,
    service: OnSiteJobService = Depends(get_onsite_service)
):
    return service.get_complaint_or_404(complaint_id)


@router.put(
    "/{complaint_id}",
    response_model=OnSiteJobResponse,
    summary="Edit a complaint",
)
def edit_complaint(
    complaint_id: int,
    complaint_update: OnSiteJobUpdate,
    service: OnSiteJobService = Depends(get_onsite_service)
):
    return service.update_complaint(complaint_id, complaint_update)
