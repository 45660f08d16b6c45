from fastapi import APIRouter, Depends, status, Query, Form, File, UploadFile
from typing import List, Optional
import math

from apps.jobcards.schemas import (
    JobCardCreate, JobCardUpdate, JobCardResponse, JobCardListResponse, JobCardStatsResponse
)
from apps.jobcards.services import JobCardService, get_job_card_service, resolve_status_filter
from apps.jobcards.models import JobCardStatus
from core.config import settings
from core.exceptions import validate_input
from core.storage import read_uploads

router = APIRouter()


def job_card_form(
    customer_name: Optional[str] = Form(None),
    customer_address: Optional[str] = Form(None),
    phone_numbers: Optional[List[str]] = Form(None),
    sr_no: Optional[str] = Form(None),
    make: Optional[str] = Form(None),
    hp: Optional[str] = Form(None),
    kva: Optional[str] = Form(None),
    rpm: Optional[str] = Form(None),
    motor_type: Optional[str] = Form(None),
    frame: Optional[str] = Form(None),
    dealer_name: Optional[str] = Form(None),
    dealer_number: Optional[str] = Form(None),
    warranty: Optional[str] = Form(None),
    works: Optional[str] = Form(None),
    spares: Optional[str] = Form(None),
    industrial_works: Optional[str] = Form(None),
    others: Optional[str] = Form(None),
) -> dict:
    """Multipart job card fields that were actually sent. Unknown fields are ignored."""
    fields = {
        "customer_name": customer_name,
        "customer_address": customer_address,
        "phone_numbers": phone_numbers,
        "sr_no": sr_no,
        "make": make,
        "hp": hp,
        "kva": kva,
        "rpm": rpm,
        "motor_type": motor_type,
        "frame": frame,
        "dealer_name": dealer_name,
        "dealer_number": dealer_number,
        "warranty": warranty,
        "works": works,
        "spares": spares,
        "industrial_works": industrial_works,
        "others": others,
    }
    return {name: value for name, value in fields.items() if value is not None}


# ============ STATIC ROUTES FIRST (before /{job_card_id}) ============

@router.get(
    "/reports",
    response_model=JobCardStatsResponse,
    summary="Job card status counts",
    description="Number of job cards in each status"
)
def get_reports(service: JobCardService = Depends(get_job_card_service)):
    return JobCardStatsResponse(**service.get_job_card_stats())


@router.put(
    "/return",
    response_model=JobCardResponse,
    summary="Return a job card",
)
def return_job_card(
    id: int = Query(..., description="Job card ID"),
    service: JobCardService = Depends(get_job_card_service)
):
    return service.transition(id, JobCardStatus.RETURNED)


@router.put(
    "/work-done",
    response_model=JobCardResponse,
    summary="Mark work as done",
    description="Mark the job card completed and record the out date"
)
def work_done_job_card(
    id: int = Query(..., description="Job card ID"),
    service: JobCardService = Depends(get_job_card_service)
):
    return service.transition(id, JobCardStatus.COMPLETED)


@router.put(
    "/pending",
    response_model=JobCardResponse,
    summary="Mark a job card as pending",
)
def pending_job_card(
    id: int = Query(..., description="Job card ID"),
    service: JobCardService = Depends(get_job_card_service)
):
    return service.transition(id, JobCardStatus.PENDING)


@router.put(
    "/bill",
    response_model=JobCardResponse,
    summary="Bill a job card",
    description="Mark the job card billed with an invoice number and date"
)
def bill_job_card(
    id: int = Query(..., description="Job card ID"),
    invoice_number: Optional[str] = Query(None, description="Invoice number"),
    service: JobCardService = Depends(get_job_card_service)
):
    return service.transition(id, JobCardStatus.BILLED, invoice_number=invoice_number)


# ============ CRUD ROUTES ============

@router.post(
    "/",
    response_model=JobCardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new job card",
    description="Create a job card with up to 5 image or PDF attachments"
)
def create_job_card(
    form_data: dict = Depends(job_card_form),
    files: Optional[List[UploadFile]] = File(None),
    service: JobCardService = Depends(get_job_card_service)
):
    job_card = validate_input(JobCardCreate, form_data)
    return service.create_job_card(job_card, read_uploads(files))


@router.get(
    "/",
    response_model=JobCardListResponse,
    summary="Search job cards",
    description="Search job cards with filters and pagination, newest first"
)
def search_job_cards(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100, description="Items per page"),
    search_term: Optional[str] = Query(None, description="Search in customer, phone, number, dealer, make, serial, HP/KVA/RPM"),
    warranty: Optional[bool] = Query(None, description="Filter by warranty"),
    status_filter: Optional[JobCardStatus] = Query(None, alias="status", description="Filter by status"),
    returned: Optional[str] = Query(None),
    pending: Optional[str] = Query(None),
    completed: Optional[str] = Query(None),
    billed: Optional[str] = Query(None),
    service: JobCardService = Depends(get_job_card_service)
):
    job_status = resolve_status_filter(
        status_filter, returned=returned, pending=pending, completed=completed, billed=billed
    )
    job_cards, total = service.search_job_cards(
        page=page,
        limit=limit,
        search=search_term,
        status=job_status,
        warranty=warranty,
    )

    return JobCardListResponse(
        items=[JobCardResponse.model_validate(j) for j in job_cards],
        total=total,
        page=page,
        size=limit,
        total_pages=math.ceil(total / limit)
    )


# ============ DYNAMIC ROUTES (must come after static routes) ============

@router.post(
    "/{job_card_id}/images",
    response_model=JobCardResponse,
    summary="Add attachments",
    description="Add images or PDFs to a job card that has not been billed"
)
def add_images(
    job_card_id: int,
    files: Optional[List[UploadFile]] = File(None),
    service: JobCardService = Depends(get_job_card_service)
):
    return service.add_images(job_card_id, read_uploads(files))


@router.get(
    "/{job_card_id}",
    response_model=JobCardResponse,
    summary="Get job card by ID",
)
def get_job_card(
    job_card_id: int,
    service: JobCardService = Depends(get_job_card_service)
):
    return service.get_job_card_or_404(job_card_id)


@router.put(
    "/{job_card_id}",
    response_model=JobCardResponse,
    summary="Edit a job card",
    description="Update job card details, upload new attachments and remove existing ones"
)
def edit_job_card(
    job_card_id: int,
    form_data: dict = Depends(job_card_form),
    removed_images: Optional[List[int]] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    service: JobCardService = Depends(get_job_card_service)
):
    job_card_update = validate_input(JobCardUpdate, form_data)
    return service.update_job_card(
        job_card_id,
        job_card_update,
        files=read_uploads(files),
        removed_image_ids=removed_images,
    )
