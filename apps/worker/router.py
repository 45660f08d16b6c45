from fastapi import APIRouter, Depends, status, Query, Form, File, UploadFile
from typing import List, Optional
import math

from apps.worker.schemas import (
    WorkerCreate, WorkerUpdate, WorkerResponse, WorkerListResponse, WorkerAssignment
)
from apps.worker.services import WorkerService, get_worker_service
from apps.jobcards.schemas import JobCardResponse
from core.config import settings
from core.exceptions import validate_input
from core.storage import read_uploads

router = APIRouter()


def _single_upload(image: Optional[UploadFile]):
    uploads = read_uploads([image] if image is not None else [], max_files=1)
    return uploads[0] if uploads else None


@router.post(
    "/",
    response_model=WorkerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a worker",
    description="Create a worker with a profile photo"
)
def create_worker(
    worker_name: Optional[str] = Form(None),
    phone_number: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: WorkerService = Depends(get_worker_service)
):
    worker = validate_input(WorkerCreate, {"worker_name": worker_name, "phone_number": phone_number})
    return service.create_worker(worker, _single_upload(image))


@router.get(
    "/",
    response_model=WorkerListResponse,
    summary="List workers",
)
def list_workers(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    service: WorkerService = Depends(get_worker_service)
):
    workers, total = service.get_workers(page=page, limit=limit)
    return WorkerListResponse(
        items=[WorkerResponse.model_validate(w) for w in workers],
        total=total,
        page=page,
        size=limit,
        total_pages=math.ceil(total / limit)
    )


@router.get(
    "/specific",
    response_model=WorkerResponse,
    summary="Get a worker",
)
def get_worker(
    id: int = Query(..., description="Worker ID"),
    service: WorkerService = Depends(get_worker_service)
):
    return service.get_worker_or_404(id)


@router.get(
    "/available",
    response_model=List[WorkerResponse],
    summary="List available workers",
)
def list_available_workers(service: WorkerService = Depends(get_worker_service)):
    return service.get_available_workers()


@router.put(
    "/edit",
    response_model=WorkerResponse,
    summary="Edit worker details",
)
def edit_worker(
    id: Optional[int] = Form(None),
    worker_name: Optional[str] = Form(None),
    phone_number: Optional[str] = Form(None),
    service: WorkerService = Depends(get_worker_service)
):
    worker_update = validate_input(
        WorkerUpdate, {"id": id, "worker_name": worker_name, "phone_number": phone_number}
    )
    return service.update_worker(worker_update)


@router.put(
    "/change-status",
    response_model=WorkerResponse,
    summary="Toggle worker availability",
)
def change_worker_status(
    id: int = Query(..., description="Worker ID"),
    service: WorkerService = Depends(get_worker_service)
):
    return service.change_status(id)


@router.put(
    "/assign",
    response_model=JobCardResponse,
    summary="Assign a worker to a job card",
)
def assign_worker(
    assignment: WorkerAssignment,
    service: WorkerService = Depends(get_worker_service)
):
    return service.assign_worker(assignment)


@router.put(
    "/{worker_id}/image",
    response_model=WorkerResponse,
    summary="Replace a worker's photo",
)
def edit_worker_image(
    worker_id: int,
    image: Optional[UploadFile] = File(None),
    service: WorkerService = Depends(get_worker_service)
):
    return service.update_worker_image(worker_id, _single_upload(image))
