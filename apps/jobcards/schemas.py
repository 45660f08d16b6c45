from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime

from apps.jobcards.models import JobCardStatus, FileType


def parse_optional_int(value) -> Optional[int]:
    """Lenient numeric parse: anything that is not a number becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number)


def normalize_phone_numbers(value):
    if value is None:
        return value
    if isinstance(value, str):
        value = [value]
    return [str(p).strip() for p in value if p is not None and str(p).strip()]


class JobCardFields(BaseModel):
    make: Optional[str] = None
    hp: Optional[int] = None
    kva: Optional[int] = None
    rpm: Optional[int] = None
    motor_type: Optional[str] = None
    frame: Optional[str] = None
    dealer_name: Optional[str] = None
    dealer_number: Optional[str] = None
    works: Optional[str] = None
    spares: Optional[str] = None
    industrial_works: Optional[str] = None
    others: Optional[str] = None

    @validator("hp", "kva", "rpm", pre=True)
    def drop_invalid_numbers(cls, v):
        return parse_optional_int(v)


class JobCardCreate(JobCardFields):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_address: str = Field(..., min_length=1)
    phone_numbers: List[str] = Field(..., min_length=1)
    sr_no: str = Field(..., min_length=1, max_length=255)
    warranty: bool = False

    @validator("phone_numbers", pre=True)
    def phone_numbers_as_list(cls, v):
        return normalize_phone_numbers(v)


class JobCardUpdate(JobCardFields):
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_address: Optional[str] = Field(None, min_length=1)
    phone_numbers: Optional[List[str]] = Field(None, min_length=1)
    sr_no: Optional[str] = Field(None, min_length=1, max_length=255)
    warranty: Optional[bool] = None

    @validator("phone_numbers", pre=True)
    def phone_numbers_as_list(cls, v):
        return normalize_phone_numbers(v)


class JobCardImageResponse(BaseModel):
    id: int
    url: str
    file_type: FileType

    class Config:
        from_attributes = True


class WorkerSummary(BaseModel):
    id: int
    worker_name: str
    worker_image: Optional[str] = None

    class Config:
        from_attributes = True


class JobCardResponse(BaseModel):
    id: int
    job_card_number: str
    customer_name: str
    customer_address: str
    phone_numbers: List[str]
    make: Optional[str] = None
    hp: Optional[int] = None
    kva: Optional[int] = None
    rpm: Optional[int] = None
    motor_type: Optional[str] = None
    frame: Optional[str] = None
    sr_no: str
    dealer_name: Optional[str] = None
    dealer_number: Optional[str] = None
    warranty: bool
    works: Optional[str] = None
    spares: Optional[str] = None
    industrial_works: Optional[str] = None
    others: Optional[str] = None
    status: JobCardStatus
    out_date: Optional[datetime] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None
    worker_id: Optional[int] = None
    worker: Optional[WorkerSummary] = None
    images: List[JobCardImageResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JobCardListResponse(BaseModel):
    items: List[JobCardResponse]
    total: int
    page: int
    size: int
    total_pages: int


class JobCardStatsResponse(BaseModel):
    total_job_cards: int
    pending: int
    completed: int
    returned: int
    billed: int
