from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime

from apps.onsite.models import WarrantyStatus, ComplaintStatus, PaymentStatus
from apps.jobcards.schemas import WorkerSummary, normalize_phone_numbers


class OnSiteJobBase(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_address: str = Field(..., min_length=1)
    phone_numbers: List[str] = Field(..., min_length=1)
    make: Optional[str] = None
    dealer_name: Optional[str] = None
    reported_complaint: Optional[str] = None
    complaint_details: Optional[str] = None
    attended_date: Optional[datetime] = None

    @validator("phone_numbers", pre=True)
    def phone_numbers_as_list(cls, v):
        return normalize_phone_numbers(v)


class OnSiteJobCreate(OnSiteJobBase):
    complaint_number: Optional[str] = Field(None, max_length=100)
    warranty_status: WarrantyStatus = WarrantyStatus.NON_WARRANTY
    attended_person_id: Optional[int] = None

    @validator("complaint_number", pre=True)
    def blank_complaint_number(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v


class OnSiteJobUpdate(OnSiteJobBase):
    """Required fields must be resent; optional ones left out keep their value."""
    warranty_status: Optional[WarrantyStatus] = None


class ComplaintStatusUpdate(BaseModel):
    complaint_status: ComplaintStatus


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class OnSiteWorkerAssignment(BaseModel):
    worker_id: int


class OnSiteJobResponse(BaseModel):
    id: int
    complaint_number: Optional[str] = None
    customer_name: str
    customer_address: str
    phone_numbers: List[str]
    make: Optional[str] = None
    dealer_name: Optional[str] = None
    reported_complaint: Optional[str] = None
    complaint_details: Optional[str] = None
    attended_date: Optional[datetime] = None
    warranty_status: WarrantyStatus
    complaint_status: ComplaintStatus
    payment_status: PaymentStatus
    attended_person_id: Optional[int] = None
    attended_person: Optional[WorkerSummary] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OnSiteJobListResponse(BaseModel):
    items: List[OnSiteJobResponse]
    total: int
    page: int
    size: int
    total_pages: int
