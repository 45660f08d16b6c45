from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime


class WorkerBase(BaseModel):
    worker_name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=20)

    @validator("worker_name", "phone_number", pre=True)
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v


class WorkerCreate(WorkerBase):
    pass


class WorkerUpdate(BaseModel):
    id: int
    worker_name: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)

    @validator("worker_name", "phone_number", pre=True)
    def blank_means_unchanged(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class WorkerResponse(WorkerBase):
    id: int
    worker_image: Optional[str] = None
    status: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WorkerListResponse(BaseModel):
    items: List[WorkerResponse]
    total: int
    page: int
    size: int
    total_pages: int


class WorkerAssignment(BaseModel):
    worker_id: int
    job_card_id: int
