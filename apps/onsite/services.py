from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_, cast, String
from sqlalchemy.exc import IntegrityError
from typing import List, Optional, Tuple
from fastapi import Depends
import logging

from apps.onsite.models import OnSiteJob, WarrantyStatus, ComplaintStatus, PaymentStatus
from apps.onsite.schemas import OnSiteJobCreate, OnSiteJobUpdate
from apps.worker.models import Worker
from core.database import get_db, like_pattern
from core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class OnSiteJobService:
    def __init__(self, db: Session):
        self.db = db

    def get_complaint(self, complaint_id: int) -> Optional[OnSiteJob]:
        """Get complaint by ID with the attending worker"""
        return (
            self.db.query(OnSiteJob)
            .options(joinedload(OnSiteJob.attended_person))
            .filter(OnSiteJob.id == complaint_id)
            .first()
        )

    def get_complaint_or_404(self, complaint_id: int) -> OnSiteJob:
        db_complaint = self.get_complaint(complaint_id)
        if not db_complaint:
            raise NotFoundError("Complaint not found")
        return db_complaint

    def get_complaint_by_number(self, complaint_number: str) -> Optional[OnSiteJob]:
        return self.db.query(OnSiteJob).filter(OnSiteJob.complaint_number == complaint_number).first()

    def _get_worker_or_404(self, worker_id: int) -> Worker:
        worker = self.db.query(Worker).filter(Worker.id == worker_id).first()
        if not worker:
            raise NotFoundError("Worker not found")
        return worker

    def search_complaints(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        warranty_status: Optional[WarrantyStatus] = None,
        complaint_status: Optional[ComplaintStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Tuple[List[OnSiteJob], int]:
        """Search complaints with filtering and pagination"""
        if page < 1 or limit < 1:
            raise ValidationError("Invalid page or limit value")

        query = self.db.query(OnSiteJob)

        if search:
            pattern = like_pattern(search)
            query = query.filter(or_(
                OnSiteJob.customer_name.ilike(pattern, escape="\\"),
                cast(OnSiteJob.phone_numbers, String).ilike(pattern, escape="\\"),
                OnSiteJob.complaint_number.ilike(pattern, escape="\\"),
                OnSiteJob.dealer_name.ilike(pattern, escape="\\"),
                OnSiteJob.make.ilike(pattern, escape="\\"),
            ))

        if warranty_status is not None:
            query = query.filter(OnSiteJob.warranty_status == warranty_status)
        if complaint_status is not None:
            query = query.filter(OnSiteJob.complaint_status == complaint_status)
        if payment_status is not None:
            query = query.filter(OnSiteJob.payment_status == payment_status)

        total = query.count()

        complaints = (
            query.options(joinedload(OnSiteJob.attended_person))
            .order_by(OnSiteJob.created_at.desc(), OnSiteJob.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return complaints, total

    def create_complaint(self, complaint: OnSiteJobCreate) -> OnSiteJob:
        """Create a complaint; status and payment start as Pending"""
        # Pre-check gives a clear message; the unique constraint catches races
        if complaint.complaint_number and self.get_complaint_by_number(complaint.complaint_number):
            raise ValidationError("Complaint number already exists")

        if complaint.attended_person_id is not None:
            self._get_worker_or_404(complaint.attended_person_id)

        db_complaint = OnSiteJob(
            **complaint.model_dump(),
            complaint_status=ComplaintStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        self.db.add(db_complaint)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Complaint number already exists")
        self.db.refresh(db_complaint)

        logger.info(
            f"Created on-site complaint {db_complaint.complaint_number or db_complaint.id} "
            f"for customer: {db_complaint.customer_name}"
        )
        return db_complaint

    def update_complaint(self, complaint_id: int, complaint_update: OnSiteJobUpdate) -> OnSiteJob:
        """Update a complaint; optional fields only change when a new value is given"""
        db_complaint = self.get_complaint_or_404(complaint_id)

        update_data = complaint_update.model_dump(exclude_none=True)
        for field, value in update_data.items():
            setattr(db_complaint, field, value)

        self.db.commit()
        self.db.refresh(db_complaint)

        logger.info(f"Updated on-site complaint {db_complaint.id}")
        return db_complaint

    def assign_worker(self, complaint_id: int, worker_id: int) -> OnSiteJob:
        worker = self._get_worker_or_404(worker_id)
        db_complaint = self.get_complaint_or_404(complaint_id)

        db_complaint.attended_person_id = worker.id
        self.db.commit()
        self.db.refresh(db_complaint)

        logger.info(f"Assigned worker {worker.worker_name} to on-site complaint {db_complaint.id}")
        return db_complaint

    def update_complaint_status(self, complaint_id: int, complaint_status: ComplaintStatus) -> OnSiteJob:
        db_complaint = self.get_complaint_or_404(complaint_id)
        db_complaint.complaint_status = complaint_status
        self.db.commit()
        self.db.refresh(db_complaint)

        logger.info(f"On-site complaint {db_complaint.id} status set to {complaint_status.value}")
        return db_complaint

    def update_payment_status(self, complaint_id: int, payment_status: PaymentStatus) -> OnSiteJob:
        db_complaint = self.get_complaint_or_404(complaint_id)
        db_complaint.payment_status = payment_status
        self.db.commit()
        self.db.refresh(db_complaint)

        logger.info(f"On-site complaint {db_complaint.id} payment set to {payment_status.value}")
        return db_complaint


# Dependency injection
def get_onsite_service(db: Session = Depends(get_db)) -> OnSiteJobService:
    return OnSiteJobService(db)
