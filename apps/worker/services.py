from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from fastapi import Depends
import logging

from apps.worker.models import Worker
from apps.worker.schemas import WorkerCreate, WorkerUpdate, WorkerAssignment
from apps.jobcards.models import JobCard
from core.database import get_db
from core.exceptions import NotFoundError, ValidationError
from core.storage import AttachmentStore, FileUpload, get_attachment_store

logger = logging.getLogger(__name__)


class WorkerService:
    def __init__(self, db: Session, store: AttachmentStore):
        self.db = db
        self.store = store

    def get_worker(self, worker_id: int) -> Optional[Worker]:
        """Get worker by ID"""
        return self.db.query(Worker).filter(Worker.id == worker_id).first()

    def get_worker_or_404(self, worker_id: int) -> Worker:
        db_worker = self.get_worker(worker_id)
        if not db_worker:
            raise NotFoundError("Worker not found")
        return db_worker

    def get_workers(self, page: int = 1, limit: int = 10) -> Tuple[List[Worker], int]:
        """List workers with pagination"""
        if page < 1 or limit < 1:
            raise ValidationError("Invalid page or limit value")

        query = self.db.query(Worker)
        total = query.count()
        workers = query.order_by(Worker.id).offset((page - 1) * limit).limit(limit).all()
        return workers, total

    def get_available_workers(self) -> List[Worker]:
        return self.db.query(Worker).filter(Worker.status.is_(True)).order_by(Worker.worker_name).all()

    def create_worker(self, worker_data: WorkerCreate, image: Optional[FileUpload]) -> Worker:
        """Create a worker with a profile photo"""
        if image is None:
            raise ValidationError("No file provided")

        stored = self.store.upload(image)

        db_worker = Worker(
            **worker_data.model_dump(),
            worker_image=stored.url,
            storage_key=stored.key,
        )
        self.db.add(db_worker)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.store.discard([stored.key])
            raise
        self.db.refresh(db_worker)

        logger.info(f"Created worker: {db_worker.worker_name} (ID: {db_worker.id})")
        return db_worker

    def update_worker(self, worker_update: WorkerUpdate) -> Worker:
        """Update name and/or phone; omitted values are kept"""
        db_worker = self.get_worker_or_404(worker_update.id)

        if worker_update.worker_name:
            db_worker.worker_name = worker_update.worker_name
        if worker_update.phone_number:
            db_worker.phone_number = worker_update.phone_number

        self.db.commit()
        self.db.refresh(db_worker)

        logger.info(f"Updated worker: {db_worker.worker_name} (ID: {db_worker.id})")
        return db_worker

    def update_worker_image(self, worker_id: int, image: Optional[FileUpload]) -> Worker:
        """Replace the worker's photo; the old stored object is deleted afterwards"""
        if image is None:
            raise ValidationError("No file provided")

        db_worker = self.get_worker_or_404(worker_id)
        old_key = db_worker.storage_key

        stored = self.store.upload(image)
        db_worker.worker_image = stored.url
        db_worker.storage_key = stored.key
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.store.discard([stored.key])
            raise
        self.db.refresh(db_worker)

        if old_key:
            self.store.discard([old_key])

        logger.info(f"Updated image for worker {db_worker.worker_name} (ID: {db_worker.id})")
        return db_worker

    def change_status(self, worker_id: int) -> Worker:
        """Toggle availability"""
        db_worker = self.get_worker_or_404(worker_id)
        db_worker.status = not db_worker.status
        self.db.commit()
        self.db.refresh(db_worker)

        logger.info(
            f"Worker {db_worker.worker_name} is now "
            f"{'available' if db_worker.status else 'unavailable'}"
        )
        return db_worker

    def assign_worker(self, assignment: WorkerAssignment) -> JobCard:
        """Assign a worker to a job card. Unavailable workers may still be assigned."""
        db_worker = self.get_worker_or_404(assignment.worker_id)

        db_job_card = self.db.query(JobCard).filter(JobCard.id == assignment.job_card_id).first()
        if not db_job_card:
            raise NotFoundError("Job card not found")

        if not db_worker.status:
            logger.warning(
                f"Assigning unavailable worker {db_worker.worker_name} "
                f"to job card {db_job_card.job_card_number}"
            )

        db_job_card.worker_id = db_worker.id
        self.db.commit()
        self.db.refresh(db_job_card)

        logger.info(f"Assigned worker {db_worker.worker_name} to job card {db_job_card.job_card_number}")
        return db_job_card


# Dependency injection
def get_worker_service(
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
) -> WorkerService:
    return WorkerService(db, store)
