from sqlalchemy.orm import Session, selectinload, joinedload
from sqlalchemy import or_, func, update, cast, String
from sqlalchemy.exc import IntegrityError
from typing import List, Optional, Tuple, Dict
from datetime import datetime
from fastapi import Depends
import logging

from apps.jobcards.models import JobCard, JobCardImage, JobCardStatus, Counter
from apps.jobcards.schemas import JobCardCreate, JobCardUpdate
from core.database import get_db, like_pattern
from core.exceptions import NotFoundError, ValidationError, PartialFailureError
from core.storage import AttachmentStore, FileUpload, StoredFile, get_attachment_store

logger = logging.getLogger(__name__)

JOB_CARD_SEQUENCE = "jobCardNumber"
NUMERIC_FIELDS = ("hp", "kva", "rpm")

# Legacy presence flags on the search endpoint, strongest first
STATUS_FLAG_PRECEDENCE = [
    ("billed", JobCardStatus.BILLED),
    ("completed", JobCardStatus.COMPLETED),
    ("pending", JobCardStatus.PENDING),
    ("returned", JobCardStatus.RETURNED),
]


def next_sequence_value(db: Session, key: str) -> int:
    """
    Atomically increment the counter ``key`` and return the new value.

    The increment is a single UPDATE ... RETURNING, so concurrent callers can
    never read the same value. Must run at the start of the caller's
    transaction: seeding a missing counter may roll the session back.
    """
    stmt = (
        update(Counter)
        .where(Counter.key == key)
        .values(value=Counter.value + 1)
        .returning(Counter.value)
        .execution_options(synchronize_session=False)
    )
    for _ in range(2):
        value = db.execute(stmt).scalar_one_or_none()
        if value is not None:
            return value

        # First use of this counter
        db.add(Counter(key=key, value=1))
        try:
            db.flush()
            return 1
        except IntegrityError:
            # Another request seeded it first; increment theirs instead
            db.rollback()

    raise RuntimeError(f"Could not increment counter '{key}'")


def format_job_card_number(sequence: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{sequence}/{now.strftime('%y')}"


def parse_search_number(search: str):
    """Return the search term as a number, or None if it is not numeric."""
    try:
        number = float(search.strip())
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number) if number.is_integer() else number


def resolve_status_filter(
    status: Optional[JobCardStatus] = None,
    **flags: Optional[str],
) -> Optional[JobCardStatus]:
    """
    Collapse the explicit ``status`` parameter and the legacy presence flags
    into a single filter. An explicit status wins; otherwise the strongest
    flag present wins (billed > completed > pending > returned).
    """
    if status is not None:
        return status
    for flag, flag_status in STATUS_FLAG_PRECEDENCE:
        if flags.get(flag) is not None:
            return flag_status
    return None


class JobCardService:
    def __init__(self, db: Session, store: AttachmentStore):
        self.db = db
        self.store = store

    def generate_job_card_number(self) -> str:
        """Allocate the next job card number, e.g. ``"142/25"``."""
        return format_job_card_number(next_sequence_value(self.db, JOB_CARD_SEQUENCE))

    def get_job_card(self, job_card_id: int) -> Optional[JobCard]:
        """Get job card by ID with images and worker"""
        return (
            self.db.query(JobCard)
            .options(selectinload(JobCard.images), joinedload(JobCard.worker))
            .filter(JobCard.id == job_card_id)
            .first()
        )

    def get_job_card_or_404(self, job_card_id: int) -> JobCard:
        db_job_card = self.get_job_card(job_card_id)
        if not db_job_card:
            raise NotFoundError("Job card not found")
        return db_job_card

    def search_job_cards(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[JobCardStatus] = None,
        warranty: Optional[bool] = None,
    ) -> Tuple[List[JobCard], int]:
        """Search job cards with filtering and pagination"""
        if page < 1 or limit < 1:
            raise ValidationError("Invalid page or limit value")

        query = self.db.query(JobCard)

        if search:
            pattern = like_pattern(search)
            conditions = [
                JobCard.customer_name.ilike(pattern, escape="\\"),
                cast(JobCard.phone_numbers, String).ilike(pattern, escape="\\"),
                JobCard.job_card_number.ilike(pattern, escape="\\"),
                JobCard.dealer_name.ilike(pattern, escape="\\"),
                JobCard.make.ilike(pattern, escape="\\"),
                JobCard.sr_no.ilike(pattern, escape="\\"),
            ]
            number = parse_search_number(search)
            if number is not None:
                conditions += [JobCard.hp == number, JobCard.kva == number, JobCard.rpm == number]
            query = query.filter(or_(*conditions))

        if warranty is not None:
            query = query.filter(JobCard.warranty == warranty)

        if status is not None:
            query = query.filter(JobCard.status == status)

        total = query.count()

        job_cards = (
            query.options(selectinload(JobCard.images), joinedload(JobCard.worker))
            .order_by(JobCard.created_at.desc(), JobCard.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return job_cards, total

    def _images_from(self, stored: List[StoredFile]) -> List[JobCardImage]:
        return [
            JobCardImage(url=s.url, storage_key=s.key, file_type=s.file_type)
            for s in stored
        ]

    def _commit_or_discard(self, stored: List[StoredFile]) -> None:
        """Commit; if that fails, delete the files uploaded for this request."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.store.discard([s.key for s in stored])
            raise

    def create_job_card(self, job_card_data: JobCardCreate, files: Optional[List[FileUpload]] = None) -> JobCard:
        """Create a job card with a fresh number and any uploaded attachments"""
        stored = self.store.upload_many(files or [])

        try:
            job_card_number = self.generate_job_card_number()
            db_job_card = JobCard(
                **job_card_data.model_dump(),
                job_card_number=job_card_number,
                status=JobCardStatus.PENDING,
            )
            db_job_card.images = self._images_from(stored)
            self.db.add(db_job_card)
        except Exception:
            self.db.rollback()
            self.store.discard([s.key for s in stored])
            raise
        self._commit_or_discard(stored)
        self.db.refresh(db_job_card)

        logger.info(
            f"Created job card {db_job_card.job_card_number} for customer: "
            f"{db_job_card.customer_name} with {len(stored)} attachment(s)"
        )
        return db_job_card

    def add_images(self, job_card_id: int, files: List[FileUpload]) -> JobCard:
        """Append attachments to a job card that has not been billed"""
        db_job_card = self.get_job_card_or_404(job_card_id)

        if db_job_card.status == JobCardStatus.BILLED:
            raise ValidationError("Cannot add images to a billed job card")

        if not files:
            raise ValidationError("No files provided")

        stored = self.store.upload_many(files)
        db_job_card.images.extend(self._images_from(stored))
        self._commit_or_discard(stored)
        self.db.refresh(db_job_card)

        logger.info(f"Added {len(stored)} attachment(s) to job card {db_job_card.job_card_number}")
        return db_job_card

    def remove_images(self, db_job_card: JobCard, image_ids: List[int]) -> List[int]:
        """
        Delete each image's stored object, then its record, and detach it
        from ``db_job_card``. Ids that are not attached to this job card
        leave its list alone but are still deleted if the record exists.

        Not transactional with the store: if a storage delete fails, the
        removals already done are committed and PartialFailureError is raised.
        """
        image_ids = list(dict.fromkeys(image_ids))
        removed = []
        for index, image_id in enumerate(image_ids):
            image = self.db.get(JobCardImage, image_id)
            if not image:
                logger.debug(f"Image {image_id} not found, nothing to remove")
                continue

            try:
                self.store.delete(image.storage_key)
            except Exception as e:
                logger.error(f"Failed to delete stored object {image.storage_key} for image {image_id}: {e}")
                self.db.commit()
                raise PartialFailureError({
                    "message": "Some attachments could not be removed",
                    "removed": removed,
                    "failed": list(image_ids[index:]),
                })

            if image in db_job_card.images:
                db_job_card.images.remove(image)
            self.db.delete(image)
            removed.append(image_id)

        return removed

    def update_job_card(
        self,
        job_card_id: int,
        job_card_update: JobCardUpdate,
        files: Optional[List[FileUpload]] = None,
        removed_image_ids: Optional[List[int]] = None,
    ) -> JobCard:
        """Update job card details and add or remove attachments"""
        db_job_card = self.get_job_card_or_404(job_card_id)

        if db_job_card.status == JobCardStatus.BILLED and (files or removed_image_ids):
            raise ValidationError("Cannot change attachments of a billed job card")

        # Upload before removing so a failed upload leaves stored objects intact
        stored = self.store.upload_many(files or [])
        db_job_card.images.extend(self._images_from(stored))

        removed = self.remove_images(db_job_card, removed_image_ids or [])

        update_data = job_card_update.model_dump(exclude_unset=True)
        # hp/kva/rpm that failed to parse keep their stored value
        for field in NUMERIC_FIELDS:
            if field in update_data and update_data[field] is None:
                del update_data[field]
        for field, value in update_data.items():
            setattr(db_job_card, field, value)

        self._commit_or_discard(stored)
        self.db.refresh(db_job_card)

        logger.info(
            f"Updated job card {db_job_card.job_card_number}: "
            f"{len(stored)} attachment(s) added, {len(removed)} removed"
        )
        return db_job_card

    def transition(
        self,
        job_card_id: int,
        target: JobCardStatus,
        invoice_number: Optional[str] = None,
    ) -> JobCard:
        """
        Move a job card to ``target``. Any status may be reached from any
        other; completing stamps the out date and billing stamps the invoice.
        """
        if target == JobCardStatus.BILLED:
            invoice_number = (invoice_number or "").strip()
            if not invoice_number:
                raise ValidationError("Invoice number is required to bill a job card")

        db_job_card = self.get_job_card_or_404(job_card_id)
        previous = db_job_card.status

        if target == JobCardStatus.COMPLETED:
            db_job_card.out_date = datetime.utcnow()
        elif target == JobCardStatus.BILLED:
            db_job_card.invoice_number = invoice_number
            db_job_card.invoice_date = datetime.utcnow()

        db_job_card.status = target
        self.db.commit()
        self.db.refresh(db_job_card)

        logger.info(f"Job card {db_job_card.job_card_number} status {previous.value} -> {target.value}")
        return db_job_card

    def get_job_card_stats(self) -> Dict:
        """Count job cards per status"""
        stats = self.db.query(JobCard.status, func.count(JobCard.id)).group_by(JobCard.status).all()

        stats_dict = {
            "total_job_cards": sum(count for _, count in stats),
            "pending": 0,
            "completed": 0,
            "returned": 0,
            "billed": 0,
        }
        for status, count in stats:
            stats_dict[status.value.lower()] = count

        return stats_dict


# Dependency injection
def get_job_card_service(
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
) -> JobCardService:
    return JobCardService(db, store)
