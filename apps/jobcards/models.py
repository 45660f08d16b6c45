from core.database import Base
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum


class JobCardStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    RETURNED = "Returned"
    BILLED = "Billed"


class FileType(str, enum.Enum):
    IMAGE = "image"
    PDF = "pdf"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Counter(Base):
    """Named sequence; ``value`` is only ever changed by an atomic increment."""
    __tablename__ = "counters"

    key = Column(String(100), primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class JobCard(Base):
    __tablename__ = "job_cards"

    id = Column(Integer, primary_key=True, index=True)
    job_card_number = Column(String(50), unique=True, index=True, nullable=False)

    # Customer information
    customer_name = Column(String(255), nullable=False, index=True)
    customer_address = Column(Text, nullable=False)
    phone_numbers = Column(JSON, nullable=False, default=list)

    # Equipment information
    make = Column(String(255), nullable=True)
    hp = Column(Integer, nullable=True)
    kva = Column(Integer, nullable=True)
    rpm = Column(Integer, nullable=True)
    motor_type = Column(String(255), nullable=True)
    frame = Column(String(255), nullable=True)
    sr_no = Column(String(255), nullable=False)
    dealer_name = Column(String(255), nullable=True)
    dealer_number = Column(String(50), nullable=True)
    warranty = Column(Boolean, default=False, nullable=False)

    # Work details
    works = Column(Text, nullable=True)
    spares = Column(Text, nullable=True)
    industrial_works = Column(Text, nullable=True)
    others = Column(Text, nullable=True)

    # Status and billing
    status = Column(
        SQLEnum(JobCardStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=JobCardStatus.PENDING,
        nullable=False,
        index=True,
    )
    out_date = Column(DateTime, nullable=True)
    invoice_number = Column(String(100), nullable=True)
    invoice_date = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="SET NULL"), nullable=True)
    worker = relationship("Worker", foreign_keys=[worker_id])
    images = relationship(
        "JobCardImage",
        back_populates="job_card",
        order_by="JobCardImage.id",
        cascade="all, delete-orphan",
    )


class JobCardImage(Base):
    __tablename__ = "job_card_images"

    id = Column(Integer, primary_key=True, index=True)
    job_card_id = Column(Integer, ForeignKey("job_cards.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(1024), nullable=False)
    storage_key = Column(String(512), nullable=False)
    file_type = Column(
        SQLEnum(FileType, native_enum=False, length=10, values_callable=_enum_values),
        nullable=False,
        default=FileType.IMAGE,
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    job_card = relationship("JobCard", back_populates="images")
