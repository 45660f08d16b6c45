from core.database import Base
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum


class WarrantyStatus(str, enum.Enum):
    WARRANTY = "Warranty"
    NON_WARRANTY = "Non-Warranty"


class ComplaintStatus(str, enum.Enum):
    PENDING = "Pending"
    CLOSED = "Closed"
    SENT_TO_WORKSHOP = "Sent to Workshop"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class OnSiteJob(Base):
    __tablename__ = "onsite_jobs"

    id = Column(Integer, primary_key=True, index=True)
    complaint_number = Column(String(100), unique=True, index=True, nullable=True)

    # Customer information
    customer_name = Column(String(255), nullable=False, index=True)
    customer_address = Column(Text, nullable=False)
    phone_numbers = Column(JSON, nullable=False, default=list)

    # Complaint details
    make = Column(String(255), nullable=True)
    dealer_name = Column(String(255), nullable=True)
    reported_complaint = Column(Text, nullable=True)
    complaint_details = Column(Text, nullable=True)
    attended_date = Column(DateTime, nullable=True)

    # Complaint status and payment status are independent of each other
    warranty_status = Column(
        SQLEnum(WarrantyStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=WarrantyStatus.NON_WARRANTY,
        nullable=False,
    )
    complaint_status = Column(
        SQLEnum(ComplaintStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=ComplaintStatus.PENDING,
        nullable=False,
        index=True,
    )
    payment_status = Column(
        SQLEnum(PaymentStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
    )

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    attended_person_id = Column(Integer, ForeignKey("workers.id", ondelete="SET NULL"), nullable=True)
    attended_person = relationship("Worker", foreign_keys=[attended_person_id])
