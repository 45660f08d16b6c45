from core.database import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime


class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True, index=True)
    worker_name = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False)

    # Profile photo in the attachment store
    worker_image = Column(String(1024), nullable=True)
    storage_key = Column(String(512), nullable=True)

    # True = available for assignment
    status = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
