"""
Job Offer ORM Model
SQLAlchemy model for employer job offers
"""
import uuid
from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from core.database import Base
from domain.value_objects import JobOfferStatus


class JobOfferModel(Base):
    """Job offer table ORM model"""

    __tablename__ = "job_offers"
    __table_args__ = (
        CheckConstraint("applications_count >= 0", name="applications_count_non_negative"),
        Index("ix_job_offers_status_deadline", "status", "deadline"),
        Index("ix_job_offers_status_posted_at", "status", "posted_at"),
    )

    # Primary Key
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # Owner
    employer_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    # Basic Info
    title = Column(String(500), nullable=False, index=True)
    company_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    job_location = Column(String(255), nullable=False, default="", index=True)

    # Lifecycle
    status = Column(String(50), nullable=False, default=JobOfferStatus.OPEN.value, index=True)
    deadline = Column(DateTime(timezone=True), nullable=True, index=True)
    applications_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    posted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<JobOfferModel {self.title} ({self.status})>"
