"""
Application ORM Model
SQLAlchemy model for job applications
"""
import uuid
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from core.database import Base
from domain.value_objects import ApplicationStatus


UNIQUE_JOB_OFFER_USER = "uq_applications_job_offer_id_user_id"


class ApplicationModel(Base):
    """Job application table ORM model"""

    __tablename__ = "applications"
    __table_args__ = (
        # One application per (job offer, user)
        UniqueConstraint("job_offer_id", "user_id", name=UNIQUE_JOB_OFFER_USER),
    )

    # Primary Key
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # Foreign Keys
    job_offer_id = Column(UUID(as_uuid=True), ForeignKey("job_offers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    # Snapshots taken at submission
    company_name = Column(String(255), nullable=False)
    job_title = Column(String(500), nullable=False)
    user_snap = Column(JSON, nullable=False)

    # Review
    status = Column(String(50), nullable=False, default=ApplicationStatus.PENDING.value, index=True)
    employer_note = Column(Text, nullable=True)

    # Timestamps
    posted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<ApplicationModel {self.id} - {self.status}>"
