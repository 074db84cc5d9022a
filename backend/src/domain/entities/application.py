"""
Application Domain Entity
Immutable candidate submission against a job offer
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from ..value_objects import ApplicationStatus
from .applicant_profile import ApplicantProfile


@dataclass(frozen=True)
class Application:
    """Job application domain entity - immutable"""

    id: Optional[UUID]
    job_offer_id: UUID
    user_id: UUID

    # Snapshots copied at creation, never refreshed
    company_name: str
    job_title: str
    user_snap: ApplicantProfile

    # Review
    status: ApplicationStatus = ApplicationStatus.PENDING
    employer_note: Optional[str] = None

    # Timestamps
    posted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __str__(self) -> str:
        return f"Application({self.id}, status={self.status.value})"
