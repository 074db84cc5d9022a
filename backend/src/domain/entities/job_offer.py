"""
JobOffer Domain Entity
Immutable employer-posted position with a deadline-driven lifecycle
"""
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ..value_objects import JobOfferStatus


@dataclass(frozen=True)
class JobOffer:
    """Job offer domain entity - immutable"""

    id: UUID
    employer_id: UUID
    title: str
    company_name: str

    description: str = ""
    job_location: str = ""

    # Lifecycle
    status: JobOfferStatus = JobOfferStatus.OPEN
    deadline: Optional[datetime] = None
    applications_count: int = 0
    is_active: bool = True

    # Timestamps
    posted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate job offer data"""
        if not self.title or len(self.title.strip()) == 0:
            raise ValueError("Job offer title cannot be empty")

        if self.applications_count < 0:
            raise ValueError("Applications count cannot be negative")

    def is_open(self) -> bool:
        """Check if the offer accepts applications"""
        return self.status == JobOfferStatus.OPEN

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the deadline has passed"""
        if self.deadline is None:
            return False
        return self.deadline < (now or datetime.now(timezone.utc))

    def days_remaining(self, now: Optional[datetime] = None) -> int:
        """Whole days left before the deadline, never negative"""
        if self.deadline is None:
            return 0
        delta = self.deadline - (now or datetime.now(timezone.utc))
        days = math.ceil(delta.total_seconds() / 86400)
        return days if days > 0 else 0

    def with_deadline_enforced(self, now: Optional[datetime] = None) -> "JobOffer":
        """Return a copy marked EXPIRED if it is still open past its deadline"""
        if self.is_open() and self.is_expired(now):
            return replace(self, status=JobOfferStatus.EXPIRED)
        return self

    def __str__(self) -> str:
        return f"JobOffer({self.id}, {self.title} @ {self.company_name}, status={self.status.value})"
