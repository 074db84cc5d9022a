"""Value Objects - Immutable objects defined by their attributes"""

from .job_status import JobOfferStatus, ApplicationStatus, OPEN_STATUS_VALUES
__all__ = [
    "OPEN_STATUS_VALUES",
    "JobOfferStatus",
    "ApplicationStatus",
]
