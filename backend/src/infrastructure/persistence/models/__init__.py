"""ORM Models Package"""

from .application import ApplicationModel, UNIQUE_JOB_OFFER_USER
from .job_offer import JobOfferModel

__all__ = [
    "ApplicationModel",
    "JobOfferModel",
    "UNIQUE_JOB_OFFER_USER",
]
