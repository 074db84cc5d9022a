"""Domain Entities - Core business objects"""

from .applicant_profile import ApplicantProfile
from .application import Application
from .job_offer import JobOffer
__all__ = ["ApplicantProfile", "Application", "JobOffer"]
