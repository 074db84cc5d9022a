"""
Domain Enums
Business enumerations for the application
"""
from enum import Enum


class ReasonCode(str, Enum):
    """Machine-readable reason an application submission was not created"""
    ALREADY_SUBMITTED = "already_submitted"
    JOB_OFFER_NOT_FOUND = "job_offer_not_found"
    CREATE_FAILED = "create_failed"


class UserRole(str, Enum):
    """Roles carried in access tokens"""
    USER = "user"
    EMPLOYER = "employer"
    ADMIN = "admin"
