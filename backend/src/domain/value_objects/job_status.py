"""
Job Status Enums
Status enumerations for job offers and applications
"""
from enum import Enum

from core.exceptions import ValidationException


class JobOfferStatus(str, Enum):
    """Job offer lifecycle status

    OPEN is written as "active"; earlier rows carry other tokens for the
    same state (see OPEN_STATUS_VALUES), so callers compare members and
    queries match every token.
    """
    OPEN = "active"
    CLOSED = "closed"
    EXPIRED = "expired"
    DRAFT = "draft"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.strip().lower() in OPEN_STATUS_VALUES:
            return cls.OPEN
        return None


# Every stored token meaning OPEN, canonical first
OPEN_STATUS_VALUES = ("active", "open", "مفتوح")


class ApplicationStatus(str, Enum):
    """Job application review status"""
    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: str) -> "ApplicationStatus":
        """Parse a caller-supplied status, raising ValidationException on unknown values"""
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationException("status", f"must be one of: {allowed}")
