"""
Application API Schemas
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from domain.entities import ApplicantProfile


class SubmitApplicationRequest(BaseModel):
    """Submit an application to a job offer"""
    model_config = ConfigDict(populate_by_name=True)

    job_offer_id: UUID = Field(alias="jobOfferId")
    employer_email: EmailStr = Field(alias="employerEmail")
    user_snap: ApplicantProfile = Field(alias="userSnap")


class SubmitApplicationResponse(BaseModel):
    """Accepted submission; the outcome is published asynchronously"""
    message_id: str
    job_offer_id: str
    user_id: str
    status: str = "accepted"
    message: str


class UpdateApplicationStatusRequest(BaseModel):
    """Review decision"""
    model_config = ConfigDict(populate_by_name=True)

    status: str
    employer_note: Optional[str] = Field(default=None, alias="employerNote", max_length=2000)


class ApplicationPage(BaseModel):
    """Paginated applications"""
    data: List[Dict[str, Any]]
    total: int
    page: int
    totalPages: int


class ExpireJobOffersResponse(BaseModel):
    """Result of an on-demand expiration sweep"""
    expired: int


class EmployerStatisticsResponse(BaseModel):
    """Job offer counts per status for one employer"""
    total: int
    active: int
    closed: int
    expired: int
    draft: int
    totalApplications: int
