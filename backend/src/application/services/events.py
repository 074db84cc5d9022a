"""
Application Events
Topics and payload schemas exchanged over the event bus
"""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities import ApplicantProfile, Application
from domain.enums import ReasonCode
from domain.value_objects import ApplicationStatus


TOPIC_APPLICATION_SUBMIT = "job.application.submit"
TOPIC_APPLICATION_CREATED = "job.application.created"
TOPIC_APPLICATION_NOT_CREATED = "job.application.notcreated"
TOPIC_APPLICATION_STATUS_CHANGE = "job.application.statusChange"


class EventPayload(BaseModel):
    """Base for wire payloads: camelCase on the wire, snake_case in code"""

    model_config = ConfigDict(populate_by_name=True)

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SubmitApplicationEvent(EventPayload):
    """Inbound request to create an application"""
    job_offer_id: UUID = Field(alias="jobOfferId")
    user_id: UUID = Field(alias="userId")
    employer_email: str = Field(alias="employerEmail")
    user_snap: ApplicantProfile = Field(alias="userSnap")

    def to_message(self) -> Dict[str, Any]:
        message = super().to_message()
        message["userSnap"] = self.user_snap.to_document()
        return message


class SubmissionIds(EventPayload):
    """Identifiers of a submission, readable even when the rest is malformed"""
    job_offer_id: UUID = Field(alias="jobOfferId")
    user_id: UUID = Field(alias="userId")


class ApplicationCreatedEvent(EventPayload):
    """Emitted once an application is stored and counted"""
    job_offer_id: UUID = Field(alias="jobOfferId")
    user_id: UUID = Field(alias="userId")
    employer_email: str = Field(alias="employerEmail")
    employer_id: UUID = Field(alias="employerId")
    company_name: str = Field(alias="companyName")
    job_title: str = Field(alias="jobTitle")
    user_snap: Dict[str, Any] = Field(alias="userSnap")


class ApplicationNotCreatedEvent(EventPayload):
    """Emitted when a submission is rejected or fails"""
    user_id: UUID = Field(alias="userId")
    job_offer_id: UUID = Field(alias="jobOfferId")
    reason: str
    reason_code: ReasonCode = Field(alias="reasonCode")


class ApplicationRecord(EventPayload):
    """Full application record as published and cached"""
    id: UUID
    job_offer_id: UUID = Field(alias="jobOfferId")
    user_id: UUID = Field(alias="userId")
    company_name: str = Field(alias="companyName")
    job_title: str = Field(alias="jobTitle")
    user_snap: Dict[str, Any] = Field(alias="userSnap")
    status: ApplicationStatus
    employer_note: Optional[str] = Field(default=None, alias="employerNote")
    posted_at: Optional[datetime] = Field(default=None, alias="postedAt")

    @classmethod
    def from_entity(cls, application: Application) -> "ApplicationRecord":
        return cls(
            id=application.id,
            job_offer_id=application.job_offer_id,
            user_id=application.user_id,
            company_name=application.company_name,
            job_title=application.job_title,
            user_snap=application.user_snap.to_document(),
            status=application.status,
            employer_note=application.employer_note,
            posted_at=application.posted_at,
        )


# The status-change event carries the full post-mutation record
ApplicationStatusChangedEvent = ApplicationRecord
