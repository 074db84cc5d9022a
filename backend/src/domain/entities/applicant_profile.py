"""
Applicant Profile Snapshot
Copy of the applicant's profile embedded in an application at submission time
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Snapshot(BaseModel):
    # Snapshots are embedded verbatim, unknown fields included
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Education(_Snapshot):
    degree: str
    field: str
    university: str
    end_year: Optional[int] = Field(default=None, alias="endYear")
    gpa: Optional[float] = Field(default=None, alias="GPA")


class Experience(_Snapshot):
    job_title: str = Field(alias="jobTitle")
    company: str
    location: Optional[str] = None
    is_current: bool = Field(default=False, alias="isCurrent")
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")
    description: Optional[str] = None


class Certification(_Snapshot):
    name: str
    issuer: str
    issue_date: datetime = Field(alias="issueDate")


class Skill(_Snapshot):
    name: str
    level: int = Field(ge=0, le=100)


class Skills(_Snapshot):
    technical_skills: List[Skill] = Field(default_factory=list)
    soft_skills: List[Skill] = Field(default_factory=list)


class JobPreferences(_Snapshot):
    work_place_type: List[str] = Field(alias="workPlaceType")
    job_type: List[str] = Field(alias="jobType")
    job_location: str = Field(alias="jobLocation")


class Basic(_Snapshot):
    gender: Optional[str] = None
    date_of_birth: Optional[date] = Field(default=None, alias="dateOfBirth")
    location: Optional[str] = None
    languages: List[str] = Field(default_factory=list)


class Goals(_Snapshot):
    career_goal: str = Field(alias="careerGoal")
    interests: List[str] = Field(default_factory=list)


class ApplicantProfile(_Snapshot):
    """Applicant profile snapshot, immutable once embedded in an application"""

    name: str
    email: Optional[str] = None
    mobile: Optional[str] = None
    basic: Optional[Basic] = None
    education: List[Education] = Field(default_factory=list)
    experiences: List[Experience] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    skills: Optional[Skills] = None
    job_preferences: Optional[JobPreferences] = Field(default=None, alias="jobPreferences")
    goals: Optional[Goals] = None

    def to_document(self) -> dict:
        """Serialize for storage and the wire (original field names, JSON-safe)"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
