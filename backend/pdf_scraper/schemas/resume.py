# File: backend/pdf_scraper/schemas/resume.py
import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from pdf_scraper.db.models import AttemptStatus, InputType, ResumeStatus

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HTTP_URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)

Month = Annotated[StrictInt, Field(ge=1, le=12)]
Year = Annotated[StrictInt, Field(ge=1900, le=2100)]


class EmploymentType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    INTERNSHIP = "INTERNSHIP"
    CONTRACT = "CONTRACT"


class LocationType(str, Enum):
    ONSITE = "ONSITE"
    REMOTE = "REMOTE"
    HYBRID = "HYBRID"


class Degree(str, Enum):
    HIGH_SCHOOL = "HIGH_SCHOOL"
    ASSOCIATE = "ASSOCIATE"
    BACHELOR = "BACHELOR"
    MASTER = "MASTER"
    DOCTORATE = "DOCTORATE"


class LanguageLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    NATIVE = "NATIVE"


def _check_url(value: str) -> str:
    if value and not HTTP_URL_RE.match(value):
        raise ValueError("must be an absolute http(s) URL")
    return value


# ─── Résumé document ──────────────────────────────────────────────

class ResumeSection(BaseModel):
    """Wire format uses camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Profile(ResumeSection):
    name: StrictStr
    surname: StrictStr
    email: StrictStr
    headline: StrictStr = ""
    professional_summary: StrictStr = ""
    linked_in: StrictStr = ""
    website: StrictStr = ""
    country: StrictStr = ""
    city: StrictStr = ""
    relocation: StrictBool = False
    remote: StrictBool = True

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise ValueError("invalid email address")
        return v

    @field_validator("linked_in", "website")
    @classmethod
    def url_shape(cls, v: str) -> str:
        return _check_url(v)


class WorkExperience(ResumeSection):
    job_title: StrictStr
    employment_type: EmploymentType
    location_type: LocationType
    company: StrictStr
    start_month: Optional[Month] = None
    start_year: Optional[Year] = None
    end_month: Optional[Month] = None
    end_year: Optional[Year] = None
    current: StrictBool = False
    description: StrictStr = ""


class Education(ResumeSection):
    school: StrictStr
    degree: Degree
    major: StrictStr
    start_year: Optional[Year] = None
    end_year: Optional[Year] = None
    current: StrictBool = False
    description: StrictStr = ""


class License(ResumeSection):
    name: StrictStr
    issuer: StrictStr
    issue_year: Optional[Year] = None
    description: StrictStr = ""


class Language(ResumeSection):
    language: StrictStr
    level: LanguageLevel


class Achievement(ResumeSection):
    title: StrictStr
    organization: StrictStr
    achieve_date: StrictStr = ""
    description: StrictStr = ""


class Publication(ResumeSection):
    title: StrictStr
    publisher: StrictStr
    publication_date: StrictStr = ""
    publication_url: StrictStr = ""
    description: StrictStr = ""

    @field_validator("publication_url")
    @classmethod
    def url_shape(cls, v: str) -> str:
        return _check_url(v)


class Honor(ResumeSection):
    title: StrictStr
    issuer: StrictStr
    issue_month: Optional[Month] = None
    issue_year: Optional[Year] = None
    description: StrictStr = ""


class ResumeDocument(ResumeSection):
    profile: Profile
    work_experiences: List[WorkExperience] = []
    educations: List[Education] = []
    skills: List[StrictStr] = []
    licenses: List[License] = []
    languages: List[Language] = []
    achievements: List[Achievement] = []
    publications: List[Publication] = []
    honors: List[Honor] = []

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ─── API responses ────────────────────────────────────────────────

class RecordModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AttemptResponse(RecordModel):
    id: str
    input_type: InputType
    model: str
    status: AttemptStatus
    error: Optional[str] = None
    raw_response: Optional[str] = None
    created_at: Optional[datetime] = None


class ResumeResponse(RecordModel):
    id: str
    file_name: str
    storage_path: str
    status: ResumeStatus
    error: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class ResumeDetailResponse(ResumeResponse):
    resume_data: Optional[Dict[str, Any]] = None
    attempts: List[AttemptResponse] = []


class ResumeListResponse(RecordModel):
    items: List[ResumeResponse]
    next_cursor: Optional[datetime] = None
