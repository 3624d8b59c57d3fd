from datetime import date, datetime
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from jobboard.schemas.user import CamelModel


class JobCreate(CamelModel):
    """
    Schema for posting a job.

    ``skills_required`` is either a list or a single delimited string such as
    ``"React, TypeScript, Tailwind"``. ``application_deadline`` is an ISO date.
    """

    title: str
    description: str
    salary: str
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    location: str
    job_type: str = Field(validation_alias=AliasChoices("jobType", "job_type", "type"))
    skills_required: Union[list[str], str] = []
    experience: str
    experience_level: Optional[str] = None
    application_deadline: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("applicationDeadline", "application_deadline", "lastDate")
    )


class JobUpdate(CamelModel):
    """Partial job edit. Ownership and identity fields are not accepted."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    salary: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    location: Optional[str] = None
    job_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("jobType", "job_type", "type"))
    skills_required: Optional[Union[list[str], str]] = None
    experience: Optional[str] = None
    experience_level: Optional[str] = None
    application_deadline: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("applicationDeadline", "application_deadline", "lastDate")
    )
    status: Optional[str] = None


class JobSearchFilters(BaseModel):
    """Filters intersected with the keyword match of a job search."""

    job_types: list[str] = []
    experience_levels: list[str] = []
    experience: Optional[str] = None
    location: Optional[str] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None


class JobOut(BaseModel):
    id: int
    employer_id: int
    title: str
    description: str
    company_name: str
    salary: str
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    location: str
    job_type: str = Field(validation_alias=AliasChoices("jobType", "job_type", "type"))
    skills_required: list[str] = []
    experience: str
    experience_level: Optional[str] = None
    application_deadline: Optional[date] = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobPageOut(BaseModel):
    jobs: list[JobOut]
    total: int
    page: int
    limit: int
