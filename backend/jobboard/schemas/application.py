from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from jobboard.schemas.user import CamelModel


class ApplicationStatusUpdate(CamelModel):
    status: str  # 'accepted' | 'rejected'


class ApplicationJobSummary(BaseModel):
    id: int
    title: str
    company_name: str
    status: str

    model_config = ConfigDict(from_attributes=True)


class ApplicantSummary(BaseModel):
    id: int
    username: str
    email: str
    legal_name: Optional[str] = None
    phone: Optional[str] = None
    resume: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationOut(BaseModel):
    id: int
    job_id: int
    job_seeker_id: int
    status: str
    applied_at: datetime
    job: Optional[ApplicationJobSummary] = None
    job_seeker: Optional[ApplicantSummary] = None

    model_config = ConfigDict(from_attributes=True)
