"""Application domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ApplicationCreate(BaseModel):
    clientId: str
    company: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    jobUrl: Optional[str] = None
    notes: Optional[str] = None
    appliedAt: Optional[datetime] = None


class ApplicationDetails(BaseModel):
    """Stage-specific fields written alongside a status change"""

    interviewDate: Optional[datetime] = None
    interviewType: Optional[str] = None
    offerAmount: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    adminNotes: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    newStatus: str
    details: ApplicationDetails = Field(default_factory=ApplicationDetails)


class ApplicationResponse(BaseModel):
    id: str
    clientId: str
    company: str
    title: str
    jobUrl: Optional[str] = None
    status: str
    notes: Optional[str] = None
    interviewDate: Optional[datetime] = None
    interviewType: Optional[str] = None
    offerAmount: Optional[float] = None
    appliedAt: Optional[datetime] = None
    statusUpdatedAt: Optional[datetime] = None
    closedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, application) -> "ApplicationResponse":
        return cls(
            id=application.id,
            clientId=application.client_id,
            company=application.company,
            title=application.title,
            jobUrl=application.job_url,
            status=application.status,
            notes=application.notes,
            interviewDate=application.interview_date,
            interviewType=application.interview_type,
            offerAmount=application.offer_amount,
            appliedAt=application.applied_at,
            statusUpdatedAt=application.status_updated_at,
            closedAt=application.closed_at,
        )


class ApplicationStatsResponse(BaseModel):
    total: int
    byStatus: dict[str, int]
    active: int
    interviews: int
    offers: int
    responseRate: float
    offerRate: float
