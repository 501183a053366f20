"""Onboarding domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class OnboardingSubmit(BaseModel):
    """Questionnaire answers; clients omit clientId, operators name the client"""

    clientId: Optional[str] = None
    answers: dict[str, Any]


class OnboardingApprove(BaseModel):
    notes: Optional[str] = None


class OnboardingDecision(BaseModel):
    reason: str = Field(..., min_length=1)


class OnboardingStatusResponse(BaseModel):
    clientId: str
    status: str
    answers: Optional[dict[str, Any]] = None
    submittedAt: Optional[datetime] = None
    approvedAt: Optional[datetime] = None
    approvedBy: Optional[str] = None
    reviewNotes: Optional[str] = None
    profileUnlocked: bool = False

    @classmethod
    def from_model(cls, record) -> "OnboardingStatusResponse":
        return cls(
            clientId=record.client_id,
            status=record.execution_status,
            answers=record.answers,
            submittedAt=record.submitted_at,
            approvedAt=record.approved_at,
            approvedBy=record.approved_by,
            reviewNotes=record.review_notes,
            profileUnlocked=bool(record.client.profile_unlocked) if record.client else False,
        )
