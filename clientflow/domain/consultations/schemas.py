"""Consultation domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_meeting_link, validate_phone


class SlotIn(BaseModel):
    """A proposed time: date YYYY-MM-DD, time HH:MM (24h)"""

    date: str
    time: str


class ConsultationCreate(BaseModel):
    """Schema for a public consultation request"""

    fullName: str = Field(..., min_length=1, max_length=255)
    email: str
    phone: Optional[str] = None
    roleTargets: Optional[str] = None
    message: Optional[str] = None
    slots: list[SlotIn]

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class ConsultationConfirm(BaseModel):
    slotIndex: int
    meetingLink: str
    notes: Optional[str] = None

    @field_validator("meetingLink")
    @classmethod
    def validate_meeting_link(cls, v):
        return validate_meeting_link(v)


class ConsultationDecision(BaseModel):
    """Reason for reject / reschedule"""

    reason: str = Field(..., min_length=1)


class ConsultationActionResponse(BaseModel):
    id: str
    status: str
    scheduledAt: Optional[datetime] = None
    meetingLink: Optional[str] = None


class ConsultationResponse(BaseModel):
    """Schema for consultation response"""

    id: str
    fullName: str
    email: str
    phone: Optional[str] = None
    roleTargets: Optional[str] = None
    message: Optional[str] = None
    preferredSlots: list[dict]
    status: str
    selectedSlotIndex: Optional[int] = None
    scheduledAt: Optional[datetime] = None
    meetingLink: Optional[str] = None
    adminNotes: Optional[str] = None
    paymentVerified: bool = False
    packageTier: Optional[str] = None
    createdAt: Optional[datetime] = None
    processedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, request) -> "ConsultationResponse":
        return cls(
            id=request.id,
            fullName=request.full_name,
            email=request.email,
            phone=request.phone,
            roleTargets=request.role_targets,
            message=request.message,
            preferredSlots=request.preferred_slots or [],
            status=request.status,
            selectedSlotIndex=request.selected_slot_index,
            scheduledAt=request.scheduled_at,
            meetingLink=request.meeting_link,
            adminNotes=request.admin_notes,
            paymentVerified=bool(request.payment_verified),
            packageTier=request.package_tier,
            createdAt=request.created_at,
            processedAt=request.processed_at,
        )
