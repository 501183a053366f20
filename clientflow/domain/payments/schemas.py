"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email


class PaymentVerify(BaseModel):
    """Manually verified payment; identify the prospect by request id or email"""

    requestId: Optional[str] = None
    prospectEmail: Optional[str] = None
    amount: float = Field(..., ge=0)
    method: str = Field(..., min_length=1, max_length=50)
    reference: Optional[str] = None
    tier: Optional[str] = None

    @field_validator("prospectEmail")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @model_validator(mode="after")
    def require_target(self):
        if not self.requestId and not self.prospectEmail:
            raise ValueError("Either requestId or prospectEmail is required")
        return self


class InviteCreate(BaseModel):
    """Direct operator invite, no consultation required"""

    email: str
    fullName: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class ResendRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class InvitationResponse(BaseModel):
    registrationLink: str
    expiresAt: datetime
    resent: bool = False
    message: str
