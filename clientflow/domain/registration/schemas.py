"""Registration domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_phone


class RegistrationProfile(BaseModel):
    """Optional profile details captured on the registration page"""

    fullName: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = None
    linkedinUrl: Optional[str] = None
    resumeUrl: Optional[str] = None
    currentJob: Optional[str] = None
    targetRole: Optional[str] = None
    country: Optional[str] = None
    location: Optional[str] = None
    yearsOfExperience: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class RegistrationComplete(BaseModel):
    token: str = Field(..., min_length=1)
    password: str
    profile: RegistrationProfile = Field(default_factory=RegistrationProfile)


class RegistrationResponse(BaseModel):
    clientId: str
    sessionToken: str


class TokenValidationResponse(BaseModel):
    valid: bool
    email: str
    name: Optional[str] = None
    expiresAt: datetime
