"""Account domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return v.strip().lower() if v else v


class UserResponse(BaseModel):
    id: str
    fullName: str
    email: str
    role: str
    status: str
    isActive: bool
    onboardingComplete: bool
    profileUnlocked: bool
    packageTier: Optional[str] = None

    @classmethod
    def from_model(cls, client) -> "UserResponse":
        return cls(
            id=client.id,
            fullName=client.full_name,
            email=client.email,
            role=client.role,
            status=client.status,
            isActive=bool(client.is_active),
            onboardingComplete=bool(client.onboarding_complete),
            profileUnlocked=bool(client.profile_unlocked),
            packageTier=client.package_tier,
        )


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class BootstrapAdmin(BaseModel):
    email: str
    password: str
    fullName: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)
