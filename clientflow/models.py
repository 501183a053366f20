import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate an opaque identifier for externally visible records"""
    return str(uuid.uuid4())


class ConsultationRequest(Base):
    """A prospect's consultation request; payment verification is inlined"""

    __tablename__ = "consultation_requests"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    role_targets = Column(Text, nullable=True)  # Roles / industries the prospect is aiming for
    message = Column(Text, nullable=True)  # Concerns, goals, free text
    # Ordered list of {"date": "YYYY-MM-DD", "time": "HH:MM"}, 1-3 entries
    preferred_slots = Column(JSON, nullable=False, default=list)
    status = Column(String(30), default="pending", index=True, nullable=False)
    # selected_slot_index / scheduled_at / meeting_link are set iff status == confirmed
    selected_slot_index = Column(Integer, nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    meeting_link = Column(String(500), nullable=True)
    admin_notes = Column(Text, nullable=True)
    processed_by = Column(String(36), ForeignKey("clients.id"), nullable=True)
    processed_at = Column(DateTime, nullable=True)

    # Payment verification (at most one per prospect)
    payment_verified = Column(Boolean, default=False, nullable=False)
    payment_amount = Column(Float, nullable=True)
    payment_method = Column(String(50), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    package_tier = Column(String(50), nullable=True)
    payment_verified_by = Column(String(36), ForeignKey("clients.id"), nullable=True)
    payment_verified_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    registration_tokens = relationship("RegistrationToken", back_populates="consultation")


class RegistrationToken(Base):
    """Backing row for a signed registration token; `consumed` is the single-use guard"""

    __tablename__ = "registration_tokens"

    id = Column(String(36), primary_key=True)  # Same value as the token's jti claim
    email = Column(String(255), index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    intent = Column(String(50), default="registration", nullable=False)
    token = Column(Text, nullable=False)
    source = Column(String(30), default="consultation", nullable=False)  # consultation, invite
    consultation_id = Column(String(36), ForeignKey("consultation_requests.id"), nullable=True)
    issued_by = Column(String(36), ForeignKey("clients.id"), nullable=True)
    issued_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    consumed = Column(Boolean, default=False, nullable=False)
    consumed_at = Column(DateTime, nullable=True)

    consultation = relationship("ConsultationRequest", back_populates="registration_tokens")


class Client(Base):
    """Registered account: clients and operators share one table so emails stay unique"""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="client", nullable=False)  # client, admin
    is_active = Column(Boolean, default=True, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # invited, active, onboarding, suspended
    temporary_password = Column(Boolean, default=False, nullable=False)
    onboarding_complete = Column(Boolean, default=False, nullable=False)
    # Full dashboard access; only an operator's onboarding approval sets this
    profile_unlocked = Column(Boolean, default=False, nullable=False)
    profile_unlocked_at = Column(DateTime, nullable=True)
    profile_unlocked_by = Column(String(36), nullable=True)

    # Profile
    phone = Column(String(50), nullable=True)
    resume_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    current_job = Column(String(255), nullable=True)
    target_role = Column(String(255), nullable=True)
    country = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    years_of_experience = Column(String(50), nullable=True)
    package_tier = Column(String(50), nullable=True)
    consultation_id = Column(String(36), nullable=True)

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    onboarding = relationship("OnboardingRecord", back_populates="client", uselist=False)
    applications = relationship("Application", back_populates="client")
    notifications = relationship("Notification", back_populates="client")


class OnboardingRecord(Base):
    __tablename__ = "onboarding_records"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    client_id = Column(String(36), ForeignKey("clients.id"), unique=True, nullable=False)
    answers = Column(JSON, nullable=False, default=dict)
    # pending_approval, active, paused, completed
    execution_status = Column(String(30), default="pending_approval", nullable=False)
    submitted_at = Column(DateTime, nullable=True)
    approved_by = Column(String(36), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    review_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="onboarding")


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    client_id = Column(String(36), ForeignKey("clients.id"), index=True, nullable=False)
    company = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    job_url = Column(String(500), nullable=True)
    status = Column(String(30), default="applied", index=True, nullable=False)
    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    interview_date = Column(DateTime, nullable=True)
    interview_type = Column(String(50), nullable=True)
    offer_amount = Column(Float, nullable=True)
    applied_at = Column(DateTime, nullable=True)
    status_updated_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="applications")


class Notification(Base):
    """In-app notification shown on the client dashboard"""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), index=True, nullable=False)
    event = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    payload = Column(JSON, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Client", back_populates="notifications")
