"""Pytest configuration and fixtures for test suite."""

import os

# Set test environment BEFORE any other imports
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clientflow.database import Base, get_db
from clientflow.domain.accounts.service import AccountService
from clientflow.domain.applications.service import ApplicationService
from clientflow.domain.consultations.schemas import ConsultationCreate
from clientflow.domain.consultations.service import ConsultationService
from clientflow.domain.onboarding.service import OnboardingService
from clientflow.domain.payments.schemas import PaymentVerify
from clientflow.domain.payments.service import InvitationService
from clientflow.domain.registration.service import RegistrationService
from clientflow.main import app
from clientflow.models import Client
from clientflow.security_utils import TokenIssuer, create_session_token, get_token_issuer, hash_password
from clientflow.services.notification_service import NotificationDispatcher, get_notifier
from clientflow.shared.validators import get_clock

START = datetime(2025, 2, 1, 9, 0, 0)
STRONG_PASSWORD = "Sup3rSecret!"


class FrozenClock:
    """Controllable replacement for utcnow"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class SentEmail:
    to: str
    subject: str
    body: str


class RecordingSender:
    """Stands in for the Resend sender; can be told to fail"""

    def __init__(self):
        self.sent: list[SentEmail] = []
        self.fail = False

    async def __call__(self, to: str, subject: str, mjml_content: str):
        if self.fail:
            raise RuntimeError("email provider unavailable")
        self.sent.append(SentEmail(to, subject, mjml_content))
        return {"id": f"test-{len(self.sent)}"}


class RecordingDispatcher(NotificationDispatcher):
    """Real dispatcher that also remembers which events were raised"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.events: list[tuple[str, str, dict]] = []

    async def notify(self, event, recipient, payload):
        self.events.append((event, recipient.email, payload))
        return await super().notify(event, recipient, payload)

    def names(self) -> list[str]:
        return [event for event, _, _ in self.events]

    def reset(self) -> None:
        self.events.clear()


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# COLLABORATORS
# =============================================================================


@pytest.fixture
def clock():
    return FrozenClock(START)


@pytest.fixture
def issuer(clock):
    return TokenIssuer(secret_key="test-signing-key", clock=clock)


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def notifier(sender, session_factory):
    return RecordingDispatcher(sender=sender, session_factory=session_factory)


@pytest.fixture
def consultations(db, notifier, clock):
    return ConsultationService(db, notifier, clock=clock)


@pytest.fixture
def invitations(db, notifier, issuer):
    return InvitationService(db, notifier, issuer)


@pytest.fixture
def registrations(db, notifier, issuer):
    return RegistrationService(db, notifier, issuer)


@pytest.fixture
def onboarding(db, notifier, clock):
    return OnboardingService(db, notifier, clock=clock)


@pytest.fixture
def applications(db, notifier, clock):
    return ApplicationService(db, notifier, clock=clock)


@pytest.fixture
def accounts(db, issuer, clock):
    return AccountService(db, issuer, clock=clock)


# =============================================================================
# DATA
# =============================================================================


def consultation_payload(email="ada@example.com", slots=None, **overrides) -> ConsultationCreate:
    data = {
        "fullName": "Ada Lovelace",
        "email": email,
        "phone": "+44 20 7946 0958",
        "roleTargets": "Engineering manager",
        "slots": slots
        or [{"date": "2025-03-01", "time": "14:00"}, {"date": "2025-03-02", "time": "10:00"}],
    }
    data.update(overrides)
    return ConsultationCreate(**data)


def payment_payload(email="ada@example.com", **overrides) -> PaymentVerify:
    data = {"prospectEmail": email, "amount": 499.0, "method": "bank_transfer", "reference": "INV-1", "tier": "premium"}
    data.update(overrides)
    return PaymentVerify(**data)


def make_account(db, email, role="client", password=STRONG_PASSWORD, **fields) -> Client:
    account = Client(
        full_name=fields.pop("full_name", email.split("@")[0].title()),
        email=email,
        password_hash=hash_password(password),
        role=role,
        status=fields.pop("status", "active"),
        **fields,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def admin(db):
    return make_account(db, "ops@example.com", role="admin")


@pytest.fixture
def client_account(db):
    return make_account(db, "grace@example.com")


async def registered_client(consultations, invitations, registrations, admin, email="ada@example.com"):
    """Walk a prospect through consultation, payment and registration"""
    request = await consultations.submit(consultation_payload(email=email))
    await consultations.confirm(request.id, 0, "https://meet.example.com/abc", operator=admin)
    invite = await invitations.verify_and_invite(payment_payload(email=email), admin)
    result = await registrations.complete(invite.token, STRONG_PASSWORD)
    return result.client


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def api(session_factory, notifier, issuer, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_token_issuer] = lambda: issuer
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()
    if hasattr(app.state, "rate_limit_store"):
        del app.state.rate_limit_store


@pytest.fixture
def auth_headers(issuer):
    def build(account: Client) -> dict:
        return {"Authorization": f"Bearer {create_session_token(account, issuer)}"}

    return build
