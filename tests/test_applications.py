"""
Tests for job application tracking.

Tests:
- Create and transition through the pipeline
- Closed applications reject every change
- Per-client statistics
"""

from datetime import datetime

import pytest

from clientflow.domain.applications.schemas import ApplicationCreate, ApplicationDetails
from clientflow.exceptions import ApplicationClosed, ConflictError, NotFoundError, ValidationError
from clientflow.models import Application, Notification
from clientflow.services.status_automation import APPLICATION_TERMINAL

from conftest import make_account


def new_application(client_id, company="Acme", title="Staff Engineer") -> ApplicationCreate:
    return ApplicationCreate(clientId=client_id, company=company, title=title, jobUrl="https://acme.example/jobs/1")


async def move(applications, application, *statuses):
    for status in statuses:
        application = await applications.update_status(application.id, status)
    return application


class TestCreate:
    """Tests for logging a new application"""

    @pytest.mark.asyncio
    async def test_starts_as_applied(self, applications, client_account, admin, clock, notifier):
        application = await applications.create(new_application(client_account.id), admin)

        assert application.status == "applied"
        assert application.applied_at == clock.now
        assert application.created_by == admin.id
        assert application.closed_at is None

        assert notifier.names() == ["application_status_changed"]
        payload = notifier.events[0][2]
        assert payload["status"] == "applied"
        assert payload["company"] == "Acme"

    @pytest.mark.asyncio
    async def test_unknown_client(self, applications):
        with pytest.raises(NotFoundError):
            await applications.create(new_application("missing"))

    @pytest.mark.asyncio
    async def test_operator_accounts_are_not_clients(self, applications, admin):
        with pytest.raises(NotFoundError):
            await applications.create(new_application(admin.id))


class TestUpdateStatus:
    """Tests for pipeline transitions"""

    @pytest.mark.asyncio
    async def test_interview_details_written(self, applications, client_account):
        application = await applications.create(new_application(client_account.id))
        when = datetime(2025, 3, 5, 15, 0)

        updated = await applications.update_status(
            application.id,
            "interview_scheduled",
            ApplicationDetails(interviewDate=when, interviewType="video"),
        )

        assert updated.status == "interview_scheduled"
        assert updated.interview_date == when
        assert updated.interview_type == "video"

    @pytest.mark.asyncio
    async def test_full_pipeline_closes_on_acceptance(self, applications, client_account, clock):
        application = await applications.create(new_application(client_account.id))
        clock.advance(days=3)

        accepted = await move(
            applications,
            application,
            "under_review",
            "interview_scheduled",
            "interview_completed",
            "offer_received",
            "offer_accepted",
        )

        assert accepted.status == "offer_accepted"
        assert accepted.closed_at == clock.now

    @pytest.mark.asyncio
    async def test_skipping_stages_is_invalid(self, applications, client_account, db):
        application = await applications.create(new_application(client_account.id))

        with pytest.raises(ConflictError) as exc_info:
            await applications.update_status(application.id, "offer_accepted")

        assert exc_info.value.code == "INVALID_TRANSITION"
        db.refresh(application)
        assert application.status == "applied"

    @pytest.mark.asyncio
    async def test_unknown_status(self, applications, client_account):
        application = await applications.create(new_application(client_account.id))

        with pytest.raises(ValidationError) as exc_info:
            await applications.update_status(application.id, "ghosted")
        assert exc_info.value.code == "INVALID_STATUS"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", sorted(APPLICATION_TERMINAL))
    @pytest.mark.parametrize("attempt", ["under_review", "rejected", "withdrawn"])
    async def test_closed_applications_are_immutable(
        self, applications, client_account, db, notifier, clock, terminal, attempt
    ):
        application = await applications.create(new_application(client_account.id))
        if terminal == "offer_accepted":
            path = ["interview_scheduled", "interview_completed", "offer_received", "offer_accepted"]
        else:
            path = [terminal]
        application = await move(applications, application, *path)
        closed_at = application.closed_at
        notifier.reset()
        clock.advance(hours=1)

        with pytest.raises(ApplicationClosed) as exc_info:
            await applications.update_status(
                application.id, attempt, ApplicationDetails(notes="late update")
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.to_dict()["status"] == terminal
        db.refresh(application)
        assert application.status == terminal
        assert application.closed_at == closed_at
        assert application.notes is None
        assert notifier.names() == []

    @pytest.mark.asyncio
    async def test_unknown_application(self, applications):
        with pytest.raises(NotFoundError):
            await applications.update_status("missing", "under_review")

    @pytest.mark.asyncio
    async def test_status_change_lands_in_client_inbox(self, applications, client_account, db):
        application = await applications.create(new_application(client_account.id))
        await applications.update_status(application.id, "interview_scheduled")

        notes = (
            db.query(Notification)
            .filter(Notification.client_id == client_account.id)
            .order_by(Notification.id)
            .all()
        )
        assert [n.event for n in notes] == ["application_status_changed"] * 2
        assert "Acme" in notes[1].message
        assert notes[0].message != notes[1].message


class TestStats:
    """Tests for per-client statistics"""

    @pytest.mark.asyncio
    async def test_counts_and_rates(self, applications, client_account):
        first = await applications.create(new_application(client_account.id, company="Acme"))
        second = await applications.create(new_application(client_account.id, company="Globex"))
        third = await applications.create(new_application(client_account.id, company="Initech"))
        await applications.create(new_application(client_account.id, company="Umbrella"))

        await move(applications, first, "interview_scheduled", "interview_completed", "offer_received")
        await move(applications, second, "rejected")
        await move(applications, third, "interview_scheduled")

        stats = applications.stats(client_account.id)

        assert stats["total"] == 4
        assert stats["byStatus"]["applied"] == 1
        assert stats["byStatus"]["offer_received"] == 1
        assert stats["byStatus"]["withdrawn"] == 0
        assert stats["active"] == 3
        assert stats["interviews"] == 1
        assert stats["offers"] == 1
        assert stats["responseRate"] == 75.0
        assert stats["offerRate"] == 25.0

    def test_empty(self, applications, client_account):
        stats = applications.stats(client_account.id)
        assert stats["total"] == 0
        assert stats["responseRate"] == 0.0
        assert len(stats["byStatus"]) == 8

    @pytest.mark.asyncio
    async def test_scoped_to_client(self, applications, client_account, db):
        other = make_account(db, "linus@example.com")
        await applications.create(new_application(other.id))

        assert applications.stats(client_account.id)["total"] == 0
        assert db.query(Application).count() == 1
