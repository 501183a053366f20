"""
Tests for onboarding submission and review.

Tests:
- Submission and resubmission reset review state
- Approve unlocks the profile
- Pause and reject
- Suspended accounts stay suspended
"""

import pytest

from clientflow.exceptions import ConflictError, NotFoundError, ValidationError
from clientflow.models import Notification, OnboardingRecord

ANSWERS = {"targetRoles": ["Staff Engineer"], "salaryFloor": 180000, "remote": True}


class TestSubmit:
    """Tests for questionnaire submission"""

    @pytest.mark.asyncio
    async def test_submit_awaits_approval(self, onboarding, client_account, db, notifier, clock):
        record = await onboarding.submit(client_account.id, ANSWERS)

        assert record.execution_status == "pending_approval"
        assert record.answers == ANSWERS
        assert record.submitted_at == clock.now

        db.refresh(client_account)
        assert client_account.onboarding_complete is True
        assert client_account.status == "onboarding"
        assert client_account.profile_unlocked is False

        assert notifier.names() == ["onboarding_received", "onboarding_submitted_admin"]

    @pytest.mark.asyncio
    async def test_client_gets_in_app_notification(self, onboarding, client_account, db):
        await onboarding.submit(client_account.id, ANSWERS)

        notes = db.query(Notification).filter(Notification.client_id == client_account.id).all()
        assert [n.event for n in notes] == ["onboarding_received"]
        assert notes[0].is_read is False

    @pytest.mark.asyncio
    async def test_resubmit_replaces_answers(self, onboarding, client_account, db):
        await onboarding.submit(client_account.id, ANSWERS)
        await onboarding.submit(client_account.id, {"targetRoles": ["CTO"]})

        record = db.query(OnboardingRecord).one()
        assert record.answers == {"targetRoles": ["CTO"]}
        assert record.execution_status == "pending_approval"

    @pytest.mark.asyncio
    async def test_empty_answers_rejected(self, onboarding, client_account):
        with pytest.raises(ValidationError):
            await onboarding.submit(client_account.id, {})

    @pytest.mark.asyncio
    async def test_operators_do_not_onboard(self, onboarding, admin):
        with pytest.raises(ValidationError):
            await onboarding.submit(admin.id, ANSWERS)

    @pytest.mark.asyncio
    async def test_unknown_client(self, onboarding):
        with pytest.raises(NotFoundError):
            await onboarding.submit("missing", ANSWERS)


class TestReview:
    """Tests for operator review actions"""

    @pytest.mark.asyncio
    async def test_approve_unlocks_profile(self, onboarding, client_account, admin, db, notifier, clock):
        await onboarding.submit(client_account.id, ANSWERS)
        notifier.reset()

        record = await onboarding.approve(client_account.id, admin, "Welcome aboard")

        assert record.execution_status == "active"
        assert record.approved_by == admin.id
        assert record.approved_at == clock.now
        assert record.review_notes == "Welcome aboard"

        db.refresh(client_account)
        assert client_account.profile_unlocked is True
        assert client_account.profile_unlocked_by == admin.id
        assert client_account.status == "active"
        assert notifier.names() == ["profile_unlocked"]

    @pytest.mark.asyncio
    async def test_approve_twice_conflicts(self, onboarding, client_account, admin):
        await onboarding.submit(client_account.id, ANSWERS)
        await onboarding.approve(client_account.id, admin)

        with pytest.raises(ConflictError):
            await onboarding.approve(client_account.id, admin)

    @pytest.mark.asyncio
    async def test_approve_without_submission(self, onboarding, client_account, admin):
        with pytest.raises(NotFoundError):
            await onboarding.approve(client_account.id, admin)

    @pytest.mark.asyncio
    async def test_pause_relocks_profile(self, onboarding, client_account, admin, db, notifier):
        await onboarding.submit(client_account.id, ANSWERS)
        await onboarding.approve(client_account.id, admin)
        notifier.reset()

        record = await onboarding.pause(client_account.id, "Payment overdue", admin)

        assert record.execution_status == "paused"
        assert record.review_notes == "Payment overdue"
        db.refresh(client_account)
        assert client_account.profile_unlocked is False
        assert notifier.names() == ["onboarding_paused"]

    @pytest.mark.asyncio
    async def test_pause_requires_active(self, onboarding, client_account, admin):
        await onboarding.submit(client_account.id, ANSWERS)

        with pytest.raises(ConflictError):
            await onboarding.pause(client_account.id, "Too early", admin)

    @pytest.mark.asyncio
    async def test_reject_keeps_answers_and_allows_resubmission(self, onboarding, client_account, admin, db):
        await onboarding.submit(client_account.id, ANSWERS)

        record = await onboarding.reject(client_account.id, "Please add salary expectations", admin)
        assert record.execution_status == "paused"
        assert record.answers == ANSWERS

        db.refresh(client_account)
        assert client_account.profile_unlocked is False

        resubmitted = await onboarding.submit(client_account.id, {**ANSWERS, "salaryFloor": 200000})
        assert resubmitted.execution_status == "pending_approval"
        assert resubmitted.review_notes is None


class TestSuspendedClients:
    """A deactivated account keeps its status through onboarding actions"""

    @pytest.mark.asyncio
    async def test_approve_does_not_reactivate(self, onboarding, accounts, client_account, admin, db):
        await onboarding.submit(client_account.id, ANSWERS)
        accounts.deactivate(client_account.id, admin)

        with pytest.raises(ConflictError):
            await onboarding.approve(client_account.id, admin)

        db.refresh(client_account)
        assert client_account.status == "suspended"
        assert client_account.is_active is False
        assert client_account.profile_unlocked is False
        assert onboarding.get(client_account.id).execution_status == "pending_approval"

    @pytest.mark.asyncio
    async def test_submit_does_not_reactivate(self, onboarding, accounts, client_account, admin, db):
        accounts.deactivate(client_account.id, admin)

        with pytest.raises(ConflictError):
            await onboarding.submit(client_account.id, ANSWERS)

        db.refresh(client_account)
        assert client_account.status == "suspended"
        assert db.query(OnboardingRecord).count() == 0
