"""Tests for notification recipient resolution, filtering and logging."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from appraisal.database import AsyncSessionLocal
from appraisal.models.assessment import AssessmentStatus as S
from appraisal.models.notification import Notification
from appraisal.models.user import User, UserRole
from appraisal.services.notifications.dispatcher import NotificationDispatcher, trigger_notification
from appraisal.services.notifications.logger import (
    create_notification_log,
    failed_notifications,
    pending_notification_count,
)
from appraisal.services.notifications.preferences import update_user_notification_preference
from appraisal.services.notifications.types import DispatchOutcome, NotificationType


@pytest.fixture
def dispatcher(mailer):
    return NotificationDispatcher(
        session_factory=AsyncSessionLocal, mailer=mailer, base_url="http://appraisal.test"
    )


async def log_rows(db):
    result = await db.execute(
        select(Notification).order_by(Notification.id).execution_options(populate_existing=True)
    )
    return result.scalars().all()


class TestRecipients:
    async def test_submitted_goes_to_manager(self, db, users, make_assessment, dispatcher, mailer):
        assessment = await make_assessment(S.SELF_SUBMITTED)
        results = await dispatcher.dispatch(assessment.id, NotificationType.ASSESSMENT_SUBMITTED)

        assert mailer.recipients == ["manager@example.com"]
        assert [r.outcome for r in results] == [DispatchOutcome.SENT]
        assert "Sam Staff" in mailer.sent[0]["subject"]

    async def test_submitted_without_manager_sends_nothing(self, db, users, make_assessment, dispatcher, mailer):
        assessment = await make_assessment(S.SELF_SUBMITTED, manager_id=None)
        results = await dispatcher.dispatch(assessment.id, NotificationType.ASSESSMENT_SUBMITTED)
        assert results == []
        assert mailer.sent == []

    async def test_review_completed_goes_to_director(self, db, users, make_assessment, dispatcher, mailer):
        assessment = await make_assessment(S.MANAGER_REVIEWED, final_score=3.456, final_grade="A")
        await dispatcher.dispatch(assessment.id, NotificationType.MANAGER_REVIEW_COMPLETED)
        assert mailer.recipients == ["director@example.com"]
        assert "Manager Score: 3.46" in mailer.sent[0]["text"]

    async def test_director_approved_goes_to_every_active_admin(self, db, users, make_assessment, dispatcher, mailer):
        db.add(User(
            email="retired@example.com",
            name="Retired Admin",
            hashed_password="x",
            is_active=False,
            roles=[UserRole(role="admin")],
        ))
        await db.commit()
        assessment = await make_assessment(S.DIRECTOR_APPROVED)

        results = await dispatcher.dispatch(assessment.id, NotificationType.DIRECTOR_APPROVED)

        assert sorted(mailer.recipients) == ["admin2@example.com", "admin@example.com"]
        assert {r.user_id for r in results} == {users["admin"].id, users["admin2"].id}

    @pytest.mark.parametrize("type", [NotificationType.ADMIN_RELEASED, NotificationType.ASSESSMENT_RETURNED])
    async def test_released_and_returned_go_to_staff(self, db, users, make_assessment, dispatcher, mailer, type):
        assessment = await make_assessment(
            S.REJECTED, return_feedback="More evidence", returned_by=users["director"].id
        )
        await dispatcher.dispatch(assessment.id, type)
        assert mailer.recipients == ["staff@example.com"]

    async def test_returned_email_names_who_returned_it(self, db, users, make_assessment, dispatcher, mailer):
        assessment = await make_assessment(
            S.REJECTED, return_feedback="More evidence", returned_by=users["director"].id
        )
        await dispatcher.dispatch(assessment.id, NotificationType.ASSESSMENT_RETURNED)
        assert "returned by Dan Director" in mailer.sent[0]["text"]
        assert "Feedback: More evidence" in mailer.sent[0]["text"]

    async def test_acknowledged_goes_to_manager_and_director(self, db, users, make_assessment, dispatcher, mailer):
        assessment = await make_assessment(S.ACKNOWLEDGED)
        await dispatcher.dispatch(assessment.id, NotificationType.ASSESSMENT_ACKNOWLEDGED)
        assert mailer.recipients == ["manager@example.com", "director@example.com"]

    async def test_missing_assessment_returns_no_results(self, db, users, dispatcher, mailer):
        results = await dispatcher.dispatch(9999, NotificationType.ADMIN_RELEASED)
        assert results == []
        assert mailer.sent == []


class TestFilteringAndLogging:
    async def test_sent_notification_is_logged(self, db, users, make_assessment, dispatcher):
        assessment = await make_assessment(S.ADMIN_REVIEWED)
        results = await dispatcher.dispatch(assessment.id, NotificationType.ADMIN_RELEASED)

        rows = await log_rows(db)
        assert len(rows) == 1
        assert rows[0].status == "sent"
        assert rows[0].sent_at is not None
        assert rows[0].error is None
        assert rows[0].user_id == users["staff"].id
        assert results[0].notification_id == rows[0].id

    async def test_disabled_email_skips_send_and_log(self, db, users, make_assessment, dispatcher, mailer):
        await update_user_notification_preference(db, users["staff"].id, {"email_enabled": False})
        assessment = await make_assessment(S.ADMIN_REVIEWED)

        results = await dispatcher.dispatch(assessment.id, NotificationType.ADMIN_RELEASED)

        assert [r.outcome for r in results] == [DispatchOutcome.SKIPPED]
        assert mailer.sent == []
        assert await log_rows(db) == []

    async def test_opt_out_applies_per_recipient(self, db, users, make_assessment, dispatcher, mailer):
        await update_user_notification_preference(db, users["admin2"].id, {"director_approved": False})
        assessment = await make_assessment(S.DIRECTOR_APPROVED)

        results = await dispatcher.dispatch(assessment.id, NotificationType.DIRECTOR_APPROVED)

        assert mailer.recipients == ["admin@example.com"]
        outcomes = {r.user_id: r.outcome for r in results}
        assert outcomes[users["admin2"].id] is DispatchOutcome.SKIPPED
        assert outcomes[users["admin"].id] is DispatchOutcome.SENT

    async def test_failed_send_is_logged_with_error(self, db, users, make_assessment, dispatcher, mailer):
        mailer.fail_for.add("staff@example.com")
        assessment = await make_assessment(S.ADMIN_REVIEWED)

        results = await dispatcher.dispatch(assessment.id, NotificationType.ADMIN_RELEASED)

        assert results[0].outcome is DispatchOutcome.FAILED
        rows = await log_rows(db)
        assert rows[0].status == "failed"
        assert rows[0].error == "SMTP connection refused"
        assert rows[0].sent_at is None

    async def test_log_write_failure_removes_pending_row(self, db, users, make_assessment, dispatcher, monkeypatch):
        async def broken(db, notification_id):
            raise OperationalError("UPDATE notifications", {}, Exception("disk I/O error"))

        monkeypatch.setattr(
            "appraisal.services.notifications.dispatcher.mark_notification_sent", broken
        )
        assessment = await make_assessment(S.ADMIN_REVIEWED)

        results = await dispatcher.dispatch(assessment.id, NotificationType.ADMIN_RELEASED)

        assert results[0].outcome is DispatchOutcome.FAILED
        assert await log_rows(db) == []

    async def test_trigger_never_raises(self, db, users):
        class Exploding:
            async def dispatch(self, assessment_id, type):
                raise RuntimeError("boom")

        assert await trigger_notification(1, NotificationType.ADMIN_RELEASED, Exploding()) == []


class TestDashboardQueries:
    async def test_pending_and_failed_queries(self, db, users, make_assessment, dispatcher, mailer):
        mailer.fail_for.add("manager@example.com")
        assessment = await make_assessment(S.ACKNOWLEDGED)
        await dispatcher.dispatch(assessment.id, NotificationType.ASSESSMENT_ACKNOWLEDGED)
        await create_notification_log(
            db, assessment.id, users["staff"].id, NotificationType.ADMIN_RELEASED
        )

        assert await pending_notification_count(db) == 1
        failed = await failed_notifications(db)
        assert [(f["recipient_email"], f["error"]) for f in failed] == [
            ("manager@example.com", "SMTP connection refused")
        ]
