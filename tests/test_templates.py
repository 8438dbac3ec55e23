"""Tests for notification email rendering."""

import pytest

from appraisal.services.notifications.templates import render_notification
from appraisal.services.notifications.types import AssessmentNotificationData, NotificationType


@pytest.fixture
def data():
    return AssessmentNotificationData(
        assessment_id=42,
        staff_id=1,
        staff_name="Sam <Staff>",
        staff_email="staff@example.com",
        period="2025-2026",
        template_name="Teaching Staff Framework",
        score="3.45",
        grade="A",
        notes="Please add evidence",
        manager_id=2,
        manager_name="Mia Manager",
        manager_email="manager@example.com",
        director_id=3,
        director_name="Dan Director",
        director_email="director@example.com",
        returned_by="Dan Director",
    )


class TestRenderNotification:
    @pytest.mark.parametrize("type", list(NotificationType))
    def test_every_type_renders_subject_and_bodies(self, data, type):
        email = render_notification(type, data, "Ada Admin", "http://appraisal.test")
        assert email.subject
        assert "<html>" in email.html
        assert email.text

    def test_names_are_escaped_in_html_only(self, data):
        email = render_notification(NotificationType.ASSESSMENT_SUBMITTED, data)
        assert "Sam &lt;Staff&gt;" in email.html
        assert "<Staff>" not in email.html
        assert "Sam <Staff> has submitted" in email.text

    def test_link_points_at_assessment(self, data):
        email = render_notification(
            NotificationType.ADMIN_RELEASED, data, base_url="http://appraisal.test/"
        )
        assert "http://appraisal.test/assessment?id=42" in email.text
        assert "Final Score: 3.45" in email.text
        assert "Performance Grade: A" in email.text

    def test_returned_email_carries_feedback(self, data):
        email = render_notification(NotificationType.ASSESSMENT_RETURNED, data)
        assert "returned by Dan Director" in email.text
        assert "Feedback: Please add evidence" in email.text

    def test_missing_values_are_left_out(self, data):
        data.score = None
        data.grade = None
        email = render_notification(NotificationType.DIRECTOR_APPROVED, data, "Ada Admin")
        assert "Final Score" not in email.text
        assert email.text.startswith("Dear Ada Admin,")
