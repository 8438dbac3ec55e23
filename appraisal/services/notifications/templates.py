"""Email subjects and bodies for each notification type."""

from dataclasses import dataclass
from html import escape
from typing import Optional

from appraisal.services.notifications.types import AssessmentNotificationData, NotificationType


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


def _base_template(title: str, content: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; background-color: #f8f9fa; margin: 0; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px;">
    <div style="background: #4c51bf; padding: 24px; text-align: center; color: #ffffff; font-size: 24px; font-weight: bold;">Performance Appraisal</div>
    <div style="padding: 24px;">
      <h2>{escape(title)}</h2>
      {content}
    </div>
    <div style="background: #f8f9fa; padding: 16px; text-align: center; font-size: 12px; color: #6c757d;">
      <p>This is an automated email. Please do not reply.</p>
    </div>
  </div>
</body>
</html>"""


def _details(rows) -> str:
    lines = "".join(
        f"<p><strong>{escape(label)}:</strong> {escape(str(value))}</p>"
        for label, value in rows
        if value
    )
    return f'<div style="background: #f8f9fa; border-left: 4px solid #4c51bf; padding: 16px; margin: 20px 0;">{lines}</div>'


def _button(url: str, label: str) -> str:
    return (
        f'<p style="text-align: center;"><a href="{escape(url, quote=True)}" '
        f'style="display: inline-block; padding: 12px 28px; background: #4c51bf; color: #ffffff; '
        f'text-decoration: none; border-radius: 6px;">{escape(label)}</a></p>'
    )


def _text(greeting: str, message: str, rows, url: Optional[str] = None) -> str:
    parts = [greeting, "", message, ""]
    parts.extend(f"{label}: {value}" for label, value in rows if value)
    if url:
        parts.extend(["", url])
    return "\n".join(parts)


def _render(title, subject, greeting_name, message_html, message_text, rows, url=None, button=None):
    greeting = f"Dear {greeting_name},"
    content = f"<p>{escape(greeting)}</p><p>{message_html}</p>{_details(rows)}"
    if url and button:
        content += _button(url, button)
    return RenderedEmail(
        subject=subject,
        html=_base_template(title, content),
        text=_text(greeting, message_text, rows, url),
    )


def render_notification(
    type: NotificationType,
    data: AssessmentNotificationData,
    recipient_name: Optional[str] = None,
    base_url: str = "http://localhost:3000",
) -> RenderedEmail:
    """Build subject, HTML and plain-text body for one recipient."""
    type = NotificationType(type)
    base_url = base_url.rstrip("/")
    staff = data.staff_name
    staff_html = escape(staff)
    period_html = escape(data.period)

    if type is NotificationType.ASSESSMENT_SUBMITTED:
        manager = data.manager_name or "Manager"
        return _render(
            "Assessment Submitted for Review",
            f"Action Required: {staff}'s assessment awaits your review",
            manager,
            f"<strong>{staff_html}</strong> has submitted their self-assessment and is waiting for your review.",
            f"{staff} has submitted their self-assessment and is waiting for your review.",
            [("Staff Member", staff), ("Assessment Period", data.period), ("Framework", data.template_name)],
            f"{base_url}/assessment?id={data.assessment_id}",
            "Review Assessment",
        )

    if type is NotificationType.MANAGER_REVIEW_COMPLETED:
        manager = data.manager_name or "Manager"
        return _render(
            "Manager Review Completed",
            f"Review Complete: {staff}'s assessment ready for director approval",
            data.director_name or "Director",
            f"<strong>{escape(manager)}</strong> has completed their review for <strong>{staff_html}</strong>'s assessment.",
            f"{manager} has completed their review for {staff}'s assessment.",
            [
                ("Staff Member", staff),
                ("Manager", manager),
                ("Assessment Period", data.period),
                ("Framework", data.template_name),
                ("Manager Score", data.score),
            ],
            f"{base_url}/director?id={data.assessment_id}",
            "Review Assessment",
        )

    if type is NotificationType.DIRECTOR_APPROVED:
        return _render(
            "Assessment Ready for Release",
            f"Ready to Release: {staff}'s assessment awaits your approval",
            recipient_name or "Admin",
            f"The assessment for <strong>{staff_html}</strong> has been approved by the director and is ready for release to the staff member.",
            f"The assessment for {staff} has been approved by the director and is ready for release to the staff member.",
            [
                ("Staff Member", staff),
                ("Assessment Period", data.period),
                ("Framework", data.template_name),
                ("Final Score", data.score),
                ("Grade", data.grade),
            ],
            f"{base_url}/admin?id={data.assessment_id}",
            "Release Assessment",
        )

    if type is NotificationType.ADMIN_RELEASED:
        return _render(
            "Your Assessment Results Are Available",
            "Your Assessment Results Are Available - Action Required",
            staff,
            f"Your performance assessment for <strong>{period_html}</strong> has been finalized and is now available for you to view.",
            f"Your performance assessment for {data.period} has been finalized and is now available for you to view.",
            [
                ("Assessment Period", data.period),
                ("Framework", data.template_name),
                ("Final Score", data.score),
                ("Performance Grade", data.grade),
            ],
            f"{base_url}/assessment?id={data.assessment_id}",
            "View & Acknowledge Results",
        )

    if type is NotificationType.ASSESSMENT_RETURNED:
        returned_by = data.returned_by or "Administrator"
        return _render(
            "Assessment Returned for Revision",
            "Your assessment needs revision - Action Required",
            staff,
            f"Your assessment has been returned by <strong>{escape(returned_by)}</strong> for further review and updates.",
            f"Your assessment has been returned by {returned_by} for further review and updates.",
            [("Assessment Period", data.period), ("Feedback", data.notes)],
            f"{base_url}/assessment?id={data.assessment_id}",
            "Update Assessment",
        )

    # NotificationType.ASSESSMENT_ACKNOWLEDGED
    return _render(
        "Assessment Cycle Completed",
        f"Assessment Complete: {staff} has acknowledged their review",
        recipient_name or "User",
        f"<strong>{staff_html}</strong> has acknowledged their assessment for <strong>{period_html}</strong>.",
        f"{staff} has acknowledged their assessment for {data.period}.",
        [
            ("Staff Member", staff),
            ("Assessment Period", data.period),
            ("Final Score", data.score),
            ("Grade", data.grade),
        ],
    )
