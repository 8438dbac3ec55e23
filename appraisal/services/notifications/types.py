import enum
from dataclasses import dataclass
from typing import Optional


class NotificationType(str, enum.Enum):
    ASSESSMENT_SUBMITTED = "assessment_submitted"
    MANAGER_REVIEW_COMPLETED = "manager_review_completed"
    DIRECTOR_APPROVED = "director_approved"
    ADMIN_RELEASED = "admin_released"
    ASSESSMENT_RETURNED = "assessment_returned"
    ASSESSMENT_ACKNOWLEDGED = "assessment_acknowledged"


class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class DispatchOutcome(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Recipient:
    user_id: int
    email: str
    name: str


@dataclass
class DispatchResult:
    user_id: int
    type: NotificationType
    outcome: DispatchOutcome
    error: Optional[str] = None
    notification_id: Optional[int] = None


@dataclass
class AssessmentNotificationData:
    """Denormalized view of an assessment used to address and render emails."""

    assessment_id: int
    staff_id: int
    staff_name: str
    staff_email: Optional[str]
    period: str
    template_name: Optional[str] = None
    score: Optional[str] = None
    grade: Optional[str] = None
    notes: Optional[str] = None
    manager_id: Optional[int] = None
    manager_name: Optional[str] = None
    manager_email: Optional[str] = None
    director_id: Optional[int] = None
    director_name: Optional[str] = None
    director_email: Optional[str] = None
    returned_by: Optional[str] = None
