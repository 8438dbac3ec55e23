import logging
from dataclasses import dataclass, asdict
from typing import Mapping
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from appraisal.models.notification import NotificationPreference
from appraisal.services.notifications.types import NotificationType

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = (
    "email_enabled",
    "assessment_submitted",
    "manager_review_done",
    "director_approved",
    "admin_released",
    "assessment_returned",
    "assessment_acknowledged",
)

TYPE_FIELDS = {
    NotificationType.ASSESSMENT_SUBMITTED: "assessment_submitted",
    NotificationType.MANAGER_REVIEW_COMPLETED: "manager_review_done",
    NotificationType.DIRECTOR_APPROVED: "director_approved",
    NotificationType.ADMIN_RELEASED: "admin_released",
    NotificationType.ASSESSMENT_RETURNED: "assessment_returned",
    NotificationType.ASSESSMENT_ACKNOWLEDGED: "assessment_acknowledged",
}


@dataclass
class UserNotificationPreference:
    user_id: int
    email_enabled: bool = True
    assessment_submitted: bool = True
    manager_review_done: bool = True
    director_approved: bool = True
    admin_released: bool = True
    assessment_returned: bool = True
    assessment_acknowledged: bool = True

    def as_dict(self) -> dict:
        data = asdict(self)
        data.pop("user_id")
        return data


async def get_user_notification_preference(
    db: AsyncSession, user_id: int
) -> UserNotificationPreference:
    """Effective preferences; a missing row or NULL column means enabled."""
    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id == user_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        return UserNotificationPreference(user_id=user_id)

    values = {}
    for name in PREFERENCE_FIELDS:
        value = getattr(row, name)
        values[name] = True if value is None else bool(value)
    return UserNotificationPreference(user_id=user_id, **values)


async def is_notification_enabled(
    db: AsyncSession, user_id: int, type: NotificationType
) -> bool:
    pref = await get_user_notification_preference(db, user_id)
    if not pref.email_enabled:
        return False
    return getattr(pref, TYPE_FIELDS[NotificationType(type)]) is True


async def update_user_notification_preference(
    db: AsyncSession, user_id: int, updates: Mapping[str, bool]
) -> None:
    """Store the given flags; anything not named here keeps its current value."""
    changes = {
        key: value
        for key, value in updates.items()
        if key in PREFERENCE_FIELDS and isinstance(value, bool)
    }
    if not changes:
        return

    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id == user_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = NotificationPreference(user_id=user_id, **changes)
    else:
        for key, value in changes.items():
            setattr(row, key, value)
    db.add(row)
    await db.commit()
    logger.info("Updated notification preferences for user %s: %s", user_id, changes)
