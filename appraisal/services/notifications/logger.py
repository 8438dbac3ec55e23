"""Persistence of the per-recipient notification log."""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, delete, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from appraisal.models.assessment import Assessment
from appraisal.models.notification import Notification
from appraisal.models.user import User
from appraisal.services.notifications.types import NotificationStatus, NotificationType


async def create_notification_log(
    db: AsyncSession, assessment_id: int, user_id: int, type: NotificationType
) -> int:
    notification = Notification(
        assessment_id=assessment_id,
        user_id=user_id,
        type=NotificationType(type).value,
        status=NotificationStatus.PENDING.value,
    )
    db.add(notification)
    await db.commit()
    return notification.id


async def mark_notification_sent(db: AsyncSession, notification_id: int) -> None:
    await db.execute(
        update(Notification)
        .where(Notification.id == notification_id)
        .values(status=NotificationStatus.SENT.value, sent_at=datetime.now(timezone.utc))
    )
    await db.commit()


async def mark_notification_failed(
    db: AsyncSession, notification_id: int, error: Optional[str]
) -> None:
    await db.execute(
        update(Notification)
        .where(Notification.id == notification_id)
        .values(status=NotificationStatus.FAILED.value, error=error or "Unknown error")
    )
    await db.commit()


async def delete_notification_log(db: AsyncSession, notification_id: int) -> None:
    await db.execute(delete(Notification).where(Notification.id == notification_id))
    await db.commit()


async def pending_notification_count(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(Notification.id))
        .where(Notification.status == NotificationStatus.PENDING.value)
    )
    return result.scalar_one()


async def list_notifications(
    db: AsyncSession, status: Optional[str] = None, limit: int = 100
) -> list[dict]:
    staff = aliased(User)
    recipient = aliased(User)
    query = (
        select(
            Notification,
            Assessment.period,
            staff.name.label("staff_name"),
            recipient.email.label("recipient_email"),
        )
        .outerjoin(Assessment, Assessment.id == Notification.assessment_id)
        .outerjoin(staff, staff.id == Assessment.staff_id)
        .outerjoin(recipient, recipient.id == Notification.user_id)
    )
    if status:
        query = query.where(Notification.status == status)

    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    )
    return [
        {
            "id": n.id,
            "assessment_id": n.assessment_id,
            "user_id": n.user_id,
            "type": n.type,
            "status": n.status,
            "error": n.error,
            "created_at": n.created_at,
            "sent_at": n.sent_at,
            "period": period,
            "staff_name": staff_name,
            "recipient_email": recipient_email,
        }
        for n, period, staff_name, recipient_email in result.all()
    ]


async def failed_notifications(db: AsyncSession, limit: int = 50) -> list[dict]:
    return await list_notifications(db, status=NotificationStatus.FAILED.value, limit=limit)


async def notification_stats(db: AsyncSession) -> list[dict]:
    result = await db.execute(
        select(Notification.status, Notification.type, func.count(Notification.id))
        .group_by(Notification.status, Notification.type)
        .order_by(Notification.status, Notification.type)
    )
    return [
        {"status": status, "type": type_, "count": count}
        for status, type_, count in result.all()
    ]
