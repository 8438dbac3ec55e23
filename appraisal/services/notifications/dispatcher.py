"""Workflow email notifications.

A dispatch is a one-shot side effect of an assessment status change: it
resolves recipients for the notification type, drops the ones who opted out,
renders and sends one email per recipient and records the outcome in the
``notifications`` table. Nothing is retried, and nothing is raised back to
the code that changed the assessment.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from appraisal.config import settings
from appraisal.core.email import EmailService
from appraisal.core.permissions import ADMIN
from appraisal.database import AsyncSessionLocal
from appraisal.models.user import User, UserRole
from appraisal.services.notifications.fetcher import get_assessment_notification_data
from appraisal.services.notifications.logger import (
    create_notification_log,
    delete_notification_log,
    mark_notification_failed,
    mark_notification_sent,
)
from appraisal.services.notifications.preferences import is_notification_enabled
from appraisal.services.notifications.templates import render_notification
from appraisal.services.notifications.types import (
    AssessmentNotificationData,
    DispatchOutcome,
    DispatchResult,
    NotificationType,
    Recipient,
)

logger = logging.getLogger(__name__)


async def get_admin_recipients(db: AsyncSession) -> List[Recipient]:
    result = await db.execute(
        select(User.id, User.email, User.name)
        .join(UserRole, UserRole.user_id == User.id)
        .where(UserRole.role == ADMIN)
        .where(User.is_active.is_(True))
        .order_by(User.id)
    )
    return [
        Recipient(user_id=user_id, email=email, name=name or "Admin")
        for user_id, email, name in result.all()
    ]


async def resolve_recipients(
    db: AsyncSession, type: NotificationType, data: AssessmentNotificationData
) -> List[Recipient]:
    type = NotificationType(type)

    if type is NotificationType.ASSESSMENT_SUBMITTED:
        if data.manager_id and data.manager_email:
            return [Recipient(data.manager_id, data.manager_email, data.manager_name or "Manager")]
        return []

    if type is NotificationType.MANAGER_REVIEW_COMPLETED:
        if data.director_id and data.director_email:
            return [Recipient(data.director_id, data.director_email, data.director_name or "Director")]
        return []

    if type is NotificationType.DIRECTOR_APPROVED:
        return await get_admin_recipients(db)

    if type in (NotificationType.ADMIN_RELEASED, NotificationType.ASSESSMENT_RETURNED):
        if not data.staff_email:
            logger.error("Staff email missing for assessment %s", data.assessment_id)
            return []
        return [Recipient(data.staff_id, data.staff_email, data.staff_name)]

    # NotificationType.ASSESSMENT_ACKNOWLEDGED
    recipients = []
    if data.manager_id and data.manager_email:
        recipients.append(Recipient(data.manager_id, data.manager_email, data.manager_name or "Manager"))
    if data.director_id and data.director_email:
        recipients.append(Recipient(data.director_id, data.director_email, data.director_name or "Director"))
    return recipients


class NotificationDispatcher:
    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        mailer: Optional[EmailService] = None,
        base_url: Optional[str] = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.mailer = mailer or EmailService()
        self.base_url = base_url or settings.APP_BASE_URL

    async def dispatch(self, assessment_id: int, type: NotificationType) -> List[DispatchResult]:
        type = NotificationType(type)
        async with self.session_factory() as db:
            data = await get_assessment_notification_data(db, assessment_id)
            if data is None:
                logger.error("Assessment not found for notification: %s", assessment_id)
                return []

            recipients = await resolve_recipients(db, type, data)
            results = []
            for recipient in recipients:
                try:
                    result = await self._send_to_recipient(db, type, data, recipient)
                except Exception as e:
                    await db.rollback()
                    logger.exception(
                        "Notification %s to user %s failed unexpectedly", type.value, recipient.user_id
                    )
                    result = DispatchResult(recipient.user_id, type, DispatchOutcome.FAILED, str(e))
                results.append(result)
            return results

    async def _send_to_recipient(
        self,
        db: AsyncSession,
        type: NotificationType,
        data: AssessmentNotificationData,
        recipient: Recipient,
    ) -> DispatchResult:
        if not await is_notification_enabled(db, recipient.user_id, type):
            logger.info("Notification %s disabled for user %s", type.value, recipient.user_id)
            return DispatchResult(recipient.user_id, type, DispatchOutcome.SKIPPED)

        email = render_notification(type, data, recipient.name, self.base_url)
        sent = await self.mailer.send(
            to=recipient.email, subject=email.subject, html=email.html, text=email.text
        )

        notification_id = None
        try:
            notification_id = await create_notification_log(
                db, data.assessment_id, recipient.user_id, type
            )
            if sent.success:
                await mark_notification_sent(db, notification_id)
                logger.info("Sent %s to %s", type.value, recipient.email)
                return DispatchResult(
                    recipient.user_id, type, DispatchOutcome.SENT, notification_id=notification_id
                )

            await mark_notification_failed(db, notification_id, sent.error)
            logger.error("Failed %s to %s: %s", type.value, recipient.email, sent.error)
            return DispatchResult(
                recipient.user_id,
                type,
                DispatchOutcome.FAILED,
                sent.error or "Unknown error",
                notification_id,
            )
        except SQLAlchemyError as e:
            await db.rollback()
            if notification_id is not None:
                # a pending row must not outlive a failed log write
                try:
                    await delete_notification_log(db, notification_id)
                except SQLAlchemyError:
                    await db.rollback()
                    logger.exception("Could not remove notification log %s", notification_id)
            logger.error("Database error while logging %s: %s", type.value, e)
            return DispatchResult(recipient.user_id, type, DispatchOutcome.FAILED, str(e))


async def trigger_notification(
    assessment_id: int,
    type: NotificationType,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> List[DispatchResult]:
    """Entry point used after a status change. Never raises."""
    try:
        dispatcher = dispatcher or NotificationDispatcher()
        return await dispatcher.dispatch(assessment_id, type)
    except Exception:
        logger.exception("Notification %s for assessment %s failed", type, assessment_id)
        return []
