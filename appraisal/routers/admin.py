from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from appraisal.database import get_db
from appraisal.core.auth import get_current_admin
from appraisal.routers.assessments import schedule_notifications
from appraisal.schemas.assessment import AssessmentResponse, ReleaseAllResponse
from appraisal.schemas.notification import NotificationLogResponse, NotificationStatsItem, PendingCountResponse
from appraisal.services import workflow
from appraisal.services.notifications import logger as notification_log

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/assessments", response_model=List[AssessmentResponse])
async def admin_list_assessments(
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    return await workflow.list_assessments(db, admin, status=status)


@router.post("/assessments/{assessment_id}/release", response_model=AssessmentResponse)
async def admin_release_assessment(
    assessment_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    outcome = await workflow.release(db, admin, assessment_id)
    schedule_notifications(background_tasks, outcome)
    return outcome.assessments[0]


@router.post("/assessments/release-all", response_model=ReleaseAllResponse)
async def admin_release_all(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    outcome = await workflow.release_all(db, admin)
    schedule_notifications(background_tasks, outcome)
    return ReleaseAllResponse(released=outcome.notify_ids, count=len(outcome.notify_ids))


@router.get("/notifications", response_model=List[NotificationLogResponse])
async def admin_list_notifications(
    status: Optional[str] = Query(None, pattern="^(pending|sent|failed)$"),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    return await notification_log.list_notifications(db, status=status, limit=limit)


@router.get("/notifications/stats", response_model=List[NotificationStatsItem])
async def admin_notification_stats(
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    return await notification_log.notification_stats(db)


@router.get("/notifications/failed", response_model=List[NotificationLogResponse])
async def admin_failed_notifications(
    limit: int = Query(50, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    return await notification_log.failed_notifications(db, limit=limit)


@router.get("/notifications/pending", response_model=PendingCountResponse)
async def admin_pending_notifications(
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    # rows left pending point at a dispatch that died between insert and update
    return PendingCountResponse(pending=await notification_log.pending_notification_count(db))
