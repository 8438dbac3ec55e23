from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from appraisal.database import get_db
from appraisal.core.auth import get_current_user
from appraisal.schemas.notification import NotificationPreferenceResponse, NotificationPreferenceUpdate
from appraisal.services.notifications.preferences import (
    get_user_notification_preference,
    update_user_notification_preference,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/preferences", response_model=NotificationPreferenceResponse)
async def get_my_preferences(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    pref = await get_user_notification_preference(db, current_user.id)
    return pref.as_dict()


@router.put("/preferences", response_model=NotificationPreferenceResponse)
async def update_my_preferences(
    pref_in: NotificationPreferenceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    user_id = current_user.id
    await update_user_notification_preference(db, user_id, pref_in.model_dump(exclude_none=True))
    pref = await get_user_notification_preference(db, user_id)
    return pref.as_dict()
