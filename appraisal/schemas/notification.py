from pydantic import BaseModel, StrictBool
from datetime import datetime
from typing import Optional

class NotificationPreferenceResponse(BaseModel):
    email_enabled: bool
    assessment_submitted: bool
    manager_review_done: bool
    director_approved: bool
    admin_released: bool
    assessment_returned: bool
    assessment_acknowledged: bool

class NotificationPreferenceUpdate(BaseModel):
    email_enabled: Optional[StrictBool] = None
    assessment_submitted: Optional[StrictBool] = None
    manager_review_done: Optional[StrictBool] = None
    director_approved: Optional[StrictBool] = None
    admin_released: Optional[StrictBool] = None
    assessment_returned: Optional[StrictBool] = None
    assessment_acknowledged: Optional[StrictBool] = None

    model_config = {"extra": "ignore"}

class NotificationLogResponse(BaseModel):
    id: int
    assessment_id: int
    user_id: int
    type: str
    status: str
    error: Optional[str]
    created_at: Optional[datetime]
    sent_at: Optional[datetime]
    period: Optional[str]
    staff_name: Optional[str]
    recipient_email: Optional[str]

class NotificationStatsItem(BaseModel):
    status: str
    type: str
    count: int

class PendingCountResponse(BaseModel):
    pending: int
