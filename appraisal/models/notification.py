# appraisal/models/notification.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from appraisal.database import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)  # recipient
    type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending, sent, failed
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    sent_at = Column(DateTime(timezone=True), nullable=True)


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    email_enabled = Column(Boolean, nullable=True, default=True)
    assessment_submitted = Column(Boolean, nullable=True, default=True)
    manager_review_done = Column(Boolean, nullable=True, default=True)
    director_approved = Column(Boolean, nullable=True, default=True)
    admin_released = Column(Boolean, nullable=True, default=True)
    assessment_returned = Column(Boolean, nullable=True, default=True)
    assessment_acknowledged = Column(Boolean, nullable=True, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
