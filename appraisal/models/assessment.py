# appraisal/models/assessment.py
import enum
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON, func
from appraisal.database import Base


class AssessmentStatus(str, enum.Enum):
    DRAFT = "draft"
    SELF_SUBMITTED = "self_submitted"
    MANAGER_REVIEWED = "manager_reviewed"
    DIRECTOR_APPROVED = "director_approved"
    REJECTED = "rejected"
    ADMIN_REVIEWED = "admin_reviewed"  # released to staff
    ACKNOWLEDGED = "acknowledged"


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    director_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    template_id = Column(Integer, ForeignKey("rubric_templates.id"), nullable=False)
    period = Column(String, nullable=False)
    status = Column(String, nullable=False, default=AssessmentStatus.DRAFT.value, index=True)

    # indicator id (as string) -> 0..4 or "X"
    staff_scores = Column(JSON, nullable=False, default=dict)
    staff_evidence = Column(JSON, nullable=False, default=dict)
    manager_scores = Column(JSON, nullable=False, default=dict)
    manager_evidence = Column(JSON, nullable=False, default=dict)

    manager_notes = Column(Text, nullable=True)
    director_comments = Column(Text, nullable=True)
    staff_notes = Column(Text, nullable=True)
    return_feedback = Column(Text, nullable=True)
    returned_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    final_score = Column(Float, nullable=True)
    final_grade = Column(String, nullable=True)

    staff_submitted_at = Column(DateTime(timezone=True), nullable=True)
    manager_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    director_approved_at = Column(DateTime(timezone=True), nullable=True)
    admin_released_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
