# appraisal/models/rubric.py
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from appraisal.database import Base

class RubricTemplate(Base):
    __tablename__ = "rubric_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sections = relationship(
        "RubricSection",
        lazy="selectin",
        order_by="RubricSection.sort_order",
        cascade="all, delete-orphan",
    )


class RubricSection(Base):
    __tablename__ = "rubric_sections"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("rubric_templates.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    weight = Column(Float, nullable=False, default=0.0)  # percent of total, not forced to sum to 100
    sort_order = Column(Integer, default=0)

    indicators = relationship(
        "RubricIndicator",
        lazy="selectin",
        order_by="RubricIndicator.sort_order",
        cascade="all, delete-orphan",
    )


class RubricIndicator(Base):
    __tablename__ = "rubric_indicators"

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(Integer, ForeignKey("rubric_sections.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    evidence_guidance = Column(Text, nullable=True)
    # [{"score": 4, "label": "...", "enabled": true}, ...]; NULL means the default 0..4 scale
    score_options = Column(JSON, nullable=True)
    sort_order = Column(Integer, default=0)
