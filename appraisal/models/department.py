# appraisal/models/department.py
from sqlalchemy import Column, Integer, String, DateTime, func
from appraisal.database import Base

class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
