"""Course model definitions."""

from sqlalchemy import Column, Integer, Boolean, ForeignKey, String, Text
from edunotes.database import Base, UTCDateTime


class Course(Base):
    """Represents a course published by an administrator."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    instructor = Column(String, nullable=False, index=True)
    duration = Column(Integer, nullable=False)  # weeks
    lessons = Column(Integer, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False)
