"""Enrollment model definitions."""

from sqlalchemy import Column, Integer, ForeignKey
from edunotes.database import Base, UTCDateTime


class Enrollment(Base):
    """Links a user to a course they joined."""
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Enrollments outlive their course, so no foreign key here.
    course_id = Column(Integer, nullable=False, index=True)
    enrolled_at = Column(UTCDateTime, nullable=False)
