"""Note model definitions."""

from sqlalchemy import Column, Integer, String, Text
from edunotes.database import Base

NOTE_COLORS = ("yellow", "blue", "green", "purple")


class Note(Base):
    """A student's free-form note attached to a course."""
    __tablename__ = "notes"

    id = Column(String(36), primary_key=True)  # uuid4
    user_id = Column(Integer, nullable=False, index=True)
    course_id = Column(Integer, nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    color = Column(String, nullable=False)
    created_at = Column(String, nullable=False)  # ISO-8601
