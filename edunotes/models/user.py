"""User model definitions."""

from sqlalchemy import Column, Integer, String
from edunotes.database import Base

ROLE_ADMIN = "admin"
ROLE_STUDENT = "student"
USER_ROLES = (ROLE_ADMIN, ROLE_STUDENT)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # werkzeug hash
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_STUDENT)  # student/admin
