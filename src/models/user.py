"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import Boolean, Column, String
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="student")  # 'student' or 'admin'
    invitation_token = Column(String, unique=True, index=True, nullable=True)
    invitation_accepted = Column(Boolean, nullable=False, default=False)
    drive_access_granted = Column(Boolean, nullable=False, default=False)
    discord_username = Column(String, nullable=True)
    discord_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=False)  # ISO format string
