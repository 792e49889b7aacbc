"""Apology (absence excuse) database model."""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class ApologyModel(Base):
    """An absence justification for one activity date."""

    __tablename__ = "apologies"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    activity_date = Column(String, nullable=False)  # ISO date, YYYY-MM-DD
    reason = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending")
    admin_notes = Column(Text, nullable=True)
    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=False)  # ISO format string

    user = relationship("UserModel", foreign_keys=[user_id])
