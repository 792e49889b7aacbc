"""Drive access request database model."""

from sqlalchemy import Column, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship
from .base import Base


class DriveAccessRequestModel(Base):
    """A user's request for access to the shared drive."""

    __tablename__ = "drive_access_requests"
    __table_args__ = (
        # At most one pending request per user
        Index(
            "uq_drive_access_requests_pending_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    user_email = Column(String, nullable=False)  # contact email at submission time
    reason = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending")
    admin_notes = Column(Text, nullable=True)
    approved_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=False)  # ISO format string

    user = relationship("UserModel", foreign_keys=[user_id])
