from sqlalchemy import Column, String
from .base import Base


class RevokedSessionModel(Base):
    """Session token id (``jti``) that was signed out before it expired."""

    __tablename__ = "revoked_sessions"

    jti = Column(String, primary_key=True, index=True)
    identity_id = Column(String, index=True, nullable=False)
    revoked_at = Column(String, nullable=False)
    expires_at = Column(String, nullable=True)
