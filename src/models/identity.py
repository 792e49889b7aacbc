"""Identity provider credential model.

Credentials live apart from the user profile; an identity shares its id with
the ``users`` row it belongs to.
"""

from sqlalchemy import Column, String
from .base import Base


class IdentityModel(Base):
    """Sign-in credentials for one account."""

    __tablename__ = "identities"

    identity_id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)  # provider-side metadata
    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=False)  # ISO format string
