"""User persistence.

All reads and writes of the ``users`` table go through UserRepository.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.database import store_errors
from models.user import UserModel
from schemas.user import User, utc_now_iso
from utils.converters import user_to_model

logger = logging.getLogger(__name__)

# Profile columns a member or an admin may change directly
UPDATABLE_FIELDS = frozenset(
    {"full_name", "discord_username", "discord_verified", "role"}
)


class UserRepository:
    """Repository for User rows."""

    def __init__(self, db: Session):
        """Initialize UserRepository.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def find_by_id(self, user_id: str) -> Optional[UserModel]:
        """Look up a user by id.

        Returns:
            The row, or None when no row exists.

        Raises:
            DependencyError: If the store call fails. Callers rely on this to
                tell "not found" apart from a transient failure.
        """
        with store_errors(self.db, "load user"):
            return self.db.query(UserModel).filter(UserModel.id == user_id).first()

    def find_by_email(self, email: str) -> Optional[UserModel]:
        with store_errors(self.db, "load user"):
            return self.db.query(UserModel).filter(UserModel.email == email).first()

    def find_pending_invitation(self, token: str) -> Optional[UserModel]:
        """Find the not yet accepted user holding an invitation token."""
        with store_errors(self.db, "load invitation"):
            return (
                self.db.query(UserModel)
                .filter(
                    UserModel.invitation_token == token,
                    UserModel.invitation_accepted.is_(False),
                )
                .first()
            )

    def create(self, user: User, invitation_token: Optional[str] = None) -> UserModel:
        """Insert a new user row.

        Args:
            user: The profile to store.
            invitation_token: Activation secret for an invited user. It lives
                only in the store and is never part of the User schema.

        Raises:
            IntegrityError: If the id, email or token already exists.
            DependencyError: If the store call fails otherwise.
        """
        model = user_to_model(user, invitation_token=invitation_token)
        with store_errors(self.db, "create user"):
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        logger.info("Created user %s (role=%s)", model.id, model.role)
        return model

    def accept_invitation(self, user_id: str, token: str) -> bool:
        """Mark an invitation accepted and clear its token in one update.

        The update only applies while the row still holds ``token`` and has not
        been accepted, so a token can never be redeemed twice.

        Returns:
            True if the row was updated.
        """
        with store_errors(self.db, "accept invitation"):
            updated = (
                self.db.query(UserModel)
                .filter(
                    UserModel.id == user_id,
                    UserModel.invitation_token == token,
                    UserModel.invitation_accepted.is_(False),
                )
                .update(
                    {
                        "invitation_accepted": True,
                        "invitation_token": None,
                        "updated_at": utc_now_iso(),
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        return bool(updated)

    def update_fields(self, user_id: str, **fields) -> Optional[UserModel]:
        """Update profile columns of one user.

        Args:
            user_id: The user to update.
            **fields: Column values; only UPDATABLE_FIELDS are accepted.

        Returns:
            The refreshed row, or None if the user does not exist.

        Raises:
            ValueError: If a column outside UPDATABLE_FIELDS is passed.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update columns: {sorted(unknown)}")

        with store_errors(self.db, "update user"):
            model = self.db.query(UserModel).filter(UserModel.id == user_id).first()
            if model is None:
                return None
            for key, value in fields.items():
                setattr(model, key, value)
            model.updated_at = utc_now_iso()
            self.db.commit()
            self.db.refresh(model)
        return model

    def list_all(self) -> List[UserModel]:
        """List all users, newest first."""
        with store_errors(self.db, "list users"):
            return self.db.query(UserModel).order_by(UserModel.created_at.desc()).all()
