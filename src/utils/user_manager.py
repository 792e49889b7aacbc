"""Admin user management.

This module provides the admin-only listing of members and role changes.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from config import ROLES
from core.exceptions import NotFoundError, ValidationError
from schemas.user import User
from utils.authorization import AuthorizationGuard
from utils.converters import model_to_user
from utils.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserManager:
    """Manages member records on behalf of admins."""

    def __init__(self, db: Session, guard: Optional[AuthorizationGuard] = None):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            guard: Authorization guard for the admin-only operations.
        """
        self.users = UserRepository(db)
        self.guard = guard or AuthorizationGuard(db)

    def list_users(self, caller: User) -> List[User]:
        """List all users, newest first.

        Raises:
            AuthorizationError: If the caller is not an admin.
        """
        self.guard.require_admin(caller)
        return [model_to_user(m) for m in self.users.list_all()]

    def set_role(self, caller: User, user_id: str, role: str) -> User:
        """Change a user's role.

        Args:
            caller: The signed-in admin.
            user_id: User to change.
            role: 'student' or 'admin'.

        Returns:
            The updated User.

        Raises:
            ValidationError: If the role is unknown.
            AuthorizationError: If the caller is not an admin.
            NotFoundError: If the user does not exist.
        """
        role = (role or "").strip()
        if role not in ROLES:
            raise ValidationError(f"Invalid role: {role}. Must be 'student' or 'admin'.")

        admin = self.guard.require_admin(caller)
        model = self.users.update_fields(user_id, role=role)
        if model is None:
            raise NotFoundError("User", user_id)
        logger.info("Admin %s set role of %s to %s", admin.id, user_id, role)
        return model_to_user(model)
