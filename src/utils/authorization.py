"""Role checks gating admin-only operations."""

import logging

from sqlalchemy.orm import Session

from config import ROLE_ADMIN
from core.exceptions import AuthorizationError
from schemas.user import User
from utils.converters import model_to_user
from utils.user_repository import UserRepository

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """Single place where callers' roles are checked.

    The check re-reads the caller's profile so that a role change takes effect
    on the next operation, not on the next sign-in.
    """

    def __init__(self, db: Session):
        self.users = UserRepository(db)

    def require_role(self, caller: User, role: str) -> User:
        """Ensure the caller currently holds ``role``.

        Args:
            caller: The resolved profile of the caller.
            role: The required role.

        Returns:
            The caller's freshly loaded profile.

        Raises:
            AuthorizationError: If the caller's role differs.
            DependencyError: If the store call fails.
        """
        model = self.users.find_by_id(caller.id)
        if model is None or model.role != role:
            logger.warning("User %s denied: role '%s' required", caller.id, role)
            raise AuthorizationError()
        return model_to_user(model)

    def require_admin(self, caller: User) -> User:
        return self.require_role(caller, ROLE_ADMIN)

    def require_self_or_admin(self, caller: User, user_id: str) -> User:
        """Allow acting on one's own records; anything else needs admin."""
        if caller.id == user_id:
            return caller
        return self.require_admin(caller)
