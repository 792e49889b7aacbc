"""Self-service profile operations.

This module handles reading and editing a member's own profile, Discord
verification, and the dashboard summary.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from models.user import UserModel
from schemas.profile import DashboardSummary
from schemas.user import User
from utils.access_request_engine import ApologyManager, DriveAccessManager
from utils.converters import model_to_user
from utils.discord_verifier import DiscordVerifier
from utils.user_repository import UserRepository

logger = logging.getLogger(__name__)

DASHBOARD_RECENT_APOLOGIES = 5


class ProfileManager:
    """Manages a member's own profile."""

    def __init__(self, db: Session, verifier: Optional[DiscordVerifier] = None):
        """Initialize ProfileManager.

        Args:
            db: SQLAlchemy Session.
            verifier: Client for the Discord verification service.
        """
        self.db = db
        self.users = UserRepository(db)
        self.verifier = verifier or DiscordVerifier()

    def _updated(self, caller: User, model: Optional[UserModel]) -> User:
        if model is None:
            raise NotFoundError("User", caller.id)
        return model_to_user(model)

    def get_profile(self, caller: User) -> User:
        return self._updated(caller, self.users.find_by_id(caller.id))

    def update_profile(
        self,
        caller: User,
        full_name: Optional[str] = None,
        discord_username: Optional[str] = None,
    ) -> User:
        """Edit the caller's name and Discord handle.

        Args:
            caller: The signed-in user.
            full_name: New display name; None leaves it unchanged.
            discord_username: New handle; blank clears it, None leaves it unchanged.

        Raises:
            ValidationError: If the new name is blank.
        """
        fields = {}
        if full_name is not None:
            full_name = full_name.strip()
            if not full_name:
                raise ValidationError("Full name cannot be empty")
            fields["full_name"] = full_name
        if discord_username is not None:
            fields["discord_username"] = discord_username.strip() or None

        if not fields:
            return self.get_profile(caller)
        logger.info("User %s updated profile fields %s", caller.id, sorted(fields))
        return self._updated(caller, self.users.update_fields(caller.id, **fields))

    def verify_discord(self, caller: User, username: Optional[str]) -> User:
        """Store the caller's Discord handle and verify it.

        Raises:
            ValidationError: If the handle is blank or the service rejects it.
            DependencyError: If the service cannot be reached.
        """
        username = (username or "").strip()
        if not username:
            raise ValidationError("Please enter your Discord username")

        self.users.update_fields(caller.id, discord_username=username)
        if not self.verifier.verify(username):
            raise ValidationError("Verification failed, check your Discord username")

        logger.info("User %s verified Discord handle", caller.id)
        return self._updated(
            caller, self.users.update_fields(caller.id, discord_verified=True)
        )

    def dashboard(self, caller: User) -> DashboardSummary:
        """Summarize the caller's recent apologies and latest drive request."""
        recent = ApologyManager(self.db).list_for_user(caller, limit=DASHBOARD_RECENT_APOLOGIES)
        latest = DriveAccessManager(self.db).latest_for_user(caller)
        return DashboardSummary(
            apologies=len(recent),
            recent_apologies=recent,
            drive_access_status=latest,
        )
