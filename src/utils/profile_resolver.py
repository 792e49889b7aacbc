"""Maps an authenticated identity to its persisted user profile."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import ROLE_STUDENT
from core.exceptions import ConflictError
from models.user import UserModel
from schemas.user import Identity, User
from utils.converters import model_to_user
from utils.identity_gateway import normalize_email
from utils.user_repository import UserRepository

logger = logging.getLogger(__name__)


class ProfileResolver:
    """Looks up, and when missing provisions, the profile of an identity."""

    def __init__(self, db: Session):
        """Initialize ProfileResolver.

        Args:
            db: SQLAlchemy Session.
        """
        self.users = UserRepository(db)

    def resolve_profile(self, identity: Identity) -> User:
        """Return the profile for an identity, creating it on first access.

        A lookup failure propagates as DependencyError and never leads to
        provisioning; only a successful lookup that finds no row does.

        Args:
            identity: The authenticated identity.

        Returns:
            The caller's User profile.

        Raises:
            DependencyError: If the store call fails.
            ConflictError: If another profile already uses the identity's email.
        """
        model = self.users.find_by_id(identity.identity_id)
        if model is None:
            model = self._provision(identity)
        return model_to_user(model)

    def _provision(self, identity: Identity) -> UserModel:
        email = normalize_email(identity.email)
        user = User(
            id=identity.identity_id,
            email=email,
            full_name=identity.full_name or email,
            role=ROLE_STUDENT,
            invitation_accepted=True,
        )
        try:
            self.users.create(user)
            logger.info("Provisioned profile for identity %s", identity.identity_id)
        except IntegrityError:
            # Either a concurrent call won the race or the email is taken
            logger.info("Profile insert for %s collided, re-reading", identity.identity_id)

        model = self.users.find_by_id(identity.identity_id)
        if model is None:
            raise ConflictError(f"A profile for '{email}' already exists")
        return model
