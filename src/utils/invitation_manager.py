"""Invitation issuing and redemption.

An admin invites a person by email; the invited user row holds a single-use
token until the person redeems it by choosing a password.
"""

import logging
import secrets
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import INVITATION_BASE_URL, ROLE_STUDENT
from core.exceptions import (
    ConflictError,
    DependencyError,
    InvalidTokenError,
    ValidationError,
)
from schemas.user import InvitationInfo, User
from utils.authorization import AuthorizationGuard
from utils.converters import model_to_user
from utils.identity_gateway import IdentityGateway, normalize_email, validate_new_password
from utils.user_repository import UserRepository

logger = logging.getLogger(__name__)

INVITATION_TOKEN_BYTES = 32


def generate_invitation_token() -> str:
    """Return a URL-safe token with 256 bits of entropy."""
    return secrets.token_urlsafe(INVITATION_TOKEN_BYTES)


def invitation_link(token: str) -> str:
    return f"{INVITATION_BASE_URL.rstrip('/')}/{token}"


class InvitationManager:
    """Manages invitation creation and redemption."""

    def __init__(
        self,
        db: Session,
        identity_gateway: Optional[IdentityGateway] = None,
        guard: Optional[AuthorizationGuard] = None,
    ):
        """Initialize InvitationManager.

        Args:
            db: SQLAlchemy Session.
            identity_gateway: Gateway used to create the sign-in identity.
            guard: Authorization guard for the admin-only operations.
        """
        self.users = UserRepository(db)
        self.identities = identity_gateway or IdentityGateway(db)
        self.guard = guard or AuthorizationGuard(db)

    def create_invitation(
        self, caller: User, email: Optional[str], full_name: Optional[str]
    ) -> InvitationInfo:
        """Invite a new member.

        Args:
            caller: The admin issuing the invitation.
            email: Email of the invited person.
            full_name: Display name of the invited person.

        Returns:
            InvitationInfo with the token and the activation link.

        Raises:
            ValidationError: If email or name is empty.
            AuthorizationError: If the caller is not an admin.
            ConflictError: If a user with this email already exists.
        """
        email = normalize_email(email)
        full_name = (full_name or "").strip()
        if not email or not full_name:
            raise ValidationError("Please fill in all fields")

        admin = self.guard.require_admin(caller)

        if self.users.find_by_email(email) is not None:
            raise ConflictError(f"A user with email '{email}' already exists")

        token = generate_invitation_token()
        user = User(
            email=email,
            full_name=full_name,
            role=ROLE_STUDENT,
            invitation_accepted=False,
        )
        try:
            model = self.users.create(user, invitation_token=token)
        except IntegrityError as e:
            raise ConflictError(f"A user with email '{email}' already exists") from e

        logger.info("Admin %s invited user %s", admin.id, model.id)
        return InvitationInfo(
            user_id=model.id,
            email=model.email,
            full_name=model.full_name,
            invitation_token=token,
            invitation_link=invitation_link(token),
        )

    def get_pending_invitation(self, token: Optional[str]) -> User:
        """Return the invited user for a still redeemable token.

        Raises:
            InvalidTokenError: If the token is unknown or already used.
        """
        if not token:
            raise InvalidTokenError()
        model = self.users.find_pending_invitation(token)
        if model is None:
            raise InvalidTokenError()
        return model_to_user(model)

    def redeem_invitation(
        self, token: Optional[str], password: Optional[str], confirm_password: Optional[str]
    ) -> User:
        """Activate an invited account.

        Creates the sign-in identity bound to the invited user's id, then marks
        the invitation accepted and clears the token. If a previous attempt
        created the identity but failed before the profile update, the retry
        resets that identity's password and completes the update.

        Args:
            token: The invitation token.
            password: The chosen password.
            confirm_password: Repetition of the chosen password.

        Returns:
            The activated User.

        Raises:
            InvalidTokenError: If the token is unknown or already used.
            ValidationError: If the passwords differ or are too short.
            ConflictError: If the email is bound to an unrelated identity.
            DependencyError: If the store call fails.
        """
        invited = self.get_pending_invitation(token)
        validate_new_password(password, confirm_password)

        if self.identities.get_identity(invited.id) is None:
            self.identities.sign_up(
                invited.email,
                password,
                full_name=invited.full_name,
                identity_id=invited.id,
            )
        else:
            logger.warning(
                "Identity for user %s already exists, resuming redemption", invited.id
            )
            self.identities.update_password(invited.id, password)

        if not self.users.accept_invitation(invited.id, token):
            # Redeemed concurrently between lookup and update
            raise InvalidTokenError()

        model = self.users.find_by_id(invited.id)
        if model is None:
            raise DependencyError(f"User '{invited.id}' disappeared during activation")
        logger.info("User %s accepted their invitation", invited.id)
        return model_to_user(model)
