"""Access request workflows.

This module owns the two request lifecycles of the portal:

- Drive access requests: one pending request per user, decided once by an
  admin. Approval grants the owner drive access. Rejection needs a reason.
  Both events are announced on the notification sink.
- Apologies (absence excuses): any number pending per user, decided once by
  an admin, rejection notes optional, no notifications.

In both lifecycles ``pending`` is the only non-terminal status. Deciding a
request that was already decided is a no-op that returns it unchanged.
"""

import logging
from datetime import date
from typing import List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import (
    DECISION_STATUSES,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from schemas.apology import Apology
from schemas.drive_access import DriveAccessRequest
from schemas.user import User
from utils.apology_repository import ApologyRepository
from utils.authorization import AuthorizationGuard
from utils.converters import model_to_apology, model_to_drive_request
from utils.notification_sink import (
    DRIVE_ACCESS_DECIDED,
    DRIVE_ACCESS_REQUESTED,
    NotificationSink,
    NullNotificationSink,
)
from utils.request_repository import RequestRepository
from utils.user_repository import UserRepository

logger = logging.getLogger(__name__)

ALL_STATUSES = [STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED]

DUPLICATE_PENDING_MESSAGE = "You already have a pending request"
MISSING_FIELDS_MESSAGE = "Missing required fields"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _validate_decision_status(status: str) -> None:
    if status not in DECISION_STATUSES:
        raise ValidationError(
            f"Invalid status: {status}. Must be 'approved' or 'rejected'."
        )


class DriveAccessManager:
    """Manages the drive access request lifecycle."""

    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationSink] = None,
        guard: Optional[AuthorizationGuard] = None,
    ):
        """Initialize DriveAccessManager.

        Args:
            db: SQLAlchemy Session.
            notifier: Sink receiving request and decision events.
            guard: Authorization guard for admin transitions.
        """
        self.requests = RequestRepository(db)
        self.users = UserRepository(db)
        self.notifier = notifier or NullNotificationSink()
        self.guard = guard or AuthorizationGuard(db)

    def submit(
        self,
        caller: User,
        user_id: Optional[str],
        user_email: Optional[str],
        reason: Optional[str],
    ) -> DriveAccessRequest:
        """Create a pending drive access request.

        Args:
            caller: The signed-in user.
            user_id: Owner of the request; must be the caller unless admin.
            user_email: Contact email captured with the request.
            reason: Why access is needed.

        Returns:
            The created request.

        Raises:
            ValidationError: If a field is missing.
            AuthorizationError: If a non-admin submits for someone else.
            NotFoundError: If the owner does not exist.
            ConflictError: If the owner already has a pending request.
        """
        user_id, user_email, reason = _clean(user_id), _clean(user_email), _clean(reason)
        if not user_id or not user_email or not reason:
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        self.guard.require_self_or_admin(caller, user_id)

        owner = self.users.find_by_id(user_id)
        if owner is None:
            raise NotFoundError("User", user_id)

        if self.requests.find_pending_by_user(user_id) is not None:
            raise ConflictError(DUPLICATE_PENDING_MESSAGE)
        try:
            model = self.requests.create(user_id, user_email, reason)
        except IntegrityError as e:
            raise ConflictError(DUPLICATE_PENDING_MESSAGE) from e

        logger.info("User %s requested drive access (request %s)", user_id, model.id)
        self.notifier.emit(
            DRIVE_ACCESS_REQUESTED,
            {
                "request_id": model.id,
                "user_name": owner.full_name,
                "user_email": user_email,
                "reason": reason,
            },
        )
        return model_to_drive_request(model)

    def decide(
        self,
        caller: User,
        request_id: Optional[str],
        status: Optional[str],
        admin_notes: Optional[str],
        admin_id: Optional[str],
    ) -> DriveAccessRequest:
        """Approve or reject a pending request.

        Approval raises the owner's ``drive_access_granted`` flag in the same
        store transaction as the status change.

        Args:
            caller: The signed-in user; must be an admin.
            request_id: Request to decide.
            status: 'approved' or 'rejected'.
            admin_notes: Notes for the requester; required for rejection.
            admin_id: Id of the deciding admin; must be the caller.

        Returns:
            The request with the requester's name and email joined.

        Raises:
            ValidationError: If a field is missing, the status is unknown, or a
                rejection has no notes.
            AuthorizationError: If the caller is not an admin or ``admin_id``
                names someone else.
            NotFoundError: If the request does not exist.
        """
        request_id, status, admin_id = _clean(request_id), _clean(status), _clean(admin_id)
        if not request_id or not status or not admin_id:
            raise ValidationError(MISSING_FIELDS_MESSAGE)
        _validate_decision_status(status)

        notes = _clean(admin_notes) or None
        if status == STATUS_REJECTED and not notes:
            raise ValidationError("Please provide a reason for the rejection")

        admin = self.guard.require_admin(caller)
        if admin_id != admin.id:
            raise AuthorizationError("adminId does not match the signed-in administrator")

        model = self.requests.find_by_id(request_id)
        if model is None:
            raise NotFoundError("Drive access request", request_id)

        if model.status != STATUS_PENDING:
            logger.info(
                "Drive access request %s already %s, ignoring '%s'",
                request_id,
                model.status,
                status,
            )
            return model_to_drive_request(model, include_requester=True)

        moved = self.requests.transition_status(
            request_id,
            model.user_id,
            status,
            notes,
            admin.id,
            grant_drive_access=status == STATUS_APPROVED,
        )
        updated = self.requests.find_by_id(request_id)
        if updated is None:
            raise NotFoundError("Drive access request", request_id)
        if not moved:
            logger.info("Drive access request %s was decided concurrently", request_id)
            return model_to_drive_request(updated, include_requester=True)

        logger.info("Admin %s %s drive access request %s", admin.id, status, request_id)
        result = model_to_drive_request(updated, include_requester=True)
        self.notifier.emit(
            DRIVE_ACCESS_DECIDED,
            {
                "request_id": result.id,
                "status": status,
                "user_name": result.requester.full_name if result.requester else None,
                "user_email": result.user_email,
                "admin_notes": notes,
            },
        )
        return result

    def list_for_user(self, caller: User, user_id: Optional[str] = None) -> List[DriveAccessRequest]:
        """List a user's requests, newest first. Defaults to the caller."""
        target = user_id or caller.id
        self.guard.require_self_or_admin(caller, target)
        return [model_to_drive_request(m) for m in self.requests.list_by_user(target)]

    def latest_for_user(self, caller: User) -> Optional[DriveAccessRequest]:
        model = self.requests.latest_by_user(caller.id)
        return model_to_drive_request(model) if model else None

    def list_all(self, caller: User) -> List[DriveAccessRequest]:
        """List every request with requester details. Admin only."""
        self.guard.require_admin(caller)
        return [
            model_to_drive_request(m, include_requester=True)
            for m in self.requests.list_all()
        ]


class ApologyManager:
    """Manages the apology (absence excuse) lifecycle."""

    def __init__(self, db: Session, guard: Optional[AuthorizationGuard] = None):
        self.apologies = ApologyRepository(db)
        self.guard = guard or AuthorizationGuard(db)

    def submit(
        self,
        caller: User,
        activity_date: Union[date, str, None],
        reason: Optional[str],
    ) -> Apology:
        """Submit an apology for the caller.

        Raises:
            ValidationError: If the date or reason is missing or the date is malformed.
        """
        reason = _clean(reason)
        if isinstance(activity_date, str):
            activity_date = activity_date.strip()
        if not activity_date or not reason:
            raise ValidationError("Please fill in all fields")
        if isinstance(activity_date, str):
            try:
                activity_date = date.fromisoformat(activity_date)
            except ValueError as e:
                raise ValidationError(f"Invalid activity date: {activity_date}") from e

        model = self.apologies.create(caller.id, activity_date.isoformat(), reason)
        logger.info("User %s submitted apology %s for %s", caller.id, model.id, model.activity_date)
        return model_to_apology(model)

    def decide(
        self,
        caller: User,
        apology_id: Optional[str],
        status: Optional[str],
        admin_notes: Optional[str] = None,
    ) -> Apology:
        """Approve or reject a pending apology. Notes are optional either way.

        Raises:
            ValidationError: If the status is missing or unknown.
            AuthorizationError: If the caller is not an admin.
            NotFoundError: If the apology does not exist.
        """
        apology_id, status = _clean(apology_id), _clean(status)
        if not apology_id or not status:
            raise ValidationError(MISSING_FIELDS_MESSAGE)
        _validate_decision_status(status)

        admin = self.guard.require_admin(caller)

        model = self.apologies.find_by_id(apology_id)
        if model is None:
            raise NotFoundError("Apology", apology_id)
        if model.status != STATUS_PENDING:
            logger.info("Apology %s already %s, ignoring '%s'", apology_id, model.status, status)
            return model_to_apology(model, include_requester=True)

        if self.apologies.transition_status(apology_id, status, _clean(admin_notes) or None):
            logger.info("Admin %s %s apology %s", admin.id, status, apology_id)
        updated = self.apologies.find_by_id(apology_id)
        if updated is None:
            raise NotFoundError("Apology", apology_id)
        return model_to_apology(updated, include_requester=True)

    def list_for_user(self, caller: User, limit: Optional[int] = None) -> List[Apology]:
        """List the caller's apologies, newest first."""
        return [model_to_apology(m) for m in self.apologies.list_by_user(caller.id, limit)]

    def list_all(self, caller: User, status: Optional[str] = None) -> List[Apology]:
        """List apologies with requester details, optionally by status. Admin only."""
        if status and status not in ALL_STATUSES:
            raise ValidationError(f"Invalid status filter: {status}")
        self.guard.require_admin(caller)
        return [
            model_to_apology(m, include_requester=True)
            for m in self.apologies.list_all(status)
        ]
