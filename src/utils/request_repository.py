"""Drive access request persistence."""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from config import STATUS_PENDING
from core.database import store_errors
from models.drive_access_request import DriveAccessRequestModel
from models.user import UserModel
from schemas.user import utc_now_iso

logger = logging.getLogger(__name__)


class RequestRepository:
    """Repository for DriveAccessRequest rows."""

    def __init__(self, db: Session):
        """Initialize RequestRepository.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _query(self):
        return self.db.query(DriveAccessRequestModel).options(
            joinedload(DriveAccessRequestModel.user)
        )

    def find_by_id(self, request_id: str) -> Optional[DriveAccessRequestModel]:
        with store_errors(self.db, "load drive access request"):
            return self._query().filter(DriveAccessRequestModel.id == request_id).first()

    def find_pending_by_user(self, user_id: str) -> Optional[DriveAccessRequestModel]:
        with store_errors(self.db, "load drive access request"):
            return (
                self.db.query(DriveAccessRequestModel)
                .filter(
                    DriveAccessRequestModel.user_id == user_id,
                    DriveAccessRequestModel.status == STATUS_PENDING,
                )
                .first()
            )

    def create(self, user_id: str, user_email: str, reason: str) -> DriveAccessRequestModel:
        """Insert a new pending request.

        Raises:
            IntegrityError: If the user already has a pending request.
            DependencyError: If the store call fails otherwise.
        """
        now = utc_now_iso()
        model = DriveAccessRequestModel(
            id=str(uuid.uuid4()),
            user_id=user_id,
            user_email=user_email,
            reason=reason,
            status=STATUS_PENDING,
            created_at=now,
            updated_at=now,
        )
        with store_errors(self.db, "create drive access request"):
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        return model

    def transition_status(
        self,
        request_id: str,
        user_id: str,
        status: str,
        admin_notes: Optional[str],
        approved_by: str,
        grant_drive_access: bool = False,
    ) -> bool:
        """Move a pending request to a terminal status.

        The status update only applies while the row is still pending. When
        ``grant_drive_access`` is set, the owner's ``drive_access_granted`` flag
        is raised in the same transaction.

        Returns:
            True if the request moved, False if it was no longer pending.
        """
        now = utc_now_iso()
        with store_errors(self.db, "update drive access request"):
            moved = (
                self.db.query(DriveAccessRequestModel)
                .filter(
                    DriveAccessRequestModel.id == request_id,
                    DriveAccessRequestModel.status == STATUS_PENDING,
                )
                .update(
                    {
                        "status": status,
                        "admin_notes": admin_notes,
                        "approved_by": approved_by,
                        "updated_at": now,
                    },
                    synchronize_session=False,
                )
            )
            if not moved:
                self.db.rollback()
                return False
            if grant_drive_access:
                self.db.query(UserModel).filter(UserModel.id == user_id).update(
                    {"drive_access_granted": True, "updated_at": now},
                    synchronize_session=False,
                )
            self.db.commit()
        return True

    def list_by_user(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[DriveAccessRequestModel]:
        """List one user's requests, newest first."""
        with store_errors(self.db, "list drive access requests"):
            query = (
                self.db.query(DriveAccessRequestModel)
                .filter(DriveAccessRequestModel.user_id == user_id)
                .order_by(DriveAccessRequestModel.created_at.desc())
            )
            if limit:
                query = query.limit(limit)
            return query.all()

    def latest_by_user(self, user_id: str) -> Optional[DriveAccessRequestModel]:
        requests = self.list_by_user(user_id, limit=1)
        return requests[0] if requests else None

    def list_all(self) -> List[DriveAccessRequestModel]:
        """List every request with its owner joined, newest first."""
        with store_errors(self.db, "list drive access requests"):
            return (
                self._query()
                .order_by(DriveAccessRequestModel.created_at.desc())
                .all()
            )
