"""Apology persistence."""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from config import STATUS_PENDING
from core.database import store_errors
from models.apology import ApologyModel
from schemas.user import utc_now_iso


class ApologyRepository:
    """Repository for Apology rows."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, apology_id: str) -> Optional[ApologyModel]:
        with store_errors(self.db, "load apology"):
            return (
                self.db.query(ApologyModel)
                .options(joinedload(ApologyModel.user))
                .filter(ApologyModel.id == apology_id)
                .first()
            )

    def create(self, user_id: str, activity_date: str, reason: str) -> ApologyModel:
        now = utc_now_iso()
        model = ApologyModel(
            id=str(uuid.uuid4()),
            user_id=user_id,
            activity_date=activity_date,
            reason=reason,
            status=STATUS_PENDING,
            created_at=now,
            updated_at=now,
        )
        with store_errors(self.db, "create apology"):
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        return model

    def transition_status(
        self, apology_id: str, status: str, admin_notes: Optional[str]
    ) -> bool:
        """Move a pending apology to a terminal status.

        Returns:
            True if the apology moved, False if it was no longer pending.
        """
        with store_errors(self.db, "update apology"):
            moved = (
                self.db.query(ApologyModel)
                .filter(ApologyModel.id == apology_id, ApologyModel.status == STATUS_PENDING)
                .update(
                    {
                        "status": status,
                        "admin_notes": admin_notes,
                        "updated_at": utc_now_iso(),
                    },
                    synchronize_session=False,
                )
            )
            if not moved:
                self.db.rollback()
                return False
            self.db.commit()
        return True

    def list_by_user(self, user_id: str, limit: Optional[int] = None) -> List[ApologyModel]:
        """List one user's apologies, newest first."""
        with store_errors(self.db, "list apologies"):
            query = (
                self.db.query(ApologyModel)
                .filter(ApologyModel.user_id == user_id)
                .order_by(ApologyModel.created_at.desc())
            )
            if limit:
                query = query.limit(limit)
            return query.all()

    def list_all(self, status: Optional[str] = None) -> List[ApologyModel]:
        """List apologies with their owners joined, newest first.

        Args:
            status: Optional status filter, e.g. 'pending' for the admin queue.
        """
        with store_errors(self.db, "list apologies"):
            query = self.db.query(ApologyModel).options(joinedload(ApologyModel.user))
            if status:
                query = query.filter(ApologyModel.status == status)
            return query.order_by(ApologyModel.created_at.desc()).all()
