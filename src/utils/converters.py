"""Conversions between ORM models and pydantic schemas."""

from typing import Optional

from models.apology import ApologyModel
from models.drive_access_request import DriveAccessRequestModel
from models.identity import IdentityModel
from models.user import UserModel
from schemas.apology import Apology
from schemas.drive_access import DriveAccessRequest
from schemas.user import Identity, RequesterInfo, User


def user_to_model(user: User, invitation_token: Optional[str] = None) -> UserModel:
    return UserModel(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        invitation_token=invitation_token,
        invitation_accepted=user.invitation_accepted,
        drive_access_granted=user.drive_access_granted,
        discord_username=user.discord_username,
        discord_verified=user.discord_verified,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def model_to_user(model: UserModel) -> User:
    return User(
        id=model.id,
        email=model.email,
        full_name=model.full_name,
        role=model.role,
        invitation_accepted=bool(model.invitation_accepted),
        drive_access_granted=bool(model.drive_access_granted),
        discord_username=model.discord_username,
        discord_verified=bool(model.discord_verified),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_identity(model: IdentityModel) -> Identity:
    return Identity(
        identity_id=model.identity_id,
        email=model.email,
        full_name=model.full_name,
    )


def _requester(user: Optional[UserModel]) -> Optional[RequesterInfo]:
    if user is None:
        return None
    return RequesterInfo(full_name=user.full_name, email=user.email)


def model_to_drive_request(
    model: DriveAccessRequestModel, include_requester: bool = False
) -> DriveAccessRequest:
    """Convert a drive access request row.

    Args:
        model: The ORM row.
        include_requester: Join the owning user's name and email.
    """
    return DriveAccessRequest(
        id=model.id,
        user_id=model.user_id,
        user_email=model.user_email,
        reason=model.reason,
        status=model.status,
        admin_notes=model.admin_notes,
        approved_by=model.approved_by,
        created_at=model.created_at,
        updated_at=model.updated_at,
        requester=_requester(model.user) if include_requester else None,
    )


def model_to_apology(model: ApologyModel, include_requester: bool = False) -> Apology:
    return Apology(
        id=model.id,
        user_id=model.user_id,
        activity_date=model.activity_date,
        reason=model.reason,
        status=model.status,
        admin_notes=model.admin_notes,
        created_at=model.created_at,
        updated_at=model.updated_at,
        requester=_requester(model.user) if include_requester else None,
    )
