"""User and identity schema definitions.

This module defines the User profile, the identity-provider views of an
account, and the request/response bodies of the authentication routes.
"""

import uuid
from datetime import datetime
from typing import List, Optional

import pytz
from pydantic import BaseModel, Field

import config


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(pytz.utc).isoformat()


class User(BaseModel):
    """A persisted portal member."""

    id: str = Field(
        description="The stable identifier shared with the identity provider.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    email: str
    full_name: str
    role: str = Field(
        default=config.ROLE_STUDENT,
        description="Either 'student' or 'admin'.",
    )
    invitation_accepted: bool = False
    drive_access_granted: bool = False
    discord_username: Optional[str] = None
    discord_verified: bool = False
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @property
    def is_admin(self) -> bool:
        return self.role == config.ROLE_ADMIN


class RequesterInfo(BaseModel):
    """Name and email of the user owning a request, joined for admin views."""

    full_name: Optional[str] = None
    email: Optional[str] = None


class Identity(BaseModel):
    """An account as the identity provider knows it."""

    identity_id: str
    email: str
    full_name: Optional[str] = Field(
        default=None,
        description="Provider-side metadata; used to name a lazily provisioned profile.",
    )


class AuthSession(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str
    identity: Identity


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user: User
    token: str
    expires_at: str


class CurrentUserResponse(BaseModel):
    user: User


class ChangePasswordRequest(BaseModel):
    new_password: str
    confirm_password: str


class CreateInvitationRequest(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None


class InvitationInfo(BaseModel):
    """Returned to the admin who issued an invitation."""

    user_id: str
    email: str
    full_name: str
    invitation_token: str
    invitation_link: str


class PendingInvitationInfo(BaseModel):
    """What the activation page shows for a still valid token."""

    email: str
    full_name: str


class RedeemInvitationRequest(BaseModel):
    password: str
    confirm_password: str


class UpdateRoleRequest(BaseModel):
    role: str


class UserListResponse(BaseModel):
    users: List[User]
