"""Authentication routes.

This module handles HTTP endpoints for sign-in, sign-out, password changes,
and the invitation lifecycle.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.errors import to_http_exception
from core.dependencies import (
    IdentityGatewayDep,
    InvitationManagerDep,
    ProfileResolverDep,
)
from core.exceptions import PortalError
from schemas.user import (
    ChangePasswordRequest,
    CreateInvitationRequest,
    CurrentUserResponse,
    Identity,
    InvitationInfo,
    LoginRequest,
    LoginResponse,
    PendingInvitationInfo,
    RedeemInvitationRequest,
    User,
)
from utils.identity_gateway import validate_new_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

# HTTP Bearer token security; missing tokens are answered with 401 below
security = HTTPBearer(auto_error=False)

INVITATION_NOT_ACCEPTED = "Invitation has not been accepted yet"


def get_session_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Extract the bearer token from the Authorization header.

    Raises:
        HTTPException: If no bearer token was sent.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return credentials.credentials


def get_current_identity(
    token: str = Depends(get_session_token),
    gateway: IdentityGatewayDep = None,
) -> Identity:
    """Resolve the identity behind the session token.

    Raises:
        HTTPException: If the token is invalid, expired or revoked.
    """
    try:
        identity = gateway.current_identity(token)
    except PortalError as e:
        raise to_http_exception(e) from e
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return identity


def get_current_user(
    identity: Identity = Depends(get_current_identity),
    resolver: ProfileResolverDep = None,
) -> User:
    """Get the profile of the authenticated caller, provisioning it if missing.

    Raises:
        HTTPException: If the profile cannot be resolved or the invitation
            behind it was never accepted.
    """
    try:
        user = resolver.resolve_profile(identity)
    except PortalError as e:
        raise to_http_exception(e) from e
    if not user.invitation_accepted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVITATION_NOT_ACCEPTED,
        )
    return user


@router.post("/login", response_model=LoginResponse, summary="Sign in")
def login(
    req: LoginRequest,
    gateway: IdentityGatewayDep = None,
    resolver: ProfileResolverDep = None,
) -> LoginResponse:
    """Sign in with email and password.

    Args:
        req: Login request with email and password.
        gateway: Injected IdentityGateway instance.
        resolver: Injected ProfileResolver instance.

    Returns:
        LoginResponse with the profile and a bearer token.

    Raises:
        HTTPException: If sign-in fails.
    """
    try:
        session = gateway.authenticate(req.email, req.password)
        user = resolver.resolve_profile(session.identity)
    except PortalError as e:
        raise to_http_exception(e) from e

    if not user.invitation_accepted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVITATION_NOT_ACCEPTED,
        )
    return LoginResponse(user=user, token=session.access_token, expires_at=session.expires_at)


@router.post("/logout", summary="Sign out")
def logout(
    token: str = Depends(get_session_token),
    gateway: IdentityGatewayDep = None,
) -> dict:
    """Revoke the session token used for this request."""
    try:
        gateway.end_session(token)
    except PortalError as e:
        raise to_http_exception(e) from e
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse, summary="Current user")
def get_current_user_info(
    current_user: User = Depends(get_current_user),
) -> CurrentUserResponse:
    return CurrentUserResponse(user=current_user)


@router.post("/password", summary="Change password")
def change_password(
    req: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    gateway: IdentityGatewayDep = None,
) -> dict:
    """Set a new password for the signed-in user.

    Raises:
        HTTPException: If the new password is rejected.
    """
    try:
        validate_new_password(req.new_password, req.confirm_password)
        gateway.update_password(current_user.id, req.new_password)
    except PortalError as e:
        raise to_http_exception(e) from e
    return {"success": True, "message": "Password updated"}


@router.post("/invitations", response_model=InvitationInfo, summary="Invite a member")
def create_invitation(
    req: CreateInvitationRequest,
    current_user: User = Depends(get_current_user),
    invitation_manager: InvitationManagerDep = None,
) -> InvitationInfo:
    """Create an invited user and return the activation link. Admin only.

    Raises:
        HTTPException: If input is missing, the caller is not an admin, or
            the email is taken.
    """
    try:
        return invitation_manager.create_invitation(current_user, req.email, req.full_name)
    except PortalError as e:
        raise to_http_exception(e) from e


@router.get(
    "/invitations/{token}",
    response_model=PendingInvitationInfo,
    summary="Check an invitation token",
)
def get_invitation(
    token: str,
    invitation_manager: InvitationManagerDep = None,
) -> PendingInvitationInfo:
    try:
        invited = invitation_manager.get_pending_invitation(token)
    except PortalError as e:
        raise to_http_exception(e) from e
    return PendingInvitationInfo(email=invited.email, full_name=invited.full_name)


@router.post(
    "/invitations/{token}/redeem",
    response_model=LoginResponse,
    summary="Activate an invited account",
)
def redeem_invitation(
    token: str,
    req: RedeemInvitationRequest,
    invitation_manager: InvitationManagerDep = None,
    gateway: IdentityGatewayDep = None,
) -> LoginResponse:
    """Redeem an invitation token and sign the new member in.

    Raises:
        HTTPException: If the token is invalid or the password is rejected.
    """
    try:
        user = invitation_manager.redeem_invitation(token, req.password, req.confirm_password)
        session = gateway.authenticate(user.email, req.password)
    except PortalError as e:
        raise to_http_exception(e) from e
    return LoginResponse(user=user, token=session.access_token, expires_at=session.expires_at)
