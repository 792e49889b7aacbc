"""Self-service profile routes."""

from fastapi import APIRouter, Depends

from api.errors import to_http_exception
from api.routes.auth import get_current_user
from core.dependencies import ProfileManagerDep
from core.exceptions import PortalError
from schemas.profile import DashboardSummary, DiscordVerifyRequest, UpdateProfileRequest
from schemas.user import User

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=User, summary="My profile")
def get_profile(
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> User:
    try:
        return profile_manager.get_profile(current_user)
    except PortalError as e:
        raise to_http_exception(e) from e


@router.patch("", response_model=User, summary="Edit my profile")
def update_profile(
    req: UpdateProfileRequest,
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> User:
    try:
        return profile_manager.update_profile(
            current_user, full_name=req.full_name, discord_username=req.discord_username
        )
    except PortalError as e:
        raise to_http_exception(e) from e


@router.post("/discord/verify", response_model=User, summary="Verify my Discord handle")
def verify_discord(
    req: DiscordVerifyRequest,
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> User:
    """Store the Discord handle and mark it verified if the server knows it.

    Raises:
        HTTPException: 400 if verification is refused, 500 if the service fails.
    """
    try:
        return profile_manager.verify_discord(current_user, req.username)
    except PortalError as e:
        raise to_http_exception(e) from e


@router.get("/dashboard", response_model=DashboardSummary, summary="Dashboard summary")
def dashboard(
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> DashboardSummary:
    try:
        return profile_manager.dashboard(current_user)
    except PortalError as e:
        raise to_http_exception(e) from e
