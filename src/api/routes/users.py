"""Admin user management routes."""

from fastapi import APIRouter, Depends

from api.errors import to_http_exception
from api.routes.auth import get_current_user
from core.dependencies import UserManagerDep
from core.exceptions import PortalError
from schemas.user import UpdateRoleRequest, User, UserListResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserListResponse, summary="List users")
def list_users(
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> UserListResponse:
    try:
        users = user_manager.list_users(current_user)
    except PortalError as e:
        raise to_http_exception(e) from e
    return UserListResponse(users=users)


@router.patch("/{user_id}/role", response_model=User, summary="Change a user's role")
def update_role(
    user_id: str,
    req: UpdateRoleRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> User:
    try:
        return user_manager.set_role(current_user, user_id, req.role)
    except PortalError as e:
        raise to_http_exception(e) from e
