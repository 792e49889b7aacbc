"""Drive access request routes.

The two POST endpoints are the public contract used by the member and admin
pages; their bodies keep camelCase field names.
"""

from fastapi import APIRouter, Depends, status

from api.errors import to_http_exception
from api.routes.auth import get_current_user
from core.dependencies import DriveAccessManagerDep
from core.exceptions import PortalError
from schemas.drive_access import (
    DecideDriveAccessRequest,
    DriveAccessListResponse,
    DriveAccessResponse,
    SubmitDriveAccessRequest,
)
from schemas.user import User

router = APIRouter(prefix="/drive-access", tags=["Drive Access"])


@router.post("/request", response_model=DriveAccessResponse, summary="Request drive access")
def request_drive_access(
    req: SubmitDriveAccessRequest,
    drive_access_manager: DriveAccessManagerDep,
    current_user: User = Depends(get_current_user),
) -> DriveAccessResponse:
    """Submit a drive access request.

    Args:
        req: Body with userId, userEmail and reason.
        drive_access_manager: Injected DriveAccessManager instance.
        current_user: Current authenticated user.

    Returns:
        DriveAccessResponse with the created request.

    Raises:
        HTTPException: 400 for missing fields or an existing pending request.
    """
    try:
        request = drive_access_manager.submit(
            current_user, req.userId, req.userEmail, req.reason
        )
    except PortalError as e:
        raise to_http_exception(e, conflict_status=status.HTTP_400_BAD_REQUEST) from e
    return DriveAccessResponse(request=request)


@router.post("/decide", response_model=DriveAccessResponse, summary="Approve or reject a request")
def decide_drive_access(
    req: DecideDriveAccessRequest,
    drive_access_manager: DriveAccessManagerDep,
    current_user: User = Depends(get_current_user),
) -> DriveAccessResponse:
    """Approve or reject a drive access request. Admin only.

    Args:
        req: Body with requestId, status, optional adminNotes, and adminId.
        drive_access_manager: Injected DriveAccessManager instance.
        current_user: Current authenticated user.

    Returns:
        DriveAccessResponse with the request and the requester's name and email.

    Raises:
        HTTPException: 400 for bad input, 403 for non-admins, 404 for unknown
            requests, 500 for store failures.
    """
    try:
        request = drive_access_manager.decide(
            current_user, req.requestId, req.status, req.adminNotes, req.adminId
        )
    except PortalError as e:
        raise to_http_exception(e) from e
    return DriveAccessResponse(request=request)


@router.get("/requests/mine", response_model=DriveAccessListResponse, summary="My requests")
def list_my_requests(
    drive_access_manager: DriveAccessManagerDep,
    current_user: User = Depends(get_current_user),
) -> DriveAccessListResponse:
    try:
        requests = drive_access_manager.list_for_user(current_user)
    except PortalError as e:
        raise to_http_exception(e) from e
    return DriveAccessListResponse(requests=requests)


@router.get("/requests", response_model=DriveAccessListResponse, summary="All requests")
def list_all_requests(
    drive_access_manager: DriveAccessManagerDep,
    current_user: User = Depends(get_current_user),
) -> DriveAccessListResponse:
    """List every drive access request, newest first. Admin only."""
    try:
        requests = drive_access_manager.list_all(current_user)
    except PortalError as e:
        raise to_http_exception(e) from e
    return DriveAccessListResponse(requests=requests)
