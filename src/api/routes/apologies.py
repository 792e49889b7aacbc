"""Apology (absence excuse) routes."""

from typing import Optional

from fastapi import APIRouter, Depends

from api.errors import to_http_exception
from api.routes.auth import get_current_user
from core.dependencies import ApologyManagerDep
from core.exceptions import PortalError
from schemas.apology import (
    ApologyListResponse,
    ApologyResponse,
    CreateApologyRequest,
    DecideApologyRequest,
)
from schemas.user import User

router = APIRouter(prefix="/apologies", tags=["Apologies"])


@router.post("", response_model=ApologyResponse, summary="Submit an apology")
def create_apology(
    req: CreateApologyRequest,
    apology_manager: ApologyManagerDep,
    current_user: User = Depends(get_current_user),
) -> ApologyResponse:
    try:
        apology = apology_manager.submit(current_user, req.activity_date, req.reason)
    except PortalError as e:
        raise to_http_exception(e) from e
    return ApologyResponse(apology=apology)


@router.get("/mine", response_model=ApologyListResponse, summary="My apologies")
def list_my_apologies(
    apology_manager: ApologyManagerDep,
    current_user: User = Depends(get_current_user),
) -> ApologyListResponse:
    try:
        apologies = apology_manager.list_for_user(current_user)
    except PortalError as e:
        raise to_http_exception(e) from e
    return ApologyListResponse(apologies=apologies)


@router.get("", response_model=ApologyListResponse, summary="All apologies")
def list_apologies(
    apology_manager: ApologyManagerDep,
    status: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> ApologyListResponse:
    """List apologies, optionally filtered by status. Admin only."""
    try:
        apologies = apology_manager.list_all(current_user, status=status)
    except PortalError as e:
        raise to_http_exception(e) from e
    return ApologyListResponse(apologies=apologies)


@router.post(
    "/{apology_id}/decide",
    response_model=ApologyResponse,
    summary="Approve or reject an apology",
)
def decide_apology(
    apology_id: str,
    req: DecideApologyRequest,
    apology_manager: ApologyManagerDep,
    current_user: User = Depends(get_current_user),
) -> ApologyResponse:
    """Approve or reject an apology. Admin only; notes are optional."""
    try:
        apology = apology_manager.decide(current_user, apology_id, req.status, req.admin_notes)
    except PortalError as e:
        raise to_http_exception(e) from e
    return ApologyResponse(apology=apology)
