"""Drive access request schema definitions.

Request bodies keep the camelCase field names of the public endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from schemas.user import RequesterInfo


class DriveAccessRequest(BaseModel):
    id: str
    user_id: str
    user_email: str = Field(description="Contact email captured at submission time.")
    reason: str
    status: str
    admin_notes: Optional[str] = None
    approved_by: Optional[str] = None
    created_at: str
    updated_at: str
    requester: Optional[RequesterInfo] = None


class SubmitDriveAccessRequest(BaseModel):
    userId: Optional[str] = None
    userEmail: Optional[str] = None
    reason: Optional[str] = None


class DecideDriveAccessRequest(BaseModel):
    requestId: Optional[str] = None
    status: Optional[str] = None
    adminNotes: Optional[str] = None
    adminId: Optional[str] = None


class DriveAccessResponse(BaseModel):
    success: bool = True
    request: DriveAccessRequest


class DriveAccessListResponse(BaseModel):
    requests: List[DriveAccessRequest]
