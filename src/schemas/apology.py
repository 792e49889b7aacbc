"""Apology (absence excuse) schema definitions."""

from typing import List, Optional

from pydantic import BaseModel, Field

from schemas.user import RequesterInfo


class Apology(BaseModel):
    id: str
    user_id: str
    activity_date: str
    reason: str
    status: str
    admin_notes: Optional[str] = None
    created_at: str
    updated_at: str
    requester: Optional[RequesterInfo] = None


class CreateApologyRequest(BaseModel):
    activity_date: Optional[str] = Field(
        default=None,
        description="ISO date (YYYY-MM-DD) of the missed activity.",
    )
    reason: Optional[str] = None


class DecideApologyRequest(BaseModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


class ApologyResponse(BaseModel):
    success: bool = True
    apology: Apology


class ApologyListResponse(BaseModel):
    apologies: List[Apology]
