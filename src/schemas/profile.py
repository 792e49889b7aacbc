"""Profile schema definitions.

This module defines the bodies used by the self-service profile routes.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from schemas.apology import Apology
from schemas.drive_access import DriveAccessRequest


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = None
    discord_username: Optional[str] = Field(
        default=None,
        description="Blank clears the stored handle; omitted leaves it unchanged.",
    )


class DiscordVerifyRequest(BaseModel):
    username: Optional[str] = None


class DashboardSummary(BaseModel):
    """Overview shown to a member after sign-in."""

    apologies: int = Field(description="Number of recent apologies listed.")
    recent_apologies: List[Apology]
    drive_access_status: Optional[DriveAccessRequest] = Field(
        default=None,
        description="The member's latest drive access request, if any.",
    )
