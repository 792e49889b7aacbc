from .base import Base
from .user import UserModel
from .identity import IdentityModel
from .revoked_session import RevokedSessionModel
from .drive_access_request import DriveAccessRequestModel
from .apology import ApologyModel

__all__ = [
    "Base",
    "UserModel",
    "IdentityModel",
    "RevokedSessionModel",
    "DriveAccessRequestModel",
    "ApologyModel",
]
