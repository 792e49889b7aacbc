"""Custom exception classes for the membership portal.

This module defines application-specific exceptions following Google Python
Style Guide. Managers raise them; routes translate them into HTTP errors.
"""

from typing import Optional


class PortalError(Exception):
    """Base exception for all membership portal errors."""

    pass


class ValidationError(PortalError):
    """Raised when input is missing or malformed."""

    pass


class AuthenticationError(PortalError):
    """Raised when credentials or a session token are not accepted."""

    pass


class AuthorizationError(PortalError):
    """Raised when the caller lacks the role an operation requires."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class ConflictError(PortalError):
    """Raised when an operation would break a uniqueness invariant."""

    pass


class NotFoundError(PortalError):
    """Raised when a requested entity cannot be found."""

    def __init__(self, entity: str, entity_id: str, message: Optional[str] = None):
        """Initialize the exception.

        Args:
            entity: Human readable entity name, e.g. "Drive access request".
            entity_id: The identifier that did not resolve.
            message: Optional message replacing the default one.
        """
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} '{entity_id}' not found")


class InvalidTokenError(NotFoundError):
    """Raised when an invitation token is unknown or already redeemed."""

    def __init__(self):
        super().__init__("Invitation", "", "Invalid or expired invitation token")


class DependencyError(PortalError):
    """Raised when the store, identity provider or another collaborator fails."""

    pass
