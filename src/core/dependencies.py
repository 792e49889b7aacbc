"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes,
following Google Python Style Guide and FastAPI best practices.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from config import DISCORD_WEBHOOK_URL
from core.database import get_db
from utils import access_request_engine
from utils import discord_verifier
from utils import identity_gateway
from utils import invitation_manager
from utils import notification_sink
from utils import profile_manager
from utils import profile_resolver
from utils import user_manager

# Process-wide notification sink (owns the delivery worker)
_notification_sink_instance: notification_sink.NotificationSink = None


def get_notification_sink() -> notification_sink.NotificationSink:
    """Get the NotificationSink singleton.

    Returns:
        DiscordWebhookSink when a webhook URL is configured, otherwise a
        NullNotificationSink.
    """
    global _notification_sink_instance
    if _notification_sink_instance is None:
        if DISCORD_WEBHOOK_URL:
            _notification_sink_instance = notification_sink.DiscordWebhookSink(
                DISCORD_WEBHOOK_URL
            )
        else:
            _notification_sink_instance = notification_sink.NullNotificationSink()
    return _notification_sink_instance


def shutdown_notification_sink() -> None:
    """Drain and stop the notification sink, if one was created."""
    global _notification_sink_instance
    if _notification_sink_instance is not None:
        _notification_sink_instance.close()
        _notification_sink_instance = None


def get_discord_verifier() -> discord_verifier.DiscordVerifier:
    return discord_verifier.DiscordVerifier()


def get_identity_gateway(db: Session = Depends(get_db)) -> identity_gateway.IdentityGateway:
    """Get IdentityGateway instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        IdentityGateway instance.
    """
    return identity_gateway.IdentityGateway(db)


def get_profile_resolver(db: Session = Depends(get_db)) -> profile_resolver.ProfileResolver:
    """Get ProfileResolver instance with request-scoped DB session."""
    return profile_resolver.ProfileResolver(db)


def get_invitation_manager(
    db: Session = Depends(get_db),
) -> invitation_manager.InvitationManager:
    """Get InvitationManager instance with request-scoped DB session."""
    return invitation_manager.InvitationManager(db)


def get_drive_access_manager(
    db: Session = Depends(get_db),
    sink: notification_sink.NotificationSink = Depends(get_notification_sink),
) -> access_request_engine.DriveAccessManager:
    """Get DriveAccessManager instance with request-scoped DB session.

    Args:
        db: Database session.
        sink: Process-wide notification sink.

    Returns:
        DriveAccessManager instance.
    """
    return access_request_engine.DriveAccessManager(db, notifier=sink)


def get_apology_manager(
    db: Session = Depends(get_db),
) -> access_request_engine.ApologyManager:
    """Get ApologyManager instance with request-scoped DB session."""
    return access_request_engine.ApologyManager(db)


def get_profile_manager(
    db: Session = Depends(get_db),
    verifier: discord_verifier.DiscordVerifier = Depends(get_discord_verifier),
) -> profile_manager.ProfileManager:
    """Get ProfileManager instance with request-scoped DB session."""
    return profile_manager.ProfileManager(db, verifier=verifier)


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session."""
    return user_manager.UserManager(db)


# Type aliases for dependency injection
IdentityGatewayDep = Annotated[
    identity_gateway.IdentityGateway, Depends(get_identity_gateway)
]
ProfileResolverDep = Annotated[
    profile_resolver.ProfileResolver, Depends(get_profile_resolver)
]
InvitationManagerDep = Annotated[
    invitation_manager.InvitationManager, Depends(get_invitation_manager)
]
DriveAccessManagerDep = Annotated[
    access_request_engine.DriveAccessManager, Depends(get_drive_access_manager)
]
ApologyManagerDep = Annotated[
    access_request_engine.ApologyManager, Depends(get_apology_manager)
]
ProfileManagerDep = Annotated[
    profile_manager.ProfileManager, Depends(get_profile_manager)
]
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
