"""Configuration module for the membership portal.

This module provides centralized configuration management, including directory
paths, API server settings, store and identity settings, and the outbound
notification channel. All configuration values can be overridden via
environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses. For production, set via
# CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- Store Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/membership_portal.db"
)

# Client-side bound on waiting for the store (seconds)
STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "30"))

# --- Identity Provider Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))
)

PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))

# --- Roles and Statuses ---

ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"
ROLES: List[str] = [ROLE_STUDENT, ROLE_ADMIN]

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
DECISION_STATUSES: List[str] = [STATUS_APPROVED, STATUS_REJECTED]

# --- Invitation Configuration ---

# Base URL of the activation page; the token is appended to it
INVITATION_BASE_URL: str = os.getenv("INVITATION_BASE_URL", "http://localhost:3000/invite")

# --- Notification Configuration ---

# Discord webhook receiving drive-access events. Unset disables notifications.
DISCORD_WEBHOOK_URL: Optional[str] = os.getenv("DISCORD_WEBHOOK_URL") or None
NOTIFICATION_TIMEOUT_SECONDS: float = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10"))
NOTIFICATION_MAX_ATTEMPTS: int = int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "3"))
NOTIFICATION_RETRY_BACKOFF_SECONDS: float = float(
    os.getenv("NOTIFICATION_RETRY_BACKOFF_SECONDS", "1.0")
)
NOTIFICATION_QUEUE_SIZE: int = int(os.getenv("NOTIFICATION_QUEUE_SIZE", "100"))
NOTIFICATION_FOOTER: str = os.getenv("NOTIFICATION_FOOTER", "Fokusáci Admin Panel")

# --- Discord Verification Configuration ---

DISCORD_VERIFY_URL: Optional[str] = os.getenv("DISCORD_VERIFY_URL") or None
DISCORD_VERIFY_TOKEN: Optional[str] = os.getenv("DISCORD_VERIFY_TOKEN") or None
DISCORD_VERIFY_TIMEOUT_SECONDS: float = float(
    os.getenv("DISCORD_VERIFY_TIMEOUT_SECONDS", "10")
)
