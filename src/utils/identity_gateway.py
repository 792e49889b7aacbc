"""Identity provider gateway.

This module wraps the identity provider: credential storage with bcrypt,
sign-in that issues JWT session tokens, resolution of the current caller from
a token, and sign-out through a revocation list.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple

import bcrypt
import pytz
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    JWT_ALGORITHM,
    JWT_SECRET_KEY,
    PASSWORD_MIN_LENGTH,
)
from core.database import store_errors
from core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from models.identity import IdentityModel
from models.revoked_session import RevokedSessionModel
from schemas.user import AuthSession, Identity, utc_now_iso
from utils.converters import model_to_identity

logger = logging.getLogger(__name__)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def normalize_email(email: Optional[str]) -> str:
    """Canonical form used to key identities and users by email."""
    return (email or "").strip().lower()


def validate_new_password(password: Optional[str], confirm_password: Optional[str]) -> None:
    """Check a newly chosen password.

    Raises:
        ValidationError: If the two entries differ or the password is too short.
    """
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )


class IdentityGateway:
    """Sign-in, sign-out and credential management for portal accounts."""

    def __init__(self, db: Session):
        """Initialize IdentityGateway.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def _find_model_by_email(self, email: str) -> Optional[IdentityModel]:
        with store_errors(self.db, "load identity"):
            return (
                self.db.query(IdentityModel)
                .filter(IdentityModel.email == normalize_email(email))
                .first()
            )

    def find_by_email(self, email: str) -> Optional[Identity]:
        model = self._find_model_by_email(email)
        return model_to_identity(model) if model else None

    def get_identity(self, identity_id: str) -> Optional[Identity]:
        with store_errors(self.db, "load identity"):
            model = (
                self.db.query(IdentityModel)
                .filter(IdentityModel.identity_id == identity_id)
                .first()
            )
        return model_to_identity(model) if model else None

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        identity_id: Optional[str] = None,
    ) -> Identity:
        """Create a new identity.

        Args:
            email: Sign-in email.
            password: Plain text password.
            full_name: Optional provider-side display name.
            identity_id: Id to bind the identity to; generated when omitted.

        Returns:
            The created Identity.

        Raises:
            ConflictError: If an identity with this email or id already exists.
            DependencyError: If the store call fails.
        """
        now = utc_now_iso()
        model = IdentityModel(
            identity_id=identity_id or str(uuid.uuid4()),
            email=normalize_email(email),
            password_hash=self.hash_password(password),
            full_name=full_name,
            created_at=now,
            updated_at=now,
        )
        try:
            with store_errors(self.db, "create identity"):
                self.db.add(model)
                self.db.commit()
                self.db.refresh(model)
        except IntegrityError as e:
            raise ConflictError(f"An account for '{model.email}' already exists") from e

        logger.info("Created identity %s", model.identity_id)
        return model_to_identity(model)

    def update_password(self, identity_id: str, new_password: str) -> None:
        """Replace the password of an identity.

        Raises:
            NotFoundError: If the identity does not exist.
            DependencyError: If the store call fails.
        """
        with store_errors(self.db, "update password"):
            model = (
                self.db.query(IdentityModel)
                .filter(IdentityModel.identity_id == identity_id)
                .first()
            )
            if model is None:
                raise NotFoundError("Identity", identity_id)
            model.password_hash = self.hash_password(new_password)
            model.updated_at = utc_now_iso()
            self.db.commit()
        logger.info("Updated password for identity %s", identity_id)

    def create_access_token(self, identity: Identity) -> Tuple[str, str]:
        """Issue a signed session token for an identity.

        Returns:
            Tuple of (encoded token, ISO expiry time).
        """
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        payload = {
            "sub": identity.identity_id,
            "email": identity.email,
            "jti": uuid.uuid4().hex,
            "exp": expire,
        }
        token = jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
        return token, expire.isoformat()

    def authenticate(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password.

        Raises:
            AuthenticationError: If the credentials are not accepted.
            DependencyError: If the store call fails.
        """
        model = self._find_model_by_email(email)
        if model is None or not self.verify_password(password or "", model.password_hash):
            raise AuthenticationError("Invalid email or password")

        identity = model_to_identity(model)
        token, expires_at = self.create_access_token(identity)
        logger.info("Identity %s signed in", identity.identity_id)
        return AuthSession(access_token=token, expires_at=expires_at, identity=identity)

    def _decode(self, token: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
        except JWTError:
            return None
        if not payload.get("sub") or not payload.get("jti"):
            return None
        return payload

    def current_identity(self, token: Optional[str]) -> Optional[Identity]:
        """Resolve the identity behind a session token.

        Returns:
            The Identity, or None for a missing, invalid, expired or revoked token.

        Raises:
            DependencyError: If the store call fails.
        """
        if not token:
            return None
        payload = self._decode(token)
        if payload is None:
            return None

        with store_errors(self.db, "check session"):
            revoked = (
                self.db.query(RevokedSessionModel)
                .filter(RevokedSessionModel.jti == payload["jti"])
                .first()
            )
        if revoked is not None:
            return None
        return self.get_identity(payload["sub"])

    def end_session(self, token: str) -> None:
        """Sign out by revoking a session token.

        Revoking an invalid or already revoked token is a no-op.

        Raises:
            DependencyError: If the store call fails.
        """
        payload = self._decode(token)
        if payload is None:
            return

        expires_at = None
        if payload.get("exp"):
            expires_at = datetime.fromtimestamp(payload["exp"], pytz.utc).isoformat()

        with store_errors(self.db, "end session"):
            existing = (
                self.db.query(RevokedSessionModel)
                .filter(RevokedSessionModel.jti == payload["jti"])
                .first()
            )
            if existing is not None:
                return
            self.db.add(
                RevokedSessionModel(
                    jti=payload["jti"],
                    identity_id=payload["sub"],
                    revoked_at=utc_now_iso(),
                    expires_at=expires_at,
                )
            )
            self.db.commit()
        logger.info("Identity %s signed out", payload["sub"])
