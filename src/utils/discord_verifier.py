"""Client for the external Discord role verification endpoint."""

import logging
from typing import Optional

import httpx

from config import (
    DISCORD_VERIFY_TIMEOUT_SECONDS,
    DISCORD_VERIFY_TOKEN,
    DISCORD_VERIFY_URL,
)
from core.exceptions import DependencyError

logger = logging.getLogger(__name__)


class DiscordVerifier:
    """Asks the verification service whether a Discord handle joined the server."""

    def __init__(
        self,
        verify_url: Optional[str] = DISCORD_VERIFY_URL,
        token: Optional[str] = DISCORD_VERIFY_TOKEN,
        timeout: float = DISCORD_VERIFY_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.verify_url = verify_url
        self.token = token
        self.timeout = timeout
        self._client = client

    def verify(self, username: str) -> bool:
        """Check a Discord handle.

        Args:
            username: The Discord handle to verify.

        Returns:
            True if the service accepted the handle.

        Raises:
            DependencyError: If verification is not configured or the service
                cannot be reached.
        """
        if not self.verify_url:
            raise DependencyError("Discord verification is not configured")

        params = {"username": username}
        if self.token:
            params["token"] = self.token

        try:
            if self._client is not None:
                response = self._client.get(self.verify_url, params=params, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(self.verify_url, params=params)
        except httpx.HTTPError as e:
            logger.error("Discord verification request failed: %s", e)
            raise DependencyError(f"Discord verification failed: {e}") from e

        logger.info("Discord verification for %s returned %s", username, response.status_code)
        return response.is_success
