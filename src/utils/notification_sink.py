"""Best-effort outbound notifications.

Workflow events are turned into Discord webhook messages and handed to a
bounded in-process queue. A single worker thread delivers them with a few
retries and then drops them. Nothing in this module ever raises into the
workflow that emitted the event.
"""

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from config import (
    NOTIFICATION_FOOTER,
    NOTIFICATION_MAX_ATTEMPTS,
    NOTIFICATION_QUEUE_SIZE,
    NOTIFICATION_RETRY_BACKOFF_SECONDS,
    NOTIFICATION_TIMEOUT_SECONDS,
    STATUS_APPROVED,
)
from schemas.user import utc_now_iso

logger = logging.getLogger(__name__)

# Event kinds
DRIVE_ACCESS_REQUESTED = "drive_access_requested"
DRIVE_ACCESS_DECIDED = "drive_access_decided"

# Embed colors
COLOR_NEW_REQUEST = 0x3498DB
COLOR_APPROVED = 0x27AE60
COLOR_REJECTED = 0xE74C3C

_STOP = object()


class NotificationSink(ABC):
    """Interface of a fire-and-forget event channel."""

    @abstractmethod
    def emit(self, kind: str, payload: Dict[str, Any]) -> None:
        """Hand an event to the channel. Implementations must never raise."""

    def close(self, timeout: Optional[float] = None) -> None:
        pass


class NullNotificationSink(NotificationSink):
    """Used when no channel is configured."""

    def emit(self, kind: str, payload: Dict[str, Any]) -> None:
        logger.debug("Notification channel disabled, dropping %s", kind)


def _field(name: str, value: Any, inline: bool) -> Dict[str, Any]:
    return {"name": name, "value": str(value) if value else "Unknown", "inline": inline}


def build_discord_message(kind: str, payload: Dict[str, Any], footer: str) -> Dict[str, Any]:
    """Build the webhook body for an event.

    Args:
        kind: One of DRIVE_ACCESS_REQUESTED or DRIVE_ACCESS_DECIDED.
        payload: Event fields.
        footer: Footer text shown under the embed.

    Returns:
        JSON-serializable Discord webhook body.

    Raises:
        ValueError: If the event kind is unknown.
        KeyError: If a required payload field is missing.
    """
    if kind == DRIVE_ACCESS_REQUESTED:
        embed = {
            "title": "🗂️ New Shared Drive Access Request",
            "color": COLOR_NEW_REQUEST,
            "fields": [
                _field("👤 User", payload.get("user_name"), True),
                _field("📧 Email", payload["user_email"], True),
                _field("📝 Reason", payload["reason"], False),
                _field("🆔 Request ID", payload["request_id"], True),
            ],
        }
    elif kind == DRIVE_ACCESS_DECIDED:
        status = payload["status"]
        approved = status == STATUS_APPROVED
        emoji = "✅" if approved else "❌"
        embed = {
            "title": f"{emoji} Drive Access Request {status.capitalize()}",
            "color": COLOR_APPROVED if approved else COLOR_REJECTED,
            "fields": [
                _field("👤 User", payload.get("user_name"), True),
                _field("📧 Email", payload["user_email"], True),
                {
                    "name": "📝 Admin Notes",
                    "value": payload.get("admin_notes") or "No notes provided",
                    "inline": False,
                },
            ],
        }
    else:
        raise ValueError(f"Unknown notification kind: {kind}")

    embed["timestamp"] = utc_now_iso()
    embed["footer"] = {"text": footer}
    return {"embeds": [embed]}


class DiscordWebhookSink(NotificationSink):
    """Delivers events to a Discord webhook from a background worker."""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = NOTIFICATION_TIMEOUT_SECONDS,
        max_attempts: int = NOTIFICATION_MAX_ATTEMPTS,
        backoff_seconds: float = NOTIFICATION_RETRY_BACKOFF_SECONDS,
        queue_size: int = NOTIFICATION_QUEUE_SIZE,
        footer: str = NOTIFICATION_FOOTER,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize DiscordWebhookSink.

        Args:
            webhook_url: Discord webhook URL.
            timeout: Per-request timeout in seconds.
            max_attempts: Delivery attempts before an event is dropped.
            backoff_seconds: Base delay between attempts; grows linearly.
            queue_size: Events waiting for delivery before new ones are dropped.
            footer: Footer text of every embed.
            client: Optional httpx client, mainly for tests.
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.footer = footer
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._closed = False

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="discord-webhook-sink", daemon=True
                )
                self._worker.start()

    def emit(self, kind: str, payload: Dict[str, Any]) -> None:
        """Queue an event for delivery. Never raises."""
        if self._closed:
            logger.warning("Notification sink closed, dropping %s", kind)
            return
        try:
            message = build_discord_message(kind, payload, self.footer)
        except (KeyError, ValueError) as e:
            logger.error("Dropping malformed %s notification: %s", kind, e)
            return

        self._ensure_worker()
        try:
            self._queue.put_nowait((kind, message))
        except queue.Full:
            logger.warning("Notification queue full, dropping %s", kind)

    def deliver(self, kind: str, message: Dict[str, Any]) -> bool:
        """POST one message, retrying transport and HTTP errors.

        Returns:
            True if the webhook accepted the message, False if it was dropped.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self._client.post(
                    self.webhook_url, json=message, timeout=self.timeout
                )
                response.raise_for_status()
                logger.info("Delivered %s notification", kind)
                return True
            except httpx.HTTPError as e:
                logger.warning(
                    "Notification %s attempt %d/%d failed: %s",
                    kind,
                    attempt,
                    self.max_attempts,
                    e,
                )
                if attempt < self.max_attempts:
                    time.sleep(self.backoff_seconds * attempt)

        logger.error("Dropping %s notification after %d attempts", kind, self.max_attempts)
        return False

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                kind, message = item
                self.deliver(kind, message)
            except Exception:
                logger.exception("Notification worker failed on an event")
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every queued event was delivered or dropped."""
        if self._worker is not None and self._worker.is_alive():
            self._queue.join()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the worker after the queued events and release the client."""
        self._closed = True
        worker = self._worker
        if worker is not None and worker.is_alive():
            self._queue.put(_STOP)
            worker.join(timeout)
        if self._owns_client:
            self._client.close()
