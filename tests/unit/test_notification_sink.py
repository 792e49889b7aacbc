"""
Unit tests for the best-effort Discord notification sink.
"""
import threading

import httpx
import pytest

from utils.notification_sink import (
    COLOR_APPROVED,
    COLOR_NEW_REQUEST,
    COLOR_REJECTED,
    DRIVE_ACCESS_DECIDED,
    DRIVE_ACCESS_REQUESTED,
    DiscordWebhookSink,
    NotificationSink,
    NullNotificationSink,
    build_discord_message,
)

WEBHOOK_URL = "https://discord.test/api/webhooks/1/abc"

REQUESTED = {
    "request_id": "req-1",
    "user_name": "Student One",
    "user_email": "student@example.com",
    "reason": "need textbook",
}


def make_sink(handler, **kwargs):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    options = {"max_attempts": 3, "backoff_seconds": 0, "footer": "Test Panel"}
    options.update(kwargs)
    return DiscordWebhookSink(WEBHOOK_URL, client=client, **options)


@pytest.mark.unit
class TestBuildDiscordMessage:
    """Test webhook body construction."""

    def test_new_request_embed(self):
        message = build_discord_message(DRIVE_ACCESS_REQUESTED, REQUESTED, "Test Panel")

        embed = message["embeds"][0]
        values = {field["name"]: field["value"] for field in embed["fields"]}
        assert embed["color"] == COLOR_NEW_REQUEST
        assert embed["footer"] == {"text": "Test Panel"}
        assert "timestamp" in embed
        assert "Student One" in values.values()
        assert "req-1" in values.values()

    @pytest.mark.parametrize(
        "status, color", [("approved", COLOR_APPROVED), ("rejected", COLOR_REJECTED)]
    )
    def test_decision_embed(self, status, color):
        payload = {
            "request_id": "req-1",
            "status": status,
            "user_name": None,
            "user_email": "student@example.com",
            "admin_notes": None,
        }

        embed = build_discord_message(DRIVE_ACCESS_DECIDED, payload, "Test Panel")["embeds"][0]

        values = [field["value"] for field in embed["fields"]]
        assert embed["color"] == color
        assert status.capitalize() in embed["title"]
        assert "Unknown" in values
        assert "No notes provided" in values

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            build_discord_message("something_else", {}, "footer")

    def test_missing_field(self):
        with pytest.raises(KeyError):
            build_discord_message(DRIVE_ACCESS_REQUESTED, {"user_name": "x"}, "footer")


@pytest.mark.unit
class TestDelivery:
    """Test synchronous delivery with retries."""

    def test_success_on_first_attempt(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(204)

        sink = make_sink(handler)
        message = build_discord_message(DRIVE_ACCESS_REQUESTED, REQUESTED, "Test Panel")

        assert sink.deliver(DRIVE_ACCESS_REQUESTED, message) is True
        assert len(calls) == 1
        assert calls[0].url == WEBHOOK_URL
        sink.close()

    def test_retries_then_succeeds(self):
        responses = iter([httpx.Response(500), httpx.Response(429), httpx.Response(204)])
        sink = make_sink(lambda request: next(responses))

        assert sink.deliver(DRIVE_ACCESS_REQUESTED, {"embeds": []}) is True
        sink.close()

    def test_drops_after_max_attempts(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("unreachable", request=request)

        sink = make_sink(handler, max_attempts=2)

        assert sink.deliver(DRIVE_ACCESS_REQUESTED, {"embeds": []}) is False
        assert len(calls) == 2
        sink.close()


@pytest.mark.unit
class TestEmit:
    """Test the fire-and-forget queue."""

    def test_emitted_event_is_delivered_in_background(self):
        bodies = []

        def handler(request):
            bodies.append(request.content)
            return httpx.Response(204)

        sink = make_sink(handler)
        sink.emit(DRIVE_ACCESS_REQUESTED, REQUESTED)
        sink.flush()

        assert len(bodies) == 1
        assert b"need textbook" in bodies[0]
        sink.close()

    def test_emit_never_raises_when_channel_fails(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        sink = make_sink(handler, max_attempts=1)
        sink.emit(DRIVE_ACCESS_REQUESTED, REQUESTED)
        sink.flush()
        sink.close()

    def test_malformed_event_is_dropped(self):
        calls = []
        sink = make_sink(lambda request: calls.append(request) or httpx.Response(204))

        sink.emit("unknown_kind", REQUESTED)
        sink.emit(DRIVE_ACCESS_REQUESTED, {"user_name": "missing fields"})
        sink.flush()

        assert calls == []
        sink.close()

    def test_full_queue_drops_new_events(self):
        release = threading.Event()
        calls = []

        def handler(request):
            calls.append(request)
            release.wait(5)
            return httpx.Response(204)

        sink = make_sink(handler, queue_size=1)
        for _ in range(5):
            sink.emit(DRIVE_ACCESS_REQUESTED, REQUESTED)
        release.set()
        sink.flush()

        # At most one event in flight plus one queued
        assert 1 <= len(calls) <= 2
        sink.close()

    def test_emit_after_close_is_ignored(self):
        calls = []
        sink = make_sink(lambda request: calls.append(request) or httpx.Response(204))
        sink.close()

        sink.emit(DRIVE_ACCESS_REQUESTED, REQUESTED)

        assert calls == []

    def test_close_drains_queue(self):
        calls = []
        sink = make_sink(lambda request: calls.append(request) or httpx.Response(204))
        sink.emit(DRIVE_ACCESS_REQUESTED, REQUESTED)
        sink.emit(DRIVE_ACCESS_REQUESTED, REQUESTED)

        sink.close()

        assert len(calls) == 2

    def test_null_sink_accepts_anything(self):
        sink = NullNotificationSink()
        sink.emit(DRIVE_ACCESS_REQUESTED, {})
        sink.close()

    def test_sink_interface_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            NotificationSink()

    def test_sink_without_emit_is_rejected(self):
        class Incomplete(NotificationSink):
            pass

        with pytest.raises(TypeError):
            Incomplete()
