"""
Forward-email endpoint tests.

Tests mock the shared mail channel; no SMTP connections are made.

Coverage:
  - JSON and form submissions → 204, one dispatch, correct email content
  - malformed bodies → 500 error page, nothing dispatched
  - transport failures → 500 error page, no retry
  - configuration failures → 500 error page
  - response headers on both paths
  - HTML_ESCAPE_FIELDS toggle
"""

import logging
import os
import re
from urllib.parse import urlencode
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# Ensure env vars are set before importing anything that triggers app imports
os.environ.setdefault("SMTP_HOST", "smtp.example.com")
os.environ.setdefault("SMTP_USER", "relay@example.com")
os.environ.setdefault("SMTP_PASSWORD", "test-password")
os.environ.setdefault("MAIL_TO", "inbox@example.com")

from fastapi.testclient import TestClient

from app.services.errors import DispatchError
from app.services.mail_dispatcher import MailConfig

ENDPOINT = "/api/forward-email"
FIXED_TS = "19 October 2026 at 03:45:12 pm"
TIMESTAMP_RE = re.compile(r"Error occurred at: \d{1,2} [A-Z][a-z]+ \d{4} at \d{2}:\d{2}:\d{2} (am|pm)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_channel(send_side_effect=None) -> MagicMock:
    """Build a fake MailChannel whose send() is an AsyncMock."""
    channel = MagicMock()
    channel.config = MailConfig(
        host="smtp.example.com",
        port=465,
        username="relay@example.com",
        password="test-password",
        from_email="relay@example.com",
        from_name="Notification Relay",
        to_email="inbox@example.com",
        subject="New Notification",
    )
    channel.send = AsyncMock(side_effect=send_side_effect)
    return channel


def _sent_html(channel: MagicMock) -> str:
    message = channel.send.await_args.args[0]
    return message.get_payload(decode=True).decode("utf-8")


def _assert_html_no_store(response) -> None:
    assert response.headers["content-type"].startswith("text/html")
    assert response.headers["cache-control"] == "no-store"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def client():
    """Return a TestClient for the FastAPI app."""
    from app.main import app
    return TestClient(app)


@pytest.fixture()
def channel():
    """Patch the shared mail channel with a fake that accepts every message."""
    fake = _make_channel()
    with patch("app.routers.forward_email.get_mail_channel", return_value=fake):
        yield fake


# ===========================================================================
# Success path
# ===========================================================================

class TestForwardSuccess:
    """Accepted submissions return an empty 204 after exactly one dispatch."""

    def test_scenario_a_json_submission(self, client, channel):
        response = client.post(ENDPOINT, json={"text": "Hello", "user": "alice"})

        assert response.status_code == 204
        assert response.content == b""
        _assert_html_no_store(response)
        channel.send.assert_awaited_once()

        html = _sent_html(channel)
        assert '<div class="field">Hello</div>' in html
        assert '<span class="field-label">user:</span>' in html
        assert "<span> alice</span>" in html

    def test_form_submission(self, client, channel):
        response = client.post(
            ENDPOINT,
            content=urlencode({"text": "Hi", "email": "bob@example.com"}),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 204
        html = _sent_html(channel)
        assert '<div class="field">Hi</div>' in html
        assert "<span> bob@example.com</span>" in html

    def test_email_is_addressed_and_marked_bulk(self, client, channel):
        client.post(ENDPOINT, json={"text": "Hello"})

        message = channel.send.await_args.args[0]
        assert message["To"] == "inbox@example.com"
        assert message["Precedence"] == "bulk"
        assert message["Auto-Submitted"] == "auto-generated"
        assert message["X-Auto-Response-Suppress"] == "All"

    def test_fields_appear_in_submission_order(self, client, channel):
        client.post(ENDPOINT, json={"zeta": "1", "text": "t", "alpha": "2"})

        html = _sent_html(channel)
        assert html.index(">zeta:<") < html.index(">alpha:<")

    def test_empty_body_still_dispatches_one_email(self, client, channel):
        response = client.post(ENDPOINT, content=b"")

        assert response.status_code == 204
        channel.send.assert_awaited_once()
        html = _sent_html(channel)
        assert html.startswith("<!DOCTYPE html>")
        assert "Additional Information" not in html

    def test_scenario_d_colon_in_value(self, client, channel):
        client.post(ENDPOINT, json={"note": "time: 10:30"})

        html = _sent_html(channel)
        assert '<span class="field-label">note:</span>' in html
        assert "<span> time: 10:30</span>" in html

    def test_non_string_json_values(self, client, channel):
        client.post(ENDPOINT, json={"count": 3, "subscribed": True, "tags": ["a", "b"]})

        html = _sent_html(channel)
        assert "<span> 3</span>" in html
        assert "<span> true</span>" in html
        assert '<span> ["a","b"]</span>' in html

    def test_json_and_form_produce_same_email(self, client, channel):
        fields = {"text": "Hello", "user": "alice", "note": "time: 10:30"}

        with patch("app.routers.forward_email.current_timestamp", return_value=FIXED_TS):
            client.post(ENDPOINT, json=fields)
            from_json = _sent_html(channel)
            client.post(
                ENDPOINT,
                content=urlencode(fields),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            from_form = _sent_html(channel)

        assert from_json == from_form
        assert FIXED_TS in from_json

    @pytest.mark.parametrize("text", [None, False])
    def test_null_or_false_text_omits_primary_block(self, client, channel, text):
        response = client.post(ENDPOINT, json={"text": text})

        assert response.status_code == 204
        html = _sent_html(channel)
        assert '<div class="field">' not in html
        assert "Additional Information" not in html

    def test_values_unescaped_by_default(self, client, channel):
        with patch.dict(os.environ, {"HTML_ESCAPE_FIELDS": ""}):
            client.post(ENDPOINT, json={"text": "<b>bold</b>"})

        assert '<div class="field"><b>bold</b></div>' in _sent_html(channel)

    def test_escape_toggle(self, client, channel):
        with patch.dict(os.environ, {"HTML_ESCAPE_FIELDS": "true"}):
            client.post(ENDPOINT, json={"text": "<b>bold</b>"})

        assert '<div class="field">&lt;b&gt;bold&lt;/b&gt;</div>' in _sent_html(channel)


# ===========================================================================
# Failure path
# ===========================================================================

class TestForwardFailure:
    """Every failure yields the same generic 500 page."""

    def test_scenario_b_malformed_json(self, client, channel):
        response = client.post(
            ENDPOINT,
            content=b"{not valid",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
        _assert_html_no_store(response)
        assert "Processing Error" in response.text
        assert TIMESTAMP_RE.search(response.text)
        channel.send.assert_not_awaited()

    def test_non_object_json(self, client, channel):
        response = client.post(ENDPOINT, json=["a", "b"])

        assert response.status_code == 500
        channel.send.assert_not_awaited()

    def test_scenario_c_dispatch_rejected_is_not_retried(self, client):
        fake = _make_channel(send_side_effect=DispatchError("535 Authentication failed"))

        with patch("app.routers.forward_email.get_mail_channel", return_value=fake):
            response = client.post(ENDPOINT, json={"text": "Hello", "user": "alice"})

        assert response.status_code == 500
        _assert_html_no_store(response)
        assert TIMESTAMP_RE.search(response.text)
        assert "535" not in response.text
        fake.send.assert_awaited_once()

    def test_missing_configuration(self, client):
        with patch(
            "app.routers.forward_email.get_mail_channel",
            side_effect=ValueError("Environment variable SMTP_HOST is required."),
        ):
            response = client.post(ENDPOINT, json={"text": "Hello"})

        assert response.status_code == 500
        assert "SMTP_HOST" not in response.text

    def test_decode_and_dispatch_failures_look_identical(self, client):
        fake = _make_channel(send_side_effect=DispatchError("rejected"))

        with patch("app.routers.forward_email.get_mail_channel", return_value=fake), \
             patch("app.routers.forward_email.current_timestamp", return_value=FIXED_TS):
            decode_failure = client.post(
                ENDPOINT, content=b"{", headers={"Content-Type": "application/json"}
            )
            dispatch_failure = client.post(ENDPOINT, json={"text": "Hello"})

        assert decode_failure.status_code == dispatch_failure.status_code == 500
        assert decode_failure.text == dispatch_failure.text

    def test_failure_stage_is_logged(self, client, caplog):
        fake = _make_channel(send_side_effect=DispatchError("rejected"))

        with caplog.at_level(logging.ERROR, logger="app.routers.forward_email"), \
             patch("app.routers.forward_email.get_mail_channel", return_value=fake):
            client.post(ENDPOINT, json={"text": "Hello"})

        assert "dispatch stage" in caplog.text
        assert "rejected" in caplog.text

    def test_decode_stage_is_logged(self, client, channel, caplog):
        with caplog.at_level(logging.ERROR, logger="app.routers.forward_email"):
            client.post(ENDPOINT, content=b"{", headers={"Content-Type": "application/json"})

        assert "decode stage" in caplog.text


# ===========================================================================
# App shell
# ===========================================================================

class TestAppShell:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == "Forward Email Relay"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_get_is_not_allowed_on_forward_route(self, client):
        assert client.get(ENDPOINT).status_code == 405


class TestCorsOrigins:
    def test_defaults_to_any_origin(self):
        from app.main import get_cors_origins

        with patch.dict(os.environ, {"CORS_ORIGINS": ""}):
            assert get_cors_origins() == ["*"]

    def test_parses_and_deduplicates(self):
        from app.main import get_cors_origins

        with patch.dict(
            os.environ,
            {"CORS_ORIGINS": "https://a.example, https://b.example,https://a.example,"},
        ):
            assert get_cors_origins() == ["https://a.example", "https://b.example"]
