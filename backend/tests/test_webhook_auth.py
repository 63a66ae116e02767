"""Tests for outbound webhook header construction."""

import base64

import pytest
from core.exceptions import InvalidWorkflowError, ValidationError
from integrations.webhook_auth import build_headers, resolve_auth_headers
from workflow.models import AuthType, Webhook, WebhookAuthentication


@pytest.mark.unit
class TestResolveAuthHeaders:
    def test_none(self):
        assert resolve_auth_headers(None) == {}

    def test_bearer(self):
        auth = WebhookAuthentication(type=AuthType.BEARER, credentials={"token": "abc"})
        assert resolve_auth_headers(auth) == {"Authorization": "Bearer abc"}

    def test_api_key_default_header(self):
        auth = WebhookAuthentication(type=AuthType.API_KEY, credentials={"key": "k1"})
        assert resolve_auth_headers(auth) == {"X-API-Key": "k1"}

    def test_api_key_custom_header(self):
        auth = WebhookAuthentication(
            type=AuthType.API_KEY, credentials={"key": "k1", "headerName": "X-N8N-Key"}
        )
        assert resolve_auth_headers(auth) == {"X-N8N-Key": "k1"}

    def test_basic(self):
        auth = WebhookAuthentication(
            type=AuthType.BASIC, credentials={"username": "user", "password": "pass"}
        )
        expected = base64.b64encode(b"user:pass").decode()
        assert resolve_auth_headers(auth) == {"Authorization": f"Basic {expected}"}

    def test_missing_credential(self):
        auth = WebhookAuthentication(type=AuthType.BEARER, credentials={})
        with pytest.raises(ValidationError, match="token"):
            resolve_auth_headers(auth)


@pytest.mark.unit
class TestBuildHeaders:
    def test_defaults_only(self):
        assert build_headers() == {"Content-Type": "application/json"}

    def test_precedence(self):
        webhook = Webhook(
            url="https://x",
            headers={"X-A": "webhook", "X-B": "webhook", "Authorization": "ignored"},
            authentication=WebhookAuthentication(type=AuthType.BEARER, credentials={"token": "t"}),
        )
        headers = build_headers(webhook, {"X-B": "call"})
        assert headers["X-A"] == "webhook"
        assert headers["X-B"] == "call"
        assert headers["Authorization"] == "Bearer t"


@pytest.mark.unit
class TestWebhookParsing:
    def test_method_uppercased_and_defaulted(self):
        assert Webhook.from_dict({"url": "https://x"}).method == "POST"
        assert Webhook.from_dict({"url": "https://x", "method": "put"}).method == "PUT"

    def test_unknown_auth_type_rejected(self):
        with pytest.raises(InvalidWorkflowError):
            Webhook.from_dict({"url": "https://x", "authentication": {"type": "oauth"}})

    def test_to_dict_hides_credentials(self):
        webhook = Webhook.from_dict({
            "url": "https://x",
            "authentication": {"type": "bearer", "credentials": {"token": "secret"}},
        })
        assert webhook.to_dict()["authentication"] == {"type": "bearer"}
        assert "secret" not in str(webhook.to_dict())
