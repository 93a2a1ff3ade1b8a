"""Shared pytest fixtures for the pr-greeter test suite."""

from __future__ import annotations

import json
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)

from pr_greeter.github.app import GitHubApp
from pr_greeter.github.webhooks import WebhookEvent, sign_payload

SECRET = "test-webhook-secret"

_ENV_VARS = (
    "APP_ID",
    "PRIVATE_KEY",
    "WEBHOOK_SECRET",
    "ENTERPRISE_HOSTNAME",
    "PORT",
    "NODE_ENV",
    "WEBHOOK_PATH",
    "MESSAGE_PATH",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell/.env settings out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    """A freshly generated RSA private key in the PEM format GitHub hands out."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        Encoding.PEM, PrivateFormat.TraditionalOpenSSL, NoEncryption()
    ).decode()


@pytest.fixture()
def github_app(private_key_pem: str) -> GitHubApp:
    """A GitHubApp with a valid test key."""
    return GitHubApp(app_id="12345", private_key=private_key_pem)


@pytest.fixture()
def message_file(tmp_path):
    """A comment template on disk."""
    path = tmp_path / "message.md"
    path.write_text("Thanks for opening a new PR!\n\n- [ ] Tests added\n", encoding="utf-8")
    return path


@pytest.fixture()
def make_payload() -> callable:
    """Factory fixture for trimmed-down pull_request webhook payloads."""

    def _factory(action: str = "opened", number: int = 42, **overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action": action,
            "number": number,
            "pull_request": {"number": number, "title": "Fix parser"},
            "repository": {
                "name": "repo",
                "full_name": "octo-org/repo",
                "owner": {"login": "octo-org"},
            },
            "installation": {"id": 777},
        }
        payload.update(overrides)
        return payload

    return _factory


@pytest.fixture()
def make_event(make_payload) -> callable:
    """Factory fixture for pull_request WebhookEvents."""

    def _factory(
        action: str = "opened",
        number: int = 42,
        delivery_id: str = "delivery-1",
    ) -> WebhookEvent:
        return WebhookEvent(
            name="pull_request",
            action=action,
            delivery_id=delivery_id,
            payload=make_payload(action, number),
        )

    return _factory


@pytest.fixture()
def make_delivery() -> callable:
    """Factory fixture returning body and headers for a signed webhook POST."""

    def _factory(
        payload: dict[str, Any],
        event: str = "pull_request",
        delivery_id: str = "delivery-1",
        secret: str = SECRET,
    ) -> tuple[bytes, dict[str, str]]:
        body = json.dumps(payload).encode()
        headers = {
            "X-Hub-Signature-256": sign_payload(body, secret),
            "X-GitHub-Event": event,
            "X-GitHub-Delivery": delivery_id,
            "Content-Type": "application/json",
        }
        return body, headers

    return _factory
