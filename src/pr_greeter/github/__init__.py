"""GitHub App integration: authentication, webhooks and PR commenting."""
from __future__ import annotations

from .app import GitHubApp, InstallationToken
from .client import GitHubClient
from .commenter import PRCommenter
from .webhooks import WebhookEvent, WebhookRouter, sign_payload, verify_signature

__all__ = [
    "GitHubApp",
    "InstallationToken",
    "GitHubClient",
    "PRCommenter",
    "WebhookEvent",
    "WebhookRouter",
    "sign_payload",
    "verify_signature",
]
