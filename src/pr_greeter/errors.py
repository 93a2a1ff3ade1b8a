"""Exception hierarchy for pr-greeter."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .github.webhooks import WebhookEvent


class PRGreeterError(Exception):
    """Base class for all pr-greeter errors."""


class ConfigError(PRGreeterError):
    """Missing or invalid configuration. Fatal at startup."""

    def __init__(self, message: str, issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or [message]


class AuthError(PRGreeterError):
    """The app could not authenticate (bad key, rejected JWT, token mint failure)."""


class SignatureError(PRGreeterError):
    """A webhook delivery failed signature verification."""


class DispatchError(PRGreeterError):
    """A webhook handler raised while processing an event.

    Args:
        event: The event being handled.
        cause: The exception raised by the handler.
    """

    def __init__(self, event: WebhookEvent, cause: BaseException) -> None:
        super().__init__(
            f"Handler for {event.qualified_name} failed "
            f"(delivery {event.delivery_id}): {cause!r}"
        )
        self.event = event
        self.cause = cause

    @property
    def delivery_id(self) -> str:
        return self.event.delivery_id


class PostError(PRGreeterError):
    """A call to the GitHub REST API failed."""


class HttpError(PostError):
    """GitHub answered with a non-2xx status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message


class NetworkError(PostError):
    """The request never got a response (DNS, connect, read failure)."""
