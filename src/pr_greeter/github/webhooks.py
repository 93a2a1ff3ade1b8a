"""Webhook signature verification and event routing."""
from __future__ import annotations

import asyncio
import hashlib
import hmac
import inspect
import json
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from ..errors import ConfigError, DispatchError, SignatureError
from ..log import get_logger

logger = get_logger(__name__)

SIGNATURE_PREFIX = "sha256="
WILDCARD = "*"


def sign_payload(payload: bytes, secret: str) -> str:
    """Return the ``X-Hub-Signature-256`` header value for a payload."""
    return SIGNATURE_PREFIX + hmac.new(
        secret.encode(), payload, hashlib.sha256
    ).hexdigest()


def verify_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """Verify a GitHub webhook HMAC-SHA256 signature.

    Args:
        payload: Raw request body bytes.
        signature: The X-Hub-Signature-256 header value (sha256=...).
        secret: The webhook secret configured in the GitHub App.

    Returns:
        True if the signature is valid, False otherwise.
    """
    if not signature or not signature.startswith(SIGNATURE_PREFIX):
        return False
    expected = sign_payload(payload, secret)
    # compare_digest rejects non-ASCII str input with TypeError
    return hmac.compare_digest(expected.encode(), signature.encode())


@dataclass(frozen=True)
class WebhookEvent:
    """One webhook delivery, after its signature has been checked."""

    name: str
    action: Optional[str]
    delivery_id: str
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def qualified_name(self) -> str:
        return f"{self.name}.{self.action}" if self.action else self.name


Handler = Callable[[WebhookEvent], Union[Awaitable[None], None]]
ErrorHook = Callable[[DispatchError], Union[Awaitable[None], None]]


async def _call(func: Callable[..., Any], arg: Any) -> None:
    result = func(arg)
    if inspect.isawaitable(result):
        await result


class WebhookRouter:
    """Maps ``(event, action)`` pairs to handlers.

    Handlers registered with a wildcard action receive every action of their
    event. Events with no matching handler are dropped. A failing handler is
    reported to the error hook and never propagates out of :meth:`dispatch`.
    """

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ConfigError("A webhook secret is required")
        self.secret = secret
        self._handlers: dict[tuple[str, str], list[Handler]] = defaultdict(list)
        self._error_hook: ErrorHook | None = None

    def register(self, event_name: str, action: str | None, handler: Handler) -> None:
        """Register ``handler`` for ``event_name`` with ``action`` (None = any)."""
        self._handlers[(event_name, action or WILDCARD)].append(handler)

    def on(self, qualified_name: str) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`register`: ``@router.on("pull_request.opened")``."""
        event_name, _, action = qualified_name.partition(".")

        def decorator(handler: Handler) -> Handler:
            self.register(event_name, action or None, handler)
            return handler

        return decorator

    def on_error(self, hook: ErrorHook) -> None:
        """Set the error hook, replacing any previous one."""
        self._error_hook = hook

    def handlers_for(self, event: WebhookEvent) -> list[Handler]:
        handlers = list(self._handlers.get((event.name, WILDCARD), []))
        if event.action:
            handlers.extend(self._handlers.get((event.name, event.action), []))
        return handlers

    async def dispatch(self, event: WebhookEvent) -> None:
        """Run every handler for ``event`` concurrently."""
        handlers = self.handlers_for(event)
        if not handlers:
            logger.debug("No handler for %s (delivery %s)", event.qualified_name, event.delivery_id)
            return

        results = await asyncio.gather(
            *(_call(handler, event) for handler in handlers),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                await self._report(DispatchError(event, result))

    async def _report(self, error: DispatchError) -> None:
        if self._error_hook is None:
            logger.error("%s", error, exc_info=error.cause)
            return
        try:
            await _call(self._error_hook, error)
        except Exception:
            logger.exception("Error hook failed for delivery %s", error.delivery_id)

    def parse(
        self,
        raw_body: bytes,
        signature: str | None,
        event_name: str,
        delivery_id: str,
    ) -> WebhookEvent:
        """Verify ``raw_body`` and build a :class:`WebhookEvent` from it.

        Raises:
            SignatureError: The signature header is missing or wrong.
            ValueError: The body is not a JSON object or its action is not a string.
        """
        if not verify_signature(raw_body, signature, self.secret):
            raise SignatureError(f"Signature does not match for delivery {delivery_id}")

        payload = json.loads(raw_body)
        if not isinstance(payload, dict):
            raise ValueError("Webhook payload must be a JSON object")
        action = payload.get("action")
        if action is not None and not isinstance(action, str):
            raise ValueError("Webhook action must be a string")
        return WebhookEvent(
            name=event_name,
            action=action,
            delivery_id=delivery_id,
            payload=payload,
        )

    async def verify_and_receive(
        self,
        raw_body: bytes,
        signature: str | None,
        event_name: str,
        delivery_id: str,
    ) -> WebhookEvent:
        """Verify, parse and dispatch one delivery. Returns the event."""
        event = self.parse(raw_body, signature, event_name, delivery_id)
        await self.dispatch(event)
        return event
