"""Webhook handlers wired into the router at startup."""
from __future__ import annotations

from .errors import DispatchError, HttpError, PostError
from .github.app import GitHubApp
from .github.commenter import PRCommenter
from .github.webhooks import WebhookEvent, WebhookRouter
from .log import get_logger

logger = get_logger(__name__)


def make_pull_request_opened_handler(
    github_app: GitHubApp,
    message: str,
    commenter: PRCommenter | None = None,
):
    """Build the ``pull_request.opened`` handler that posts ``message``."""
    commenter = commenter or PRCommenter()

    async def on_pull_request_opened(event: WebhookEvent) -> None:
        payload = event.payload
        number = payload["pull_request"]["number"]
        logger.info("Received a pull request event for #%s", number)

        installation_id = payload["installation"]["id"]
        client = await github_app.installation_client(installation_id)
        try:
            await commenter.post_comment(
                client,
                owner=payload["repository"]["owner"]["login"],
                repo=payload["repository"]["name"],
                issue_number=number,
                body=message,
            )
        except HttpError as exc:
            logger.error("Error! Status: %s. Message: %s", exc.status, exc.message)
        except PostError as exc:
            logger.error("Error posting comment on #%s: %s", number, exc)

    return on_pull_request_opened


def log_dispatch_error(error: DispatchError) -> None:
    logger.error(
        "Error processing request: %s (delivery %s): %s",
        error.event.qualified_name,
        error.delivery_id,
        error.cause,
    )


def register_handlers(
    router: WebhookRouter,
    github_app: GitHubApp,
    message: str,
    commenter: PRCommenter | None = None,
) -> WebhookRouter:
    """Install the app's handlers and error hook on ``router``."""
    router.register(
        "pull_request",
        "opened",
        make_pull_request_opened_handler(github_app, message, commenter),
    )
    router.on_error(log_dispatch_error)
    return router
