"""HTTP front door: liveness check plus the GitHub webhook endpoint (FastAPI)."""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from .config import DEFAULT_WEBHOOK_PATH, Config
from .errors import AuthError, SignatureError
from .github.app import GitHubApp
from .github.webhooks import WebhookRouter
from .handlers import register_handlers
from .log import get_logger

logger = get_logger(__name__)


def _log_late_failure(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Background dispatch failed", exc_info=task.exception())


REQUIRED_HEADERS = ("X-GitHub-Event", "X-GitHub-Delivery")
# GitHub gives up on a delivery after 10 seconds
PROCESSING_TIMEOUT = 9.0


def create_app(
    router: WebhookRouter,
    webhook_path: str = DEFAULT_WEBHOOK_PATH,
    processing_timeout: float = PROCESSING_TIMEOUT,
    lifespan: Optional[Callable] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        router: Router holding the registered webhook handlers.
        webhook_path: Path GitHub delivers webhooks to.
        processing_timeout: Seconds to wait for handlers before answering 202.
        lifespan: Optional FastAPI lifespan context.

    Returns:
        A FastAPI application.
    """
    app = FastAPI(title="pr-greeter", lifespan=lifespan)
    pending: set[asyncio.Task] = set()

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Liveness check."""
        return "Server is running."

    @app.post(webhook_path)
    async def webhook(request: Request) -> Response:
        """Verify a GitHub delivery and hand it to the router."""
        missing = [name for name in REQUIRED_HEADERS if not request.headers.get(name)]
        if missing:
            return PlainTextResponse(
                f"Required headers missing: {', '.join(missing)}", status_code=400
            )

        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("application/json"):
            return PlainTextResponse(
                "Unsupported Media Type: expected application/json", status_code=415
            )

        body = await request.body()
        event_name = request.headers["X-GitHub-Event"]
        delivery_id = request.headers["X-GitHub-Delivery"]
        try:
            event = router.parse(
                body,
                request.headers.get("X-Hub-Signature-256"),
                event_name,
                delivery_id,
            )
        except SignatureError:
            logger.warning("Rejected delivery %s (%s): bad signature", delivery_id, event_name)
            return PlainTextResponse(
                "signature does not match event payload and secret", status_code=400
            )
        except ValueError as exc:
            return PlainTextResponse(f"Invalid payload: {exc}", status_code=400)

        task = asyncio.create_task(router.dispatch(event))
        pending.add(task)
        task.add_done_callback(pending.discard)
        done, _ = await asyncio.wait({task}, timeout=processing_timeout)
        if task in done:
            exc = None if task.cancelled() else task.exception()
            if exc is not None:
                logger.error(
                    "Dispatch failed for delivery %s (%s)", delivery_id, event_name, exc_info=exc
                )
                return PlainTextResponse("Internal Server Error", status_code=500)
            return PlainTextResponse("ok", status_code=200)
        task.add_done_callback(_log_late_failure)
        logger.info("Delivery %s still processing, answering 202", delivery_id)
        return PlainTextResponse("still processing", status_code=202)

    return app


async def log_identity(github_app: GitHubApp) -> None:
    """Log which app the credentials belong to. Failures are not fatal."""
    try:
        data = await github_app.get_authenticated_app()
    except AuthError as exc:
        logger.warning("Could not fetch app identity: %s", exc)
        return
    logger.info("Authenticated as '%s'", data.get("name"))


def build_app(config: Config, message: str) -> FastAPI:
    """Wire credentials, router and handlers into a ready-to-serve app."""
    github_app = GitHubApp.from_config(config)
    router = register_handlers(WebhookRouter(config.webhook_secret), github_app, message)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await log_identity(github_app)
        yield

    return create_app(router, config.webhook_path, lifespan=lifespan)


async def run_server(server: uvicorn.Server, webhook_url: str) -> None:
    """Serve until shutdown, announcing the webhook URL once the socket is bound."""
    task = asyncio.create_task(server.serve())
    while not server.started and not task.done():
        await asyncio.sleep(0.05)
    if server.started:
        logger.info("Server is listening for events at: %s", webhook_url)
        logger.info("Press Ctrl + C to quit.")
    await task


def serve(config: Config, message: str) -> None:
    """Run the app under uvicorn until interrupted."""
    app = build_app(config, message)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
    )
    asyncio.run(run_server(server, config.webhook_url))
