"""CLI entry point for pr-greeter."""

import asyncio
import sys

import click
from rich.console import Console
from rich.panel import Panel

from . import __version__
from .config import Config, load_config, load_message
from .errors import AuthError, ConfigError
from .log import configure_logging

console = Console()


def _load_or_exit(**overrides) -> Config:
    """Build a Config, print its issues and exit 1 if it is not usable."""
    try:
        return load_config(**overrides)
    except ConfigError as e:
        console.print("[bold red]Configuration issues found:\n")
        for issue in e.issues:
            console.print(f"  [red]✗ {issue}")
        console.print("\n[yellow]Copy .env.example to .env and fill in your app credentials.")
        sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="pr-greeter")
def cli():
    """pr-greeter: comment on every newly opened pull request."""
    pass


@cli.command()
@click.option("--port", type=int, default=None, help="Port to listen on. Default: $PORT or 8080")
@click.option(
    "--host",
    default=None,
    help="Address to bind. Default: 0.0.0.0 when NODE_ENV=production, else localhost",
)
@click.option(
    "--message",
    "message_path",
    default=None,
    help="Comment template file. Default: $MESSAGE_PATH or ./message.md",
)
def serve(port, host, message_path):
    """Listen for GitHub webhooks and comment on new pull requests."""
    from .server import serve as run_server

    overrides = {}
    if port is not None:
        overrides["port_value"] = str(port)
    if host:
        overrides["bind_host"] = host
    if message_path:
        overrides["message_path"] = message_path
    config = _load_or_exit(**overrides)
    configure_logging(config.log_level)

    try:
        message = load_message(config.message_path)
    except ConfigError as e:
        console.print(f"[red]✗ {e}")
        sys.exit(1)

    console.print(
        Panel(
            f"[bold cyan]pr-greeter[/bold cyan] {__version__}\n"
            f"Webhook URL: {config.webhook_url}",
            border_style="cyan",
        )
    )
    run_server(config, message)


@cli.command()
def check():
    """Check configuration and GitHub App credentials."""
    from .github.app import GitHubApp

    config = _load_or_exit()
    console.print("[bold green]✓ Configuration looks good!")
    console.print(f"  App ID: {config.app_id}")
    console.print(f"  API: {config.api_base_url}")
    console.print(f"  Webhook URL: {config.webhook_url}")
    console.print(f"  Message: {config.message_path}")

    github_app = GitHubApp.from_config(config)
    try:
        data = asyncio.run(github_app.get_authenticated_app())
    except AuthError as e:
        console.print(f"  [red]✗ GitHub App authentication failed: {e}")
        sys.exit(1)
    console.print(f"  [green]✓ Authenticated as '{data.get('name')}'")


def main():
    cli()


if __name__ == "__main__":
    main()
