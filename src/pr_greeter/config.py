"""Configuration and environment management."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

GITHUB_API = "https://api.github.com"
DEFAULT_PORT = 8080
DEFAULT_WEBHOOK_PATH = "/api/webhook"
DEFAULT_MESSAGE_PATH = "./message.md"


def unescape_private_key(raw: str) -> str:
    """Turn literal ``\\n`` sequences (as found in .env files) into newlines."""
    return raw.replace("\\n", "\n")


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # GitHub App identity
    app_id: str = field(default_factory=lambda: os.getenv("APP_ID", ""))
    private_key: str = field(default_factory=lambda: os.getenv("PRIVATE_KEY", ""))
    webhook_secret: str = field(
        default_factory=lambda: os.getenv("WEBHOOK_SECRET", "")
    )
    enterprise_hostname: str = field(
        default_factory=lambda: os.getenv("ENTERPRISE_HOSTNAME", "")
    )

    # Server
    port_value: str = field(
        default_factory=lambda: os.getenv("PORT", str(DEFAULT_PORT))
    )
    environment: str = field(
        default_factory=lambda: os.getenv("NODE_ENV", "development")
    )
    webhook_path: str = field(
        default_factory=lambda: os.getenv("WEBHOOK_PATH", DEFAULT_WEBHOOK_PATH)
    )

    # Comment template
    message_path: str = field(
        default_factory=lambda: os.getenv("MESSAGE_PATH", DEFAULT_MESSAGE_PATH)
    )

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Explicit bind address; overrides the NODE_ENV rule when set
    bind_host: str = ""

    def __post_init__(self) -> None:
        self.private_key = unescape_private_key(self.private_key)

    @property
    def port(self) -> int:
        return int(self.port_value or DEFAULT_PORT)

    @property
    def host(self) -> str:
        """Bind address: all interfaces in production, loopback otherwise."""
        if self.bind_host:
            return self.bind_host
        return "0.0.0.0" if self.environment == "production" else "localhost"

    @property
    def api_base_url(self) -> str:
        if self.enterprise_hostname:
            return f"https://{self.enterprise_hostname}/api/v3"
        return GITHUB_API

    @property
    def webhook_url(self) -> str:
        return f"http://{self.host}:{self.port}{self.webhook_path}"

    def validate(self) -> list[str]:
        """Validate configuration, return list of issues."""
        issues = []
        if not self.app_id:
            issues.append("APP_ID is required")
        if not self.private_key:
            issues.append("PRIVATE_KEY is required")
        elif "-----BEGIN" not in self.private_key:
            issues.append("PRIVATE_KEY does not look like a PEM block")
        if not self.webhook_secret:
            issues.append("WEBHOOK_SECRET is required")
        try:
            port = self.port
        except ValueError:
            issues.append(f"PORT must be an integer, got {self.port_value!r}")
        else:
            if not 0 < port < 65536:
                issues.append(f"PORT out of range: {port}")
        if not self.webhook_path.startswith("/"):
            issues.append(f"WEBHOOK_PATH must start with '/': {self.webhook_path}")
        if not Path(self.message_path).is_file():
            issues.append(f"Message template not found: {self.message_path}")
        return issues


def load_config(**overrides: str) -> Config:
    """Build a validated Config.

    Keyword overrides replace the corresponding environment values.

    Raises:
        ConfigError: If any required setting is missing or invalid.
    """
    config = Config(**overrides)
    issues = config.validate()
    if issues:
        raise ConfigError("; ".join(issues), issues)
    return config


def load_message(path: str | Path) -> str:
    """Read the comment template verbatim.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read message template {path}: {exc}") from exc
