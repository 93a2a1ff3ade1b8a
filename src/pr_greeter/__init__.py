"""pr-greeter: a GitHub App that comments on newly opened pull requests."""

__version__ = "0.1.0"

from .config import Config, load_config, load_message
from .errors import (
    AuthError,
    ConfigError,
    DispatchError,
    HttpError,
    NetworkError,
    PostError,
    PRGreeterError,
    SignatureError,
)

__all__ = [
    "Config",
    "load_config",
    "load_message",
    "AuthError",
    "ConfigError",
    "DispatchError",
    "HttpError",
    "NetworkError",
    "PostError",
    "PRGreeterError",
    "SignatureError",
    "__version__",
]
