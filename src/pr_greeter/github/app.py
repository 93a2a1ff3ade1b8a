"""GitHub App JWT authentication and installation tokens."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from ..config import GITHUB_API, Config
from ..errors import AuthError, HttpError, NetworkError
from ..log import get_logger
from .client import GitHubClient

logger = get_logger(__name__)

# Refresh installation tokens this long before GitHub expires them
REFRESH_MARGIN = 5 * 60
# Used when GitHub omits expires_at; tokens live for one hour
DEFAULT_TOKEN_TTL = 60 * 60


@dataclass(frozen=True)
class InstallationToken:
    """An installation access token and its expiry (epoch seconds)."""

    token: str
    expires_at: float

    def is_fresh(self, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        return now < self.expires_at - REFRESH_MARGIN


def _parse_expiry(value: str | None, now: float) -> float:
    if not value:
        return now + DEFAULT_TOKEN_TTL
    return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()


class GitHubApp:
    """GitHub App authentication manager.

    Handles JWT generation (RS256) and installation token exchange. Tokens
    are cached per installation and refreshed shortly before they expire;
    concurrent requests for the same installation share a single mint.
    """

    def __init__(
        self,
        app_id: str,
        private_key: str,
        base_url: str = GITHUB_API,
    ) -> None:
        self.app_id = app_id
        self.private_key = private_key
        self.base_url = base_url.rstrip("/")
        self._key_checked = False
        self._token_cache: dict[int, InstallationToken] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    @classmethod
    def from_config(cls, config: Config) -> GitHubApp:
        return cls(
            app_id=config.app_id,
            private_key=config.private_key,
            base_url=config.api_base_url,
        )

    def _load_private_key(self) -> bytes:
        """Return the PEM bytes, validating them on first use.

        Raises:
            AuthError: If the key cannot be parsed or is not an RSA key.
        """
        pem = self.private_key.encode()
        if not self._key_checked:
            try:
                key = load_pem_private_key(pem, password=None)
            except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
                raise AuthError(f"Private key is not a valid PEM key: {exc}") from exc
            if not isinstance(key, RSAPrivateKey):
                raise AuthError(
                    f"Private key must be an RSA key, got {type(key).__name__}"
                )
            self._key_checked = True
        return pem

    def generate_jwt(self) -> str:
        """Create a JWT for GitHub App authentication.

        The JWT uses RS256, expires in 10 minutes, and contains the app_id
        as the issuer claim.

        Raises:
            AuthError: If app_id is empty or the private key is malformed.
        """
        if not self.app_id:
            raise AuthError("APP_ID is required to generate a JWT")

        private_key = self._load_private_key()
        now = int(time.time())
        payload = {
            "iat": now - 60,  # issued at (60s in the past for clock drift)
            "exp": now + (10 * 60),  # expires in 10 minutes
            "iss": self.app_id,
        }
        try:
            return jwt.encode(payload, private_key, algorithm="RS256")
        except jwt.PyJWTError as exc:
            raise AuthError(f"Could not sign app JWT: {exc}") from exc

    def app_client(self) -> GitHubClient:
        """A client authenticated as the app itself (JWT)."""
        return GitHubClient(self.generate_jwt(), base_url=self.base_url)

    async def get_authenticated_app(self) -> dict:
        """Fetch ``GET /app`` for the authenticated app."""
        try:
            data = await self.app_client().get("/app")
        except (HttpError, NetworkError) as exc:
            raise AuthError(f"Could not fetch authenticated app: {exc}") from exc
        if not isinstance(data, dict):
            raise AuthError("Unexpected response from GET /app")
        return data

    async def get_installation_token(self, installation_id: int) -> InstallationToken:
        """Exchange a JWT for an installation access token.

        Args:
            installation_id: The GitHub App installation ID.

        Raises:
            AuthError: If the JWT cannot be built or GitHub refuses the exchange.
        """
        cached = self._token_cache.get(installation_id)
        if cached is not None and cached.is_fresh():
            return cached

        lock = self._locks.setdefault(installation_id, asyncio.Lock())
        async with lock:
            # Another task may have refreshed while we waited
            cached = self._token_cache.get(installation_id)
            if cached is not None and cached.is_fresh():
                return cached

            client = self.app_client()
            try:
                data = await client.post(
                    f"/app/installations/{installation_id}/access_tokens", json={}
                )
            except (HttpError, NetworkError) as exc:
                raise AuthError(
                    f"Could not mint token for installation {installation_id}: {exc}"
                ) from exc

            now = time.time()
            try:
                token = InstallationToken(
                    token=data["token"],
                    expires_at=_parse_expiry(data.get("expires_at"), now),
                )
            except (KeyError, TypeError, AttributeError, ValueError) as exc:
                raise AuthError(
                    f"Malformed token response for installation {installation_id}"
                ) from exc
            self._token_cache[installation_id] = token
            logger.debug("Minted token for installation %s", installation_id)
            return token

    async def installation_client(self, installation_id: int) -> GitHubClient:
        """A client authenticated as one installation of the app."""
        token = await self.get_installation_token(installation_id)
        return GitHubClient(token.token, base_url=self.base_url)
