"""Minimal async GitHub REST client."""
from __future__ import annotations

from typing import Any

import httpx

from ..config import GITHUB_API
from ..errors import HttpError, NetworkError

API_VERSION = "2022-11-28"


def _error_message(resp: httpx.Response) -> str:
    """Pull GitHub's ``message`` field out of an error response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.reason_phrase


class GitHubClient:
    """A bearer-token GitHub API client.

    The token is either an app JWT or an installation access token; callers
    get instances from :class:`~pr_greeter.github.app.GitHubApp`.
    """

    def __init__(self, token: str, base_url: str = GITHUB_API, timeout: float = 15.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            HttpError: GitHub answered with a non-2xx status.
            NetworkError: The request failed before a response arrived.
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(headers=self._headers, timeout=self.timeout) as client:
                resp = await client.request(method, url, json=json)
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        if resp.is_error:
            raise HttpError(resp.status_code, _error_message(resp))
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise HttpError(resp.status_code, "invalid JSON response") from exc

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: dict[str, Any]) -> Any:
        return await self.request("POST", path, json=json)
