"""Async HTTP client for the Kerzenwelt REST API."""

import logging
from typing import Any

import httpx

from kerzenwelt.config import get_config
from kerzenwelt.exceptions import NetworkError

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin wrapper around ``httpx.AsyncClient``.

    Responses are returned whatever their status code so callers can branch
    on it (the settings probe relies on seeing 404s). Only transport failures
    raise, as :class:`NetworkError`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the API client.

        Args:
            base_url: API root, defaults to ``config.api_base_url``
            token: Bearer token sent with every request (needed for writes)
            http_client: Pre-configured client; its lifetime stays with the caller
        """
        config = get_config()
        self.token = token if token is not None else config.api_token

        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        if http_client is None:
            self._client = httpx.AsyncClient(
                base_url=base_url or config.api_base_url,
                headers=headers,
            )
            self._owns_client = True
        else:
            http_client.headers.update(headers)
            self._client = http_client
            self._owns_client = False

    async def request(
        self,
        method: str,
        path: str,
        json: Any | None = None,
    ) -> httpx.Response:
        """Send a request and return the response without checking its status.

        Raises:
            NetworkError: If no response could be obtained
        """
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise NetworkError(f"{method} {path} failed: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        return response

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def error_message(response: httpx.Response) -> str:
    """Extract the backend-provided error message from a response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message:
            return message
        if message:
            return str(message)

    return response.reason_phrase or f"HTTP {response.status_code}"
