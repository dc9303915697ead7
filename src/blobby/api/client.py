"""Blobby task store REST client."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from ..errors import (
    BadRequestError,
    NotFoundError,
    ServerError,
    TransportError,
    UnauthenticatedError,
)

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class BlobbyApiClient:
    """Async REST client for the Blobby task store.

    Provides a thin wrapper around the store's JSON endpoints with:
    - Bearer token authentication
    - Status code to exception mapping
    - Request timing in the logs
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the store (e.g. https://blobby.example.com/api)
            token: Bearer token identifying the user
            timeout: Transport timeout in seconds (None waits forever)
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> BlobbyApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @classmethod
    def from_settings(cls, settings: Settings) -> BlobbyApiClient:
        """Create a client from application settings.

        Raises:
            UnauthenticatedError: If no API URL or token is configured
        """
        if not settings.api_url:
            raise UnauthenticatedError("No API URL configured. Set BLOBBY_API_URL.")
        if not settings.api_token:
            raise UnauthenticatedError("No API token configured. Set BLOBBY_API_TOKEN.")
        return cls(settings.api_url, settings.api_token, timeout=settings.api_timeout)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Raises:
            UnauthenticatedError: 401
            BadRequestError: 400
            NotFoundError: 404
            ServerError: 5xx or any other failure status
            TransportError: Network failure or a body that is not a JSON object
        """
        logger.debug("%s %s: params=%s body=%s", method, path, params, json)

        start_time = time.monotonic()
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s %s failed after %.0fms: %s", method, path, elapsed_ms, e)
            raise TransportError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status >= 400:
            message = _error_message(response)
            logger.error("%s %s: HTTP %d %s (%.0fms)", method, path, status, message, elapsed_ms)
            if status == 401:
                raise UnauthenticatedError(message or "Unauthorized")
            if status == 400:
                raise BadRequestError(message or "Bad request")
            if status == 404:
                raise NotFoundError(message or "Not found")
            raise ServerError(f"HTTP {status}: {message}", status_code=status)

        try:
            body = response.json()
        except ValueError as e:
            logger.error("%s %s: Invalid JSON response (%.0fms)", method, path, elapsed_ms)
            raise TransportError(f"Invalid JSON response: {e}") from e

        if not isinstance(body, dict):
            raise TransportError(f"Unexpected response body: {body!r}")

        logger.info("%s %s: %d (%.0fms)", method, path, status, elapsed_ms)
        return body

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a GET request."""
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any]) -> dict[str, Any]:
        """Send a POST request."""
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: dict[str, Any]) -> dict[str, Any]:
        """Send a PUT request."""
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a DELETE request."""
        return await self.request("DELETE", path, params=params)


def _error_message(response: httpx.Response) -> str:
    """Extract the store's ``{"error": ...}`` message, falling back to the raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text.strip()
