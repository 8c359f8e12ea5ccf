"""API client for the hosted Smart To-Do backend."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from smarttodo_cli.services.config_service import ConfigService, get_config_service
from smarttodo_cli.utils.logger import get_logger

logger = get_logger("api")

SessionRefresher = Callable[[], Awaitable[bool]]


class APIClient:
    """HTTP client for the backend's auth and table APIs."""

    def __init__(
        self,
        config_service: ConfigService | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config_manager = config_service or get_config_service()
        self.config = self.config_manager.config
        backend = self.config_manager.backend()
        self.base_url = backend.url
        self.anon_key = backend.anon_key
        self.timeout = backend.timeout
        self.retry = backend.retry
        self.session_refresher: SessionRefresher | None = None
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "APIClient":
        """Enter the async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the async context manager and ensure the client is closed."""
        await self.close()

    def _get_headers(self, skip_auth: bool = False) -> dict[str, str]:
        """Get HTTP headers with authentication."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "apikey": self.anon_key,
        }

        # Without a user session the anon key doubles as bearer token
        token = None if skip_auth else self.config_manager.access_token()
        headers["Authorization"] = f"Bearer {token or self.anon_key}"

        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        skip_auth: bool = False,
    ) -> httpx.Response:
        client = await self._get_client()
        request_headers = self._get_headers(skip_auth=skip_auth)
        if headers:
            request_headers.update(headers)
        response = await client.request(
            method=method,
            url=url,
            json=json,
            params=params,
            headers=request_headers,
        )
        response.raise_for_status()
        return response

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        retry: int | None = None,
        skip_auth: bool = False,
    ) -> httpx.Response:
        """Make an HTTP request to the backend."""
        if retry is None:
            retry = self.retry

        url = f"{path}" if path.startswith("/") else f"/{path}"
        kwargs = {"json": json, "params": params, "headers": headers}

        last_exception: Exception | None = None
        for attempt in range(retry + 1):
            try:
                return await self._send(method, url, skip_auth=skip_auth, **kwargs)
            except httpx.HTTPStatusError as e:
                # Expired access token: refresh once and replay
                if (
                    e.response.status_code == 401
                    and not skip_auth
                    and self.session_refresher is not None
                ):
                    logger.info("401 on %s %s, refreshing session", method, url)
                    if await self.session_refresher():
                        return await self._send(method, url, **kwargs)
                    raise

                # Don't retry client errors (4xx)
                if 400 <= e.response.status_code < 500:
                    raise
                last_exception = e
            except httpx.RequestError as e:
                last_exception = e

            if attempt < retry:
                logger.warning(
                    "%s %s failed (attempt %d/%d): %s",
                    method,
                    url,
                    attempt + 1,
                    retry + 1,
                    last_exception,
                )
                # Wait before retry (simple exponential backoff)
                await asyncio.sleep(2**attempt)

        # All retries failed
        if last_exception:
            raise last_exception
        raise RuntimeError("Request failed after all retries")

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        skip_auth: bool = False,
    ) -> httpx.Response:
        """Make a POST request."""
        return await self.request(
            "POST", path, json=json, params=params, headers=headers, skip_auth=skip_auth
        )

    async def patch(
        self,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a PATCH request."""
        return await self.request(
            "PATCH", path, json=json, params=params, headers=headers
        )

    async def delete(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a DELETE request."""
        return await self.request("DELETE", path, params=params, headers=headers)
