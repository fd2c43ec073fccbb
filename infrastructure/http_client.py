"""Shared async HTTP client with configurable timeout."""

from typing import Any

import httpx

_DEFAULT_HEADERS = {"User-Agent": "linkbio-analytics/1.0"}


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a configurable timeout.

    One instance per external service keeps timeouts independently configurable.
    """

    def __init__(self, timeout: float = 5.0, base_url: str = "") -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            base_url=base_url,
            headers=_DEFAULT_HEADERS,
        )

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.get(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
