"""Async HTTP client for the CS2 log service."""
from __future__ import annotations

import logging
from types import TracebackType
from typing import Any
from uuid import UUID

import httpx


logger = logging.getLogger(__name__)


class CS2LogsClient:
    """Thin wrapper around ``httpx.AsyncClient``.

    The base URL is always passed in explicitly; nothing is read from the
    environment.

    Example:
        async with CS2LogsClient("http://localhost:9090") as client:
            result = await client.parse_test(text)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the service, e.g. ``http://localhost:9090``.
            timeout: Request timeout in seconds.
            transport: Optional transport, mainly for tests.
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "CS2LogsClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()

    async def parse_test(self, logs: str) -> dict[str, Any]:
        """Classify ``logs`` without storing them."""
        return await self._json("POST", "/api/parse-test", json={"logs": logs})

    async def push_logs(self, server_id: UUID | str, text: str, *, key: str | None = None) -> dict[str, Any]:
        """Send a block of log lines the way a game server does."""
        params = {"key": key} if key is not None else None
        logger.debug("Pushing %d byte(s) for server %s", len(text), server_id)
        return await self._json(
            "POST",
            f"/logs/{server_id}",
            content=text.encode("utf-8"),
            params=params,
            headers={"Content-Type": "text/plain"},
        )

    async def list_logs(
        self,
        kind: str = "parsed",
        *,
        page: int = 1,
        page_size: int = 50,
        server_id: UUID | str | None = None,
        event_type: str | None = None,
    ) -> dict[str, Any]:
        """One page of raw, parsed or failed logs."""
        params: dict[str, Any] = {"currentPage": page, "pageSize": page_size}
        if server_id is not None:
            params["serverId"] = str(server_id)
        if event_type is not None:
            params["eventType"] = event_type
        return await self._json("GET", f"/api/logs/{kind}", params=params)

    async def event_types(self) -> list[dict[str, Any]]:
        return await self._json("GET", "/api/logs/event-types")

    async def download_logs(self, kind: str = "raw") -> str:
        response = await self._client.get("/api/logs/download", params={"type": kind})
        response.raise_for_status()
        return response.text

    async def sessions(self, *, server_id: UUID | str | None = None, status: str | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if server_id is not None:
            params["serverId"] = str(server_id)
        if status is not None:
            params["status"] = status
        return await self._json("GET", "/api/sessions", params=params)

    async def servers(self) -> list[dict[str, Any]]:
        return await self._json("GET", "/api/servers")

    async def stats(self) -> dict[str, Any]:
        return await self._json("GET", "/api/stats")

    async def health(self) -> dict[str, Any]:
        return await self._json("GET", "/health")
