# This project was developed with assistance from AI tools.
"""Async HTTP client for the notification endpoints.

Consumers that want a live unread badge use ``watch_unread`` and own the
returned poller; stopping it (or leaving its ``async with`` block) ends the
polling.
"""

import logging
from collections.abc import Awaitable, Callable

import httpx

from .services.polling import PeriodicPoller

logger = logging.getLogger(__name__)


class RegistryClient:
    """Thin wrapper around ``httpx.AsyncClient`` bound to one bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=timeout, transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def unread_count(self) -> dict:
        """Return ``{"unread": int, "poll_interval_seconds": float}``."""
        response = await self._client.get("/api/notifications/unread-count")
        response.raise_for_status()
        return response.json()

    async def list_notifications(self, *, unread_only: bool = False) -> list[dict]:
        response = await self._client.get(
            "/api/notifications", params={"unread_only": str(unread_only).lower()},
        )
        response.raise_for_status()
        return response.json()["data"]

    async def mark_all_read(self) -> int:
        response = await self._client.post("/api/notifications/read-all")
        response.raise_for_status()
        return response.json()["updated"]

    def watch_unread(
        self,
        on_change: Callable[[int], Awaitable[object]],
        interval: float,
    ) -> PeriodicPoller:
        """Build a poller that calls ``on_change`` whenever the unread count changes."""
        last: list[int | None] = [None]

        async def _poll() -> None:
            count = (await self.unread_count())["unread"]
            if count != last[0]:
                last[0] = count
                await on_change(count)

        return PeriodicPoller(_poll, interval)
