"""Common interface for theatre search providers.

Each provider wraps one external places/geocoding API. Providers use
blocking ``requests`` calls pushed onto worker threads, so the event loop
stays free while a request is in flight.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import requests

from cinemap.config import HTTP_TIMEOUT
from cinemap.theatres.models import Location, Theatre

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ProviderError(RuntimeError):
    """A provider could not produce a usable response."""


class TheatreProvider(ABC):
    """Searches one external API for movie theatres near a location."""

    name: str = ""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT,
        max_concurrency: int = 4,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_concurrency = max(1, max_concurrency)

    @abstractmethod
    async def find_nearby(
        self, location: Location, radius_meters: float
    ) -> list[Theatre]:
        """Return normalized theatres sorted by distance from ``location``.

        Raises ProviderError when the provider as a whole fails.
        """

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _get_json_blocking(self, url: str, params: dict[str, Any]) -> Any:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise ProviderError(f"{self.name}: request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(f"{self.name}: malformed JSON from {url}") from exc

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        """GET ``url`` and decode JSON without blocking the event loop."""
        return await asyncio.to_thread(self._get_json_blocking, url, params)

    async def _fan_out(
        self,
        items: Iterable[T],
        worker: Callable[[T], Awaitable[R]],
    ) -> list[R | BaseException]:
        """Run ``worker`` over ``items`` with at most ``max_concurrency`` in flight.

        Results keep the order of ``items``; failures come back as exception
        objects in their slot.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(item: T) -> R:
            async with semaphore:
                return await worker(item)

        return await asyncio.gather(
            *(_bounded(item) for item in items), return_exceptions=True
        )
