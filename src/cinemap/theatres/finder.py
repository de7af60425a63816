"""Nearby theatre discovery: cache, then live providers, then static data.

Stages run strictly in order and the first one that yields at least one
valid theatre supplies the whole result; results from different stages
are never merged. Nothing raises past :meth:`TheatreFinder.discover`;
an empty list is the only failure signal callers see.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field

from cinemap.theatres.cache import TheatreCache
from cinemap.theatres.fallback import static_theatres
from cinemap.theatres.models import Location, Review, Theatre
from cinemap.theatres.providers.base import TheatreProvider
from cinemap.theatres.settings import DiscoverySettings

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_NONE = "none"


@dataclass
class DiscoveryResult:
    theatres: list[Theatre] = field(default_factory=list)
    source: str = SOURCE_NONE


def _has_valid_location(theatre: Theatre) -> bool:
    loc = theatre.location
    if loc is None:
        return False
    lat, lon = loc.latitude, loc.longitude
    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def filter_valid(theatres: list[Theatre]) -> list[Theatre]:
    """Drop theatres that cannot be placed on a map."""
    valid = [t for t in theatres if _has_valid_location(t)]
    if len(valid) != len(theatres):
        logger.warning("Dropped %d theatres without a usable location",
                       len(theatres) - len(valid))
    return valid


class TheatreFinder:
    """Sequences cache → primary → secondary → static fallback."""

    def __init__(
        self,
        cache: TheatreCache,
        primary: TheatreProvider | None,
        secondary: TheatreProvider | None,
        settings: DiscoverySettings | None = None,
    ) -> None:
        self.cache = cache
        self.primary = primary
        self.secondary = secondary
        self.settings = settings or DiscoverySettings()

    async def _from_cache(self, location: Location, radius: float) -> list[Theatre]:
        try:
            entry = await self.cache.get(
                location,
                self.settings.cache_ttl_seconds,
                self.settings.max_reuse_distance_km,
                radius,
            )
        except Exception:
            logger.exception("Cache lookup failed")
            return []
        return filter_valid(entry.results) if entry else []

    async def _from_provider(
        self,
        provider: TheatreProvider | None,
        location: Location,
        radius: float,
    ) -> list[Theatre]:
        if provider is None:
            return []
        try:
            theatres = await asyncio.wait_for(
                provider.find_nearby(location, radius),
                timeout=self.settings.provider_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Provider %s timed out after %.0fs",
                provider.name,
                self.settings.provider_timeout_seconds,
            )
            return []
        except Exception:
            logger.exception("Provider %s failed", provider.name)
            return []
        return filter_valid(theatres)

    async def discover_with_source(
        self,
        location: Location,
        radius_meters: float | None = None,
    ) -> DiscoveryResult:
        """Find theatres near ``location`` and report which stage supplied them."""
        radius = radius_meters or self.settings.default_radius_meters
        logger.info(
            "Discovering theatres near %.5f, %.5f (radius %dm)",
            location.latitude,
            location.longitude,
            radius,
        )

        cached = await self._from_cache(location, radius)
        if cached:
            return DiscoveryResult(cached, SOURCE_CACHE)

        for provider in (self.primary, self.secondary):
            theatres = await self._from_provider(provider, location, radius)
            if theatres:
                try:
                    await self.cache.put(theatres, location, radius)
                except Exception:
                    logger.exception("Cache write failed")
                return DiscoveryResult(theatres, provider.name)
            if provider is not None:
                logger.info("Provider %s returned nothing, falling through", provider.name)

        try:
            fallback = static_theatres(location)
        except Exception:
            logger.exception("Static fallback failed")
            fallback = []
        if fallback:
            logger.info("Using %d static fallback theatres", len(fallback))
            return DiscoveryResult(fallback, fallback[0].source_provider)

        logger.info("No theatres found near %.5f, %.5f",
                    location.latitude, location.longitude)
        return DiscoveryResult()

    async def discover(
        self,
        location: Location,
        radius_meters: float | None = None,
    ) -> list[Theatre]:
        """Always returns a list, possibly empty."""
        try:
            result = await self.discover_with_source(location, radius_meters)
        except Exception:
            logger.exception("Theatre discovery failed")
            return []
        return result.theatres

    # -- local edits ------------------------------------------------------

    async def add_review(self, theatre: Theatre, review: Review) -> Theatre:
        """Append a local review and write it back to the cache."""
        updated = theatre.with_review(review)
        await self.cache.update_theatre(updated)
        return updated

    async def add_photo(self, theatre: Theatre, uri: str) -> Theatre:
        """Append a local photo URI and write it back to the cache."""
        updated = theatre.with_photo(uri)
        await self.cache.update_theatre(updated)
        return updated
