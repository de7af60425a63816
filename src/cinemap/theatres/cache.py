"""Persistent theatre result cache.

Entries live in a small LRU keyed by a coarse geohash bucket of the query
origin plus the search radius. An entry is reused only while it is younger
than the TTL *and* its origin is within the reuse distance of the new query.
All storage errors fail open: a broken store behaves like an empty cache.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

import aiosqlite

from cinemap.geo import geohash
from cinemap.storage.store import KeyValueStore, Namespace
from cinemap.theatres.models import CacheEntry, Location, Theatre, annotate_and_sort

logger = logging.getLogger(__name__)

_ENTRIES_KEY = "entries"
_BUCKET_PRECISION = 5

_STORAGE_ERRORS = (aiosqlite.Error, OSError, ValueError, KeyError, TypeError)


def bucket_key(origin: Location, radius_meters: float) -> str:
    return f"{geohash(origin.latitude, origin.longitude, _BUCKET_PRECISION)}:{int(radius_meters)}"


class TheatreCache:
    """Bounded LRU of CacheEntry objects persisted in a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        capacity: int = 8,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.capacity = max(1, capacity)
        self._clock = clock

    # -- persistence -------------------------------------------------------

    async def _load(self) -> list[tuple[str, CacheEntry]]:
        """Return (bucket, entry) pairs, least recently used first."""
        raw = await self.store.get(Namespace.THEATRE_CACHE, _ENTRIES_KEY)
        if raw is None:
            return []
        return [
            (item["bucket"], CacheEntry.from_dict(item["entry"]))
            for item in json.loads(raw)
        ]

    async def _save(self, entries: list[tuple[str, CacheEntry]]) -> None:
        payload = [
            {"bucket": bucket, "entry": entry.to_dict()} for bucket, entry in entries
        ]
        await self.store.set(
            Namespace.THEATRE_CACHE,
            _ENTRIES_KEY,
            json.dumps(payload, ensure_ascii=False),
        )

    # -- public API --------------------------------------------------------

    async def get(
        self,
        query: Location,
        ttl_seconds: float,
        max_reuse_km: float,
        radius_meters: float | None = None,
    ) -> CacheEntry | None:
        """Return the nearest valid entry with distances relative to ``query``.

        With ``radius_meters``, only entries searched at that same radius
        qualify.
        """
        try:
            entries = await self._load()
        except _STORAGE_ERRORS:
            logger.warning("Theatre cache unreadable, treating as miss", exc_info=True)
            return None

        now = self._clock()
        valid = [
            (bucket, entry)
            for bucket, entry in entries
            if entry.is_valid_for(query, now, ttl_seconds, max_reuse_km)
            and (radius_meters is None or int(entry.radius_meters) == int(radius_meters))
        ]
        if not valid:
            return None

        bucket, entry = min(valid, key=lambda be: be[1].origin.distance_to(query))

        # Mark as most recently used
        entries = [(b, e) for b, e in entries if b != bucket] + [(bucket, entry)]
        try:
            await self._save(entries)
        except _STORAGE_ERRORS:
            logger.warning("Failed to update cache recency", exc_info=True)

        logger.info(
            "Cache hit: %d theatres from bucket %s (age %.0fs)",
            len(entry.results),
            bucket,
            now - entry.timestamp,
        )
        return CacheEntry(
            timestamp=entry.timestamp,
            origin=entry.origin,
            radius_meters=entry.radius_meters,
            results=annotate_and_sort(entry.results, query),
        )

    async def put(
        self,
        results: list[Theatre],
        origin: Location,
        radius_meters: float,
    ) -> None:
        """Store ``results`` in the bucket for ``origin``, evicting the LRU slot."""
        bucket = bucket_key(origin, radius_meters)
        entry = CacheEntry(
            timestamp=self._clock(),
            origin=origin,
            radius_meters=radius_meters,
            results=list(results),
        )
        try:
            try:
                entries = await self._load()
            except (ValueError, KeyError, TypeError):
                logger.warning("Discarding corrupt theatre cache")
                entries = []
            entries = [(b, e) for b, e in entries if b != bucket]
            entries.append((bucket, entry))
            if len(entries) > self.capacity:
                entries = entries[-self.capacity:]
            await self._save(entries)
            logger.info("Cached %d theatres in bucket %s", len(results), bucket)
        except _STORAGE_ERRORS:
            logger.warning("Failed to write theatre cache", exc_info=True)

    async def update_theatre(self, theatre: Theatre) -> bool:
        """Replace every cached copy of ``theatre`` (matched by id).

        Distances stored in each entry are kept as they were.
        """
        try:
            entries = await self._load()
            changed = False
            for _, entry in entries:
                for i, cached in enumerate(entry.results):
                    if cached.id == theatre.id:
                        entry.results[i] = theatre.with_distance_from(entry.origin)
                        changed = True
            if changed:
                await self._save(entries)
            return changed
        except _STORAGE_ERRORS:
            logger.warning("Failed to write back theatre %s", theatre.id, exc_info=True)
            return False

    async def clear(self) -> None:
        try:
            await self.store.remove(Namespace.THEATRE_CACHE, _ENTRIES_KEY)
        except _STORAGE_ERRORS:
            logger.warning("Failed to clear theatre cache", exc_info=True)
