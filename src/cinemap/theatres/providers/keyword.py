"""Mapbox geocoding provider: keyword sweep for theatre POIs.

Geocoding searches match on place-name text rather than category, so no
single query enumerates every theatre. The sweep queries many brand names
and multilingual synonyms near the origin and merges the results,
deduplicating on rounded coordinates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests

from cinemap.config import HTTP_TIMEOUT, MAPBOX_BASE_URL
from cinemap.theatres.models import (
    ADDRESS_UNAVAILABLE,
    SOURCE_KEYWORD,
    Location,
    Theatre,
    annotate_and_sort,
)
from cinemap.theatres.providers.base import ProviderError, TheatreProvider

logger = logging.getLogger(__name__)

SEARCH_TERMS: tuple[str, ...] = (
    # Hong Kong chains
    "Broadway Circuit",
    "MCL Cinema",
    "Emperor Cinemas",
    "UA Cinemas",
    "Golden Harvest",
    # International chains
    "IMAX",
    "CGV",
    "AMC",
    "Cinemark",
    # Generic terms
    "cinema",
    "movie theatre",
    "theater",
    "movie theater",
    "電影院",  # Traditional Chinese
    "影院",  # Simplified Chinese
    "戲院",  # Cantonese
    "영화관",  # Korean
    "映画館",  # Japanese
)

RESULTS_PER_TERM = 5
DEDUP_PRECISION = 5  # decimal places, about 1.1 m


@dataclass(frozen=True)
class PlaceSuggestion:
    id: str
    name: str
    place_name: str
    location: Location


def dedup_key(theatre: Theatre) -> tuple[float, float]:
    return (
        round(theatre.location.latitude, DEDUP_PRECISION),
        round(theatre.location.longitude, DEDUP_PRECISION),
    )


def merge_unique(batches: list[list[Theatre]]) -> list[Theatre]:
    """Flatten ``batches`` in order, keeping the first theatre per rounded coordinate."""
    seen: set[tuple[float, float]] = set()
    merged: list[Theatre] = []
    for batch in batches:
        for theatre in batch:
            key = dedup_key(theatre)
            if key in seen:
                continue
            seen.add(key)
            merged.append(theatre)
    return merged


def _feature_location(feature: dict) -> Location | None:
    center = feature.get("center")
    if not isinstance(center, (list, tuple)) or len(center) < 2:
        return None
    # Mapbox orders coordinates as [longitude, latitude]
    return Location.from_dict({"latitude": center[1], "longitude": center[0]})


class KeywordSweepProvider(TheatreProvider):
    """Secondary provider sweeping SEARCH_TERMS through Mapbox geocoding."""

    name = "keyword"

    def __init__(
        self,
        access_token: str,
        search_terms: tuple[str, ...] = SEARCH_TERMS,
        base_url: str = MAPBOX_BASE_URL,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT,
        max_concurrency: int = 4,
    ) -> None:
        super().__init__(session, timeout, max_concurrency)
        self.access_token = access_token
        self.search_terms = search_terms
        self.base_url = base_url.rstrip("/")

    def _geocode_url(self, query: str) -> str:
        return f"{self.base_url}/geocoding/v5/mapbox.places/{quote(query, safe='')}.json"

    async def _geocode(self, query: str, params: dict[str, Any]) -> list[dict]:
        data = await self._get_json(
            self._geocode_url(query), {**params, "access_token": self.access_token}
        )
        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list):
            raise ProviderError(f"keyword: malformed response for {query!r}")
        return [f for f in features if isinstance(f, dict)]

    async def search_term(self, term: str, location: Location) -> list[Theatre]:
        """Return POIs matching ``term``, biased toward ``location``."""
        features = await self._geocode(
            term,
            {
                "proximity": f"{location.longitude},{location.latitude}",
                "limit": RESULTS_PER_TERM,
                "types": "poi",
            },
        )
        theatres = []
        for feature in features:
            loc = _feature_location(feature)
            if loc is None:
                continue
            theatres.append(
                Theatre(
                    id=str(feature.get("id") or f"{loc.latitude},{loc.longitude}"),
                    name=feature.get("text") or term,
                    location=loc,
                    address=feature.get("place_name") or ADDRESS_UNAVAILABLE,
                    source_provider=SOURCE_KEYWORD,
                    search_term=term,
                )
            )
        return theatres

    async def find_nearby(
        self, location: Location, radius_meters: float
    ) -> list[Theatre]:
        """Sweep every search term around ``location``, nearest first.

        Geocoding has no radius parameter, so ``radius_meters`` does not
        bound the results; proximity only orders them.
        """
        async def _search(term: str) -> list[Theatre]:
            return await self.search_term(term, location)

        outcomes = await self._fan_out(self.search_terms, _search)

        batches: list[list[Theatre]] = []
        for term, outcome in zip(self.search_terms, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("keyword: search term %r failed: %s", term, outcome)
                continue
            if outcome:
                logger.debug("keyword: %d results for %r", len(outcome), term)
                batches.append(outcome)

        unique = merge_unique(batches)
        logger.info("keyword: %d unique theatre locations", len(unique))
        return annotate_and_sort(unique, location)

    async def search_places(self, query: str, limit: int = 5) -> list[PlaceSuggestion]:
        """Free-text place lookup for the map's search box. Empty on failure."""
        if not query:
            return []
        try:
            features = await self._geocode(
                query, {"limit": limit, "types": "place,poi"}
            )
        except ProviderError:
            logger.exception("Place search failed for %r", query)
            return []

        suggestions = []
        for feature in features:
            loc = _feature_location(feature)
            if loc is None:
                continue
            suggestions.append(
                PlaceSuggestion(
                    id=str(feature.get("id", "")),
                    name=feature.get("text") or "",
                    place_name=feature.get("place_name") or "",
                    location=loc,
                )
            )
        return suggestions
