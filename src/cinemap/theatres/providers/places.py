"""Google Places provider: nearby search, detail enrichment, photo URLs.

This is the primary data source. It returns the richest records
(addresses, phone numbers, opening hours, photos and reviews) but needs
a paid API key.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

import requests

from cinemap.config import HTTP_TIMEOUT, PLACES_BASE_URL
from cinemap.theatres.models import (
    ADDRESS_UNAVAILABLE,
    SOURCE_PLACES,
    Location,
    OpeningHours,
    Review,
    Theatre,
    annotate_and_sort,
)
from cinemap.theatres.providers.base import ProviderError, TheatreProvider

logger = logging.getLogger(__name__)

PLACE_TYPE = "movie_theater"
MAX_SEARCH_RADIUS = 30000  # meters
MAX_PHOTOS = 3
PHOTO_MAX_WIDTH = 400

_OK_STATUSES = {"OK", "ZERO_RESULTS"}
_DETAIL_FIELDS = ",".join(
    [
        "formatted_address",
        "formatted_phone_number",
        "website",
        "opening_hours",
        "photos",
        "reviews",
    ]
)


class RichPlacesProvider(TheatreProvider):
    """Nearby search with radius back-off and per-candidate enrichment."""

    name = "places"

    def __init__(
        self,
        api_key: str,
        base_url: str = PLACES_BASE_URL,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT,
        max_concurrency: int = 4,
    ) -> None:
        super().__init__(session, timeout, max_concurrency)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Raw API calls
    # ------------------------------------------------------------------

    def _check_status(self, data: Any, what: str) -> dict:
        if not isinstance(data, dict):
            raise ProviderError(f"places: malformed {what} response")
        status = data.get("status")
        if status not in _OK_STATUSES:
            raise ProviderError(
                f"places: {what} failed: {status} {data.get('error_message', '')}".strip()
            )
        return data

    async def nearby_search(
        self, location: Location, radius_meters: float
    ) -> list[dict]:
        params = {
            "location": f"{location.latitude},{location.longitude}",
            "radius": int(radius_meters),
            "type": PLACE_TYPE,
            "key": self.api_key,
        }
        data = await self._get_json(f"{self.base_url}/nearbysearch/json", params)
        data = self._check_status(data, "nearby search")
        results = data.get("results") or []
        if not isinstance(results, list):
            raise ProviderError("places: nearby search results is not a list")
        return results

    async def place_details(self, place_id: str) -> dict:
        params = {"place_id": place_id, "fields": _DETAIL_FIELDS, "key": self.api_key}
        data = await self._get_json(f"{self.base_url}/details/json", params)
        data = self._check_status(data, "details")
        result = data.get("result")
        if not isinstance(result, dict):
            raise ProviderError(f"places: no detail result for {place_id}")
        return result

    def photo_url(self, photo_reference: str) -> str:
        query = urlencode(
            {
                "maxwidth": PHOTO_MAX_WIDTH,
                "photo_reference": photo_reference,
                "key": self.api_key,
            }
        )
        return f"{self.base_url}/photo?{query}"

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def _photo_urls(self, photos: Any) -> tuple[str, ...]:
        urls = []
        for photo in (photos or [])[:MAX_PHOTOS]:
            ref = photo.get("photo_reference") if isinstance(photo, dict) else None
            if ref:
                urls.append(self.photo_url(ref))
        return tuple(urls)

    def _basic_theatre(self, candidate: Any) -> Theatre | None:
        """Build a record from nearby-search fields only. None if unlocated."""
        if not isinstance(candidate, dict):
            return None
        geometry = candidate.get("geometry")
        loc = geometry.get("location") if isinstance(geometry, dict) else None
        if not isinstance(loc, dict):
            return None
        location = Location.from_dict(
            {"latitude": loc.get("lat"), "longitude": loc.get("lng")}
        )
        if location is None or not candidate.get("place_id"):
            return None

        hours = candidate.get("opening_hours")
        rating = candidate.get("rating")
        return Theatre(
            id=str(candidate["place_id"]),
            name=candidate.get("name") or "Unnamed theatre",
            location=location,
            address=candidate.get("vicinity") or ADDRESS_UNAVAILABLE,
            rating=float(rating) if rating is not None else None,
            # Search results carry at most a single photo reference
            photos=self._photo_urls((candidate.get("photos") or [])[:1]),
            opening_hours=(
                OpeningHours(open_now=hours.get("open_now"))
                if isinstance(hours, dict)
                else None
            ),
            source_provider=SOURCE_PLACES,
        )

    def _enrich(self, theatre: Theatre, details: dict) -> Theatre:
        hours = details.get("opening_hours")
        reviews = tuple(
            Review(
                author=r.get("author_name") or "Anonymous",
                rating=int(r.get("rating") or 0),
                text=r.get("text") or "",
                timestamp=(
                    datetime.fromtimestamp(int(r["time"]), tz=timezone.utc).isoformat()
                    if r.get("time")
                    else ""
                ),
            )
            for r in details.get("reviews") or []
            if isinstance(r, dict)
        )
        photos = self._photo_urls(details.get("photos")) or theatre.photos
        return replace(
            theatre,
            address=details.get("formatted_address") or theatre.address,
            phone_number=details.get("formatted_phone_number"),
            website=details.get("website"),
            opening_hours=(
                OpeningHours(
                    open_now=hours.get("open_now"),
                    weekday_text=tuple(hours.get("weekday_text") or ()),
                )
                if isinstance(hours, dict)
                else theatre.opening_hours
            ),
            photos=photos,
            reviews=reviews,
        )

    # ------------------------------------------------------------------
    # Search flow
    # ------------------------------------------------------------------

    async def find_nearby(
        self, location: Location, radius_meters: float
    ) -> list[Theatre]:
        radius = float(radius_meters)
        candidates = await self.nearby_search(location, radius)
        while not candidates and radius < MAX_SEARCH_RADIUS:
            radius = min(radius * 2, MAX_SEARCH_RADIUS)
            logger.info("places: no theatres, widening radius to %dm", radius)
            candidates = await self.nearby_search(location, radius)

        basics = [t for t in (self._basic_theatre(c) for c in candidates) if t]
        dropped = len(candidates) - len(basics)
        if dropped:
            logger.warning("places: dropped %d malformed or unlocated candidates", dropped)

        async def _enrich_one(theatre: Theatre) -> Theatre:
            details = await self.place_details(theatre.id)
            return self._enrich(theatre, details)

        outcomes = await self._fan_out(basics, _enrich_one)

        theatres: list[Theatre] = []
        for basic, outcome in zip(basics, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "places: enrichment failed for %s (%s), keeping basic record",
                    basic.id,
                    outcome,
                )
                theatres.append(basic)
            else:
                theatres.append(outcome)

        logger.info("places: %d theatres within %dm", len(theatres), radius)
        return annotate_and_sort(theatres, location)
