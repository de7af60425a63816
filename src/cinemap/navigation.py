"""Directions to a theatre.

Fetches a driving route from the Mapbox Directions API and builds
deep links / web fallback URLs for external map apps.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from urllib.parse import quote

import requests

from cinemap.config import HTTP_TIMEOUT, MAPBOX_BASE_URL
from cinemap.theatres.models import Location
from cinemap.theatres.providers.base import ProviderError


@dataclass(frozen=True)
class Route:
    coordinates: list[tuple[float, float]]  # (longitude, latitude) pairs
    distance: float  # meters
    duration: float  # seconds


def _fetch_directions_blocking(
    start: Location,
    end: Location,
    access_token: str,
    base_url: str,
    timeout: float,
) -> Route:
    url = (
        f"{base_url.rstrip('/')}/directions/v5/mapbox/driving/"
        f"{start.longitude},{start.latitude};{end.longitude},{end.latitude}"
    )
    params = {
        "alternatives": "true",
        "geometries": "geojson",
        "steps": "true",
        "access_token": access_token,
    }
    try:
        resp = requests.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as exc:
        raise ProviderError(f"directions request failed: {exc}") from exc
    except ValueError as exc:
        raise ProviderError("directions: malformed JSON") from exc

    routes = data.get("routes") if isinstance(data, dict) else None
    if not routes:
        raise ProviderError("No routes found")
    route = routes[0]
    try:
        return Route(
            coordinates=[(float(c[0]), float(c[1])) for c in route["geometry"]["coordinates"]],
            distance=float(route["distance"]),
            duration=float(route["duration"]),
        )
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        raise ProviderError("directions: malformed route") from exc


async def fetch_directions(
    start: Location,
    end: Location,
    access_token: str,
    base_url: str = MAPBOX_BASE_URL,
    timeout: float = HTTP_TIMEOUT,
) -> Route:
    """Return the first driving route from ``start`` to ``end``.

    Raises ProviderError when the request fails or no route exists.
    """
    return await asyncio.to_thread(
        _fetch_directions_blocking, start, end, access_token, base_url, timeout
    )


def directions_urls(start: Location, dest: Location, dest_name: str) -> dict[str, str]:
    """Generate direction URLs for external map apps.

    Returns a dict with:
        - "google": Google Maps web/universal link
        - "apple": Apple Maps link (opens the app on iOS)
        - "geo": geo: URI (Android intent)
    """
    name_encoded = quote(dest_name)

    google_url = (
        "https://www.google.com/maps/dir/?api=1"
        f"&origin={start.latitude},{start.longitude}"
        f"&destination={dest.latitude},{dest.longitude}"
        "&travelmode=driving"
    )

    apple_url = (
        "https://maps.apple.com/?"
        f"saddr={start.latitude},{start.longitude}"
        f"&daddr={dest.latitude},{dest.longitude}"
        f"&q={name_encoded}"
    )

    geo_url = f"geo:{dest.latitude},{dest.longitude}?q={dest.latitude},{dest.longitude}({name_encoded})"

    return {
        "google": google_url,
        "apple": apple_url,
        "geo": geo_url,
    }
