"""Great-circle distance, geohash buckets and bounding boxes."""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0

_GEOHASH_BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters on a spherical Earth.

    Callers are responsible for rejecting NaN or out-of-range coordinates.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlon / 2) ** 2
    )
    # Clamp against float drift pushing a slightly above 1 for antipodes
    a = min(1.0, a)
    return EARTH_RADIUS_KM * 1000 * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def geohash(latitude: float, longitude: float, precision: int = 5) -> str:
    """Encode a coordinate as a base-32 geohash.

    Precision 5 gives cells of roughly 4.9 km x 4.9 km, which is what the
    theatre cache uses as its bucket size.
    """
    lat_lo, lat_hi = -90.0, 90.0
    lon_lo, lon_hi = -180.0, 180.0
    chars: list[str] = []
    bits = 0
    bit_count = 0
    even = True  # longitude first

    while len(chars) < precision:
        if even:
            mid = (lon_lo + lon_hi) / 2
            if longitude >= mid:
                bits = (bits << 1) | 1
                lon_lo = mid
            else:
                bits <<= 1
                lon_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if latitude >= mid:
                bits = (bits << 1) | 1
                lat_lo = mid
            else:
                bits <<= 1
                lat_hi = mid
        even = not even
        bit_count += 1
        if bit_count == 5:
            chars.append(_GEOHASH_BASE32[bits])
            bits = 0
            bit_count = 0

    return "".join(chars)


@dataclass(frozen=True)
class BoundingBox:
    """Latitude/longitude box with exclusive edges."""

    south: float
    west: float
    north: float
    east: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.south < latitude < self.north
            and self.west < longitude < self.east
        )
