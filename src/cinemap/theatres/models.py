"""Theatre, review and cache-entry data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

from cinemap.geo import distance_meters

ADDRESS_UNAVAILABLE = "Address unavailable"

# Provenance tags
SOURCE_PLACES = "places"
SOURCE_KEYWORD = "keyword"
SOURCE_STATIC = "static"


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float

    def distance_to(self, other: Location) -> float:
        """Great-circle distance to ``other`` in meters."""
        return distance_meters(
            self.latitude, self.longitude, other.latitude, other.longitude
        )

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_dict(cls, raw: Any) -> Optional[Location]:
        """Parse ``{"latitude", "longitude"}``. Returns None if unusable."""
        if not isinstance(raw, dict):
            return None
        lat = raw.get("latitude")
        lon = raw.get("longitude")
        if lat is None or lon is None:
            return None
        try:
            return cls(float(lat), float(lon))
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class Review:
    author: str
    rating: int
    text: str
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "author": self.author,
            "rating": self.rating,
            "text": self.text,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Review:
        return cls(
            author=str(raw.get("author") or "Anonymous"),
            rating=int(raw.get("rating") or 0),
            text=str(raw.get("text") or ""),
            timestamp=str(raw.get("timestamp") or ""),
        )


@dataclass(frozen=True)
class OpeningHours:
    open_now: Optional[bool] = None
    weekday_text: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"open_now": self.open_now, "weekday_text": list(self.weekday_text)}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OpeningHours:
        return cls(
            open_now=raw.get("open_now"),
            weekday_text=tuple(raw.get("weekday_text") or ()),
        )


@dataclass(frozen=True)
class Theatre:
    """A movie theatre as returned to the map layer.

    Instances are immutable; local edits (reviews, photos) produce a new
    copy via :meth:`with_review` / :meth:`with_photo` which callers must
    write back through the finder explicitly.
    """

    id: str
    name: str
    location: Location
    address: str = ADDRESS_UNAVAILABLE
    rating: Optional[float] = None  # None = not rated
    photos: tuple[str, ...] = ()
    reviews: tuple[Review, ...] = ()
    distance: float = 0.0
    opening_hours: Optional[OpeningHours] = None
    website: Optional[str] = None
    phone_number: Optional[str] = None
    source_provider: str = ""
    search_term: Optional[str] = None

    def with_distance_from(self, origin: Location) -> Theatre:
        return replace(self, distance=origin.distance_to(self.location))

    def with_review(self, review: Review) -> Theatre:
        return replace(self, reviews=self.reviews + (review,))

    def with_photo(self, uri: str) -> Theatre:
        return replace(self, photos=self.photos + (uri,))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location.to_dict(),
            "address": self.address,
            "rating": self.rating,
            "photos": list(self.photos),
            "reviews": [r.to_dict() for r in self.reviews],
            "distance": self.distance,
            "opening_hours": (
                self.opening_hours.to_dict() if self.opening_hours else None
            ),
            "website": self.website,
            "phone_number": self.phone_number,
            "source_provider": self.source_provider,
            "search_term": self.search_term,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Optional[Theatre]:
        """Build a Theatre from a dict. Returns None if the location is invalid."""
        location = Location.from_dict(raw.get("location"))
        if location is None:
            return None
        hours = raw.get("opening_hours")
        rating = raw.get("rating")
        return cls(
            id=str(raw.get("id", "")),
            name=str(raw.get("name", "")),
            location=location,
            address=raw.get("address") or ADDRESS_UNAVAILABLE,
            rating=float(rating) if rating is not None else None,
            photos=tuple(raw.get("photos") or ()),
            reviews=tuple(Review.from_dict(r) for r in raw.get("reviews") or ()),
            distance=float(raw.get("distance") or 0.0),
            opening_hours=OpeningHours.from_dict(hours) if hours else None,
            website=raw.get("website"),
            phone_number=raw.get("phone_number"),
            source_provider=raw.get("source_provider", ""),
            search_term=raw.get("search_term"),
        )


def annotate_and_sort(theatres: list[Theatre], origin: Location) -> list[Theatre]:
    """Recompute distances from ``origin`` and sort nearest first."""
    annotated = [t.with_distance_from(origin) for t in theatres]
    annotated.sort(key=lambda t: t.distance)
    return annotated


@dataclass
class CacheEntry:
    timestamp: float
    origin: Location
    radius_meters: float
    results: list[Theatre]

    def is_valid_for(
        self,
        query: Location,
        now: float,
        ttl_seconds: float,
        max_reuse_km: float,
    ) -> bool:
        """Both the age and the distance bound must hold."""
        if now - self.timestamp >= ttl_seconds:
            return False
        return self.origin.distance_to(query) <= max_reuse_km * 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "origin": self.origin.to_dict(),
            "radius_meters": self.radius_meters,
            "results": [t.to_dict() for t in self.results],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CacheEntry:
        origin = Location.from_dict(raw.get("origin"))
        if origin is None:
            raise ValueError("cache entry without origin")
        results = [Theatre.from_dict(t) for t in raw.get("results", [])]
        return cls(
            timestamp=float(raw["timestamp"]),
            origin=origin,
            radius_meters=float(raw.get("radius_meters", 0)),
            results=[t for t in results if t is not None],
        )
