"""Map screen interaction state.

Tracks the viewport and the origin of the last applied search, surfaces
the "search this area" affordance once the user pans far enough away,
and issues discovery requests. Every request carries a token; a result
whose token is no longer current is discarded so quick pans never show
stale markers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cinemap.geo import distance_meters
from cinemap.location import DEFAULT_LOCATION, LocationProvider, resolve_location
from cinemap.map.clustering import MarkerCluster, cluster_theatres
from cinemap.theatres.finder import SOURCE_NONE, TheatreFinder
from cinemap.theatres.models import Location, Review, Theatre
from cinemap.theatres.settings import DiscoverySettings

logger = logging.getLogger(__name__)

DEFAULT_LATITUDE_DELTA = 0.0922
DEFAULT_LONGITUDE_DELTA = 0.0421
SELECTED_ZOOM_DELTA = 0.01


@dataclass(frozen=True)
class SearchViewport:
    center: Location
    latitude_delta: float = DEFAULT_LATITUDE_DELTA
    longitude_delta: float = DEFAULT_LONGITUDE_DELTA


class MapInteractionController:
    """One instance per mounted map screen."""

    def __init__(
        self,
        finder: TheatreFinder,
        location_provider: LocationProvider,
        settings: DiscoverySettings | None = None,
        default_location: Location = DEFAULT_LOCATION,
    ) -> None:
        self.finder = finder
        self.location_provider = location_provider
        self.settings = settings or finder.settings
        self.default_location = default_location

        self.viewport = SearchViewport(default_location)
        self.last_search_origin: Location | None = None
        self.has_moved_significantly = False
        self.theatres: list[Theatre] = []
        self.selected: Theatre | None = None
        self.is_loading = False
        self.location_warning: str | None = None
        self.last_source = SOURCE_NONE

        self._request_token = 0

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def _discover(self, origin: Location, supersede: bool = False) -> bool:
        """Run discovery at ``origin``. Returns True if the result was applied.

        A manual search is dropped while another is in flight; ``supersede``
        starts a new request anyway and orphans the older one.
        """
        if self.is_loading and not supersede:
            logger.info("Discovery already in flight, ignoring request")
            return False

        self._request_token += 1
        token = self._request_token
        self.is_loading = True
        try:
            result = await self.finder.discover_with_source(origin)
        except Exception:
            logger.exception("Discovery failed")
            result = None
        finally:
            if token == self._request_token:
                self.is_loading = False

        if token != self._request_token:
            logger.info("Discarding stale discovery result (token %d)", token)
            return False
        if result is None:
            return False

        self.theatres = result.theatres
        self.last_source = result.source
        self.last_search_origin = origin
        # The viewport may have moved on while the request was in flight
        self.has_moved_significantly = self._moved_from_last_search(self.viewport.center)
        if self.selected is not None:
            self.selected = next(
                (t for t in self.theatres if t.id == self.selected.id), None
            )
        logger.info("Showing %d theatres from %s", len(self.theatres), result.source)
        return True

    async def start(self) -> bool:
        """Initial load on screen mount."""
        return await self.use_my_location()

    async def use_my_location(self) -> bool:
        """Re-centre on the device position and always search there."""
        fix = await resolve_location(self.location_provider, self.default_location)
        self.location_warning = fix.warning
        self.viewport = SearchViewport(fix.location)
        return await self._discover(fix.location, supersede=True)

    async def search_this_area(self) -> bool:
        return await self._discover(self.viewport.center)

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def on_viewport_settled(
        self,
        center: Location,
        latitude_delta: float | None = None,
        longitude_delta: float | None = None,
    ) -> bool:
        """Record the settled viewport. Returns has_moved_significantly."""
        self.viewport = SearchViewport(
            center,
            latitude_delta if latitude_delta is not None else self.viewport.latitude_delta,
            longitude_delta if longitude_delta is not None else self.viewport.longitude_delta,
        )
        if self._moved_from_last_search(center):
            self.has_moved_significantly = True
        return self.has_moved_significantly

    def _moved_from_last_search(self, center: Location) -> bool:
        origin = self.last_search_origin
        if origin is None:
            return False
        moved = distance_meters(
            center.latitude, center.longitude, origin.latitude, origin.longitude
        )
        return moved > self.settings.move_threshold_meters

    # ------------------------------------------------------------------
    # Selection and local edits
    # ------------------------------------------------------------------

    def select_theatre(self, theatre_id: str) -> Theatre | None:
        """Centre and zoom on a theatre marker. Does not search."""
        theatre = next((t for t in self.theatres if t.id == theatre_id), None)
        if theatre is None:
            return None
        self.selected = theatre
        self.viewport = SearchViewport(
            theatre.location, SELECTED_ZOOM_DELTA, SELECTED_ZOOM_DELTA
        )
        return theatre

    def clear_selection(self) -> None:
        self.selected = None

    def _replace_theatre(self, updated: Theatre) -> None:
        self.theatres = [updated if t.id == updated.id else t for t in self.theatres]
        if self.selected is not None and self.selected.id == updated.id:
            self.selected = updated

    async def add_review(self, author: str, rating: int, text: str) -> Theatre | None:
        """Attach a review to the selected theatre and write it back."""
        if self.selected is None or not text.strip():
            return None
        if not 1 <= rating <= 5:
            raise ValueError(f"rating must be between 1 and 5, got {rating}")
        review = Review(author=author or "Anonymous", rating=rating, text=text.strip())
        updated = await self.finder.add_review(self.selected, review)
        self._replace_theatre(updated)
        return self.selected

    async def add_photo(self, uri: str) -> Theatre | None:
        """Attach a photo URI to the selected theatre and write it back."""
        if self.selected is None or not uri:
            return None
        updated = await self.finder.add_photo(self.selected, uri)
        self._replace_theatre(updated)
        return self.selected

    def clusters(self, radius_meters: float) -> list[MarkerCluster]:
        return cluster_theatres(self.theatres, radius_meters)
