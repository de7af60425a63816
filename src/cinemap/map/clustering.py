"""Greedy distance-based marker clustering."""

from __future__ import annotations

from dataclasses import dataclass, field

from cinemap.theatres.models import Location, Theatre


@dataclass
class MarkerCluster:
    center: Location
    theatres: list[Theatre] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.theatres)

    def add(self, theatre: Theatre) -> None:
        self.theatres.append(theatre)
        n = len(self.theatres)
        self.center = Location(
            sum(t.location.latitude for t in self.theatres) / n,
            sum(t.location.longitude for t in self.theatres) / n,
        )


def cluster_theatres(theatres: list[Theatre], radius_meters: float) -> list[MarkerCluster]:
    """Group theatres whose positions fall within ``radius_meters`` of a cluster centre.

    Each theatre joins the first existing cluster close enough to it (the
    centre moves to the mean of its members), otherwise it starts a new one.
    Input order decides membership, so results are stable for a given list.
    """
    clusters: list[MarkerCluster] = []
    for theatre in theatres:
        for cluster in clusters:
            if cluster.center.distance_to(theatre.location) < radius_meters:
                cluster.add(theatre)
                break
        else:
            clusters.append(MarkerCluster(center=theatre.location, theatres=[theatre]))
    return clusters
