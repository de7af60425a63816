"""Curated theatre lists used when every live source fails.

Each region is gated by a bounding box; outside all boxes there is no
fallback. Coordinates are approximate and may need verification.
"""

from __future__ import annotations

from cinemap.geo import BoundingBox
from cinemap.theatres.models import (
    SOURCE_STATIC,
    Location,
    Theatre,
    annotate_and_sort,
)

HONG_KONG = BoundingBox(south=22.1, west=113.8, north=22.5, east=114.4)
NEW_YORK = BoundingBox(south=40.49, west=-74.27, north=40.92, east=-73.68)

data = {
    "hong_kong": [
        {"TheaterName": "Broadway Circuit - PALACE ifc", "TheaterCode": "hk1", "Address": "Podium Level 1, IFC Mall, 8 Finance Street, Central, Hong Kong", "Latitude": 22.2851, "Longitude": 114.1582, "Rating": 4.5},
        {"TheaterName": "MCL Cinema - Telford", "TheaterCode": "hk2", "Address": "Telford Plaza, 33 Wai Yip Street, Kowloon Bay, Hong Kong", "Latitude": 22.3235, "Longitude": 114.2132, "Rating": 4.1},
        {"TheaterName": "Emperor Cinemas - Entertainment Building", "TheaterCode": "hk3", "Address": "2/F, Entertainment Building, 30 Queen's Road Central, Central, Hong Kong", "Latitude": 22.2821, "Longitude": 114.1552, "Rating": 4.3},
        {"TheaterName": "UA Cinemas - Times Square", "TheaterCode": "hk4", "Address": "5/F, Times Square, 1 Matheson Street, Causeway Bay, Hong Kong", "Latitude": 22.2794, "Longitude": 114.1822, "Rating": 4.4},
        {"TheaterName": "MCL Cinema - Cyberport", "TheaterCode": "hk5", "Address": "Level 2, The Arcade, 100 Cyberport Road, Cyberport, Hong Kong", "Latitude": 22.2608, "Longitude": 114.1301, "Rating": 4.0},
    ],
    "new_york": [
        {"TheaterName": "AMC Empire 25", "TheaterCode": "ny1", "Address": "234 W 42nd St, New York, NY 10036", "Latitude": 40.7565, "Longitude": -73.9878, "Rating": 4.5},
        {"TheaterName": "Regal Union Square", "TheaterCode": "ny2", "Address": "850 Broadway, New York, NY 10003", "Latitude": 40.7353, "Longitude": -73.9906, "Rating": 4.2},
        {"TheaterName": "Cinemark Theatre", "TheaterCode": "ny3", "Address": "625 Broadway, New York, NY 10012", "Latitude": 40.7312, "Longitude": -73.9829, "Rating": 3.8},
        {"TheaterName": "IMAX AMC Lincoln Square", "TheaterCode": "ny4", "Address": "1998 Broadway, New York, NY 10023", "Latitude": 40.7751, "Longitude": -73.9815, "Rating": 4.7},
    ],
}

REGIONS: list[tuple[str, BoundingBox]] = [
    ("hong_kong", HONG_KONG),
    ("new_york", NEW_YORK),
]


def region_for(location: Location) -> str | None:
    """Return the key of the first region containing ``location``."""
    for key, box in REGIONS:
        if box.contains(location.latitude, location.longitude):
            return key
    return None


def static_theatres(location: Location) -> list[Theatre]:
    """Curated theatres for the region around ``location``, nearest first.

    Returns an empty list outside every known region.
    """
    region = region_for(location)
    if region is None:
        return []
    theatres = [
        Theatre(
            id=t["TheaterCode"],
            name=t["TheaterName"],
            location=Location(float(t["Latitude"]), float(t["Longitude"])),
            address=t["Address"],
            rating=t.get("Rating"),
            source_provider=SOURCE_STATIC,
        )
        for t in data[region]
    ]
    return annotate_and_sort(theatres, location)
