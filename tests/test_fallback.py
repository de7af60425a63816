"""Tests for the curated regional theatre lists."""

from cinemap.theatres.fallback import region_for, static_theatres
from cinemap.theatres.models import SOURCE_STATIC, Location


def test_hong_kong_region():
    theatres = static_theatres(Location(22.2800, 114.1600))
    assert region_for(Location(22.2800, 114.1600)) == "hong_kong"
    assert len(theatres) == 5
    assert all(t.source_provider == SOURCE_STATIC for t in theatres)
    assert [t.distance for t in theatres] == sorted(t.distance for t in theatres)


def test_new_york_nearest_first():
    theatres = static_theatres(Location(40.7757, -73.9810))
    assert theatres[0].id == "ny4"


def test_outside_every_region():
    assert region_for(Location(51.5074, -0.1278)) is None
    assert static_theatres(Location(51.5074, -0.1278)) == []
    # Box edges are exclusive
    assert static_theatres(Location(22.1, 114.0)) == []
