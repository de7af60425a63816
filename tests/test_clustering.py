"""Tests for marker clustering."""

import pytest

from cinemap.map.clustering import cluster_theatres

from conftest import make_theatre


def test_close_markers_merge():
    theatres = [
        make_theatre("a", 22.2800, 114.1600),
        make_theatre("b", 22.2802, 114.1600),
        make_theatre("c", 22.3200, 114.2100),
    ]
    clusters = cluster_theatres(theatres, 100)

    assert [c.size for c in clusters] == [2, 1]
    assert clusters[0].center.latitude == pytest.approx(22.2801)
    assert clusters[1].theatres[0].id == "c"


def test_zero_radius_keeps_markers_apart():
    theatres = [make_theatre("a"), make_theatre("b")]
    assert [c.size for c in cluster_theatres(theatres, 0)] == [1, 1]


def test_empty_input():
    assert cluster_theatres([], 500) == []
