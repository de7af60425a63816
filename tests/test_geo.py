import pytest

from cinemap.geo import BoundingBox, distance_meters, geohash


def test_distance_for_small_latitude_step():
    d = distance_meters(22.3193, 114.1694, 22.3283, 114.1694)
    assert d == pytest.approx(1000.75, rel=0.01)


def test_distance_is_symmetric_and_zero_for_same_point():
    a = (22.2851, 114.1582)
    b = (40.7565, -73.9878)
    assert distance_meters(*a, *b) == pytest.approx(distance_meters(*b, *a))
    assert distance_meters(*a, *a) == 0.0


def test_distance_grows_with_separation():
    near = distance_meters(0.0, 0.0, 0.0, 1.0)
    far = distance_meters(0.0, 0.0, 0.0, 2.0)
    assert 0 < near < far
    # One degree of longitude on the equator
    assert near == pytest.approx(111_195, rel=0.001)


def test_antipodal_distance_is_half_circumference():
    d = distance_meters(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(20_015_087, rel=0.001)


def test_geohash_known_value():
    assert geohash(57.64911, 10.40744, precision=11) == "u4pruydqqvj"
    assert geohash(57.64911, 10.40744) == "u4pru"


def test_geohash_nearby_points_share_bucket():
    assert geohash(22.2851, 114.1582) == geohash(22.2852, 114.1583)
    assert geohash(22.2851, 114.1582) != geohash(40.7565, -73.9878)


def test_bounding_box_edges_are_exclusive():
    box = BoundingBox(south=22.1, west=113.8, north=22.5, east=114.4)
    assert box.contains(22.3, 114.1)
    assert not box.contains(22.1, 114.1)
    assert not box.contains(22.3, 114.4)
    assert not box.contains(40.7, -73.9)
