"""Tests for persisted discovery settings."""

from cinemap.theatres.settings import DiscoverySettings


def test_missing_file_gives_defaults(tmp_path):
    settings = DiscoverySettings.load(tmp_path / "absent.json")
    assert settings.cache_ttl_seconds == 3600.0
    assert settings.max_reuse_distance_km == 2.0
    assert settings.default_radius_meters == 10000.0
    assert settings.move_threshold_meters == 1500.0


def test_save_then_load(tmp_path):
    path = tmp_path / "conf" / "settings.json"
    DiscoverySettings(cache_ttl_seconds=60, max_concurrency=2).save(path)

    loaded = DiscoverySettings.load(path)
    assert loaded.cache_ttl_seconds == 60
    assert loaded.max_concurrency == 2
    assert loaded.cache_capacity == 8


def test_unknown_keys_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text('{"cache_capacity": 3, "legacy_flag": true}', encoding="utf-8")
    assert DiscoverySettings.load(path).cache_capacity == 3


def test_corrupt_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert DiscoverySettings.load(path) == DiscoverySettings()

    path.write_text("[1, 2]", encoding="utf-8")
    assert DiscoverySettings.load(path) == DiscoverySettings()


def test_undecodable_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_bytes(b"\xff\xfe{\x00\x9c")
    assert DiscoverySettings.load(path) == DiscoverySettings()
