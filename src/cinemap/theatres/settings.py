"""Discovery tuning settings, persisted as JSON."""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path("data/discovery_settings.json")


@dataclass
class DiscoverySettings:
    """Cache, provider and map-interaction parameters."""

    # Cache reuse
    cache_ttl_seconds: float = 3600.0
    max_reuse_distance_km: float = 2.0
    cache_capacity: int = 8

    # Providers
    default_radius_meters: float = 10000.0
    provider_timeout_seconds: float = 10.0
    max_concurrency: int = 4  # simultaneous requests per provider

    # Map: how far the viewport must move before "search this area" shows
    move_threshold_meters: float = 1500.0

    @classmethod
    def load(cls, path: Path = SETTINGS_PATH) -> "DiscoverySettings":
        """Load from JSON file. Returns defaults if file doesn't exist."""
        if not path.exists():
            return cls()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            known = {k for k in cls.__dataclass_fields__}
            filtered = {k: v for k, v in raw.items() if k in known}
            return cls(**filtered)
        except (ValueError, TypeError, AttributeError):
            logger.warning("Corrupt discovery settings, using defaults")
            return cls()

    def save(self, path: Path = SETTINGS_PATH) -> None:
        """Persist to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(asdict(self), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
