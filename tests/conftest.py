"""Shared fixtures for cinemap tests."""

import pytest
import pytest_asyncio

from cinemap.storage.store import KeyValueStore
from cinemap.theatres.models import Location, Theatre


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_theatre(
    theatre_id: str,
    latitude: float = 22.3193,
    longitude: float = 114.1694,
    **kwargs,
) -> Theatre:
    return Theatre(
        id=theatre_id,
        name=kwargs.pop("name", f"Theatre {theatre_id}"),
        location=Location(latitude, longitude),
        **kwargs,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def store(tmp_path):
    kv = KeyValueStore(str(tmp_path / "cinemap.db"))
    await kv.init()
    yield kv
    await kv.close()
