"""Tests for the Mapbox keyword-sweep provider."""

import asyncio
from unittest.mock import AsyncMock, patch
from urllib.parse import unquote

import pytest

from cinemap.theatres.models import SOURCE_KEYWORD, Location
from cinemap.theatres.providers.base import ProviderError
from cinemap.theatres.providers.keyword import (
    SEARCH_TERMS,
    KeywordSweepProvider,
    merge_unique,
)

from conftest import make_theatre

ORIGIN = Location(22.3193, 114.1694)


def _feature(feature_id, lat, lng, text=None):
    return {
        "id": feature_id,
        "text": text or feature_id,
        "place_name": f"{feature_id}, Hong Kong",
        "center": [lng, lat],
    }


class FakeGeocoder:
    def __init__(self, responses, delays=None):
        self.responses = responses
        self.delays = delays or {}
        self.queries = []
        self.params = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def handle(self, url, params):
        term = unquote(url.rsplit("/", 1)[1].removesuffix(".json"))
        self.queries.append(term)
        self.params.append(params)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(term, 0))
            response = self.responses.get(term, {"features": []})
            if isinstance(response, Exception):
                raise response
            return response
        finally:
            self.in_flight -= 1


def _provider(terms, max_concurrency=4):
    return KeywordSweepProvider(
        "token",
        search_terms=terms,
        base_url="https://mapbox.test",
        max_concurrency=max_concurrency,
    )


@pytest.mark.asyncio
async def test_same_place_from_two_keywords_kept_once_with_first_keyword():
    provider = _provider(("alpha", "beta"))
    geocoder = FakeGeocoder(
        {
            "alpha": {"features": [_feature("poi.1", 22.320001, 114.170001)]},
            "beta": {"features": [_feature("poi.2", 22.320004, 114.169998)]},
        },
        # beta settles first; merge order must still follow the keyword list
        delays={"alpha": 0.01},
    )
    with patch.object(provider, "_get_json", AsyncMock(side_effect=geocoder.handle)):
        theatres = await provider.find_nearby(ORIGIN, 10000)

    assert len(theatres) == 1
    assert theatres[0].id == "poi.1"
    assert theatres[0].search_term == "alpha"
    assert theatres[0].source_provider == SOURCE_KEYWORD


@pytest.mark.asyncio
async def test_failed_keyword_does_not_abort_sweep():
    provider = _provider(("alpha", "beta", "gamma"))
    geocoder = FakeGeocoder(
        {
            "alpha": ProviderError("timeout"),
            "beta": {"features": [_feature("poi.b", 22.3300, 114.1694)]},
            "gamma": {"features": [_feature("poi.g", 22.3200, 114.1694)]},
        }
    )
    with patch.object(provider, "_get_json", AsyncMock(side_effect=geocoder.handle)):
        theatres = await provider.find_nearby(ORIGIN, 10000)

    assert sorted(geocoder.queries) == ["alpha", "beta", "gamma"]
    assert [t.id for t in theatres] == ["poi.g", "poi.b"]
    assert theatres[0].distance < theatres[1].distance


@pytest.mark.asyncio
async def test_results_beyond_radius_are_kept_and_sorted_last():
    provider = _provider(("alpha",))
    geocoder = FakeGeocoder(
        {
            "alpha": {
                "features": [
                    # ~14.5 km north of ORIGIN
                    _feature("poi.far", 22.4497, 114.1694),
                    _feature("poi.near", 22.3200, 114.1694),
                    {"id": "poi.broken", "text": "No centre"},
                ]
            }
        }
    )
    with patch.object(provider, "_get_json", AsyncMock(side_effect=geocoder.handle)):
        theatres = await provider.find_nearby(ORIGIN, 10000)

    assert [t.id for t in theatres] == ["poi.near", "poi.far"]
    assert theatres[1].distance > 10000


@pytest.mark.asyncio
async def test_queries_are_biased_toward_origin():
    provider = _provider(("cinema",))
    geocoder = FakeGeocoder({})
    with patch.object(provider, "_get_json", AsyncMock(side_effect=geocoder.handle)):
        assert await provider.find_nearby(ORIGIN, 10000) == []

    params = geocoder.params[0]
    assert params["proximity"] == "114.1694,22.3193"
    assert params["types"] == "poi"
    assert params["access_token"] == "token"


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    terms = tuple(f"term{i}" for i in range(10))
    provider = _provider(terms, max_concurrency=3)
    geocoder = FakeGeocoder({}, delays={t: 0.005 for t in terms})
    with patch.object(provider, "_get_json", AsyncMock(side_effect=geocoder.handle)):
        await provider.find_nearby(ORIGIN, 10000)

    assert len(geocoder.queries) == 10
    assert geocoder.max_in_flight <= 3


@pytest.mark.asyncio
async def test_search_places_returns_suggestions():
    provider = _provider(SEARCH_TERMS)
    geocoder = FakeGeocoder(
        {"Central": {"features": [_feature("place.1", 22.2819, 114.1582, text="Central")]}}
    )
    with patch.object(provider, "_get_json", AsyncMock(side_effect=geocoder.handle)):
        suggestions = await provider.search_places("Central")

    assert len(suggestions) == 1
    assert suggestions[0].name == "Central"
    assert suggestions[0].location == Location(22.2819, 114.1582)
    assert geocoder.params[0]["types"] == "place,poi"


@pytest.mark.asyncio
async def test_search_places_failure_returns_empty():
    provider = _provider(SEARCH_TERMS)
    with patch.object(provider, "_get_json", AsyncMock(side_effect=ProviderError("down"))):
        assert await provider.search_places("Central") == []
    assert await provider.search_places("") == []


def test_merge_unique_rounds_to_five_decimals():
    merged = merge_unique(
        [
            [make_theatre("a", 22.123451, 114.0), make_theatre("b", 22.3, 114.1)],
            [make_theatre("c", 22.123449, 114.0), make_theatre("d", 22.12346, 114.0)],
        ]
    )
    assert [t.id for t in merged] == ["a", "b", "d"]
