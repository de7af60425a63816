"""Tests for directions routing and external map links."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from cinemap.navigation import directions_urls, fetch_directions
from cinemap.theatres.models import Location
from cinemap.theatres.providers.base import ProviderError

START = Location(22.2800, 114.1600)
END = Location(22.2851, 114.1582)


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


@pytest.mark.asyncio
async def test_fetch_directions_parses_first_route():
    payload = {
        "routes": [
            {
                "geometry": {"coordinates": [[114.16, 22.28], [114.1582, 22.2851]]},
                "distance": 812.4,
                "duration": 190.0,
            },
            {"geometry": {"coordinates": []}, "distance": 1.0, "duration": 1.0},
        ]
    }
    with patch("cinemap.navigation.requests.get", return_value=_response(payload)) as get:
        route = await fetch_directions(START, END, "tok", base_url="https://proxy.test/")

    assert route.coordinates == [(114.16, 22.28), (114.1582, 22.2851)]
    assert route.distance == 812.4
    assert route.duration == 190.0
    url = get.call_args.args[0]
    assert url == "https://proxy.test/directions/v5/mapbox/driving/114.16,22.28;114.1582,22.2851"
    assert get.call_args.kwargs["params"]["geometries"] == "geojson"


@pytest.mark.asyncio
async def test_fetch_directions_no_routes():
    with patch("cinemap.navigation.requests.get", return_value=_response({"routes": []})):
        with pytest.raises(ProviderError, match="No routes found"):
            await fetch_directions(START, END, "tok")


@pytest.mark.asyncio
async def test_fetch_directions_network_error():
    with patch(
        "cinemap.navigation.requests.get",
        side_effect=requests.ConnectionError("offline"),
    ):
        with pytest.raises(ProviderError):
            await fetch_directions(START, END, "tok")


def test_directions_urls():
    urls = directions_urls(START, END, "PALACE ifc")
    assert "destination=22.2851,114.1582" in urls["google"]
    assert "q=PALACE%20ifc" in urls["apple"]
    assert urls["geo"].startswith("geo:22.2851,114.1582?")
