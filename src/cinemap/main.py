"""cinemap command-line entry point.

Usage:
    cinemap nearby --lat 22.3193 --lng 114.1694 [--radius 5000]
    cinemap set-key google <API_KEY>
    cinemap clear-cache
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from cinemap.config import DB_PATH, resolve_api_key
from cinemap.storage.credentials import CredentialStore
from cinemap.storage.store import KeyValueStore
from cinemap.theatres.cache import TheatreCache
from cinemap.theatres.finder import TheatreFinder
from cinemap.theatres.models import Location
from cinemap.theatres.providers.keyword import KeywordSweepProvider
from cinemap.theatres.providers.places import RichPlacesProvider
from cinemap.theatres.settings import DiscoverySettings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


async def build_finder(
    store: KeyValueStore,
    settings: DiscoverySettings | None = None,
) -> TheatreFinder:
    """Wire the cache and providers. Providers without a credential are skipped."""
    settings = settings or DiscoverySettings.load()
    credentials = CredentialStore(store)

    google_key = await resolve_api_key("google", credentials)
    mapbox_token = await resolve_api_key("mapbox", credentials)
    if not google_key:
        logger.warning("No Google Places key configured, primary provider disabled")
    if not mapbox_token:
        logger.warning("No Mapbox token configured, keyword provider disabled")

    primary = (
        RichPlacesProvider(
            google_key,
            timeout=settings.provider_timeout_seconds,
            max_concurrency=settings.max_concurrency,
        )
        if google_key
        else None
    )
    secondary = (
        KeywordSweepProvider(
            mapbox_token,
            timeout=settings.provider_timeout_seconds,
            max_concurrency=settings.max_concurrency,
        )
        if mapbox_token
        else None
    )
    cache = TheatreCache(store, capacity=settings.cache_capacity)
    return TheatreFinder(cache, primary, secondary, settings)


def _format_theatre(index: int, theatre) -> str:
    rating = f"{theatre.rating:.1f}" if theatre.rating is not None else "not rated"
    return (
        f"{index:2d}. {theatre.name} ({theatre.distance / 1000:.1f} km, {rating})\n"
        f"    {theatre.address}"
    )


async def _nearby(args: argparse.Namespace, store: KeyValueStore) -> None:
    finder = await build_finder(store)
    result = await finder.discover_with_source(
        Location(args.lat, args.lng), args.radius
    )
    if not result.theatres:
        print("No theatres found. Try another area or search again later.")
        return
    print(f"{len(result.theatres)} theatres (source: {result.source})")
    for i, theatre in enumerate(result.theatres, start=1):
        print(_format_theatre(i, theatre))


async def _set_key(args: argparse.Namespace, store: KeyValueStore) -> None:
    await CredentialStore(store).set(args.provider, args.key)
    print(f"Stored {args.provider} credential")


async def _clear_cache(args: argparse.Namespace, store: KeyValueStore) -> None:
    await TheatreCache(store).clear()
    print("Theatre cache cleared")


_COMMANDS = {
    "nearby": _nearby,
    "set-key": _set_key,
    "clear-cache": _clear_cache,
}


async def async_main(args: argparse.Namespace) -> None:
    store = KeyValueStore(args.db)
    await store.init()
    try:
        await _COMMANDS[args.command](args, store)
    finally:
        await store.close()


def _coordinate(limit: float):
    def parse(value: str) -> float:
        number = float(value)
        if not -limit <= number <= limit:
            raise argparse.ArgumentTypeError(f"must be between -{limit:g} and {limit:g}")
        return number

    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cinemap")
    parser.add_argument("--db", default=DB_PATH, help="SQLite database path")
    sub = parser.add_subparsers(dest="command", required=True)

    nearby = sub.add_parser("nearby", help="Find movie theatres near a coordinate")
    nearby.add_argument("--lat", type=_coordinate(90), required=True)
    nearby.add_argument("--lng", type=_coordinate(180), required=True)
    nearby.add_argument("--radius", type=float, default=None, help="Meters")

    set_key = sub.add_parser("set-key", help="Store a provider credential encrypted")
    set_key.add_argument("provider", choices=["google", "mapbox"])
    set_key.add_argument("key")

    sub.add_parser("clear-cache", help="Remove cached theatre results")
    return parser


def main() -> None:
    asyncio.run(async_main(build_parser().parse_args()))


if __name__ == "__main__":
    main()
