from __future__ import annotations

import os
from typing import TYPE_CHECKING

from dotenv import load_dotenv

if TYPE_CHECKING:
    from cinemap.storage.credentials import CredentialStore

load_dotenv()

# Provider credentials (optional here, can also live in the encrypted store)
GOOGLE_PLACES_API_KEY: str = os.environ.get("GOOGLE_PLACES_API_KEY", "")
MAPBOX_ACCESS_TOKEN: str = os.environ.get("MAPBOX_ACCESS_TOKEN", "")

# Base URLs can point at a credential-holding proxy instead of the vendor
PLACES_BASE_URL: str = os.environ.get(
    "PLACES_BASE_URL", "https://maps.googleapis.com/maps/api/place"
)
MAPBOX_BASE_URL: str = os.environ.get("MAPBOX_BASE_URL", "https://api.mapbox.com")

# Storage
DB_PATH: str = os.environ.get("CINEMAP_DB_PATH", "data/cinemap.db")
ENCRYPTION_KEY: str = os.environ.get("CINEMAP_ENCRYPTION_KEY", "")

HTTP_TIMEOUT: float = float(os.environ.get("HTTP_TIMEOUT", "10"))

# Credential name → env var value
_ENV_KEYS: dict[str, str] = {
    "google": GOOGLE_PLACES_API_KEY,
    "mapbox": MAPBOX_ACCESS_TOKEN,
}


async def resolve_api_key(
    name: str, credentials: CredentialStore | None = None
) -> str:
    """Resolve a provider credential.

    Priority:
    1. Environment variable (GOOGLE_PLACES_API_KEY / MAPBOX_ACCESS_TOKEN)
    2. Encrypted credential store

    Returns an empty string if nothing is configured.
    """
    key = _ENV_KEYS.get(name, "")
    if key:
        return key
    if credentials is not None:
        return await credentials.get(name) or ""
    return ""
