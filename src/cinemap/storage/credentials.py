"""Encrypted provider credentials.

API keys never ship inside the client. They come from the environment
(see cinemap.config) or from this store, where they are encrypted at rest
with Fernet symmetric encryption.
"""

import logging
import os

from cryptography.fernet import Fernet, InvalidToken

from cinemap import config
from cinemap.storage.store import KeyValueStore, Namespace

logger = logging.getLogger(__name__)


def _key_file_contents(path: str) -> bytes:
    """Return the Fernet key kept at ``path``, creating it on first use.

    A new key file is readable by the owner only.
    """
    try:
        with open(path, "rb") as f:
            return f.read().strip()
    except FileNotFoundError:
        pass

    key = Fernet.generate_key()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(key)
    logger.info("Generated credential encryption key at %s", path)
    return key


class CredentialStore:
    """Provider API keys stored in the CREDENTIALS namespace."""

    def __init__(self, store: KeyValueStore, fernet_key: bytes | None = None) -> None:
        self.store = store
        if fernet_key is None:
            fernet_key = self._resolve_key(store.db_path)
        self._fernet = Fernet(fernet_key)

    @staticmethod
    def _resolve_key(db_path: str) -> bytes:
        """CINEMAP_ENCRYPTION_KEY wins; otherwise a key file beside the database."""
        if config.ENCRYPTION_KEY:
            return config.ENCRYPTION_KEY.encode()
        return _key_file_contents(
            os.path.join(os.path.dirname(db_path) or ".", ".credentials_key")
        )

    async def get(self, name: str) -> str | None:
        """Return the decrypted credential, or None if missing/undecryptable."""
        value = await self.store.get(Namespace.CREDENTIALS, name)
        if value is None:
            return None
        try:
            return self._fernet.decrypt(value.encode()).decode()
        except InvalidToken:
            logger.warning("Failed to decrypt credential %s", name)
            return None

    async def set(self, name: str, secret: str) -> None:
        token = self._fernet.encrypt(secret.encode()).decode()
        await self.store.set(Namespace.CREDENTIALS, name, token)
        logger.info("Stored credential %s", name)

    async def delete(self, name: str) -> None:
        await self.store.remove(Namespace.CREDENTIALS, name)

    async def names(self) -> list[str]:
        return await self.store.keys(Namespace.CREDENTIALS)
