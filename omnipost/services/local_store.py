"""
Local Store: JSON collections over a key-value backend.

Three fixed keys hold everything: the user list, the post list and the
single active session. Every read returns the whole collection and every
write replaces it; filtering and sorting belong to the callers.

Any storage problem (unreadable JSON, wrong shape, backend I/O error, quota
exceeded) surfaces as StorageFailure. Nothing is retried.

Callers doing a read-modify-write hold locked(name) for the whole cycle, so
concurrent requests in one process cannot overwrite each other. Separate
processes sharing a backend are not coordinated.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from omnipost.database import StorageBackend
from omnipost.exceptions import StorageFailure

logger = logging.getLogger(__name__)

USERS = "users"
POSTS = "posts"
SESSION = "session"

DEFAULT_QUOTA = 5 * 1024 * 1024  # Typical browser local-storage limit

Record = Dict[str, Any]


class LocalStore:
    """
    Collection-level access to the backend.
    Keys are "<prefix>_<name>", e.g. "omnipost_posts".
    """

    def __init__(
        self,
        backend: StorageBackend,
        prefix: str = "omnipost",
        quota: int = DEFAULT_QUOTA,
    ) -> None:
        self.backend = backend
        self.prefix = prefix
        self.quota = quota
        self._locks: Dict[str, asyncio.Lock] = {}
        self._sizes: Optional[Dict[str, int]] = None

    def key_for(self, name: str) -> str:
        return f"{self.prefix}_{name}"

    @asynccontextmanager
    async def locked(self, name: str) -> AsyncIterator[None]:
        """Serialize read-modify-write cycles on one collection."""
        lock = self._locks.setdefault(name, asyncio.Lock())
        async with lock:
            yield

    async def read(self, collection: str) -> List[Record]:
        """Return the full ordered collection, empty if never written."""
        value = await self._load(collection)
        if value is None:
            return []
        if not isinstance(value, list):
            raise StorageFailure(f"Stored {collection!r} is not a list")
        return value

    async def write(self, collection: str, records: List[Record]) -> None:
        """Overwrite the whole collection."""
        await self._store(collection, list(records))

    async def read_record(self, name: str) -> Optional[Record]:
        value = await self._load(name)
        if value is not None and not isinstance(value, dict):
            raise StorageFailure(f"Stored {name!r} is not a record")
        return value

    async def write_record(self, name: str, record: Record) -> None:
        await self._store(name, record)

    async def remove(self, name: str) -> None:
        key = self.key_for(name)
        try:
            await self.backend.remove_item(key)
        except Exception as e:
            logger.error("Failed to remove %s: %s", key, e)
            raise StorageFailure(f"Could not remove {key}") from e
        if self._sizes is not None:
            self._sizes.pop(key, None)

    async def usage(self) -> int:
        """Characters used by this store's keys and values."""
        return sum((await self._key_sizes()).values())

    async def _key_sizes(self) -> Dict[str, int]:
        # Measured from the backend once, then kept current by _store/remove.
        if self._sizes is None:
            sizes: Dict[str, int] = {}
            for key in await self.backend.keys():
                if key.startswith(f"{self.prefix}_"):
                    value = await self.backend.get_item(key)
                    sizes[key] = len(key) + len(value or "")
            self._sizes = sizes
        return self._sizes

    async def _load(self, name: str) -> Any:
        key = self.key_for(name)
        try:
            raw = await self.backend.get_item(key)
        except Exception as e:
            logger.error("Failed to read %s: %s", key, e)
            raise StorageFailure(f"Could not read {key}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Corrupted value under %s: %s", key, e)
            raise StorageFailure(f"Stored value under {key} is not valid JSON") from e

    async def _store(self, name: str, value: Any) -> None:
        key = self.key_for(name)
        try:
            encoded = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise StorageFailure(f"Value for {key} is not JSON-serializable") from e

        try:
            sizes = await self._key_sizes()
        except Exception as e:
            logger.error("Failed to measure storage before writing %s: %s", key, e)
            raise StorageFailure(f"Could not write {key}") from e

        size = len(key) + len(encoded)
        projected = sum(sizes.values()) - sizes.get(key, 0) + size
        if projected > self.quota:
            logger.error("Quota exceeded writing %s: %d > %d", key, projected, self.quota)
            raise StorageFailure(
                "Storage quota exceeded",
                details={"key": key, "required": projected, "quota": self.quota},
            )

        try:
            await self.backend.set_item(key, encoded)
        except Exception as e:
            logger.error("Failed to write %s: %s", key, e)
            raise StorageFailure(f"Could not write {key}") from e
        sizes[key] = size
