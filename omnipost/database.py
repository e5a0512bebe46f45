"""
Key-value storage backends.

Each backend exposes the browser local-storage surface (get/set/remove an
item, list keys) with string values. The Local Store layers JSON
collections on top. Backend is picked by STORAGE_BACKEND and connected once
at application startup.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from omnipost.config import Settings

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    async def get_item(self, key: str) -> Optional[str]: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...

    async def keys(self) -> List[str]: ...

    async def close(self) -> None: ...


class MemoryBackend:
    """Process-local dict. Used by tests and throwaway runs."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def keys(self) -> List[str]:
        return list(self._items)

    async def close(self) -> None:
        pass


class FileBackend:
    """
    One <key>.json file per key inside a directory.
    Writes land in a temp file first and are renamed over the target, so a
    reader never sees half a value. File I/O is blocking; it runs in a
    thread pool to keep the event loop free.
    """

    suffix = ".json"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{self.suffix}"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _keys(self) -> List[str]:
        return sorted(p.stem for p in self.directory.glob(f"*{self.suffix}"))

    async def get_item(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    async def keys(self) -> List[str]:
        return await asyncio.to_thread(self._keys)

    async def close(self) -> None:
        pass


class MongoBackend:
    """
    One document per key: {"_id": key, "value": "<json text>"}.
    Call connect() before use; it pings the server so a bad URL fails at
    startup rather than on the first request.
    """

    def __init__(
        self,
        url: str,
        database: str,
        collection: str,
        client: Optional[AsyncIOMotorClient] = None,
    ) -> None:
        self._client = client if client is not None else AsyncIOMotorClient(url, serverSelectionTimeoutMS=5000)
        self._collection = self._client[database][collection]
        self._database_name = database

    async def connect(self) -> None:
        try:
            await self._client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.critical("Could not reach MongoDB: %s", e)
            raise ConnectionError("Could not establish MongoDB connection") from e
        logger.info("MongoDB connection established: %s", self._database_name)

    async def get_item(self, key: str) -> Optional[str]:
        doc = await self._collection.find_one({"_id": key})
        return doc["value"] if doc else None

    async def set_item(self, key: str, value: str) -> None:
        await self._collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)

    async def remove_item(self, key: str) -> None:
        await self._collection.delete_one({"_id": key})

    async def keys(self) -> List[str]:
        return [doc["_id"] async for doc in self._collection.find({}, {"_id": 1})]

    async def close(self) -> None:
        logger.info("Closing MongoDB connection.")
        self._client.close()


async def connect_backend(settings: Settings) -> StorageBackend:
    """
    Build the configured backend and make sure it is usable.
    Called once at application startup.
    """
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory storage; data is lost on restart.")
        return MemoryBackend()
    if settings.storage_backend == "mongo":
        backend = MongoBackend(
            settings.mongodb_url,
            settings.mongodb_database,
            settings.mongodb_collection,
        )
        await backend.connect()
        return backend
    backend = FileBackend(settings.storage_dir)
    logger.info("File storage ready: %s", backend.directory.resolve())
    return backend
