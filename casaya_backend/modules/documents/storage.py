"""Object store interface for document bytes."""

import asyncio
import os
from abc import ABC, abstractmethod

from ...config import settings
from ...core.exceptions import StorageError


class ObjectStore(ABC):
    """Abstract interface for blob storage providers."""

    @abstractmethod
    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        """Store bytes under ``key`` and return the blob reference."""

    @abstractmethod
    async def get_object(self, blob_ref: str) -> bytes:
        """Read the bytes behind a blob reference."""

    @abstractmethod
    async def url_for(self, blob_ref: str) -> str:
        """Resolve a URL a client can fetch the blob from."""

    @abstractmethod
    async def delete_object(self, blob_ref: str) -> None:
        """Remove a blob; removing a missing blob is not an error."""


class LocalObjectStore(ObjectStore):
    """Object store backed by a local directory, served under a base URL."""

    def __init__(self, root: str, public_base_url: str):
        self.root = os.path.abspath(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if not path.startswith(self.root + os.sep):
            raise StorageError("local", "resolve", {"key": key})
        return path

    @staticmethod
    def _write(path: str, data: bytes) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    @staticmethod
    def _read(path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    @staticmethod
    def _remove(path: str) -> None:
        if os.path.exists(path):
            os.remove(path)

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(self._write, self._path(key), data)
        except OSError as e:
            raise StorageError("local", "put_object", {"key": key, "error": str(e)})
        return key

    async def get_object(self, blob_ref: str) -> bytes:
        try:
            return await asyncio.to_thread(self._read, self._path(blob_ref))
        except OSError as e:
            raise StorageError(
                "local", "get_object", {"blob_ref": blob_ref, "error": str(e)}
            )

    async def url_for(self, blob_ref: str) -> str:
        if not os.path.exists(self._path(blob_ref)):
            raise StorageError("local", "url_for", {"blob_ref": blob_ref})
        return f"{self.public_base_url}/{blob_ref}"

    async def delete_object(self, blob_ref: str) -> None:
        try:
            await asyncio.to_thread(self._remove, self._path(blob_ref))
        except OSError as e:
            raise StorageError(
                "local", "delete_object", {"blob_ref": blob_ref, "error": str(e)}
            )


def get_object_store() -> ObjectStore:
    """Factory dependency returning the configured object store."""
    return LocalObjectStore(settings.storage_root, settings.storage_public_base_url)
