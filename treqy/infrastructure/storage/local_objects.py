"""
Filesystem object storage for uploaded documents.

Objects live under a root directory; keys are relative POSIX paths and may
never resolve outside that root.
"""

import asyncio
import os
from pathlib import Path, PurePosixPath

from treqy.config import get_logger, get_settings
from treqy.core.exceptions import StorageFailureError
from treqy.core.interfaces.object_storage import IObjectStorage

logger = get_logger(__name__)


class LocalObjectStorage(IObjectStorage):
    """Object storage backed by a local directory."""

    def __init__(self, root: Path, public_base_url: str = "/files"):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str, operation: str) -> Path:
        """Map a key to a file under root, rejecting traversal."""
        key = PurePosixPath(path or "")
        if not key.parts or key.is_absolute() or ".." in key.parts:
            raise StorageFailureError(operation, path, "invalid object path")

        target = (self.root / Path(*key.parts)).resolve()
        if not target.is_relative_to(self.root):
            raise StorageFailureError(operation, path, "path escapes storage root")
        return target

    async def put(self, path: str, content: bytes) -> None:
        """Write bytes at path, replacing any existing object."""
        target = self._resolve(path, "put")

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_name(target.name + ".part")
            tmp.write_bytes(content)
            os.replace(tmp, target)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _write)
        except OSError as e:
            raise StorageFailureError("put", path, str(e)) from e

        logger.info("object_stored", path=path, size=len(content))

    async def get(self, path: str) -> bytes:
        """Read the object at path."""
        target = self._resolve(path, "get")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, target.read_bytes)
        except FileNotFoundError as e:
            raise StorageFailureError("get", path, "object not found") from e
        except OSError as e:
            raise StorageFailureError("get", path, str(e)) from e

    async def delete(self, path: str) -> None:
        """Delete the object at path. Missing objects are not an error."""
        target = self._resolve(path, "delete")

        def _remove() -> None:
            target.unlink(missing_ok=True)
            # Drop now-empty submission/studio directories
            parent = target.parent
            while parent != self.root:
                try:
                    parent.rmdir()
                except OSError:
                    break
                parent = parent.parent

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _remove)
        except OSError as e:
            raise StorageFailureError("delete", path, str(e)) from e

        logger.info("object_deleted", path=path)

    def public_url(self, path: str) -> str:
        """Public URL for the object at path."""
        self._resolve(path, "public_url")
        return f"{self.public_base_url}/{path}"


# Singleton
_object_storage: LocalObjectStorage | None = None


def get_object_storage() -> LocalObjectStorage:
    """Get or create the object storage singleton."""
    global _object_storage
    if _object_storage is None:
        settings = get_settings()
        _object_storage = LocalObjectStorage(
            root=settings.storage.objects_dir,
            public_base_url=settings.storage.public_base_url,
        )
    return _object_storage


def reset_object_storage() -> None:
    """Reset the singleton (for testing)."""
    global _object_storage
    _object_storage = None
