"""
Abstract interface for document object storage.
"""

from abc import ABC, abstractmethod


class IObjectStorage(ABC):
    """
    Abstract interface for storing uploaded document bytes.

    Implementations raise StorageFailureError on any failed operation.
    """

    @abstractmethod
    async def put(self, path: str, content: bytes) -> None:
        """Write bytes at path, replacing any existing object."""

    @abstractmethod
    async def get(self, path: str) -> bytes:
        """Read the object at path."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete the object at path. Missing objects are not an error."""

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Public URL for the object at path."""
