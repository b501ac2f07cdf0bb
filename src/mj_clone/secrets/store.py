"""Abstract interface for token storage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Unexpected failure in a storage operation.

    "Not found" is never a ``StorageError``; it is reported through the
    normal return values (``None``, ``False``, an empty list). The
    underlying exception is chained as ``__cause__``.
    """


class TokenStore(ABC):
    """Abstract token store.

    All methods are async so the file-backed implementation can push its
    blocking filesystem calls onto a worker thread.
    """

    @abstractmethod
    async def store(self, key: str, value: str) -> None:
        """Store or replace a token. Raises ``StorageError`` on failure."""

    @abstractmethod
    async def retrieve(self, key: str) -> str | None:
        """Retrieve a token by key. Returns None if not found."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a token. Returns False if the key does not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return True if a token is stored under *key*. Never raises."""

    @abstractmethod
    async def list_tokens(self) -> list[str]:
        """Return the keys of all stored tokens. Never raises."""

    @abstractmethod
    async def clear_all(self) -> int:
        """Delete every stored token and return how many were removed."""
