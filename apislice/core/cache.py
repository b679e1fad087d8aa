"""Read-through cache for source documents."""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

from apislice.models.document import Document
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

DocumentProvider = Callable[[str], Awaitable[Document]]


class DocumentCache:
    """Lazily populated ``key -> Document`` cache.

    Concurrent callers asking for the same missing key share a single call
    to the provider. Entries live until invalidated.
    """

    def __init__(self, provider: DocumentProvider):
        """Initialize cache.

        Args:
            provider: Async callable producing the document for a key
        """
        self.provider = provider
        self._documents: Dict[str, Document] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def get(self, key: str, force_refresh: bool = False) -> Document:
        """Get the document for ``key``, populating it on a miss.

        Args:
            key: Source identity, e.g. a file path or url
            force_refresh: Replace the cached document

        Returns:
            Cached document
        """
        if not force_refresh and key in self._documents:
            return self._documents[key]

        async with self._lock_for(key):
            # Another caller may have populated the key while we waited
            if not force_refresh and key in self._documents:
                return self._documents[key]

            logger.info("Populating document cache", key=key, force_refresh=force_refresh)
            document = await self.provider(key)
            self._documents[key] = document
            return document

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or every key when ``key`` is None."""
        if key is None:
            self._documents.clear()
            self._locks = {key: lock for key, lock in self._locks.items() if lock.locked()}
            logger.debug("Invalidated document cache")
        else:
            self._documents.pop(key, None)
            lock = self._locks.get(key)
            if lock is not None and not lock.locked():
                del self._locks[key]
            logger.debug("Invalidated document cache entry", key=key)

    def __contains__(self, key: str) -> bool:
        return key in self._documents

    def __len__(self) -> int:
        return len(self._documents)
