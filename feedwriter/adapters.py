"""Host collaborator contracts and the adapters shipped with feedwriter.

The Feed never calls these itself. They exist so that glue code (web
handlers, template views, caches) can be written against stable interfaces.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict
from redis.asyncio import Redis

from feedwriter.config import Settings

logger = logging.getLogger(__name__)


class FeedCache(ABC):
    """Cache for rendered feed documents."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the cached document, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """
        Store a document.

        Args:
            key: Cache key
            value: Rendered document
            ttl: Time-to-live in seconds, None for no expiry
        """
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass


class FeedConfigSource(ABC):
    """Read-only configuration lookup."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        pass

    @abstractmethod
    def all(self) -> dict[str, Any]:
        pass


class FeedResponse(ABC):
    """Framework-specific output sink for a rendered feed."""

    @abstractmethod
    def send(self, content: str, content_type: str) -> Any:
        """Send the content and return whatever the framework expects from a handler."""
        pass

    @abstractmethod
    def set_header(self, name: str, value: str) -> None:
        pass

    @abstractmethod
    def set_status(self, status: int) -> None:
        pass


class FeedView(ABC):
    """Template renderer for template-based feeds."""

    @abstractmethod
    async def render(self, template: str, data: Any) -> str:
        pass

    @abstractmethod
    def exists(self, template: str) -> bool:
        pass


class FeedAdapters(BaseModel):
    """Optional collaborators handed to a Feed."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    cache: FeedCache | None = None
    config: FeedConfigSource | None = None
    response: FeedResponse | None = None
    view: FeedView | None = None


class RedisFeedCache(FeedCache):
    """Feed cache backed by Redis. All keys live under ``prefix``."""

    def __init__(self, redis: Redis, prefix: str = "feedwriter:"):
        self.redis = redis
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> str | None:
        value = await self.redis.get(self._key(key))
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        if ttl:
            await self.redis.setex(self._key(key), ttl, value)
        else:
            await self.redis.set(self._key(key), value)

    async def has(self, key: str) -> bool:
        return bool(await self.redis.exists(self._key(key)))

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))

    async def clear(self) -> None:
        keys = [key async for key in self.redis.scan_iter(match=f"{self.prefix}*")]
        if keys:
            await self.redis.delete(*keys)
        logger.info(f"Cleared {len(keys)} cached feed(s) under {self.prefix!r}")


class InMemoryFeedCache(FeedCache):
    """
    Simple in-process feed cache.

    Entries expire after their TTL, or ``default_ttl`` seconds when none is
    given. A ``default_ttl`` of None keeps entries until deleted.
    """

    def __init__(self, default_ttl: int | None = None):
        self._entries: dict[str, tuple[str, float | None]] = {}
        self.default_ttl = default_ttl

    def _live(self, key: str) -> tuple[str, float | None] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            # Expired
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at = time.monotonic() + ttl if ttl is not None else None
        self._entries[key] = (value, expires_at)

    async def has(self, key: str) -> bool:
        return self._live(key) is not None

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()


class SettingsConfigSource(FeedConfigSource):
    """Config lookup over a Settings instance."""

    def __init__(self, settings: Settings):
        self._values = settings.model_dump()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._values

    def all(self) -> dict[str, Any]:
        return dict(self._values)
