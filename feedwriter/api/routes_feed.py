"""Feed endpoints serving a Feed as RSS or Atom."""

from typing import Awaitable, Callable

from fastapi import APIRouter, HTTPException

from feedwriter.adapters import FeedCache
from feedwriter.api.responses import feed_response
from feedwriter.exceptions import UnsupportedFormat
from feedwriter.feed import Feed


def create_feed_router(
    build_feed: Callable[[], Awaitable[Feed]],
    prefix: str = "",
    cache: FeedCache | None = None,
    ttl: int | None = None,
) -> APIRouter:
    """
    Create a router exposing ``GET {prefix}/feed.rss`` and ``GET {prefix}/feed.atom``.

    Args:
        build_feed: Async callable returning the feed to serve
        prefix: Path prefix for the router
        cache: Optional cache for rendered documents
        ttl: Cache time-to-live in seconds

    Returns:
        APIRouter to include in an application
    """
    router = APIRouter(prefix=prefix, tags=["feed"])

    @router.get("/feed.{format}")
    async def get_feed(format: str):
        """Render the feed in the requested format; unknown formats are 404."""
        feed = await build_feed()
        try:
            return await feed_response(feed, format, cache=cache, ttl=ttl)
        except UnsupportedFormat:
            raise HTTPException(status_code=404, detail=f"Unknown feed format: {format}")

    return router
