"""FastAPI response adapter for rendered feeds."""

import logging

from fastapi import Response

from feedwriter.adapters import FeedCache, FeedResponse
from feedwriter.feed import Feed
from feedwriter.models import FeedFormat

logger = logging.getLogger(__name__)


class FastAPIFeedResponse(FeedResponse):
    """Collects status and headers, then builds a fastapi Response on send()."""

    def __init__(self):
        self.status_code = 200
        self.headers: dict[str, str] = {}

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def set_status(self, status: int) -> None:
        self.status_code = status

    def send(self, content: str, content_type: str) -> Response:
        return Response(
            content=content,
            status_code=self.status_code,
            headers=self.headers,
            media_type=content_type,
        )


async def feed_response(
    feed: Feed,
    format: FeedFormat | str = FeedFormat.RSS,
    cache: FeedCache | None = None,
    ttl: int | None = None,
) -> Response:
    """
    Render a feed into an HTTP response, going through a cache when given.

    Args:
        feed: Feed to render
        format: "rss" or "atom"
        cache: Optional cache for rendered documents
        ttl: Cache time-to-live in seconds

    Returns:
        Response with the feed's XML content type

    Raises:
        UnsupportedFormat: if the format is not recognized
    """
    key = feed.cache_key(format)
    feed_format = FeedFormat(format)

    content = await cache.get(key) if cache else None
    if content is None:
        content = feed.render(feed_format)
        if cache:
            await cache.set(key, content, ttl)
    else:
        logger.debug(f"Serving cached feed {key}", extra={"cache_key": key})

    response = FastAPIFeedResponse()
    response.set_header("X-Feed-Items", str(feed.item_count))
    return response.send(content, f"{feed_format.content_type}; charset=utf-8")
