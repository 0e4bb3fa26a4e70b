"""FastAPI integration for feedwriter."""

from feedwriter.api.responses import FastAPIFeedResponse, feed_response
from feedwriter.api.routes_feed import create_feed_router

__all__ = ["FastAPIFeedResponse", "create_feed_router", "feed_response"]
