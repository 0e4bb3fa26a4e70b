"""feedwriter - build feeds in memory and render them as RSS 2.0 or Atom 1.0."""

__version__ = "1.0.0"

from feedwriter.adapters import (
    FeedAdapters,
    FeedCache,
    FeedConfigSource,
    FeedResponse,
    FeedView,
    InMemoryFeedCache,
    RedisFeedCache,
    SettingsConfigSource,
)
from feedwriter.config import FeedConfig, Settings, get_settings
from feedwriter.dates import (
    format_atom_date,
    format_date,
    format_rss_date,
    is_valid_feed_date,
    to_datetime,
    utc_now,
)
from feedwriter.exceptions import (
    DateParseError,
    FeedError,
    InvalidTagName,
    UnsupportedFormat,
    ValidationFailure,
)
from feedwriter.feed import Feed, resolve_url
from feedwriter.markup import (
    create_cdata,
    create_element,
    escape_xml,
    format_xml,
    is_valid_xml_tag_name,
)
from feedwriter.models import (
    ChangeFrequency,
    Enclosure,
    ErrorType,
    FeedFormat,
    FeedItem,
    FeedStats,
    FieldError,
    Image,
    News,
    Translation,
    Video,
)
from feedwriter.validator import (
    is_allowed_domain,
    is_valid_email,
    is_valid_language_code,
    is_valid_priority,
    is_valid_url,
    validate_item,
    validate_required_string,
    validate_url,
)

__all__ = [
    # Core
    "Feed",
    "FeedConfig",
    "FeedItem",
    "FeedFormat",
    "FeedStats",
    "resolve_url",
    # Item parts
    "ChangeFrequency",
    "Enclosure",
    "Image",
    "News",
    "Translation",
    "Video",
    # Validation
    "ErrorType",
    "FieldError",
    "is_allowed_domain",
    "is_valid_email",
    "is_valid_language_code",
    "is_valid_priority",
    "is_valid_url",
    "validate_item",
    "validate_required_string",
    "validate_url",
    # Dates
    "format_atom_date",
    "format_date",
    "format_rss_date",
    "is_valid_feed_date",
    "to_datetime",
    "utc_now",
    # Markup
    "create_cdata",
    "create_element",
    "escape_xml",
    "format_xml",
    "is_valid_xml_tag_name",
    # Errors
    "DateParseError",
    "FeedError",
    "InvalidTagName",
    "UnsupportedFormat",
    "ValidationFailure",
    # Adapters and settings
    "FeedAdapters",
    "FeedCache",
    "FeedConfigSource",
    "FeedResponse",
    "FeedView",
    "InMemoryFeedCache",
    "RedisFeedCache",
    "Settings",
    "SettingsConfigSource",
    "get_settings",
]
