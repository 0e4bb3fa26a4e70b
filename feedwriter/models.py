"""Pydantic models for feed items, validation errors and statistics."""

from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from feedwriter.dates import format_date, to_datetime, utc_now


class FeedFormat(str, Enum):
    """Supported feed formats"""

    RSS = "rss"
    ATOM = "atom"

    @property
    def content_type(self) -> str:
        """MIME type of a rendered document in this format."""
        return f"application/{self.value}+xml"


class ChangeFrequency(str, Enum):
    """How often an item is expected to change."""

    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class ErrorType(str, Enum):
    """Kinds of field validation errors."""

    REQUIRED = "required"
    INVALID_URL = "invalid_url"
    DOMAIN_NOT_ALLOWED = "domain_not_allowed"
    INVALID_RANGE = "invalid_range"
    INVALID_LANGUAGE = "invalid_language"


def as_mapping(value: Any) -> Mapping[str, Any]:
    """Return item data (or a nested part of it) as a plain mapping."""
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return value
    return {}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Enclosure(_Frozen):
    """Media enclosure attached to an item."""

    url: str
    type: str
    length: int | None = None


class Image(_Frozen):
    """Image associated with an item."""

    url: Any = None
    title: str | None = None
    caption: str | None = None
    type: str | None = None
    width: int | None = None
    height: int | None = None
    license: str | None = None
    geo_location: str | None = None


class Video(_Frozen):
    """Video associated with an item."""

    thumbnail_url: Any = None
    title: Any = None
    description: Any = None
    content_url: Any = None
    duration: int | None = None
    rating: float | None = None
    view_count: int | None = None
    publication_date: datetime | None = None
    family_friendly: bool | None = None
    tags: tuple[str, ...] = ()

    @field_validator("publication_date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> Any:
        return None if value is None else to_datetime(value)


class Translation(_Frozen):
    """Alternate-language version of an item."""

    language: Any = None
    url: Any = None


class News(_Frozen):
    """News annotations for an item."""

    sitename: str
    language: str
    publication_date: datetime
    title: str
    keywords: str | None = None

    @field_validator("publication_date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> datetime:
        return to_datetime(value)


class FeedItem(_Frozen):
    """One entry of a feed.

    ``pubdate`` is normalized to an aware UTC datetime when the item is
    built. ``category`` always holds an ordered tuple, even when a single
    value was supplied. ``added_at`` records when the item was created.

    Fields checked by the validation rules accept any value, so an item can
    be stored as given and reported later by ``Feed.validate()``.
    """

    title: Any = None
    description: Any = None
    link: Any = None
    author: Any = None
    pubdate: datetime | None = None
    guid: str | None = None
    category: tuple[str, ...] = ()
    enclosure: Enclosure | None = None
    images: tuple[Image, ...] = ()
    videos: tuple[Video, ...] = ()
    translations: tuple[Translation, ...] = ()
    news: News | None = None
    priority: Any = None
    changefreq: ChangeFrequency | None = None
    added_at: datetime = Field(default_factory=utc_now)

    @field_validator("pubdate", mode="before")
    @classmethod
    def _normalize_pubdate(cls, value: Any) -> Any:
        return None if value is None else to_datetime(value)

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return value

    def get_title(self) -> Any:
        return self.title

    def get_description(self) -> Any:
        return self.description

    def get_link(self) -> Any:
        return self.link

    def get_author(self) -> Any:
        return self.author

    def get_pub_date(self) -> str:
        """ISO 8601 publication date, falling back to when the item was created."""
        return format_date(self.pubdate or self.added_at)


class FieldError(_Frozen):
    """A single field-level validation error."""

    field: str
    type: ErrorType
    message: str
    value: Any = None


class FeedStats(_Frozen):
    """Summary statistics for a feed."""

    total_items: int
    total_images: int
    total_videos: int
    total_translations: int
    average_priority: float
    last_modified: datetime
    size_estimate: int
