"""The Feed aggregate: feed metadata plus an ordered list of items."""

import hashlib
import json
import logging
from datetime import datetime
from numbers import Real
from typing import Any, Callable, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from feedwriter.adapters import FeedAdapters
from feedwriter.config import FeedConfig
from feedwriter.dates import utc_now
from feedwriter.exceptions import UnsupportedFormat, ValidationFailure
from feedwriter.models import (
    ErrorType,
    FeedFormat,
    FeedItem,
    FeedStats,
    FieldError,
    as_mapping,
)
from feedwriter.render import render_atom, render_rss
from feedwriter.validator import validate_item

logger = logging.getLogger(__name__)

# Crude linear size estimate, in bytes
BASE_SIZE_ESTIMATE = 1000
ITEM_SIZE_ESTIMATE = 2000

DEFAULT_GENERATOR = "feedwriter"
DEFAULT_DOCS = "https://www.rssboard.org/rss-specification"

_RENDERERS: dict[FeedFormat, Callable[["Feed"], str]] = {
    FeedFormat.RSS: render_rss,
    FeedFormat.ATOM: render_atom,
}


def resolve_url(url: Any, base_url: str) -> Any:
    """Join a relative URL onto ``base_url``. Absolute URLs are returned unchanged."""
    if not base_url or not isinstance(url, str):
        return url
    if url.startswith("http://") or url.startswith("https://"):
        return url

    base = base_url[:-1] if base_url.endswith("/") else base_url
    path = url if url.startswith("/") else f"/{url}"
    return f"{base}{path}"


def _config_options(values: Mapping[str, Any]) -> dict[str, Any]:
    options = dict(values)
    if "validate_items" in options:
        options["validate"] = options.pop("validate_items")
    return options


def _build_config(config: FeedConfig | Mapping[str, Any] | None, overrides: Mapping[str, Any]) -> FeedConfig:
    if isinstance(config, FeedConfig):
        base = config.model_dump(by_alias=True)
    else:
        base = _config_options(config or {})
    return FeedConfig.model_validate({**base, **_config_options(overrides)})


class Feed:
    """
    In-memory feed that renders to RSS 2.0 or Atom 1.0.

    Metadata setters return the feed itself so calls can be chained. Items
    are rendered in insertion order. Every change to the item list refreshes
    ``last_build_date``.

    Example:
        feed = (
            Feed({"base_url": "https://example.com"})
            .set_title("Example")
            .set_description("Latest posts")
            .set_link("https://example.com")
        )
        feed.add_item({"title": "Hello", "description": "First post", "link": "/hello"})
        xml = feed.render("rss")
    """

    def __init__(
        self,
        config: FeedConfig | Mapping[str, Any] | None = None,
        adapters: FeedAdapters | None = None,
        **options: Any,
    ):
        """
        Initialize an empty feed.

        Args:
            config: FeedConfig or mapping of options (unknown keys are ignored)
            adapters: Optional host collaborators, kept for glue code
            **options: Individual option overrides
        """
        if not isinstance(config, FeedConfig) or options:
            config = _build_config(config, options)

        self.config: FeedConfig = config
        self.adapters = adapters or FeedAdapters()
        self._items: list[FeedItem] = []

        self._title = ""
        self._description = ""
        self._link = ""
        self._language = config.language
        self._copyright = ""
        self._managing_editor = ""
        self._web_master = ""
        self._category = ""
        self._generator = DEFAULT_GENERATOR
        self._docs = DEFAULT_DOCS
        self._last_build_date = utc_now()

    # Metadata

    def set_title(self, title: str) -> "Feed":
        self._title = title.strip()
        return self

    def set_description(self, description: str) -> "Feed":
        self._description = description.strip()
        return self

    def set_link(self, link: str) -> "Feed":
        self._link = link.strip()
        return self

    def set_language(self, language: str) -> "Feed":
        self._language = language.strip()
        return self

    def set_copyright(self, copyright: str) -> "Feed":
        self._copyright = copyright.strip()
        return self

    def set_managing_editor(self, email: str) -> "Feed":
        self._managing_editor = email.strip()
        return self

    def set_web_master(self, email: str) -> "Feed":
        self._web_master = email.strip()
        return self

    def set_category(self, category: str) -> "Feed":
        self._category = category.strip()
        return self

    @property
    def title(self) -> str:
        return self._title

    @property
    def description(self) -> str:
        return self._description

    @property
    def link(self) -> str:
        return self._link

    @property
    def language(self) -> str:
        return self._language

    @property
    def copyright(self) -> str:
        return self._copyright

    @property
    def managing_editor(self) -> str:
        return self._managing_editor

    @property
    def web_master(self) -> str:
        return self._web_master

    @property
    def category(self) -> str:
        return self._category

    @property
    def generator(self) -> str:
        return self._generator

    @property
    def docs(self) -> str:
        return self._docs

    @property
    def last_build_date(self) -> datetime:
        return self._last_build_date

    # Items

    def add_item(self, data: Mapping[str, Any] | FeedItem) -> "Feed":
        """
        Add a single item.

        When ``validate`` is configured the raw data is checked first and
        nothing is inserted if any rule fails. Relative URLs are then
        resolved against ``base_url``.

        Args:
            data: Item data as a mapping or a FeedItem

        Returns:
            The feed itself

        Raises:
            ValidationFailure: if validation fails or the data does not fit the item model
        """
        raw = dict(as_mapping(data))
        raw.pop("added_at", None)

        if self.config.validate_items:
            errors = validate_item(raw, self.config.allowed_domains)
            if errors:
                logger.warning(
                    f"Rejected feed item {raw.get('link')!r}: {len(errors)} validation error(s)",
                    extra={"item_link": raw.get("link")},
                )
                raise ValidationFailure(errors)

        try:
            item = FeedItem.model_validate(self._resolve_urls(raw))
        except PydanticValidationError as e:
            raise ValidationFailure([], f"Validation failed: {e}") from e

        self._items.append(item)
        self._touch()
        logger.debug(f"Added feed item {item.link}", extra={"item_link": item.link})
        return self

    def add_items(self, items: Iterable[Mapping[str, Any] | FeedItem]) -> "Feed":
        """Add items one by one, in order.

        Not atomic: if one item fails, the items before it stay in the feed.
        """
        for data in items:
            self.add_item(data)
        return self

    def get_items(self) -> list[FeedItem]:
        """Return a copy of the item list."""
        return list(self._items)

    @property
    def item_count(self) -> int:
        return len(self._items)

    def remove_items(self, predicate: Callable[[FeedItem], bool]) -> "Feed":
        """Remove every item for which ``predicate`` returns True."""
        before = len(self._items)
        self._items = [item for item in self._items if not predicate(item)]
        self._touch()
        logger.debug(f"Removed {before - len(self._items)} feed item(s)")
        return self

    def clear(self) -> "Feed":
        """Remove all items."""
        self._items = []
        self._touch()
        return self

    def _touch(self) -> None:
        self._last_build_date = utc_now()

    def _resolve_urls(self, data: Mapping[str, Any]) -> dict[str, Any]:
        processed = dict(data)
        base_url = self.config.base_url
        if not base_url:
            return processed

        processed["link"] = resolve_url(processed.get("link"), base_url)

        if processed.get("images"):
            processed["images"] = [
                {**image, "url": resolve_url(image.get("url"), base_url)}
                for image in map(as_mapping, processed["images"])
            ]

        if processed.get("videos"):
            processed["videos"] = [
                {
                    **video,
                    "thumbnail_url": resolve_url(video.get("thumbnail_url"), base_url),
                    "content_url": resolve_url(video.get("content_url"), base_url),
                }
                for video in map(as_mapping, processed["videos"])
            ]

        if processed.get("translations"):
            processed["translations"] = [
                {**translation, "url": resolve_url(translation.get("url"), base_url)}
                for translation in map(as_mapping, processed["translations"])
            ]

        return processed

    # Checks and statistics

    def validate(self) -> list[FieldError]:
        """
        Check feed metadata and every item without raising.

        Item errors are reported with an ``items[<index>].`` prefix.

        Returns:
            List of FieldError, empty when the feed is valid
        """
        errors: list[FieldError] = []

        for field, value in (
            ("title", self._title),
            ("description", self._description),
            ("link", self._link),
        ):
            if not value.strip():
                errors.append(
                    FieldError(
                        field=field,
                        type=ErrorType.REQUIRED,
                        message=f"Feed {field} is required",
                        value=value,
                    )
                )

        for index, item in enumerate(self._items):
            for error in validate_item(item, self.config.allowed_domains):
                errors.append(error.model_copy(update={"field": f"items[{index}].{error.field}"}))

        return errors

    def _estimate_size(self) -> int:
        return BASE_SIZE_ESTIMATE + len(self._items) * ITEM_SIZE_ESTIMATE

    def get_stats(self) -> FeedStats:
        """Return item and media counts, average priority and a size estimate."""
        # Non-numeric priorities are left to validate()
        priorities = [
            item.priority
            for item in self._items
            if isinstance(item.priority, Real) and not isinstance(item.priority, bool)
        ]
        average_priority = sum(priorities) / len(priorities) if priorities else 0

        return FeedStats(
            total_items=len(self._items),
            total_images=sum(len(item.images) for item in self._items),
            total_videos=sum(len(item.videos) for item in self._items),
            total_translations=sum(len(item.translations) for item in self._items),
            average_priority=average_priority,
            last_modified=self._last_build_date,
            size_estimate=self._estimate_size(),
        )

    def should_split(self) -> bool:
        """Whether the feed exceeds ``max_items`` or ``max_file_size``."""
        return (
            len(self._items) > self.config.max_items
            or self._estimate_size() > self.config.max_file_size
        )

    # Rendering

    def render(self, format: FeedFormat | str = FeedFormat.RSS) -> str:
        """
        Render the feed as XML.

        Args:
            format: "rss" or "atom"

        Returns:
            The XML document as a string

        Raises:
            UnsupportedFormat: if the format is not recognized
        """
        try:
            feed_format = FeedFormat(format)
        except ValueError:
            raise UnsupportedFormat(format) from None

        logger.debug(
            f"Rendering {feed_format.value} feed with {len(self._items)} item(s)",
            extra={"feed_format": feed_format.value, "item_count": len(self._items)},
        )
        return _RENDERERS[feed_format](self)

    def cache_key(self, format: FeedFormat | str = FeedFormat.RSS) -> str:
        """
        Key identifying the rendered content of this feed in a given format.

        Derived from the configuration, the metadata and every item, so two
        feeds with the same content share a key and any metadata or item
        change produces a new one. Build and insertion instants are not part
        of the key.
        """
        try:
            feed_format = FeedFormat(format)
        except ValueError:
            raise UnsupportedFormat(format) from None

        content = {
            "config": self.config.model_dump(),
            "metadata": [
                self._title,
                self._description,
                self._link,
                self._language,
                self._copyright,
                self._managing_editor,
                self._web_master,
                self._category,
                self._generator,
                self._docs,
            ],
            "items": [item.model_dump(exclude={"added_at"}) for item in self._items],
        }
        digest = hashlib.sha256(json.dumps(content, sort_keys=True, default=str).encode("utf-8"))
        return f"feed:{feed_format.value}:{digest.hexdigest()}"
