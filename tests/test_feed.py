"""Tests for the Feed aggregate."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from feedwriter.adapters import FeedAdapters, InMemoryFeedCache
from feedwriter.config import FeedConfig
from feedwriter.dates import format_date, utc_now
from feedwriter.exceptions import DateParseError, UnsupportedFormat, ValidationFailure
from feedwriter.feed import Feed, resolve_url
from feedwriter.models import ChangeFrequency, ErrorType, FeedItem

JAN_1 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

SAMPLE_ITEM = {
    "title": "Test Article",
    "description": "This is a test article",
    "link": "https://example.com/test-article",
    "author": "John Doe",
    "pubdate": JAN_1,
    "category": "Technology",
}


def make_item(index: int, **overrides) -> dict:
    """Helper to create item data for testing."""
    data = {
        "title": f"Article {index}",
        "description": f"Description for article {index}",
        "link": f"https://example.com/{index}",
    }
    data.update(overrides)
    return data


@pytest.fixture
def feed():
    return Feed()


class TestConfiguration:
    """Tests for constructing a feed."""

    def test_defaults(self, feed):
        assert feed.title == ""
        assert feed.description == ""
        assert feed.link == ""
        assert feed.language == "en"
        assert feed.item_count == 0
        assert feed.config.validate_items is False
        assert feed.config.max_items == 50000
        assert feed.config.max_file_size == 50 * 1024 * 1024
        assert feed.config.allowed_domains == ()

    def test_mapping_config_ignores_unknown_keys(self):
        feed = Feed({"validate": True, "language": "fr", "unknown_option": 1})
        assert feed.config.validate_items is True
        assert feed.language == "fr"

    def test_keyword_overrides(self):
        base = FeedConfig(max_items=10)
        feed = Feed(base, validate=True, allowed_domains=["example.com"])
        assert feed.config.max_items == 10
        assert feed.config.validate_items is True
        assert feed.config.allowed_domains == ("example.com",)

    def test_validate_items_name_accepted(self):
        assert Feed(validate_items=True).config.validate_items is True
        assert Feed(FeedConfig(validate=True), validate_items=False).config.validate_items is False

    def test_config_instance_used_as_is(self):
        config = FeedConfig(version="9.9.9")
        assert Feed(config).config is config

    def test_negative_limits_rejected(self):
        with pytest.raises(Exception):
            FeedConfig(max_items=-1)

    def test_config_is_frozen(self):
        config = FeedConfig()
        with pytest.raises(Exception):
            config.max_items = 5

    def test_adapters_kept(self):
        cache = InMemoryFeedCache()
        feed = Feed(adapters=FeedAdapters(cache=cache))
        assert feed.adapters.cache is cache
        assert Feed().adapters.cache is None


class TestMetadata:
    """Tests for metadata setters."""

    def test_set_and_get(self, feed):
        feed.set_title("Test Feed").set_description("A test RSS feed").set_link(
            "https://example.com"
        ).set_language("en-US").set_copyright("Copyright 2024").set_managing_editor(
            "editor@example.com"
        ).set_web_master("webmaster@example.com").set_category("Technology")

        assert feed.title == "Test Feed"
        assert feed.description == "A test RSS feed"
        assert feed.link == "https://example.com"
        assert feed.language == "en-US"
        assert feed.copyright == "Copyright 2024"
        assert feed.managing_editor == "editor@example.com"
        assert feed.web_master == "webmaster@example.com"
        assert feed.category == "Technology"

    def test_setters_chain(self, feed):
        result = feed.set_title("Test").set_description("Description").set_link("https://example.com")
        assert result is feed

    def test_values_are_trimmed(self, feed):
        feed.set_title("  Padded  ")
        assert feed.title == "Padded"

    def test_generator_and_docs(self, feed):
        assert feed.generator == "feedwriter"
        assert feed.docs == "https://www.rssboard.org/rss-specification"


class TestItemManagement:
    """Tests for adding and removing items."""

    def test_add_single_item(self, feed):
        feed.add_item(SAMPLE_ITEM)

        assert feed.item_count == 1
        item = feed.get_items()[0]
        assert item.get_title() == "Test Article"
        assert item.get_description() == "This is a test article"
        assert item.get_link() == "https://example.com/test-article"
        assert item.get_author() == "John Doe"
        assert item.get_pub_date() == "2024-01-01T12:00:00.000Z"

    def test_add_item_returns_feed(self, feed):
        assert feed.add_item(SAMPLE_ITEM) is feed

    def test_category_normalized_to_tuple(self, feed):
        feed.add_item(SAMPLE_ITEM)
        feed.add_item(make_item(2, category=["Science", "Space"]))
        feed.add_item(make_item(3))

        assert [item.category for item in feed.get_items()] == [
            ("Technology",),
            ("Science", "Space"),
            (),
        ]

    def test_string_pubdate_normalized(self, feed):
        feed.add_item(make_item(1, pubdate="2024-01-01T12:00:00Z"))
        item = feed.get_items()[0]
        assert item.pubdate == JAN_1
        assert item.get_pub_date() == "2024-01-01T12:00:00.000Z"

    def test_invalid_pubdate_raises(self, feed):
        with pytest.raises(DateParseError, match="Invalid date string: someday"):
            feed.add_item(make_item(1, pubdate="someday"))
        assert feed.item_count == 0

    def test_missing_pubdate_uses_insertion_time(self, feed):
        before = utc_now()
        feed.add_item(make_item(1))
        after = utc_now()

        item = feed.get_items()[0]
        assert item.pubdate is None
        assert before <= item.added_at <= after
        assert item.get_pub_date() == format_date(item.added_at)

    def test_get_items_returns_copy(self, feed):
        feed.add_item(SAMPLE_ITEM)
        feed.get_items().clear()
        assert feed.item_count == 1

    def test_items_are_immutable(self, feed):
        feed.add_item(SAMPLE_ITEM)
        with pytest.raises(Exception):
            feed.get_items()[0].title = "Changed"

    def test_caller_data_not_modified(self):
        feed = Feed(base_url="https://example.com")
        data = make_item(1, link="/relative", images=[{"url": "/img.jpg"}])
        feed.add_item(data)
        assert data["link"] == "/relative"
        assert data["images"] == [{"url": "/img.jpg"}]

    def test_add_feed_item_instance(self, feed):
        item = FeedItem(**make_item(1))
        feed.add_item(item)
        assert feed.get_items()[0].link == "https://example.com/1"

    def test_add_multiple_items_in_order(self, feed):
        feed.add_items([make_item(i) for i in range(3)])
        assert [item.title for item in feed.get_items()] == ["Article 0", "Article 1", "Article 2"]

    def test_complex_item(self, feed):
        feed.add_item(
            make_item(
                1,
                images=[{"url": "https://example.com/image.jpg", "title": "Sample", "caption": "A sample"}],
                videos=[
                    {
                        "content_url": "https://example.com/video.mp4",
                        "thumbnail_url": "https://example.com/thumb.jpg",
                        "title": "Sample Video",
                        "description": "A sample video",
                        "duration": 120,
                        "tags": ["a", "b"],
                    }
                ],
                news={
                    "sitename": "Example News",
                    "language": "en",
                    "publication_date": "2024-01-01",
                    "title": "Breaking News",
                    "keywords": "breaking, news, important",
                },
                priority=0.5,
                changefreq="daily",
            )
        )

        item = feed.get_items()[0]
        assert len(item.images) == 1
        assert item.videos[0].tags == ("a", "b")
        assert item.news.keywords == "breaking, news, important"
        assert item.news.publication_date == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert item.changefreq == ChangeFrequency.DAILY

    def test_unchecked_items_are_stored_as_given(self, feed):
        feed.add_item({"description": "D", "link": "https://example.com/a"})
        feed.add_item(make_item(2, priority="high"))

        assert feed.item_count == 2
        assert feed.get_items()[0].title is None
        assert feed.get_items()[1].priority == "high"

    def test_unchecked_items_reported_by_validate(self, feed):
        feed.set_title("T").set_description("D").set_link("https://example.com")
        feed.add_items(
            [
                {"description": "D", "link": "https://example.com/a"},
                make_item(2, priority="high"),
                make_item(3, images=[{"title": "No URL"}], translations=[{"url": "https://example.com/x"}]),
            ]
        )

        assert [(e.field, e.type) for e in feed.validate()] == [
            ("items[0].title", ErrorType.REQUIRED),
            ("items[1].priority", ErrorType.INVALID_RANGE),
            ("items[2].images[0].url", ErrorType.REQUIRED),
            ("items[2].translations[0].language", ErrorType.REQUIRED),
            ("items[2].translations[0].language", ErrorType.INVALID_LANGUAGE),
        ]

    def test_unchecked_items_still_render(self, feed):
        feed.set_title("T").set_description("D").set_link("https://example.com")
        feed.add_item({"description": "D", "link": "https://example.com/a", "images": [{"title": "x"}]})

        rss = feed.render("rss")
        assert "<title>\n" in rss
        assert "None" not in rss
        assert '<media:content url=""/>' in rss
        assert "None" not in feed.render("atom")

    def test_unknown_change_frequency_rejected(self, feed):
        with pytest.raises(ValidationFailure, match="changefreq"):
            feed.add_item(make_item(1, changefreq="sometimes"))
        assert feed.item_count == 0

    def test_clear(self, feed):
        feed.add_items([make_item(1), make_item(2)])
        assert feed.clear() is feed
        assert feed.item_count == 0
        assert feed.get_items() == []

    def test_remove_items(self, feed):
        feed.add_items([SAMPLE_ITEM, make_item(2, category="Science")])

        feed.remove_items(lambda item: "Technology" in item.category)

        assert feed.item_count == 1
        assert feed.get_items()[0].title == "Article 2"

    def test_mutations_refresh_last_build_date(self):
        stamps = [datetime(2024, 1, day, tzinfo=timezone.utc) for day in range(1, 6)]
        with patch("feedwriter.feed.utc_now", side_effect=stamps):
            feed = Feed()
            assert feed.last_build_date == stamps[0]
            feed.add_item(make_item(1))
            assert feed.last_build_date == stamps[1]
            feed.add_item(make_item(2))
            assert feed.last_build_date == stamps[2]
            feed.remove_items(lambda item: False)
            assert feed.last_build_date == stamps[3]
            feed.clear()
            assert feed.last_build_date == stamps[4]


class TestEagerValidation:
    """Tests for validation on insertion."""

    def test_invalid_item_rejected(self):
        feed = Feed({"validate": True})
        with pytest.raises(ValidationFailure, match="^Validation failed: ") as exc_info:
            feed.add_item({"title": "", "description": "Test", "link": "not-a-url"})

        assert [(e.field, e.type) for e in exc_info.value.errors] == [
            ("title", ErrorType.REQUIRED),
            ("link", ErrorType.INVALID_URL),
        ]
        assert "title is required and must be a non-empty string" in str(exc_info.value)
        assert "link must be a valid HTTP or HTTPS URL" in str(exc_info.value)
        assert feed.item_count == 0

    def test_validation_disabled(self):
        feed = Feed({"validate": False})
        feed.add_item({"title": "", "description": "Test", "link": "not-a-url"})
        assert feed.item_count == 1

    def test_allowed_domains(self):
        feed = Feed({"validate": True, "allowed_domains": ["example.com"]})

        feed.add_item(make_item(1, link="https://example.com/x"))

        with pytest.raises(ValidationFailure) as exc_info:
            feed.add_item(make_item(2, link="https://blocked.com/x"))
        assert exc_info.value.errors[0].type == ErrorType.DOMAIN_NOT_ALLOWED
        assert feed.item_count == 1

    def test_batch_insert_is_not_atomic(self):
        """A failure mid-batch keeps the items added before it."""
        feed = Feed(validate=True)
        batch = [make_item(1), make_item(2, title=""), make_item(3)]

        with pytest.raises(ValidationFailure):
            feed.add_items(batch)

        assert [item.title for item in feed.get_items()] == ["Article 1"]


class TestFeedValidation:
    """Tests for Feed.validate()."""

    def test_missing_metadata(self, feed):
        errors = feed.validate()
        assert [(e.field, e.type) for e in errors] == [
            ("title", ErrorType.REQUIRED),
            ("description", ErrorType.REQUIRED),
            ("link", ErrorType.REQUIRED),
        ]
        assert errors[0].message == "Feed title is required"

    def test_valid_feed(self, feed):
        feed.set_title("Valid Feed").set_description("A valid feed").set_link("https://example.com")
        assert feed.validate() == []

    def test_feed_link_format_not_checked(self, feed):
        feed.set_title("T").set_description("D").set_link("not-a-url")
        assert feed.validate() == []

    def test_item_errors_prefixed_with_index(self, feed):
        feed.set_title("T").set_description("D").set_link("https://example.com")
        feed.add_items([make_item(0), {"title": "", "description": "Test", "link": "invalid-url"}])

        errors = feed.validate()
        assert [(e.field, e.type) for e in errors] == [
            ("items[1].title", ErrorType.REQUIRED),
            ("items[1].link", ErrorType.INVALID_URL),
        ]

    def test_validate_never_raises(self):
        feed = Feed(allowed_domains=["example.com"])
        feed.add_item(make_item(0, link="https://blocked.com/x", priority=3))
        errors = feed.validate()
        assert [e.field for e in errors] == ["title", "description", "link", "items[0].link", "items[0].priority"]

    def test_relative_link_resolved_into_allowed_domain(self):
        feed = Feed(base_url="https://example.com", allowed_domains=["example.com"])
        feed.set_title("T").set_description("D").set_link("https://example.com")
        feed.add_item(make_item(0, link="/relative"))
        assert feed.validate() == []


class TestUrlResolution:
    """Tests for relative URL resolution."""

    def test_resolve_url(self):
        assert resolve_url("/path", "https://example.com") == "https://example.com/path"
        assert resolve_url("path", "https://example.com") == "https://example.com/path"
        assert resolve_url("/path", "https://example.com/") == "https://example.com/path"
        assert resolve_url("https://other.com/x", "https://example.com") == "https://other.com/x"
        assert resolve_url("http://other.com/x", "https://example.com") == "http://other.com/x"
        assert resolve_url("/path", "") == "/path"

    def test_resolve_url_idempotent(self):
        once = resolve_url("/path", "https://example.com")
        assert resolve_url(once, "https://example.com") == once
        assert resolve_url("/path", "https://example.com") == once

    def test_all_url_fields_resolved(self):
        feed = Feed({"base_url": "https://example.com"})
        feed.add_item(
            make_item(
                1,
                link="/media-test",
                images=[{"url": "/image.jpg", "title": "Test Image"}],
                videos=[
                    {
                        "content_url": "/video.mp4",
                        "thumbnail_url": "/thumb.jpg",
                        "title": "Test Video",
                        "description": "A test video",
                    }
                ],
                translations=[{"url": "/es/media-test", "language": "es"}],
            )
        )

        item = feed.get_items()[0]
        assert item.link == "https://example.com/media-test"
        assert item.images[0].url == "https://example.com/image.jpg"
        assert item.videos[0].content_url == "https://example.com/video.mp4"
        assert item.videos[0].thumbnail_url == "https://example.com/thumb.jpg"
        assert item.translations[0].url == "https://example.com/es/media-test"

    def test_absolute_urls_unchanged(self):
        feed = Feed({"base_url": "https://example.com"})
        feed.add_item(make_item(1, link="https://other.com/absolute-path"))
        assert feed.get_items()[0].link == "https://other.com/absolute-path"

    def test_no_base_url_leaves_relative_links(self, feed):
        feed.add_item(make_item(1, link="/relative"))
        assert feed.get_items()[0].link == "/relative"

    def test_eager_validation_runs_before_resolution(self):
        feed = Feed(base_url="https://example.com", validate=True)
        with pytest.raises(ValidationFailure):
            feed.add_item(make_item(1, link="/relative"))


class TestStatistics:
    """Tests for statistics and split decisions."""

    @pytest.fixture
    def populated(self, feed):
        feed.add_items(
            [
                make_item(1, images=[{"url": "https://example.com/img1.jpg"}], priority=0.8),
                make_item(
                    2,
                    videos=[
                        {
                            "content_url": "https://example.com/vid.mp4",
                            "thumbnail_url": "https://example.com/thumb.jpg",
                            "title": "Test Video",
                            "description": "A test video",
                        }
                    ],
                    priority=0.6,
                    translations=[{"url": "https://example.com/es/2", "language": "es"}],
                ),
                make_item(3),
            ]
        )
        return feed

    def test_stats(self, populated):
        stats = populated.get_stats()

        assert stats.total_items == 3
        assert stats.total_images == 1
        assert stats.total_videos == 1
        assert stats.total_translations == 1
        assert stats.average_priority == pytest.approx(0.7)
        assert stats.last_modified == populated.last_build_date
        assert stats.size_estimate == 1000 + 3 * 2000

    def test_empty_stats(self, feed):
        stats = feed.get_stats()
        assert stats.total_items == 0
        assert stats.total_images == 0
        assert stats.average_priority == 0
        assert stats.size_estimate == 1000

    def test_average_priority_skips_non_numeric_values(self, feed):
        feed.add_items([make_item(1, priority=0.4), make_item(2, priority="high"), make_item(3, priority=True)])
        assert feed.get_stats().average_priority == pytest.approx(0.4)

    def test_no_split_with_defaults(self, feed):
        feed.add_items([make_item(i) for i in range(100)])
        assert feed.should_split() is False

    def test_split_on_item_count(self):
        feed = Feed({"max_items": 2})
        feed.add_items([make_item(1), make_item(2)])
        assert feed.should_split() is False
        feed.add_item(make_item(3))
        assert feed.should_split() is True

    def test_split_on_size(self):
        feed = Feed({"max_file_size": 5000})
        feed.add_items([make_item(1), make_item(2)])
        assert feed.get_stats().size_estimate == 5000
        assert feed.should_split() is False
        feed.add_item(make_item(3))
        assert feed.should_split() is True


class TestRenderDispatch:
    """Tests for format dispatch."""

    def test_unsupported_format(self, feed):
        with pytest.raises(UnsupportedFormat, match="Unsupported feed format: invalid") as exc_info:
            feed.render("invalid")
        assert exc_info.value.requested == "invalid"

    def test_unsupported_format_is_value_error(self, feed):
        with pytest.raises(ValueError):
            feed.render("json")

    def test_render_does_not_change_state(self, feed):
        feed.set_title("T").set_description("D").set_link("https://example.com")
        feed.add_item(make_item(1))
        stamp = feed.last_build_date

        first = feed.render("rss")
        assert feed.render("rss") == first
        assert feed.render("atom") == feed.render("atom")
        assert feed.last_build_date == stamp
        assert feed.item_count == 1

    def test_cache_key(self, feed):
        key = feed.cache_key("rss")
        assert key.startswith("feed:rss:")
        assert key == feed.cache_key("rss")
        assert feed.cache_key("atom") != key

        feed.add_item(make_item(1))
        assert feed.cache_key("rss") != key

        with pytest.raises(UnsupportedFormat):
            feed.cache_key("xml")

    def test_cache_key_follows_metadata(self, feed):
        feed.set_title("Old")
        key = feed.cache_key("rss")

        feed.set_title("New")
        assert feed.cache_key("rss") != key

        feed.set_title("Old")
        assert feed.cache_key("rss") == key

    def test_cache_key_ignores_build_time(self):
        stamps = [datetime(2024, 1, day, tzinfo=timezone.utc) for day in range(1, 5)]
        feeds = []
        with patch("feedwriter.feed.utc_now", side_effect=stamps):
            for _ in range(2):
                feed = Feed().set_title("T")
                feed.add_item(make_item(1))
                feeds.append(feed)

        assert feeds[0].last_build_date != feeds[1].last_build_date
        assert feeds[0].cache_key("rss") == feeds[1].cache_key("rss")

    def test_cache_key_follows_config(self):
        assert Feed(escape_content=False).cache_key("rss") != Feed().cache_key("rss")
