"""RSS 2.0 and Atom 1.0 renderers for a Feed."""

from typing import TYPE_CHECKING, Any, Mapping

from feedwriter.dates import format_atom_date, format_rss_date
from feedwriter.markup import (
    XML_DECLARATION,
    check_tag_name,
    create_cdata,
    create_element,
    escape_xml,
    format_xml,
)
from feedwriter.models import FeedItem

if TYPE_CHECKING:
    from feedwriter.feed import Feed

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
MEDIA_NAMESPACE = "http://search.yahoo.com/mrss/"
NEWS_NAMESPACE = "http://www.google.com/schemas/sitemap-news/0.9"


def _str(value: Any) -> Any:
    return "" if value is None else value


def _open(tag: str, attributes: Mapping[str, Any] | None = None) -> str:
    check_tag_name(tag)
    attrs = "".join(f' {key}="{escape_xml(_str(value))}"' for key, value in (attributes or {}).items())
    return f"<{tag}{attrs}>"


def _text(tag: str, value: Any) -> str:
    # Emitted as a full element even when value is empty
    return f"{_open(tag)}{escape_xml(_str(value))}</{tag}>"


def _content(tag: str, value: Any, escape_content: bool) -> str:
    body = escape_xml(_str(value)) if escape_content else create_cdata(_str(value))
    return f"{_open(tag)}{body}</{tag}>"


def _finish(lines: list[str]) -> str:
    # Output is always re-indented; pretty_print is carried for template views
    return format_xml("\n".join([XML_DECLARATION, *lines]))


def _has_media(items: list[FeedItem]) -> bool:
    return any(item.images or item.videos for item in items)


def _has_news(items: list[FeedItem]) -> bool:
    return any(item.news is not None for item in items)


def _rss_item(item: FeedItem, escape_content: bool) -> list[str]:
    lines = [
        "<item>",
        _text("title", item.title),
        _text("link", item.link),
        _content("description", item.description, escape_content),
    ]

    if item.author:
        lines.append(_text("author", item.author))

    lines.extend(_text("category", category) for category in item.category)

    if item.pubdate is not None:
        lines.append(_text("pubDate", format_rss_date(item.pubdate)))

    lines.append(_text("guid", item.guid if item.guid is not None else item.link))

    if item.enclosure is not None:
        attrs = {"url": item.enclosure.url, "type": item.enclosure.type}
        if item.enclosure.length is not None:
            attrs["length"] = item.enclosure.length
        lines.append(create_element("enclosure", "", attrs))

    for image in item.images:
        attrs = {"url": _str(image.url)}
        if image.type is not None:
            attrs["type"] = image.type
        if image.width is not None:
            attrs["width"] = image.width
        if image.height is not None:
            attrs["height"] = image.height
        lines.append(create_element("media:content", "", attrs))

    for video in item.videos:
        attrs = {"url": _str(video.content_url), "type": "video"}
        if video.duration is not None:
            attrs["duration"] = video.duration
        lines.append(_open("media:content", attrs))
        lines.append(create_element("media:thumbnail", "", {"url": _str(video.thumbnail_url)}))
        lines.append("</media:content>")

    if item.news is not None and item.news.keywords:
        lines.append(_text("news:keywords", item.news.keywords))

    lines.append("</item>")
    return lines


def render_rss(feed: "Feed") -> str:
    """Render the feed as an RSS 2.0 document.

    The ``media`` and ``news`` namespaces are declared only when some item
    uses them.
    """
    config = feed.config
    items = feed.get_items()

    root_attrs = {"version": "2.0"}
    if _has_media(items):
        root_attrs["xmlns:media"] = MEDIA_NAMESPACE
    if _has_news(items):
        root_attrs["xmlns:news"] = NEWS_NAMESPACE

    lines = [
        _open("rss", root_attrs),
        "<channel>",
        _text("title", feed.title),
        _text("link", feed.link),
        _text("description", feed.description),
    ]

    optional = (
        ("language", feed.language),
        ("managingEditor", feed.managing_editor),
        ("webMaster", feed.web_master),
        ("category", feed.category),
        ("copyright", feed.copyright),
    )
    lines.extend(_text(tag, value) for tag, value in optional if value)

    lines.append(_text("lastBuildDate", format_rss_date(feed.last_build_date)))
    lines.append(_text("generator", f"{feed.generator} v{config.version}"))

    for item in items:
        lines.extend(_rss_item(item, config.escape_content))

    lines.extend(["</channel>", "</rss>"])
    return _finish(lines)


def _atom_entry(item: FeedItem, escape_content: bool) -> list[str]:
    lines = [
        "<entry>",
        _text("title", item.title),
        create_element("link", "", {"href": _str(item.link)}),
        _text("id", item.guid if item.guid is not None else item.link),
    ]

    if item.pubdate is not None:
        lines.append(_text("updated", format_atom_date(item.pubdate)))

    lines.append(_content("summary", item.description, escape_content))

    if item.author:
        lines.extend(["<author>", _text("name", item.author), "</author>"])

    lines.extend(create_element("category", "", {"term": category}) for category in item.category)

    lines.append("</entry>")
    return lines


def render_atom(feed: "Feed") -> str:
    """Render the feed as an Atom 1.0 document."""
    config = feed.config

    lines = [
        _open("feed", {"xmlns": ATOM_NAMESPACE}),
        _text("title", feed.title),
        create_element("link", "", {"href": feed.link}),
        _text("id", feed.link),
        _text("updated", format_atom_date(feed.last_build_date)),
    ]

    if feed.description:
        lines.append(_text("subtitle", feed.description))

    if feed.managing_editor:
        lines.extend(["<author>", _text("email", feed.managing_editor), "</author>"])

    if feed.copyright:
        lines.append(_text("rights", feed.copyright))

    lines.append(_text("generator", f"{feed.generator} v{config.version}"))

    for item in feed.get_items():
        lines.extend(_atom_entry(item, config.escape_content))

    lines.append("</feed>")
    return _finish(lines)
