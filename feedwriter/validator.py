"""Field validation rules for feed items."""

import re
from numbers import Real
from typing import Any, Iterable, Mapping
from urllib.parse import urlsplit

from feedwriter.models import ErrorType, FieldError, as_mapping

URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
LANGUAGE_PATTERN = re.compile(r"[a-z]{2}(-[A-Z]{2})?")


def is_valid_url(url: Any) -> bool:
    """Check that a value is an http(s) URL."""
    if not isinstance(url, str) or not url.strip():
        return False
    return URL_PATTERN.match(url.strip()) is not None


def is_allowed_domain(url: str, allowed_domains: Iterable[str] | None = None) -> bool:
    """Check that the URL's host equals, or is a subdomain of, an allowed domain.

    An empty or missing domain list allows everything.
    """
    domains = [d.lower() for d in allowed_domains or ()]
    if not domains:
        return True

    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return False
    if not hostname:
        return False

    return any(hostname == domain or hostname.endswith(f".{domain}") for domain in domains)


def is_valid_email(email: Any) -> bool:
    if not isinstance(email, str) or not email.strip():
        return False
    return EMAIL_PATTERN.fullmatch(email) is not None


def is_valid_language_code(lang: Any) -> bool:
    """Basic RFC 3066 check: ``en`` or ``en-US``."""
    if not isinstance(lang, str) or not lang.strip():
        return False
    return LANGUAGE_PATTERN.fullmatch(lang) is not None


def is_valid_priority(priority: Any) -> bool:
    if not isinstance(priority, Real) or isinstance(priority, bool):
        return False
    return 0 <= priority <= 1


def validate_required_string(value: Any, field_name: str) -> FieldError | None:
    if not isinstance(value, str) or not value.strip():
        return FieldError(
            field=field_name,
            type=ErrorType.REQUIRED,
            message=f"{field_name} is required and must be a non-empty string",
            value=value,
        )
    return None


def validate_url(
    url: Any,
    field_name: str,
    allowed_domains: Iterable[str] | None = None,
) -> FieldError | None:
    """Validate a URL field: required string, http(s) URL, then allowed domain."""
    if error := validate_required_string(url, field_name):
        return error

    if not is_valid_url(url):
        return FieldError(
            field=field_name,
            type=ErrorType.INVALID_URL,
            message=f"{field_name} must be a valid HTTP or HTTPS URL",
            value=url,
        )

    if not is_allowed_domain(url, allowed_domains):
        return FieldError(
            field=field_name,
            type=ErrorType.DOMAIN_NOT_ALLOWED,
            message=f"{field_name} domain is not in the allowed domains list",
            value=url,
        )

    return None


def validate_item(
    item: Mapping[str, Any] | Any,
    allowed_domains: Iterable[str] | None = None,
) -> list[FieldError]:
    """Validate item data and return every error found.

    Rules run in a fixed order: title, description, link, author, priority,
    images, videos, translations. Validation never stops at the first error.

    Args:
        item: Item data as a mapping or a FeedItem
        allowed_domains: Host suffixes that URL fields must belong to

    Returns:
        List of FieldError, empty when the item is valid
    """
    data = as_mapping(item)
    domains = tuple(allowed_domains or ())
    found: list[FieldError | None] = [
        validate_required_string(data.get("title"), "title"),
        validate_required_string(data.get("description"), "description"),
        validate_url(data.get("link"), "link", domains),
    ]

    if data.get("author") is not None:
        found.append(validate_required_string(data["author"], "author"))

    priority = data.get("priority")
    if priority is not None and not is_valid_priority(priority):
        found.append(
            FieldError(
                field="priority",
                type=ErrorType.INVALID_RANGE,
                message="priority must be a number between 0.0 and 1.0",
                value=priority,
            )
        )

    for index, image in enumerate(data.get("images") or ()):
        image = as_mapping(image)
        found.append(validate_url(image.get("url"), f"images[{index}].url", domains))

    for index, video in enumerate(data.get("videos") or ()):
        video = as_mapping(video)
        prefix = f"videos[{index}]"
        found.extend(
            [
                validate_url(video.get("thumbnail_url"), f"{prefix}.thumbnail_url", domains),
                validate_url(video.get("content_url"), f"{prefix}.content_url", domains),
                validate_required_string(video.get("title"), f"{prefix}.title"),
                validate_required_string(video.get("description"), f"{prefix}.description"),
            ]
        )

    for index, translation in enumerate(data.get("translations") or ()):
        translation = as_mapping(translation)
        prefix = f"translations[{index}]"
        language = translation.get("language")
        found.append(validate_required_string(language, f"{prefix}.language"))
        if not is_valid_language_code(language):
            found.append(
                FieldError(
                    field=f"{prefix}.language",
                    type=ErrorType.INVALID_LANGUAGE,
                    message="language must be a valid RFC 3066 language code",
                    value=language,
                )
            )
        found.append(validate_url(translation.get("url"), f"{prefix}.url", domains))

    return [error for error in found if error is not None]
