"""Exceptions raised by feedwriter."""

from typing import Any, Iterable


class FeedError(Exception):
    """Base class for all feedwriter errors."""


class ValidationFailure(FeedError):
    """Raised when an item is rejected on insertion."""

    def __init__(self, errors: Iterable[Any], message: str | None = None) -> None:
        self.errors = list(errors)
        if message is None:
            message = "Validation failed: " + ", ".join(e.message for e in self.errors)
        super().__init__(message)


class UnsupportedFormat(FeedError, ValueError):
    """Raised when rendering is requested for an unknown feed format."""

    def __init__(self, requested: Any) -> None:
        self.requested = requested
        super().__init__(f"Unsupported feed format: {requested}")


class DateParseError(FeedError):
    """Raised when a value cannot be turned into a datetime.

    Not a ValueError: it propagates through pydantic validators unchanged.
    """

    def __init__(self, value: Any, message: str) -> None:
        self.value = value
        super().__init__(message)


class InvalidTagName(FeedError, ValueError):
    """Raised when a generated element name is not a valid XML name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid XML tag name: {name}")
