"""Configuration management for feedwriter."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from feedwriter import __version__

DEFAULT_MAX_ITEMS = 50_000
DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MiB


class FeedConfig(BaseModel):
    """Options fixed for the lifetime of a feed.

    ``validate`` is accepted as an input key but exposed as ``validate_items``
    because ``BaseModel.validate`` already exists.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    base_url: str = ""
    validate_items: bool = Field(default=False, alias="validate")
    escape_content: bool = True
    pretty_print: bool = True
    date_format: str = "ISO"
    language: str = "en"
    max_items: int = Field(default=DEFAULT_MAX_ITEMS, ge=0)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0)
    allowed_domains: tuple[str, ...] = ()
    version: str = __version__


class Settings(BaseSettings):
    """Feed defaults and runtime settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="FEED_", extra="ignore")

    # Feed defaults
    base_url: str = ""
    validate_items: bool = False
    escape_content: bool = True
    pretty_print: bool = True
    date_format: str = "ISO"
    language: str = "en"
    max_items: int = Field(default=DEFAULT_MAX_ITEMS, ge=0)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0)
    allowed_domains: list[str] = Field(default_factory=list)
    version: str = __version__

    # Rendered feed cache
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_seconds: int = 300

    # Environment
    env: str = Field(default="dev", pattern="^(dev|prod)$")
    log_level: str = Field(default="INFO")

    def feed_config(self) -> FeedConfig:
        """Build a FeedConfig from the feed-related settings."""
        return FeedConfig(
            base_url=self.base_url,
            validate_items=self.validate_items,
            escape_content=self.escape_content,
            pretty_print=self.pretty_print,
            date_format=self.date_format,
            language=self.language,
            max_items=self.max_items,
            max_file_size=self.max_file_size,
            allowed_domains=tuple(self.allowed_domains),
            version=self.version,
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
