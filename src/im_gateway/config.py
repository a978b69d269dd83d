"""Configuration management service with Pydantic Settings.

This module provides centralized configuration for the IM gateway
formatters, loading and validating environment variables the first
time settings are requested.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WECHATWORK_BASE_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send?key="
DEFAULT_COMMENT_SITE_ORIGIN = "https://www.huochairener-blog.cn"
DEFAULT_GUEST_NAME = "guest"
DEFAULT_ARTICLE_TITLE = "Notification"


def _require_http(v: str, name: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError(f"{name} must be an HTTP(S) URL")
    return v


class WechatWorkSettings(BaseSettings):
    """WeChat Work group robot settings."""

    model_config = SettingsConfigDict(env_prefix="WECHATWORK_")

    base_url: str = Field(
        default=DEFAULT_WECHATWORK_BASE_URL,
        alias="WECHATWORK_BASE_URL",
        description="Webhook send URL; the robot key is appended verbatim",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate webhook base URL format."""
        return _require_http(v, "WECHATWORK_BASE_URL")


class CommentSettings(BaseSettings):
    """Settings for rendering embedded comment notifications."""

    model_config = SettingsConfigDict(env_prefix="COMMENT_")

    site_origin: str = Field(
        default=DEFAULT_COMMENT_SITE_ORIGIN,
        alias="COMMENT_SITE_ORIGIN",
        description="Origin prepended to the comment's relative URL",
    )
    guest_name: str = Field(
        default=DEFAULT_GUEST_NAME,
        alias="COMMENT_GUEST_NAME",
        description="Commenter name used when the payload carries none",
    )

    @field_validator("site_origin")
    @classmethod
    def validate_site_origin(cls, v: str) -> str:
        """Validate the origin and drop any trailing slash."""
        return _require_http(v, "COMMENT_SITE_ORIGIN").rstrip("/")


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from im_gateway.config import get_settings

        settings = get_settings()
        print(settings.wechatwork.base_url)
        print(settings.fallback_format)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Nested configuration groups
    wechatwork: WechatWorkSettings = Field(default_factory=WechatWorkSettings)
    comment: CommentSettings = Field(default_factory=CommentSettings)

    # Formatting settings
    fallback_format: Literal["text", "markdown"] = Field(
        default="text",
        alias="IM_GATEWAY_FALLBACK_FORMAT",
        description="Payload shape used when a message is not a rich article",
    )
    default_title: str = Field(
        default=DEFAULT_ARTICLE_TITLE,
        alias="IM_GATEWAY_DEFAULT_TITLE",
        description="Article title used when a message has no title",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Uses LRU cache to ensure settings are loaded only once and
    reused across the application.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
