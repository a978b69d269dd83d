"""Provider formatters for chat-bot webhook payloads."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from im_gateway.formatters.base import FormatterError, OutputFormatter
from im_gateway.formatters.builders import BuilderKind, select_builder
from im_gateway.formatters.embedded import CommentDecodeError, extract_comment
from im_gateway.formatters.wechatwork import WechatWorkFormatter

if TYPE_CHECKING:
    from im_gateway.config import Settings
    from im_gateway.models import FormattedRequest, GatewayEvent, TargetEndpoint

_PROVIDERS: dict[str, Callable[[Settings | None], OutputFormatter]] = {
    "wechatwork": WechatWorkFormatter,
}


class UnknownProviderError(FormatterError):
    """Raised when no formatter is registered for a provider name."""


def available_providers() -> list[str]:
    """Return the registered provider names, sorted."""
    return sorted(_PROVIDERS)


def get_formatter(provider: str, settings: Settings | None = None) -> OutputFormatter:
    """Resolve a provider name to a formatter instance.

    Args:
        provider: Provider name, case-insensitive.
        settings: Optional settings passed to the formatter.

    Raises:
        UnknownProviderError: If the name is empty or not registered.
    """
    name = str(provider or "").strip().lower()
    if not name:
        raise UnknownProviderError("provider must be a non-empty string")
    factory = _PROVIDERS.get(name)
    if factory is None:
        allowed = ", ".join(available_providers())
        raise UnknownProviderError(f"provider must be one of: {allowed}")
    return factory(settings)


def format_request(
    provider: str,
    event: GatewayEvent,
    target: TargetEndpoint,
    settings: Settings | None = None,
) -> FormattedRequest:
    """Format an event for a provider in one call."""
    return get_formatter(provider, settings).format(event, target)


__all__ = [
    "BuilderKind",
    "CommentDecodeError",
    "FormatterError",
    "OutputFormatter",
    "UnknownProviderError",
    "WechatWorkFormatter",
    "available_providers",
    "extract_comment",
    "format_request",
    "get_formatter",
    "select_builder",
]
