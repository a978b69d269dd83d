"""Adapter contract shared by provider formatters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from im_gateway.models import FormattedRequest, GatewayEvent, TargetEndpoint

CONTENT_TYPE = "Content-Type"
CONTENT_TYPE_JSON = "application/json"


class FormatterError(Exception):
    """Base exception for formatting errors."""


class OutputFormatter(Protocol):
    """Protocol for provider formatters."""

    name: str
    provider: str

    def format(self, event: GatewayEvent, target: TargetEndpoint) -> FormattedRequest:
        """Build the outbound request for a target. Must not raise."""
        ...


def json_headers() -> dict[str, str]:
    """Return a fresh header mapping declaring a JSON body."""
    return {CONTENT_TYPE: CONTENT_TYPE_JSON}
