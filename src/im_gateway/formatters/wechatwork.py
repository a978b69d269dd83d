"""WeChat Work group robot formatter.

This module turns gateway events into WeChat Work webhook requests:
news articles for messages with a link and a cover image, otherwise the
configured fallback shape (plain-text comment report by default).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from im_gateway.config import get_settings
from im_gateway.formatters.base import json_headers
from im_gateway.formatters.builders import (
    BuilderKind,
    build_markdown,
    build_news,
    build_text,
    select_builder,
)
from im_gateway.models import FormattedRequest

if TYPE_CHECKING:
    from im_gateway.config import Settings
    from im_gateway.models import GatewayEvent, Message, TargetEndpoint

logger = logging.getLogger(__name__)


class WechatWorkFormatter:
    """Formats gateway events into WeChat Work robot webhook requests.

    The formatter holds only immutable configuration and is safe to share
    across threads and tasks.
    """

    name = "wechatwork"
    provider = "wechatwork"

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the formatter.

        Args:
            settings: Settings to read URLs and labels from. Defaults to
                the application settings singleton.
        """
        settings = settings or get_settings()
        self.base_url = settings.wechatwork.base_url
        self.site_origin = settings.comment.site_origin
        self.guest_name = settings.comment.guest_name
        self.default_title = settings.default_title
        self.fallback = BuilderKind(settings.fallback_format)

    def format(self, event: GatewayEvent, target: TargetEndpoint) -> FormattedRequest:
        """Format an event into an outbound request.

        Args:
            event: Event carrying the message to send.
            target: Destination robot key.

        Returns:
            FormattedRequest with URL, JSON headers and payload.
        """
        return FormattedRequest(
            url=self.build_url(target),
            headers=json_headers(),
            body=self.build_message(event.message),
        )

    def build_url(self, target: TargetEndpoint) -> str:
        """Append the target token to the webhook base URL, verbatim."""
        return f"{self.base_url}{target.token}"

    def build_message(self, message: Message) -> dict[str, Any]:
        """Build the payload for a message using the selected shape."""
        kind = select_builder(message, self.fallback)
        logger.debug("Formatting %s message as %s", self.provider, kind.value)

        if kind is BuilderKind.NEWS:
            return build_news(message, default_title=self.default_title)
        if kind is BuilderKind.MARKDOWN:
            return build_markdown(message)
        return build_text(message, site_origin=self.site_origin, guest_name=self.guest_name)
