"""Extraction of comment notifications embedded in a message body.

Some upstream integrations (blog comment systems such as Waline) deliver
their whole webhook payload as the message body, either as JSON text or
as an already decoded mapping. The comment lives at ``data.comment``.

The body is resolved once into a tagged variant, :class:`TextBody` or
:class:`StructuredBody`, and decoded by :func:`decode_comment`.
:func:`extract_comment` collapses every decode failure to an empty
:class:`~im_gateway.models.CommentObject`, so extraction is never fatal
to formatting.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from im_gateway.formatters.base import FormatterError
from im_gateway.models import CommentObject, MessageBody

logger = logging.getLogger(__name__)

COMMENT_PATH = ("data", "comment")


class CommentDecodeError(FormatterError):
    """Raised when an embedded body cannot be decoded."""


@dataclass(frozen=True)
class TextBody:
    """An embedded body delivered as serialized text."""

    text: str


@dataclass(frozen=True)
class StructuredBody:
    """An embedded body delivered as already decoded data."""

    value: Any


EmbeddedBody = TextBody | StructuredBody


def resolve_embedded_body(body: MessageBody | Any) -> EmbeddedBody:
    """Tag a raw message body as text or structured data."""
    if isinstance(body, str):
        return TextBody(body)
    return StructuredBody(body)


def _lookup(data: Any, path: tuple[str, ...]) -> Mapping[str, Any]:
    """Walk nested mappings, returning an empty mapping if any level is missing."""
    node = data
    for key in path:
        if not isinstance(node, Mapping):
            return {}
        node = node.get(key)
    if not isinstance(node, Mapping):
        return {}
    return node


def decode_comment(embedded: EmbeddedBody) -> CommentObject:
    """Decode the comment object from an embedded body.

    Args:
        embedded: The tagged message body.

    Returns:
        The comment found at ``data.comment``. Missing levels yield an
        empty comment.

    Raises:
        CommentDecodeError: If a text body is not valid JSON.
    """
    if isinstance(embedded, TextBody):
        try:
            data = json.loads(embedded.text)
        except (ValueError, RecursionError) as e:
            raise CommentDecodeError(f"Embedded body is not valid JSON: {e}") from e
    else:
        data = embedded.value

    return CommentObject.from_dict(_lookup(data, COMMENT_PATH))


def extract_comment(body: MessageBody | Any) -> CommentObject:
    """Extract a comment from a raw message body, falling back to defaults.

    Args:
        body: Message body as text or structured data.

    Returns:
        The decoded comment, or an empty comment if the body cannot be decoded.
    """
    try:
        return decode_comment(resolve_embedded_body(body))
    except CommentDecodeError as e:
        logger.debug("Using empty comment: %s", e)
        return CommentObject()
