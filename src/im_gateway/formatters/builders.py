"""Payload builders for chat-bot webhook wire shapes.

Each builder is a pure function mapping a :class:`~im_gateway.models.Message`
to one structured payload: plain text, markdown or a rich "news" article.
:func:`select_builder` decides which shape a message gets.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from im_gateway.config import DEFAULT_ARTICLE_TITLE, DEFAULT_GUEST_NAME
from im_gateway.formatters.embedded import extract_comment
from im_gateway.models import Mention, Message, MessageBody

DETAILS_LABEL = "View details"
BROADCAST_MENTION = "all"


class BuilderKind(str, Enum):
    """Closed set of payload shapes a message can be rendered as."""

    TEXT = "text"
    MARKDOWN = "markdown"
    NEWS = "news"


class MentionKind(Enum):
    """Classification of a single mention."""

    BROADCAST = "broadcast"
    ID = "id"
    NAME = "name"


def select_builder(message: Message, fallback: BuilderKind = BuilderKind.TEXT) -> BuilderKind:
    """Pick the payload shape for a message.

    A message with a link and a cover image becomes a news article.
    Everything else uses ``fallback``, which may not itself be NEWS.

    Args:
        message: The message to render.
        fallback: Shape for messages that are not rich articles.

    Returns:
        The selected builder kind.
    """
    if message.link and message.cover_image is not None:
        return BuilderKind.NEWS
    if fallback is BuilderKind.NEWS:
        return BuilderKind.TEXT
    return fallback


def body_text(body: MessageBody) -> str:
    """Render a message body as display text.

    Structured bodies are rendered as compact JSON.
    """
    if isinstance(body, str):
        return body
    return json.dumps(body, ensure_ascii=False, separators=(",", ":"), default=str)


def classify_mention(mention: Mention) -> MentionKind:
    """Classify a mention as broadcast, id or name."""
    if mention.is_broadcast:
        return MentionKind.BROADCAST
    if mention.user_id:
        return MentionKind.ID
    return MentionKind.NAME


def collect_mentions(mentions: tuple[Mention, ...]) -> tuple[list[str], list[str]]:
    """Split mentions into ``mentioned_list`` and ``mentioned_mobile_list``.

    Order is preserved. Name mentions without a name contribute nothing.
    """
    mentioned_list: list[str] = []
    mentioned_mobile_list: list[str] = []

    for mention in mentions:
        kind = classify_mention(mention)
        if kind is MentionKind.BROADCAST:
            mentioned_list.append(BROADCAST_MENTION)
        elif kind is MentionKind.ID:
            mentioned_list.append(str(mention.user_id))
        elif mention.name:
            mentioned_mobile_list.append(mention.name)

    return mentioned_list, mentioned_mobile_list


def _add_section(parts: list[str], lines: list[str]) -> None:
    # Blank line only between sections, never leading.
    if parts:
        parts.append("")
    parts.extend(lines)


def build_markdown(message: Message) -> dict[str, Any]:
    """Build a markdown message payload.

    Sections appear in a fixed order: title, body, fields, link, footer.
    Mentions are appended as a final ``<@id>`` line and also surfaced as
    ``mentioned_list`` / ``mentioned_mobile_list``.
    """
    parts: list[str] = []

    if message.title:
        parts.append(f"### {message.title}")

    body = body_text(message.body)
    if body:
        parts.append(body)

    if message.fields:
        _add_section(
            parts,
            [
                f'> **{field.label}**: <font color="comment">{field.value}</font>'
                for field in message.fields
            ],
        )

    if message.link:
        _add_section(parts, [f"[{DETAILS_LABEL}]({message.link})"])

    if message.footer:
        _add_section(parts, [f'<font color="comment">{message.footer}</font>'])

    content = "\n".join(parts)
    markdown: dict[str, Any] = {"content": content}

    mentioned_list, mentioned_mobile_list = collect_mentions(message.mentions)
    if mentioned_list or mentioned_mobile_list:
        if mentioned_list:
            marker = " ".join(f"<@{m}>" for m in mentioned_list)
            content = f"{content}\n{marker}" if content else marker
        markdown = {
            "content": content,
            "mentioned_list": mentioned_list,
            "mentioned_mobile_list": mentioned_mobile_list,
        }

    return {"msgtype": "markdown", "markdown": markdown}


def build_news(message: Message, default_title: str = DEFAULT_ARTICLE_TITLE) -> dict[str, Any]:
    """Build a single-article news payload.

    ``picurl`` is the first cover image's URL and is omitted when the
    message has no cover image.
    """
    article: dict[str, Any] = {
        "title": message.title or default_title,
        "description": body_text(message.body),
        "url": message.link or "",
    }

    cover = message.cover_image
    if cover is not None:
        article["picurl"] = cover.url

    return {"msgtype": "news", "news": {"articles": [article]}}


def build_text(
    message: Message,
    site_origin: str,
    guest_name: str = DEFAULT_GUEST_NAME,
) -> dict[str, Any]:
    """Build a plain-text comment report from an embedded comment payload.

    Args:
        message: Message whose body carries the comment payload.
        site_origin: Origin joined with the comment's relative URL.
        guest_name: Commenter name used when the payload has none.

    Returns:
        Text message payload. Bodies that are not comment payloads render
        with empty fields and the guest name.
    """
    comment = extract_comment(message.body)

    lines = [
        f"{comment.nick or guest_name} commented:",
        comment.comment,
        f"Email: {comment.mail}",
        f"Status: {comment.status}",
        f"Time: {comment.inserted_at}",
        f"IP: {comment.ip}",
        "Comment preview only, view full content:",
        f"{site_origin}{comment.url}",
    ]

    return {"msgtype": "text", "text": {"content": "\n".join(lines)}}
