"""Data models for the gateway formatting layer.

The message model is provider-agnostic: formatters read it and never
mutate it. ``from_dict`` constructors accept the camelCase keys used by
upstream event producers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

ImageType = Literal["cover", "other"]
MentionType = Literal["all", "user"]

# Message bodies are free text, or an embedded payload that is either
# serialized JSON text or an already decoded mapping.
MessageBody = str | Mapping[str, Any]


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class MessageField:
    """A labelled value rendered as a quoted key/value line."""

    label: str
    value: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MessageField:
        """Create a MessageField from a dictionary."""
        return cls(
            label=str(data.get("label", "")),
            value=str(data.get("value", "")),
        )


@dataclass(frozen=True)
class Image:
    """An image attached to a message."""

    url: str
    type: ImageType = "other"

    @property
    def is_cover(self) -> bool:
        """Return True if the image is tagged as a cover image."""
        return self.type == "cover"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Image:
        """Create an Image from a dictionary.

        Unknown image types are treated as ``other``.
        """
        image_type: ImageType = "cover" if data.get("type") == "cover" else "other"
        return cls(url=str(data.get("url", "")), type=image_type)


@dataclass(frozen=True)
class Mention:
    """A request to notify a user, or everyone, alongside a message."""

    type: MentionType = "user"
    user_id: str | None = None
    name: str | None = None

    @property
    def is_broadcast(self) -> bool:
        """Return True if the mention targets everyone."""
        return self.type == "all"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Mention:
        """Create a Mention from a dictionary.

        Accepts both ``userId`` and ``user_id``. Unknown mention types
        are treated as ``user``.
        """
        mention_type: MentionType = "all" if data.get("type") == "all" else "user"
        user_id = data.get("userId", data.get("user_id"))
        return cls(
            type=mention_type,
            user_id=_optional_str(user_id) or None,
            name=_optional_str(data.get("name")) or None,
        )


@dataclass(frozen=True)
class Message:
    """Provider-agnostic representation of a notification."""

    body: MessageBody = ""
    title: str | None = None
    fields: tuple[MessageField, ...] = ()
    link: str | None = None
    images: tuple[Image, ...] = ()
    footer: str | None = None
    mentions: tuple[Mention, ...] = ()

    @property
    def cover_image(self) -> Image | None:
        """Return the first image tagged as cover, or None."""
        return next((img for img in self.images if img.is_cover), None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        """Create a Message from an upstream message dictionary.

        A mapping ``body`` is kept as-is so embedded payloads survive
        without a serialization round trip.
        """
        raw_body = data.get("body")
        if raw_body is None:
            body: MessageBody = ""
        elif isinstance(raw_body, Mapping):
            body = raw_body
        else:
            body = str(raw_body)

        return cls(
            body=body,
            title=_optional_str(data.get("title")),
            fields=tuple(MessageField.from_dict(f) for f in data.get("fields") or ()),
            link=_optional_str(data.get("link")),
            images=tuple(Image.from_dict(i) for i in data.get("images") or ()),
            footer=_optional_str(data.get("footer")),
            mentions=tuple(Mention.from_dict(m) for m in data.get("mentions") or ()),
        )


@dataclass(frozen=True)
class GatewayEvent:
    """An inbound notification occurrence carrying a message."""

    message: Message

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GatewayEvent:
        """Create a GatewayEvent from a dictionary."""
        return cls(message=Message.from_dict(data.get("message") or {}))


@dataclass(frozen=True)
class TargetEndpoint:
    """A provider destination credential, such as a webhook robot key."""

    token: str

    def __repr__(self) -> str:
        return "TargetEndpoint(token='***')"


@dataclass(frozen=True)
class FormattedRequest:
    """A fully built outbound HTTP request, ready for an external sender.

    Attributes:
        url: Destination URL including the target token.
        method: HTTP method, always POST for webhook providers.
        headers: Request headers.
        body: Structured JSON payload.
    """

    url: str
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    method: Literal["POST"] = "POST"

    def to_dict(self) -> dict[str, Any]:
        """Return the request as a plain dictionary."""
        return {
            "url": self.url,
            "method": self.method,
            "headers": dict(self.headers),
            "body": self.body,
        }


def _comment_text(value: Any) -> str:
    """Render a comment attribute, treating empty and falsy values as absent."""
    if not value:
        return ""
    return str(value)


@dataclass(frozen=True)
class CommentObject:
    """A comment notification extracted from an embedded message body.

    All attributes default to an empty string when the source omits them.
    """

    nick: str = ""
    comment: str = ""
    mail: str = ""
    status: str = ""
    inserted_at: str = ""
    ip: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CommentObject:
        """Create a CommentObject from a comment payload dictionary."""
        return cls(
            nick=_comment_text(data.get("nick")),
            comment=_comment_text(data.get("comment")),
            mail=_comment_text(data.get("mail")),
            status=_comment_text(data.get("status")),
            inserted_at=_comment_text(data.get("insertedAt")),
            ip=_comment_text(data.get("ip")),
            url=_comment_text(data.get("url")),
        )
