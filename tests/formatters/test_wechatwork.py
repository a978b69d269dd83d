"""Tests for the WeChat Work formatter."""

from __future__ import annotations

import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from im_gateway.config import Settings, clear_settings_cache
from im_gateway.formatters.wechatwork import WechatWorkFormatter
from im_gateway.models import (
    FormattedRequest,
    GatewayEvent,
    Image,
    Mention,
    Message,
    MessageField,
    TargetEndpoint,
)

BASE_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send?key="


def make_settings(**env: str) -> Settings:
    """Build settings from a clean environment plus overrides."""
    with patch.dict(os.environ, env, clear=True):
        return Settings()


@pytest.fixture
def formatter() -> WechatWorkFormatter:
    """Create a formatter with default settings."""
    return WechatWorkFormatter(make_settings())


@pytest.fixture
def target() -> TargetEndpoint:
    """Create a sample robot key target."""
    return TargetEndpoint(token="693a91f6-7xxx-4bc4-97a0-0ec2sifa5aaa")


@pytest.fixture
def news_message() -> Message:
    """Create a message eligible for a news article."""
    return Message(
        title="New release",
        body="Version 2.0 is out",
        link="https://example.com/release/2.0",
        images=(
            Image(url="https://img.example.com/inline.png", type="other"),
            Image(url="https://img.example.com/cover.png", type="cover"),
        ),
    )


class TestFormat:
    """Tests for WechatWorkFormatter.format."""

    def test_returns_post_request(
        self, formatter: WechatWorkFormatter, target: TargetEndpoint
    ) -> None:
        """Test request method, URL and headers."""
        request = formatter.format(GatewayEvent(message=Message(body="hi")), target)

        assert isinstance(request, FormattedRequest)
        assert request.method == "POST"
        assert request.url == f"{BASE_URL}{target.token}"
        assert request.headers == {"Content-Type": "application/json"}

    def test_token_appended_verbatim(self, formatter: WechatWorkFormatter) -> None:
        """Test that the token is not encoded."""
        request = formatter.format(
            GatewayEvent(message=Message()), TargetEndpoint(token="a b&c=d/é")
        )

        assert request.url == f"{BASE_URL}a b&c=d/é"

    def test_news_for_link_and_cover(
        self, formatter: WechatWorkFormatter, target: TargetEndpoint, news_message: Message
    ) -> None:
        """Test that link plus cover produces a news article."""
        body = formatter.format(GatewayEvent(message=news_message), target).body

        assert body["msgtype"] == "news"
        article = body["news"]["articles"][0]
        assert article["picurl"] == "https://img.example.com/cover.png"
        assert article["url"] == "https://example.com/release/2.0"
        assert len(body["news"]["articles"]) == 1

    def test_build_failed_end_to_end(
        self, formatter: WechatWorkFormatter, target: TargetEndpoint
    ) -> None:
        """Test that an ordinary message falls back to the guest comment report."""
        message = Message(
            title="Build Failed",
            body="unit tests failed",
            fields=(MessageField(label="branch", value="main"),),
            footer="CI",
        )
        body = formatter.format(GatewayEvent(message=message), target).body

        assert body == {
            "msgtype": "text",
            "text": {
                "content": "\n".join(
                    [
                        "guest commented:",
                        "",
                        "Email: ",
                        "Status: ",
                        "Time: ",
                        "IP: ",
                        "Comment preview only, view full content:",
                        "https://www.huochairener-blog.cn",
                    ]
                )
            },
        }

    def test_comment_json_string_matches_structured(
        self, formatter: WechatWorkFormatter, target: TargetEndpoint
    ) -> None:
        """Test that a JSON string body and its parsed form format identically."""
        payload = {"data": {"comment": {"nick": "A", "comment": "hi"}}}

        from_text = formatter.format(GatewayEvent(message=Message(body=json.dumps(payload))), target)
        from_dict = formatter.format(GatewayEvent(message=Message(body=payload)), target)

        assert from_text == from_dict
        assert from_text.body["text"]["content"].startswith("A commented:\nhi\n")

    def test_not_json_does_not_raise(
        self, formatter: WechatWorkFormatter, target: TargetEndpoint
    ) -> None:
        """Test that a non-JSON body formats with guest defaults."""
        body = formatter.format(GatewayEvent(message=Message(body="not json")), target).body

        assert body["msgtype"] == "text"
        assert body["text"]["content"].startswith("guest commented:\n\nEmail: \n")

    def test_oversized_integer_body_does_not_raise(
        self, formatter: WechatWorkFormatter, target: TargetEndpoint
    ) -> None:
        """Test that a body over the integer digit limit formats with guest defaults."""
        body = formatter.format(GatewayEvent(message=Message(body="9" * 5000)), target).body

        assert body["msgtype"] == "text"
        assert body["text"]["content"].startswith("guest commented:\n\nEmail: \n")

    @pytest.mark.parametrize(
        "message",
        [
            Message(),
            Message(link="https://example.com"),
            Message(images=(Image(url="https://img.example.com/c.png", type="cover"),)),
            Message(mentions=(Mention(type="all"),)),
        ],
    )
    def test_never_news_without_link_and_cover(
        self, formatter: WechatWorkFormatter, target: TargetEndpoint, message: Message
    ) -> None:
        """Test that news is never produced without a link+cover pair."""
        body = formatter.format(GatewayEvent(message=message), target).body

        assert body["msgtype"] != "news"

    def test_logs_selected_builder(
        self,
        formatter: WechatWorkFormatter,
        target: TargetEndpoint,
        news_message: Message,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that the selected shape is logged without the token."""
        with caplog.at_level(logging.DEBUG, logger="im_gateway.formatters.wechatwork"):
            formatter.format(GatewayEvent(message=news_message), target)

        assert "as news" in caplog.text
        assert target.token not in caplog.text

    def test_concurrent_calls_independent(
        self, formatter: WechatWorkFormatter, news_message: Message
    ) -> None:
        """Test that parallel calls produce independent results."""
        tokens = [f"key-{i}" for i in range(20)]

        with ThreadPoolExecutor(max_workers=4) as pool:
            requests = list(
                pool.map(
                    lambda t: formatter.format(
                        GatewayEvent(message=news_message), TargetEndpoint(token=t)
                    ),
                    tokens,
                )
            )

        assert [r.url for r in requests] == [f"{BASE_URL}{t}" for t in tokens]
        assert requests[0].headers is not requests[1].headers


class TestConfiguredFormatter:
    """Tests for settings-driven behavior."""

    def test_markdown_fallback(self, target: TargetEndpoint) -> None:
        """Test that markdown can replace the text fallback."""
        formatter = WechatWorkFormatter(make_settings(IM_GATEWAY_FALLBACK_FORMAT="markdown"))
        message = Message(
            title="Build Failed",
            body="unit tests failed",
            mentions=(Mention(type="user", user_id="u1"),),
        )
        body = formatter.format(GatewayEvent(message=message), target).body

        assert body == {
            "msgtype": "markdown",
            "markdown": {
                "content": "### Build Failed\nunit tests failed\n<@u1>",
                "mentioned_list": ["u1"],
                "mentioned_mobile_list": [],
            },
        }

    def test_markdown_fallback_still_prefers_news(
        self, target: TargetEndpoint, news_message: Message
    ) -> None:
        """Test that news eligibility wins over the markdown fallback."""
        formatter = WechatWorkFormatter(make_settings(IM_GATEWAY_FALLBACK_FORMAT="markdown"))

        body = formatter.format(GatewayEvent(message=news_message), target).body

        assert body["msgtype"] == "news"

    def test_custom_urls_and_labels(self, target: TargetEndpoint) -> None:
        """Test that base URL, site origin, guest name and title come from settings."""
        formatter = WechatWorkFormatter(
            make_settings(
                WECHATWORK_BASE_URL="http://localhost:9000/send?key=",
                COMMENT_SITE_ORIGIN="https://blog.example.com/",
                COMMENT_GUEST_NAME="visitor",
            )
        )
        request = formatter.format(
            GatewayEvent(message=Message(body={"data": {"comment": {"url": "/p/1"}}})), target
        )

        assert request.url == f"http://localhost:9000/send?key={target.token}"
        content = request.body["text"]["content"]
        assert content.startswith("visitor commented:")
        assert content.endswith("https://blog.example.com/p/1")

    def test_default_title_setting(self, target: TargetEndpoint) -> None:
        """Test the default article title from settings."""
        formatter = WechatWorkFormatter(make_settings(IM_GATEWAY_DEFAULT_TITLE="Alert"))
        message = Message(
            link="https://example.com",
            images=(Image(url="https://img.example.com/c.png", type="cover"),),
        )

        body = formatter.format(GatewayEvent(message=message), target).body

        assert body["news"]["articles"][0]["title"] == "Alert"

    def test_uses_settings_singleton_by_default(self) -> None:
        """Test that the formatter falls back to get_settings()."""
        clear_settings_cache()
        try:
            with patch.dict(os.environ, {"COMMENT_GUEST_NAME": "anon"}, clear=True):
                formatter = WechatWorkFormatter()
        finally:
            clear_settings_cache()

        assert formatter.guest_name == "anon"
        assert formatter.name == "wechatwork"
        assert formatter.provider == "wechatwork"
