"""Tests for the json-output, rss-output and webhook-output nodes."""

import json
import xml.etree.ElementTree as ET

import httpx
import pytest
import respx

from tests.helpers.pipelines import CapturingContext

HOOK_URL = "https://hooks.example.com/in"
ITEMS = [
    {"title": "One & only", "link": "https://e/1", "description": "<b>first</b>", "guid": "g1", "published_at": 1704110400},
    {"title": "Two", "link": "https://e/2"},
]


class TestJSONOutput:
    @pytest.fixture
    def node(self):
        from pipeworks.plugins.sinks import JSONOutput

        return JSONOutput()

    def test_logs_and_publishes_document(self, node) -> None:
        capture = CapturingContext()

        result = node.execute({}, [ITEMS], capture.ctx)

        assert result == ITEMS
        document = json.loads(capture.messages[0])
        assert document == {"count": 2, "items": ITEMS}
        assert len(capture.published) == 1
        fmt, content_type, content = capture.published[0]
        assert (fmt, content_type) == ("json", "application/json")
        assert json.loads(content) == document

    def test_empty_input(self, node) -> None:
        capture = CapturingContext()

        assert node.execute({}, [], capture.ctx) == []
        assert capture.messages == ["No input data"]
        assert capture.published == []


class TestRSSOutput:
    @pytest.fixture
    def node(self):
        from pipeworks.plugins.sinks import RSSOutput

        return RSSOutput()

    def test_renders_rss_document(self, node) -> None:
        capture = CapturingContext()

        result = node.execute({"title": "My feed", "link": "https://e", "description": "Stuff"}, [ITEMS], capture.ctx)

        assert result == ITEMS
        fmt, content_type, content = capture.published[0]
        assert (fmt, content_type) == ("rss", "application/rss+xml")

        root = ET.fromstring(content)
        channel = root.find("channel")
        assert root.get("version") == "2.0"
        assert channel.findtext("title") == "My feed"
        items = channel.findall("item")
        assert [i.findtext("title") for i in items] == ["One & only", "Two"]
        assert items[0].findtext("description") == "<b>first</b>"
        assert items[0].findtext("guid") == "g1"
        assert items[0].findtext("pubDate") == "Mon, 01 Jan 2024 12:00:00 +0000"
        assert items[1].find("pubDate") is None

    def test_default_title_and_empty_feed(self, node) -> None:
        capture = CapturingContext()

        assert node.execute({}, [], capture.ctx) == []

        root = ET.fromstring(capture.published[0][2])
        assert root.find("channel").findtext("title") == "Pipeworks feed"
        assert root.find("channel").findall("item") == []


class TestWebhookOutput:
    @pytest.fixture
    def node(self):
        from pipeworks.plugins.sinks import WebhookOutput

        return WebhookOutput()

    @respx.mock
    def test_posts_payload(self, node) -> None:
        route = respx.post(HOOK_URL).mock(return_value=httpx.Response(202))
        capture = CapturingContext()

        result = node.execute({"url": HOOK_URL, "headers": "X-Token: s3cret"}, [ITEMS], capture.ctx)

        assert result == ITEMS
        request = route.calls.last.request
        assert json.loads(request.content) == {"count": 2, "items": ITEMS}
        assert request.headers["X-Token"] == "s3cret"
        assert request.headers["Content-Type"] == "application/json"
        assert capture.messages == ["Posted 2 items to webhook (HTTP 202)"]

    @respx.mock
    def test_error_status_fails(self, node) -> None:
        respx.post(HOOK_URL).mock(return_value=httpx.Response(500))

        with pytest.raises(ValueError, match="webhook returned HTTP 500"):
            node.execute({"url": HOOK_URL}, [ITEMS], CapturingContext().ctx)

    @respx.mock
    def test_empty_input_sends_nothing(self, node) -> None:
        route = respx.post(HOOK_URL).mock(return_value=httpx.Response(200))

        assert node.execute({"url": HOOK_URL}, [[]], CapturingContext().ctx) == []
        assert not route.called

    def test_missing_url(self, node) -> None:
        with pytest.raises(ValueError, match="url is required"):
            node.execute({}, [ITEMS], CapturingContext().ctx)
