import pytest

from scrapegoat.parser.base import ParseRule
from scrapegoat.parser.composite import CompositeParser
from scrapegoat.request import Request
from scrapegoat.response import Response

TEST_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Test Page</title>
    <meta name="description" content="A test page for parsing">
    <meta property="og:title" content="OG Test Title">
    <meta property="og:image" content="https://example.com/image.png">
    <meta name="twitter:card" content="summary">
    <meta name="twitter:title" content="Twitter Title">
    <script type="application/ld+json">
    {"@context":"https://schema.org","@type":"Article","name":"Test Article","author":"Bob"}
    </script>
</head>
<body>
    <h1 class="title">Hello World</h1>
    <div class="content">
        <p class="intro">This is a test paragraph.</p>
        <a href="/page2">Link 1</a>
        <a href="https://example.com/page3">Link 2</a>
    </div>
</body>
</html>"""


def make_resp(url, body):
    return Response(
        request=Request(url), status_code=200, body=body.encode("utf-8"), content_type="text/html"
    )


@pytest.fixture
def parser():
    return CompositeParser()


def test_composite_parser(parser):
    rules = [
        ParseRule(name="heading", type="css", selector="h1"),
        ParseRule(name="page_title", type="regex", pattern=r"<title>(?P<page_title>[^<]+)</title>"),
        ParseRule(name="xpath_heading", type="xpath", selector="//h1"),
    ]
    items, links = parser.parse(make_resp("https://example.com", TEST_HTML), rules)
    assert len(items) == 1
    item = items[0]
    assert "Hello World" in item.get_string("heading")
    assert item.get_string("page_title") == "Test Page"
    assert item.get_string("xpath_heading") == "Hello World"
    assert item.has("meta_title")
    assert item.get("meta_title") == "Test Page"
    assert item.get("json_ld")["name"] == "Test Article"
    assert len(links) >= 1
    assert item.url == "https://example.com"


def test_invalid_regex_does_not_abort(parser):
    rules = [
        ParseRule("title", "regex", pattern=r"<title>([^<]+)</title>"),
        ParseRule("broken", "regex", pattern="("),
    ]
    items, _ = parser.parse(make_resp("https://example.com", TEST_HTML), rules)
    assert items[0].get("title") == "Test Page"
    assert not items[0].has("broken")


def test_page_without_structured_data(parser):
    html = "<html><body><a href='https://example.com/x'>x</a></body></html>"
    items, links = parser.parse(make_resp("https://example.com", html), [])
    assert items == []
    assert links == ["https://example.com/x"]


def test_only_structured_item_is_not_merged(parser):
    items, _ = parser.parse(make_resp("https://example.com", TEST_HTML), [])
    assert len(items) == 1
    assert items[0].get("opengraph")["image"] == "https://example.com/image.png"
    assert not items[0].has("heading")