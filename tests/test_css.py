import pytest

from scrapegoat.parser.base import ParseRule
from scrapegoat.parser.css import CSSParser
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
    <ul class="items">
        <li>Item 1</li>
        <li>Item 2</li>
        <li>Item 3</li>
    </ul>
    <table id="data">
        <tr><th>Name</th><th>Value</th></tr>
        <tr><td>Alpha</td><td>100</td></tr>
        <tr><td>Beta</td><td>200</td></tr>
    </table>
</body>
</html>"""


def make_resp(url, body, final_url=""):
    return Response(
        request=Request(url),
        status_code=200,
        body=body.encode("utf-8"),
        content_type="text/html",
        final_url=final_url,
    )


@pytest.fixture
def parser():
    return CSSParser()


def test_css_parser_extract(parser):
    rules = [
        ParseRule(name="title", type="css", selector="h1.title"),
        ParseRule(name="intro", type="css", selector="p.intro"),
    ]
    items, _ = parser.parse(make_resp("https://example.com", TEST_HTML), rules)
    assert items
    assert items[0].get_string("title") == "Hello World"
    assert items[0].get_string("intro") == "This is a test paragraph."
    assert items[0].url == "https://example.com"


def test_css_parser_links_without_final_url(parser):
    items, links = parser.parse(make_resp("https://example.com", TEST_HTML), [])
    assert items == []
    assert links == ["https://example.com/page3"]


def test_css_parser_links_resolved_against_final_url(parser):
    resp = make_resp("https://example.com", TEST_HTML, final_url="https://example.com")
    _, links = parser.parse(resp, [])
    assert links == ["https://example.com/page2", "https://example.com/page3"]


def test_links_skip_schemes_fragments_and_duplicates(parser):
    html = """<html><body>
        <a href="#top">a</a>
        <a href="javascript:void(0)">b</a>
        <a href="mailto:someone@example.com">c</a>
        <a href="tel:123">d</a>
        <a href="data:text/plain,x">e</a>
        <a href="ftp://example.com/file">f</a>
        <a href="https://example.com/a#frag">g</a>
        <a href=" https://example.com/a ">h</a>
    </body></html>"""
    resp = make_resp("https://example.com", html, final_url="https://example.com/")
    _, links = parser.parse(resp, [])
    assert links == ["https://example.com/a"]


def test_multiple_matches_stored_as_list(parser):
    items, _ = parser.parse(
        make_resp("https://example.com", TEST_HTML), [ParseRule("items", "css", "ul.items li")]
    )
    assert items[0].get("items") == ["Item 1", "Item 2", "Item 3"]


def test_attribute_modes(parser):
    rules = [
        ParseRule("hrefs", "", ".content a", attribute="href"),
        ParseRule("inner", "css", "h1", attribute="innerHTML"),
        ParseRule("outer", "css", "h1", attribute="outerHTML"),
        ParseRule("cls", "css", "h1", attribute="class"),
    ]
    items, _ = parser.parse(make_resp("https://example.com", TEST_HTML), rules)
    item = items[0]
    assert item.get("hrefs") == ["/page2", "https://example.com/page3"]
    assert item.get("inner") == "Hello World"
    assert item.get("outer") == '<h1 class="title">Hello World</h1>'
    assert item.get("cls") == "title"


def test_no_match_gives_no_item(parser):
    items, links = parser.parse(
        make_resp("https://example.com", TEST_HTML), [ParseRule("x", "css", "h6.none")]
    )
    assert items == []
    assert links == ["https://example.com/page3"]


def test_non_css_rules_are_skipped(parser):
    rules = [ParseRule("h", "xpath", "//h1"), ParseRule("r", "regex", pattern="Hello")]
    items, _ = parser.parse(make_resp("https://example.com", TEST_HTML), rules)
    assert items == []


def test_invalid_selector_yields_nothing(parser):
    items, _ = parser.parse(
        make_resp("https://example.com", TEST_HTML), [ParseRule("bad", "css", "h1[")]
    )
    assert items == []