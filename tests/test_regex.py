import pytest

from scrapegoat.errors import ParseError
from scrapegoat.parser.base import ParseRule
from scrapegoat.parser.regex import RegexParser
from scrapegoat.request import Request
from scrapegoat.response import Response

TEST_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Test Page</title>
</head>
<body>
    <h1 class="title">Hello World</h1>
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


def make_resp(url, body):
    return Response(
        request=Request(url), status_code=200, body=body.encode("utf-8"), content_type="text/html"
    )


@pytest.fixture
def resp():
    return make_resp("https://example.com", TEST_HTML)


def test_regex_parser_named_group(resp):
    rules = [ParseRule(name="title", type="regex", pattern=r"<title>(?P<title>[^<]+)</title>")]
    items, links = RegexParser().parse(resp, rules)
    assert items
    assert items[0].get_string("title") == "Test Page"
    assert links == []


def test_unnamed_group_takes_first_group(resp):
    items, _ = RegexParser().parse(resp, [ParseRule("li", "regex", pattern=r"<li>([^<]+)</li>")])
    assert items[0].get("li") == ["Item 1", "Item 2", "Item 3"]


def test_no_groups_takes_whole_match(resp):
    items, _ = RegexParser().parse(resp, [ParseRule("n", "regex", pattern=r"Item \d")])
    assert items[0].get("n") == ["Item 1", "Item 2", "Item 3"]


def test_several_named_groups_in_order(resp):
    pattern = r"<td>(?P<name>[A-Za-z]+)</td><td>(?P<value>\d+)</td>"
    items, _ = RegexParser().parse(resp, [ParseRule("rows", "regex", pattern=pattern)])
    assert items[0].get("rows") == ["Alpha", "100", "Beta", "200"]


def test_invalid_pattern_raises_with_partial_items(resp):
    rules = [
        ParseRule("title", "regex", pattern=r"<title>(?P<title>[^<]+)</title>"),
        ParseRule("broken", "regex", pattern="("),
    ]
    with pytest.raises(ParseError) as excinfo:
        RegexParser().parse(resp, rules)
    assert "regex errors" in str(excinfo.value)
    assert '"broken"' in str(excinfo.value)
    assert excinfo.value.items[0].get_string("title") == "Test Page"


def test_non_regex_rules_ignored(resp):
    items, _ = RegexParser().parse(resp, [ParseRule("h", "css", "h1", pattern="Hello")])
    assert items == []


def test_no_match_gives_no_item(resp):
    items, _ = RegexParser().parse(resp, [ParseRule("x", "regex", pattern="nothing-here")])
    assert items == []