import pytest

from scrapegoat.parser.autoselector import (
    AutoSelectorGenerator,
    SelectorCandidate,
    build_element_path,
    css_escape,
)
from scrapegoat.request import Request
from scrapegoat.response import browser_response

TEST_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Test Page</title>
    <meta name="description" content="A test page for parsing">
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


def make_resp(body: str, url: str = "https://example.com"):
    return browser_response(Request(url), 200, body.encode("utf-8"), url, 0.0)


@pytest.fixture
def generator():
    return AutoSelectorGenerator()


def test_generate_for_text_best_candidate_is_unique(generator):
    candidates = generator.generate_for_text(make_resp(TEST_HTML), "Hello World")
    assert candidates
    best = candidates[0]
    assert best.score >= 0.5
    assert best.match_count == 1


def test_generate_for_text_sorted_and_limited(generator):
    candidates = generator.generate_for_text(make_resp(TEST_HTML), "Item")
    assert 0 < len(candidates) <= 10
    keys = [(c.score, c.specificity) for c in candidates]
    assert keys == sorted(keys, reverse=True)


def test_generate_for_text_without_match(generator):
    assert generator.generate_for_text(make_resp(TEST_HTML), "not on the page") == []


def test_generate_for_element_h1(generator):
    candidates = generator.generate_for_element(make_resp(TEST_HTML), "h1")
    assert candidates[0].selector == "h1.title"
    assert candidates[0].score == 1.0
    assert candidates[0].match_count == 1
    assert all(c.selector == "h1.title" for c in candidates)


def test_generate_for_element_no_match(generator):
    assert generator.generate_for_element(make_resp(TEST_HTML), "section") == []


def test_generate_for_element_data_attribute(generator):
    html = '<html><body><div><button data-testid="go">Go</button></div></body></html>'
    candidates = generator.generate_for_element(make_resp(html), "button")
    data = [c for c in candidates if c.selector == 'button[data-testid="go"]']
    assert len(data) == 1
    assert data[0].specificity == 50
    assert data[0].match_count == 1


def test_generate_for_element_escaped_id(generator):
    html = '<html><body><div><span id="a:b">x</span></div></body></html>'
    candidates = generator.generate_for_element(make_resp(html), "span")
    assert candidates[0] == SelectorCandidate("#a\\:b", 100, 1, 1.0)


def test_generate_for_element_nth_child(generator):
    html = '<html><body><ul class="items"><li>1</li><li>2</li></ul></body></html>'
    candidates = generator.generate_for_element(make_resp(html), "li")
    nth = [c for c in candidates if c.selector == "ul > li:nth-child(1)"]
    assert len(nth) == 1
    assert nth[0].specificity == 25


def test_css_escape():
    assert css_escape("a:b.c") == "a\\:b\\.c"
    assert css_escape("x[1](2)/ y") == "x\\[1\\]\\(2\\)\\/\\ y"
    assert css_escape("plain") == "plain"


def test_build_element_path_stops_at_body():
    doc = make_resp(TEST_HTML).document()
    assert build_element_path(doc.select_one("p.intro"), 3) == "div.content > p.intro"


def test_build_element_path_stops_at_id():
    html = '<html><body><div id="root"><ul><li class="x">a</li></ul></div></body></html>'
    doc = make_resp(html).document()
    assert build_element_path(doc.select_one("li"), 3) == "#root > ul > li.x"
    assert build_element_path(doc.select_one("li"), 1) == "li.x"