import dataclasses

import pytest

from scrapegoat.item import Item
from scrapegoat.parser.base import ParseRule, Parser
from scrapegoat.request import Request
from scrapegoat.response import Response


def test_parse_rule_defaults_are_empty():
    rule = ParseRule("title")
    assert rule.name == "title"
    assert (rule.type, rule.selector, rule.pattern, rule.attribute) == ("", "", "", "")


def test_parse_rule_is_immutable():
    rule = ParseRule("title", type="css", selector="h1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        rule.selector = "h2"
    assert rule.selector == "h1"


def test_parse_rule_equality_by_value():
    assert ParseRule("a", "css", "h1") == ParseRule("a", type="css", selector="h1")
    assert ParseRule("a", "css", "h1") != ParseRule("a", "xpath", "h1")


def test_parser_is_abstract():
    with pytest.raises(TypeError):
        Parser()


def test_concrete_parser_contract():
    class NameParser(Parser):
        def parse(self, response, rules):
            item = Item(url=response.request.url)
            for rule in rules:
                item.set(rule.name, rule.selector)
            return [item], [response.request.url]

    resp = Response(request=Request("https://example.com"), body=b"<html></html>")
    items, links = NameParser().parse(resp, [ParseRule("x", selector="h1")])
    assert items[0].get("x") == "h1"
    assert links == ["https://example.com"]