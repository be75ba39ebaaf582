"""A parser that dispatches rules to CSS, regex and XPath parsers."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..errors import ParseError
from ..item import Item
from ..response import Response
from .base import ParseRule, Parser
from .css import CSSParser
from .regex import RegexParser, _PartialParseError
from .structured import StructuredDataExtractor, structured_data_to_item
from .xpath import XPathParser

_LOG = logging.getLogger(__name__)


class CompositeParser(Parser):
    """Runs each rule through the parser for its type and merges the results.

    CSS always runs, so links are discovered even without CSS rules; structured
    data is extracted automatically. When several items result, their fields
    are merged into a single item for the page.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG
        self._css = CSSParser(logger)
        self._regex = RegexParser(logger)
        self._xpath = XPathParser(logger)
        self._structured = StructuredDataExtractor(logger)

    def parse(
        self, response: Response, rules: Sequence[ParseRule]
    ) -> tuple[list[Item], list[str]]:
        css_rules = [r for r in rules if r.type not in ("regex", "xpath")]
        regex_rules = [r for r in rules if r.type == "regex"]
        xpath_rules = [r for r in rules if r.type == "xpath"]

        items: list[Item] = []
        links: list[str] = []

        try:
            css_items, links = self._css.parse(response, css_rules)
            items.extend(css_items)
        except ParseError as exc:
            self._log.warning("CSS parser error: %s", exc)

        if regex_rules:
            try:
                items.extend(self._regex.parse(response, regex_rules)[0])
            except _PartialParseError as exc:
                self._log.warning("regex parser error: %s", exc)
                items.extend(exc.items)

        if xpath_rules:
            try:
                items.extend(self._xpath.parse(response, xpath_rules)[0])
            except ParseError as exc:
                self._log.warning("XPath parser error: %s", exc)

        try:
            structured = self._structured.extract(response)
        except Exception as exc:
            self._log.warning("structured data extraction error: %s", exc)
            structured = []
        structured_item = structured_data_to_item(structured, response.request.url)
        if structured_item is not None:
            items.append(structured_item)

        if len(items) > 1:
            merged = Item(url=response.request.url)
            for item in items:
                for key, value in item.fields.items():
                    merged.set(key, value)
            items = [merged]

        return items, links