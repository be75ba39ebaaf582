"""XPath extraction."""

from __future__ import annotations

import html
import logging
from collections.abc import Sequence
from typing import Any

import lxml.html
from lxml import etree

from ..errors import ParseError
from ..item import Item
from ..response import Response
from .base import ParseRule, Parser

_LOG = logging.getLogger(__name__)


def _inner_html(element: lxml.html.HtmlElement) -> str:
    head = html.escape(element.text, quote=False) if element.text else ""
    return head + "".join(lxml.html.tostring(child, encoding="unicode") for child in element)


class XPathParser(Parser):
    """Extracts fields with XPath expressions."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG

    def parse(
        self, response: Response, rules: Sequence[ParseRule]
    ) -> tuple[list[Item], list[str]]:
        if not response.body.strip():
            return [], []
        try:
            doc = lxml.html.document_fromstring(response.body)
        except (etree.ParserError, etree.XMLSyntaxError, ValueError) as exc:
            raise ParseError(response.request.url, exc) from exc

        item = Item(url=response.request.url)
        for rule in rules:
            if rule.type != "xpath":
                continue
            values = self._extract(doc, rule)
            if len(values) == 1:
                item.set(rule.name, values[0])
            elif values:
                item.set(rule.name, values)

        return ([item] if item.fields else []), []

    def _extract(self, doc: lxml.html.HtmlElement, rule: ParseRule) -> list[str]:
        try:
            result = doc.xpath(rule.selector)
        except etree.XPathError as exc:
            self._log.warning("invalid xpath: selector=%s error=%s", rule.selector, exc)
            return []
        if not isinstance(result, list):
            return []
        values = []
        for node in result:
            value = _value(node, rule.attribute)
            if value:
                values.append(value)
        return values


def _value(node: Any, attribute: str) -> str:
    if isinstance(node, str):
        if attribute in ("", "text"):
            return node.strip()
        if attribute in ("html", "innerHTML", "outerHTML"):
            return str(node)
        return ""
    if not isinstance(node, lxml.html.HtmlElement):
        text = getattr(node, "text", None) or ""
        return text.strip() if attribute in ("", "text") else ""
    if attribute in ("", "text"):
        return node.text_content().strip()
    if attribute in ("html", "innerHTML"):
        return _inner_html(node)
    if attribute == "outerHTML":
        return lxml.html.tostring(node, encoding="unicode", with_tail=False)
    return node.get(attribute) or ""