"""CSS selector extraction and link discovery."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag

from ..errors import ParseError
from ..item import Item
from ..response import Response
from .base import ParseRule, Parser

_LOG = logging.getLogger(__name__)

_SKIPPED_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")


def _attr(tag: Tag, name: str) -> str | None:
    value = tag.get(name)
    if value is None:
        return None
    return " ".join(value) if isinstance(value, list) else value


class CSSParser(Parser):
    """Extracts fields with CSS selectors and collects the page's links."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG

    def parse(
        self, response: Response, rules: Sequence[ParseRule]
    ) -> tuple[list[Item], list[str]]:
        try:
            doc = response.document()
        except Exception as exc:
            raise ParseError(response.request.url, exc) from exc

        links = _extract_links(doc, response.final_url)
        if not rules:
            return [], links

        item = Item(url=response.request.url)
        for rule in rules:
            if rule.type not in ("css", ""):
                continue
            values = self._extract(doc, rule)
            if len(values) == 1:
                item.set(rule.name, values[0])
            elif values:
                item.set(rule.name, values)

        return ([item] if item.fields else []), links

    def _select(self, doc: BeautifulSoup, selector: str) -> list[Tag]:
        try:
            return doc.select(selector)
        except Exception as exc:
            self._log.warning("invalid css selector: selector=%s error=%s", selector, exc)
            return []

    def _extract(self, doc: BeautifulSoup, rule: ParseRule) -> list[str]:
        values = []
        for element in self._select(doc, rule.selector):
            if rule.attribute in ("", "text"):
                value = element.get_text().strip()
            elif rule.attribute in ("html", "innerHTML"):
                value = element.decode_contents()
            elif rule.attribute == "outerHTML":
                value = str(element)
            else:
                value = _attr(element, rule.attribute) or ""
            if value:
                values.append(value)
        return values


def _extract_links(doc: BeautifulSoup, base_url: str) -> list[str]:
    """Return the unique absolute http(s) links of the page, without fragments."""
    try:
        urlsplit(base_url)
    except ValueError:
        return []

    seen: dict[str, None] = {}
    for anchor in doc.select("a[href]"):
        href = _attr(anchor, "href")
        if not href:
            continue
        href = href.strip()
        if href.startswith(_SKIPPED_PREFIXES):
            continue
        try:
            parts = urlsplit(urljoin(base_url, href))
        except ValueError:
            continue
        if parts.scheme not in ("http", "https"):
            continue
        seen.setdefault(urlunsplit(parts._replace(fragment="")), None)
    return list(seen)