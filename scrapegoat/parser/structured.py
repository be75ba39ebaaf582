"""Extraction of JSON-LD, OpenGraph, Twitter Card, microdata and meta tags."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..item import Item
from ..response import Response

_LOG = logging.getLogger(__name__)


class StructuredDataType(str, Enum):
    JSONLD = "json-ld"
    MICRODATA = "microdata"
    OPENGRAPH = "opengraph"
    TWITTER_CARD = "twitter_card"
    RDFA = "rdfa"
    META_TAGS = "meta"


@dataclass
class StructuredData:
    type: StructuredDataType
    data: dict[str, Any] = field(default_factory=dict)
    raw: str = ""


_META_NAMES = (
    "description",
    "keywords",
    "author",
    "robots",
    "viewport",
    "generator",
    "theme-color",
    "application-name",
    "msapplication-TileColor",
)


def _attr(tag: Tag | None, name: str) -> str | None:
    if tag is None:
        return None
    value = tag.get(name)
    if value is None:
        return None
    return " ".join(value) if isinstance(value, list) else value


class StructuredDataExtractor:
    """Finds every kind of structured data embedded in a page."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG

    def extract(self, response: Response) -> list[StructuredData]:
        doc = response.document()
        results = list(_json_ld(doc))
        for section in (_open_graph(doc), _twitter_card(doc)):
            if section.data:
                results.append(section)
        results.extend(_microdata(doc))
        meta = _meta_tags(doc)
        if meta.data:
            results.append(meta)
        return results


def _json_ld(doc: BeautifulSoup) -> list[StructuredData]:
    results = []
    for script in doc.select('script[type="application/ld+json"]'):
        raw = script.get_text().strip()
        if not raw:
            continue
        try:
            value = json.loads(raw)
        except ValueError:
            continue
        if value is None:
            results.append(StructuredData(StructuredDataType.JSONLD, {}, raw))
        elif isinstance(value, dict):
            results.append(StructuredData(StructuredDataType.JSONLD, value, raw))
        elif isinstance(value, list) and all(isinstance(entry, dict) for entry in value):
            results.extend(StructuredData(StructuredDataType.JSONLD, entry, raw) for entry in value)
    return results


def _open_graph(doc: BeautifulSoup) -> StructuredData:
    data: dict[str, Any] = {}
    for meta in doc.select('meta[property^="og:"]'):
        prop = _attr(meta, "property") or ""
        content = _attr(meta, "content") or ""
        if prop and content:
            data[prop.removeprefix("og:")] = content
    return StructuredData(StructuredDataType.OPENGRAPH, data)


def _twitter_card(doc: BeautifulSoup) -> StructuredData:
    data: dict[str, Any] = {}
    for meta in doc.select('meta[name^="twitter:"], meta[property^="twitter:"]'):
        name = _attr(meta, "name") or _attr(meta, "property") or ""
        content = _attr(meta, "content") or ""
        if name and content:
            data[name.removeprefix("twitter:")] = content
    return StructuredData(StructuredDataType.TWITTER_CARD, data)


def _microdata_value(prop: Tag) -> str:
    for name in ("href", "src", "content", "datetime"):
        value = _attr(prop, name)
        if value is not None:
            return value
    return prop.get_text().strip()


def _microdata(doc: BeautifulSoup) -> list[StructuredData]:
    results = []
    for scope in doc.select("[itemscope]"):
        if any(parent.has_attr("itemscope") for parent in scope.parents):
            continue
        data: dict[str, Any] = {}
        item_type = _attr(scope, "itemtype")
        if item_type:
            data["@type"] = item_type
        for prop in scope.select("[itemprop]"):
            name = _attr(prop, "itemprop")
            if not name:
                continue
            value = _microdata_value(prop)
            if value:
                data[name] = value
        if data:
            results.append(StructuredData(StructuredDataType.MICRODATA, data))
    return results


def _meta_tags(doc: BeautifulSoup) -> StructuredData:
    data: dict[str, Any] = {}
    title = doc.find("title")
    if title is not None:
        text = title.get_text().strip()
        if text:
            data["title"] = text

    for name in _META_NAMES:
        content = _attr(doc.select_one(f'meta[name="{name}"]'), "content")
        if content:
            data[name] = content

    canonical = _attr(doc.select_one('link[rel="canonical"]'), "href")
    if canonical:
        data["canonical"] = canonical

    favicon = _attr(doc.select_one('link[rel="icon"], link[rel="shortcut icon"]'), "href")
    if favicon:
        data["favicon"] = favicon

    hreflangs = []
    for link in doc.select('link[rel="alternate"][hreflang]'):
        lang = _attr(link, "hreflang") or ""
        href = _attr(link, "href") or ""
        if lang and href:
            hreflangs.append({"lang": lang, "href": href})
    if hreflangs:
        data["hreflang"] = hreflangs

    return StructuredData(StructuredDataType.META_TAGS, data)


def structured_data_to_item(results: Sequence[StructuredData], source_url: str) -> Item | None:
    """Fold structured data into one item, or return None if there is none."""
    if not results:
        return None
    item = Item(url=source_url)
    for entry in results:
        if entry.type is StructuredDataType.META_TAGS:
            for key, value in entry.data.items():
                item.set(f"meta_{key}", value)
        elif entry.type is not StructuredDataType.RDFA:
            key = "json_ld" if entry.type is StructuredDataType.JSONLD else entry.type.value
            item.set(key, entry.data)
    return item