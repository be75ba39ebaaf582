"""Selector-free extraction of structured data from any page."""

from __future__ import annotations

import json
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..errors import ParseError
from ..response import Response
from .autoselector import _attr, _select

_LOG = logging.getLogger(__name__)

_PRICE_PATTERN = re.compile(
    r"[\$€£¥₹]\s*[\d,]+\.?\d*|\d+[\.,]\d{2}\s*(?:USD|EUR|GBP|JPY|INR)", re.ASCII
)

_PRODUCT_SELECTORS = (
    "[itemtype*='Product']",
    ".product",
    ".product-card",
    ".product-item",
    ".product-grid-item",
    "[data-product]",
    ".item-card",
)
_NAME_SELECTORS = (
    "h1",
    "h2",
    "h3",
    ".product-title",
    ".product-name",
    "[itemprop='name']",
    ".title",
    "a",
)
_PRICE_SELECTORS = (".price", "[itemprop='price']", ".product-price", ".cost", ".amount")
_RATING_SELECTORS = (".rating", "[itemprop='ratingValue']", ".stars", ".review-score")
_DESCRIPTION_SELECTORS = (".description", "[itemprop='description']", ".product-desc", "p")

_ARTICLE_SELECTORS = (
    "article",
    "[itemtype*='Article']",
    "[itemtype*='NewsArticle']",
    "[itemtype*='BlogPosting']",
    ".post",
    ".article",
    ".blog-post",
    ".entry-content",
)
_AUTHOR_SELECTORS = (".author", "[itemprop='author']", "[rel='author']", ".byline")
_DATE_SELECTORS = ("time", "[itemprop='datePublished']", ".date", ".published", ".post-date")

_ARTICLE_TYPES = ("Article", "NewsArticle", "BlogPosting")


def _byte_len(s: str) -> int:
    return len(s.encode("utf-8"))


def _first(scope: Tag, selector: str) -> Tag | None:
    matches = _select(scope, selector)
    return matches[0] if matches else None


def _first_text(scope: Tag, selector: str) -> str:
    element = _first(scope, selector)
    return element.get_text().strip() if element is not None else ""


def _sorted_map(value: Any) -> Any:
    """Order mapping keys recursively, as a JSON encoder of maps would."""
    if isinstance(value, dict):
        return {key: _sorted_map(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted_map(entry) for entry in value]
    return value


@dataclass
class ExtractedLink:
    text: str
    url: str
    rel: str = ""


@dataclass
class ExtractedImage:
    url: str
    alt: str = ""


@dataclass
class ExtractedTable:
    headers: list[str]
    rows: list[dict[str, str]]


@dataclass
class ExtractedData:
    """Everything found on a page; ``type`` is product, listing, article, data or generic."""

    url: str
    title: str = ""
    description: str = ""
    type: str = ""
    data: list[dict[str, Any]] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)
    links: list[ExtractedLink] = field(default_factory=list)
    images: list[ExtractedImage] = field(default_factory=list)
    tables: list[ExtractedTable] = field(default_factory=list)
    json_ld: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping; empty optional sections are left out."""
        out: dict[str, Any] = {"url": self.url, "title": self.title}
        if self.description:
            out["description"] = self.description
        out["type"] = self.type
        out["data"] = _sorted_map(self.data)
        if self.meta:
            out["meta"] = _sorted_map(self.meta)
        if self.links:
            out["links"] = [
                {"text": link.text, "url": link.url, **({"rel": link.rel} if link.rel else {})}
                for link in self.links
            ]
        if self.images:
            out["images"] = [
                {"url": image.url, **({"alt": image.alt} if image.alt else {})}
                for image in self.images
            ]
        if self.tables:
            out["tables"] = [
                {"headers": list(table.headers), "rows": _sorted_map(table.rows)}
                for table in self.tables
            ]
        if self.json_ld:
            out["json_ld"] = _sorted_map(self.json_ld)
        return out


class AutoExtractor:
    """Extracts meta data, JSON-LD, OpenGraph, tables, products, articles,
    links and images from a page without any configured selectors."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG

    def extract(self, response: Response) -> ExtractedData:
        """Run every extraction strategy and classify the page."""
        try:
            doc = response.document()
        except Exception as exc:
            raise ParseError(response.request.url, exc) from exc

        result = ExtractedData(url=response.request.url)
        _extract_meta(doc, result)
        _extract_json_ld(doc, result)
        _extract_open_graph(doc, result)
        _extract_tables(doc, result)
        _extract_products(doc, result)
        _extract_articles(doc, result)
        _extract_links(doc, result)
        _extract_images(doc, result)
        _classify(result)
        return result

    def extract_to_json(self, response: Response) -> None:
        """Extract and print the result as indented JSON on standard output."""
        data = self.extract(response)
        sys.stdout.write(_encode(data))

    def extract_to_file(self, response: Response, path: str | Path) -> None:
        """Extract and write the result as indented JSON to ``path``."""
        data = self.extract(response)
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(_encode(data))


def _encode(data: ExtractedData) -> str:
    return json.dumps(data.to_dict(), indent=2, ensure_ascii=False, default=str) + "\n"


def _extract_meta(doc: BeautifulSoup, result: ExtractedData) -> None:
    result.title = "".join(t.get_text() for t in doc.find_all("title")).strip()
    for meta in doc.find_all("meta"):
        name = _attr(meta, "name") or ""
        content = _attr(meta, "content") or ""
        if name and content:
            result.meta[name] = content
            if name == "description":
                result.description = content


def _extract_json_ld(doc: BeautifulSoup, result: ExtractedData) -> None:
    for script in _select(doc, 'script[type="application/ld+json"]'):
        text = script.get_text().strip()
        if not text:
            continue
        try:
            value = json.loads(text)
        except ValueError:
            continue
        entries = value if isinstance(value, list) else [value]
        for entry in entries:
            if isinstance(entry, dict):
                result.json_ld.append(entry)
                result.data.append(entry)


def _extract_open_graph(doc: BeautifulSoup, result: ExtractedData) -> None:
    og: dict[str, Any] = {}
    for meta in _select(doc, 'meta[property^="og:"]'):
        prop = _attr(meta, "property") or ""
        og[prop.removeprefix("og:")] = _attr(meta, "content") or ""
    for meta in _select(doc, 'meta[name^="twitter:"]'):
        name = _attr(meta, "name") or ""
        og["twitter_" + name.removeprefix("twitter:")] = _attr(meta, "content") or ""
    if og:
        result.data.append(og)


def _extract_tables(doc: BeautifulSoup, result: ExtractedData) -> None:
    for table in doc.find_all("table"):
        headers = [
            cell.get_text().strip()
            for cell in _select(table, "thead th, thead td, tr:first-child th")
        ]
        if not headers:
            headers = [
                text
                for text in (td.get_text().strip() for td in _select(table, "tr:first-child td"))
                if text
            ]
        if not headers:
            continue

        start_row = 0 if table.find("thead") is not None else 1
        rows = []
        for index, tr in enumerate(_select(table, "tbody tr, tr")):
            if index < start_row:
                continue
            row = {
                headers[k]: td.get_text().strip()
                for k, td in enumerate(tr.find_all("td"))
                if k < len(headers)
            }
            if row:
                rows.append(row)
        if rows:
            result.tables.append(ExtractedTable(headers=headers, rows=rows))


def _first_matching_text(scope: Tag, selectors: tuple[str, ...], accept) -> str | None:
    for selector in selectors:
        text = _first_text(scope, selector)
        if accept(text):
            return text
    return None


def _extract_products(doc: BeautifulSoup, result: ExtractedData) -> None:
    for selector in _PRODUCT_SELECTORS:
        for scope in _select(doc, selector):
            product: dict[str, Any] = {"_type": "product"}

            name = _first_matching_text(
                scope, _NAME_SELECTORS, lambda t: bool(t) and _byte_len(t) < 200
            )
            if name is not None:
                product["name"] = name

            price = _first_matching_text(scope, _PRICE_SELECTORS, bool)
            if price is not None:
                product["price"] = price
            else:
                match = _PRICE_PATTERN.search(scope.get_text())
                if match and match.group(0):
                    product["price"] = match.group(0)

            image = scope.find("img")
            if image is not None:
                src = _attr(image, "src")
                if src is not None:
                    product["image"] = src
                alt = _attr(image, "alt")
                if alt is not None:
                    product["image_alt"] = alt

            anchor = scope.find("a")
            if anchor is not None:
                href = _attr(anchor, "href")
                if href is not None:
                    product["url"] = href

            rating = _first_matching_text(scope, _RATING_SELECTORS, bool)
            if rating is not None:
                product["rating"] = rating

            description = _first_matching_text(
                scope, _DESCRIPTION_SELECTORS, lambda t: 10 < _byte_len(t) < 1000
            )
            if description is not None:
                product["description"] = description

            if len(product) > 1:
                result.data.append(product)


def _article_date(scope: Tag) -> str | None:
    for selector in _DATE_SELECTORS:
        element = _first(scope, selector)
        if element is None:
            continue
        datetime_attr = _attr(element, "datetime")
        if datetime_attr is not None:
            return datetime_attr
        text = element.get_text().strip()
        if text:
            return text
    return None


def _preview(text: str) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= 500:
        return text
    return encoded[:500].decode("utf-8", errors="replace") + "..."


def _extract_articles(doc: BeautifulSoup, result: ExtractedData) -> None:
    for selector in _ARTICLE_SELECTORS:
        for scope in _select(doc, selector):
            article: dict[str, Any] = {"_type": "article"}

            title = _first_text(scope, "h1, h2, .title, .headline")
            if title:
                article["title"] = title

            author = _first_matching_text(scope, _AUTHOR_SELECTORS, bool)
            if author is not None:
                article["author"] = author

            published = _article_date(scope)
            if published is not None:
                article["date"] = published

            content = _first_text(scope, "p")
            if content and _byte_len(content) > 20:
                article["content_preview"] = _preview(content)

            if len(article) > 1:
                result.data.append(article)


def _extract_links(doc: BeautifulSoup, result: ExtractedData) -> None:
    for anchor in _select(doc, "a[href]"):
        href = _attr(anchor, "href") or ""
        if href and href != "#" and not href.startswith("javascript:"):
            result.links.append(
                ExtractedLink(
                    text=anchor.get_text().strip(), url=href, rel=_attr(anchor, "rel") or ""
                )
            )


def _extract_images(doc: BeautifulSoup, result: ExtractedData) -> None:
    for image in _select(doc, "img[src]"):
        src = _attr(image, "src") or ""
        if src:
            result.images.append(ExtractedImage(url=src, alt=_attr(image, "alt") or ""))


def _classify(result: ExtractedData) -> None:
    products = articles = 0
    for entry in result.data:
        marker = entry.get("_type")
        if marker == "product":
            products += 1
        elif marker == "article":
            articles += 1
        ld_type = entry.get("@type")
        if isinstance(ld_type, str):
            if ld_type == "Product":
                products += 1
            elif ld_type in _ARTICLE_TYPES:
                articles += 1

    if products >= 3:
        result.type = "listing"
    elif products > 0:
        result.type = "product"
    elif articles > 0:
        result.type = "article"
    elif result.tables:
        result.type = "data"
    else:
        result.type = "generic"